"""SUBSWEEP command-line interface built with Typer + Rich.

Discovered records go to stdout; the banner, logs and run summary go to
stderr so the output can be piped straight into other tools.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from subsweep import __version__
from subsweep.core.config import Config, ConfigurationError, DepthMode, OutputFormat, load_config
from subsweep.core.engine import ScanEngine, ScanResult
from subsweep.utils.logger import configure_logging, get_logger

app = typer.Typer(
    name="subsweep",
    help="[bold cyan]SUBSWEEP[/] — recursive DNS subdomain brute-forcer",
    rich_markup_mode="rich",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)
logger = get_logger(__name__)

_BANNER = r"""
 ___ _   _ ___ _____      _____ ___ ___
/ __| | | | _ ) __\ \    / / __| __| _ \
\__ \ |_| | _ \__ \\ \/\/ /| _|| _||  _/
|___/\___/|___/___/ \_/\_/ |___|___|_|
"""


def _print_banner() -> None:
    """Print the SUBSWEEP banner to stderr."""
    err_console.print(
        Panel(
            Text(_BANNER, style="bold cyan", justify="center"),
            subtitle=f"[dim]v{__version__}[/]",
            border_style="cyan",
            expand=False,
        )
    )


# ---------------------------------------------------------------------------
# scan command
# ---------------------------------------------------------------------------


@app.command()
def scan(
    domain: str = typer.Option(..., "--domain", "-d", help="Target domain"),
    wordlist: Optional[str] = typer.Option(None, "--wordlist", "-w", help="Path to the wordlist"),
    threads: Optional[int] = typer.Option(None, "--threads", "-t", min=1, help="Concurrent lookups"),
    output: Optional[OutputFormat] = typer.Option(
        None, "--output", "-o", case_sensitive=False, help="Output format: csv/json"
    ),
    zone_transfer: Optional[bool] = typer.Option(
        None, "--zt/--no-zt", help="Attempt zone transfers before brute-forcing"
    ),
    depth: Optional[int] = typer.Option(None, "--depth", min=0, help="Depth bound (0 = unlimited)"),
    depth_mode: Optional[DepthMode] = typer.Option(
        None,
        "--depth-mode",
        case_sensitive=False,
        help="max: stop expanding at --depth; min: keep expanding through "
        "unresolved names until --depth",
    ),
    timeout: Optional[float] = typer.Option(None, "--timeout", min=0.1, help="DNS query timeout in seconds"),
    config_file: Optional[str] = typer.Option(None, "--config", help="Custom config file"),
    silent: bool = typer.Option(False, "--silent", "-s", help="No banner or summary"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose diagnostics"),
) -> None:
    """[bold]Brute-force subdomains of a target, recursing into every hit.[/]

    Examples:

        subsweep scan --domain example.com

        subsweep scan -d example.com -w words.txt --depth 2 --output json

        subsweep scan -d example.com --zt --depth 3 --depth-mode min
    """
    try:
        cfg = load_config(config_file).override(
            general__threads=threads,
            general__output_format=output,
            dns__timeout=timeout,
            scan__wordlist=wordlist,
            scan__zone_transfer=zone_transfer,
            scan__depth=depth,
            scan__depth_mode=depth_mode,
        )
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc), param_hint="'--config'") from exc

    configure_logging(verbose=verbose, log_file=cfg.general.log_file)
    if not silent:
        _print_banner()

    try:
        engine = ScanEngine(target=domain, config=cfg)
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc), param_hint="'--wordlist'") from exc
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="'--domain'") from exc

    result = asyncio.run(engine.run())

    if not silent:
        _display_summary(result)


def _display_summary(result: ScanResult) -> None:
    """Render a Rich summary table of the run on stderr."""
    stats = result.stats
    table = Table(
        title=f"Scan Summary — {result.target}",
        show_header=False,
        border_style="dim",
    )
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right", style="bold")
    table.add_row("Records", str(result.record_count))
    table.add_row("Lookups", str(stats.candidates))
    table.add_row("Apexes scanned", str(stats.apexes))
    table.add_row("Zone transfers", str(stats.zone_transfers))
    table.add_row("Wildcard matches dropped", str(stats.wildcard_filtered))
    table.add_row("Unexpected errors", str(stats.errors))
    table.add_row("Duration", f"{stats.duration:.1f}s")
    err_console.print(table)


# ---------------------------------------------------------------------------
# config command
# ---------------------------------------------------------------------------


@app.command()
def config(
    config_file: Optional[str] = typer.Option(None, "--config", help="Config file path"),
) -> None:
    """[bold]Show the effective configuration.[/]"""
    try:
        cfg: Config = load_config(config_file)
    except ConfigurationError as exc:
        raise typer.BadParameter(str(exc), param_hint="'--config'") from exc
    console.print_json(cfg.model_dump_json(indent=2))


# ---------------------------------------------------------------------------
# version command
# ---------------------------------------------------------------------------


@app.command()
def version() -> None:
    """[bold]Show SUBSWEEP version information.[/]"""
    console.print(f"[bold cyan]SUBSWEEP[/] version [bold]{__version__}[/]")


def main() -> None:
    """Entry point registered in pyproject.toml."""
    app()
