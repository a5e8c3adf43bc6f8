"""Scan orchestrator for SUBSWEEP.

The :class:`ScanEngine` builds the resolver, wildcard detector, zone-transfer
probe, candidate generator and result sink from a
:class:`~subsweep.core.config.Config`, then drives a
:class:`~subsweep.core.scheduler.ResolutionScheduler` over the target.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional, TextIO

from subsweep.core.config import Config, load_config
from subsweep.core.scheduler import DepthPolicy, ResolutionScheduler, ScanStats
from subsweep.modules.dns.zone_transfer import ZoneTransferProbe
from subsweep.modules.subdomains.candidates import (
    CandidateGenerator,
    estimate_lookups,
    load_wordlist,
)
from subsweep.modules.subdomains.wildcard import WildcardDetector
from subsweep.reporting.sink import ResultSink
from subsweep.utils.dns_resolver import AsyncDNSResolver
from subsweep.utils.logger import get_logger
from subsweep.utils.validators import validate_domain

logger = get_logger(__name__)


@dataclass
class ScanResult:
    """Outcome of a complete run.

    Attributes:
        target: The scanned apex.
        stats: Scheduler counters.
        record_count: Records written to the sink.
    """

    target: str
    stats: ScanStats = field(default_factory=ScanStats)
    record_count: int = 0


class ScanEngine:
    """Runs one recursive subdomain scan.

    The word list is loaded once, in full, when the engine is created, so
    configuration problems surface before any DNS traffic.

    Example::

        engine = ScanEngine(target="example.com", words=["www", "mail"])
        result = await engine.run()
    """

    def __init__(
        self,
        target: str,
        config: Optional[Config] = None,
        config_path: Optional[str] = None,
        words: Optional[List[str]] = None,
    ) -> None:
        """Initialise the scan engine.

        Args:
            target: Apex to scan.
            config: Pre-built configuration; loaded from *config_path* if
                    ``None``.
            config_path: Optional path to a YAML configuration file.
            words: Explicit word list, bypassing ``scan.wordlist``.

        Raises:
            ValueError: When *target* is not a valid domain.
            ConfigurationError: When the word list cannot be loaded.
        """
        self.target = validate_domain(target)
        self.config: Config = config or load_config(config_path)
        self.words = list(words) if words is not None else load_wordlist(self.config.scan.wordlist)
        self.policy = DepthPolicy(self.config.scan.depth_mode, self.config.scan.depth)

    async def run(self, stream: Optional[TextIO] = None) -> ScanResult:
        """Execute the scan, streaming records to *stream* (stdout by default).

        Returns:
            :class:`ScanResult` for the finished run.
        """
        cfg = self.config
        generator = CandidateGenerator(self.words)

        ceiling = self.policy.ceiling
        if ceiling is not None:
            logger.info(
                "Looking up at most %d names under %s",
                estimate_lookups(len(generator), ceiling + 1),
                self.target,
            )
        logger.info(
            "Scanning %s with %d words (threads=%d, depth=%d/%s, zone transfer=%s)",
            self.target,
            len(generator),
            cfg.general.threads,
            self.policy.limit,
            self.policy.mode.value,
            "on" if cfg.scan.zone_transfer else "off",
        )

        slots = asyncio.Semaphore(cfg.general.threads)
        async with AsyncDNSResolver(
            nameservers=cfg.dns.resolvers,
            timeout=cfg.dns.timeout,
        ) as resolver:
            with ResultSink(cfg.general.output_format, stream) as sink:
                scheduler = ResolutionScheduler(
                    resolver=resolver,
                    detector=WildcardDetector(resolver, slots=slots),
                    generator=generator,
                    sink=sink,
                    policy=self.policy,
                    zone_probe=(
                        ZoneTransferProbe(resolver, timeout=cfg.dns.timeout)
                        if cfg.scan.zone_transfer
                        else None
                    ),
                    slots=slots,
                )
                stats = await scheduler.run(self.target)

        logger.info(
            "Scan of %s complete: %d records from %d lookups across %d apexes in %.1fs "
            "(%d wildcard matches dropped, %d errors)",
            self.target,
            stats.records,
            stats.candidates,
            stats.apexes,
            stats.duration,
            stats.wildcard_filtered,
            stats.errors,
        )
        return ScanResult(target=self.target, stats=stats, record_count=sink.count)
