"""Configuration management for SUBSWEEP.

Loads configuration from ``subsweep.yaml``, with support for CLI overrides
and environment variables.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

DEFAULT_CONFIG_PATH = "subsweep.yaml"
ENV_PREFIX = "SUBSWEEP__"


class ConfigurationError(ValueError):
    """Raised for missing or invalid settings before any scanning starts."""


class OutputFormat(str, Enum):
    """Rendering formats understood by the result sink."""

    CSV = "csv"
    JSON = "json"


class DepthMode(str, Enum):
    """How the depth bound is interpreted.

    ``max`` is a ceiling on expansion, ``min`` a floor down to which
    recursion is forced even through names that did not resolve.
    """

    MAX = "max"
    MIN = "min"


class GeneralConfig(BaseModel):
    """General run configuration."""

    threads: int = Field(default=20, ge=1)
    output_format: OutputFormat = OutputFormat.CSV
    log_file: Optional[str] = None


class DNSConfig(BaseModel):
    """DNS resolver configuration."""

    # Empty means the system resolvers from /etc/resolv.conf.
    resolvers: List[str] = Field(default_factory=list)
    timeout: float = Field(default=5.0, gt=0)


class ScanConfig(BaseModel):
    """Brute-force and recursion settings."""

    wordlist: str = "wordlist.txt"
    zone_transfer: bool = False
    depth: int = Field(default=0, ge=0)
    depth_mode: DepthMode = DepthMode.MAX


class Config(BaseModel):
    """Top-level SUBSWEEP configuration."""

    general: GeneralConfig = Field(default_factory=GeneralConfig)
    dns: DNSConfig = Field(default_factory=DNSConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)

    def override(self, **values: Any) -> "Config":
        """Return a validated copy with dotted ``section__key`` overrides applied.

        ``None`` values are ignored so unset CLI options keep the loaded value.

        Raises:
            ConfigurationError: When an override fails validation.
        """
        raw = self.model_dump()
        for key, value in values.items():
            if value is None:
                continue
            section, _, name = key.partition("__")
            raw.setdefault(section, {})[name] = value
        return _build(raw)


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from a YAML file, applying environment variable overrides.

    Args:
        config_path: Optional path to a YAML configuration file. Defaults to
                     ``subsweep.yaml`` in the current working directory.

    Returns:
        Populated :class:`Config` instance.

    Raises:
        ConfigurationError: When an explicit *config_path* does not exist, the
            YAML cannot be parsed, or a value fails validation.
    """
    path = Path(config_path) if config_path else Path(DEFAULT_CONFIG_PATH)
    if config_path and not path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    raw: Dict[str, Any] = {}
    if path.exists():
        try:
            with path.open("r") as fh:
                raw = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Could not parse {path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigurationError(f"{path} must contain a mapping")

    # Environment variable overrides (SUBSWEEP__SECTION__KEY=value)
    _apply_env_overrides(raw)

    return _build(raw)


def _build(raw: Dict[str, Any]) -> Config:
    try:
        return Config(**raw)
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc


def _apply_env_overrides(raw: Dict[str, Any]) -> None:
    """Mutate *raw* in-place with values from environment variables.

    Environment variables follow the pattern ``SUBSWEEP__<SECTION>__<KEY>``.
    For example ``SUBSWEEP__GENERAL__THREADS=100``.
    """
    for env_key, env_val in os.environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue
        parts = env_key[len(ENV_PREFIX):].lower().split("__")
        if len(parts) == 2:
            section, key = parts
            raw.setdefault(section, {})[key] = env_val
