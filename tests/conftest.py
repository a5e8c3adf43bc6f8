"""Shared pytest fixtures for the SUBSWEEP test suite."""

from __future__ import annotations

import asyncio
import io
from typing import Dict, Iterable, List, Optional

import pytest

from subsweep.core.config import Config
from subsweep.core.records import ResolutionOutcome
from subsweep.reporting.sink import ResultSink


class FakeResolver:
    """In-memory stand-in for :class:`~subsweep.utils.dns_resolver.AsyncDNSResolver`.

    Names in *hosts* resolve to their addresses, names in *errors* fail
    unexpectedly, names under an apex in *wildcards* resolve to the wildcard
    set, everything else is NXDOMAIN.
    """

    def __init__(
        self,
        hosts: Optional[Dict[str, Iterable[str]]] = None,
        wildcards: Optional[Dict[str, Iterable[str]]] = None,
        errors: Optional[Dict[str, str]] = None,
        nameservers: Optional[Dict[str, List[str]]] = None,
        delay: float = 0.0,
    ) -> None:
        self.hosts = {name: frozenset(addrs) for name, addrs in (hosts or {}).items()}
        self.wildcards = {apex: frozenset(addrs) for apex, addrs in (wildcards or {}).items()}
        self.errors = dict(errors or {})
        self.ns = dict(nameservers or {})
        self.delay = delay
        self.queries: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def __aenter__(self) -> "FakeResolver":
        return self

    async def __aexit__(self, *_: object) -> None:
        return None

    async def lookup_host(self, name: str) -> ResolutionOutcome:
        self.queries.append(name)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if name in self.errors:
                return ResolutionOutcome.unexpected(self.errors[name])
            if name in self.hosts:
                return ResolutionOutcome.resolved(self.hosts[name])
            for apex, addrs in self.wildcards.items():
                if name.endswith("." + apex):
                    return ResolutionOutcome.resolved(addrs)
            return ResolutionOutcome.not_found()
        finally:
            self.in_flight -= 1

    async def nameservers(self, domain: str) -> List[str]:
        return list(self.ns.get(domain, []))


@pytest.fixture
def sample_config() -> Config:
    """Return a default Config instance with no external dependencies."""
    return Config()


@pytest.fixture
def make_resolver():
    """Factory for :class:`FakeResolver` instances."""
    return FakeResolver


@pytest.fixture
def csv_sink():
    """A CSV sink writing to an in-memory buffer (``sink.buffer``)."""
    buffer = io.StringIO()
    sink = ResultSink("csv", buffer)
    sink.buffer = buffer  # type: ignore[attr-defined]
    return sink
