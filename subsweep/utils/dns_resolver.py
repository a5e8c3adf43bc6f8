"""Async DNS resolver for SUBSWEEP.

Provides :class:`AsyncDNSResolver`, a thin aiodns wrapper that classifies
every lookup into a :class:`~subsweep.core.records.ResolutionOutcome`.
Queries are issued exactly once: no caching and no retries.
"""

from __future__ import annotations

from typing import Any, List, Optional

import aiodns
from aiodns.error import DNSError

from subsweep.core.records import ResolutionOutcome
from subsweep.utils.logger import get_logger

logger = get_logger(__name__)

# Authoritative negative answers: the name (or the requested type) does not exist
_NEGATIVE_CODES = frozenset({
    aiodns.error.ARES_ENOTFOUND,
    aiodns.error.ARES_ENODATA,
})


def _error_code(exc: DNSError) -> Optional[int]:
    if exc.args and isinstance(exc.args[0], int):
        return exc.args[0]
    return None


def _error_text(exc: DNSError) -> str:
    if len(exc.args) > 1:
        return str(exc.args[1])
    return str(exc)


class AsyncDNSResolver:
    """Single-shot async resolver.

    Example::

        async with AsyncDNSResolver(timeout=5) as dns:
            outcome = await dns.lookup_host("www.example.com")
    """

    def __init__(
        self,
        nameservers: Optional[List[str]] = None,
        timeout: float = 5.0,
    ) -> None:
        """Initialise the resolver.

        Args:
            nameservers: Custom DNS server IPs (defaults to system resolvers).
            timeout: Query timeout in seconds.
        """
        self._nameservers = nameservers or None
        self._timeout = timeout
        self._resolver: Optional[Any] = None

    async def __aenter__(self) -> "AsyncDNSResolver":
        self._init()
        return self

    async def __aexit__(self, *_: Any) -> None:
        if self._resolver is not None:
            self._resolver.cancel()
            self._resolver = None

    def _init(self) -> None:
        """Create the underlying aiodns resolver on the running loop."""
        # tries=1: c-ares would otherwise resend timed-out queries
        self._resolver = aiodns.DNSResolver(
            nameservers=self._nameservers,
            timeout=self._timeout,
            tries=1,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def lookup_host(self, name: str) -> ResolutionOutcome:
        """Resolve the A records of *name*.

        Args:
            name: Fully-qualified name to query.

        Returns:
            ``RESOLVED`` with the address set, ``NOT_FOUND`` for NXDOMAIN or
            NODATA, ``UNEXPECTED`` for anything else (timeouts, SERVFAIL,
            refused, ...).
        """
        if self._resolver is None:
            self._init()
        assert self._resolver is not None

        try:
            result = await self._resolver.query(name, "A")
        except DNSError as exc:
            if _error_code(exc) in _NEGATIVE_CODES:
                return ResolutionOutcome.not_found()
            return ResolutionOutcome.unexpected(_error_text(exc))
        return ResolutionOutcome.resolved(item.host for item in result)

    async def nameservers(self, domain: str) -> List[str]:
        """Return the NS hostnames for *domain*, or ``[]`` on any failure.

        Args:
            domain: Zone apex.

        Returns:
            Nameserver hostnames without trailing dots, in answer order.
        """
        if self._resolver is None:
            self._init()
        assert self._resolver is not None

        try:
            result = await self._resolver.query(domain, "NS")
        except DNSError as exc:
            logger.debug("NS lookup for %s failed: %s", domain, _error_text(exc))
            return []
        return [item.host.rstrip(".") for item in result]
