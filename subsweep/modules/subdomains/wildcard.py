"""Wildcard DNS detection.

An apex is wildcarded when an arbitrary label beneath it resolves. The
addresses returned for such a label form the apex's signature; brute-force
hits whose address set equals it are false positives.
"""

from __future__ import annotations

import asyncio
import random
import string
from contextlib import AsyncExitStack
from typing import Dict, Optional

from subsweep.core.records import NO_WILDCARD, WildcardSignature
from subsweep.utils.dns_resolver import AsyncDNSResolver
from subsweep.utils.logger import get_logger

logger = get_logger(__name__)

_LABEL_ALPHABET = string.ascii_lowercase + string.digits


def random_label(length: int = 12) -> str:
    """Return a random DNS label that is very unlikely to exist."""
    return "".join(random.choices(_LABEL_ALPHABET, k=length))


class WildcardDetector:
    """Per-apex wildcard probe with single-flight memoisation.

    The first :meth:`check` for an apex starts one probe task; every other
    caller for that apex, concurrent or later, awaits the same task and gets
    the same signature.

    Example::

        detector = WildcardDetector(resolver)
        signature = await detector.check("example.com")
    """

    def __init__(
        self,
        resolver: AsyncDNSResolver,
        label_length: int = 12,
        slots: Optional[asyncio.Semaphore] = None,
    ) -> None:
        """Initialise the detector.

        Args:
            resolver: Resolver used for the probe lookups.
            label_length: Length of the random probe label.
            slots: Optional concurrency bound shared with the scheduler.
        """
        self._resolver = resolver
        self._label_length = label_length
        self._slots = slots
        self._probes: Dict[str, "asyncio.Future[WildcardSignature]"] = {}
        self.probes_issued = 0

    async def check(self, apex: str) -> WildcardSignature:
        """Return the wildcard signature of *apex* (empty if none).

        Args:
            apex: Domain to probe.

        Returns:
            Frozen set of wildcard addresses.
        """
        # No await between lookup and insert: the event loop cannot interleave
        # a second caller here, so at most one probe task exists per apex.
        probe = self._probes.get(apex)
        if probe is None:
            probe = asyncio.ensure_future(self._probe(apex))
            self._probes[apex] = probe
        return await asyncio.shield(probe)

    async def _probe(self, apex: str) -> WildcardSignature:
        self.probes_issued += 1
        name = f"{random_label(self._label_length)}.{apex}"
        try:
            async with AsyncExitStack() as stack:
                if self._slots is not None:
                    await stack.enter_async_context(self._slots)
                outcome = await self._resolver.lookup_host(name)
        except Exception as exc:  # noqa: BLE001
            logger.debug("Wildcard probe %s failed: %s", name, exc)
            return NO_WILDCARD

        if not outcome.ok:
            if outcome.detail:
                logger.debug("Wildcard probe %s: %s", name, outcome.detail)
            return NO_WILDCARD

        logger.warning(
            "Detected wildcard record: %s -> %s",
            apex,
            ", ".join(sorted(outcome.addresses)),
        )
        return outcome.addresses
