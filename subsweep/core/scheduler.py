"""Recursive resolution scheduler for SUBSWEEP.

:class:`ResolutionScheduler` brute-forces an apex with every word of the
word list, filters wildcard false positives, emits survivors and recurses
into them as new apexes. A single semaphore bounds in-flight lookups across
the whole recursion tree. Each subtree is a coroutine that gathers its
candidates, and each candidate awaits the subtree it opens, so a subtree
finishes only after all of its descendants have.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Optional, Set

from subsweep.core.config import ConfigurationError, DepthMode
from subsweep.core.records import (
    DiscoveredRecord,
    RecordKind,
    ResolutionOutcome,
    ResolutionStatus,
    ScanTask,
)
from subsweep.modules.dns.zone_transfer import ZoneTransferProbe
from subsweep.modules.subdomains.candidates import CandidateGenerator
from subsweep.modules.subdomains.wildcard import WildcardDetector
from subsweep.reporting.sink import ResultSink
from subsweep.utils.dns_resolver import AsyncDNSResolver
from subsweep.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class DepthPolicy:
    """Decides whether a candidate name is opened as a new apex.

    Depths are apex depths: the target is ``0`` and a name found while
    brute-forcing an apex at depth ``d`` is opened at ``d + 1``.

    Attributes:
        mode: ``max`` stops opening apexes once the current apex reaches
              *limit*; ``min`` forces unresolved names open while the current
              apex is shallower than *limit*, then prunes normally.
        limit: Depth bound; ``0`` means unlimited in ``max`` mode and no
               forcing in ``min`` mode.
    """

    mode: DepthMode = DepthMode.MAX
    limit: int = 0

    def __post_init__(self) -> None:
        if self.limit < 0:
            raise ConfigurationError(f"Depth must be >= 0, got {self.limit}")

    @property
    def ceiling(self) -> Optional[int]:
        """Deepest apex depth that gets brute-forced, if bounded."""
        if self.mode is DepthMode.MAX and self.limit > 0:
            return self.limit
        return None

    def should_expand(
        self,
        depth: int,
        status: ResolutionStatus,
        wildcard: bool = False,
    ) -> bool:
        """Return ``True`` if a candidate gets its own subtree.

        Args:
            depth: Depth of the apex the candidate was generated under.
            status: How the candidate's lookup ended.
            wildcard: Whether the answer matched the apex's wildcard.
        """
        survived = status is ResolutionStatus.RESOLVED and not wildcard
        if self.mode is DepthMode.MIN:
            if survived:
                return True
            # wildcard matches resolved, so they are never forced
            return status is not ResolutionStatus.RESOLVED and depth < self.limit
        return survived and (self.limit == 0 or depth < self.limit)


@dataclass
class ScanStats:
    """Counters for one scheduler run."""

    apexes: int = 0
    candidates: int = 0
    resolved: int = 0
    wildcard_filtered: int = 0
    errors: int = 0
    zone_transfers: int = 0
    records: int = 0
    started_at: float = 0.0
    finished_at: Optional[float] = None

    @property
    def duration(self) -> float:
        """Elapsed run time in seconds."""
        if self.finished_at is None:
            return time.time() - self.started_at
        return self.finished_at - self.started_at


class ResolutionScheduler:
    """Bounded-concurrency recursive brute-forcer.

    Example::

        scheduler = ResolutionScheduler(resolver, detector, generator, sink)
        stats = await scheduler.run("example.com")
    """

    def __init__(
        self,
        resolver: AsyncDNSResolver,
        detector: WildcardDetector,
        generator: CandidateGenerator,
        sink: ResultSink,
        policy: Optional[DepthPolicy] = None,
        zone_probe: Optional[ZoneTransferProbe] = None,
        concurrency: int = 20,
        slots: Optional[asyncio.Semaphore] = None,
    ) -> None:
        """Initialise the scheduler.

        Args:
            resolver: Resolver for candidate lookups.
            detector: Wildcard detector consulted once per apex.
            generator: Candidate source, reused at every level.
            sink: Destination for discovered records.
            policy: Depth policy (defaults to unlimited ``max``).
            zone_probe: Zone-transfer probe; ``None`` disables transfers.
            concurrency: Bound on in-flight lookups when *slots* is not given.
            slots: Pre-built semaphore to share with other components.
        """
        if slots is None and concurrency < 1:
            raise ConfigurationError(f"Concurrency must be >= 1, got {concurrency}")
        self._resolver = resolver
        self._detector = detector
        self._generator = generator
        self._sink = sink
        self._policy = policy or DepthPolicy()
        self._zone_probe = zone_probe
        self._slots = slots or asyncio.Semaphore(concurrency)
        self.stats = ScanStats()

    async def run(self, target: str) -> ScanStats:
        """Scan *target* and every subtree it opens.

        Returns once the whole recursion tree has completed.

        Args:
            target: Apex to start from (depth ``0``).

        Returns:
            Run counters.
        """
        self.stats = ScanStats(started_at=time.time())
        await self._scan_apex(target, 0)
        self.stats.finished_at = time.time()
        return self.stats

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _scan_apex(self, apex: str, depth: int) -> None:
        """Enter *apex*: zone transfer, then wildcard probe, then brute force."""
        self.stats.apexes += 1

        if self._zone_probe is not None:
            records = await self._zone_probe.attempt(apex, depth)
            if records is not None:
                self.stats.zone_transfers += 1
                for record in records:
                    self._emit(record)
                return

        signature = await self._detector.check(apex)
        task = ScanTask(apex=apex, depth=depth, signature=signature)
        logger.debug("Scanning %s at depth %d", apex, depth)

        # A slot is taken before each candidate task exists, so tasks waiting
        # on a lookup never outnumber the slots.
        pending: Set[asyncio.Future] = set()

        def _reap(done: asyncio.Future) -> None:
            # failed tasks stay pending so the join below re-raises them
            if not done.cancelled() and done.exception() is None:
                pending.discard(done)

        for name in self._generator.generate(apex):
            await self._slots.acquire()
            child = asyncio.ensure_future(self._probe_candidate(task, name))
            pending.add(child)
            child.add_done_callback(_reap)

        if pending:
            await asyncio.gather(*pending)

    async def _probe_candidate(self, task: ScanTask, name: str) -> None:
        """Resolve *name* under a slot held by the caller, then classify it."""
        self.stats.candidates += 1
        try:
            outcome = await self._resolve(name)
        finally:
            self._slots.release()

        wildcard = False
        if outcome.status is ResolutionStatus.UNEXPECTED:
            self.stats.errors += 1
            logger.warning("Unexpected error resolving %s: %s", name, outcome.detail)
        elif outcome.ok:
            self.stats.resolved += 1
            wildcard = task.is_wildcard_match(outcome.addresses)
            if wildcard:
                self.stats.wildcard_filtered += 1
                logger.debug("Dropping %s: matches wildcard of %s", name, task.apex)
            else:
                for address in sorted(outcome.addresses):
                    self._emit(DiscoveredRecord(name, RecordKind.A, address, task.depth))

        if self._policy.should_expand(task.depth, outcome.status, wildcard):
            await self._scan_apex(name, task.depth + 1)

    async def _resolve(self, name: str) -> ResolutionOutcome:
        try:
            return await self._resolver.lookup_host(name)
        except Exception as exc:  # noqa: BLE001
            return ResolutionOutcome.unexpected(str(exc) or type(exc).__name__)

    def _emit(self, record: DiscoveredRecord) -> None:
        self._sink.emit(record)
        self.stats.records += 1
