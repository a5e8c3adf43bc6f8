"""Data model shared by the resolution engine, zone-transfer probe and sink."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterable

#: Addresses a random label under an apex resolves to; empty means no wildcard.
WildcardSignature = FrozenSet[str]

NO_WILDCARD: WildcardSignature = frozenset()


class RecordKind(str, Enum):
    """Record kinds SUBSWEEP can report."""

    A = "A"
    CNAME = "CNAME"
    TXT = "TXT"


class ResolutionStatus(str, Enum):
    """Classification of a single resolution attempt."""

    RESOLVED = "resolved"
    NOT_FOUND = "not_found"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class ResolutionOutcome:
    """Result of resolving one candidate name.

    Attributes:
        status: How the lookup ended.
        addresses: Resolved addresses (only populated for ``RESOLVED``).
        detail: Error text for ``UNEXPECTED`` outcomes.
    """

    status: ResolutionStatus
    addresses: FrozenSet[str] = frozenset()
    detail: str = ""

    @classmethod
    def resolved(cls, addresses: Iterable[str]) -> "ResolutionOutcome":
        addrs = frozenset(addresses)
        if not addrs:
            return cls.not_found()
        return cls(ResolutionStatus.RESOLVED, addrs)

    @classmethod
    def not_found(cls) -> "ResolutionOutcome":
        return cls(ResolutionStatus.NOT_FOUND)

    @classmethod
    def unexpected(cls, detail: str) -> "ResolutionOutcome":
        return cls(ResolutionStatus.UNEXPECTED, detail=detail)

    @property
    def ok(self) -> bool:
        return self.status is ResolutionStatus.RESOLVED


@dataclass(frozen=True)
class ScanTask:
    """One apex being brute-forced.

    Attributes:
        apex: Domain under which candidates are generated.
        depth: Labels between *apex* and the scan target (target is ``0``).
        signature: Wildcard signature computed for *apex*.
    """

    apex: str
    depth: int = 0
    signature: WildcardSignature = field(default=NO_WILDCARD)

    @property
    def wildcard(self) -> bool:
        return bool(self.signature)

    def is_wildcard_match(self, addresses: FrozenSet[str]) -> bool:
        """Return ``True`` when *addresses* equals this apex's wildcard set."""
        return self.wildcard and addresses == self.signature


@dataclass(frozen=True)
class DiscoveredRecord:
    """A single discovery, rendered by :class:`~subsweep.reporting.sink.ResultSink`.

    Attributes:
        domain: Fully-qualified name (no trailing dot).
        kind: Record kind.
        value: Address, alias target or text value.
        depth: Depth of the apex the name was found under (not rendered).
    """

    domain: str
    kind: RecordKind
    value: str
    depth: int = 0

    def as_row(self) -> list:
        return [self.domain, self.kind.value, self.value]

    def as_dict(self) -> dict:
        return {"domain": self.domain, "kind": self.kind.value, "value": self.value}
