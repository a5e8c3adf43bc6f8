"""Zone transfer probe for SUBSWEEP.

Attempts an AXFR against each authoritative nameserver of an apex in turn.
The first nameserver that hands over a non-empty zone supplies every record
for that apex, and brute force is skipped there.
"""

from __future__ import annotations

import asyncio
import ipaddress
from typing import Callable, Dict, List, Optional

import dns.exception
import dns.message
import dns.query
import dns.rdatatype

from subsweep.core.records import DiscoveredRecord, RecordKind
from subsweep.utils.dns_resolver import AsyncDNSResolver
from subsweep.utils.logger import get_logger

logger = get_logger(__name__)

AXFR_PORT = 53


class NameserverError(Exception):
    """A nameserver could not be reached or refused the transfer."""


class ZoneEmptyAnswer(Exception):
    """A nameserver answered the transfer with no records."""


def _address(rdata: object) -> List[str]:
    return [rdata.address]  # type: ignore[attr-defined]


def _alias(rdata: object) -> List[str]:
    return [rdata.target.to_text().rstrip(".")]  # type: ignore[attr-defined]


def _texts(rdata: object) -> List[str]:
    return [
        part.decode("utf-8", errors="replace")
        for part in rdata.strings  # type: ignore[attr-defined]
    ]


_KINDS: Dict[int, RecordKind] = {
    dns.rdatatype.A: RecordKind.A,
    dns.rdatatype.CNAME: RecordKind.CNAME,
    dns.rdatatype.TXT: RecordKind.TXT,
}

_VALUES: Dict[RecordKind, Callable[[object], List[str]]] = {
    RecordKind.A: _address,
    RecordKind.CNAME: _alias,
    RecordKind.TXT: _texts,
}


def parse_answers(
    messages: List[dns.message.Message],
    depth: int = 0,
) -> List[DiscoveredRecord]:
    """Convert transferred answer RRsets into discovered records.

    Each TXT character-string becomes its own record. Kinds without a parser
    are logged and skipped.

    Args:
        messages: Messages received during the transfer.
        depth: Depth attached to every produced record.

    Returns:
        Records in transfer order.
    """
    records: List[DiscoveredRecord] = []
    for message in messages:
        for rrset in message.answer:
            owner = rrset.name.to_text().rstrip(".")
            kind = _KINDS.get(rrset.rdtype)
            if kind is None:
                logger.debug(
                    "Skipping unsupported %s record for %s in zone transfer",
                    dns.rdatatype.to_text(rrset.rdtype),
                    owner,
                )
                continue
            for rdata in rrset:
                for value in _VALUES[kind](rdata):
                    records.append(DiscoveredRecord(owner, kind, value, depth))
    return records


class ZoneTransferProbe:
    """Harvest an apex's records through AXFR.

    Example::

        async with AsyncDNSResolver() as resolver:
            probe = ZoneTransferProbe(resolver)
            records = await probe.attempt("example.com")
    """

    def __init__(self, resolver: AsyncDNSResolver, timeout: float = 5.0) -> None:
        """Initialise the probe.

        Args:
            resolver: Resolver used for NS and nameserver address lookups.
            timeout: TCP transfer timeout in seconds.
        """
        self._resolver = resolver
        self._timeout = timeout

    async def attempt(self, apex: str, depth: int = 0) -> Optional[List[DiscoveredRecord]]:
        """Try a zone transfer for *apex* against each of its nameservers.

        Args:
            apex: Zone to transfer.
            depth: Recursion depth of *apex*, attached to the records.

        Returns:
            The transferred records from the first nameserver that answered,
            or ``None`` when no nameserver allowed the transfer.
        """
        nameservers = await self._resolver.nameservers(apex)
        if not nameservers:
            logger.info("No nameservers found for %s", apex)
            return None

        for nameserver in nameservers:
            try:
                messages = await self._transfer_from(apex, nameserver)
            except (NameserverError, ZoneEmptyAnswer) as exc:
                logger.warning(
                    "Zone transfer failed for %s using nameserver %s: %s",
                    apex,
                    nameserver,
                    exc,
                )
                continue

            records = parse_answers(messages, depth)
            logger.warning(
                "Zone transfer successful for %s using nameserver %s (%d records)",
                apex,
                nameserver,
                len(records),
            )
            return records

        return None

    async def _transfer_from(self, apex: str, nameserver: str) -> List[dns.message.Message]:
        """Run one AXFR against *nameserver*.

        Raises:
            NameserverError: On address lookup, transport or protocol failure.
            ZoneEmptyAnswer: When the transfer carried no answer RRsets.
        """
        address = await self._nameserver_address(nameserver)
        loop = asyncio.get_running_loop()
        try:
            messages = await asyncio.wait_for(
                loop.run_in_executor(None, self._axfr_sync, address, apex),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            raise NameserverError("timed out") from exc
        except (dns.exception.DNSException, OSError, EOFError) as exc:
            raise NameserverError(str(exc) or type(exc).__name__) from exc

        if not any(message.answer for message in messages):
            raise ZoneEmptyAnswer("empty answer")
        return messages

    async def _nameserver_address(self, nameserver: str) -> str:
        try:
            return str(ipaddress.ip_address(nameserver))
        except ValueError:
            pass
        outcome = await self._resolver.lookup_host(nameserver)
        if not outcome.ok:
            raise NameserverError(outcome.detail or "nameserver address not found")
        return sorted(outcome.addresses)[0]

    def _axfr_sync(self, address: str, apex: str) -> List[dns.message.Message]:
        """Synchronous AXFR over TCP (runs in a thread-pool executor)."""
        return list(
            dns.query.xfr(
                address,
                apex,
                port=AXFR_PORT,
                timeout=self._timeout,
                lifetime=self._timeout,
                relativize=False,
            )
        )
