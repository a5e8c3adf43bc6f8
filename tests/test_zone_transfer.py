"""Tests for subsweep.modules.dns.zone_transfer."""

from __future__ import annotations

import logging
from unittest.mock import patch

import dns.message
import dns.query
import dns.rrset
import pytest

from subsweep.core.records import DiscoveredRecord, RecordKind
from subsweep.modules.dns.zone_transfer import ZoneTransferProbe, parse_answers

APEX = "example.test"
SOA = "ns1.example.test. admin.example.test. 1 7200 3600 1209600 300"


def _message(*rrsets):
    message = dns.message.Message()
    for rrset in rrsets:
        message.answer.append(rrset)
    return message


def _zone():
    return [
        _message(
            dns.rrset.from_text("example.test.", 300, "IN", "SOA", SOA),
            dns.rrset.from_text("www.example.test.", 300, "IN", "A", "10.0.0.1"),
            dns.rrset.from_text("alias.example.test.", 300, "IN", "CNAME", "www.example.test."),
            dns.rrset.from_text("example.test.", 300, "IN", "TXT", '"v=spf1 -all"', '"hello world"'),
            dns.rrset.from_text("example.test.", 300, "IN", "SOA", SOA),
        )
    ]


def _resolver(make_resolver, nameservers=("ns1.example.test",)):
    return make_resolver(
        hosts={
            "ns1.example.test": ["192.0.2.53"],
            "ns2.example.test": ["192.0.2.54"],
        },
        nameservers={APEX: list(nameservers)},
    )


# ---------------------------------------------------------------------------
# parse_answers
# ---------------------------------------------------------------------------


def test_parse_answers_by_kind():
    records = parse_answers(_zone(), depth=1)

    assert records == [
        DiscoveredRecord("www.example.test", RecordKind.A, "10.0.0.1", 1),
        DiscoveredRecord("alias.example.test", RecordKind.CNAME, "www.example.test", 1),
        DiscoveredRecord("example.test", RecordKind.TXT, "v=spf1 -all", 1),
        DiscoveredRecord("example.test", RecordKind.TXT, "hello world", 1),
    ]


def test_multi_string_txt_splits_into_records():
    message = _message(
        dns.rrset.from_text("example.test.", 300, "IN", "TXT", '"part one" "part two"'),
    )

    values = [r.value for r in parse_answers([message])]

    assert values == ["part one", "part two"]


def test_unsupported_kinds_are_skipped(caplog):
    message = _message(
        dns.rrset.from_text("example.test.", 300, "IN", "MX", "10 mail.example.test."),
        dns.rrset.from_text("mail.example.test.", 300, "IN", "A", "10.0.0.25"),
    )

    with caplog.at_level(logging.DEBUG, logger="subsweep"):
        records = parse_answers([message])

    assert [r.kind for r in records] == [RecordKind.A]
    assert any("MX" in r.getMessage() for r in caplog.records)


# ---------------------------------------------------------------------------
# ZoneTransferProbe.attempt
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_transfer_yields_every_record(make_resolver):
    probe = ZoneTransferProbe(_resolver(make_resolver))

    with patch.object(dns.query, "xfr", side_effect=lambda *a, **k: iter(_zone())) as xfr:
        records = await probe.attempt(APEX)

    assert records is not None
    assert sorted(r.kind.value for r in records) == ["A", "CNAME", "TXT", "TXT"]
    assert xfr.call_args.args[:2] == ("192.0.2.53", APEX)
    assert xfr.call_args.kwargs["relativize"] is False


@pytest.mark.asyncio
async def test_no_nameservers(make_resolver, caplog):
    probe = ZoneTransferProbe(_resolver(make_resolver, nameservers=()))

    with caplog.at_level(logging.INFO, logger="subsweep"):
        with patch.object(dns.query, "xfr") as xfr:
            assert await probe.attempt(APEX) is None

    xfr.assert_not_called()
    assert any("No nameservers found" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_refusing_nameserver_moves_to_the_next(make_resolver, caplog):
    probe = ZoneTransferProbe(
        _resolver(make_resolver, nameservers=("ns1.example.test", "ns2.example.test"))
    )

    def xfr(address, zone, **kwargs):
        if address == "192.0.2.53":
            raise ConnectionRefusedError("connection refused")
        return iter(_zone())

    with caplog.at_level(logging.WARNING, logger="subsweep"):
        with patch.object(dns.query, "xfr", side_effect=xfr) as mocked:
            records = await probe.attempt(APEX)

    assert records is not None and len(records) == 4
    assert mocked.call_count == 2
    messages = [r.getMessage() for r in caplog.records]
    assert any("failed for example.test using nameserver ns1.example.test" in m for m in messages)
    assert any("successful for example.test using nameserver ns2.example.test" in m for m in messages)


@pytest.mark.asyncio
async def test_stops_at_first_successful_nameserver(make_resolver):
    probe = ZoneTransferProbe(
        _resolver(make_resolver, nameservers=("ns1.example.test", "ns2.example.test"))
    )

    with patch.object(dns.query, "xfr", side_effect=lambda *a, **k: iter(_zone())) as xfr:
        await probe.attempt(APEX)

    assert xfr.call_count == 1


@pytest.mark.asyncio
async def test_empty_answers_everywhere_is_no_transfer(make_resolver):
    probe = ZoneTransferProbe(
        _resolver(make_resolver, nameservers=("ns1.example.test", "ns2.example.test"))
    )

    with patch.object(dns.query, "xfr", side_effect=lambda *a, **k: iter([_message()])) as xfr:
        assert await probe.attempt(APEX) is None

    assert xfr.call_count == 2


@pytest.mark.asyncio
async def test_unresolvable_nameserver_is_skipped(make_resolver):
    probe = ZoneTransferProbe(
        _resolver(make_resolver, nameservers=("ghost.example.test", "ns2.example.test"))
    )

    with patch.object(dns.query, "xfr", side_effect=lambda *a, **k: iter(_zone())) as xfr:
        records = await probe.attempt(APEX)

    assert records is not None
    assert xfr.call_args.args[0] == "192.0.2.54"


@pytest.mark.asyncio
async def test_nameserver_given_as_address(make_resolver):
    probe = ZoneTransferProbe(_resolver(make_resolver, nameservers=("192.0.2.99",)))

    with patch.object(dns.query, "xfr", side_effect=lambda *a, **k: iter(_zone())) as xfr:
        await probe.attempt(APEX)

    assert xfr.call_args.args[0] == "192.0.2.99"
