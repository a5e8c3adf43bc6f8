"""Tests for subsweep.modules.subdomains.candidates."""

from __future__ import annotations

import pytest

from subsweep.core.config import ConfigurationError
from subsweep.modules.subdomains.candidates import (
    CandidateGenerator,
    estimate_lookups,
    load_wordlist,
)


def test_load_wordlist_cleans_entries(tmp_path):
    wordlist = tmp_path / "words.txt"
    wordlist.write_text("www\n\n# comment\n  MAIL  \nbad word\n-dash\nwww\nr1.sn-abc\n")

    assert load_wordlist(str(wordlist)) == ["www", "mail", "r1.sn-abc"]


def test_load_wordlist_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_wordlist(str(tmp_path / "nope.txt"))


def test_generate_builds_names():
    generator = CandidateGenerator(["www", "mail"])

    assert list(generator.generate("example.test")) == ["www.example.test", "mail.example.test"]
    assert len(generator) == 2


def test_generate_is_restartable():
    generator = CandidateGenerator(["www", "mail"])
    first = generator.generate("example.test")
    next(first)

    assert list(generator.generate("example.test")) == ["www.example.test", "mail.example.test"]
    assert list(first) == ["mail.example.test"]


def test_generator_is_not_affected_by_source_list():
    words = ["www"]
    generator = CandidateGenerator(words)
    words.append("mail")

    assert list(generator.generate("a.test")) == ["www.a.test"]


@pytest.mark.parametrize(
    "words, depth, expected",
    [(10, 1, 10), (10, 2, 110), (3, 3, 39), (5, 0, 0)],
)
def test_estimate_lookups(words, depth, expected):
    assert estimate_lookups(words, depth) == expected
