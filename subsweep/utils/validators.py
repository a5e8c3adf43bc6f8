"""Input validation utilities for SUBSWEEP.

Normalises the target apex and screens word-list entries before they are
turned into candidate names.
"""

from __future__ import annotations

import re


# ---------------------------------------------------------------------------
# Domain validation
# ---------------------------------------------------------------------------

# RFC-compliant hostname label regex (no leading/trailing hyphens, max 63 chars)
_LABEL_RE = re.compile(r"^(?!-)[A-Za-z0-9_-]{1,63}(?<!-)$")

_MAX_NAME_LENGTH = 253


def is_valid_label(word: str) -> bool:
    """Return ``True`` if *word* can be prefixed onto an apex.

    Dotted entries (``r1.sn-abc``) are accepted when every label is valid.

    Args:
        word: Word-list entry.

    Returns:
        ``True`` when every dot-separated part is a valid DNS label.
    """
    if not word:
        return False
    return all(_LABEL_RE.match(label) for label in word.split("."))


def validate_domain(value: str) -> str:
    """Validate and normalise a target apex.

    Args:
        value: Raw domain supplied by the user.

    Returns:
        Lower-cased domain with surrounding whitespace and any trailing dot
        removed.

    Raises:
        ValueError: When *value* is empty or is not a syntactically valid
            domain name.
    """
    stripped = value.strip().rstrip(".").lower()
    if not stripped:
        raise ValueError("Domain must not be empty.")

    if len(stripped) > _MAX_NAME_LENGTH or not is_valid_label(stripped):
        raise ValueError(f"Invalid domain {value.strip()!r}.")

    return stripped
