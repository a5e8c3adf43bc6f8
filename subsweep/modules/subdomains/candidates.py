"""Word-list loading and candidate name generation."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, List, Sequence, Tuple

from subsweep.core.config import ConfigurationError
from subsweep.utils.logger import get_logger
from subsweep.utils.validators import is_valid_label

logger = get_logger(__name__)


def load_wordlist(wordlist_path: str) -> List[str]:
    """Load a subdomain word list from *wordlist_path*.

    Blank lines and ``#`` comments are skipped, entries are lower-cased,
    invalid labels are dropped and duplicates removed (first one wins).

    Args:
        wordlist_path: Path to a newline-delimited word list.

    Returns:
        List of subdomain prefix strings.

    Raises:
        ConfigurationError: When the file does not exist.
    """
    path = Path(wordlist_path)
    if not path.is_file():
        raise ConfigurationError(f"Wordlist not found: {wordlist_path}")

    words: List[str] = []
    skipped = 0
    for line in path.read_text(encoding="utf-8", errors="replace").splitlines():
        word = line.strip().lower()
        if not word or word.startswith("#"):
            continue
        if not is_valid_label(word):
            skipped += 1
            continue
        words.append(word)

    if skipped:
        logger.warning("Skipped %d invalid wordlist entries in %s", skipped, wordlist_path)

    unique = list(dict.fromkeys(words))
    logger.debug("Loaded %d words from %s", len(unique), wordlist_path)
    return unique


def estimate_lookups(word_count: int, max_depth: int) -> int:
    """Upper bound on candidate lookups for a run capped at *max_depth*.

    Every level multiplies the candidate count by the word count, so the
    total is ``W + W**2 + ... + W**D``.
    """
    return sum(word_count ** level for level in range(1, max_depth + 1))


class CandidateGenerator:
    """Produce ``word.apex`` candidates from a fixed word list.

    The same instance serves every recursion level; :meth:`generate` returns a
    fresh lazy iterator on each call.
    """

    def __init__(self, words: Sequence[str]) -> None:
        self._words: Tuple[str, ...] = tuple(words)

    def __len__(self) -> int:
        return len(self._words)

    def generate(self, apex: str) -> Iterator[str]:
        for word in self._words:
            yield f"{word}.{apex}"
