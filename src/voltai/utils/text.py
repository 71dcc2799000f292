"""Text helpers shared by indexing, querying and analytics."""

from __future__ import annotations

import re
from typing import Iterable, List

# Runs of Unicode letters and digits; underscores count as separators.
TOKEN_RE = re.compile(r"[^\W_]+")
SENTENCE_RE = re.compile(r"[^.!?]+[.!?]+|[^.!?]+$")
_WHITESPACE_RE = re.compile(r"\s+")


def tokenize(text: str) -> List[str]:
    """Lowercase alphanumeric terms split on non-alphanumeric boundaries."""
    return TOKEN_RE.findall(text.lower())


def normalize_whitespace(lines: Iterable[str]) -> str:
    """Collapse whitespace and join lines."""
    return "\n".join(line.strip() for line in lines if line.strip())


def split_sentences(text: str) -> List[str]:
    """Split text into sentences on terminal punctuation.

    A trailing fragment without punctuation counts as a sentence.
    """
    sentences = (match.group(0).strip() for match in SENTENCE_RE.finditer(text))
    return [sentence for sentence in sentences if sentence]


def make_excerpt(text: str, max_chars: int = 300) -> str:
    """Single-line prefix of ``text`` bounded to ``max_chars`` characters."""
    flat = _WHITESPACE_RE.sub(" ", text).strip()
    if len(flat) <= max_chars:
        return flat
    cut = flat[: max(max_chars - 1, 0)].rstrip()
    return cut + "…"
