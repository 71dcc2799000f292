"""Pattern-based named entity recognition.

Each category is a regular expression with a fixed confidence. When matches
overlap, the earliest start wins, then the longer span, then the category
listed first in ``PATTERNS``.
"""

from __future__ import annotations

import re
from typing import List, NamedTuple, Pattern, Tuple

from voltai.models import Entity, EntityKind

_ORG_SUFFIXES = (
    "Inc", "LLC", "Corp", "Corporation", "Ltd", "Limited", "Company", "Co",
    "Group", "Institute", "University", "College", "Foundation", "Bank",
)

_LOCATIONS = (
    "United States", "United Kingdom", "USA", "UK", "New York", "California",
    "Texas", "Florida", "Washington", "London", "Paris", "Berlin", "Rome",
    "Madrid", "Tokyo", "Beijing", "Shanghai", "Moscow", "Sydney", "Toronto",
    "Chicago", "Los Angeles", "San Francisco", "Boston", "Seattle", "Miami",
    "Austin", "Denver", "Portland", "Atlanta", "Hawaii", "Europe", "Asia",
    "Africa", "Canada", "Germany", "France", "Italy", "Spain", "China",
    "Japan", "India", "Brazil", "Mexico", "Australia",
)

_MONTHS = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec)[a-z]*\.?"

# Capitalised words that start sentences far more often than names.
_NOT_NAMES = frozenset({
    "The", "This", "That", "These", "Those", "A", "An", "In", "On", "At",
    "He", "She", "It", "We", "They", "I", "Our", "My", "His", "Her", "Their",
    "If", "When", "While", "After", "Before", "For", "From", "With", "And",
    "But", "Or", "So", "Contact", "Dear", "Yesterday", "Today", "Tomorrow",
})

_WORD_RE = re.compile(r"\S+")


class _Matcher(NamedTuple):
    kind: EntityKind
    pattern: Pattern[str]
    confidence: float


PATTERNS: List[_Matcher] = [
    _Matcher(
        EntityKind.EMAIL,
        re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
        0.95,
    ),
    _Matcher(
        EntityKind.DATE,
        re.compile(
            r"\b(?:\d{1,2}[/-]\d{1,2}[/-]\d{2,4}"
            r"|\d{4}[/-]\d{1,2}[/-]\d{1,2}"
            rf"|{_MONTHS}\s+\d{{1,2}}(?:st|nd|rd|th)?,?\s+\d{{4}}"
            rf"|\d{{1,2}}\s+{_MONTHS}\s+\d{{4}})"
        ),
        0.90,
    ),
    _Matcher(
        EntityKind.MONEY,
        re.compile(
            r"[$€£]\s*\d+(?:,\d{3})*(?:\.\d+)?(?:\s*(?:million|billion|thousand|[MBK]))?\b"
            r"|\b\d+(?:,\d{3})*(?:\.\d+)?\s*(?:USD|EUR|GBP|dollars?|euros?|pounds?)\b"
        ),
        0.90,
    ),
    _Matcher(
        EntityKind.LOCATION,
        re.compile(r"\b(?:" + "|".join(re.escape(name) for name in _LOCATIONS) + r")\b"),
        0.85,
    ),
    _Matcher(
        EntityKind.ORGANIZATION,
        re.compile(
            r"\b(?:[A-Z][A-Za-z&]+\s+)+(?:" + "|".join(_ORG_SUFFIXES) + r")\b\.?"
        ),
        0.80,
    ),
    _Matcher(
        EntityKind.PERSON,
        re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z]\.)?(?:\s+[A-Z][a-z]+)+\b"),
        0.75,
    ),
]


def _person_span(match: re.Match[str]) -> Tuple[int, int] | None:
    """Span of a PERSON match with leading sentence words dropped.

    ``None`` unless two capitalised words remain and none of them is an
    organisation suffix.
    """
    words = list(_WORD_RE.finditer(match.group(0)))
    while words and words[0].group(0) in _NOT_NAMES:
        words.pop(0)
    names = [word for word in words if not word.group(0).endswith(".")]
    if len(names) < 2:
        return None
    if any(word.group(0).rstrip(".") in _ORG_SUFFIXES for word in words):
        return None
    return match.start() + words[0].start(), match.start() + words[-1].end()


def extract_entities(text: str) -> List[Entity]:
    """Return entities ordered by start offset, one per accepted span."""
    candidates = []
    for priority, matcher in enumerate(PATTERNS):
        for match in matcher.pattern.finditer(text):
            if matcher.kind is EntityKind.PERSON:
                span = _person_span(match)
                if span is None:
                    continue
                start, end = span
            else:
                start, end = match.span()
            candidates.append((start, -(end - start), priority, end, matcher))

    candidates.sort(key=lambda item: item[:3])
    entities: List[Entity] = []
    covered_until = -1
    for start, _, _, end, matcher in candidates:
        if start < covered_until:
            continue
        entities.append(
            Entity(
                text=text[start:end],
                kind=matcher.kind,
                confidence=matcher.confidence,
                start=start,
                end=end,
            )
        )
        covered_until = end
    return entities
