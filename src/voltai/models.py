"""Core VoltAI data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List

import numpy as np


class VoltAIError(Exception):
    """Base class for errors surfaced to the command line."""


@dataclass(frozen=True, slots=True)
class Document:
    """Extracted text of a single file, keyed by a path-derived id."""

    id: str
    path: str
    text: str


@dataclass(slots=True)
class Index:
    """Documents with their TF-IDF vectors aligned to the vocabulary.

    ``vectors[i]`` belongs to ``docs[i]`` and column ``j`` to ``terms[j]``.
    """

    docs: List[Document]
    terms: List[str]
    vectors: np.ndarray

    @classmethod
    def empty(cls) -> "Index":
        return cls(docs=[], terms=[], vectors=np.zeros((0, 0), dtype="float64"))

    def validate(self) -> None:
        expected = (len(self.docs), len(self.terms))
        if self.vectors.ndim != 2 or self.vectors.shape != expected:
            raise ValueError(
                f"Vector matrix shape {self.vectors.shape} does not match "
                f"{expected[0]} documents x {expected[1]} terms"
            )


class EntityKind(str, Enum):
    PERSON = "PERSON"
    LOCATION = "LOCATION"
    ORGANIZATION = "ORGANIZATION"
    DATE = "DATE"
    EMAIL = "EMAIL"
    MONEY = "MONEY"


@dataclass(slots=True)
class Entity:
    text: str
    kind: EntityKind
    confidence: float
    start: int
    end: int

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "kind": self.kind.value,
            "confidence": self.confidence,
            "start": self.start,
            "end": self.end,
        }


class SentimentLabel(str, Enum):
    POSITIVE = "Positive"
    NEUTRAL = "Neutral"
    NEGATIVE = "Negative"


@dataclass(slots=True)
class SentimentResult:
    label: SentimentLabel
    score: float
    positive: float = 0.0
    negative: float = 0.0

    def to_dict(self) -> dict:
        return {
            "label": self.label.value,
            "score": round(self.score, 4),
            "positive": self.positive,
            "negative": self.negative,
        }


@dataclass(slots=True)
class SearchResult:
    rank: int
    doc_id: str
    path: str
    score: float
    excerpt: str

    def to_dict(self) -> dict:
        return {
            "rank": self.rank,
            "id": self.doc_id,
            "path": self.path,
            "score": self.score,
            "excerpt": self.excerpt,
        }


@dataclass(slots=True)
class QueryResult:
    """Ranked hits for a query; ``no_match`` when nothing overlaps the vocabulary."""

    query: str
    results: List[SearchResult] = field(default_factory=list)
    no_match: bool = False
