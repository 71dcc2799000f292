"""Tests for core data models."""

from __future__ import annotations

import numpy as np
import pytest

from voltai.models import (
    Document,
    Entity,
    EntityKind,
    Index,
    QueryResult,
    SearchResult,
    SentimentLabel,
    SentimentResult,
)


class TestDocument:
    """Test Document dataclass."""

    def test_equality(self) -> None:
        assert Document("doc-1", "/a.txt", "x") == Document("doc-1", "/a.txt", "x")

    def test_frozen(self) -> None:
        doc = Document("doc-1", "/a.txt", "x")
        with pytest.raises(AttributeError):
            doc.text = "y"  # type: ignore[misc]


class TestIndex:
    """Test Index shape checks."""

    def test_empty(self) -> None:
        index = Index.empty()
        assert index.docs == []
        assert index.vectors.shape == (0, 0)
        index.validate()

    def test_validate_accepts_aligned_matrix(self) -> None:
        index = Index(
            docs=[Document("doc-1", "/a.txt", "cat")],
            terms=["cat", "dog"],
            vectors=np.array([[1.0, 0.0]]),
        )
        index.validate()

    def test_validate_rejects_mismatch(self) -> None:
        index = Index(docs=[Document("doc-1", "/a.txt", "cat")], terms=["cat"], vectors=np.zeros((2, 1)))
        with pytest.raises(ValueError, match="does not match"):
            index.validate()


class TestSerialisation:
    """Test to_dict helpers used for JSON output."""

    def test_entity(self) -> None:
        entity = Entity("Paris", EntityKind.LOCATION, 0.85, 0, 5)
        assert entity.to_dict() == {
            "text": "Paris",
            "kind": "LOCATION",
            "confidence": 0.85,
            "start": 0,
            "end": 5,
        }

    def test_sentiment_rounds_score(self) -> None:
        result = SentimentResult(SentimentLabel.POSITIVE, 2 / 3, positive=2.0)
        assert result.to_dict()["score"] == 0.6667
        assert result.to_dict()["label"] == "Positive"

    def test_search_result(self) -> None:
        hit = SearchResult(rank=1, doc_id="doc-1", path="/a.txt", score=0.5, excerpt="cat")
        assert hit.to_dict()["id"] == "doc-1"

    def test_query_result_defaults(self) -> None:
        result = QueryResult(query="cat")
        assert result.results == []
        assert result.no_match is False
