"""Tests for IndexStore."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import numpy as np
import pytest

from voltai.index.storage import (
    MIN_INDEX_BYTES,
    IndexCorruptError,
    IndexNotFoundError,
    IndexStore,
    IndexUnreadableError,
    IndexWriteError,
)
from voltai.index.tfidf import TfidfIndexer
from voltai.models import Document, Index


@pytest.fixture
def sample_index() -> Index:
    docs = [
        Document(id="doc-a", path="/docs/a.txt", text="the cat sat"),
        Document(id="doc-b", path="/docs/b.txt", text="the dog ran"),
    ]
    return TfidfIndexer(workers=1).build(docs)


class TestSave:
    """Test writing the index."""

    def test_writes_expected_layout(self, tmp_path: Path, sample_index: Index) -> None:
        path = tmp_path / "index.json"
        IndexStore(path).save(sample_index)

        payload = json.loads(path.read_text(encoding="utf-8"))
        assert set(payload) == {"docs", "terms", "vectors"}
        assert payload["docs"][0] == {"id": "doc-a", "path": "/docs/a.txt", "text": "the cat sat"}
        assert payload["terms"] == sample_index.terms
        assert len(payload["vectors"]) == 2
        assert all(len(row) == len(payload["terms"]) for row in payload["vectors"])

    def test_creates_parent_directories(self, tmp_path: Path, sample_index: Index) -> None:
        path = tmp_path / "nested" / "dir" / "index.json"
        IndexStore(path).save(sample_index)
        assert path.exists()

    def test_no_temp_files_left(self, tmp_path: Path, sample_index: Index) -> None:
        IndexStore(tmp_path / "index.json").save(sample_index)
        assert [p.name for p in tmp_path.iterdir()] == ["index.json"]

    def test_target_is_directory(self, tmp_path: Path, sample_index: Index) -> None:
        target = tmp_path / "taken"
        target.mkdir()

        with pytest.raises(IndexWriteError, match="taken"):
            IndexStore(target).save(sample_index)
        assert [p.name for p in tmp_path.iterdir()] == ["taken"]

    def test_parent_cannot_be_created(self, tmp_path: Path, sample_index: Index) -> None:
        blocker = tmp_path / "file.txt"
        blocker.write_text("x", encoding="utf-8")

        with pytest.raises(IndexWriteError):
            IndexStore(blocker / "index.json").save(sample_index)

    def test_rejects_inconsistent_index(self, tmp_path: Path) -> None:
        broken = Index(
            docs=[Document(id="d", path="/p", text="x")],
            terms=["x"],
            vectors=np.zeros((2, 1)),
        )
        with pytest.raises(ValueError):
            IndexStore(tmp_path / "index.json").save(broken)


class TestLoad:
    """Test reading the index back."""

    def test_round_trip(self, tmp_path: Path, sample_index: Index) -> None:
        store = IndexStore(tmp_path / "index.json")
        store.save(sample_index)
        loaded = store.load()

        assert loaded.docs == sample_index.docs
        assert loaded.terms == sample_index.terms
        np.testing.assert_array_equal(loaded.vectors, sample_index.vectors)

    def test_empty_index_round_trip(self, tmp_path: Path) -> None:
        store = IndexStore(tmp_path / "index.json")
        store.save(Index.empty())
        loaded = store.load()
        assert loaded.docs == []
        assert loaded.terms == []

    def test_missing_file(self, tmp_path: Path) -> None:
        path = tmp_path / "missing.json"
        with pytest.raises(IndexNotFoundError, match="missing.json"):
            IndexStore(path).load()

    def test_unreadable_file(self, tmp_path: Path, sample_index: Index) -> None:
        path = tmp_path / "index.json"
        IndexStore(path).save(sample_index)

        with patch.object(Path, "open", side_effect=PermissionError(13, "Permission denied")):
            with pytest.raises(IndexUnreadableError, match="index.json"):
                IndexStore(path).load()

    def test_undersized_file(self, tmp_path: Path) -> None:
        path = tmp_path / "index.json"
        path.write_text("{}", encoding="utf-8")
        assert path.stat().st_size < MIN_INDEX_BYTES
        with pytest.raises(IndexCorruptError, match="re-index"):
            IndexStore(path).load()

    def test_truncated_json(self, tmp_path: Path, sample_index: Index) -> None:
        path = tmp_path / "index.json"
        IndexStore(path).save(sample_index)
        content = path.read_text(encoding="utf-8")
        path.write_text(content[: len(content) // 2], encoding="utf-8")
        with pytest.raises(IndexCorruptError, match="invalid JSON"):
            IndexStore(path).load()

    def test_missing_keys(self, tmp_path: Path) -> None:
        path = tmp_path / "index.json"
        path.write_text(json.dumps({"docs": [], "terms": [], "other": []}), encoding="utf-8")
        with pytest.raises(IndexCorruptError, match="vectors"):
            IndexStore(path).load()

    def test_vector_count_mismatch(self, tmp_path: Path) -> None:
        path = tmp_path / "index.json"
        payload = {
            "docs": [{"id": "d", "path": "/p", "text": "x"}],
            "terms": ["x"],
            "vectors": [],
        }
        path.write_text(json.dumps(payload), encoding="utf-8")
        with pytest.raises(IndexCorruptError, match="vector count"):
            IndexStore(path).load()

    def test_vector_length_mismatch(self, tmp_path: Path) -> None:
        path = tmp_path / "index.json"
        payload = {
            "docs": [{"id": "d", "path": "/p", "text": "x"}],
            "terms": ["x", "y"],
            "vectors": [[1.0]],
        }
        path.write_text(json.dumps(payload), encoding="utf-8")
        with pytest.raises(IndexCorruptError, match="vector length"):
            IndexStore(path).load()

    def test_non_object_payload(self, tmp_path: Path) -> None:
        path = tmp_path / "index.json"
        path.write_text(json.dumps(["docs", "terms", "vectors", "padding"]), encoding="utf-8")
        with pytest.raises(IndexCorruptError):
            IndexStore(path).load()


class TestDescribe:
    """Test index summary."""

    def test_counts(self, tmp_path: Path, sample_index: Index) -> None:
        store = IndexStore(tmp_path / "index.json")
        store.save(sample_index)
        info = store.describe()
        assert info["documents"] == 2
        assert info["terms"] == len(sample_index.terms)
