"""JSON persistence for the TF-IDF index."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import numpy as np

from voltai.models import Document, Index, VoltAIError

LOGGER = logging.getLogger(__name__)

# Size of the smallest well-formed index, {"docs":[],"terms":[],"vectors":[]}.
MIN_INDEX_BYTES = len(b'{"docs":[],"terms":[],"vectors":[]}')


class IndexNotFoundError(VoltAIError):
    """The index file does not exist."""


class IndexUnreadableError(VoltAIError):
    """The index file exists but the operating system refuses to read it."""


class IndexWriteError(VoltAIError):
    """The index file could not be written."""


class IndexCorruptError(VoltAIError):
    """The index file exists but cannot be used."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Index {path} is unusable ({reason}); please re-index.")
        self.path = path
        self.reason = reason


def _index_to_payload(index: Index) -> dict[str, Any]:
    return {
        "docs": [{"id": doc.id, "path": doc.path, "text": doc.text} for doc in index.docs],
        "terms": list(index.terms),
        "vectors": [[float(value) for value in row] for row in index.vectors],
    }


class IndexStore:
    """Reads and writes an index as a single JSON document."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def save(self, index: Index) -> None:
        """Replace the index file atomically."""
        index.validate()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
        except OSError as exc:
            raise IndexWriteError(f"Cannot write index {self.path}: {exc}") from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(_index_to_payload(index), handle, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise IndexWriteError(f"Cannot write index {self.path}: {exc}") from exc
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        LOGGER.info("Wrote index with %d documents to %s", len(index.docs), self.path)

    def load(self) -> Index:
        if not self.exists():
            raise IndexNotFoundError(f"Index file not found: {self.path}")

        try:
            size = self.path.stat().st_size
            if size < MIN_INDEX_BYTES:
                raise IndexCorruptError(self.path, f"file is only {size} bytes")
            with self.path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise IndexCorruptError(self.path, f"invalid JSON: {exc}") from exc
        except OSError as exc:
            raise IndexUnreadableError(f"Cannot read index {self.path}: {exc}") from exc

        return self._from_payload(payload)

    def _from_payload(self, payload: Any) -> Index:
        if not isinstance(payload, dict):
            raise IndexCorruptError(self.path, "top-level value is not an object")
        missing = [key for key in ("docs", "terms", "vectors") if key not in payload]
        if missing:
            raise IndexCorruptError(self.path, f"missing keys: {', '.join(missing)}")

        try:
            docs = [
                Document(id=str(item["id"]), path=str(item["path"]), text=str(item["text"]))
                for item in payload["docs"]
            ]
            terms = [str(term) for term in payload["terms"]]
        except (KeyError, TypeError) as exc:
            raise IndexCorruptError(self.path, f"malformed document entry: {exc}") from exc

        rows = payload["vectors"]
        if not isinstance(rows, list) or len(rows) != len(docs):
            raise IndexCorruptError(self.path, "vector count does not match document count")
        if any(not isinstance(row, list) or len(row) != len(terms) for row in rows):
            raise IndexCorruptError(self.path, "vector length does not match vocabulary size")
        try:
            vectors = np.array(rows, dtype="float64").reshape(len(docs), len(terms))
        except (TypeError, ValueError) as exc:
            raise IndexCorruptError(self.path, f"non-numeric vector data: {exc}") from exc

        return Index(docs=docs, terms=terms, vectors=vectors)

    def describe(self) -> dict[str, Any]:
        index = self.load()
        return {
            "path": str(self.path),
            "documents": len(index.docs),
            "terms": len(index.terms),
            "size_bytes": self.path.stat().st_size,
        }
