"""Document indexing pipeline."""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from voltai.index.storage import IndexStore
from voltai.index.tfidf import TfidfIndexer
from voltai.ingestion.extractors import load_document
from voltai.models import Document, Index, VoltAIError
from voltai.utils.files import iter_document_paths

LOGGER = logging.getLogger(__name__)


class DirectoryNotFoundError(VoltAIError):
    """The directory to index does not exist."""


@dataclass(slots=True)
class IndexStats:
    indexed: int = 0
    empty: int = 0
    failed: int = 0
    processed_files: list[Path] = field(default_factory=list)

    def increment(self, status: str, path: Path) -> None:
        if status == "indexed":
            self.indexed += 1
        elif status == "empty":
            self.indexed += 1
            self.empty += 1
        else:
            self.failed += 1
        self.processed_files.append(path)


class Indexer:
    """Walks a directory, extracts text and writes a fresh TF-IDF index."""

    def __init__(self, tfidf: TfidfIndexer, store: IndexStore) -> None:
        self.tfidf = tfidf
        self.store = store

    def collect(
        self,
        root: Path,
        *,
        exclude_pattern: str | None = None,
        max_file_size: int | None = None,
        stats: IndexStats | None = None,
    ) -> List[Document]:
        """Extract every eligible file under ``root``, in walk order."""
        root = Path(root)
        if not root.is_dir():
            raise DirectoryNotFoundError(f"Directory not found: {root}")
        try:
            with os.scandir(root):
                pass
        except OSError as exc:
            raise DirectoryNotFoundError(
                f"Cannot read directory {root}: {exc.strerror or exc}"
            ) from exc
        stats = stats if stats is not None else IndexStats()

        paths = list(
            iter_document_paths(root, exclude_pattern=exclude_pattern, max_file_size=max_file_size)
        )
        if not paths:
            LOGGER.warning("No indexable files found under %s", root)
            return []

        # Extraction is I/O bound; map keeps results in walk order.
        with ThreadPoolExecutor(max_workers=self.tfidf.workers) as pool:
            loaded = list(pool.map(load_document, paths))

        docs: List[Document] = []
        for path, doc in zip(paths, loaded):
            if doc is None:
                stats.increment("failed", path)
                continue
            stats.increment("indexed" if doc.text.strip() else "empty", path)
            docs.append(doc)
        return docs

    def index(
        self,
        root: Path,
        *,
        exclude_pattern: str | None = None,
        max_file_size: int | None = None,
    ) -> IndexStats:
        """Replace the stored index with one built from ``root``."""
        stats = IndexStats()
        docs = self.collect(
            root, exclude_pattern=exclude_pattern, max_file_size=max_file_size, stats=stats
        )
        index = self.tfidf.build(docs) if docs else Index.empty()
        self.store.save(index)
        LOGGER.info(
            "Indexed %d files (%d empty, %d failed)", stats.indexed, stats.empty, stats.failed
        )
        return stats
