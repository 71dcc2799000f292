"""TF-IDF weighting.

Indexing runs in two data-parallel phases separated by a sequential merge:

1. per-document term counting,
2. vocabulary and document-frequency merge (sequential),
3. per-document weighting against the global idf table.
"""

from __future__ import annotations

import logging
import math
import os
from collections import Counter
from concurrent.futures import Executor, ProcessPoolExecutor
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

import numpy as np

from voltai.models import Document, Index
from voltai.utils.text import tokenize

LOGGER = logging.getLogger(__name__)

TermCounts = Tuple[Counter, int]

# Set in each worker process by _init_weighting.
_TERM_INDEX: Dict[str, int] = {}
_IDF: np.ndarray = np.zeros(0)


def term_counts(text: str) -> TermCounts:
    """Count terms of a single document; returns the counter and token total."""
    tokens = tokenize(text)
    return Counter(tokens), len(tokens)


def build_vocabulary(counts: Iterable[Counter]) -> Tuple[List[str], Dict[str, int]]:
    """Merge per-document counts into an ordered vocabulary and df table.

    Terms keep first-seen order across the corpus.
    """
    df: Dict[str, int] = {}
    for counter in counts:
        for term in counter:
            df[term] = df.get(term, 0) + 1
    return list(df), df


def idf(df: int, n_docs: int) -> float:
    """Smoothed inverse document frequency, ``ln(N / (1 + df)) + 1``.

    Keep the ``+ 1``: without it ``ln(N / (1 + df)) <= 0`` for every term
    when ``N <= 2``, so a two-document corpus would index to all-zero
    vectors and no query could match it.
    """
    if n_docs <= 0:
        return 0.0
    return max(math.log(n_docs / (1 + df)) + 1.0, 0.0)


def idf_table(terms: Sequence[str], df: Mapping[str, int], n_docs: int) -> np.ndarray:
    return np.array([idf(df[term], n_docs) for term in terms], dtype="float64")


def l2_normalize(vector: np.ndarray) -> np.ndarray:
    norm = float(np.linalg.norm(vector))
    if norm == 0.0:
        return vector
    return vector / norm


def weigh(
    counts: TermCounts, term_index: Mapping[str, int], idf_values: np.ndarray
) -> np.ndarray:
    """Unit-length tf-idf vector for one document; all-zero if it has no terms."""
    counter, total = counts
    vector = np.zeros(len(idf_values), dtype="float64")
    if total == 0:
        return vector
    for term, count in counter.items():
        position = term_index.get(term)
        if position is not None:
            vector[position] = (count / total) * idf_values[position]
    return l2_normalize(vector)


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Dot product of pre-normalised non-negative vectors, clipped into [0, 1]."""
    return float(min(max(float(np.dot(a, b)), 0.0), 1.0))


def _init_weighting(term_index: Dict[str, int], idf_values: np.ndarray) -> None:
    global _TERM_INDEX, _IDF
    _TERM_INDEX = term_index
    _IDF = idf_values


def _weigh_in_worker(counts: TermCounts) -> np.ndarray:
    return weigh(counts, _TERM_INDEX, _IDF)


class TfidfIndexer:
    """Builds an :class:`Index` from documents across a process pool."""

    def __init__(self, workers: int | None = None) -> None:
        self.workers = max(1, workers or os.cpu_count() or 1)

    def _parallel(self, n_items: int) -> bool:
        return self.workers > 1 and n_items > 1

    def _pool(self, **kwargs) -> Executor:
        return ProcessPoolExecutor(max_workers=self.workers, **kwargs)

    def count_terms(self, docs: Sequence[Document]) -> List[TermCounts]:
        texts = [doc.text for doc in docs]
        if not self._parallel(len(texts)):
            return [term_counts(text) for text in texts]
        chunksize = max(1, len(texts) // (self.workers * 4))
        with self._pool() as pool:
            return list(pool.map(term_counts, texts, chunksize=chunksize))

    def weigh_all(
        self, counts: Sequence[TermCounts], term_index: Dict[str, int], idf_values: np.ndarray
    ) -> List[np.ndarray]:
        if not self._parallel(len(counts)):
            return [weigh(item, term_index, idf_values) for item in counts]
        chunksize = max(1, len(counts) // (self.workers * 4))
        with self._pool(initializer=_init_weighting, initargs=(term_index, idf_values)) as pool:
            return list(pool.map(_weigh_in_worker, counts, chunksize=chunksize))

    def build(self, docs: Sequence[Document]) -> Index:
        docs = list(docs)
        if not docs:
            return Index.empty()

        counts = self.count_terms(docs)
        terms, df = build_vocabulary(counter for counter, _ in counts)
        term_index = {term: position for position, term in enumerate(terms)}
        idf_values = idf_table(terms, df, len(docs))
        LOGGER.debug("Vocabulary of %d terms over %d documents", len(terms), len(docs))

        rows = self.weigh_all(counts, term_index, idf_values)
        vectors = np.vstack(rows) if terms else np.zeros((len(docs), 0), dtype="float64")
        index = Index(docs=docs, terms=terms, vectors=vectors)
        index.validate()
        return index
