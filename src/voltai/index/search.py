"""Similarity ranking against a loaded index."""

from __future__ import annotations

import logging
from collections import Counter

import numpy as np

from voltai.index.tfidf import l2_normalize
from voltai.models import Index, QueryResult, SearchResult
from voltai.utils.text import make_excerpt, tokenize

LOGGER = logging.getLogger(__name__)


class QueryEngine:
    """Ranks indexed documents by cosine similarity to a free-text query."""

    def __init__(self, index: Index, *, excerpt_chars: int = 300) -> None:
        self.index = index
        self.excerpt_chars = excerpt_chars
        self._term_index = {term: position for position, term in enumerate(index.terms)}

    def vectorize(self, query: str) -> np.ndarray:
        """Unit-length query vector over the existing vocabulary.

        Terms outside the vocabulary are dropped.
        """
        vector = np.zeros(len(self.index.terms), dtype="float64")
        for term, count in Counter(tokenize(query)).items():
            position = self._term_index.get(term)
            if position is None:
                LOGGER.debug("Query term %r not in vocabulary", term)
                continue
            vector[position] = count
        return l2_normalize(vector)

    def scores(self, query_vector: np.ndarray) -> np.ndarray:
        if not self.index.docs:
            return np.zeros(0, dtype="float64")
        return np.clip(self.index.vectors @ query_vector, 0.0, 1.0)

    def search(self, query: str, *, top_k: int = 3) -> QueryResult:
        if top_k < 1:
            raise ValueError("top_k must be at least 1")

        query_vector = self.vectorize(query)
        if not query_vector.any():
            return QueryResult(query=query, no_match=True)

        scores = self.scores(query_vector)
        # Stable sort keeps document order among equal scores.
        order = np.argsort(-scores, kind="stable")
        results = []
        for position in order:
            score = float(scores[position])
            if score <= 0.0 or len(results) >= top_k:
                break
            doc = self.index.docs[position]
            results.append(
                SearchResult(
                    rank=len(results) + 1,
                    doc_id=doc.id,
                    path=doc.path,
                    score=score,
                    excerpt=make_excerpt(doc.text, self.excerpt_chars),
                )
            )
        return QueryResult(query=query, results=results, no_match=not results)
