"""Extractive summarization using the indexer's TF-IDF weighting."""

from __future__ import annotations

from collections import Counter
from typing import List

from voltai.index.tfidf import build_vocabulary, idf, term_counts
from voltai.utils.text import split_sentences

MIN_SENTENCES = 2
MAX_SENTENCES = 5


def default_length(n_sentences: int) -> int:
    """30% of the sentences, clamped to [2, 5]."""
    return min(max(n_sentences * 30 // 100, MIN_SENTENCES), MAX_SENTENCES)


def score_sentences(sentences: List[str]) -> List[float]:
    """Average tf-idf weight of each sentence's tokens.

    Sentences play the role of documents for idf; term frequency is taken
    over the whole text.
    """
    counts = [term_counts(sentence) for sentence in sentences]
    _, df = build_vocabulary(counter for counter, _ in counts)
    overall: Counter = Counter()
    for counter, _ in counts:
        overall.update(counter)
    total = sum(overall.values())
    if total == 0:
        return [0.0] * len(sentences)

    weights = {term: (overall[term] / total) * idf(df[term], len(sentences)) for term in df}
    scores = []
    for counter, length in counts:
        if length == 0:
            scores.append(0.0)
            continue
        scores.append(sum(weights[term] * count for term, count in counter.items()) / length)
    return scores


def summarize(text: str, *, sentences: int | None = None) -> List[str]:
    """Top scoring sentences, returned in their original order."""
    parts = split_sentences(text)
    if not parts:
        return []
    limit = sentences if sentences is not None else default_length(len(parts))
    if limit < 1:
        raise ValueError("sentences must be at least 1")
    if len(parts) <= limit:
        return parts

    scores = score_sentences(parts)
    ranked = sorted(range(len(parts)), key=lambda position: (-scores[position], position))
    return [parts[position] for position in sorted(ranked[:limit])]
