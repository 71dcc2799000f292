"""Lexicon-based sentiment scoring."""

from __future__ import annotations

from voltai.models import SentimentLabel, SentimentResult
from voltai.utils.text import tokenize

POSITIVE_THRESHOLD = 0.6
NEGATIVE_THRESHOLD = 0.4
INTENSIFIER_WEIGHT = 1.5

POSITIVE_WORDS = frozenset({
    "good", "great", "excellent", "wonderful", "fantastic", "amazing", "awesome",
    "love", "happy", "joy", "pleased", "delighted", "satisfied", "perfect",
    "beautiful", "brilliant", "outstanding", "superb", "magnificent", "marvelous",
    "terrific", "fabulous", "exceptional", "impressive", "remarkable", "best",
    "better", "positive", "advantage", "benefit", "success", "successful",
    "win", "winner", "winning", "accomplished", "achievement", "triumph",
    "enjoy", "pleasant", "comfortable", "excited", "exciting", "thrilled",
    "approve", "approved", "approval", "like", "liked", "favorite", "prefer",
})

NEGATIVE_WORDS = frozenset({
    "bad", "terrible", "awful", "horrible", "poor", "worst", "worse",
    "hate", "angry", "sad", "upset", "disappointed", "dissatisfied", "unhappy",
    "fail", "failure", "failed", "problem", "issue", "wrong", "error",
    "difficult", "hard", "tough", "struggle", "struggling", "broken",
    "pain", "painful", "hurt", "hurting", "damage", "damaged", "disaster",
    "negative", "loss", "lose", "losing", "lost", "defeat", "defeated",
    "reject", "rejected", "rejection", "dislike", "disliked", "unpleasant",
    "uncomfortable", "disappointing", "frustrate", "frustrated", "frustrating",
})

INTENSIFIERS = frozenset({
    "very", "extremely", "absolutely", "really", "incredibly", "highly", "totally",
})

# Contractions split into stems ("isn't" -> "isn", "t"), so the stems count.
NEGATIONS = frozenset({
    "not", "no", "never", "nothing", "nobody", "nowhere", "neither", "nor",
    "none", "cannot", "isn", "aren", "wasn", "weren", "don", "doesn", "didn",
    "won", "wouldn", "couldn", "shouldn",
})


def _label_for(score: float) -> SentimentLabel:
    if score > POSITIVE_THRESHOLD:
        return SentimentLabel.POSITIVE
    if score < NEGATIVE_THRESHOLD:
        return SentimentLabel.NEGATIVE
    return SentimentLabel.NEUTRAL


def analyze_sentiment(text: str) -> SentimentResult:
    """Score text into [0, 1]; 1 is entirely positive, 0.5 is balanced or empty.

    A lexicon hit preceded (within two tokens) by a negation counts for the
    opposite polarity; one directly preceded by an intensifier counts 1.5x.
    """
    tokens = tokenize(text)
    positive = negative = 0.0
    for position, token in enumerate(tokens):
        if token in POSITIVE_WORDS:
            polarity = 1
        elif token in NEGATIVE_WORDS:
            polarity = -1
        else:
            continue
        previous = tokens[max(position - 2, 0):position]
        if any(word in NEGATIONS for word in previous):
            polarity = -polarity
        weight = INTENSIFIER_WEIGHT if previous and previous[-1] in INTENSIFIERS else 1.0
        if polarity > 0:
            positive += weight
        else:
            negative += weight

    total = positive + negative
    score = 0.5 if total == 0 else (1.0 + (positive - negative) / total) / 2.0
    return SentimentResult(label=_label_for(score), score=score, positive=positive, negative=negative)
