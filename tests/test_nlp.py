"""Tests for entity extraction, sentiment scoring and summarization."""

from __future__ import annotations

import pytest

from voltai.models import EntityKind, SentimentLabel
from voltai.nlp.ner import extract_entities
from voltai.nlp.sentiment import analyze_sentiment
from voltai.nlp.summarization import default_length, score_sentences, summarize


def _kinds(text: str) -> dict[str, EntityKind]:
    return {entity.text: entity.kind for entity in extract_entities(text)}


class TestExtractEntities:
    """Test pattern-based NER."""

    def test_person_and_locations(self) -> None:
        text = (
            "Barack Obama was born in Hawaii. He worked in Chicago and later became "
            "the 44th President of the United States."
        )
        kinds = _kinds(text)
        assert kinds["Barack Obama"] is EntityKind.PERSON
        assert kinds["Hawaii"] is EntityKind.LOCATION
        assert kinds["Chicago"] is EntityKind.LOCATION
        assert kinds["United States"] is EntityKind.LOCATION

    def test_email(self) -> None:
        entities = extract_entities("Contact us at support@example.com for more information.")
        email = [e for e in entities if e.kind is EntityKind.EMAIL]
        assert [e.text for e in email] == ["support@example.com"]
        assert email[0].confidence == 0.95

    @pytest.mark.parametrize("date", ["Jan 15, 2024", "2024-01-15", "15/01/2024", "3 March 2023"])
    def test_dates(self, date: str) -> None:
        kinds = _kinds(f"The meeting is scheduled for {date} in the morning.")
        assert kinds.get(date) is EntityKind.DATE

    @pytest.mark.parametrize("amount", ["$1,250.00", "$3 million", "500 USD", "20 euros"])
    def test_money(self, amount: str) -> None:
        kinds = _kinds(f"The invoice totals {amount} overall.")
        assert kinds.get(amount) is EntityKind.MONEY

    def test_organization_beats_person(self) -> None:
        kinds = _kinds("She joined Acme Widgets Corporation last year.")
        assert kinds["Acme Widgets Corporation"] is EntityKind.ORGANIZATION
        assert EntityKind.PERSON not in kinds.values()

    def test_sorted_by_offset_without_overlap(self) -> None:
        entities = extract_entities(
            "Jane Smith emailed jane@corp.com on 2024-02-01 about $500 for London."
        )
        starts = [e.start for e in entities]
        assert starts == sorted(starts)
        for left, right in zip(entities, entities[1:]):
            assert left.end <= right.start

    def test_repeated_mentions_emitted_per_span(self) -> None:
        entities = extract_entities("Paris is lovely. I miss Paris.")
        assert [e.text for e in entities] == ["Paris", "Paris"]

    def test_confidence_in_unit_interval(self) -> None:
        for entity in extract_entities("Mary Jones paid $40 in Boston on Jan 3, 2020."):
            assert 0.0 <= entity.confidence <= 1.0

    def test_sentence_starter_not_a_person(self) -> None:
        assert "The Report" not in _kinds("The Report was filed.")

    @pytest.mark.parametrize(
        ("text", "name"),
        [
            ("When Alice Jones arrived, we left.", "Alice Jones"),
            ("Contact John Smith today.", "John Smith"),
            ("Yesterday John Smith called.", "John Smith"),
        ],
    )
    def test_leading_sentence_word_is_trimmed(self, text: str, name: str) -> None:
        people = [e for e in extract_entities(text) if e.kind is EntityKind.PERSON]
        assert [e.text for e in people] == [name]
        assert text[people[0].start:people[0].end] == name

    def test_empty_text(self) -> None:
        assert extract_entities("") == []


class TestAnalyzeSentiment:
    """Test lexicon-based sentiment."""

    def test_positive(self) -> None:
        result = analyze_sentiment("This is wonderful, amazing, and great")
        assert result.label is SentimentLabel.POSITIVE
        assert result.score > 0.6

    def test_negative(self) -> None:
        result = analyze_sentiment("This is terrible and awful")
        assert result.label is SentimentLabel.NEGATIVE
        assert result.score < 0.4

    def test_neutral_without_lexicon_words(self) -> None:
        result = analyze_sentiment("The sky is blue. The grass is green.")
        assert result.label is SentimentLabel.NEUTRAL
        assert result.score == 0.5

    def test_balanced_is_neutral(self) -> None:
        assert analyze_sentiment("good but bad").label is SentimentLabel.NEUTRAL

    def test_negation_flips_polarity(self) -> None:
        assert analyze_sentiment("This is not good at all.").label is SentimentLabel.NEGATIVE

    def test_contraction_negation(self) -> None:
        assert analyze_sentiment("It isn't bad").label is SentimentLabel.POSITIVE

    def test_intensifier_weight(self) -> None:
        result = analyze_sentiment("very good")
        assert result.positive == 1.5

    def test_score_bounds(self) -> None:
        for text in ["great", "awful", "", "good bad good"]:
            assert 0.0 <= analyze_sentiment(text).score <= 1.0


LONG_TEXT = (
    "Natural language processing is a field of artificial intelligence. "
    "It focuses on the interaction between computers and human language. "
    "The weather was pleasant yesterday. "
    "Language models process natural language text for many applications. "
    "Applications include translation, sentiment analysis, and chatbots. "
    "Lunch was served at noon. "
    "Researchers study how computers understand natural language. "
    "Processing language requires statistical models and linguistics. "
    "The meeting ended early. "
    "Natural language processing combines computational linguistics with machine learning."
)


class TestSummarize:
    """Test extractive summarization."""

    def test_default_length_bounds(self) -> None:
        assert default_length(1) == 2
        assert default_length(10) == 3
        assert default_length(100) == 5

    def test_returns_sentences_in_original_order(self) -> None:
        summary = summarize(LONG_TEXT)
        assert len(summary) == 3
        positions = [LONG_TEXT.index(sentence) for sentence in summary]
        assert positions == sorted(positions)

    def test_explicit_sentence_count(self) -> None:
        assert len(summarize(LONG_TEXT, sentences=2)) == 2

    def test_short_text_returned_whole(self) -> None:
        assert summarize("This is a short text.") == ["This is a short text."]

    def test_empty_text(self) -> None:
        assert summarize("") == []

    def test_invalid_count(self) -> None:
        with pytest.raises(ValueError):
            summarize(LONG_TEXT, sentences=0)

    def test_scores_normalized_by_length(self) -> None:
        scores = score_sentences(["alpha beta.", "alpha beta alpha beta.", "gamma."])
        assert scores[0] == pytest.approx(scores[1])
        assert all(score >= 0 for score in scores)
