"""
Unit tests for the Theme Extractor and theme vocabulary.
"""

import json
import os
import tempfile
from pathlib import Path

import pytest

from dfac_pulse.analytics.themes import ThemeExtractor, comments_from_records
from dfac_pulse.analytics.vocabulary import DEFAULT_VOCABULARY, ThemeVocabulary
from dfac_pulse.models.feedback import FeedbackRecord
from dfac_pulse.models.theme import Comment

VOCABULARY_PATH = Path(__file__).resolve().parents[2] / "config" / "theme_vocabulary.json"


@pytest.fixture
def extractor():
    """Extractor using the shipped vocabulary."""
    return ThemeExtractor(vocabulary=ThemeVocabulary.load(str(VOCABULARY_PATH)))


def test_run_out_variants_share_a_theme(extractor):
    themes = extractor.extract_top_themes([
        "food runs out fast",
        "food ran out again",
        "great service",
    ])

    assert len(themes) == 2
    assert themes[0].key == "run out"
    assert themes[0].label == "Run out"
    assert themes[0].count == 2
    assert themes[1].count == 1
    assert themes[1].key != "run out"
    assert themes[1].comments == ["great service"]


def test_short_comments_are_excluded(extractor):
    themes = extractor.extract_top_themes(["good", "ok   !", "  yum  ", "food ran out again"])

    all_comments = [c for theme in themes for c in theme.comments]
    assert all_comments == ["food ran out again"]


def test_six_non_whitespace_characters_is_enough(extractor):
    assert extractor.is_meaningful("abc def")
    assert not extractor.is_meaningful("ab cd e")


def test_first_domain_keyword_in_token_order(extractor):
    # "chicken" comes before "cold"; both are domain keywords
    assert extractor.group_key("The chicken was cold") == "chicken"


def test_falls_back_to_first_remaining_token(extractor):
    assert extractor.group_key("Xylophone concerts please") == "xylophone"


def test_falls_back_to_general(extractor):
    themes = extractor.extract_top_themes(["it is so so so good"])
    assert themes[0].key == "general"
    assert themes[0].label == "General"


def test_earliest_phrase_wins(extractor):
    assert extractor.group_key("Long lines and the food ran out") == "long line"
    assert extractor.group_key("Food ran out and the lines were long") == "run out"


def test_phrase_overrides_keyword(extractor):
    # "staff" is a keyword but the phrase match comes first
    assert extractor.group_key("The staff are friendly and the food is good") == "friendly staff"


def test_tokenize_strips_punctuation_and_stop_words(extractor):
    assert extractor.tokenize("The Eggs were COLD!!! at breakfast, ok?") == ["eggs", "cold", "breakfast"]


def test_ranked_by_count_then_first_seen(extractor):
    themes = extractor.extract_top_themes([
        "Xylophone concerts please",
        "Zebra stripes on walls",
        "More chicken please",
        "Chicken was dry",
    ])

    assert [t.key for t in themes] == ["chicken", "xylophone", "zebra"]


def test_top_five_only(extractor):
    comments = [f"{word} comment here" for word in
                ["alpha", "bravo", "charlie", "delta", "echo", "foxtrot", "golf"]]

    themes = extractor.extract_top_themes(comments)

    assert len(themes) == 5
    assert sum(t.count for t in extractor.group(comments)) == 7


def test_members_most_recent_first(extractor):
    comments = [
        Comment(text="Rice was bland", timestamp="2024-06-01T10:00:00"),
        Comment(text="Rice was overcooked", timestamp="2024-06-03T10:00:00"),
        Comment(text="Rice could use salt"),
        Comment(text="Rice portions small", timestamp="2024-06-02T10:00:00"),
    ]

    themes = extractor.extract_top_themes(comments)

    assert themes[0].key == "rice"
    assert themes[0].comments == [
        "Rice was overcooked",
        "Rice portions small",
        "Rice was bland",
        "Rice could use salt",
    ]


def test_original_text_is_kept(extractor):
    text = "   The pizza station ran out of pepperoni before 1800!!   "
    themes = extractor.extract_top_themes([text])
    assert themes[0].comments == [text]


RUN_OUT_COMMENTS = ["food runs out fast", "food ran out again", "great service"]


def test_default_extractor_uses_built_in_vocabulary():
    themes = ThemeExtractor().extract_top_themes(RUN_OUT_COMMENTS)

    assert themes[0].key == "run out"
    assert themes[0].count == 2


def test_empty_vocabulary_still_groups():
    extractor = ThemeExtractor(vocabulary=ThemeVocabulary())
    themes = extractor.extract_top_themes(["food runs out fast", "food is cold"])

    assert len(themes) == 1
    assert themes[0].key == "food"
    assert themes[0].count == 2


def test_no_comments():
    assert ThemeExtractor().extract_top_themes([]) == []


def test_comments_from_records():
    records = [
        FeedbackRecord(timestamp="2024-06-03T10:00:00", likes="Friendly staff", id="a"),
        FeedbackRecord(timestamp="2024-06-03T11:00:00", likes="   ", id="b"),
        FeedbackRecord(timestamp="2024-06-03T12:00:00", improvements="Longer hours", id="c"),
    ]

    comments = comments_from_records(records, "likes")

    assert comments == [Comment(text="Friendly staff", timestamp="2024-06-03T10:00:00", record_id="a")]


def test_vocabulary_load_missing_file():
    vocabulary = ThemeVocabulary.load("/nonexistent/theme_vocabulary.json")
    assert vocabulary == DEFAULT_VOCABULARY

    themes = ThemeExtractor(vocabulary=vocabulary).extract_top_themes(RUN_OUT_COMMENTS)
    assert themes[0].key == "run out"
    assert themes[0].count == 2


def test_vocabulary_load_corrupt_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "theme_vocabulary.json")
        with open(path, "w") as f:
            f.write("{not json")

        vocabulary = ThemeVocabulary.load(path)

        assert vocabulary == DEFAULT_VOCABULARY
        themes = ThemeExtractor(vocabulary=vocabulary).extract_top_themes(RUN_OUT_COMMENTS)
        assert themes[0].key == "run out"
        assert themes[0].count == 2


def test_vocabulary_load_partial_file_keeps_defaults():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "theme_vocabulary.json")
        with open(path, "w") as f:
            json.dump({"version": "2.0.0", "phrases": {"long line": ["long line"]}}, f)

        vocabulary = ThemeVocabulary.load(path)

        assert vocabulary.version == "2.0.0"
        assert vocabulary.phrase_variants() == [("long line", "long line")]
        assert vocabulary.stop_words == DEFAULT_VOCABULARY.stop_words
        assert vocabulary.keyword_set == DEFAULT_VOCABULARY.keyword_set


def test_vocabulary_from_dict():
    vocabulary = ThemeVocabulary.from_dict({
        "stop_words": ["The", "and"],
        "keywords": {"food": ["Rice"], "facility": ["tables"]},
        "phrases": ["long line"],
    })

    assert vocabulary.stop_words == frozenset({"the", "and"})
    assert vocabulary.keyword_set == frozenset({"rice", "tables"})
    assert vocabulary.category_of("tables") == "facility"
    assert vocabulary.category_of("chairs") is None
    assert vocabulary.phrase_variants() == [("long line", "long line")]


def test_vocabulary_round_trip_through_json():
    vocabulary = ThemeVocabulary.load(str(VOCABULARY_PATH))

    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "vocab.json")
        with open(path, "w") as f:
            json.dump(vocabulary.to_dict(), f)

        assert ThemeVocabulary.load(path) == vocabulary


# Run tests if executed directly
if __name__ == "__main__":
    pytest.main([__file__, "-v"])
