"""Tests for text normalisation and string similarity."""

import pytest

from text_normalizer import (
    TYPO_CORRECTIONS,
    clean_text,
    normalize,
    question_type,
    similarity,
    tokenize,
)


class TestNormalize:

    def test_lowercases_and_fixes_known_typos(self):
        assert normalize("What are your SKILS?") == "what are your skills?"
        assert normalize("Tell me about your experiance") == "tell me about your experience"

    def test_only_whole_words_are_corrected(self):
        # "skil" is a typo key but must not rewrite the inside of "skill"/"skills"
        assert normalize("skill skills") == "skill skills"

    def test_accepts_empty_input(self):
        assert normalize("") == ""

    def test_deterministic(self):
        text = "Wat is your educaton and expirience?"
        assert normalize(text) == normalize(text) == "what is your education and experience?"

    def test_corrections_are_lowercase(self):
        for typo, fix in TYPO_CORRECTIONS.items():
            assert typo == typo.lower()
            assert fix == fix.lower()


class TestCleaning:

    def test_clean_text_strips_punctuation(self):
        assert clean_text("What are your main skills?") == "what are your main skills"

    def test_clean_text_collapses_whitespace(self):
        assert clean_text("  hello,   world!! ") == "hello world"

    def test_tokenize(self):
        assert tokenize("Hello, world!") == ["hello", "world"]
        assert tokenize("") == []


class TestSimilarity:

    def test_identical(self):
        assert similarity("python", "python") == 1.0

    def test_empty_strings_are_unrelated(self):
        assert similarity("", "") == 0.0
        assert similarity("abc", "") == 0.0

    def test_edit_distance_ratio(self):
        # kitten → sitting: 3 edits over 7 characters
        assert similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)

    def test_symmetric(self):
        assert similarity("testimonal", "testimonial") == similarity("testimonial", "testimonal")


class TestQuestionType:

    @pytest.mark.parametrize("text, expected", [
        ("Where do you live?", "where"),
        ("how can I contact you", "how"),
        ("So, what is your degree?", "what"),
        ("tell me about django", None),
    ])
    def test_first_question_word(self, text, expected):
        assert question_type(text) == expected
