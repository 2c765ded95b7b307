"""Tests for the intent catalog and the scoring matcher."""

from collections import defaultdict

import pytest

from conversation_memory import ConversationMemory, QuestionRecord
from intent_engine import (
    CATCH_ALL_PATTERN,
    DEFAULT_MATCH_SETTINGS,
    INTENT_DEFINITIONS,
    IntentCatalog,
    IntentCatalogError,
    MatchSettings,
)
from text_normalizer import TYPO_CORRECTIONS, normalize, similarity


def _unique_phrases():
    owners = defaultdict(set)
    for entry in INTENT_DEFINITIONS:
        if entry.get("catch_all"):
            continue
        for phrase in entry["patterns"]:
            owners[phrase].add(entry["name"])
    return sorted((p, names.pop()) for p, names in owners.items() if len(names) == 1)


def _one_typo_variants():
    """One deletion and one substitution for every unique single-word phrase of 5+ letters."""
    known = {p for entry in INTENT_DEFINITIONS for p in entry["patterns"]}
    cases = []
    for phrase, intent in _unique_phrases():
        if len(phrase) < 5 or not phrase.isalpha():
            continue
        mid = len(phrase) // 2
        swap = "z" if phrase[mid] == "x" else "x"
        for typo in (phrase[0] + phrase[2:], phrase[:mid] + swap + phrase[mid + 1:]):
            if typo not in known and typo not in TYPO_CORRECTIONS:
                cases.append((typo, phrase, intent))
    return cases


class TestSettings:

    def test_scoring_constants(self):
        s = DEFAULT_MATCH_SETTINGS
        assert s.phrase_hit == 1.0
        assert s.multi_word_bonus == 0.5
        assert s.phrase_fuzzy_threshold == 0.8
        assert s.phrase_fuzzy_weight == 0.8
        assert s.word_fuzzy_threshold == 0.85
        assert s.word_fuzzy_weight == 0.3
        assert s.skills_keyword_bonus == 2.0
        assert s.topic_bonus == 0.8
        assert s.question_type_bonus == 0.3
        assert s.lenient_pattern_count == 10
        assert s.max_score == 1.0
        assert s.min_score == 0.3

    def test_settings_are_frozen(self):
        with pytest.raises(Exception):
            DEFAULT_MATCH_SETTINGS.min_score = 0.1


class TestCatalog:

    def test_order_and_size(self, catalog):
        names = catalog.names
        assert len(catalog) == 25
        assert names[:3] == ["greeting", "skills", "experience"]
        assert names[-1] == "intelligent_fallback"

    def test_single_catch_all(self, catalog):
        assert catalog.catch_all.name == "intelligent_fallback"
        assert catalog.catch_all.patterns == (CATCH_ALL_PATTERN,)
        assert catalog.catch_all.priority == 0

    def test_question_types(self, catalog):
        assert catalog.get("who_questions").question_type == "who"
        assert catalog.get("how_questions").question_type == "how"
        assert catalog.get("skills").question_type is None

    def test_trigger_words_are_not_typo_keys(self):
        for entry in INTENT_DEFINITIONS:
            for phrase in entry["patterns"]:
                for word in phrase.split():
                    assert word not in TYPO_CORRECTIONS, (entry["name"], word)

    def test_missing_handler(self, generator):
        handlers = generator.handlers()
        del handlers["skills"]
        with pytest.raises(IntentCatalogError):
            IntentCatalog.build(handlers)

    def test_orphan_handler(self, generator):
        handlers = generator.handlers()
        handlers["weather"] = lambda message: "sunny"
        with pytest.raises(IntentCatalogError):
            IntentCatalog.build(handlers)

    def test_duplicate_name(self):
        handlers = {"a": str, "b": str}
        definitions = [
            {"name": "a", "patterns": ["x"]},
            {"name": "a", "patterns": ["y"]},
            {"name": "b", "patterns": [".*"], "catch_all": True},
        ]
        with pytest.raises(IntentCatalogError):
            IntentCatalog.build(handlers, definitions)

    def test_empty_patterns(self):
        handlers = {"a": str, "b": str}
        definitions = [
            {"name": "a", "patterns": []},
            {"name": "b", "patterns": [".*"], "catch_all": True},
        ]
        with pytest.raises(IntentCatalogError):
            IntentCatalog.build(handlers, definitions)

    @pytest.mark.parametrize("catch_alls", [0, 2])
    def test_exactly_one_catch_all(self, catch_alls):
        handlers = {"a": str, "b": str, "c": str}
        definitions = [{"name": "a", "patterns": ["x"]}]
        for name in ("b", "c"):
            entry = {"name": name, "patterns": [".*"]}
            if catch_alls == 2:
                entry["catch_all"] = True
            definitions.append(entry)
        with pytest.raises(IntentCatalogError):
            IntentCatalog.build(handlers, definitions)


class TestMatcher:

    @pytest.mark.parametrize("phrase, intent", _unique_phrases())
    def test_trigger_phrase_alone_selects_its_intent(self, matcher, phrase, intent):
        result = matcher.match(normalize(phrase), ConversationMemory())
        assert result is not None
        assert result.intent.name == intent

    @pytest.mark.parametrize("typo, phrase, intent", _one_typo_variants())
    def test_one_character_misspelling_still_selects(self, matcher, typo, phrase, intent):
        assert similarity(typo, phrase) >= 0.8
        result = matcher.match(normalize(typo), ConversationMemory())
        assert result is not None
        assert result.intent.name == intent

    def test_five_letter_typo_scores_exactly_the_cut_off(self, matcher, catalog):
        # one deletion in "build": 1 - 1/5
        assert matcher.score("bild", catalog.get("projects")) == pytest.approx(0.8)
        assert matcher.match("bild").intent.name == "projects"

    def test_skills_question(self, matcher):
        scores = matcher.scores("what are your main skills")
        assert scores["skills"] == pytest.approx(3.3 / 20 ** 0.5)
        assert scores["what_questions"] == pytest.approx(0.48)
        assert matcher.match("what are your main skills").intent.name == "skills"

    def test_empty_input_scores_zero(self, matcher):
        assert all(score == 0.0 for score in matcher.scores("").values())
        assert matcher.match("") is None

    def test_catch_all_only_when_nothing_clears_threshold(self, matcher):
        assert matcher.match("xyzzy qwerty") is None
        result = matcher.select("xyzzy qwerty")
        assert result.intent.catch_all
        assert result.fallback
        assert result.score == DEFAULT_MATCH_SETTINGS.min_score

        result = matcher.select("hello")
        assert not result.intent.catch_all
        assert result.score > DEFAULT_MATCH_SETTINGS.min_score

    def test_scores_are_clamped(self, matcher):
        for score in matcher.scores("how can i contact you how are you how do you").values():
            assert 0.0 <= score <= 1.0

    def test_topic_bonus(self, matcher, catalog):
        memory = ConversationMemory()
        base = matcher.score("anything about projects", catalog.get("projects"), memory)
        memory.set_topic("projects")
        boosted = matcher.score("anything about projects", catalog.get("projects"), memory)
        assert boosted == pytest.approx(base + 0.8 / 12 ** 0.5)

    def test_topic_bonus_reaches_social_media(self, matcher, catalog, generator, memory):
        intent = catalog.get("social_media")
        base = matcher.score("anything online please", intent, memory)
        generator.social_media("your linkedin")
        assert memory.current_topic == "social_media"
        boosted = matcher.score("anything online please", intent, memory)
        assert boosted == pytest.approx(base + 0.8 / 9)

    def test_question_type_bonus(self, matcher, catalog):
        memory = ConversationMemory()
        intent = catalog.get("where_questions")
        base = matcher.score("where were you", intent, memory)
        memory.record_question(QuestionRecord(type="where", message="where is that"))
        assert matcher.score("where were you", intent, memory) == pytest.approx(base + 0.3 / 8)

    def test_ties_keep_catalog_order(self, catalog):
        # Same phrase in two intents: the earlier one wins
        assert catalog.names.index("experience") < catalog.names.index("projects")
        from intent_engine import IntentMatcher
        assert IntentMatcher(catalog).match("work").intent.name == "experience"

    def test_custom_threshold(self, catalog):
        from intent_engine import IntentMatcher
        strict = IntentMatcher(catalog, MatchSettings(min_score=0.99))
        assert strict.match("what are your main skills") is None
