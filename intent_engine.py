"""
intent_engine.py
================
Intent catalog and scoring matcher for the portfolio assistant.

Matching pipeline for one message (all constants in MatchSettings):
  1. Raw score per intent
       +1 per trigger phrase found in the input (+0.5 more for multi-word phrases)
       single-word phrases not found: whole-input fuzzy similarity > 0.8 adds 0.8 × sim
       every input word vs every phrase word: similarity > 0.85 adds 0.3 × sim
       skills intent + a tech keyword in the input: +2.0
       intent == current topic: +0.8; intent's question type == last question type: +0.3
  2. × priority
  3. ÷ sqrt(pattern count) when the intent has more than 10 patterns, else ÷ pattern count;
     clamped to 1.0
  4. Direct-phrase score: whole cleaned input vs each trigger phrase.  A similarity of
     0.8 or more (one typo in a five-letter word is exactly 0.8) becomes the score
     if it beats step 3.
  5. Highest score wins, first in catalog order on ties; it must exceed 0.3.

The catch-all intent never competes: its score is the threshold itself, so it is
selected exactly when no other intent clears the threshold.

Public API
----------
IntentCatalog.build(handlers, definitions=INTENT_DEFINITIONS) -> IntentCatalog
IntentMatcher(catalog, settings).match(text, memory)  -> MatchResult | None
IntentMatcher(catalog, settings).select(text, memory) -> MatchResult
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Optional

from conversation_memory import ConversationMemory
from text_normalizer import clean_text, similarity, tokenize

logger = logging.getLogger(__name__)

CATCH_ALL_PATTERN = ".*"

Handler = Callable[..., str]


class IntentCatalogError(ValueError):
    """Raised at startup when intent definitions and handlers disagree."""


# --------------------------------------------------------------------------- #
#  Scoring constants                                                           #
# --------------------------------------------------------------------------- #

@dataclass(frozen=True)
class MatchSettings:
    """Every tunable number the matcher uses, in one place."""

    # Per trigger phrase contained in the input
    phrase_hit:             float = 1.0
    multi_word_bonus:       float = 0.5
    # Whole input vs single-word phrase (also the direct-phrase cut-off)
    phrase_fuzzy_threshold: float = 0.8
    phrase_fuzzy_weight:    float = 0.8
    # Input word vs phrase word
    word_fuzzy_threshold:   float = 0.85
    word_fuzzy_weight:      float = 0.3
    # Disambiguation: technical vocabulary pulls towards the skills intent
    skills_intent:          str = "skills"
    skills_keywords:        tuple = (
        "technology", "technologies", "programming", "language",
        "framework", "database", "tool", "skill",
    )
    skills_keyword_bonus:   float = 2.0
    # Conversation continuity
    topic_bonus:            float = 0.8
    question_type_bonus:    float = 0.3
    # Normalisation
    lenient_pattern_count:  int = 10
    max_score:              float = 1.0
    min_score:              float = 0.3


DEFAULT_MATCH_SETTINGS = MatchSettings()


# --------------------------------------------------------------------------- #
#  Intent definitions (catalog order breaks ties)                              #
# --------------------------------------------------------------------------- #

INTENT_DEFINITIONS = [
    {"name": "greeting",
     "patterns": ["hello", "hi", "hey", "greetings", "good morning", "good afternoon",
                  "good evening", "howdy", "hola", "bonjour", "ciao", "aloha"]},
    {"name": "skills",
     "patterns": ["skill", "technology", "technologies", "programming", "language",
                  "framework", "tool", "tech stack", "expertise", "competence",
                  "proficient", "specialize", "work with", "do you use", "what do you",
                  "tech", "technical", "coding", "development", "software"]},
    {"name": "experience",
     "patterns": ["experience", "work", "job", "career", "employment", "intern",
                  "position", "role", "worked", "employed", "professional background"]},
    {"name": "projects",
     "patterns": ["project", "portfolio", "work", "build", "develop", "create",
                  "application", "app", "made", "built", "created", "developed"]},
    {"name": "education",
     "patterns": ["education", "university", "degree", "study", "school", "academic",
                  "qualification", "college", "graduation", "cgpa", "gpa"]},
    {"name": "contact",
     "patterns": ["contact", "reach", "email", "phone", "hire", "get in touch"]},
    {"name": "about",
     "patterns": ["about", "who", "person", "background", "tell me", "introduce"]},
    {"name": "availability",
     "patterns": ["available", "freelance", "work together", "collaboration", "opportunity"]},
    {"name": "philosophy",
     "patterns": ["philosophy", "work style", "approach", "how do you work"]},
    {"name": "project_details",
     "patterns": ["more details", "tell me more about", "specifics"]},
    {"name": "who_questions", "question_type": "who",
     "patterns": ["who is", "who are", "who was", "who were", "who does", "who do",
                  "who has", "who have"]},
    {"name": "what_questions", "question_type": "what",
     "patterns": ["what is", "what are", "what was", "what were", "what does", "what do",
                  "what has", "what have", "what can", "what should"]},
    {"name": "where_questions", "question_type": "where",
     "patterns": ["where is", "where are", "where was", "where were", "where does",
                  "where do", "where from", "location"]},
    {"name": "when_questions", "question_type": "when",
     "patterns": ["when is", "when are", "when was", "when were", "when does", "when do",
                  "when did", "when will", "since when", "how long"]},
    {"name": "how_questions", "question_type": "how",
     "patterns": ["how is", "how are", "how was", "how were", "how does", "how do",
                  "how did", "how will", "how can", "how to", "how much", "how many"]},
    {"name": "why_questions", "question_type": "why",
     "patterns": ["why is", "why are", "why was", "why were", "why does", "why do",
                  "why did", "why will"]},
    {"name": "follow_up",
     "patterns": ["more", "details", "tell me more", "explain", "elaborate", "expand",
                  "additional", "further"]},
    {"name": "comparison",
     "patterns": ["vs", "versus", "compare", "comparison", "better", "best", "prefer",
                  "favorite", "strength", "weakness"]},
    {"name": "testimonials",
     "patterns": ["testimonial", "recommendation", "review", "feedback", "said about",
                  "think of", "opinion"]},
    {"name": "certifications",
     "patterns": ["certification", "certificate", "achievement", "award", "recognition",
                  "accomplishment", "qualification"]},
    {"name": "social_media",
     "patterns": ["social", "linkedin", "github", "twitter", "facebook", "instagram",
                  "online", "profile", "portfolio"]},
    {"name": "age_personal",
     "patterns": ["age", "old", "born", "birthday", "birth", "young", "years old"]},
    {"name": "interests",
     "patterns": ["hobby", "interest", "like", "enjoy", "passion", "free time",
                  "outside work"]},
    {"name": "future_plans",
     "patterns": ["future", "plan", "goal", "aspire", "want to", "looking forward",
                  "next", "career goal"]},
    {"name": "intelligent_fallback", "patterns": [CATCH_ALL_PATTERN], "priority": 0,
     "catch_all": True},
]


# --------------------------------------------------------------------------- #
#  Catalog                                                                     #
# --------------------------------------------------------------------------- #

@dataclass(frozen=True)
class Intent:
    name:          str
    patterns:      tuple
    handler:       Handler
    priority:      float = 1.0
    catch_all:     bool = False
    question_type: Optional[str] = None
    # Every word of every phrase, duplicates kept (each one scores)
    pattern_words: tuple = field(default=(), compare=False)


@dataclass(frozen=True)
class MatchResult:
    intent: Intent
    score:  float
    fallback: bool = False


class IntentCatalog:
    """Ordered, validated collection of intents bound to their handlers."""

    def __init__(self, intents: list):
        self._intents = tuple(intents)
        self._by_name = {intent.name: intent for intent in self._intents}
        self.catch_all = next(i for i in self._intents if i.catch_all)

    @classmethod
    def build(cls, handlers: dict, definitions: Optional[list] = None) -> "IntentCatalog":
        """
        Bind *definitions* to *handlers* (intent name → callable).

        Raises IntentCatalogError on duplicate names, a missing or unused
        handler, an intent without patterns, or anything other than exactly
        one catch-all intent.
        """
        definitions = INTENT_DEFINITIONS if definitions is None else definitions
        intents = []
        seen = set()

        for entry in definitions:
            name = entry["name"]
            if name in seen:
                raise IntentCatalogError(f"Duplicate intent name: {name!r}")
            seen.add(name)

            handler = handlers.get(name)
            if handler is None:
                raise IntentCatalogError(f"No handler registered for intent {name!r}")

            patterns = tuple(p.strip().lower() for p in entry.get("patterns", ()) if p.strip())
            if not patterns:
                raise IntentCatalogError(f"Intent {name!r} has no trigger phrases")

            catch_all = bool(entry.get("catch_all", False))
            words = () if catch_all else tuple(w for p in patterns for w in p.split())
            intents.append(Intent(
                name=name,
                patterns=patterns,
                handler=handler,
                priority=float(entry.get("priority", 1.0)),
                catch_all=catch_all,
                question_type=entry.get("question_type"),
                pattern_words=words,
            ))

        orphans = set(handlers) - seen
        if orphans:
            raise IntentCatalogError(f"Handlers without an intent: {sorted(orphans)}")

        catch_alls = [i.name for i in intents if i.catch_all]
        if len(catch_alls) != 1:
            raise IntentCatalogError(
                f"Exactly one catch-all intent is required, found {len(catch_alls)}"
            )

        logger.debug("Intent catalog built with %d intents", len(intents))
        return cls(intents)

    def __iter__(self):
        return iter(self._intents)

    def __len__(self) -> int:
        return len(self._intents)

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def get(self, name: str) -> Intent:
        return self._by_name[name]

    @property
    def names(self) -> list:
        return [i.name for i in self._intents]


# --------------------------------------------------------------------------- #
#  Matcher                                                                     #
# --------------------------------------------------------------------------- #

class IntentMatcher:

    def __init__(self, catalog: IntentCatalog, settings: MatchSettings = DEFAULT_MATCH_SETTINGS):
        self.catalog = catalog
        self.settings = settings

    def score(self, text: str, intent: Intent,
              memory: Optional[ConversationMemory] = None) -> float:
        """Normalised score (0.0 .. 1.0) of *intent* for already-normalised *text*."""
        s = self.settings
        if intent.catch_all:
            return s.min_score

        cleaned = clean_text(text)
        words = tokenize(cleaned)
        if not words:
            return 0.0

        raw = 0.0
        for phrase in intent.patterns:
            if phrase in cleaned:
                raw += s.phrase_hit
                if " " in phrase:
                    raw += s.multi_word_bonus
            elif " " not in phrase:
                sim = similarity(cleaned, phrase)
                if sim > s.phrase_fuzzy_threshold:
                    raw += s.phrase_fuzzy_weight * sim

        for word in words:
            for pattern_word in intent.pattern_words:
                sim = similarity(word, pattern_word)
                if sim > s.word_fuzzy_threshold:
                    raw += s.word_fuzzy_weight * sim

        if intent.name == s.skills_intent and any(k in cleaned for k in s.skills_keywords):
            raw += s.skills_keyword_bonus

        if memory is not None:
            if memory.current_topic and intent.name == memory.current_topic:
                raw += s.topic_bonus
            last = memory.last_question
            if last is not None and last.type and intent.question_type == last.type:
                raw += s.question_type_bonus

        raw *= intent.priority

        count = len(intent.patterns)
        divisor = math.sqrt(count) if count > s.lenient_pattern_count else count
        normalised = min(raw / divisor, s.max_score)

        return max(normalised, self._direct_score(cleaned, intent))

    def _direct_score(self, cleaned: str, intent: Intent) -> float:
        best = max(similarity(cleaned, phrase) for phrase in intent.patterns)
        return best if best >= self.settings.phrase_fuzzy_threshold else 0.0

    def scores(self, text: str, memory: Optional[ConversationMemory] = None) -> dict:
        """Scores of every non-catch-all intent, in catalog order."""
        return {
            intent.name: self.score(text, intent, memory)
            for intent in self.catalog
            if not intent.catch_all
        }

    def match(self, text: str,
              memory: Optional[ConversationMemory] = None) -> Optional[MatchResult]:
        """
        Best intent for *text* or None when nothing clears the threshold.

        Ties keep the intent that comes first in the catalog.
        """
        best: Optional[Intent] = None
        best_score = 0.0
        for intent in self.catalog:
            if intent.catch_all:
                continue
            score = self.score(text, intent, memory)
            if score > best_score:
                best, best_score = intent, score

        if best is None or best_score <= self.settings.min_score:
            logger.debug("No intent above %.2f for %r", self.settings.min_score, text)
            return None

        logger.debug("Matched intent %s (%.3f) for %r", best.name, best_score, text)
        return MatchResult(intent=best, score=best_score)

    def select(self, text: str,
               memory: Optional[ConversationMemory] = None) -> MatchResult:
        """Like match(), but returns the catch-all intent instead of None."""
        result = self.match(text, memory)
        if result is not None:
            return result
        return MatchResult(
            intent=self.catalog.catch_all,
            score=self.settings.min_score,
            fallback=True,
        )
