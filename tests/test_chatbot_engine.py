"""Tests for chat sessions: the reply pipeline, streaming and the session registry."""

import random
from datetime import datetime

import pytest

from chatbot_engine import (
    APOLOGY_MESSAGE,
    QUICK_ACTIONS,
    THINKING_DELAY,
    ChatSession,
    SessionRegistry,
)
from conversation_memory import HISTORY_LIMIT
from response_engine import ResponseGenerator


def fixed_clock():
    return datetime(2025, 10, 19, 10, 0)


class TestReplyPipeline:

    def test_quick_actions_reach_their_topics(self, chat):
        expected = {
            "Skills":     "**Programming Languages:**",
            "Experience": "professional experience",
            "Projects":   "has worked on several impressive projects",
            "Education":  "**Education Background:**",
            "Contact":    "tariq_muzamil@live.com",
        }
        for label, message in QUICK_ACTIONS:
            assert expected[label] in chat.generate_reply(message), label

    def test_entity_is_remembered(self, chat):
        reply = chat.generate_reply("tell me about django")
        assert "Django" in reply
        assert chat.memory.mentioned_entities == {"django"}
        assert chat.memory.current_topic == "skills"

    def test_follow_up_uses_previous_topic(self, chat):
        first = chat.generate_reply("tell me about your projects")
        assert first.startswith("Tariq has worked on several impressive projects:")
        assert chat.memory.current_topic == "projects"
        assert "Project Highlights" in chat.generate_reply("tell me more")
        assert chat.last_intent == "follow_up"

    def test_question_is_recorded(self, chat):
        chat.generate_reply("what are your main skills")
        record = chat.memory.last_question
        assert record.type == "what"
        assert record.intent == "skills"
        assert record.message == "what are your main skills"

    def test_history_is_bounded(self, chat):
        for _ in range(HISTORY_LIMIT + 3):
            chat.generate_reply("hello")
        assert len(chat.memory.question_history) == HISTORY_LIMIT

    def test_typo_is_corrected_before_matching(self, chat):
        assert "**Programming Languages:**" in chat.generate_reply("What are your main skils?")

    def test_unmatched_input_gets_fallback(self, chat):
        reply = chat.generate_reply("xyzzy qwerty")
        assert chat.last_intent == "intelligent_fallback"
        assert "• " in reply

    def test_comparison_is_reached_by_a_bare_comparison_word(self, chat):
        assert "best tool for each project" in chat.generate_reply("compare")
        assert chat.last_intent == "comparison"

        # "vs" alone is diluted by the other nine phrases; the technology wins
        reply = chat.generate_reply("python vs java")
        assert chat.last_intent == "intelligent_fallback"
        assert "extensive Python experience" in reply

    def test_empty_input_gets_generic_prompt(self, chat, kb):
        reply = chat.generate_reply("")
        prompts = [
            p.format(name=kb.personal.name, first="Tariq", title=kb.personal.title)
            for p in ResponseGenerator._GENERIC_PROMPTS
        ]
        assert any(reply.startswith(p) for p in prompts)

    def test_failing_handler_falls_back(self, kb, monkeypatch):
        def boom(self, message):
            raise RuntimeError("handler bug")

        monkeypatch.setattr(ResponseGenerator, "skills", boom)
        chat = ChatSession(kb, rng=random.Random(7), clock=fixed_clock, simulate_latency=False)

        reply = chat.generate_reply("what are your main skills")
        assert "What technologies do you work with?" in reply
        assert reply != APOLOGY_MESSAGE

    def test_pipeline_failure_apologises(self, chat, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("matcher bug")

        monkeypatch.setattr(chat.matcher, "select", boom)
        assert chat.generate_reply("hello") == APOLOGY_MESSAGE


class TestConversation:

    def test_respond_records_both_sides(self, chat):
        reply = chat.respond("How can I contact you?")
        assert reply.role == "assistant"
        assert [m.role for m in chat.messages] == ["user", "assistant"]
        assert chat.messages[0].content == "How can I contact you?"

    def test_welcome_names_the_owner(self, chat):
        assert chat.welcome_message.startswith("👋 Hi! I'm Tariq's portfolio assistant.")

    def test_transcript_escapes_user_text(self, chat):
        chat.respond("<b>hi</b>")
        user, assistant = chat.transcript()
        assert user["html"] == "&lt;b&gt;hi&lt;/b&gt;"
        assert user["time"] == "10:00"
        assert assistant["html"].startswith("<")

    def test_reset_clears_everything(self, chat):
        chat.respond("tell me about your projects")
        chat.reset()
        assert chat.messages == []
        assert chat.memory.current_topic is None
        assert chat.memory.question_history == ()
        assert chat.last_intent is None

    def test_latency_is_simulated(self, kb):
        pauses = []
        chat = ChatSession(kb, rng=random.Random(7), clock=fixed_clock,
                           sleep=pauses.append, simulate_latency=True)
        chat.respond("hello")
        assert len(pauses) == 1
        assert THINKING_DELAY[0] <= pauses[0] <= THINKING_DELAY[1]

    def test_no_latency_when_disabled(self, kb):
        pauses = []
        chat = ChatSession(kb, clock=fixed_clock, sleep=pauses.append, simulate_latency=False)
        chat.respond("hello")
        assert pauses == []


class TestStreaming:

    def test_stream_yields_growing_prefixes(self, chat):
        chunks = list(chat.stream("how are you"))
        full = chunks[-1]
        assert full.startswith("I'm doing great")
        assert len(chunks) == len(full.split(" "))
        for shorter, longer in zip(chunks, chunks[1:]):
            assert longer.startswith(shorter)
        assert [m.role for m in chat.messages] == ["user", "assistant"]
        assert chat.messages[-1].content == full

    def test_newer_request_cancels_stream(self, chat):
        stream = chat.stream("what are your main skills")
        next(stream)
        chat.respond("hello")

        assert list(stream) == []
        assert [m.role for m in chat.messages] == ["user", "user", "assistant"]

    def test_cancelled_stream_keeps_its_turn_in_memory(self, chat):
        stream = chat.stream("tell me about your projects")
        next(stream)
        chat.respond("what are your main skills")

        assert list(stream) == []
        assert chat.memory.current_topic == "skills"
        assert [r.message for r in chat.memory.question_history] == [
            "tell me about your projects",
            "what are your main skills",
        ]

    def test_reset_cancels_stream(self, chat):
        stream = chat.stream("what are your main skills")
        next(stream)
        chat.reset()

        assert list(stream) == []
        assert chat.messages == []


class TestSessionRegistry:

    def test_same_id_same_session(self):
        registry = SessionRegistry(lambda sid: object())
        assert registry.get("a") is registry.get("a")
        assert "a" in registry
        assert len(registry) == 1

    def test_least_recently_used_is_evicted(self):
        registry = SessionRegistry(lambda sid: object(), max_sessions=2)
        a = registry.get("a")
        registry.get("b")
        assert registry.get("a") is a
        registry.get("c")

        assert "b" not in registry
        assert "a" in registry and "c" in registry
        assert len(registry) == 2

    def test_discard(self):
        registry = SessionRegistry(lambda sid: object())
        registry.get("a")
        registry.discard("a")
        registry.discard("missing")
        assert "a" not in registry

    @pytest.mark.parametrize("limit", [0, -3])
    def test_limit_is_at_least_one(self, limit):
        registry = SessionRegistry(lambda sid: object(), max_sessions=limit)
        registry.get("a")
        assert len(registry) == 1
