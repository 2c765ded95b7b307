"""
chatbot_engine.py  –  Portfolio Assistant chat sessions
=======================================================
Runs one visitor's conversation: message history, intent matching, reply
generation and the simulated "thinking" / "typing" delays.

Reply pipeline:
  1. normalize the message (lower-case, typo table)
  2. pick the best intent  (catch-all when nothing clears the threshold)
  3. run its handler       (fallback handler if it raises)
  4. refresh remembered entities, record the question
  5. anything still failing → APOLOGY_MESSAGE

Streaming policy: cancel and replace.  A newer respond/stream/reset call on the
same session stops the running stream and its partial reply is never stored.
"""

import logging
import random
import threading
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from conversation_memory import ConversationMemory, QuestionRecord
from intent_engine import DEFAULT_MATCH_SETTINGS, IntentCatalog, IntentMatcher, MatchSettings
from knowledge_base import KnowledgeRecord, first_name
from markdown_renderer import escape_user_text, render_markdown
from response_engine import ResponseGenerator
from text_normalizer import normalize, question_type

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════
#  FIXED TEXTS
# ═══════════════════════════════════════════════════════════════════════════

APOLOGY_MESSAGE = (
    "Sorry, something went wrong while I was thinking about that. 🙏 "
    "Could you try asking again?"
)

WELCOME_MESSAGE = (
    "👋 Hi! I'm {first}'s portfolio assistant.\n\n"
    "Ask me about skills, experience, projects, education, or how to get in touch."
)

# (button label, message sent)
QUICK_ACTIONS = [
    ("Skills",     "What are your main skills?"),
    ("Experience", "Tell me about your experience"),
    ("Projects",   "What projects have you built?"),
    ("Education",  "What is your educational background?"),
    ("Contact",    "How can I contact you?"),
]

# Simulated latency, seconds
THINKING_DELAY = (0.8, 2.0)
WORD_DELAY = (0.02, 0.07)


@dataclass
class Message:
    role:      str                  # "user" | "assistant"
    content:   str
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        html = render_markdown(self.content) if self.role == "assistant" else escape_user_text(self.content)
        return {
            "role":    self.role,
            "content": self.content,
            "html":    html,
            "time":    self.timestamp.strftime("%H:%M"),
        }


# ═══════════════════════════════════════════════════════════════════════════
#  SESSION
# ═══════════════════════════════════════════════════════════════════════════

class ChatSession:
    """
    One visitor's conversation.  Not thread-safe: a session is driven by a
    single visitor, one request at a time.
    """

    def __init__(self, kb: KnowledgeRecord,
                 session_id: Optional[str] = None,
                 settings: MatchSettings = DEFAULT_MATCH_SETTINGS,
                 rng: Optional[random.Random] = None,
                 clock: Optional[Callable[[], datetime]] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 simulate_latency: bool = True):
        self.id = session_id or uuid.uuid4().hex
        self.kb = kb
        self.rng = rng or random.Random()
        self.clock = clock or datetime.now
        self.sleep = sleep
        self.simulate_latency = simulate_latency

        self.memory = ConversationMemory()
        self.generator = ResponseGenerator(kb, self.memory, rng=self.rng, clock=self.clock)
        self.matcher = IntentMatcher(IntentCatalog.build(self.generator.handlers()), settings)

        self.messages: list = []
        self.last_intent: Optional[str] = None
        self._stream_id = 0

    @property
    def welcome_message(self) -> str:
        return WELCOME_MESSAGE.format(first=first_name(self.kb))

    # ── Reply pipeline ──────────────────────────────────────────────────────

    def generate_reply(self, message: str) -> str:
        """Reply text for *message*.  Never raises."""
        try:
            text = normalize(message)
            result = self.matcher.select(text, self.memory)
            intent = result.intent

            try:
                reply = intent.handler(text)
            except Exception:
                logger.exception("Handler for intent %s failed, using fallback", intent.name)
                reply = self.generator.fallback(text)

            entities = tuple(e.value for e in self.generator.extract_entities(text))
            self.memory.replace_entities(entities)
            self.memory.record_question(QuestionRecord(
                type=intent.question_type or question_type(text),
                message=text,
                timestamp=self.clock(),
                intent=intent.name,
                entities=entities,
            ))
            self.last_intent = intent.name
            logger.debug("Session %s: intent=%s score=%.3f", self.id, intent.name, result.score)
            return reply

        except Exception:
            logger.exception("Reply generation failed for session %s", self.id)
            return APOLOGY_MESSAGE

    # ── Conversation ────────────────────────────────────────────────────────

    def respond(self, message: str) -> Message:
        """Record *message*, think, and record + return the assistant reply."""
        self._cancel_streams()
        self._add("user", message)
        self._pause(THINKING_DELAY)
        return self._add("assistant", self.generate_reply(message))

    def stream(self, message: str):
        """
        Yield the reply word by word as progressively longer prefixes.

        The last value yielded is the full reply, which is then stored.  When a
        newer respond/stream/reset happens on this session the generator stops
        early and stores nothing in the transcript.  Memory keeps the turn: the
        reply was already generated and the newer turn builds on it.
        """
        stream_id = self._cancel_streams()
        self._add("user", message)
        self._pause(THINKING_DELAY)
        if stream_id != self._stream_id:
            return

        reply = self.generate_reply(message)
        shown = ""
        for i, word in enumerate(reply.split(" ")):
            if stream_id != self._stream_id:
                logger.info("Session %s: stream %d cancelled", self.id, stream_id)
                return
            shown = word if i == 0 else shown + " " + word
            yield shown
            self._pause(WORD_DELAY)

        if stream_id == self._stream_id:
            self._add("assistant", reply)

    def reset(self) -> None:
        """Restart the chat: history, memory and any running stream."""
        self._cancel_streams()
        self.messages.clear()
        self.memory.reset()
        self.last_intent = None
        logger.info("Session %s restarted", self.id)

    def transcript(self) -> list:
        return [m.to_dict() for m in self.messages]

    # ── Internals ───────────────────────────────────────────────────────────

    def _cancel_streams(self) -> int:
        self._stream_id += 1
        return self._stream_id

    def _add(self, role: str, content: str) -> Message:
        msg = Message(role=role, content=content, timestamp=self.clock())
        self.messages.append(msg)
        return msg

    def _pause(self, bounds: tuple) -> None:
        if self.simulate_latency:
            self.sleep(self.rng.uniform(*bounds))


# ═══════════════════════════════════════════════════════════════════════════
#  REGISTRY
# ═══════════════════════════════════════════════════════════════════════════

class SessionRegistry:
    """
    Chat sessions by id, least recently used evicted beyond *max_sessions*.
    Shared by the server's request threads, so the map is lock-protected.
    """

    def __init__(self, factory: Callable[[str], ChatSession], max_sessions: int = 500):
        self._factory = factory
        self._sessions: OrderedDict = OrderedDict()
        self._lock = threading.Lock()
        self.max_sessions = max(1, max_sessions)

    def get(self, session_id: str) -> ChatSession:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                self._sessions.move_to_end(session_id)
                return session

            session = self._factory(session_id)
            self._sessions[session_id] = session
            while len(self._sessions) > self.max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.info("Evicted idle chat session %s", evicted)
            return session

    def discard(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
