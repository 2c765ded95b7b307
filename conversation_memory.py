"""
conversation_memory.py
----------------------
Transient per-session state consulted by the matcher and the handlers.

  current_topic       last topic a handler settled on ("skills", "projects", ...)
  mentioned_entities  entities named in the latest message (cleared every turn)
  question_history    the most recent HISTORY_LIMIT questions, oldest evicted first

Nothing here is persisted; a new session starts with an empty memory.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

HISTORY_LIMIT = 5


@dataclass(frozen=True)
class QuestionRecord:
    type:      Optional[str]
    message:   str
    timestamp: datetime = field(default_factory=datetime.now)
    intent:    Optional[str] = None
    entities:  tuple = ()


class ConversationMemory:

    def __init__(self, history_limit: int = HISTORY_LIMIT):
        self.current_topic: Optional[str] = None
        self.mentioned_entities: set = set()
        self._history: deque = deque(maxlen=history_limit)

    @property
    def question_history(self) -> tuple:
        return tuple(self._history)

    @property
    def last_question(self) -> Optional[QuestionRecord]:
        return self._history[-1] if self._history else None

    def set_topic(self, topic: Optional[str]) -> None:
        self.current_topic = topic

    def record_question(self, record: QuestionRecord) -> None:
        self._history.append(record)

    def replace_entities(self, values: Iterable[str]) -> None:
        self.mentioned_entities.clear()
        self.mentioned_entities.update(values)

    def reset(self) -> None:
        self.current_topic = None
        self.mentioned_entities.clear()
        self._history.clear()
