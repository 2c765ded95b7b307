"""
Shared fixtures for the portfolio assistant tests.

Every chat object gets a seeded RNG and a frozen clock so replies that depend
on randomness or the date are reproducible.
"""

import os
import random
from datetime import datetime

import pytest

# Must be set before app.py is imported anywhere
os.environ.setdefault("CHAT_SIMULATE_LATENCY", "0")

from chatbot_engine import ChatSession
from conversation_memory import ConversationMemory
from intent_engine import IntentCatalog, IntentMatcher
from knowledge_base import load_knowledge_base
from response_engine import ResponseGenerator

FIXED_NOW = datetime(2025, 10, 19, 10, 0)


def fixed_clock():
    return FIXED_NOW


@pytest.fixture(scope="session")
def kb():
    """The bundled knowledge base."""
    return load_knowledge_base()


@pytest.fixture
def memory():
    return ConversationMemory()


@pytest.fixture
def generator(kb, memory):
    """Response generator with deterministic randomness and date."""
    return ResponseGenerator(kb, memory, rng=random.Random(7), clock=fixed_clock)


@pytest.fixture
def catalog(generator):
    return IntentCatalog.build(generator.handlers())


@pytest.fixture
def matcher(catalog):
    return IntentMatcher(catalog)


@pytest.fixture
def chat(kb):
    """Chat session without simulated latency."""
    return ChatSession(kb, rng=random.Random(7), clock=fixed_clock, simulate_latency=False)
