"""
Shared pytest fixtures for the LevelUp Academy test suite.

Clocks and random sources are pinned so generation and sweep tests are
deterministic. Async code is driven with asyncio.run() inside each test.
"""

import random
from datetime import datetime, timedelta, timezone

import pytest

from models.quests import Quest
from tools.session_store import MemoryStore, SessionStore


NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = NOW):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class BrokenStore:
    """Backend whose every read and write fails, like blocked storage."""

    def get(self, key):
        raise OSError("storage unavailable")

    def set(self, key, value):
        raise OSError("storage unavailable")


def make_quest(**overrides) -> Quest:
    """Quest with sensible defaults; override any field by name."""
    data = {
        "id": "q_test",
        "title": "Solve 10 algebra problems",
        "description": "Solve 10 algebra problems — focused math practice.",
        "subject": "Math",
        "rarity": "Common",
        "reward_exp": 40,
        "est_mins": 20,
        "created_at": NOW,
    }
    data.update(overrides)
    return Quest(**data)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def store(memory_store):
    return SessionStore(memory_store)


@pytest.fixture
def broken_store():
    return SessionStore(BrokenStore())
