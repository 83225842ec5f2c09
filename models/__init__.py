"""
Pydantic v2 data models — the contract for all quest and session state.

Everything read back from the session store passes through these models.
If validation fails, the caller falls back to a default state.
"""

from models.quests import AlertStage, Quest, QuestDraft, RarityTier, SUBJECTS
from models.notifications import EventType, NotificationEvent
from models.session import (
    DEFAULT_STATS,
    HISTORY_LIMIT,
    STAT_CAP,
    HistoryEntry,
    ProgressionState,
    SessionState,
    UserProfile,
    UserRecord,
)

__all__ = [
    "AlertStage",
    "Quest",
    "QuestDraft",
    "RarityTier",
    "SUBJECTS",
    "EventType",
    "NotificationEvent",
    "DEFAULT_STATS",
    "HISTORY_LIMIT",
    "STAT_CAP",
    "HistoryEntry",
    "ProgressionState",
    "SessionState",
    "UserProfile",
    "UserRecord",
]
