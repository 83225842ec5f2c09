"""
Notification schemas — ephemeral popup events produced by quest lifecycle changes.
"""

from enum import Enum
from datetime import datetime
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from models.quests import Quest


class EventType(str, Enum):
    NEW = "new"
    REMINDER = "reminder"
    COMPLETE = "complete"
    PENALTY = "penalty"


EVENT_LABELS = {
    EventType.NEW: "New Quest",
    EventType.REMINDER: "Reminder",
    EventType.COMPLETE: "Quest Completed",
    EventType.PENALTY: "Penalty",
}


class NotificationEvent(BaseModel):
    """A queued popup. Never persisted."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    type: EventType
    quest_id: str
    title: str
    description: str = ""
    subject: str = ""
    rarity: str = ""
    reward_exp: int = 0  # Signed: penalties carry the negative amount
    est_mins: int = 0
    repeat: bool = False
    created_at: Optional[datetime] = None
    due_at: Optional[datetime] = None

    @classmethod
    def from_quest(
        cls, quest: Quest, event_type: EventType, reward_exp: Optional[int] = None
    ) -> "NotificationEvent":
        return cls(
            type=event_type,
            quest_id=quest.id,
            title=quest.title,
            description=quest.description,
            subject=quest.subject,
            rarity=quest.rarity,
            reward_exp=quest.reward_exp if reward_exp is None else reward_exp,
            est_mins=quest.est_mins,
            repeat=quest.repeat,
            created_at=quest.created_at,
            due_at=quest.due_at,
        )

    @property
    def needs_resolution(self) -> bool:
        """True for completion popups, which must be claimed or undone."""
        return self.type == EventType.COMPLETE

    @property
    def label(self) -> str:
        return EVENT_LABELS.get(self.type, "Notice")

    @property
    def reward_label(self) -> str:
        if self.reward_exp > 0:
            return f"+{self.reward_exp} EXP"
        return f"{self.reward_exp} EXP"

    def summary(self) -> str:
        return f"[{self.label}] {self.title} ({self.reward_label})"
