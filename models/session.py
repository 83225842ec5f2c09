"""
Session schemas — the per-user state blob and the local user directory.
"""

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from models.quests import Quest, utcnow


DEFAULT_STATS: Dict[str, int] = {
    "Strength": 40,
    "Agility": 45,
    "Intelligence": 65,
    "Endurance": 50,
    "Perception": 55,
}
STAT_CAP = 100
HISTORY_LIMIT = 200


def default_stats() -> Dict[str, int]:
    return dict(DEFAULT_STATS)


class HistoryEntry(BaseModel):
    """Append-only log line. Rewards are signed (penalties are negative)."""

    id: str
    title: str
    reward: int
    at: datetime = Field(default_factory=utcnow)

    model_config = {"frozen": True}


class ProgressionState(BaseModel):
    """Experience banked toward the current level, plus unspent attribute points."""

    exp: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    unspent: int = Field(default=0, ge=0)

    model_config = {"frozen": True}


class SessionState(BaseModel):
    """Everything a logged-in user owns. Persisted as one JSON blob."""

    quests: List[Quest] = Field(default_factory=list)
    history: List[HistoryEntry] = Field(default_factory=list)
    stats: Dict[str, int] = Field(default_factory=default_stats)
    exp: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    unspent: int = Field(default=0, ge=0)
    last_generated_at: Optional[date] = None

    model_config = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}

    @field_validator("history")
    @classmethod
    def cap_history(cls, v):
        return list(v)[:HISTORY_LIMIT]

    @property
    def progression(self) -> ProgressionState:
        return ProgressionState(exp=self.exp, level=self.level, unspent=self.unspent)

    def with_progression(self, progression: ProgressionState) -> "SessionState":
        return self.model_copy(update={
            "exp": progression.exp,
            "level": progression.level,
            "unspent": progression.unspent,
        })

    def find_quest(self, quest_id: str) -> Optional[Quest]:
        for quest in self.quests:
            if quest.id == quest_id:
                return quest
        return None

    @property
    def active_quests(self) -> List[Quest]:
        return [q for q in self.quests if q.is_active]

    def to_record(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class UserProfile(BaseModel):
    """Snapshot of progression kept in the user directory."""

    stats: Dict[str, int] = Field(default_factory=default_stats)
    exp: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    unspent: int = Field(default=0, ge=0)


class UserRecord(BaseModel):
    """One registered local account, keyed by normalized email."""

    email: str
    password: str  # base64-obscured, not a hash
    profile: UserProfile = Field(default_factory=UserProfile)

    model_config = {"extra": "allow"}
