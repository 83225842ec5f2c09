"""
Quest schemas — generated and hand-made study quests, plus the rarity table entry.

Quests are frozen. Every lifecycle transition (complete, claim, sweep flags)
produces a copy, so a quest seen by one caller never changes under it.
"""

from enum import Enum
from datetime import datetime, timezone
from typing import Any, Optional, Tuple

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator
from pydantic.alias_generators import to_camel


SUBJECTS = ("Math", "Coding", "Reading", "Systems", "Soft Skills")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AlertStage(str, Enum):
    """Reminder/penalty lifecycle of a single quest.

    Transitions only move forward: NOT_DUE → REMINDED → PENALIZED,
    or NOT_DUE → PENALIZED_UNREMINDED when the reminder window was missed.
    Both penalized stages are final.
    """

    NOT_DUE = "not_due"
    REMINDED = "reminded"
    PENALIZED = "penalized"
    PENALIZED_UNREMINDED = "penalized_unreminded"

    @property
    def rank(self) -> int:
        return _STAGE_RANK[self]

    @property
    def reminded(self) -> bool:
        return self in (AlertStage.REMINDED, AlertStage.PENALIZED)

    @property
    def penalized(self) -> bool:
        return self in (AlertStage.PENALIZED, AlertStage.PENALIZED_UNREMINDED)

    def advance(self, target: "AlertStage") -> "AlertStage":
        """Return the stage reached by moving toward target, never backwards."""
        if target.rank <= self.rank:
            return self
        if target.penalized:
            return AlertStage.PENALIZED if self.reminded else AlertStage.PENALIZED_UNREMINDED
        return target

    @classmethod
    def from_flags(cls, reminded: bool, penalized: bool) -> "AlertStage":
        if penalized:
            return cls.PENALIZED if reminded else cls.PENALIZED_UNREMINDED
        return cls.REMINDED if reminded else cls.NOT_DUE


_STAGE_RANK = {
    AlertStage.NOT_DUE: 0,
    AlertStage.REMINDED: 1,
    AlertStage.PENALIZED: 2,
    AlertStage.PENALIZED_UNREMINDED: 2,
}


class RarityTier(BaseModel):
    """One row of the static rarity table."""

    id: str
    weight: int = Field(ge=0)
    reward_range: Tuple[int, int]

    @field_validator("reward_range")
    @classmethod
    def validate_range(cls, v):
        low, high = v
        if low > high:
            return (high, low)
        return v

    model_config = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}


class Quest(BaseModel):
    """Schema for a Quest.

    The JSON record keeps the ``reminderNotified`` / ``penaltyApplied``
    booleans; internally both are derived from ``alert_stage``.
    """

    id: str
    title: str
    description: str = ""
    subject: str = "Soft Skills"
    rarity: str = "Common"
    reward_exp: int = Field(gt=0)
    est_mins: int = Field(gt=0)
    repeat: bool = True
    completed: bool = False
    pending_complete: bool = False
    alert_stage: AlertStage = Field(default=AlertStage.NOT_DUE, exclude=True)
    created_at: datetime = Field(default_factory=utcnow)
    due_at: Optional[datetime] = None

    model_config = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}

    @model_validator(mode="before")
    @classmethod
    def fold_alert_flags(cls, data: Any) -> Any:
        """Turn the stored boolean flags back into an alert stage."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        reminded = bool(data.pop("reminderNotified", data.pop("reminder_notified", False)))
        penalized = bool(data.pop("penaltyApplied", data.pop("penalty_applied", False)))
        if "alertStage" not in data and "alert_stage" not in data:
            data["alert_stage"] = AlertStage.from_flags(reminded, penalized)
        return data

    @field_validator("created_at", "due_at")
    @classmethod
    def ensure_aware(cls, v):
        # Naive timestamps are taken to be UTC
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @computed_field(alias="reminderNotified")
    @property
    def reminder_notified(self) -> bool:
        return self.alert_stage.reminded

    @computed_field(alias="penaltyApplied")
    @property
    def penalty_applied(self) -> bool:
        return self.alert_stage.penalized

    @property
    def is_active(self) -> bool:
        return not self.completed

    def with_stage(self, target: AlertStage) -> "Quest":
        """Copy of this quest moved forward to ``target`` (never backwards)."""
        return self.model_copy(update={"alert_stage": self.alert_stage.advance(target)})

    def to_record(self) -> dict:
        """JSON-ready dict in the persisted camelCase shape."""
        return self.model_dump(mode="json", by_alias=True)


class QuestDraft(BaseModel):
    """User input for a hand-made quest. Validated by the quest board."""

    title: str = ""
    subject: str = "Coding"
    rarity: str = "Common"
    reward_exp: int = 40
    due_at: Optional[datetime] = None
