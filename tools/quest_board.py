"""
QuestBoard — Pure state transitions on a user's SessionState.

Every operation takes the current state and returns ``(next_state, events)``
where ``events`` is the list of NotificationEvents the change produced.
Nothing here touches storage, timers, or the notification queue; the
QuestSession applies results atomically and handles the I/O.
"""

import logging
from datetime import date, datetime
from typing import Callable, List, NamedTuple, Optional, Tuple

from models.notifications import EventType, NotificationEvent
from models.quests import Quest, QuestDraft, SUBJECTS, utcnow
from models.session import HISTORY_LIMIT, STAT_CAP, HistoryEntry, SessionState
from tools.errors import QuestNotFoundError, QuestValidationError
from tools.progression import apply_to_state
from tools.quest_generator import estimate_minutes, generate_quests, new_quest_id
from tools.rarity_table import RARITY_IDS

logger = logging.getLogger("QuestBoard")

DAILY_QUEST_COUNT = 4

# Subject → stat that gets a permanent +1 when a quest of that subject is claimed
SUBJECT_STAT_BONUS = {
    "Coding": "Intelligence",
    "Math": "Perception",
}


class ClaimResult(NamedTuple):
    state: SessionState
    points_gained: int
    levels_gained: int


def announce(quests: List[Quest], event_type: EventType = EventType.NEW) -> List[NotificationEvent]:
    return [NotificationEvent.from_quest(q, event_type) for q in quests]


def append_history(history: List[HistoryEntry], entry: HistoryEntry) -> List[HistoryEntry]:
    """Newest first, oldest entries evicted past HISTORY_LIMIT."""
    return ([entry] + list(history))[:HISTORY_LIMIT]


def replace_quest(state: SessionState, quest: Quest) -> SessionState:
    quests = [quest if q.id == quest.id else q for q in state.quests]
    return state.model_copy(update={"quests": quests})


def _require_quest(state: SessionState, quest_id: str) -> Quest:
    quest = state.find_quest(quest_id)
    if quest is None:
        raise QuestNotFoundError(f"No quest with id {quest_id}")
    return quest


# ------------------------------------------------------------------
# Generation
# ------------------------------------------------------------------

def generate_into(
    state: SessionState,
    count: int = 3,
    subject: Optional[str] = None,
    rng=None,
    clock: Callable[[], datetime] = utcnow,
) -> Tuple[SessionState, List[NotificationEvent]]:
    """Prepend freshly generated quests and announce each one."""
    fresh = generate_quests(count, preferred_subject=subject, rng=rng, clock=clock)
    if not fresh:
        return state, []
    new_state = state.model_copy(update={"quests": fresh + list(state.quests)})
    return new_state, announce(fresh)


def ensure_daily_quests(
    state: SessionState,
    today: date,
    count: int = DAILY_QUEST_COUNT,
    rng=None,
    clock: Callable[[], datetime] = utcnow,
) -> Tuple[SessionState, List[NotificationEvent]]:
    """Generate the daily batch unless it already ran for ``today``."""
    if state.last_generated_at == today:
        return state, []
    new_state, events = generate_into(state, count=count, rng=rng, clock=clock)
    logger.info(f"Daily quests generated for {today.isoformat()}")
    return new_state.model_copy(update={"last_generated_at": today}), events


# ------------------------------------------------------------------
# Manual quests
# ------------------------------------------------------------------

def build_custom_quest(draft: QuestDraft, clock: Callable[[], datetime] = utcnow) -> Quest:
    """Validate a draft and turn it into a Quest. Raises QuestValidationError."""
    title = (draft.title or "").strip()
    if not title:
        raise QuestValidationError("Enter title")
    if draft.subject not in SUBJECTS:
        raise QuestValidationError(f"Unknown subject: {draft.subject}")
    if draft.rarity not in RARITY_IDS:
        raise QuestValidationError(f"Unknown rarity: {draft.rarity}")
    if draft.reward_exp <= 0:
        raise QuestValidationError("Reward EXP must be a positive number")

    return Quest(
        id=new_quest_id(),
        title=title,
        description=title,
        subject=draft.subject,
        rarity=draft.rarity,
        reward_exp=draft.reward_exp,
        est_mins=estimate_minutes(draft.reward_exp),
        repeat=True,
        created_at=clock(),
        due_at=draft.due_at,
    )


def add_custom_quest(
    state: SessionState,
    draft: QuestDraft,
    clock: Callable[[], datetime] = utcnow,
) -> Tuple[SessionState, List[NotificationEvent]]:
    quest = build_custom_quest(draft, clock=clock)
    new_state = state.model_copy(update={"quests": [quest] + list(state.quests)})
    logger.info(f"Custom quest added: {quest.title} (id={quest.id})")
    return new_state, announce([quest])


def remove_quest(state: SessionState, quest_id: str) -> SessionState:
    """Drop a quest. Unknown IDs leave the state unchanged."""
    quests = [q for q in state.quests if q.id != quest_id]
    return state.model_copy(update={"quests": quests})


def clear_quests(state: SessionState) -> SessionState:
    return state.model_copy(update={"quests": []})


# ------------------------------------------------------------------
# Completion: complete → (claim | undo)
# ------------------------------------------------------------------

def trigger_complete(state: SessionState, quest_id: str) -> Tuple[SessionState, List[NotificationEvent]]:
    """Mark a quest as pending completion and queue the claim popup.

    Completed or already-pending quests are left alone.
    """
    quest = _require_quest(state, quest_id)
    if quest.completed or quest.pending_complete:
        return state, []
    pending = quest.model_copy(update={"pending_complete": True})
    return replace_quest(state, pending), announce([pending], EventType.COMPLETE)


def claim_completion(state: SessionState, quest_id: str, clock: Callable[[], datetime] = utcnow) -> ClaimResult:
    """Commit a pending completion: bank the reward, log it, bump a stat."""
    quest = _require_quest(state, quest_id)
    if quest.completed or not quest.pending_complete:
        return ClaimResult(state, 0, 0)

    done = quest.model_copy(update={"pending_complete": False, "completed": True})
    new_state = replace_quest(state, done)

    progression, gain = apply_to_state(state.progression, quest.reward_exp)
    new_state = new_state.with_progression(progression)

    entry = HistoryEntry(id=quest.id, title=quest.title, reward=quest.reward_exp, at=clock())
    stats = dict(state.stats)
    stat = SUBJECT_STAT_BONUS.get(quest.subject)
    if stat:
        stats[stat] = min(STAT_CAP, stats.get(stat, 0) + 1)

    new_state = new_state.model_copy(update={
        "history": append_history(state.history, entry),
        "stats": stats,
    })
    logger.info(f"Quest claimed: {quest.title} (+{quest.reward_exp} EXP)")
    return ClaimResult(new_state, gain.points_gained, gain.levels_gained)


def undo_completion(state: SessionState, quest_id: str) -> SessionState:
    """Revert a pending completion. No experience or history change."""
    quest = state.find_quest(quest_id)
    if quest is None or not quest.pending_complete:
        return state
    return replace_quest(state, quest.model_copy(update={"pending_complete": False}))
