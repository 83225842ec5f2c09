"""
QuestSweep — Reminder and overdue-penalty evaluation for active quests.

Pure function of (state, now). The QuestSession runs it once when a session
starts and then on a fixed interval through the SessionScheduler.

Each quest's alert lifecycle only moves forward (see AlertStage), so running
the sweep again with the same clock produces no new events.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Tuple

from models.notifications import EventType, NotificationEvent
from models.quests import AlertStage, Quest
from models.session import HistoryEntry, SessionState
from tools.progression import apply_to_state, round_half_up
from tools.quest_board import append_history

logger = logging.getLogger("QuestSweep")

REMINDER_WINDOW = timedelta(seconds=60)
PENALTY_GRACE = timedelta(hours=24)
PENALTY_RATE = 0.3
PENALTY_PREFIX = "Penalty: "


def penalty_for(quest: Quest) -> int:
    return round_half_up(quest.reward_exp * PENALTY_RATE)


def reminder_due(quest: Quest, now: datetime) -> bool:
    """Due time lies in (now - 60s, now + 60s]."""
    if quest.due_at is None or quest.alert_stage != AlertStage.NOT_DUE:
        return False
    until_due = quest.due_at - now
    return -REMINDER_WINDOW < until_due <= REMINDER_WINDOW


def penalty_due(quest: Quest, now: datetime) -> bool:
    if quest.due_at is None or quest.alert_stage.penalized:
        return False
    return now - quest.due_at >= PENALTY_GRACE


def sweep(state: SessionState, now: datetime) -> Tuple[SessionState, List[NotificationEvent]]:
    """Scan active quests with a due time for reminders and penalties.

    Returns the next state and the events to enqueue, in quest order with a
    quest's reminder ahead of its penalty.
    """
    events: List[NotificationEvent] = []
    quests: List[Quest] = []
    progression = state.progression
    history = list(state.history)

    for quest in state.quests:
        if not quest.is_active or quest.due_at is None:
            quests.append(quest)
            continue

        if reminder_due(quest, now):
            quest = quest.with_stage(AlertStage.REMINDED)
            events.append(NotificationEvent.from_quest(quest, EventType.REMINDER))
            logger.info(f"Reminder: {quest.title} (id={quest.id})")

        if penalty_due(quest, now):
            penalty = penalty_for(quest)
            progression, _ = apply_to_state(progression, -penalty)
            history = append_history(history, HistoryEntry(
                id=quest.id,
                title=f"{PENALTY_PREFIX}{quest.title}",
                reward=-penalty,
                at=now,
            ))
            quest = quest.with_stage(AlertStage.PENALIZED)
            events.append(NotificationEvent.from_quest(quest, EventType.PENALTY, reward_exp=-penalty))
            logger.warning(f"Penalty applied: {quest.title} (-{penalty} EXP)")

        quests.append(quest)

    if not events:
        return state, []

    new_state = state.model_copy(update={"quests": quests, "history": history})
    return new_state.with_progression(progression), events
