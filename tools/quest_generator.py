"""
Quest Generator — Offline procedural study quests.

Pure apart from the clock and the random source, both injectable so tests
can pin them down.
"""

import random
import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence
from uuid import uuid4

from models.quests import Quest, RarityTier, SUBJECTS, utcnow
from tools.progression import round_half_up
from tools.rarity_table import RARITIES, highest_tier, pick_rarity, roll_reward

logger = logging.getLogger("QuestGenerator")

TITLE_POOLS: Dict[str, Sequence[str]] = {
    "Math": (
        "Solve 10 algebra problems",
        "Practice integration problems",
        "Finish geometry sheet",
    ),
    "Coding": (
        "Build a small React component",
        "Solve 2 medium LeetCode problems",
        "Refactor a small module",
    ),
    "Reading": (
        "Read 10 pages of a textbook",
        "Summarize one research paper",
        "Read chapter & take notes",
    ),
    "Systems": (
        "Sketch an architecture for a feature",
        "Read a system design article",
        "Draw sequence diagrams",
    ),
    "Soft Skills": (
        "Practice flashcards",
        "Do 25 minutes focused study",
        "Plan next week study schedule",
    ),
}

MIN_EST_MINUTES = 10


def new_quest_id() -> str:
    return f"q_{uuid4().hex[:16]}"


def estimate_minutes(reward_exp: int) -> int:
    return max(MIN_EST_MINUTES, round_half_up(reward_exp / 2))


def describe(title: str, subject: str) -> str:
    return f"{title} — focused {subject.lower()} practice."


def generate_quests(
    count: int = 4,
    preferred_subject: Optional[str] = None,
    rng=None,
    clock: Callable[[], datetime] = utcnow,
    table: Sequence[RarityTier] = RARITIES,
) -> List[Quest]:
    """Generate ``count`` fresh quests.

    Args:
        count: Number of quests. Zero or negative returns an empty list.
        preferred_subject: Fix every quest to this subject instead of
            drawing one from SUBJECTS.
        rng: Object with randrange/randint/choice (defaults to ``random``).
        clock: Timestamp source for ``created_at``.
        table: Rarity tiers to draw from.
    """
    rng = rng or random
    rarest = highest_tier(table)
    quests: List[Quest] = []

    for _ in range(max(0, count)):
        subject = preferred_subject or rng.choice(SUBJECTS)
        tier = pick_rarity(table, rng=rng)
        pool = TITLE_POOLS.get(subject, TITLE_POOLS["Soft Skills"])
        title = rng.choice(pool)
        reward = roll_reward(tier, rng=rng)

        quests.append(Quest(
            id=new_quest_id(),
            title=title,
            description=describe(title, subject),
            subject=subject,
            rarity=tier.id,
            reward_exp=reward,
            est_mins=estimate_minutes(reward),
            repeat=tier.id != rarest.id,
            created_at=clock(),
        ))

    if quests:
        logger.info(f"Generated {len(quests)} quest(s): {[q.rarity for q in quests]}")
    return quests
