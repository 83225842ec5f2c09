"""
Rarity Table — Static weighted tiers and weighted selection.

Each tier owns a probability weight and an inclusive reward range.
The table is never mutated at runtime.
"""

import random
import logging
from typing import Sequence

from models.quests import RarityTier

logger = logging.getLogger("RarityTable")

RARITIES: Sequence[RarityTier] = (
    RarityTier(id="Common", weight=60, reward_range=(20, 40)),
    RarityTier(id="Rare", weight=30, reward_range=(50, 80)),
    RarityTier(id="Epic", weight=10, reward_range=(100, 160)),
)

RARITY_IDS = tuple(r.id for r in RARITIES)


def highest_tier(table: Sequence[RarityTier] = RARITIES) -> RarityTier:
    """The rarest tier is the last row of the table."""
    return table[-1] if table else RARITIES[-1]


def get_tier(rarity_id: str, table: Sequence[RarityTier] = RARITIES) -> RarityTier:
    """Look up a tier by id, falling back to the first tier."""
    for tier in table:
        if tier.id == rarity_id:
            return tier
    return table[0] if table else RARITIES[0]


def pick_rarity(table: Sequence[RarityTier] = RARITIES, rng=None) -> RarityTier:
    """Weighted pick. Tier i wins with probability weight_i / total.

    Walks the table in order, so an earlier tier wins a tie on the
    cumulative boundary. An empty or zero-weight table yields the first tier.
    """
    rng = rng or random
    if not table:
        return RARITIES[0]
    total = sum(tier.weight for tier in table)
    if total <= 0:
        logger.debug("Rarity table has no weight, using first tier")
        return table[0]

    remainder = rng.randrange(total)
    for tier in table:
        if remainder < tier.weight:
            return tier
        remainder -= tier.weight
    return table[0]


def roll_reward(tier: RarityTier, rng=None) -> int:
    """Uniform integer inside the tier's reward range, both ends inclusive."""
    rng = rng or random
    low, high = tier.reward_range
    return rng.randint(low, high)
