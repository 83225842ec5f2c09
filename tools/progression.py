"""
Progression — Experience to level calculator.

Experience is banked toward the *current* level only. Gaining enough rolls
the remainder over into the next level (possibly several at once); losing
experience burns the bank down to zero but never removes a level.
Attribute points already granted are permanent.
"""

import math
import logging
from typing import NamedTuple, Tuple

from models.session import ProgressionState

logger = logging.getLogger("Progression")

BASE_THRESHOLD = 200
THRESHOLD_STEP = 50
POINTS_PER_LEVEL = 3


class ProgressionResult(NamedTuple):
    exp: int
    level: int
    points_gained: int

    @property
    def levels_gained(self) -> int:
        return self.points_gained // POINTS_PER_LEVEL


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (2.5 -> 3), unlike round()."""
    return int(math.floor(value + 0.5))


def threshold_for_level(level: int) -> int:
    """Experience needed to clear ``level``. Defaults to 200 if degenerate."""
    needed = BASE_THRESHOLD + (level - 1) * THRESHOLD_STEP
    if not math.isfinite(needed) or needed <= 0:
        return BASE_THRESHOLD
    return int(needed)


def apply_experience_delta(current_exp: int, current_level: int, delta: int) -> ProgressionResult:
    """Apply a signed experience change.

    Returns (new_exp, new_level, attribute_points_gained).

        >>> apply_experience_delta(190, 1, 50)
        ProgressionResult(exp=40, level=2, points_gained=3)
        >>> apply_experience_delta(0, 1, -9999)
        ProgressionResult(exp=0, level=1, points_gained=0)
    """
    exp = max(0, current_exp + delta)
    level = max(1, current_level)
    gained = 0

    needed = threshold_for_level(level)
    while exp >= needed:
        exp -= needed
        level += 1
        gained += POINTS_PER_LEVEL
        needed = threshold_for_level(level)

    if gained:
        logger.info(f"Level up: {current_level} -> {level} (+{gained} attribute points)")
    return ProgressionResult(exp=exp, level=level, points_gained=gained)


def apply_to_state(progression: ProgressionState, delta: int) -> Tuple[ProgressionState, ProgressionResult]:
    """Apply a delta to a ProgressionState.

    Returns (new_state, result). Gained points are added to ``unspent``.
    """
    result = apply_experience_delta(progression.exp, progression.level, delta)
    new_state = ProgressionState(
        exp=result.exp,
        level=result.level,
        unspent=progression.unspent + result.points_gained,
    )
    return new_state, result


def level_progress(exp: int, level: int) -> int:
    """Percent of the current level's threshold banked, clamped to 0..100."""
    needed = threshold_for_level(level)
    return max(0, min(100, round_half_up(exp / needed * 100)))
