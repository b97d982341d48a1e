# Hero level / experience rules
from __future__ import annotations

from fractions import Fraction
from math import ceil
from typing import Tuple

MAX_LEVEL = 8

_BASE_EXP = 100
_GROWTH = Fraction(6, 5)


def required_exp(level: int) -> int:
    """Experience needed to go from `level` to `level+1` (level starts at 1)."""
    level = max(1, int(level))
    return ceil(_BASE_EXP * _GROWTH ** (level - 1))


def apply_experience(level: int, experience: int, delta: int) -> Tuple[int, int]:
    """
    Return (new_level, new_experience) after adding `delta` experience.

    `experience` is progress inside the current level. Positive deltas roll
    over as many thresholds as they cover and stop at MAX_LEVEL, where any
    leftover is dropped. Negative deltas only eat into the current level's
    progress (floored at 0); a level is never lost.
    """
    level = max(1, int(level))
    experience = max(0, int(experience))
    delta = int(delta)

    if delta < 0 or level >= MAX_LEVEL:
        if delta < 0:
            experience = max(0, experience + delta)
        return level, experience

    while True:
        need = max(0, required_exp(level) - experience)
        if delta < need:
            return level, experience + delta
        delta -= need
        level += 1
        experience = 0
        if level >= MAX_LEVEL:
            return level, experience
