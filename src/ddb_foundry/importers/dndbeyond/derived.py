"""
Derived character statistics.

Pure arithmetic over already-extracted numbers. Scores are not range
checked: implausible values from the source pass straight through, only
missing values are defaulted by the callers.
"""

from __future__ import annotations

import math
from typing import Any, Iterable

from .common import as_int
from .schema import XP_THRESHOLDS


def ability_modifier(score: int) -> int:
    """Standard 5e modifier: floor((score - 10) / 2)."""
    return (score - 10) // 2


def proficiency_bonus(total_level: int) -> int:
    """Proficiency bonus for a total character level (never below +2)."""
    return max(2, math.ceil(total_level / 4) + 1)


def total_level(classes: Iterable[dict[str, Any]] | None) -> int:
    """Sum of class levels, or 1 when the character has no classes."""
    if not classes:
        return 1
    return sum(as_int(cls.get("level")) for cls in classes) or 1


def max_hit_points(
    base: int,
    con_modifier: int,
    level: int,
    bonus: int = 0,
    override: int | None = None,
) -> int:
    """Maximum HP.

    An explicit override wins, including an override of 0; ``None`` means
    no override.
    """
    if override is not None:
        return override
    return base + con_modifier * level + bonus


def current_hit_points(maximum: int, removed: int) -> int:
    return max(0, maximum - removed)


def spell_save_dc(prof_bonus: int, spellcasting_modifier: int) -> int:
    return 8 + prof_bonus + spellcasting_modifier


def encumbrance_capacity(strength_score: int) -> int:
    """Carrying capacity in pounds."""
    return strength_score * 15


def xp_for_next_level(level: int) -> int:
    """XP total needed to reach the level after ``level`` (capped at 20)."""
    index = min(max(level, 1), len(XP_THRESHOLDS) - 1)
    return XP_THRESHOLDS[index]
