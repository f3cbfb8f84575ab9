"""
Level curve.

XP is stored as a cumulative total; the level is always derived from it.
Advancing from level L to L+1 costs floor(100 * L ** 1.15) XP.
"""
import math

from shared.utils.constants import LEVEL_CURVE_BASE, LEVEL_CURVE_EXPONENT


def xp_required_for_level(level: int) -> int:
    """XP needed to advance from ``level`` to ``level + 1``."""
    if level < 1:
        raise ValueError(f"level must be >= 1, got {level}")
    return math.floor(LEVEL_CURVE_BASE * level ** LEVEL_CURVE_EXPONENT)


def level_from_xp(xp: int) -> int:
    """Level reached with ``xp`` cumulative XP (always >= 1)."""
    if xp < 0:
        raise ValueError(f"xp must be >= 0, got {xp}")
    level = 1
    remaining = xp
    while remaining >= xp_required_for_level(level):
        remaining -= xp_required_for_level(level)
        level += 1
    return level


def total_xp_for_level(level: int) -> int:
    """Cumulative XP at which ``level`` is first reached."""
    return sum(xp_required_for_level(lvl) for lvl in range(1, level))


def level_progress(xp: int) -> dict:
    """Level plus the position inside it, for progress bars."""
    level = level_from_xp(xp)
    return {
        "level": level,
        "xp_into_level": xp - total_xp_for_level(level),
        "xp_for_next_level": xp_required_for_level(level),
    }
