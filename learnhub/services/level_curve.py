"""
Level curve: XP needed to complete a level.

Level 1 is never charged; the first threshold applied is xp_for_level(2),
paid to leave level 1 and enter level 2.
"""

import math

from learnhub.utils.errors import InvalidArgumentError

FIRST_LEVEL = 1


def xp_for_level(level: int) -> int:
    """XP required to complete `level`: floor(100 * level * 1.5)."""
    if level < FIRST_LEVEL:
        raise InvalidArgumentError(f"level must be >= {FIRST_LEVEL}, got {level}")
    return math.floor(100 * level * 1.5)


def level_from_xp(total_xp: int) -> int:
    """
    Diagnostic inverse of the curve: the largest level L such that
    sum(xp_for_level(2..L)) <= total_xp.

    The authoritative level lives on the progress record and is advanced
    step by step by add_xp. This closed form is not consulted at runtime; it
    is the reference the level-up loop is checked against in tests.
    """
    if total_xp < 0:
        raise InvalidArgumentError(f"total_xp must be >= 0, got {total_xp}")
    level = FIRST_LEVEL
    spent = 0
    while spent + xp_for_level(level + 1) <= total_xp:
        level += 1
        spent += xp_for_level(level)
    return level


def level_progress(current_level_xp: int, next_level_xp: int) -> int:
    """Percentage of the current level completed."""
    if next_level_xp <= 0:
        return 100
    return round(current_level_xp / next_level_xp * 100)
