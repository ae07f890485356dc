"""
wangbot.engine.leveling — XP ↔ Level Math
==========================================

THE single canonical implementation of the leveling curve.  Pure functions,
no I/O; the renderers, embeds, activity service and dashboard all import
from here instead of re-deriving the formula.

Curve::

    threshold(1) = 0
    threshold(L) = L² × 100      (L ≥ 2)

A member with 0 XP is level 1 with an empty bar; 400 XP reaches level 2,
900 XP level 3, and so on.
"""

from __future__ import annotations

from dataclasses import dataclass
from math import isqrt

__all__ = [
    "LevelProgress",
    "level_for_xp",
    "level_progress",
    "level_threshold",
    "percent_complete",
    "progress_within_level",
    "xp_needed_for_next_level",
]

XP_PER_LEVEL_SQUARED = 100


def level_threshold(level: int) -> int:
    """Cumulative XP required to reach *level*.  Level 1 (and below) is 0."""
    if level <= 1:
        return 0
    return level * level * XP_PER_LEVEL_SQUARED


def level_for_xp(total_xp: int) -> int:
    """Highest level whose threshold is ≤ *total_xp* (never below 1)."""
    if total_xp <= 0:
        return 1
    return max(1, isqrt(total_xp // XP_PER_LEVEL_SQUARED))


def progress_within_level(total_xp: int, level: int) -> int:
    """XP earned since *level* was reached.

    Negative when *level* is ahead of *total_xp* (e.g. a stale stored level).
    """
    return total_xp - level_threshold(level)


def xp_needed_for_next_level(level: int) -> int:
    """XP span between *level* and *level* + 1."""
    return level_threshold(level + 1) - level_threshold(level)


def percent_complete(progress: int | float, needed: int | float) -> float:
    """Progress through a level as a percentage clamped to [0, 100]."""
    if needed <= 0:
        return 0.0
    ratio = min(max(progress / needed, 0.0), 1.0)
    return ratio * 100


@dataclass(frozen=True, slots=True)
class LevelProgress:
    """Level, intra-level progress and bar percentage for one XP total."""

    level: int
    progress: int
    needed: int
    percent: float


def level_progress(total_xp: int) -> LevelProgress:
    """Derive the full :class:`LevelProgress` from a cumulative XP total."""
    level = level_for_xp(total_xp)
    progress = progress_within_level(total_xp, level)
    needed = xp_needed_for_next_level(level)
    return LevelProgress(
        level=level,
        progress=progress,
        needed=needed,
        percent=percent_complete(progress, needed),
    )
