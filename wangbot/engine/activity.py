"""
wangbot.engine.activity — Message & Voice XP Rules
===================================================

Pure reward rules for member activity: how much XP a message or a voice
session earns, how a gain moves the member's level, and the per-member
message cooldown.  No database access; the activity service persists the
results.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from wangbot.engine.leveling import level_for_xp

__all__ = ["CooldownTracker", "XpAward", "apply_xp", "message_xp", "voice_xp"]


def message_xp(base: int, multiplier: float = 1.0) -> int:
    """XP for one message after the channel multiplier."""
    return max(0, round(base * multiplier))


def voice_xp(seconds: int, per_minute: int, multiplier: float = 1.0) -> int:
    """XP for a voice session; only whole minutes count."""
    minutes = max(0, seconds) // 60
    return max(0, round(minutes * per_minute * multiplier))


@dataclass(frozen=True, slots=True)
class XpAward:
    """Outcome of adding XP to a progression record."""

    new_xp: int
    old_level: int
    new_level: int
    points_gained: int

    @property
    def leveled_up(self) -> bool:
        return self.new_level > self.old_level


def apply_xp(total_xp: int, level: int, gained: int, points_per_level: int) -> XpAward:
    """Add *gained* XP and re-derive the level.

    Points are awarded per level gained.  The level never goes down even if
    the stored *level* was ahead of the XP curve.
    """
    new_xp = total_xp + max(0, gained)
    new_level = max(level, level_for_xp(new_xp))
    return XpAward(
        new_xp=new_xp,
        old_level=level,
        new_level=new_level,
        points_gained=(new_level - level) * points_per_level,
    )


class CooldownTracker:
    """Per-(user, server) cooldown for message XP."""

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.seconds = seconds
        self._clock = clock
        self._last: dict[tuple[int, int], float] = {}

    def hit(self, user_id: int, server_id: int) -> bool:
        """Return ``True`` and start a new window if the member is off cooldown."""
        now = self._clock()
        key = (user_id, server_id)
        last = self._last.get(key)
        if last is not None and now - last < self.seconds:
            return False
        self._last[key] = now
        return True

    def prune(self) -> int:
        """Drop expired entries; returns how many were removed."""
        cutoff = self._clock() - self.seconds
        before = len(self._last)
        self._last = {k: v for k, v in self._last.items() if v > cutoff}
        return before - len(self._last)

    def __len__(self) -> int:
        return len(self._last)
