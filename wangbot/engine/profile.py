"""
wangbot.engine.profile — Profile Card Render Input
===================================================

Plain dataclasses describing everything a card renderer needs: who the
member is, their stats for one server, their card style, and a handful of
achievement badges.  A :class:`ProfileData` is built fresh per request and
has no identity of its own.

The dashboard speaks camelCase JSON (``accentColor``, ``maxXp``, …), so
every type here has a ``to_dict`` / ``from_dict`` pair for that wire
format.  ``from_dict`` is lenient: partial payloads get defaults and any
missing progress figures are derived from ``level`` / ``totalXp``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from wangbot.constants import (
    DEFAULT_ACCENT_COLOR,
    DEFAULT_PROGRESS_GRADIENT,
    MAX_CARD_ACHIEVEMENTS,
)
from wangbot.engine.leveling import (
    level_for_xp,
    progress_within_level,
    xp_needed_for_next_level,
)

__all__ = [
    "AchievementBadge",
    "CardStyle",
    "ProfileData",
    "ProfileStats",
    "UserIdentity",
    "build_profile_data",
]

_HEX_COLOR_RE = re.compile(r"#([0-9a-fA-F]{6})\b")


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


# ---------------------------------------------------------------------------
# CardStyle
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class CardStyle:
    """Visual customisation for one member's card."""

    accent_color: str = DEFAULT_ACCENT_COLOR
    progress_gradient: tuple[str | None, str | None] = DEFAULT_PROGRESS_GRADIENT
    background_color: str | None = None
    background_image: str | None = None

    @property
    def gradient_stops(self) -> tuple[str, str]:
        """The two bar colours, with the accent standing in for a missing stop."""
        start, end = (tuple(self.progress_gradient) + (None, None))[:2]
        return (start or self.accent_color, end or self.accent_color)

    @property
    def has_custom_background(self) -> bool:
        return bool(self.background_image or self.background_color)

    @property
    def background_stops(self) -> list[str]:
        """Hex colours named by ``background_color``.

        The dashboard stores either a plain ``#RRGGBB`` or a CSS
        ``linear-gradient(...)``; one stop means a solid fill.
        """
        if not self.background_color:
            return []
        return [f"#{h}" for h in _HEX_COLOR_RE.findall(self.background_color)]

    def to_dict(self) -> dict[str, Any]:
        return {
            "accentColor": self.accent_color,
            "progressGradient": list(self.progress_gradient),
            "backgroundColor": self.background_color,
            "backgroundImage": self.background_image,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any] | None) -> CardStyle:
        """Build a style from stored/dashboard JSON, filling in defaults."""
        if not raw:
            return cls()
        gradient = raw.get("progressGradient") or DEFAULT_PROGRESS_GRADIENT
        stops = (list(gradient) + [None, None])[:2]
        return cls(
            accent_color=raw.get("accentColor") or DEFAULT_ACCENT_COLOR,
            progress_gradient=(stops[0], stops[1]),
            background_color=raw.get("backgroundColor") or None,
            background_image=raw.get("backgroundImage") or None,
        )


# ---------------------------------------------------------------------------
# Identity, stats, achievements
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class UserIdentity:
    """Snapshot of the Discord member the card is about."""

    id: str
    username: str
    discriminator: str = "0"
    avatar_url: str | None = None

    @property
    def tag(self) -> str:
        """``#1234`` for legacy discriminators, ``@name`` for migrated accounts."""
        if self.discriminator and self.discriminator != "0":
            return f"#{self.discriminator}"
        return f"@{self.username}"

    @property
    def initial(self) -> str:
        return self.username[:1].upper() if self.username else "?"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "discriminator": self.discriminator,
            "avatar": self.avatar_url,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> UserIdentity:
        return cls(
            id=str(raw.get("id", "")),
            username=str(raw.get("username") or "Unknown"),
            discriminator=str(raw.get("discriminator") or "0"),
            avatar_url=raw.get("avatar") or None,
        )


@dataclass(frozen=True, slots=True)
class ProfileStats:
    """Stats snapshot for one member in one server."""

    level: int
    xp: int          # progress within the current level
    max_xp: int      # XP spanned by the current level
    total_xp: int
    points: int = 0
    rank: int = 0    # 0 = unranked
    total_messages: int = 0
    voice_hours: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "xp": self.xp,
            "maxXp": self.max_xp,
            "totalXp": self.total_xp,
            "points": self.points,
            "rank": self.rank,
            "totalMessages": self.total_messages,
            "voiceTime": self.voice_hours,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> ProfileStats:
        total_xp = max(_int(raw.get("totalXp")), 0)
        level = _int(raw.get("level"), 0) or level_for_xp(total_xp)
        xp = raw.get("xp")
        max_xp = raw.get("maxXp")
        return cls(
            level=level,
            xp=_int(xp) if xp is not None else progress_within_level(total_xp, level),
            max_xp=_int(max_xp) if max_xp is not None else xp_needed_for_next_level(level),
            total_xp=total_xp,
            points=_int(raw.get("points")),
            rank=_int(raw.get("rank")),
            total_messages=_int(raw.get("totalMessages")),
            voice_hours=_int(raw.get("voiceTime")),
        )


@dataclass(frozen=True, slots=True)
class AchievementBadge:
    """An earned achievement as shown on the card."""

    name: str
    icon: str | None = None
    rarity: str = "common"

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "icon": self.icon, "rarity": self.rarity}

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> AchievementBadge:
        return cls(
            name=str(raw.get("name", "")),
            icon=raw.get("icon"),
            rarity=str(raw.get("rarity") or "common"),
        )


# ---------------------------------------------------------------------------
# ProfileData — the render input
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ProfileData:
    user: UserIdentity
    stats: ProfileStats
    style: CardStyle = field(default_factory=CardStyle)
    achievements: tuple[AchievementBadge, ...] = ()
    guild_id: str = ""

    @property
    def displayed_achievements(self) -> tuple[AchievementBadge, ...]:
        return self.achievements[:MAX_CARD_ACHIEVEMENTS]

    def to_dict(self) -> dict[str, Any]:
        return {
            "user": self.user.to_dict(),
            "stats": self.stats.to_dict(),
            "style": self.style.to_dict(),
            "achievements": [a.to_dict() for a in self.achievements],
            "guildId": self.guild_id,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> ProfileData:
        """Parse dashboard JSON.

        Raises
        ------
        ValueError
            If ``user`` or ``stats`` is missing or not an object.
        """
        user = raw.get("user")
        stats = raw.get("stats")
        if not isinstance(user, Mapping) or not isinstance(stats, Mapping):
            raise ValueError("Profile data requires 'user' and 'stats' objects")
        achievements = raw.get("achievements") or []
        return cls(
            user=UserIdentity.from_dict(user),
            stats=ProfileStats.from_dict(stats),
            style=CardStyle.from_dict(raw.get("style")),
            achievements=tuple(
                AchievementBadge.from_dict(a) for a in achievements if isinstance(a, Mapping)
            ),
            guild_id=str(raw.get("guildId") or ""),
        )


def build_profile_data(
    identity: UserIdentity,
    *,
    total_xp: int,
    points: int,
    rank: int,
    total_messages: int,
    total_voice_seconds: int,
    style: CardStyle | None = None,
    achievements: Iterable[AchievementBadge] = (),
    guild_id: str = "",
) -> ProfileData:
    """Assemble :class:`ProfileData` from a progression record's figures.

    The level is derived from *total_xp* rather than trusted from storage,
    so progress within the level is never negative.
    """
    level = level_for_xp(total_xp)
    return ProfileData(
        user=identity,
        stats=ProfileStats(
            level=level,
            xp=progress_within_level(total_xp, level),
            max_xp=xp_needed_for_next_level(level),
            total_xp=total_xp,
            points=points,
            rank=rank,
            total_messages=total_messages,
            voice_hours=total_voice_seconds // 3600,
        ),
        style=style or CardStyle(),
        achievements=tuple(achievements),
        guild_id=guild_id,
    )
