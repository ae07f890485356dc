"""
wangbot.services.progression_service — Progression Data Access
===============================================================

Shared service module callable by both bot and dashboard.  Maps
(user, server) identifiers to progression records, computes a member's
rank within a server, and reads/writes the related user, server, channel,
activity and achievement rows.

Every function takes the :class:`~sqlalchemy.Engine` as its first argument
and opens exactly one session.  All functions are synchronous; call them
from async code through :func:`wangbot.database.engine.run_db`.

Rank ordering: descending XP, then earliest record creation, then lowest
user id.  The order is total, so ranks are unique and stable.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select

from wangbot.database.engine import get_session
from wangbot.database.models import (
    Achievement,
    ActivityLog,
    ChannelConfig,
    Server,
    User,
    UserAchievement,
    UserServer,
)
from wangbot.engine.leveling import level_for_xp
from wangbot.engine.profile import AchievementBadge, CardStyle

if TYPE_CHECKING:
    from sqlalchemy import Engine
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

UNRANKED = 0

# Columns update_user_server_data may touch
UPDATABLE_COLUMNS: frozenset[str] = frozenset({
    "xp",
    "level",
    "points",
    "total_messages",
    "total_voice_time",
    "profile_card",
})

_CAMEL_RE = re.compile(r"([A-Z])")


# ---------------------------------------------------------------------------
# Detached snapshots (safe to hand across threads)
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ProgressionSnapshot:
    user_id: int
    server_id: int
    xp: int
    level: int
    points: int
    total_messages: int
    total_voice_time: int
    profile_card: dict | None
    created_at: datetime | None = None

    @property
    def style(self) -> CardStyle:
        return CardStyle.from_dict(self.profile_card)


@dataclass(frozen=True, slots=True)
class ChannelSettings:
    channel_id: int
    server_id: int
    xp_enabled: bool
    xp_multiplier: float
    is_level_up_channel: bool


def _snapshot(row: UserServer) -> ProgressionSnapshot:
    return ProgressionSnapshot(
        user_id=row.user_id,
        server_id=row.server_id,
        xp=row.xp or 0,
        level=row.level or 1,
        points=row.points or 0,
        total_messages=row.total_messages or 0,
        total_voice_time=row.total_voice_time or 0,
        profile_card=row.profile_card,
        created_at=row.created_at,
    )


def _column_name(key: str) -> str:
    """``totalVoiceTime`` → ``total_voice_time``; snake_case passes through."""
    return _CAMEL_RE.sub(r"_\1", key).lower()


# ---------------------------------------------------------------------------
# Progression records
# ---------------------------------------------------------------------------
def get_user_server_data(engine: Engine, user_id: int, server_id: int) -> ProgressionSnapshot | None:
    """Return the member's progression record, or ``None`` if they have none."""
    with get_session(engine) as session:
        row = session.get(UserServer, (user_id, server_id))
        return _snapshot(row) if row is not None else None


def create_user_server_data(
    engine: Engine,
    user_id: int,
    server_id: int,
    *,
    xp: int = 0,
    level: int = 1,
    points: int = 0,
    total_messages: int = 0,
    total_voice_time: int = 0,
    profile_card: dict | None = None,
) -> ProgressionSnapshot:
    """Insert a progression record.  The user and server rows must exist."""
    with get_session(engine) as session:
        row = UserServer(
            user_id=user_id,
            server_id=server_id,
            xp=xp,
            level=level,
            points=points,
            total_messages=total_messages,
            total_voice_time=total_voice_time,
            profile_card=profile_card,
        )
        session.add(row)
        session.flush()
        session.refresh(row)
        return _snapshot(row)


def update_user_server_data(
    engine: Engine, user_id: int, server_id: int, **updates: Any
) -> ProgressionSnapshot | None:
    """Set the given columns on a progression record.

    Keys may be snake_case or camelCase.  Returns ``None`` if the record
    doesn't exist.

    Raises
    ------
    ValueError
        If a key doesn't name an updatable column.
    """
    columns = {_column_name(k): v for k, v in updates.items()}
    unknown = set(columns) - UPDATABLE_COLUMNS
    if unknown:
        raise ValueError(f"Cannot update column(s): {', '.join(sorted(unknown))}")

    with get_session(engine) as session:
        row = session.get(UserServer, (user_id, server_id))
        if row is None:
            return None
        for column, value in columns.items():
            setattr(row, column, value)
        session.flush()
        return _snapshot(row)


def get_or_create_progression(session: Session, user_id: int, server_id: int) -> UserServer:
    """Fetch or insert the UserServer row inside an open session."""
    row = session.get(UserServer, (user_id, server_id))
    if row is None:
        row = UserServer(
            user_id=user_id,
            server_id=server_id,
            xp=0,
            level=1,
            points=0,
            total_messages=0,
            total_voice_time=0,
        )
        session.add(row)
        session.flush()
    return row


# ---------------------------------------------------------------------------
# Users & servers
# ---------------------------------------------------------------------------
def upsert_user(
    session: Session, user_id: int, username: str, discriminator: str | None, avatar: str | None
) -> User:
    user = session.get(User, user_id)
    if user is None:
        user = User(id=user_id, username=username, discriminator=discriminator, avatar=avatar)
        session.add(user)
    else:
        user.username = username
        user.discriminator = discriminator
        user.avatar = avatar
    session.flush()
    return user


def upsert_server(
    session: Session, server_id: int, name: str, icon: str | None, owner_id: int | None
) -> Server:
    """Insert or refresh a server; the recorded owner is kept once set."""
    server = session.get(Server, server_id)
    if server is None:
        server = Server(id=server_id, name=name, icon=icon, owner_id=owner_id)
        session.add(server)
    else:
        server.name = name
        server.icon = icon
    session.flush()
    return server


def ensure_user_exists(
    engine: Engine, user_id: int, username: str, discriminator: str | None, avatar: str | None
) -> None:
    with get_session(engine) as session:
        upsert_user(session, user_id, username, discriminator, avatar)


def ensure_server_exists(
    engine: Engine, server_id: int, name: str, icon: str | None, owner_id: int | None
) -> None:
    with get_session(engine) as session:
        upsert_server(session, server_id, name, icon, owner_id)


# ---------------------------------------------------------------------------
# Channel configuration & activity log
# ---------------------------------------------------------------------------
def load_channel_settings(session: Session, channel_id: int, server_id: int) -> ChannelSettings | None:
    row = session.get(ChannelConfig, (channel_id, server_id))
    if row is None:
        return None
    return ChannelSettings(
        channel_id=row.channel_id,
        server_id=row.server_id,
        xp_enabled=bool(row.xp_enabled),
        xp_multiplier=row.xp_multiplier if row.xp_multiplier is not None else 1.0,
        is_level_up_channel=bool(row.is_level_up_channel),
    )


def get_channel_config(engine: Engine, channel_id: int, server_id: int) -> ChannelSettings | None:
    with get_session(engine) as session:
        return load_channel_settings(session, channel_id, server_id)


def get_level_up_channel_id(engine: Engine, server_id: int) -> int | None:
    """The server's designated level-up announcement channel, if any."""
    with get_session(engine) as session:
        return session.scalar(
            select(ChannelConfig.channel_id)
            .where(
                ChannelConfig.server_id == server_id,
                ChannelConfig.is_level_up_channel.is_(True),
            )
            .order_by(ChannelConfig.channel_id)
            .limit(1)
        )


def log_activity(
    engine: Engine,
    user_id: int,
    server_id: int,
    channel_id: int | None,
    activity_type: str,
    xp_gained: int = 0,
    metadata: dict | None = None,
) -> None:
    with get_session(engine) as session:
        session.add(ActivityLog(
            user_id=user_id,
            server_id=server_id,
            channel_id=channel_id,
            type=str(activity_type),
            xp_gained=xp_gained,
            metadata_json=metadata or {},
        ))


# ---------------------------------------------------------------------------
# Rank & leaderboard
# ---------------------------------------------------------------------------
LEADERBOARD_ORDER = (
    UserServer.xp.desc(),
    UserServer.created_at.asc(),
    UserServer.user_id.asc(),
)


def _rank_in_session(session: Session, user_id: int, server_id: int) -> int:
    # Numbered in SQL so created_at is only compared in its stored form.
    ranked = (
        select(
            UserServer.user_id,
            func.row_number().over(order_by=LEADERBOARD_ORDER).label("position"),
        )
        .where(UserServer.server_id == server_id)
        .subquery()
    )
    position = session.scalar(
        select(ranked.c.position).where(ranked.c.user_id == user_id)
    )
    return int(position) if position else UNRANKED


def get_user_rank(engine: Engine, user_id: int, server_id: int) -> int:
    """1-based position of the member in the server's XP leaderboard.

    Returns ``0`` (unranked) when the member has no record in that server,
    and also when the lookup fails — rank is presentation only, so a
    failure is logged rather than raised.
    """
    try:
        with get_session(engine) as session:
            return _rank_in_session(session, user_id, server_id)
    except Exception:
        logger.exception("Rank lookup failed for user %s in server %s", user_id, server_id)
        return UNRANKED


def get_top_users(engine: Engine, server_id: int, limit: int = 10) -> list[dict]:
    """Top *limit* members of a server, in rank order."""
    with get_session(engine) as session:
        rows = session.execute(
            select(UserServer, User.username, User.discriminator, User.avatar)
            .outerjoin(User, User.id == UserServer.user_id)
            .where(UserServer.server_id == server_id)
            .order_by(*LEADERBOARD_ORDER)
            .limit(limit)
        ).all()
        return [
            {
                "rank": position,
                "user_id": progression.user_id,
                "username": username or str(progression.user_id),
                "discriminator": discriminator,
                "avatar": avatar,
                "xp": progression.xp,
                "level": level_for_xp(progression.xp),
                "points": progression.points,
                "total_messages": progression.total_messages,
                "total_voice_time": progression.total_voice_time,
            }
            for position, (progression, username, discriminator, avatar) in enumerate(rows, 1)
        ]


# ---------------------------------------------------------------------------
# Achievements
# ---------------------------------------------------------------------------
def get_user_achievements(
    engine: Engine, user_id: int, server_id: int, limit: int = 5
) -> list[AchievementBadge]:
    """Most recently earned achievements first."""
    with get_session(engine) as session:
        rows = session.execute(
            select(Achievement.name, Achievement.icon, Achievement.rarity)
            .join(UserAchievement, UserAchievement.achievement_id == Achievement.id)
            .where(
                UserAchievement.user_id == user_id,
                UserAchievement.server_id == server_id,
            )
            .order_by(UserAchievement.earned_at.desc(), Achievement.id.desc())
            .limit(limit)
        ).all()
        return [AchievementBadge(name=n, icon=i, rarity=r or "common") for n, i, r in rows]


def count_user_achievements(engine: Engine, user_id: int, server_id: int) -> int:
    with get_session(engine) as session:
        return session.scalar(
            select(func.count())
            .select_from(UserAchievement)
            .where(
                UserAchievement.user_id == user_id,
                UserAchievement.server_id == server_id,
            )
        ) or 0


def grant_achievement(engine: Engine, user_id: int, server_id: int, achievement_id: int) -> bool:
    """Record an earned achievement.  Returns ``False`` if already earned."""
    with get_session(engine) as session:
        if session.get(UserAchievement, (user_id, server_id, achievement_id)) is not None:
            return False
        session.add(UserAchievement(
            user_id=user_id, server_id=server_id, achievement_id=achievement_id,
        ))
        return True


# ---------------------------------------------------------------------------
# Card style (dashboard editor)
# ---------------------------------------------------------------------------
def get_card_style(engine: Engine, user_id: int, server_id: int) -> CardStyle:
    """Stored style for the member, or the default style."""
    record = get_user_server_data(engine, user_id, server_id)
    return record.style if record is not None else CardStyle()


def set_card_style(engine: Engine, user_id: int, server_id: int, style: CardStyle) -> bool:
    """Persist *style*.  Returns ``False`` if the member has no record."""
    return update_user_server_data(
        engine, user_id, server_id, profile_card=style.to_dict()
    ) is not None
