"""
wangbot.services.activity_service — Activity → XP Persistence
==============================================================

Applies the :mod:`wangbot.engine.activity` rules to the database.  One call
per message or finished voice session:

1. Upsert the user and server rows.
2. Read the channel's XP switch and multiplier.
3. Create the progression record on first activity.
4. Bump counters, add XP, re-derive level, award points on level-up.
5. Append an activity log row.

All in one transaction.  Synchronous; call through ``run_db``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from wangbot.database.engine import get_session
from wangbot.database.models import ActivityLog, ActivityType
from wangbot.engine.activity import XpAward, apply_xp, message_xp, voice_xp
from wangbot.services.progression_service import (
    get_or_create_progression,
    load_channel_settings,
    upsert_server,
    upsert_user,
)

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from wangbot.config import WangbotConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MemberInfo:
    id: int
    username: str
    discriminator: str | None = None
    avatar: str | None = None


@dataclass(frozen=True, slots=True)
class ServerInfo:
    id: int
    name: str
    icon: str | None = None
    owner_id: int | None = None


@dataclass(frozen=True, slots=True)
class ActivityResult:
    """What one activity did to the member's progression."""

    xp_gained: int
    total_xp: int
    old_level: int
    new_level: int
    points_gained: int

    @property
    def leveled_up(self) -> bool:
        return self.new_level > self.old_level


def _record(
    engine: Engine,
    cfg: WangbotConfig,
    member: MemberInfo,
    server: ServerInfo,
    channel_id: int | None,
    activity_type: ActivityType,
    *,
    voice_seconds: int = 0,
) -> ActivityResult:
    with get_session(engine) as session:
        upsert_user(session, member.id, member.username, member.discriminator, member.avatar)
        upsert_server(session, server.id, server.name, server.icon, server.owner_id)

        channel = (
            load_channel_settings(session, channel_id, server.id)
            if channel_id is not None
            else None
        )
        enabled = channel.xp_enabled if channel is not None else True
        multiplier = channel.xp_multiplier if channel is not None else 1.0

        if not enabled:
            gained = 0
        elif activity_type is ActivityType.MESSAGE:
            gained = message_xp(cfg.message_xp, multiplier)
        else:
            gained = voice_xp(voice_seconds, cfg.voice_xp_per_minute, multiplier)

        record = get_or_create_progression(session, member.id, server.id)
        if activity_type is ActivityType.MESSAGE:
            record.total_messages = (record.total_messages or 0) + 1
        else:
            record.total_voice_time = (record.total_voice_time or 0) + max(0, voice_seconds)

        award: XpAward = apply_xp(record.xp or 0, record.level or 1, gained, cfg.points_per_level)
        record.xp = award.new_xp
        record.level = award.new_level
        record.points = (record.points or 0) + award.points_gained

        metadata: dict = {"multiplier": multiplier, "xp_enabled": enabled}
        if activity_type is ActivityType.VOICE:
            metadata["seconds"] = voice_seconds
        session.add(ActivityLog(
            user_id=member.id,
            server_id=server.id,
            channel_id=channel_id,
            type=activity_type.value,
            xp_gained=gained,
            metadata_json=metadata,
        ))

    if award.leveled_up:
        logger.info(
            "User %s reached level %d in server %s (+%d points)",
            member.id, award.new_level, server.id, award.points_gained,
        )
    return ActivityResult(
        xp_gained=gained,
        total_xp=award.new_xp,
        old_level=award.old_level,
        new_level=award.new_level,
        points_gained=award.points_gained,
    )


def record_message(
    engine: Engine,
    cfg: WangbotConfig,
    member: MemberInfo,
    server: ServerInfo,
    channel_id: int,
) -> ActivityResult:
    """Credit one message.  Cooldowns are the caller's job."""
    return _record(engine, cfg, member, server, channel_id, ActivityType.MESSAGE)


def record_voice_session(
    engine: Engine,
    cfg: WangbotConfig,
    member: MemberInfo,
    server: ServerInfo,
    channel_id: int | None,
    seconds: int,
) -> ActivityResult:
    """Credit a finished voice session of *seconds* length."""
    return _record(
        engine, cfg, member, server, channel_id, ActivityType.VOICE, voice_seconds=seconds,
    )
