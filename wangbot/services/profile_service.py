"""
wangbot.services.profile_service — /profile orchestration
==========================================================

Fetch → build → render → reply, independent of discord.py interaction
objects so it can be tested with a plain engine and a fake renderer.

Outcomes:

* no progression record        → "no data" text, no attachment
* renderer produced a card     → the card as an attachment
* renderer produced nothing    → the text embed fallback
* fetch timed out or failed    → generic failure text
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import discord

from wangbot.constants import MAX_CARD_ACHIEVEMENTS, MSG_NO_DATA, MSG_PROFILE_FAILED
from wangbot.database.engine import run_db
from wangbot.engine.profile import AchievementBadge, ProfileData, UserIdentity, build_profile_data
from wangbot.services.embeds import build_profile_embed
from wangbot.services.progression_service import (
    ProgressionSnapshot,
    get_user_achievements,
    get_user_rank,
    get_user_server_data,
)

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from wangbot.services.card_renderer import CardImage, CardRenderer

logger = logging.getLogger(__name__)

DATA_TIMEOUT_SECONDS = 2.0


@dataclass(frozen=True, slots=True)
class ProfileReply:
    """What the command should send.  Exactly one field is set."""

    content: str | None = None
    card: CardImage | None = None
    embed: discord.Embed | None = None


@dataclass(frozen=True, slots=True)
class _ProfileInputs:
    record: ProgressionSnapshot
    rank: int
    achievements: list[AchievementBadge]


def _fetch_inputs(
    engine: Engine, user_id: int, server_id: int, achievement_limit: int
) -> _ProfileInputs | None:
    record = get_user_server_data(engine, user_id, server_id)
    if record is None:
        return None
    return _ProfileInputs(
        record=record,
        rank=get_user_rank(engine, user_id, server_id),
        achievements=get_user_achievements(engine, user_id, server_id, achievement_limit),
    )


class ProfileService:
    def __init__(
        self,
        engine: Engine | None,
        renderer: CardRenderer,
        *,
        timeout_seconds: float = DATA_TIMEOUT_SECONDS,
        achievement_limit: int = MAX_CARD_ACHIEVEMENTS,
    ) -> None:
        self.engine = engine
        self.renderer = renderer
        self.timeout_seconds = timeout_seconds
        self.achievement_limit = achievement_limit

    async def load_profile(self, identity: UserIdentity, guild_id: int) -> ProfileData | None:
        """Build the render input, or ``None`` if the member has no record.

        Raises :class:`TimeoutError` when the data fetch exceeds the
        configured timeout; database errors propagate.
        """
        if self.engine is None:
            raise RuntimeError("Database is unavailable")
        inputs = await asyncio.wait_for(
            run_db(_fetch_inputs, self.engine, int(identity.id), guild_id, self.achievement_limit),
            timeout=self.timeout_seconds,
        )
        if inputs is None:
            return None
        record = inputs.record
        return build_profile_data(
            identity,
            total_xp=record.xp,
            points=record.points,
            rank=inputs.rank,
            total_messages=record.total_messages,
            total_voice_seconds=record.total_voice_time,
            style=record.style,
            achievements=inputs.achievements,
            guild_id=str(guild_id),
        )

    async def build_reply(
        self,
        identity: UserIdentity,
        guild_id: int,
        guild_name: str,
        guild_icon_url: str | None = None,
    ) -> ProfileReply:
        try:
            profile = await self.load_profile(identity, guild_id)
        except TimeoutError:
            logger.warning(
                "Profile data fetch timed out after %.1fs (user %s, guild %s)",
                self.timeout_seconds, identity.id, guild_id,
            )
            return ProfileReply(content=MSG_PROFILE_FAILED)
        except Exception:
            logger.exception("Profile data fetch failed (user %s, guild %s)", identity.id, guild_id)
            return ProfileReply(content=MSG_PROFILE_FAILED)

        if profile is None:
            return ProfileReply(content=MSG_NO_DATA)

        card = await self.renderer.render(profile)
        if card is not None:
            return ProfileReply(card=card)

        logger.info("No card image for user %s — sending embed fallback", identity.id)
        return ProfileReply(embed=build_profile_embed(profile, guild_name, guild_icon_url))
