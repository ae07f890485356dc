"""
wangbot.bot.cogs.activity — Message & Voice XP
===============================================

Listens for guild messages and voice state changes and credits XP through
:mod:`wangbot.services.activity_service`.

- Messages: one credit per member per server per cooldown window.
- Voice: a session starts on join, survives channel moves, and is credited
  in whole minutes on leave.

Level-ups are announced in the server's level-up channel when one is
configured, otherwise in the channel where the message was sent.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

import discord
from discord.ext import commands, tasks

from wangbot.database.engine import run_db
from wangbot.engine.activity import CooldownTracker
from wangbot.services.activity_service import (
    ActivityResult,
    MemberInfo,
    ServerInfo,
    record_message,
    record_voice_session,
)
from wangbot.services.embeds import build_level_up_embed
from wangbot.services.progression_service import get_level_up_channel_id

if TYPE_CHECKING:
    from wangbot.bot.core import WangBot

logger = logging.getLogger(__name__)


def member_info(member: discord.Member) -> MemberInfo:
    return MemberInfo(
        id=member.id,
        username=member.name,
        discriminator=member.discriminator,
        avatar=member.display_avatar.url,
    )


def server_info(guild: discord.Guild) -> ServerInfo:
    return ServerInfo(
        id=guild.id,
        name=guild.name,
        icon=guild.icon.url if guild.icon else None,
        owner_id=guild.owner_id,
    )


class Activity(commands.Cog, name="Activity"):
    """Turns messages and voice time into XP."""

    def __init__(self, bot: WangBot) -> None:
        self.bot = bot
        self.cooldowns = CooldownTracker(bot.cfg.message_cooldown_seconds)
        # {(user_id, guild_id): (join_monotonic, channel_id)}
        self._voice_sessions: dict[tuple[int, int], tuple[float, int]] = {}

    async def cog_load(self) -> None:
        self.prune_cooldowns.start()

    async def cog_unload(self) -> None:
        self.prune_cooldowns.cancel()

    @tasks.loop(minutes=10)
    async def prune_cooldowns(self) -> None:
        removed = self.cooldowns.prune()
        if removed:
            logger.debug("Pruned %d expired message cooldowns", removed)

    # -------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------
    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot or message.guild is None or self.bot.engine is None:
            return
        if not isinstance(message.author, discord.Member):
            return
        if not self.cooldowns.hit(message.author.id, message.guild.id):
            return

        try:
            result = await run_db(
                record_message,
                self.bot.engine,
                self.bot.cfg,
                member_info(message.author),
                server_info(message.guild),
                message.channel.id,
            )
        except Exception:
            logger.exception("Failed to record message XP for user %s", message.author.id)
            return

        if result.leveled_up:
            await self._announce_level_up(message.author, message.channel, result)

    # -------------------------------------------------------------------
    # Voice
    # -------------------------------------------------------------------
    @commands.Cog.listener()
    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        if member.bot or self.bot.engine is None:
            return
        key = (member.id, member.guild.id)

        # Join
        if before.channel is None and after.channel is not None:
            self._voice_sessions[key] = (time.monotonic(), after.channel.id)
            logger.debug("%s joined voice channel %s", member, after.channel)

        # Leave
        elif before.channel is not None and after.channel is None:
            started = self._voice_sessions.pop(key, None)
            if started is None:
                return
            seconds = int(time.monotonic() - started[0])
            try:
                result = await run_db(
                    record_voice_session,
                    self.bot.engine,
                    self.bot.cfg,
                    member_info(member),
                    server_info(member.guild),
                    started[1],
                    seconds,
                )
            except Exception:
                logger.exception("Failed to record voice session for user %s", member.id)
                return
            logger.debug("%s left voice after %ds (+%d XP)", member, seconds, result.xp_gained)
            if result.leveled_up:
                await self._announce_level_up(member, None, result)

        # Move keeps the running session; XP goes to the channel it started in.
        elif before.channel != after.channel:
            logger.debug("%s moved voice channel %s → %s", member, before.channel, after.channel)

    # -------------------------------------------------------------------
    # Announcements
    # -------------------------------------------------------------------
    async def _announce_level_up(
        self,
        member: discord.Member,
        fallback: discord.abc.Messageable | None,
        result: ActivityResult,
    ) -> None:
        channel: discord.abc.Messageable | None = fallback
        try:
            channel_id = await run_db(get_level_up_channel_id, self.bot.engine, member.guild.id)
        except Exception:
            logger.exception("Level-up channel lookup failed for guild %s", member.guild.id)
            channel_id = None
        if channel_id is not None:
            configured = member.guild.get_channel(channel_id)
            if isinstance(configured, discord.TextChannel):
                channel = configured
        if channel is None:
            channel = member.guild.system_channel
        if channel is None:
            logger.info("No channel to announce level %d for %s", result.new_level, member)
            return

        embed = build_level_up_embed(
            member.id, member.display_avatar.url, result.new_level, result.points_gained,
        )
        try:
            await channel.send(embed=embed)
        except discord.HTTPException:
            logger.warning("Could not announce level-up for %s in %s", member, channel)


async def setup(bot: WangBot) -> None:
    await bot.add_cog(Activity(bot))
