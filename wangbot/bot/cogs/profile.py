"""
wangbot.bot.cogs.profile — /profile
====================================

Shows a member's profile card for the current server.  The heavy lifting
(data fetch with timeout, rendering, embed fallback) lives in
:class:`wangbot.services.profile_service.ProfileService`.
"""

from __future__ import annotations

import io
import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from wangbot.constants import MSG_PROFILE_FAILED
from wangbot.engine.profile import UserIdentity

if TYPE_CHECKING:
    from wangbot.bot.core import WangBot

logger = logging.getLogger(__name__)


def identity_for(user: discord.abc.User) -> UserIdentity:
    """Snapshot the fields the card needs from a Discord user or member."""
    return UserIdentity(
        id=str(user.id),
        username=user.name,
        discriminator=user.discriminator or "0",
        avatar_url=user.display_avatar.with_format("png").with_size(256).url,
    )


class Profile(commands.Cog, name="Profile"):
    """Profile card command."""

    def __init__(self, bot: WangBot) -> None:
        self.bot = bot

    @commands.hybrid_command(  # type: ignore[arg-type]
        name="profile",
        description="사용자의 프로필 카드를 표시합니다",
    )
    @commands.guild_only()
    @app_commands.describe(user="프로필을 볼 사용자 (선택사항)")
    async def profile(self, ctx: commands.Context, user: discord.Member | None = None) -> None:
        assert ctx.guild is not None
        target = user or ctx.author
        await ctx.defer()

        try:
            reply = await self.bot.profiles.build_reply(
                identity_for(target),
                ctx.guild.id,
                ctx.guild.name,
                ctx.guild.icon.url if ctx.guild.icon else None,
            )
        except Exception:
            logger.exception("Profile command failed for user %s", target.id)
            await ctx.send(MSG_PROFILE_FAILED)
            return

        if reply.card is not None:
            await ctx.send(file=discord.File(io.BytesIO(reply.card.data), filename=reply.card.filename))
        elif reply.embed is not None:
            await ctx.send(embed=reply.embed)
        else:
            await ctx.send(reply.content or MSG_PROFILE_FAILED)


async def setup(bot: WangBot) -> None:
    await bot.add_cog(Profile(bot))
