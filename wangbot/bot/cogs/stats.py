"""
wangbot.bot.cogs.stats — /stats & /leaderboard
===============================================

Text-only views of progression data:
- /stats — level, points, rank, message and voice counters
- /leaderboard — top members of the server by XP
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from wangbot.constants import MSG_LEADERBOARD_EMPTY, MSG_NO_STATS, MSG_STATS_FAILED
from wangbot.database.engine import run_db
from wangbot.services.embeds import build_leaderboard_embed, build_stats_embed
from wangbot.services.progression_service import (
    count_user_achievements,
    get_top_users,
    get_user_achievements,
    get_user_rank,
    get_user_server_data,
)

if TYPE_CHECKING:
    from wangbot.bot.core import WangBot

logger = logging.getLogger(__name__)

MAX_LEADERBOARD_SIZE = 25


class Stats(commands.Cog, name="Stats"):
    """Stats and leaderboard commands."""

    def __init__(self, bot: WangBot) -> None:
        self.bot = bot

    # -------------------------------------------------------------------
    # /stats
    # -------------------------------------------------------------------
    @commands.hybrid_command(  # type: ignore[arg-type]
        name="stats",
        description="개인 통계 정보를 조회합니다",
    )
    @commands.guild_only()
    @app_commands.describe(user="조회할 사용자 (선택사항)")
    async def stats(self, ctx: commands.Context, user: discord.Member | None = None) -> None:
        assert ctx.guild is not None
        target = user or ctx.author
        await ctx.defer()

        if self.bot.engine is None:
            await ctx.send(MSG_STATS_FAILED)
            return

        try:
            record = await run_db(get_user_server_data, self.bot.engine, target.id, ctx.guild.id)
            if record is None:
                await ctx.send(MSG_NO_STATS)
                return
            rank = await run_db(get_user_rank, self.bot.engine, target.id, ctx.guild.id)
            achievements = await run_db(
                get_user_achievements, self.bot.engine, target.id, ctx.guild.id,
                self.bot.cfg.achievement_display_limit,
            )
            achievement_count = await run_db(
                count_user_achievements, self.bot.engine, target.id, ctx.guild.id,
            )
        except Exception:
            logger.exception("Stats lookup failed for user %s", target.id)
            await ctx.send(MSG_STATS_FAILED)
            return

        embed = build_stats_embed(
            username=target.name,
            avatar_url=target.display_avatar.url,
            record=record,
            rank=rank,
            guild_name=ctx.guild.name,
            requester_name=ctx.author.name,
            guild_icon_url=ctx.guild.icon.url if ctx.guild.icon else None,
            achievements=achievements,
            achievement_count=achievement_count,
        )
        await ctx.send(embed=embed)

    # -------------------------------------------------------------------
    # /leaderboard
    # -------------------------------------------------------------------
    @commands.hybrid_command(  # type: ignore[arg-type]
        name="leaderboard",
        description="서버 경험치 순위를 표시합니다",
    )
    @commands.guild_only()
    @app_commands.describe(limit="표시할 인원 수 (최대 25)")
    async def leaderboard(self, ctx: commands.Context, limit: int | None = None) -> None:
        assert ctx.guild is not None
        size = max(1, min(limit or self.bot.cfg.leaderboard_size, MAX_LEADERBOARD_SIZE))

        if self.bot.engine is None:
            await ctx.send(MSG_STATS_FAILED, ephemeral=True)
            return

        rows = await run_db(get_top_users, self.bot.engine, ctx.guild.id, size)
        if not rows:
            await ctx.send(MSG_LEADERBOARD_EMPTY, ephemeral=True)
            return

        await ctx.send(embed=build_leaderboard_embed(
            rows,
            ctx.guild.name,
            ctx.guild.icon.url if ctx.guild.icon else None,
        ))


async def setup(bot: WangBot) -> None:
    await bot.add_cog(Stats(bot))
