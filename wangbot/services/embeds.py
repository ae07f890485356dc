"""
wangbot.services.embeds — Discord embed builders
=================================================

All embed construction lives here so the cogs and the profile service only
need to supply data — no layout concerns.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import discord

from wangbot.constants import COLOR_ACCENT, RANK_BADGES, format_rank
from wangbot.engine.leveling import level_for_xp, percent_complete
from wangbot.engine.profile import AchievementBadge, ProfileData

PROGRESS_CELLS = 20


def _color(hex_value: str | None, fallback: str = COLOR_ACCENT) -> discord.Color:
    for candidate in (hex_value, fallback):
        try:
            return discord.Color(int(str(candidate).lstrip("#"), 16))
        except (ValueError, AttributeError):
            continue
    return discord.Color.blurple()


def progress_bar(percent: float, cells: int = PROGRESS_CELLS) -> str:
    """Text progress bar such as ``▓▓▓░░░…``."""
    filled = min(cells, max(0, int(percent / 100 * cells)))
    return "▓" * filled + "░" * (cells - filled)


def build_profile_embed(
    profile: ProfileData,
    guild_name: str,
    guild_icon_url: str | None = None,
) -> discord.Embed:
    """Text rendition of the profile card, used when no image could be made."""
    stats = profile.stats
    embed = discord.Embed(
        title=f"🎮 {profile.user.username}님의 프로필",
        color=_color(profile.style.accent_color),
    )
    if profile.user.avatar_url:
        embed.set_thumbnail(url=profile.user.avatar_url)
    embed.add_field(
        name="📊 레벨 정보",
        value=(
            f"레벨: **{stats.level}**\n"
            f"경험치: **{stats.xp:,}/{stats.max_xp:,}** XP\n"
            f"총 경험치: **{stats.total_xp:,}** XP"
        ),
        inline=True,
    )
    embed.add_field(
        name="🏆 순위 & 포인트",
        value=f"순위: **{format_rank(stats.rank)}**\n포인트: **{stats.points:,}**P",
        inline=True,
    )
    embed.add_field(
        name="📈 활동 통계",
        value=f"메시지: **{stats.total_messages:,}**개\n음성채팅: **{stats.voice_hours}**시간",
        inline=True,
    )
    percent = percent_complete(stats.xp, stats.max_xp)
    embed.add_field(
        name="📊 레벨 진행도",
        value=f"`{progress_bar(percent)}` {round(percent)}%",
        inline=False,
    )
    embed.set_footer(text=f"{guild_name} • 프로필 카드 생성 실패 - 임베드로 표시", icon_url=guild_icon_url)
    return embed


def build_stats_embed(
    username: str,
    avatar_url: str | None,
    record: Any,
    rank: int,
    guild_name: str,
    requester_name: str,
    guild_icon_url: str | None = None,
    achievements: Sequence[AchievementBadge] = (),
    achievement_count: int = 0,
) -> discord.Embed:
    """``/stats`` reply.  *record* is a progression snapshot."""
    embed = discord.Embed(title=f"📊 {username}님의 통계", color=_color(COLOR_ACCENT))
    if avatar_url:
        embed.set_thumbnail(url=avatar_url)
    embed.add_field(
        name="🏆 기본 정보",
        value=(
            f"레벨: **{level_for_xp(record.xp)}**\n"
            f"포인트: **{record.points:,}P**\n"
            f"랭킹: **{format_rank(rank)}**"
        ),
        inline=True,
    )
    embed.add_field(
        name="💬 활동 통계",
        value=(
            f"메시지: **{record.total_messages:,}개**\n"
            f"음성채팅: **{record.total_voice_time // 3600}시간**"
        ),
        inline=True,
    )
    embed.add_field(
        name="📈 경험치",
        value=f"총 경험치: **{record.xp:,}XP**",
        inline=True,
    )
    if achievements:
        lines = [f"{badge.icon or '🏅'} {badge.name}" for badge in achievements]
        extra = achievement_count - len(achievements)
        if extra > 0:
            lines.append(f"... 그 외 {extra}개")
        embed.add_field(
            name=f"🎖️ 업적 ({max(achievement_count, len(achievements))})",
            value="\n".join(lines),
            inline=False,
        )
    embed.set_footer(text=f"{guild_name} • 요청자: {requester_name}", icon_url=guild_icon_url)
    return embed


def build_leaderboard_embed(
    rows: Sequence[Mapping[str, Any]],
    guild_name: str,
    guild_icon_url: str | None = None,
) -> discord.Embed:
    """Top members by XP.  *rows* come from ``get_top_users``."""
    lines = []
    for row in rows:
        rank = row["rank"]
        badge = RANK_BADGES[rank - 1] if rank <= len(RANK_BADGES) else f"`#{rank}`"
        name = row.get("username") or f"<@{row['user_id']}>"
        lines.append(f"{badge} **{name}** — 레벨 {level_for_xp(row['xp'])} · {row['xp']:,} XP")
    embed = discord.Embed(
        title=f"🏆 {guild_name} 순위표",
        description="\n".join(lines),
        color=discord.Color.gold(),
    )
    if guild_icon_url:
        embed.set_thumbnail(url=guild_icon_url)
    return embed


def build_level_up_embed(
    user_id: int,
    avatar_url: str | None,
    new_level: int,
    points_gained: int,
) -> discord.Embed:
    """Level-up celebration embed with @mention."""
    embed = discord.Embed(
        title="⚡ 레벨 업!",
        description=(
            f"<@{user_id}>님이 **레벨 {new_level}**에 도달했습니다!\n"
            f"+{points_gained:,} 포인트 지급"
        ),
        color=discord.Color.gold(),
    )
    if avatar_url:
        embed.set_thumbnail(url=avatar_url)
    return embed
