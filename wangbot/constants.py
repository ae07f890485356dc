"""
wangbot.constants — Shared Constants
=====================================

Single source of truth for the profile-card palette, the default card
style, rarity colours and the Korean strings shown to members.  Both
renderers (Pillow and SVG) and the embed builders import from here.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Card geometry
# ---------------------------------------------------------------------------
CARD_WIDTH = 800
CARD_HEIGHT = 400
CORNER_RADIUS = 20

# ---------------------------------------------------------------------------
# Palette
# ---------------------------------------------------------------------------
COLOR_BACKGROUND = "#36393F"
COLOR_TEXT = "#FFFFFF"
COLOR_TEXT_MUTED = "#B9BBBE"
COLOR_ACCENT = "#5865F2"
COLOR_PROGRESS_BG = "#4F545C"

DEFAULT_ACCENT_COLOR = COLOR_ACCENT
DEFAULT_PROGRESS_GRADIENT: tuple[str, str] = ("#5865F2", "#FF73FA")

# ---------------------------------------------------------------------------
# Achievement rarity presentation
# ---------------------------------------------------------------------------
RARITY_COLORS: dict[str, str] = {
    "legendary": "#FF6B00",
    "epic": "#8B5CF6",
    "rare": "#3B82F6",
    "common": "#10B981",
}
RARITY_DEFAULT_COLOR = "#6B7280"

MAX_CARD_ACHIEVEMENTS = 5

RANK_BADGES: list[str] = ["\U0001f947", "\U0001f948", "\U0001f949"]  # 🥇🥈🥉


def rarity_color(rarity: str | None) -> str:
    """Hex colour for an achievement rarity; unknown tiers are gray."""
    return RARITY_COLORS.get((rarity or "").lower(), RARITY_DEFAULT_COLOR)


# ---------------------------------------------------------------------------
# Member-facing text (Korean)
# ---------------------------------------------------------------------------
MSG_NO_DATA = "해당 유저의 데이터를 찾을 수 없습니다. 서버에서 활동한 후 다시 시도해주세요."
MSG_NO_STATS = "해당 사용자의 통계를 찾을 수 없습니다. 서버에서 활동한 기록이 없을 수 있습니다."
MSG_PROFILE_FAILED = "프로필 카드를 생성하는 중 오류가 발생했습니다. 잠시 후 다시 시도해주세요."
MSG_STATS_FAILED = "통계를 불러오는 중 오류가 발생했습니다."
MSG_COMMAND_FAILED = "명령어 실행 중 오류가 발생했습니다."
MSG_GUILD_ONLY = "이 명령어는 서버에서만 사용할 수 있습니다."
MSG_LEADERBOARD_EMPTY = "아직 순위 데이터가 없습니다. 서버에서 활동해보세요!"
MSG_UNRANKED = "순위없음"

LABEL_LEVEL = "레벨"
LABEL_XP = "경험치"
LABEL_POINTS = "포인트"
LABEL_NEXT_LEVEL = "다음 레벨까지"
LABEL_RECENT_ACHIEVEMENTS = "최근 업적"


def format_rank(rank: int) -> str:
    """``#3`` for a ranked member, ``순위없음`` for the 0 sentinel."""
    return f"#{rank}" if rank > 0 else MSG_UNRANKED
