"""
wangbot.api.routes.public — Read-only public endpoints
=========================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import Engine

from wangbot.api.deps import get_engine
from wangbot.engine.leveling import level_progress
from wangbot.services.progression_service import (
    get_top_users,
    get_user_rank,
    get_user_server_data,
)

router = APIRouter(tags=["public"])


def _avatar_url(user_id: int, avatar: str | None) -> str:
    """Full URLs pass through; bare hashes become Discord CDN URLs."""
    if avatar and avatar.startswith(("http://", "https://")):
        return avatar
    if avatar:
        ext = "gif" if avatar.startswith("a_") else "png"
        return f"https://cdn.discordapp.com/avatars/{user_id}/{avatar}.{ext}"
    return f"https://cdn.discordapp.com/embed/avatars/{(user_id >> 22) % 6}.png"


def _progress_dict(total_xp: int) -> dict:
    progress = level_progress(total_xp)
    return {
        "level": progress.level,
        "xp_in_level": progress.progress,
        "xp_for_next": progress.needed,
        "xp_progress": round(progress.percent / 100, 4),
    }


# ---------------------------------------------------------------------------
# GET /leaderboard/{guild_id}
# ---------------------------------------------------------------------------
@router.get("/leaderboard/{guild_id}")
def get_leaderboard(
    guild_id: int,
    limit: int = Query(10, ge=1, le=100),
    engine: Engine = Depends(get_engine),
):
    """Top members of a server by XP."""
    rows = get_top_users(engine, guild_id, limit)
    return {
        "guild_id": str(guild_id),
        "users": [
            {
                "rank": row["rank"],
                "id": str(row["user_id"]),
                "username": row["username"],
                "avatar_url": _avatar_url(row["user_id"], row["avatar"]),
                "xp": row["xp"],
                "points": row["points"],
                "total_messages": row["total_messages"],
                "total_voice_time": row["total_voice_time"],
                **_progress_dict(row["xp"]),
            }
            for row in rows
        ],
    }


# ---------------------------------------------------------------------------
# GET /users/{user_id}/servers/{guild_id}
# ---------------------------------------------------------------------------
@router.get("/users/{user_id}/servers/{guild_id}")
def get_member(user_id: int, guild_id: int, engine: Engine = Depends(get_engine)):
    """One member's progression in one server, with rank."""
    record = get_user_server_data(engine, user_id, guild_id)
    if record is None:
        raise HTTPException(404, "No progression record for this member")
    return {
        "user_id": str(record.user_id),
        "guild_id": str(record.server_id),
        "xp": record.xp,
        "points": record.points,
        "total_messages": record.total_messages,
        "total_voice_time": record.total_voice_time,
        "rank": get_user_rank(engine, user_id, guild_id),
        "style": record.style.to_dict(),
        **_progress_dict(record.xp),
    }
