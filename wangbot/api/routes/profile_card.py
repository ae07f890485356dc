"""
wangbot.api.routes.profile_card — Profile card rendering & styles
==================================================================

    POST /profile-card/{user_id}/{guild_id}         — ProfileData JSON → SVG
    GET  /profile-card/{user_id}/{guild_id}/style   — Stored (or default) style
    PUT  /profile-card/{user_id}/{guild_id}/style   — Save style from the editor

Bodies use the dashboard's camelCase keys.
"""

from __future__ import annotations

import dataclasses
import logging
import re

import httpx
from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import Engine

from wangbot.api.deps import get_engine
from wangbot.constants import DEFAULT_ACCENT_COLOR, DEFAULT_PROGRESS_GRADIENT
from wangbot.engine.profile import CardStyle, ProfileData
from wangbot.services.progression_service import get_card_style, set_card_style
from wangbot.services.svg_card import SVG_CONTENT_TYPE, render_svg

logger = logging.getLogger(__name__)

router = APIRouter(tags=["profile-card"])

_HEX_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
_GRADIENT_RE = re.compile(r"^linear-gradient\(.+\)$")


def _check_hex(value: str | None) -> str | None:
    if value is not None and not _HEX_RE.match(value):
        raise ValueError("must be a #RRGGBB colour")
    return value


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class UserPayload(BaseModel):
    id: str | int
    username: str
    discriminator: str | None = "0"
    avatar: str | None = None


class StatsPayload(BaseModel):
    level: int | None = None
    xp: int | None = None
    maxXp: int | None = None
    totalXp: int = Field(default=0, ge=0)
    points: int = 0
    rank: int = 0
    totalMessages: int = 0
    voiceTime: int = 0


class StylePayload(BaseModel):
    accentColor: str | None = None
    progressGradient: list[str | None] | None = None
    backgroundColor: str | None = None
    backgroundImage: str | None = None


class AchievementPayload(BaseModel):
    name: str
    icon: str | None = None
    rarity: str | None = "common"


class ProfileCardRequest(BaseModel):
    user: UserPayload
    stats: StatsPayload
    style: StylePayload | None = None
    achievements: list[AchievementPayload] = []


class StyleUpdate(BaseModel):
    accentColor: str = DEFAULT_ACCENT_COLOR
    progressGradient: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PROGRESS_GRADIENT), min_length=2, max_length=2,
    )
    backgroundColor: str | None = None
    backgroundImage: str | None = None

    @field_validator("accentColor")
    @classmethod
    def _accent(cls, value: str) -> str:
        return _check_hex(value)

    @field_validator("progressGradient")
    @classmethod
    def _gradient(cls, value: list[str]) -> list[str]:
        for stop in value:
            _check_hex(stop)
        return value

    @field_validator("backgroundColor")
    @classmethod
    def _background_color(cls, value: str | None) -> str | None:
        if value is None or _HEX_RE.match(value):
            return value
        if _GRADIENT_RE.match(value) and re.search(r"#[0-9A-Fa-f]{6}", value):
            return value
        raise ValueError("must be a #RRGGBB colour or a linear-gradient(...)")

    @field_validator("backgroundImage")
    @classmethod
    def _background_image(cls, value: str | None) -> str | None:
        if value is None or value == "":
            return None
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as exc:
            raise ValueError(f"not a valid URL: {exc}") from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError("must be an http(s) URL with a host")
        return value


# ---------------------------------------------------------------------------
# POST /profile-card/{user_id}/{guild_id}
# ---------------------------------------------------------------------------
@router.post("/profile-card/{user_id}/{guild_id}")
def render_profile_card(user_id: int, guild_id: int, body: ProfileCardRequest):
    """Render the posted profile as an SVG card."""
    profile = dataclasses.replace(
        ProfileData.from_dict(body.model_dump()), guild_id=str(guild_id),
    )
    logger.debug("Rendering SVG card for user %s in guild %s", user_id, guild_id)
    return Response(content=render_svg(profile), media_type=SVG_CONTENT_TYPE)


# ---------------------------------------------------------------------------
# GET / PUT /profile-card/{user_id}/{guild_id}/style
# ---------------------------------------------------------------------------
@router.get("/profile-card/{user_id}/{guild_id}/style")
def read_card_style(user_id: int, guild_id: int, engine: Engine = Depends(get_engine)):
    return get_card_style(engine, user_id, guild_id).to_dict()


@router.put("/profile-card/{user_id}/{guild_id}/style")
def update_card_style(
    user_id: int,
    guild_id: int,
    body: StyleUpdate,
    engine: Engine = Depends(get_engine),
):
    style = CardStyle.from_dict(body.model_dump())
    if not set_card_style(engine, user_id, guild_id, style):
        raise HTTPException(404, "No progression record for this member")
    logger.info("Card style updated for user %s in guild %s", user_id, guild_id)
    return style.to_dict()
