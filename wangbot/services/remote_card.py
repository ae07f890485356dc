"""
wangbot.services.remote_card — Dashboard-rendered profile card
===============================================================

Asks the dashboard's ``POST /api/profile-card/{user_id}/{guild_id}``
endpoint for an SVG card.  Any transport error or non-2xx reply is logged
and reported as ``None`` so a :class:`FallbackCardRenderer` can take over.
"""

from __future__ import annotations

import logging

import httpx

from wangbot.engine.profile import ProfileData
from wangbot.services.card_renderer import CardImage
from wangbot.services.svg_card import SVG_CONTENT_TYPE

logger = logging.getLogger(__name__)

REMOTE_TIMEOUT_SECONDS = 5.0


class RemoteCardRenderer:
    filename = "profile.svg"

    def __init__(
        self,
        dashboard_url: str,
        *,
        timeout: float = REMOTE_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.dashboard_url = dashboard_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def endpoint(self, profile: ProfileData) -> str:
        return f"{self.dashboard_url}/api/profile-card/{profile.user.id}/{profile.guild_id}"

    async def render(self, profile: ProfileData) -> CardImage | None:
        url = self.endpoint(profile)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(url, json=profile.to_dict())
        except httpx.HTTPError as exc:
            logger.warning("Dashboard card request failed (%s): %s", url, exc)
            return None

        if not resp.is_success:
            logger.warning("Dashboard card request returned %d (%s)", resp.status_code, url)
            return None

        return CardImage(
            data=resp.content,
            filename=self.filename,
            content_type=resp.headers.get("content-type", SVG_CONTENT_TYPE).split(";")[0],
        )
