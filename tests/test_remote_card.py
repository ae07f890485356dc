"""
tests/test_remote_card.py — Dashboard-rendered profile card
============================================================

httpx.MockTransport stands in for the dashboard.
"""

from __future__ import annotations

import asyncio
import json

import httpx

from wangbot.engine.profile import UserIdentity, build_profile_data
from wangbot.services.remote_card import RemoteCardRenderer


def run_async(coro):
    return asyncio.run(coro)


def make_profile():
    return build_profile_data(
        UserIdentity(id="42", username="wang"),
        total_xp=1250,
        points=0,
        rank=1,
        total_messages=0,
        total_voice_seconds=0,
        guild_id="500",
    )


class TestRemoteCardRenderer:
    def test_posts_profile_and_returns_svg(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200, content=b"<svg/>", headers={"content-type": "image/svg+xml; charset=utf-8"},
            )

        renderer = RemoteCardRenderer("http://dash/", transport=httpx.MockTransport(handler))
        card = run_async(renderer.render(make_profile()))

        assert card is not None
        assert card.data == b"<svg/>"
        assert card.filename == "profile.svg"
        assert card.content_type == "image/svg+xml"

        assert len(seen) == 1
        assert seen[0].method == "POST"
        assert str(seen[0].url) == "http://dash/api/profile-card/42/500"
        body = json.loads(seen[0].content)
        assert body["user"]["id"] == "42"
        assert body["stats"]["level"] == 3
        assert body["stats"]["maxXp"] == 700

    def test_server_error_returns_none(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(500, text="boom"))
        renderer = RemoteCardRenderer("http://dash", transport=transport)
        assert run_async(renderer.render(make_profile())) is None

    def test_connection_error_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        renderer = RemoteCardRenderer("http://dash", transport=httpx.MockTransport(handler))
        assert run_async(renderer.render(make_profile())) is None

    def test_endpoint(self):
        assert RemoteCardRenderer("http://dash/").endpoint(make_profile()) == (
            "http://dash/api/profile-card/42/500"
        )
