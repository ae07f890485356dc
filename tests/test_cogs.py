"""
tests/test_cogs.py — Command Replies
=====================================

Cog callbacks driven with a recording context (no gateway).
"""

from __future__ import annotations

import asyncio
from types import SimpleNamespace

from wangbot.bot.cogs.profile import Profile
from wangbot.bot.cogs.stats import Stats
from wangbot.constants import MSG_PROFILE_FAILED, MSG_STATS_FAILED
from wangbot.engine.profile import UserIdentity


# Helper to run async tests without pytest-asyncio
def run_async(coro):
    return asyncio.run(coro)


class FakeContext:
    """Records ``defer`` / ``send`` calls the way a hybrid command makes them."""

    def __init__(self) -> None:
        self.guild = SimpleNamespace(id=500, name="Test Server", icon=None)
        self.author = SimpleNamespace(id=42)
        self.deferred: list[dict] = []
        self.sent: list[tuple[tuple, dict]] = []

    async def defer(self, **kwargs) -> None:
        self.deferred.append(kwargs)

    async def send(self, *args, **kwargs) -> None:
        self.sent.append((args, kwargs))


class _FailingProfiles:
    async def build_reply(self, *args, **kwargs):
        raise RuntimeError("card service down")


class TestFailureAfterDefer:
    def test_profile_failure_follows_public_defer(self, monkeypatch):
        monkeypatch.setattr(
            "wangbot.bot.cogs.profile.identity_for",
            lambda user: UserIdentity(id=str(user.id), username="wang"),
        )
        cog = Profile(SimpleNamespace(profiles=_FailingProfiles()))
        ctx = FakeContext()

        run_async(Profile.profile.callback(cog, ctx))

        assert ctx.deferred == [{}]
        assert ctx.sent == [((MSG_PROFILE_FAILED,), {})]

    def test_stats_without_database_follows_public_defer(self):
        cog = Stats(SimpleNamespace(engine=None))
        ctx = FakeContext()

        run_async(Stats.stats.callback(cog, ctx))

        assert ctx.deferred == [{}]
        assert ctx.sent == [((MSG_STATS_FAILED,), {})]
