"""
tests/test_activity_engine.py — Message & Voice XP Rules
=========================================================

Pure rules only (no database).
"""

from __future__ import annotations

from wangbot.engine.activity import CooldownTracker, apply_xp, message_xp, voice_xp


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestMessageXp:
    def test_base(self):
        assert message_xp(15) == 15

    def test_multiplier_rounds(self):
        assert message_xp(15, 1.5) == 22  # round(22.5) → banker's rounding
        assert message_xp(15, 2.0) == 30

    def test_never_negative(self):
        assert message_xp(15, -1.0) == 0


class TestVoiceXp:
    def test_whole_minutes_only(self):
        assert voice_xp(59, 5) == 0
        assert voice_xp(60, 5) == 5
        assert voice_xp(179, 5) == 10

    def test_multiplier(self):
        assert voice_xp(600, 5, 0.5) == 25

    def test_negative_seconds(self):
        assert voice_xp(-120, 5) == 0


class TestApplyXp:
    def test_no_level_up(self):
        award = apply_xp(100, 1, 15, 100)
        assert award.new_xp == 115
        assert award.new_level == 1
        assert not award.leveled_up
        assert award.points_gained == 0

    def test_single_level_up_awards_points(self):
        award = apply_xp(390, 1, 15, 100)
        assert award.new_xp == 405
        assert award.old_level == 1
        assert award.new_level == 2
        assert award.leveled_up
        assert award.points_gained == 100

    def test_multi_level_jump(self):
        award = apply_xp(0, 1, 1000, 50)
        assert award.new_level == 3
        assert award.points_gained == 100

    def test_stale_level_never_drops(self):
        award = apply_xp(1250, 5, 15, 100)
        assert award.new_level == 5
        assert not award.leveled_up
        assert award.points_gained == 0


class TestCooldownTracker:
    def test_first_hit_allowed_then_blocked(self):
        clock = FakeClock()
        tracker = CooldownTracker(60, clock=clock)
        assert tracker.hit(1, 10) is True
        assert tracker.hit(1, 10) is False
        clock.now += 59.9
        assert tracker.hit(1, 10) is False
        clock.now += 0.1
        assert tracker.hit(1, 10) is True

    def test_keyed_by_user_and_server(self):
        tracker = CooldownTracker(60, clock=FakeClock())
        assert tracker.hit(1, 10)
        assert tracker.hit(1, 11)
        assert tracker.hit(2, 10)
        assert len(tracker) == 3

    def test_prune_drops_expired(self):
        clock = FakeClock()
        tracker = CooldownTracker(60, clock=clock)
        tracker.hit(1, 10)
        clock.now += 30
        tracker.hit(2, 10)
        clock.now += 31
        assert tracker.prune() == 1
        assert len(tracker) == 1
