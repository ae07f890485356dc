"""
tests/test_leveling.py — XP ↔ Level Math
=========================================
"""

from __future__ import annotations

import pytest

from wangbot.engine.leveling import (
    level_for_xp,
    level_progress,
    level_threshold,
    percent_complete,
    progress_within_level,
    xp_needed_for_next_level,
)


class TestLevelThreshold:
    def test_level_one_starts_at_zero(self):
        assert level_threshold(1) == 0
        assert level_threshold(0) == 0

    @pytest.mark.parametrize("level,expected", [(2, 400), (3, 900), (5, 2500), (10, 10_000)])
    def test_quadratic_from_level_two(self, level, expected):
        assert level_threshold(level) == expected


class TestLevelForXp:
    @pytest.mark.parametrize(
        "xp,level",
        [(-5, 1), (0, 1), (100, 1), (399, 1), (400, 2), (899, 2), (900, 3), (1250, 3), (2500, 5)],
    )
    def test_boundaries(self, xp, level):
        assert level_for_xp(xp) == level

    def test_level_threshold_round_trip(self):
        for level in range(1, 60):
            assert level_for_xp(level_threshold(level)) == level


class TestXpNeeded:
    def test_always_positive(self):
        for level in range(1, 200):
            assert xp_needed_for_next_level(level) > 0

    def test_matches_square_difference_from_level_two(self):
        for level in range(2, 100):
            expected = (level + 1) ** 2 * 100 - level ** 2 * 100
            assert xp_needed_for_next_level(level) == expected

    def test_first_level_spans_to_400(self):
        assert xp_needed_for_next_level(1) == 400


class TestPercentComplete:
    def test_zero_needed_guard(self):
        assert percent_complete(50, 0) == 0.0

    def test_clamped(self):
        assert percent_complete(-10, 100) == 0.0
        assert percent_complete(250, 100) == 100.0

    def test_monotonic(self):
        values = [percent_complete(p, 700) for p in range(-100, 900, 7)]
        assert values == sorted(values)
        assert all(0.0 <= v <= 100.0 for v in values)

    def test_half(self):
        assert percent_complete(350, 700) == pytest.approx(50.0)


class TestLevelProgress:
    def test_regression_fixture_1250_xp(self):
        """xp 1250 with a stale stored level 5 → derived level 3, 350 / 700."""
        progress = level_progress(1250)
        assert progress.level == 3
        assert progress.progress == 350
        assert progress.needed == 700
        assert progress.percent == pytest.approx(50.0)

    def test_stale_level_gives_negative_progress(self):
        assert progress_within_level(1250, 5) == -1250

    def test_derived_progress_never_negative(self):
        for xp in range(0, 20_000, 37):
            p = level_progress(xp)
            assert 0 <= p.progress < p.needed
