"""
tests/test_svg_card.py — SVG Profile Card
==========================================
"""

from __future__ import annotations

import asyncio
import xml.etree.ElementTree as ET

from wangbot.engine.profile import (
    AchievementBadge,
    CardStyle,
    UserIdentity,
    build_profile_data,
)
from wangbot.services.svg_card import SVG_CONTENT_TYPE, SvgCardRenderer, render_svg

SVG_NS = "{http://www.w3.org/2000/svg}"


def run_async(coro):
    return asyncio.run(coro)


def make_profile(*, username="wang", avatar_url=None, total_xp=1250, style=None, achievements=()):
    return build_profile_data(
        UserIdentity(id="1", username=username, avatar_url=avatar_url),
        total_xp=total_xp,
        points=500,
        rank=3,
        total_messages=10,
        total_voice_seconds=0,
        style=style,
        achievements=achievements,
    )


def _texts(document: str) -> list[str]:
    root = ET.fromstring(document)
    return [el.text or "" for el in root.iter(f"{SVG_NS}text")]


class TestRenderSvg:
    def test_well_formed_document(self):
        root = ET.fromstring(render_svg(make_profile()))
        assert root.tag == f"{SVG_NS}svg"
        assert root.get("width") == "800"
        assert root.get("height") == "400"

    def test_username_is_escaped(self):
        document = render_svg(make_profile(username="<b>&co"))
        assert "<b>&co" not in document
        assert "<b>&co" in _texts(document)

    def test_placeholder_initial_without_avatar(self):
        document = render_svg(make_profile(username="wang"))
        assert "W" in _texts(document)
        assert "<image" not in document

    def test_avatar_is_referenced(self):
        document = render_svg(make_profile(avatar_url="https://cdn.example.com/a.png?size=256&x=1"))
        root = ET.fromstring(document)
        hrefs = [el.get("href") for el in root.iter(f"{SVG_NS}image")]
        assert hrefs == ["https://cdn.example.com/a.png?size=256&x=1"]

    def test_stats_and_progress_text(self):
        texts = _texts(render_svg(make_profile()))
        assert "3" in texts
        assert "1,250" in texts
        assert "350 / 700 XP" in texts

    def test_progress_fill_width(self):
        root = ET.fromstring(render_svg(make_profile()))
        fills = [el for el in root.iter(f"{SVG_NS}rect") if el.get("fill") == "url(#progress)"]
        assert len(fills) == 1
        assert fills[0].get("width") == "350"

    def test_no_fill_at_level_start(self):
        document = render_svg(make_profile(total_xp=400))
        assert 'fill="url(#progress)"' not in document

    def test_badges_use_rarity_colors(self):
        badges = [
            AchievementBadge("첫 메시지", rarity="common"),
            AchievementBadge("전설", rarity="LEGENDARY"),
            AchievementBadge("미스터리", rarity="mythic"),
        ]
        document = render_svg(make_profile(achievements=badges))
        assert 'fill="#10B981"' in document
        assert 'fill="#FF6B00"' in document
        assert 'fill="#6B7280"' in document
        assert "<title>전설</title>" in document

    def test_at_most_five_badges(self):
        badges = [AchievementBadge(f"업적 {i}") for i in range(8)]
        document = render_svg(make_profile(achievements=badges))
        assert document.count("<title>") == 5

    def test_gradient_background(self):
        style = CardStyle(background_color="linear-gradient(90deg, #112233, #445566)")
        document = render_svg(make_profile(style=style))
        assert 'id="background"' in document
        assert 'stop-color="#112233"' in document
        assert 'fill="url(#overlay)"' in document

    def test_default_style_has_no_overlay(self):
        assert 'fill="url(#overlay)"' not in render_svg(make_profile())

    def test_border_uses_accent(self):
        document = render_svg(make_profile(style=CardStyle(accent_color="#ABCDEF")))
        assert 'stroke="#ABCDEF"' in document

    def test_deterministic(self):
        profile = make_profile(achievements=[AchievementBadge("a", rarity="rare")])
        assert render_svg(profile) == render_svg(profile)


class TestSvgCardRenderer:
    def test_render_returns_svg_card(self):
        card = run_async(SvgCardRenderer().render(make_profile()))
        assert card.filename == "profile.svg"
        assert card.content_type == SVG_CONTENT_TYPE
        assert card.data.startswith(b"<svg")

    def test_render_failure_returns_none(self, monkeypatch):
        def _boom(profile):
            raise RuntimeError("bad")

        monkeypatch.setattr("wangbot.services.svg_card.render_svg", _boom)
        assert run_async(SvgCardRenderer().render(make_profile())) is None
