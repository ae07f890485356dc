"""
tests/test_config.py — YAML configuration loader
=================================================
"""

from __future__ import annotations

from pathlib import Path

import pytest

from wangbot.config import DEFAULT_DASHBOARD_URL, load_config


def _write(tmp_path, text: str):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    def test_minimal_file_gets_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv("DASHBOARD_URL", raising=False)
        cfg = load_config(_write(tmp_path, "bot_prefix: '!'\ncard_renderer: local\n"))
        assert cfg.bot_prefix == "!"
        assert cfg.card_renderer == "local"
        assert cfg.dashboard_url == DEFAULT_DASHBOARD_URL
        assert cfg.data_timeout_seconds == 2.0
        assert cfg.message_xp == 15
        assert cfg.font_path is None

    def test_full_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("DASHBOARD_URL", raising=False)
        cfg = load_config(_write(tmp_path, (
            "bot_prefix: '?'\n"
            "card_renderer: Remote\n"
            "dashboard_url: https://dash.example.com/\n"
            "font_path: /fonts/NotoSansKR-Regular.ttf\n"
            "data_timeout_seconds: 3\n"
            "leaderboard_size: 15\n"
            "message_xp: 20\n"
            "message_cooldown_seconds: 30\n"
        )))
        assert cfg.card_renderer == "remote"
        assert cfg.dashboard_url == "https://dash.example.com"
        assert cfg.font_path == "/fonts/NotoSansKR-Regular.ttf"
        assert cfg.data_timeout_seconds == 3.0
        assert cfg.leaderboard_size == 15
        assert cfg.message_xp == 20
        assert cfg.message_cooldown_seconds == 30

    def test_env_overrides_dashboard_url(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DASHBOARD_URL", "http://dashboard:5000/")
        cfg = load_config(_write(tmp_path, (
            "bot_prefix: '!'\ncard_renderer: remote\ndashboard_url: http://ignored\n"
        )))
        assert cfg.dashboard_url == "http://dashboard:5000"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="config.yaml.example"):
            load_config(tmp_path / "nope.yaml")

    def test_missing_required_key(self, tmp_path):
        with pytest.raises(KeyError):
            load_config(_write(tmp_path, "bot_prefix: '!'\n"))

    def test_unknown_renderer(self, tmp_path):
        with pytest.raises(ValueError, match="canvas"):
            load_config(_write(tmp_path, "bot_prefix: '!'\ncard_renderer: canvas\n"))

    def test_example_file_loads(self):
        cfg = load_config(Path(__file__).resolve().parent.parent / "config.yaml.example")
        assert cfg.card_renderer in {"local", "svg", "remote"}
