"""
wangbot.config — YAML Configuration Loader
===========================================

Reads ``config.yaml`` for the soft settings: which card renderer to use,
where the dashboard lives, XP tuning and display limits.  Secrets
(``DISCORD_TOKEN``, ``DATABASE_URL``) stay in ``.env``.

Usage::

    from wangbot.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.card_renderer)     # "remote"
    print(cfg.message_xp)        # 15
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

# Renderer strategies understood by wangbot.services.card_renderer.create_card_renderer
CARD_RENDERERS: frozenset[str] = frozenset({"local", "svg", "remote"})

DEFAULT_DASHBOARD_URL = "http://localhost:5000"


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class WangbotConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Discord
    bot_prefix: str

    # Card rendering
    card_renderer: str
    dashboard_url: str = DEFAULT_DASHBOARD_URL
    font_path: str | None = None
    font_bold_path: str | None = None

    # Command behaviour
    data_timeout_seconds: float = 2.0
    leaderboard_size: int = 10
    achievement_display_limit: int = 5
    status_text: str = "레벨링 시스템 | /profile"

    # XP tuning
    message_xp: int = 15
    message_cooldown_seconds: int = 60
    voice_xp_per_minute: int = 5
    points_per_level: int = 100


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> WangbotConfig:
    """Read *path* and return a :class:`WangbotConfig` instance.

    ``DASHBOARD_URL`` in the environment overrides ``dashboard_url``.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    ValueError
        If ``card_renderer`` names an unknown strategy.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    renderer = str(raw["card_renderer"]).strip().lower()
    if renderer not in CARD_RENDERERS:
        raise ValueError(
            f"Unknown card_renderer {renderer!r}. "
            f"Expected one of: {', '.join(sorted(CARD_RENDERERS))}"
        )

    dashboard_url = os.getenv("DASHBOARD_URL") or raw.get("dashboard_url") or DEFAULT_DASHBOARD_URL

    return WangbotConfig(
        bot_prefix=raw["bot_prefix"],
        card_renderer=renderer,
        dashboard_url=str(dashboard_url).rstrip("/"),
        font_path=raw.get("font_path") or None,
        font_bold_path=raw.get("font_bold_path") or None,
        data_timeout_seconds=float(raw.get("data_timeout_seconds", 2.0)),
        leaderboard_size=int(raw.get("leaderboard_size", 10)),
        achievement_display_limit=int(raw.get("achievement_display_limit", 5)),
        status_text=raw.get("status_text", "레벨링 시스템 | /profile"),
        message_xp=int(raw.get("message_xp", 15)),
        message_cooldown_seconds=int(raw.get("message_cooldown_seconds", 60)),
        voice_xp_per_minute=int(raw.get("voice_xp_per_minute", 5)),
        points_per_level=int(raw.get("points_per_level", 100)),
    )
