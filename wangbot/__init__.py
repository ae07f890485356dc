"""
Wangbot — Discord Leveling & Profile Card Bot
==============================================
Tracks member activity (messages, voice time) to award XP, levels and
points, renders a visual profile card for each member, and serves a small
dashboard API that renders the same card as SVG and stores per-member card
styles.

Package layout::

    wangbot/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Card palette, default style, Korean UI strings
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # ORM models (users, servers, progression, …)
    ├── engine/
    │   ├── leveling.py    # XP ↔ level math
    │   ├── profile.py     # ProfileData / CardStyle render input
    │   └── activity.py    # Message/voice XP rules, cooldowns
    ├── services/
    │   ├── progression_service.py  # Data access + rank computation
    │   ├── activity_service.py     # Activity → XP/level persistence
    │   ├── card_renderer.py        # Renderer contract + Pillow renderer
    │   ├── svg_card.py             # SVG renderer
    │   ├── remote_card.py          # Dashboard-backed renderer
    │   ├── profile_service.py      # /profile orchestration
    │   └── embeds.py               # Discord embed builders
    ├── bot/
    │   ├── core.py        # Bot subclass, cog loader
    │   └── cogs/
    │       ├── profile.py   # /profile
    │       ├── stats.py     # /stats, /leaderboard
    │       └── activity.py  # on_message + voice session tracking
    └── api/
        ├── main.py        # FastAPI app
        └── routes/        # Profile-card + public endpoints
"""

__version__ = "0.1.0"
