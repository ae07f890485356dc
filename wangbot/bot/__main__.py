"""
wangbot.bot.__main__ — Entry point for ``python -m wangbot.bot``
================================================================

Wiring:
1. Load .env (secrets).
2. Load config.yaml (soft settings).
3. Create the SQLAlchemy engine, check it and ensure tables exist.  A
   failure here is logged and the bot starts without a database.
4. Create the WangBot and hand it config + engine.
5. Start the bot (blocking — runs the asyncio event loop).

Run with::

    python -m wangbot.bot
"""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError

from wangbot.bot.core import WangBot
from wangbot.config import load_config
from wangbot.database.engine import check_connection, create_db_engine, init_db

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("wangbot")


def main() -> None:
    """Bootstrap and run the bot."""

    # 1. Environment variables (secrets).
    load_dotenv()

    token = os.getenv("DISCORD_TOKEN")
    if not token or token == "your-discord-bot-token-here":
        logger.critical(
            "DISCORD_TOKEN is not set.  "
            "Copy .env.example → .env and paste your bot token."
        )
        sys.exit(1)

    # 2. Soft configuration.
    cfg = load_config()
    logger.info("Config loaded — card renderer: %s", cfg.card_renderer)

    # 3. Database (optional at startup).
    engine = None
    try:
        engine = create_db_engine()
        check_connection(engine)
        init_db(engine)
        logger.info("Database connection established")
    except (RuntimeError, SQLAlchemyError) as exc:
        logger.error("Database unavailable, continuing without it: %s", exc)
        if engine is not None:
            engine.dispose()
        engine = None

    # 4. Bot.
    bot = WangBot(cfg=cfg, engine=engine)

    # 5. Run (blocks until Ctrl+C or SIGTERM).
    logger.info("Starting bot…")
    try:
        bot.run(token, log_handler=None)
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully…")


if __name__ == "__main__":
    main()
