"""
wangbot.bot.core — Bot Instance & Cog Loader
=============================================

Defines :class:`WangBot`, a ``commands.Bot`` subclass that:

1. Stores the shared config (``bot.cfg``), DB engine (``bot.engine``) and
   card renderer (``bot.renderer``) so every Cog can reach them.
2. Loads every Cog listed in :data:`EXTENSIONS`.
3. Syncs the slash-command tree on startup (guild-scoped for dev, global
   for production — controlled by the ``DEV_GUILD_ID`` env var).
4. Turns any unhandled command error into a logged traceback and a
   generic Korean reply.

``engine`` may be ``None`` when the database was unreachable at startup;
the bot still connects and commands answer with the failure message.
"""

from __future__ import annotations

import logging
import os

import discord
from discord import app_commands
from discord.ext import commands
from sqlalchemy import Engine

from wangbot.config import WangbotConfig
from wangbot.constants import MSG_COMMAND_FAILED, MSG_GUILD_ONLY
from wangbot.services.card_renderer import CardRenderer, create_card_renderer
from wangbot.services.profile_service import ProfileService

logger = logging.getLogger(__name__)

# Cog modules to load on startup.
EXTENSIONS: list[str] = [
    "wangbot.bot.cogs.profile",
    "wangbot.bot.cogs.stats",
    "wangbot.bot.cogs.activity",
]


class WangBot(commands.Bot):
    """Custom Bot subclass that carries project-wide state.

    Parameters
    ----------
    cfg:
        The parsed :class:`WangbotConfig` from ``config.yaml``.
    engine:
        A SQLAlchemy :class:`Engine`, or ``None`` in degraded mode.
    renderer:
        Card renderer override; built from ``cfg.card_renderer`` if omitted.
    """

    def __init__(
        self,
        cfg: WangbotConfig,
        engine: Engine | None,
        renderer: CardRenderer | None = None,
    ) -> None:
        intents = discord.Intents.default()
        intents.message_content = True    # Privileged: prefix commands
        intents.members = True            # Privileged: member lookup for /profile
        intents.presences = False

        super().__init__(
            command_prefix=cfg.bot_prefix,
            intents=intents,
            description="레벨링 & 프로필 카드 봇",
        )

        self.cfg = cfg
        self.engine = engine
        self.renderer = renderer or create_card_renderer(cfg)
        self.profiles = ProfileService(
            engine,
            self.renderer,
            timeout_seconds=cfg.data_timeout_seconds,
            achievement_limit=cfg.achievement_display_limit,
        )

    @property
    def db_available(self) -> bool:
        return self.engine is not None

    # -----------------------------------------------------------------------
    # Lifecycle hooks
    # -----------------------------------------------------------------------
    async def setup_hook(self) -> None:
        """Load all Cog extensions.  A broken Cog is logged and skipped."""
        self.tree.error(self.on_app_command_error)
        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
                logger.info("Loaded extension: %s", ext)
            except Exception as exc:
                logger.error("Failed to load extension %s: %s", ext, exc)

    async def on_ready(self) -> None:
        """Fired when the bot has connected and the cache is populated."""
        assert self.user is not None
        logger.info("Logged in as %s (ID: %s)", self.user.name, self.user.id)

        dev_guild_id = os.getenv("DEV_GUILD_ID")
        try:
            if dev_guild_id:
                guild = discord.Object(id=int(dev_guild_id))
                self.tree.copy_global_to(guild=guild)
                synced = await self.tree.sync(guild=guild)
                logger.info("Synced %d commands to dev guild %s", len(synced), dev_guild_id)
            else:
                synced = await self.tree.sync()
                logger.info("Synced %d commands globally", len(synced))
        except discord.HTTPException:
            logger.exception("Slash-command sync failed")

        await self.change_presence(activity=discord.Game(name=self.cfg.status_text))

        if not self.db_available:
            logger.warning("Running without a database — commands will report failures")

    # -----------------------------------------------------------------------
    # Top-level error handling
    # -----------------------------------------------------------------------
    async def on_command_error(self, ctx: commands.Context, error: commands.CommandError) -> None:
        if isinstance(error, commands.CommandNotFound):
            return
        if isinstance(error, commands.NoPrivateMessage):
            await ctx.send(MSG_GUILD_ONLY, ephemeral=True)
            return
        if isinstance(error, commands.UserInputError):
            await ctx.send(f"❌ {error}", ephemeral=True)
            return

        original = getattr(error, "original", error)
        logger.error(
            "Command %s failed for user %s",
            ctx.command.qualified_name if ctx.command else "?",
            ctx.author.id,
            exc_info=(type(original), original, original.__traceback__),
        )
        try:
            await ctx.send(MSG_COMMAND_FAILED, ephemeral=True)
        except discord.HTTPException:
            logger.exception("Failed to send error message")

    async def on_app_command_error(
        self,
        interaction: discord.Interaction,
        error: app_commands.AppCommandError,
    ) -> None:
        """Error handler for pure slash commands (hybrids go through ``on_command_error``)."""
        if isinstance(error, app_commands.NoPrivateMessage):
            message = MSG_GUILD_ONLY
        else:
            original = getattr(error, "original", error)
            logger.error(
                "App command %s failed for user %s",
                interaction.command.qualified_name if interaction.command else "?",
                interaction.user.id,
                exc_info=(type(original), original, original.__traceback__),
            )
            message = MSG_COMMAND_FAILED
        try:
            if interaction.response.is_done():
                await interaction.followup.send(message, ephemeral=True)
            else:
                await interaction.response.send_message(message, ephemeral=True)
        except discord.HTTPException:
            logger.exception("Failed to send error message")
