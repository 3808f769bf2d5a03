"""
hearth.bot.core — Bot Instance & Cog Loader
============================================

Defines :class:`HearthBot`, a ``commands.Bot`` subclass that:

1. Stores the shared config (``bot.cfg``) and the per-guild manager
   registry (``bot.registry``) so every Cog reaches state via ``self.bot``.
2. Loads every Cog listed in :data:`EXTENSIONS`.
3. Syncs the slash-command tree on startup (guild-scoped for dev, global
   for production — controlled by the ``DEV_GUILD_ID`` env var).

Cogs never talk to each other directly; anything shared goes through the
registry.
"""

from __future__ import annotations

import logging
import os

import discord
from discord.ext import commands

from hearth.config import HearthConfig
from hearth.services.registry import GuildRegistry

logger = logging.getLogger(__name__)

# Cog modules to load on startup
EXTENSIONS: list[str] = [
    "hearth.bot.cogs.activity",
    "hearth.bot.cogs.economy",
    "hearth.bot.cogs.meta",
    "hearth.bot.cogs.timers",
    "hearth.bot.cogs.moderation",
    "hearth.bot.cogs.membership",
    "hearth.bot.cogs.audit",
    "hearth.bot.cogs.admin",
    "hearth.bot.cogs.tasks",
]


class HearthBot(commands.Bot):
    """Custom Bot subclass that carries project-wide state.

    Parameters
    ----------
    cfg:
        The parsed :class:`HearthConfig` from ``config.yaml``.
    registry:
        The :class:`GuildRegistry` owning every JSON store.
    """

    def __init__(self, cfg: HearthConfig, registry: GuildRegistry) -> None:
        # Privileged intents (must enable in Developer Portal):
        #   MESSAGE_CONTENT — bad-word filter
        #   GUILD_MEMBERS   — welcome flow and member cache
        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True
        intents.presences = False

        super().__init__(
            command_prefix=cfg.bot_prefix,
            intents=intents,
            description=f"{cfg.community_name} community bot",
        )

        self.cfg = cfg
        self.registry = registry

    # -----------------------------------------------------------------------
    # Lifecycle hooks
    # -----------------------------------------------------------------------
    async def setup_hook(self) -> None:
        """Load all Cog extensions.  One broken Cog is logged, not fatal."""
        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
                logger.info("Loaded extension: %s", ext)
            except Exception as exc:
                logger.error("Failed to load extension %s: %s", ext, exc)

    async def on_ready(self) -> None:
        """Fired when the bot has connected and the cache is populated."""
        assert self.user is not None  # guaranteed after on_ready
        logger.info("Logged in as %s (ID: %s)", self.user.name, self.user.id)
        logger.info("Serving %d guilds", len(self.guilds))

        dev_guild_id = os.getenv("DEV_GUILD_ID")
        if dev_guild_id:
            guild = discord.Object(id=int(dev_guild_id))
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
            logger.info("Synced %d commands to dev guild %s", len(synced), dev_guild_id)
        else:
            synced = await self.tree.sync()
            logger.info("Synced %d commands globally", len(synced))

    async def close(self) -> None:
        logger.info("Bot shutting down…")
        await super().close()
