"""
hearth.bot.__main__ — Entry point for ``python -m hearth.bot``
==============================================================

Wiring:
1. Load .env (secrets).
2. Load config.yaml (soft settings).
3. Open the JSON stores under ``data_dir`` via the guild registry.
4. Create the HearthBot and hand it config + registry.
5. Start the bot (blocking — runs the asyncio event loop).
"""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv

from hearth.bot.core import HearthBot
from hearth.config import load_config
from hearth.constants import MINUTE
from hearth.services.registry import GuildRegistry

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("hearth")


def main() -> None:
    """Bootstrap and run the Hearth bot."""

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
    logger.info("Config loaded — Community: %s", cfg.community_name)

    # 3. State.
    registry = GuildRegistry(
        cfg.data_dir, timer_cleanup_seconds=cfg.timer_cleanup_minutes * MINUTE
    )

    # 4. Bot.
    bot = HearthBot(cfg=cfg, registry=registry)

    # 5. Run (blocks until Ctrl+C or SIGTERM).
    logger.info("Starting Hearth bot…")
    try:
        bot.run(token, log_handler=None)
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully…")


if __name__ == "__main__":
    main()
