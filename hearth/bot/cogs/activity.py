"""
hearth.bot.cogs.activity — Activity Listeners
==============================================

Feeds the activity ledger from gateway events:

- messages → ``message``
- voice sessions (leave or move) → ``voice`` minutes, at least one minute
- reactions → ``reaction_given`` for the reactor, ``reaction_received``
  for the message author (never for self-reactions)
- completed slash commands → ``command``

Level-ups and achievement unlocks from messages are announced in the
channel the message was sent in.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from hearth.constants import MINUTE
from hearth.services.activity_service import ActivityKind
from hearth.services.notifier import announce_activity

if TYPE_CHECKING:
    from hearth.bot.core import HearthBot

logger = logging.getLogger(__name__)


class Activity(commands.Cog, name="Activity"):
    """Tracks messages, voice time, reactions, and command use."""

    def __init__(self, bot: HearthBot) -> None:
        self.bot = bot
        # {(guild_id, user_id): join_timestamp}
        self._voice_sessions: dict[tuple[int, int], float] = {}

    # -------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------
    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot or message.guild is None:
            return
        # Filtered messages are deleted by the moderation cog and earn nothing.
        if self.bot.registry.bad_words.find_bad_word(message.guild.id, message.content):
            return
        try:
            result = self.bot.registry.activity(message.guild.id).add_activity(
                message.author.id, ActivityKind.MESSAGE
            )
        except Exception:
            logger.exception("Error recording message activity for %s", message.author.id)
            return
        if result is not None:
            await announce_activity(
                message.channel,
                result=result,
                user_id=message.author.id,
                avatar_url=message.author.display_avatar.url,
            )

    # -------------------------------------------------------------------
    # Voice
    # -------------------------------------------------------------------
    @commands.Cog.listener()
    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        if member.bot:
            return
        key = (member.guild.id, member.id)

        # Join
        if before.channel is None and after.channel is not None:
            self._voice_sessions[key] = time.time()
            return

        # Leave or move: credit the finished stretch
        if before.channel is not None and before.channel != after.channel:
            joined = self._voice_sessions.pop(key, None)
            if joined is not None:
                minutes = int((time.time() - joined) // MINUTE)
                if minutes >= 1:
                    try:
                        self.bot.registry.activity(member.guild.id).add_activity(
                            member.id, ActivityKind.VOICE, minutes
                        )
                    except Exception:
                        logger.exception("Error recording voice time for %s", member.id)
            if after.channel is not None:
                self._voice_sessions[key] = time.time()

    # -------------------------------------------------------------------
    # Reactions
    # -------------------------------------------------------------------
    @commands.Cog.listener()
    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent) -> None:
        if payload.guild_id is None:
            return
        if payload.member is not None and payload.member.bot:
            return
        ledger = self.bot.registry.activity(payload.guild_id)
        try:
            ledger.add_activity(payload.user_id, ActivityKind.REACTION_GIVEN)
            author_id = payload.message_author_id
            if author_id is not None and author_id != payload.user_id:
                author = self._member(payload.guild_id, author_id)
                if author is None or not author.bot:
                    ledger.add_activity(author_id, ActivityKind.REACTION_RECEIVED)
        except Exception:
            logger.exception("Error recording reaction activity for %s", payload.user_id)

    def _member(self, guild_id: int, user_id: int) -> discord.Member | None:
        guild = self.bot.get_guild(guild_id)
        return guild.get_member(user_id) if guild else None

    # -------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------
    @commands.Cog.listener()
    async def on_app_command_completion(
        self,
        interaction: discord.Interaction,
        command: app_commands.Command | app_commands.ContextMenu,
    ) -> None:
        if interaction.guild is None or interaction.user.bot:
            return
        try:
            self.bot.registry.activity(interaction.guild.id).add_activity(
                interaction.user.id, ActivityKind.COMMAND
            )
        except Exception:
            logger.exception("Error recording command use for %s", interaction.user.id)


async def setup(bot: HearthBot) -> None:
    await bot.add_cog(Activity(bot))
