"""
hearth.bot.cogs.membership — Welcome Flow
==========================================

Handles GUILD_MEMBER_ADD / GUILD_MEMBER_REMOVE.  Requires the GUILD_MEMBERS
privileged intent.

On join, when the guild's welcome config is enabled:

1. grant the join bonus (coins + economy XP),
2. assign the auto-role, if configured,
3. post the welcome message in the welcome channel,
4. DM the member, if enabled.

Joins and leaves are also forwarded to the audit log.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from hearth.services.embeds import build_audit_embed
from hearth.services.guild_config_service import WelcomeConfig, format_welcome_message
from hearth.services.notifier import resolve_channel, send_audit_log

if TYPE_CHECKING:
    from hearth.bot.core import HearthBot

logger = logging.getLogger(__name__)


def render_welcome(config: WelcomeConfig, member: discord.Member, template: str) -> str:
    return format_welcome_message(
        template,
        user_mention=member.mention if config.mention_user else member.display_name,
        username=member.name,
        display_name=member.display_name,
        server=member.guild.name,
        member_count=member.guild.member_count or 0,
    )


def _embed_color(hex_color: str) -> discord.Color:
    try:
        return discord.Color(int(hex_color.lstrip("#"), 16))
    except ValueError:
        return discord.Color.blurple()


class Membership(commands.Cog, name="Membership"):
    """Greets new members and logs departures."""

    def __init__(self, bot: HearthBot) -> None:
        self.bot = bot

    @commands.Cog.listener()
    async def on_member_join(self, member: discord.Member) -> None:
        try:
            if member.bot:
                return
            await self._welcome(member)
            logger.info("Member joined: %s (ID: %d)", member.display_name, member.id)
        except Exception:
            logger.exception("Error processing member_join for %s", member.id)

        await send_audit_log(
            self.bot,
            member.guild.id,
            "member_join",
            build_audit_embed(
                "\U0001f4e5 Member Joined",
                f"{member.mention} ({member}) — account created "
                f"{discord.utils.format_dt(member.created_at, 'R')}",
                discord.Color.green(),
            ),
        )

    @commands.Cog.listener()
    async def on_member_remove(self, member: discord.Member) -> None:
        if member.bot:
            return
        logger.info("Member left: %s (ID: %d)", member.display_name, member.id)
        await send_audit_log(
            self.bot,
            member.guild.id,
            "member_leave",
            build_audit_embed(
                "\U0001f4e4 Member Left",
                f"{member.mention} ({member})",
                discord.Color.dark_grey(),
            ),
        )

    async def _welcome(self, member: discord.Member) -> None:
        registry = self.bot.registry
        config = registry.welcome.get(member.guild.id)
        if not config.enabled:
            return

        coins = registry.apply_join_bonus(member.guild.id, member.id)

        if config.auto_role_id:
            role = member.guild.get_role(config.auto_role_id)
            if role is not None:
                try:
                    await member.add_roles(role, reason="Welcome auto-role")
                except discord.HTTPException:
                    logger.warning("Could not assign auto-role %s to %s", role.id, member.id)

        channel = await resolve_channel(self.bot, config.channel_id)
        if channel is not None:
            embed = discord.Embed(
                title=f"\U0001f44b Welcome to {member.guild.name}!",
                description=render_welcome(config, member, config.message),
                color=_embed_color(config.embed_color),
            )
            if config.card_enabled:
                embed.set_thumbnail(url=member.display_avatar.url)
            if coins:
                embed.set_footer(text=f"+{coins} coins welcome bonus")
            try:
                await channel.send(embed=embed)
            except discord.HTTPException:
                logger.exception("Failed to post welcome for %s", member.id)

        if config.dm_welcome:
            text = render_welcome(config, member, config.dm_message or config.message)
            try:
                await member.send(text)
            except discord.HTTPException:
                logger.info("Member %s does not accept DMs", member.id)


async def setup(bot: HearthBot) -> None:
    await bot.add_cog(Membership(bot))
