"""
hearth.bot.cogs.meta — Profile, Leaderboard & Achievements
===========================================================

Slash commands for user self-service:
- /profile — level, XP, activity counters, streaks, rank, achievements
- /leaderboard — top members in any activity category
- /achievements — the catalog, with the caller's unlocks ticked
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from hearth.constants import RARITY_EMOJI, format_minutes
from hearth.engine.achievements import ACHIEVEMENTS, ACHIEVEMENTS_BY_ID
from hearth.engine.leaderboard import ACTIVITY_CATEGORIES
from hearth.services.embeds import build_leaderboard_embed

if TYPE_CHECKING:
    from hearth.bot.core import HearthBot

_OWNED = "\u2705"
_LOCKED = "\u2b1c"


class Meta(commands.Cog, name="Meta"):
    """Profiles, leaderboards, and the achievement catalog."""

    def __init__(self, bot: HearthBot) -> None:
        self.bot = bot

    # -------------------------------------------------------------------
    # /profile
    # -------------------------------------------------------------------
    @app_commands.command(name="profile", description="View your (or another member's) profile.")
    @app_commands.describe(member="The member to look up (defaults to you)")
    @app_commands.guild_only()
    async def profile(
        self, interaction: discord.Interaction, member: discord.Member | None = None
    ) -> None:
        target = member or interaction.user
        ledger = self.bot.registry.activity(interaction.guild_id or 0)
        stats = ledger.get_user_stats(target.id)
        rank = ledger.get_user_rank(target.id, "xp")

        embed = discord.Embed(
            title=f"\U0001f464 {target.display_name}'s Profile",
            color=discord.Color.purple(),
        )
        embed.set_thumbnail(url=target.display_avatar.url)
        embed.add_field(name="Level", value=str(stats.level), inline=True)
        embed.add_field(name="XP", value=f"{stats.xp:,} / {stats.xp_for_next:,}", inline=True)
        embed.add_field(name="Rank", value=f"#{rank}", inline=True)
        embed.add_field(
            name="Activity",
            value=(
                f"\U0001f4ac {stats.messages:,} msgs | "
                f"\U0001f3a4 {format_minutes(stats.voice_minutes)} voice | "
                f"\U0001f4da {format_minutes(stats.study_minutes)} study"
            ),
            inline=False,
        )
        embed.add_field(
            name="\U0001f525 Streaks",
            value=f"{stats.daily_streak} days | {stats.weekly_streak} weeks",
            inline=True,
        )

        earned = [ACHIEVEMENTS_BY_ID[a] for a in stats.achievements if a in ACHIEVEMENTS_BY_ID]
        if earned:
            lines = [f"{a.emoji} {a.name}" for a in earned[-5:]]
            if len(earned) > 5:
                lines.append(f"*...and {len(earned) - 5} more*")
            embed.add_field(
                name=f"\U0001f3c6 Achievements ({len(earned)}/{len(ACHIEVEMENTS)})",
                value="\n".join(lines),
                inline=False,
            )
        embed.set_footer(text=self.bot.cfg.community_name)
        await interaction.response.send_message(embed=embed)

    # -------------------------------------------------------------------
    # /leaderboard
    # -------------------------------------------------------------------
    @app_commands.command(name="leaderboard", description="Top members in an activity category.")
    @app_commands.choices(category=[
        app_commands.Choice(name=c.name, value=c.id) for c in ACTIVITY_CATEGORIES.values()
    ])
    @app_commands.guild_only()
    async def leaderboard(self, interaction: discord.Interaction, category: str = "xp") -> None:
        cat = ACTIVITY_CATEGORIES[category]
        entries = self.bot.registry.activity(interaction.guild_id or 0).get_leaderboard(
            category, limit=10
        )
        if not entries:
            await interaction.response.send_message(
                "No data yet! Start chatting to appear on the leaderboard.", ephemeral=True
            )
            return
        embed = build_leaderboard_embed(f"{cat.emoji} {cat.name}", entries, fmt=cat.fmt)
        await interaction.response.send_message(embed=embed)

    # -------------------------------------------------------------------
    # /achievements
    # -------------------------------------------------------------------
    @app_commands.command(name="achievements", description="Browse all achievements.")
    @app_commands.guild_only()
    async def achievements(self, interaction: discord.Interaction) -> None:
        stats = self.bot.registry.activity(interaction.guild_id or 0).get_user_stats(
            interaction.user.id
        )
        owned = set(stats.achievements)
        lines = [
            f"{_OWNED if a.id in owned else _LOCKED} {a.emoji} **{a.name}** "
            f"{RARITY_EMOJI.get(a.rarity, '')} — {a.description} (+{a.reward_xp} XP)"
            for a in ACHIEVEMENTS
        ]
        embed = discord.Embed(
            title=f"\U0001f3c6 Achievements ({len(owned)}/{len(ACHIEVEMENTS)})",
            description="\n".join(lines),
            color=discord.Color.purple(),
        )
        await interaction.response.send_message(embed=embed, ephemeral=True)


async def setup(bot: HearthBot) -> None:
    await bot.add_cog(Meta(bot))
