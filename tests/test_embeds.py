"""
tests/test_embeds.py — Embed Builders & Welcome Rendering
==========================================================
"""

from __future__ import annotations

from types import SimpleNamespace

import discord

from hearth.bot.cogs.membership import _embed_color, render_welcome
from hearth.engine.leaderboard import LeaderboardEntry
from hearth.services.embeds import (
    build_leaderboard_embed,
    build_level_up_embed,
    build_timer_embed,
)
from hearth.services.guild_config_service import WelcomeConfig
from hearth.services.timer_service import TimerEngine
from conftest import GUILD


class TestTimerEmbed:
    def test_running_timer(self, clock):
        engine = TimerEngine(GUILD, clock=clock)
        timer = engine.create_timer(1, 10, "study", 3_600, "Study: Math")
        embed = build_timer_embed(timer)
        fields = {f.name: f.value for f in embed.fields}
        assert "Study: Math" in embed.title
        assert fields["Remaining"] == "1:00:00"
        assert "Running" in fields["Status"]
        assert "Progress" in fields
        assert "Cycle" not in fields
        assert embed.footer.text == f"ID: {timer.id}"

    def test_pomodoro_shows_cycle(self, clock):
        engine = TimerEngine(GUILD, clock=clock)
        timer = engine.create_pomodoro_session(1, 10, total_cycles=4)
        fields = {f.name: f.value for f in build_timer_embed(timer).fields}
        assert fields["Cycle"] == "0/4"

    def test_paused_status(self, clock):
        engine = TimerEngine(GUILD, clock=clock)
        timer = engine.create_timer(1, 10, "custom", 60, "Tea")
        engine.pause_timer(timer.id)
        fields = {f.name: f.value for f in build_timer_embed(timer).fields}
        assert "Paused" in fields["Status"]


class TestLeaderboardEmbed:
    def test_badges_and_format(self):
        entries = [LeaderboardEntry(rank=i, user_id=i * 10, value=i * 100) for i in range(1, 5)]
        embed = build_leaderboard_embed("Top", entries, fmt=lambda v: f"{v} XP")
        lines = embed.description.splitlines()
        assert len(lines) == 4
        assert lines[0].startswith("\U0001f947")
        assert lines[3].startswith("**#4**")
        assert lines[1].endswith("200 XP")

    def test_empty(self):
        assert build_leaderboard_embed("Top", []).description == "No data yet."


def test_level_up_mentions_user():
    embed = build_level_up_embed(42, None, 7)
    assert "<@42>" in embed.description
    assert "Level 7" in embed.description
    assert embed.thumbnail.url is None


# ---------------------------------------------------------------------------
# Welcome rendering
# ---------------------------------------------------------------------------
def _member(**overrides):
    guild = SimpleNamespace(name="Hearth", member_count=12)
    attrs = dict(mention="<@5>", name="ada", display_name="Ada", guild=guild)
    attrs.update(overrides)
    return SimpleNamespace(**attrs)


class TestRenderWelcome:
    def test_mentions_when_enabled(self):
        text = render_welcome(WelcomeConfig(), _member(), "Hi {user} in {server} (#{memberCount})")
        assert text == "Hi <@5> in Hearth (#12)"

    def test_display_name_when_mention_off(self):
        text = render_welcome(WelcomeConfig(mention_user=False), _member(), "Hi {user}")
        assert text == "Hi Ada"

    def test_unknown_member_count(self):
        member = _member(guild=SimpleNamespace(name="Hearth", member_count=None))
        assert render_welcome(WelcomeConfig(), member, "{memberCount}") == "0"


def test_embed_color():
    assert _embed_color("#667eea") == discord.Color(0x667EEA)
    assert _embed_color("not-a-colour") == discord.Color.blurple()
