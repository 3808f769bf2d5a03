"""
tests/test_guild_config.py — Welcome, Audit Log & Bad-Word Settings
====================================================================
"""

from __future__ import annotations

from hearth.services.guild_config_service import (
    AUDIT_EVENTS,
    DEFAULT_WELCOME_MESSAGE,
    AuditConfig,
    format_welcome_message,
)
from hearth.services.registry import GuildRegistry
from conftest import GUILD, OTHER_GUILD


class TestWelcome:
    def test_defaults_written_on_first_read(self, registry):
        config = registry.welcome.get(GUILD)
        assert config.enabled is True
        assert config.channel_id is None
        assert config.message == DEFAULT_WELCOME_MESSAGE
        assert config.bonus_coins == 100
        assert str(GUILD) in registry.stores["welcome"]

    def test_update(self, registry):
        assert registry.welcome.update(GUILD, bonus_coins=250, dm_welcome=True) is True
        config = registry.welcome.get(GUILD)
        assert (config.bonus_coins, config.dm_welcome) == (250, True)

    def test_unknown_key_rejects_whole_update(self, registry):
        assert registry.welcome.update(GUILD, bonus_coins=5, confetti=True) is False
        assert registry.welcome.get(GUILD).bonus_coins == 100

    def test_helpers(self, registry):
        registry.welcome.set_channel(GUILD, 55)
        registry.welcome.set_message(GUILD, "Hi {user}")
        registry.welcome.set_auto_role(GUILD, 77)
        registry.welcome.toggle(GUILD, False)
        registry.welcome.toggle_card(GUILD, False)
        config = registry.welcome.get(GUILD)
        assert config.card_enabled is False
        assert (config.channel_id, config.message, config.auto_role_id, config.enabled) == (
            55, "Hi {user}", 77, False,
        )
        assert registry.welcome.get(OTHER_GUILD).channel_id is None

    def test_persisted(self, registry, tmp_path):
        registry.welcome.set_channel(GUILD, 55)
        assert GuildRegistry(tmp_path).welcome.get(GUILD).channel_id == 55


def test_format_welcome_message():
    text = format_welcome_message(
        "{user} ({username}/{displayName}) joined {server}, member #{memberCount}. {user}!",
        user_mention="<@1>",
        username="ada",
        display_name="Ada",
        server="Hearth",
        member_count=42,
    )
    assert text == "<@1> (ada/Ada) joined Hearth, member #42. <@1>!"


def test_format_leaves_unknown_placeholders():
    text = format_welcome_message(
        "Hello {nickname}", user_mention="u", username="u", display_name="u",
        server="s", member_count=1,
    )
    assert text == "Hello {nickname}"


class TestAuditLog:
    def test_disabled_by_default(self, registry):
        config = registry.audit.get(GUILD)
        assert config.enabled is False
        assert set(config.events) == set(AUDIT_EVENTS)
        assert registry.audit.should_log(GUILD, "member_join") is False

    def test_set_channel_enables(self, registry):
        registry.audit.set_log_channel(GUILD, 500)
        assert registry.audit.should_log(GUILD, "member_join") is True

    def test_event_toggle(self, registry):
        registry.audit.set_log_channel(GUILD, 500)
        assert registry.audit.toggle_event(GUILD, "message_delete", False) is True
        assert registry.audit.should_log(GUILD, "message_delete") is False
        assert registry.audit.should_log(GUILD, "message_edit") is True
        assert registry.audit.toggle_event(GUILD, "sneeze", True) is False

    def test_toggle_logging(self, registry):
        registry.audit.set_log_channel(GUILD, 500)
        registry.audit.toggle_logging(GUILD, False)
        assert registry.audit.should_log(GUILD, "member_join") is False

    def test_enabled_without_channel_does_not_log(self, registry):
        registry.audit.toggle_logging(GUILD, True)
        assert registry.audit.should_log(GUILD, "member_join") is False

    def test_unknown_event_never_logged(self, registry):
        registry.audit.set_log_channel(GUILD, 500)
        assert registry.audit.should_log(GUILD, "sneeze") is False

    def test_from_dict_merges_defaults(self):
        config = AuditConfig.from_dict(
            {"enabled": True, "channel_id": 3, "events": {"member_join": False, "bogus": True}}
        )
        assert config.events["member_join"] is False
        assert config.events["member_leave"] is True
        assert "bogus" not in config.events
        assert len(config.events) == len(AUDIT_EVENTS)


class TestBadWords:
    def test_add_normalises(self, registry):
        assert registry.bad_words.add(GUILD, "  Darn ") is True
        assert registry.bad_words.get(GUILD) == ["darn"]

    def test_add_rejects_blank_and_duplicate(self, registry):
        registry.bad_words.add(GUILD, "darn")
        assert registry.bad_words.add(GUILD, "DARN") is False
        assert registry.bad_words.add(GUILD, "   ") is False
        assert registry.bad_words.get(GUILD) == ["darn"]

    def test_remove(self, registry):
        registry.bad_words.add(GUILD, "darn")
        assert registry.bad_words.remove(GUILD, "Darn") is True
        assert registry.bad_words.remove(GUILD, "darn") is False
        assert registry.bad_words.get(GUILD) == []

    def test_whole_word_match(self, registry):
        registry.bad_words.add(GUILD, "darn")
        assert registry.bad_words.find_bad_word(GUILD, "Well DARN it!") == "darn"
        assert registry.bad_words.find_bad_word(GUILD, "darning socks") is None
        assert registry.bad_words.find_bad_word(OTHER_GUILD, "darn") is None

    def test_regex_characters_escaped(self, registry):
        registry.bad_words.add(GUILD, "a.b")
        assert registry.bad_words.find_bad_word(GUILD, "axb") is None
        assert registry.bad_words.find_bad_word(GUILD, "say a.b now") == "a.b"
