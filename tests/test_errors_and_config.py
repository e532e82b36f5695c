"""Tests for guild config merging, error reports and user-facing error messages."""

import logging

import pytest
from discord import app_commands
from discord.ext import commands

from bot import _parse_ids, get_default_config, merge_config
from cogs.utils import cog_command_error, describe_error
from utils.custom_logger import ERROR_LOGGER_NAME, ErrorReportFormatter, setup_logger
from tests.fakes import make_interaction


# =============================================================================
# Configuration Tests
# =============================================================================

class TestConfig:
    """Tests for default guild settings and merging saved overrides."""

    def test_defaults_are_fresh_copies(self):
        first = get_default_config()
        first["leveling"]["card"]["track_color"] = "#000000"
        assert get_default_config()["leveling"]["card"]["track_color"] == "#484b4e"

    def test_saved_values_override_nested_defaults(self):
        merged = merge_config(get_default_config(), {"leveling": {"enabled": False, "card": {"thumb_color": "#ff0000"}}})
        assert merged["leveling"]["enabled"] is False
        assert merged["leveling"]["card"]["thumb_color"] == "#ff0000"
        assert merged["leveling"]["card"]["track_color"] == "#484b4e"
        assert merged["embed_editor"]["docs_url"] == "https://discordstatus.com/"

    def test_unknown_keys_are_kept(self):
        assert merge_config(get_default_config(), {"extra": 1})["extra"] == 1

    def test_parse_ids(self):
        assert _parse_ids("1, 2,abc,3") == {1, 2, 3}
        assert _parse_ids(None) == set()


# =============================================================================
# Error Report Tests
# =============================================================================

class TestErrorReports:
    """Tests for the error-report logger."""

    def test_report_contains_extra_fields(self):
        record = logging.LogRecord("x", logging.ERROR, "/srv/lumen/bot.py", 1, "it broke", None, None)
        record.raw_data = "guild=1"
        report = ErrorReportFormatter().format(record)
        assert "it broke" in report
        assert "[guild=1]" in report
        assert "[bot.py]" in report

    def test_traceback_is_included(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            record = logging.LogRecord("x", logging.ERROR, "bot.py", 1, "failed", None, (type(e), e, e.__traceback__))
        assert "RuntimeError: boom" in ErrorReportFormatter().format(record)

    def test_setup_logger_writes_file_once(self, tmp_path):
        logger = setup_logger(tmp_path)
        try:
            assert logger.name == ERROR_LOGGER_NAME
            assert logger.propagate is False
            handler_count = len(logger.handlers)
            assert setup_logger(tmp_path) is logger
            assert len(logger.handlers) == handler_count
            assert (tmp_path / "errors.log").exists()
        finally:
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)


# =============================================================================
# User-facing Error Tests
# =============================================================================

class TestDescribeError:
    """Tests for describe_error()."""

    def test_missing_permissions(self):
        assert "don't have permission" in describe_error(app_commands.MissingPermissions(["manage_guild"]))

    def test_bot_missing_permissions_lists_them(self):
        message = describe_error(app_commands.BotMissingPermissions(["administrator", "manage_guild"]))
        assert "`Administrator, Manage Guild`" in message

    def test_cooldown(self):
        error = app_commands.CommandOnCooldown(commands.Cooldown(1, 30.0), 12.34)
        assert "`12.3` seconds" in describe_error(error)

    def test_unexpected_error_shows_original(self):
        error = commands.CommandInvokeError(RuntimeError("boom"))
        assert describe_error(error) == "❌ An unexpected error occurred: `boom`"


class TestCogCommandError:
    """Tests for replying to failed slash commands."""

    @pytest.mark.asyncio
    async def test_replies_ephemerally(self):
        interaction = make_interaction()
        await cog_command_error(interaction, app_commands.MissingPermissions(["manage_guild"]))

        args, kwargs = interaction.response.send_message.await_args
        assert "don't have permission" in args[0]
        assert kwargs["ephemeral"] is True

    @pytest.mark.asyncio
    async def test_uses_followup_after_defer(self):
        interaction = make_interaction(done=True)
        await cog_command_error(interaction, app_commands.NoPrivateMessage())

        interaction.response.send_message.assert_not_awaited()
        assert "only be used in a server" in interaction.followup.send.await_args.args[0]
