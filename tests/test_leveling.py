"""Tests for XP progression and the Leveling cog's message handling."""

from unittest.mock import AsyncMock, MagicMock, patch

import discord
import pytest

from bot import get_default_config
from cogs.leveling import LEADERBOARD_PAGE_SIZE, Leveling, apply_xp, card_status, get_xp_for_level
from tests.fakes import make_channel, make_guild, make_user


@pytest.fixture
def bot():
    mock_bot = MagicMock()
    config = get_default_config()
    mock_bot.get_guild_config = MagicMock(return_value=config)
    mock_bot.db = MagicMock()
    mock_bot.db.get_level = AsyncMock(return_value=(0, 0))
    mock_bot.db.set_level = AsyncMock()
    mock_bot.http_session = None
    return mock_bot


def make_author_message(user_id=5, *, is_bot=False, guild=True):
    message = MagicMock(spec=discord.Message)
    message.author = make_user(user_id)
    message.author.bot = is_bot
    message.guild = make_guild() if guild else None
    message.channel = make_channel()
    return message


# =============================================================================
# XP Curve Tests
# =============================================================================

class TestXpCurve:
    """Tests for get_xp_for_level() and apply_xp()."""

    @pytest.mark.parametrize("level, expected", [(0, 100), (-3, 100), (1, 155), (2, 220), (10, 1100)])
    def test_xp_for_level(self, level, expected):
        assert get_xp_for_level(level) == expected

    def test_gain_without_level_up(self):
        assert apply_xp(0, 50, 20) == (0, 70, False)

    def test_level_up_carries_remainder(self):
        assert apply_xp(0, 90, 25) == (1, 15, True)

    def test_exact_threshold(self):
        assert apply_xp(1, 140, 15) == (2, 0, True)


# =============================================================================
# Cog Tests
# =============================================================================

class TestLevelingCog:
    """Tests for XP awarding on messages."""

    @pytest.mark.asyncio
    async def test_bots_and_dms_are_ignored(self, bot):
        cog = Leveling(bot)
        await cog.process_xp(make_author_message(is_bot=True))
        await cog.process_xp(make_author_message(guild=False))
        bot.db.get_level.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_disabled_guild_is_ignored(self, bot):
        bot.get_guild_config.return_value["leveling"]["enabled"] = False
        cog = Leveling(bot)
        await cog.process_xp(make_author_message())
        bot.db.get_level.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_message_awards_xp_once_per_cooldown(self, bot):
        cog = Leveling(bot)
        with patch("cogs.leveling.random.randint", return_value=20):
            await cog.process_xp(make_author_message())
            await cog.process_xp(make_author_message())

        bot.db.set_level.assert_awaited_once_with(10, 5, 0, 20)

    @pytest.mark.asyncio
    async def test_cooldown_is_per_member(self, bot):
        cog = Leveling(bot)
        await cog.process_xp(make_author_message(5))
        await cog.process_xp(make_author_message(6))
        assert bot.db.set_level.await_count == 2

    @pytest.mark.asyncio
    async def test_level_up_is_announced(self, bot):
        bot.db.get_level.return_value = (0, 95)
        cog = Leveling(bot)
        channel = make_channel()
        member = make_user(5)

        await cog.add_xp(10, member, 10, channel)

        bot.db.set_level.assert_awaited_once_with(10, 5, 1, 5)
        content = channel.send.await_args.args[0]
        assert "<@5>" in content
        assert "Level 1" in content

    @pytest.mark.asyncio
    async def test_announcement_without_permission_is_dropped(self, bot):
        bot.db.get_level.return_value = (0, 99)
        cog = Leveling(bot)
        channel = make_channel()
        channel.send.side_effect = discord.Forbidden(MagicMock(status=403), "missing access")

        await cog.add_xp(10, make_user(5), 10, channel)

        bot.db.set_level.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_background_skipped_without_session(self, bot):
        cog = Leveling(bot)
        assert await cog.get_background_bytes("https://example.com/bg.png") is None
        assert await cog.get_background_bytes(None) is None


# =============================================================================
# Leaderboard Tests
# =============================================================================

class TestLeaderboardPage:
    """Tests for rendering one leaderboard page."""

    @pytest.mark.asyncio
    async def test_page_lists_positions_with_offset(self, bot):
        bot.db.get_leaderboard = AsyncMock(return_value=[
            {"user_id": "7", "level": 4, "xp": 12},
            {"user_id": "8", "level": 3, "xp": 90},
        ])
        guild = make_guild(name="Lumen")
        known = MagicMock()
        known.display_name = "Sam"
        guild.get_member = MagicMock(side_effect=lambda user_id: known if user_id == 7 else None)
        cog = Leveling(bot)

        item = await cog._leaderboard_page(guild, 1, MagicMock())

        bot.db.get_leaderboard.assert_awaited_once_with(guild.id, LEADERBOARD_PAGE_SIZE, 10)
        lines = item.embeds[0].description.splitlines()
        assert lines[0] == "**11.** Sam - **Level 4** (12 XP)"
        assert lines[1].startswith("**12.** User ID: 8")
        assert item.embeds[0].title == "🏆 Level Leaderboard for Lumen"


class TestCardStatus:
    """Tests for the rank card status dot."""

    def _member(self, status=discord.Status.idle, activities=()):
        member = MagicMock()
        member.status = status
        member.activities = list(activities)
        return member

    def test_hidden_without_presence_data(self):
        assert card_status(self._member(discord.Status.offline), presences=False) is None

    def test_uses_member_status(self):
        assert card_status(self._member(discord.Status.dnd), presences=True) == "dnd"

    def test_streaming_wins(self):
        stream = discord.Streaming(name="live", url="https://twitch.tv/lumen")
        assert card_status(self._member(discord.Status.online, [stream]), presences=True) == "streaming"
