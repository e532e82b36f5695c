"""Tests for posting a saved draft from the /embed command."""

from unittest.mock import MagicMock

import pytest

from cogs.embed import Embeds
from utils.embed_draft import EmbedDraft, MessageDraft
from tests.fakes import make_interaction


class TestPostDraft:
    """Tests for Embeds.post_draft()."""

    @pytest.mark.asyncio
    async def test_posts_expanded_embed_in_channel(self):
        cog = Embeds(MagicMock())
        interaction = make_interaction(user_id=7)
        draft = MessageDraft(content="Hello", embed=EmbedDraft(title="Hi {user.id}"))

        await cog.post_draft(draft, interaction)

        interaction.delete_original_response.assert_awaited_once()
        kwargs = interaction.channel.send.await_args.kwargs
        assert kwargs["embed"].title == "Hi 7"
        assert kwargs["content"] == "Hello"

    @pytest.mark.asyncio
    async def test_overflowing_draft_keeps_editor(self):
        cog = Embeds(MagicMock())
        interaction = make_interaction()
        draft = MessageDraft(embed=EmbedDraft(title="x" * 240 + "{user.avatar}"))

        await cog.post_draft(draft, interaction)

        interaction.delete_original_response.assert_not_awaited()
        interaction.channel.send.assert_not_awaited()
        kwargs = interaction.response.send_message.await_args.kwargs
        assert kwargs["ephemeral"] is True
        assert "title" in kwargs["embed"].description
