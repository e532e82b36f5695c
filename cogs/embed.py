from __future__ import annotations
from typing import TYPE_CHECKING
import logging

import discord
from discord import app_commands
from discord.ext import commands

from utils.custom_embed import EmbedEditor
from utils.embed_draft import MessageDraft, build_embed
from utils.utils import fail_embed, safe_call, safe_send

if TYPE_CHECKING:
    from bot import LumenBot

from .utils import cog_command_error

logger = logging.getLogger(__name__)


class Embeds(commands.Cog, name="Embeds"):
    def __init__(self, bot: LumenBot):
        self.bot = bot

    async def cog_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        await cog_command_error(interaction, error)

    async def post_draft(self, draft: MessageDraft, interaction: discord.Interaction) -> None:
        """Replaces the editor with the finished message, posted in the editor's channel."""
        try:
            embed = build_embed(draft.embed, interaction.user, interaction.guild)
        except ValueError as e:
            await safe_call(
                interaction.response.send_message(embed=fail_embed(f"This embed cannot be posted: {e}"), ephemeral=True),
                "send reply",
            )
            return

        await safe_call(interaction.response.defer(), "defer update")
        await safe_call(interaction.delete_original_response(), "delete embed editor")

        kwargs = {"embed": embed}
        if draft.content:
            kwargs["content"] = draft.content
        if interaction.channel is not None:
            await safe_send(interaction.channel, **kwargs)

    @app_commands.command(name="embed", description="Open an Embed Builder where you can create/edit embeds!")
    @app_commands.guild_only()
    @app_commands.default_permissions(manage_guild=True)
    @app_commands.checks.bot_has_permissions(administrator=True)
    @app_commands.checks.cooldown(1, 30.0, key=lambda i: (i.guild_id, i.user.id))
    async def embed(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True)

        docs_url = self.bot.get_guild_config(interaction.guild.id)["embed_editor"]["docs_url"]
        editor = EmbedEditor(interaction, self.bot.db, docs_url=docs_url)
        if await editor.start() is None:
            return

        logger.info(f"Embed editor opened by {interaction.user} in guild {interaction.guild.id}")
        result = await editor.wait_for_submit()
        if result is None:
            return

        draft, save_interaction = result
        await self.post_draft(draft, save_interaction)


async def setup(bot: LumenBot):
    await bot.add_cog(Embeds(bot))
