# -*- coding: utf-8 -*-
import discord
from discord.ext import commands
from discord import app_commands
import logging
from typing import Union

logger = logging.getLogger(__name__)


# -----------------------
# Shared error handler for cogs
# -----------------------
def describe_error(error: Union[app_commands.AppCommandError, commands.CommandError]) -> str:
    """Maps a command error to the message shown to the user."""
    if isinstance(error, (app_commands.MissingPermissions, commands.MissingPermissions)):
        return "🚫 You don't have permission to use this command."
    if isinstance(error, (app_commands.BotMissingPermissions, commands.BotMissingPermissions)):
        missing = ", ".join(p.replace("_", " ").title() for p in error.missing_permissions)
        return f"⚠️ I'm missing the permissions I need for this: `{missing}`."
    if isinstance(error, (app_commands.CommandOnCooldown, commands.CommandOnCooldown)):
        return f"⏳ Please wait `{error.retry_after:.1f}` seconds before using this command again."
    if isinstance(error, app_commands.NoPrivateMessage):
        return "⚠️ This command can only be used in a server."
    if isinstance(error, commands.MissingRequiredArgument):
        return f"⚠️ You forgot to provide `{error.param.name}`!"
    if isinstance(error, commands.BadArgument):
        return "⚠️ The input you provided is invalid."
    original = getattr(error, "original", error)
    return f"❌ An unexpected error occurred: `{original}`"


def _is_expected(error: Exception) -> bool:
    return isinstance(error, (
        app_commands.MissingPermissions, app_commands.BotMissingPermissions,
        app_commands.CommandOnCooldown, app_commands.NoPrivateMessage,
        commands.MissingPermissions, commands.BotMissingPermissions,
        commands.CommandOnCooldown, commands.MissingRequiredArgument, commands.BadArgument,
    ))


async def cog_command_error(ctx_or_interaction, error):
    """
    Shared error handler for prefix and slash commands: logs the failure and
    tells the user what went wrong.
    """
    if isinstance(ctx_or_interaction, commands.Context):
        if isinstance(error, commands.CommandNotFound):
            return
        ctx = ctx_or_interaction
        where, who, command = ctx.guild, ctx.author, ctx.command
        reply = lambda text: ctx.send(text, delete_after=10)
    elif isinstance(ctx_or_interaction, discord.Interaction):
        interaction = ctx_or_interaction
        where, who, command = interaction.guild, interaction.user, interaction.command
        send = interaction.followup.send if interaction.response.is_done() else interaction.response.send_message
        reply = lambda text: send(text, ephemeral=True)
    else:
        return

    if not _is_expected(error):
        logger.error(f"Command {command} raised: {getattr(error, 'original', error)}", exc_info=error)
    logger.warning(
        f"{type(error).__name__} in {command} | guild={getattr(where, 'name', 'DM')} | user={who} ({who.id}) | {error}"
    )

    try:
        await reply(describe_error(error))
    except discord.HTTPException as e:
        logger.warning(f"Could not report the error for {command}: {e}")
