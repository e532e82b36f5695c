# -*- coding: utf-8 -*-

# --- Standard Library Imports ---
from __future__ import annotations
import os
import json
import asyncio
import logging
import copy
from pathlib import Path
from datetime import datetime, timezone
from typing import Dict, Optional, Any, Literal, Set, Tuple

# --- Third-Party Imports ---
import discord
from discord.ext import commands, tasks
from dotenv import load_dotenv
import aiofiles
import aiohttp
import humanize

# --- Local Imports ---
from utils.custom_logger import setup_logger
from utils.database import DatabaseManager

# --- .env Setup ---
load_dotenv()


def _parse_ids(raw: Optional[str]) -> Set[int]:
    return {int(part) for part in (raw or "").replace(" ", "").split(",") if part.isdigit()}


# --- Constants ---
OWNER_IDS = _parse_ids(os.getenv("OWNER_IDS"))
STATUS_CHANNEL_ID = int(os.getenv("STATUS_CHANNEL_ID") or 0)
DEFAULT_PREFIX = os.getenv("DEFAULT_PREFIX", "l!")

# --- Logging Configuration ---
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - [%(name)s] %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger('LumenBot')


# --- Default Guild Configuration ---
def get_default_config() -> Dict[str, Any]:
    """Returns a fresh copy of the default configuration for a guild."""
    return {
        "prefix": DEFAULT_PREFIX,
        "leveling": {
            "enabled": True,
            "levelup_message": "🎉 Congrats {user.mention}, you reached **Level {level}**!",
            "xp_per_message_min": 15,
            "xp_per_message_max": 25,
            "xp_cooldown_seconds": 60,
            "card": {"background_color": "#2b2f35", "track_color": "#484b4e", "thumb_color": "#ffffff", "background_url": None},
        },
        "embed_editor": {"docs_url": "https://discordstatus.com/"},
    }


def merge_config(defaults: Dict[str, Any], saved: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively overlays saved settings on top of the defaults."""
    for key, value in saved.items():
        if isinstance(value, dict) and isinstance(defaults.get(key), dict):
            defaults[key] = merge_config(defaults[key], value)
        else:
            defaults[key] = value
    return defaults


# --- UI Views ---
class OwnerPrompt(discord.ui.View):
    """A yes/no question only the command author may answer. ``answer`` stays None if nobody answers."""
    def __init__(self, author_id: int, yes_label: str, yes_style: discord.ButtonStyle = discord.ButtonStyle.primary):
        super().__init__(timeout=30.0)
        self.author_id = author_id
        self.answer: Optional[bool] = None
        self.yes.label = yes_label
        self.yes.style = yes_style

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if interaction.user.id == self.author_id:
            return True
        await interaction.response.send_message("Only the person who ran this command can answer.", ephemeral=True)
        return False

    async def _answer(self, interaction: discord.Interaction, value: bool):
        self.answer = value
        await interaction.response.defer()
        self.stop()

    @discord.ui.button(label="Yes", style=discord.ButtonStyle.primary)
    async def yes(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self._answer(interaction, True)

    @discord.ui.button(label="No", style=discord.ButtonStyle.secondary)
    async def no(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self._answer(interaction, False)


async def ask_author(ctx: commands.Context, question: str, yes_label: str,
                     yes_style: discord.ButtonStyle = discord.ButtonStyle.primary) -> Tuple[discord.Message, Optional[bool]]:
    prompt = OwnerPrompt(ctx.author.id, yes_label, yes_style)
    message = await ctx.send(question, view=prompt)
    await prompt.wait()
    return message, prompt.answer


# --- Main Bot Class ---
class LumenBot(commands.Bot):
    """
    Owns the SQLite database, the per-guild settings cache and the shared
    aiohttp session, and loads every extension found in ``cogs/``.
    """
    def __init__(self, root_path: Optional[Path] = None):
        self.root_path = root_path or Path(__file__).resolve().parent
        self.data_path = self.root_path / "data"
        self.data_path.mkdir(exist_ok=True)
        self.config_path = self.data_path / "config.json"

        intents = discord.Intents.default()
        intents.members = True
        intents.message_content = True
        super().__init__(
            command_prefix=self.get_prefix_wrapper,
            intents=intents,
            owner_ids=OWNER_IDS,
            case_insensitive=True,
            help_command=None,
        )

        self.logger = logger
        self.error_logger = setup_logger()
        self.start_time = datetime.now(timezone.utc)
        self.db = DatabaseManager(self.data_path / "lumen.db")
        self.http_session: Optional[aiohttp.ClientSession] = None
        # Saved overrides as read from disk, keyed by guild id string
        self.config_cache_from_file: Dict[str, Any] = {}
        # Effective settings (defaults + overrides), keyed by guild id
        self.config_cache: Dict[int, Dict[str, Any]] = {}

    async def setup_hook(self):
        self.http_session = aiohttp.ClientSession()
        self.tree.on_error = self.on_tree_error

        await self.db.init()
        await self.load_config()
        await self.add_cog(Maintenance(self))
        await self._load_extensions()
        self.logger.info(f"Setup finished. Slash commands are not synced automatically; run '{DEFAULT_PREFIX}sync'.")

    async def _load_extensions(self):
        loaded, failed = 0, []
        for path in sorted((self.root_path / "cogs").glob("*.py")):
            # cogs/utils.py is a helper module, not an extension
            if path.stem.startswith("_") or path.stem == "utils":
                continue
            try:
                await self.load_extension(f"cogs.{path.stem}")
                loaded += 1
            except commands.ExtensionError as e:
                failed.append(path.stem)
                self.logger.error(f"Extension cogs.{path.stem} failed to load: {e}", exc_info=True)

        self.logger.info(f"Loaded {loaded} extension(s).")
        if failed:
            self.logger.warning(f"Extensions that failed to load: {', '.join(failed)}")

    async def close(self):
        self.logger.info("Shutting down...")
        if self.auto_save_config.is_running():
            self.auto_save_config.cancel()
        await self.save_config()
        if self.http_session is not None:
            await self.http_session.close()
        await self.db.close()
        await super().close()

    # --- Configuration ---
    async def load_config(self):
        """Reads ``data/config.json``; a missing or corrupt file means no overrides."""
        try:
            async with aiofiles.open(self.config_path, 'r', encoding='utf-8') as f:
                saved = json.loads(await f.read())
        except FileNotFoundError:
            self.logger.info("No config.json yet, every guild uses the defaults.")
            saved = {}
        except json.JSONDecodeError as e:
            self.logger.warning(f"config.json is not valid JSON ({e}); ignoring it.")
            saved = {}
        self.config_cache_from_file = saved.get("guild_settings", {})
        self.config_cache.clear()

    async def save_config(self):
        """Writes the overrides to a temp file first, then swaps it in."""
        payload = json.dumps({"guild_settings": self.config_cache_from_file}, indent=4, ensure_ascii=False)
        temp_path = self.config_path.with_name(self.config_path.name + ".tmp")
        try:
            async with aiofiles.open(temp_path, 'w', encoding='utf-8') as f:
                await f.write(payload)
            os.replace(temp_path, self.config_path)
        except OSError as e:
            self.logger.error(f"Could not write config.json: {e}")

    def get_guild_config(self, guild_id: int) -> dict:
        """Effective settings for a guild: saved overrides merged over the defaults. Cached."""
        config = self.config_cache.get(guild_id)
        if config is None:
            overrides = copy.deepcopy(self.config_cache_from_file.get(str(guild_id), {}))
            config = self.config_cache[guild_id] = merge_config(get_default_config(), overrides)
        return config

    async def get_prefix_wrapper(self, bot, message: discord.Message):
        prefix = self.get_guild_config(message.guild.id).get("prefix", DEFAULT_PREFIX) if message.guild else DEFAULT_PREFIX
        return commands.when_mentioned_or(prefix)(bot, message)

    # --- Events ---
    async def on_ready(self):
        self.logger.info(f"Connected as {self.user} ({self.user.id}) on discord.py {discord.__version__}, in {len(self.guilds)} guild(s).")

        await self.send_status_message("🟢 Online", "Lumen is connected and ready.", discord.Color.green())
        await self.change_presence(activity=discord.Game(name=f"/embed | {len(self.guilds)} servers"))

        if not self.auto_save_config.is_running():
            self.auto_save_config.start()

    async def on_message(self, message: discord.Message):
        if message.author.bot or message.guild is None:
            return

        leveling = self.get_cog("Leveling")
        if leveling is not None:
            await leveling.process_xp(message)
        await self.process_commands(message)

    async def on_command_error(self, ctx: commands.Context, error: commands.CommandError):
        if isinstance(error, (commands.CommandNotFound, commands.NotOwner)):
            return
        if isinstance(error, commands.CommandOnCooldown):
            await ctx.send(f"⏳ Slow down! Try again in {error.retry_after:.1f}s.", delete_after=10)
            return
        self.error_logger.error(
            f"Prefix command '{ctx.command}' failed",
            exc_info=getattr(error, "original", error),
            extra={"raw_data": ctx.message.content},
        )
        await ctx.send("Something went wrong while running that command. It has been logged.")

    async def on_tree_error(self, interaction: discord.Interaction, error: discord.app_commands.AppCommandError):
        """Fallback for slash command errors that no cog handled."""
        error = getattr(error, "original", error)
        if isinstance(error, discord.app_commands.CommandOnCooldown):
            text = f"⏳ Slow down! Try again in {error.retry_after:.1f}s."
        elif isinstance(error, (discord.app_commands.MissingPermissions, discord.app_commands.BotMissingPermissions)):
            text = "🚫 This command cannot run because of missing permissions."
        else:
            name = interaction.command.qualified_name if interaction.command else "unknown"
            self.error_logger.error(
                f"Slash command '/{name}' failed",
                exc_info=error,
                extra={"raw_data": f"guild={interaction.guild_id} user={interaction.user.id}"},
            )
            text = "Something went wrong while running that command. It has been logged."

        send = interaction.followup.send if interaction.response.is_done() else interaction.response.send_message
        try:
            await send(text, ephemeral=True)
        except discord.HTTPException as e:
            self.logger.warning(f"Could not tell the user about a slash command error: {e}")

    # --- Status Channel ---
    async def send_status_message(self, title: str, description: str, color: discord.Color):
        """Posts an embed to ``STATUS_CHANNEL_ID`` when one is configured."""
        if not STATUS_CHANNEL_ID or self.user is None:
            return
        try:
            channel = self.get_channel(STATUS_CHANNEL_ID) or await self.fetch_channel(STATUS_CHANNEL_ID)
        except discord.HTTPException as e:
            self.logger.warning(f"Status channel {STATUS_CHANNEL_ID} is unavailable: {e}")
            return
        if not isinstance(channel, discord.abc.Messageable):
            return

        embed = discord.Embed(title=title, description=description, color=color, timestamp=datetime.now(timezone.utc))
        uptime = humanize.naturaldelta(datetime.now(timezone.utc) - self.start_time)
        embed.set_footer(text=f"Uptime: {uptime}")
        try:
            await channel.send(embed=embed)
        except discord.HTTPException as e:
            self.logger.warning(f"Could not post to status channel {STATUS_CHANNEL_ID}: {e}")

    # --- Background Tasks ---
    @tasks.loop(minutes=5)
    async def auto_save_config(self):
        await self.save_config()
        self.logger.debug("Guild settings saved.")

    @auto_save_config.before_loop
    async def before_auto_save(self):
        await self.wait_until_ready()


# --- Owner-Only Cog ---
class Maintenance(commands.Cog, name="Maintenance"):
    """Owner prefix commands: slash command sync, extension reload and shutdown."""
    def __init__(self, bot: LumenBot):
        self.bot = bot

    async def cog_check(self, ctx: commands.Context) -> bool:
        return await self.bot.is_owner(ctx.author)

    @commands.command(name="sync", hidden=True)
    async def sync(self, ctx: commands.Context, scope: Optional[Literal["guild", "clear"]] = None):
        """
        ``sync`` pushes every slash command globally, ``sync guild`` copies them
        to the current server only, ``sync clear`` removes the global ones.
        Global changes ask for confirmation first.
        """
        tree = self.bot.tree
        if scope == "guild":
            if ctx.guild is None:
                return await ctx.send("Run `sync guild` inside a server.")
            tree.copy_global_to(guild=ctx.guild)
            try:
                synced = await tree.sync(guild=ctx.guild)
            except discord.HTTPException as e:
                self.bot.logger.error(f"Guild sync failed for {ctx.guild.id}: {e}", exc_info=True)
                return await ctx.send(f"❌ Sync failed: `{e}`")
            self.bot.logger.info(f"{ctx.author} synced {len(synced)} command(s) to guild {ctx.guild.id}")
            return await ctx.send(f"✅ {len(synced)} command(s) synced to **{ctx.guild.name}**.")

        clearing = scope == "clear"
        question = "Remove **all** global slash commands?" if clearing else "Sync **all** slash commands globally?"
        message, answer = await ask_author(
            ctx,
            question + "\n-# Global changes can take up to an hour to show up everywhere.",
            "Clear" if clearing else "Sync",
            discord.ButtonStyle.danger if clearing else discord.ButtonStyle.primary,
        )
        if answer is not True:
            return await message.edit(content="Cancelled." if answer is False else "No answer, cancelled.", view=None)

        await message.edit(content="⏳ Working...", view=None)
        try:
            if clearing:
                tree.clear_commands(guild=None)
            synced = await tree.sync()
        except discord.HTTPException as e:
            self.bot.logger.error(f"Global sync failed: {e}", exc_info=True)
            return await message.edit(content=f"❌ Sync failed: `{e}`")

        self.bot.logger.info(f"{ctx.author} ran a global {'clear' if clearing else 'sync'} ({len(synced)} command(s))")
        await message.edit(content="🗑️ Global commands cleared." if clearing else f"✅ {len(synced)} command(s) synced globally.")

    @commands.command(name="reload", hidden=True)
    async def reload(self, ctx: commands.Context, extension: str):
        try:
            await self.bot.reload_extension(f"cogs.{extension}")
        except commands.ExtensionError as e:
            return await ctx.send(f"❌ Could not reload `{extension}`: `{e}`")
        await ctx.send(f"🔄 Reloaded `{extension}`.")

    @commands.command(name="shutdown", hidden=True)
    async def shutdown(self, ctx: commands.Context):
        message, answer = await ask_author(ctx, "Shut the bot down?", "Shut down", discord.ButtonStyle.danger)
        if answer is not True:
            return await message.edit(content="Shutdown cancelled.", view=None)
        await message.edit(content="👋 Shutting down.", view=None)
        self.bot.logger.info(f"Shutdown requested by {ctx.author}")
        await self.bot.close()


# --- Bot Execution ---
async def main():
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("DISCORD_BOT_TOKEN is missing; add it to your .env file.")
        return

    bot = LumenBot()
    try:
        await bot.start(token)
    except discord.LoginFailure:
        logger.critical("Discord rejected DISCORD_BOT_TOKEN.")
    finally:
        if not bot.is_closed():
            await bot.send_status_message("🔴 Offline", "Lumen is shutting down.", discord.Color.red())
            await bot.close()


def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting.")


if __name__ == "__main__":
    run()
