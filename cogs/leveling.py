from __future__ import annotations
from typing import TYPE_CHECKING, Dict, Optional
import asyncio
import io
import logging
import random
import time

import aiohttp
import discord
from discord import app_commands
from discord.ext import commands

from utils.level_card import RankCard, RankCardProps, RankCardStyles
from utils.pagination import Pagination, PaginationItem, PaginationOptions, PaginationResolver

if TYPE_CHECKING:
    from bot import LumenBot

from .utils import cog_command_error

logger = logging.getLogger(__name__)

LEADERBOARD_PAGE_SIZE = 10


def get_xp_for_level(level: int) -> int:
    """XP needed to advance from ``level`` to the next one."""
    if level <= 0:
        return 100
    return 5 * (level ** 2) + 50 * level + 100


def apply_xp(level: int, xp: int, gained: int) -> tuple[int, int, bool]:
    """Adds XP and carries the remainder over a level-up. Returns ``(level, xp, leveled_up)``."""
    xp += gained
    needed = get_xp_for_level(level)
    if xp >= needed:
        return level + 1, xp - needed, True
    return level, xp, False


def card_status(member: discord.Member, presences: bool) -> Optional[str]:
    """Status dot for the rank card. Without the presences intent Discord reports everyone as offline, so no dot."""
    if not presences:
        return None
    if any(isinstance(activity, discord.Streaming) for activity in member.activities):
        return "streaming"
    return member.status.value if isinstance(member.status, discord.Status) else None


class Leveling(commands.Cog, name="Leveling"):
    def __init__(self, bot: LumenBot):
        self.bot = bot
        # {guild_id: {user_id: last_rewarded_timestamp}}
        self.cooldowns: Dict[int, Dict[int, float]] = {}

    async def cog_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        await cog_command_error(interaction, error)

    # --- XP ---
    def _on_cooldown(self, guild_id: int, user_id: int, cooldown: float) -> bool:
        now = time.monotonic()
        guild_cooldowns = self.cooldowns.setdefault(guild_id, {})
        last = guild_cooldowns.get(user_id)
        if last is not None and now - last < cooldown:
            return True
        guild_cooldowns[user_id] = now
        return False

    async def process_xp(self, message: discord.Message):
        if message.author.bot or not message.guild:
            return

        conf = self.bot.get_guild_config(message.guild.id)['leveling']
        if not conf.get('enabled', False):
            return
        if self._on_cooldown(message.guild.id, message.author.id, conf.get('xp_cooldown_seconds', 60)):
            return

        xp_to_add = random.randint(conf.get('xp_per_message_min', 15), conf.get('xp_per_message_max', 25))
        await self.add_xp(message.guild.id, message.author, xp_to_add, message.channel)

    async def add_xp(self, guild_id: int, member: discord.Member, xp_to_add: int, channel: discord.abc.Messageable):
        level, xp = await self.bot.db.get_level(guild_id, member.id)
        level, xp, leveled_up = apply_xp(level, xp, xp_to_add)
        await self.bot.db.set_level(guild_id, member.id, level, xp)

        if not leveled_up:
            return

        logger.info(f"{member} reached level {level} in guild {guild_id}")
        template = self.bot.get_guild_config(guild_id)['leveling'].get(
            'levelup_message', "🎉 Congrats {user.mention}, you reached **Level {level}**!"
        )
        try:
            await channel.send(template.format(user=member, level=level), allowed_mentions=discord.AllowedMentions(users=True))
        except discord.Forbidden:
            logger.debug(f"Cannot announce level up in channel {getattr(channel, 'id', channel)}")

    # --- Rank card ---
    async def get_avatar_bytes(self, user: discord.abc.User) -> Optional[bytes]:
        try:
            return await user.display_avatar.with_format("png").read()
        except discord.HTTPException as e:
            logger.debug(f"Could not download avatar for {user}: {e}")
            return None

    async def get_background_bytes(self, url: Optional[str]) -> Optional[bytes]:
        if not url or self.bot.http_session is None:
            return None
        try:
            async with self.bot.http_session.get(url) as resp:
                if resp.status == 200:
                    return await resp.read()
                logger.debug(f"Card background request returned {resp.status}: {url}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug(f"Could not download card background {url}: {e}")
        return None

    @app_commands.command(name="rank", description="Check your or another user's current rank and level.")
    @app_commands.describe(user="The user whose rank to check. Defaults to you.")
    @app_commands.guild_only()
    async def rank(self, interaction: discord.Interaction, user: Optional[discord.Member] = None):
        target = user or interaction.user
        if target.bot:
            return await interaction.response.send_message("Bots don't have ranks!", ephemeral=True)
        await interaction.response.defer()

        guild_id = interaction.guild.id
        level, xp = await self.bot.db.get_level(guild_id, target.id)
        rank = await self.bot.db.get_rank(guild_id, target.id)
        card_conf = self.bot.get_guild_config(guild_id)['leveling']['card']

        status = card_status(target, self.bot.intents.presences)

        props = RankCardProps(
            rank=rank,
            level=level,
            current_xp=xp,
            required_xp=get_xp_for_level(level),
            avatar=await self.get_avatar_bytes(target),
            username=target.display_name,
            handle=f"@{target.name}",
            status=status,
            background_color=card_conf.get('background_color'),
            background_image=await self.get_background_bytes(card_conf.get('background_url')),
            styles=RankCardStyles(
                track=card_conf.get('track_color') or RankCardStyles.track,
                thumb=card_conf.get('thumb_color') or RankCardStyles.thumb,
            ),
        )

        loop = asyncio.get_running_loop()
        image = await loop.run_in_executor(None, RankCard(props).render)

        file = discord.File(fp=io.BytesIO(image), filename=f"rank_{target.id}.png")
        await interaction.followup.send(file=file)

    # --- Leaderboard ---
    async def _leaderboard_page(self, guild: discord.Guild, page: int, _: Pagination) -> PaginationItem:
        offset = page * LEADERBOARD_PAGE_SIZE
        rows = await self.bot.db.get_leaderboard(guild.id, LEADERBOARD_PAGE_SIZE, offset)

        lines = []
        for position, row in enumerate(rows, start=offset + 1):
            member = guild.get_member(int(row['user_id']))
            name = member.display_name if member else f"User ID: {row['user_id']}"
            lines.append(f"**{position}.** {name} - **Level {row['level']}** ({row['xp']} XP)")

        embed = discord.Embed(
            title=f"🏆 Level Leaderboard for {guild.name}",
            description="\n".join(lines) or "No one here yet.",
            color=discord.Color.gold(),
        )
        return PaginationItem(embeds=[embed])

    @app_commands.command(name="leaderboard-levels", description="Shows the server's leveling leaderboard.")
    @app_commands.guild_only()
    async def leaderboard_levels(self, interaction: discord.Interaction):
        await interaction.response.defer()
        guild = interaction.guild

        total = await self.bot.db.count_ranked(guild.id)
        if total == 0:
            return await interaction.followup.send("There is no one on the leaderboard yet!")

        pages = -(-total // LEADERBOARD_PAGE_SIZE)
        resolver = PaginationResolver(lambda page, pagination: self._leaderboard_page(guild, page, pagination), pages)
        options = PaginationOptions(filter=lambda i: i.user.id == interaction.user.id)
        await Pagination(interaction, resolver, options).send()


async def setup(bot: LumenBot):
    await bot.add_cog(Leveling(bot))
