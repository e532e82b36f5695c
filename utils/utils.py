# -*- coding: utf-8 -*-
import logging
from typing import Any, Awaitable, Optional, TypeVar

import discord

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def safe_call(awaitable: Awaitable[T], action: str) -> Optional[T]:
    """
    Awaits a Discord API call and swallows the failure.

    UI updates inside long-lived sessions must never take the session down, so
    HTTP errors are logged at debug level and ``None`` is returned instead.
    """
    try:
        return await awaitable
    except discord.HTTPException as e:
        logger.debug(f"Could not {action}: {e}")
    except discord.InteractionResponded as e:
        logger.debug(f"Could not {action}, interaction already answered: {e}")
    return None


async def safe_send(destination: discord.abc.Messageable, **kwargs: Any) -> Optional[discord.Message]:
    try:
        return await destination.send(**kwargs)
    except discord.Forbidden:
        logger.warning(f"No permission to send message to {destination}")
    except discord.HTTPException as e:
        logger.error(f"HTTP error while sending: {e}")
    return None


def fail_embed(description: str) -> discord.Embed:
    return discord.Embed(description=f"❌ {description}", color=discord.Color.from_str("#FF6666"))


def success_embed(description: str) -> discord.Embed:
    return discord.Embed(description=f"✅ {description}", color=discord.Color.from_str("#66FF66"))
