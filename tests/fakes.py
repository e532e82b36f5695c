"""Small stand-ins for discord.py objects used across the test suite."""

from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import discord

from utils.embed_draft import MessageDraft


def make_response(done: bool = False) -> MagicMock:
    """An InteractionResponse whose ``is_done()`` flips once something responds."""
    state = {"done": done}
    response = MagicMock()
    response.is_done = MagicMock(side_effect=lambda: state["done"])

    async def _respond(*args: Any, **kwargs: Any) -> None:
        state["done"] = True

    for name in ("send_message", "defer", "edit_message", "send_modal"):
        setattr(response, name, AsyncMock(side_effect=_respond))
    return response


def make_user(user_id: int = 1, name: str = "tester") -> MagicMock:
    user = MagicMock()
    user.id = user_id
    user.name = name
    user.mention = f"<@{user_id}>"
    user.display_avatar.url = f"https://cdn.example.com/avatars/{user_id}.png"
    user.__str__ = MagicMock(return_value=name)
    return user


def make_guild(guild_id: int = 10, name: str = "Test Server") -> MagicMock:
    guild = MagicMock()
    guild.id = guild_id
    guild.name = name
    guild.member_count = 42
    guild.icon = None
    return guild


def make_message(message_id: int = 1000) -> MagicMock:
    message = MagicMock(spec=discord.Message)
    message.id = message_id
    message.edit = AsyncMock(return_value=message)
    message.reply = AsyncMock()
    message.delete = AsyncMock()
    return message


def make_interaction(
    *,
    user_id: int = 1,
    custom_id: Optional[str] = None,
    values: Optional[List[str]] = None,
    done: bool = False,
    message: Optional[MagicMock] = None,
) -> MagicMock:
    """A component/command interaction with every response path mocked."""
    message = message or make_message()
    interaction = MagicMock(spec=discord.Interaction)
    interaction.user = make_user(user_id)
    interaction.guild = make_guild()
    interaction.guild_id = interaction.guild.id
    interaction.data = {"custom_id": custom_id, "values": values or []}
    interaction.response = make_response(done)
    interaction.followup = MagicMock()
    interaction.followup.send = AsyncMock(return_value=message)
    interaction.original_response = AsyncMock(return_value=message)
    interaction.edit_original_response = AsyncMock(return_value=message)
    interaction.delete_original_response = AsyncMock()
    interaction.channel = MagicMock()
    interaction.channel.send = AsyncMock()
    return interaction


def make_channel(message: Optional[MagicMock] = None) -> MagicMock:
    channel = MagicMock(spec=discord.TextChannel)
    channel.send = AsyncMock(return_value=message or make_message())
    return channel


class FakeDatabase:
    """In-memory replacement for the export code storage of DatabaseManager."""

    def __init__(self):
        self.messages: Dict[str, Dict[str, Any]] = {}

    async def get_message(self, code: str) -> Optional[MessageDraft]:
        stored = self.messages.get(code)
        return MessageDraft.from_dict(stored["data"]) if stored else None

    async def update_messages(self, code: str, owner_id: int, draft: MessageDraft) -> None:
        self.messages[code] = {"owner_id": owner_id, "data": draft.to_dict()}
