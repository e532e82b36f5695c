# -*- coding: utf-8 -*-
"""
Serializable drafts for user-built messages.

A ``MessageDraft`` is what the embed editor mutates and what gets exported to
the database. ``build_embed`` turns a draft embed into a ``discord.Embed`` and
raises ``ValueError`` when the result would be rejected by Discord.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import discord

DEFAULT_COLOR = "#1e1f22"
HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")
INLINE_TRUTHY = ("y", "yes", "true", "1")

# Discord embed limits
TITLE_LIMIT = 256
DESCRIPTION_LIMIT = 4096
FIELD_COUNT_LIMIT = 25
FIELD_NAME_LIMIT = 256
FIELD_VALUE_LIMIT = 1024
FOOTER_TEXT_LIMIT = 2048
AUTHOR_NAME_LIMIT = 256
TOTAL_LIMIT = 6000


@dataclass
class EmbedAuthor:
    name: Optional[str] = None
    url: Optional[str] = None
    icon_url: Optional[str] = None


@dataclass
class EmbedFooter:
    text: Optional[str] = None
    icon_url: Optional[str] = None


@dataclass
class EmbedField:
    name: str = ""
    value: str = ""
    inline: bool = False


@dataclass
class EmbedDraft:
    title: Optional[str] = None
    description: Optional[str] = None
    color: str = DEFAULT_COLOR
    url: Optional[str] = None
    image: Optional[str] = None
    thumbnail: Optional[str] = None
    author: EmbedAuthor = field(default_factory=EmbedAuthor)
    footer: EmbedFooter = field(default_factory=EmbedFooter)
    fields: List[EmbedField] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> EmbedDraft:
        author = data.get("author") or {}
        footer = data.get("footer") or {}
        return cls(
            title=data.get("title"),
            description=data.get("description"),
            color=data.get("color") or DEFAULT_COLOR,
            url=data.get("url"),
            image=data.get("image"),
            thumbnail=data.get("thumbnail"),
            author=EmbedAuthor(
                name=author.get("name"),
                url=author.get("url"),
                icon_url=author.get("icon_url"),
            ),
            footer=EmbedFooter(text=footer.get("text"), icon_url=footer.get("icon_url")),
            fields=[
                EmbedField(
                    name=f.get("name") or "",
                    value=f.get("value") or "",
                    inline=bool(f.get("inline", False)),
                )
                for f in data.get("fields") or []
            ],
        )

    def copy(self) -> EmbedDraft:
        return EmbedDraft.from_dict(self.to_dict())


@dataclass
class MessageDraft:
    content: Optional[str] = None
    embed: EmbedDraft = field(default_factory=EmbedDraft)

    def to_dict(self) -> Dict[str, Any]:
        return {"content": self.content, "embed": self.embed.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> MessageDraft:
        return cls(content=data.get("content"), embed=EmbedDraft.from_dict(data.get("embed") or {}))


def is_empty_embed(embed: EmbedDraft) -> bool:
    """An embed is empty when it has no title, description, author name, footer text or fields."""
    return not (
        embed.title
        or embed.description
        or embed.author.name
        or embed.footer.text
        or embed.fields
    )


def normalize_color(value: Optional[str]) -> str:
    """Returns ``value`` when it is a strict ``#rrggbb`` hex color, otherwise the default color."""
    return value if value and HEX_COLOR.fullmatch(value) else DEFAULT_COLOR


def normalize_url(value: Optional[str]) -> Optional[str]:
    """Keeps absolute http(s) URLs and drops everything else."""
    value = (value or "").strip()
    if not value:
        return None
    parsed = urlparse(value)
    if parsed.scheme in ("http", "https") and parsed.netloc:
        return value
    return None


def parse_inline(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in INLINE_TRUTHY


def replace_placeholders(text: Optional[str], user: Optional[discord.abc.User], guild: Optional[discord.Guild]) -> str:
    if not text:
        return ""
    if user is not None:
        avatar = str(user.display_avatar.url)
        text = (
            text.replace("{user}", user.mention)
            .replace("{user.mention}", user.mention)
            .replace("{user.username}", user.name)
            .replace("{user.id}", str(user.id))
            .replace("{user.avatar}", avatar)
        )
    if guild is not None:
        icon = str(guild.icon.url) if guild.icon else ""
        member_count = str(guild.member_count or 0)
        for prefix in ("server", "guild"):
            text = (
                text.replace(f"{{{prefix}}}", guild.name)
                .replace(f"{{{prefix}.name}}", guild.name)
                .replace(f"{{{prefix}.id}}", str(guild.id))
                .replace(f"{{{prefix}.icon}}", icon)
                .replace(f"{{{prefix}.member_count}}", member_count)
            )
    return text


def _check_length(label: str, value: Optional[str], limit: int) -> None:
    if value and len(value) > limit:
        raise ValueError(f"Embed {label} exceeds {limit} characters")


def build_embed(
    embed: EmbedDraft,
    user: Optional[discord.abc.User] = None,
    guild: Optional[discord.Guild] = None,
) -> discord.Embed:
    """
    Builds a ``discord.Embed`` from a draft.

    Placeholders are expanded only when both ``user`` and ``guild`` are given.
    Raises ``ValueError`` if the color is unparseable or any Discord limit is exceeded.
    """
    expand = user is not None and guild is not None

    def text(value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        return replace_placeholders(value, user, guild) if expand else value

    title = text(embed.title)
    description = text(embed.description)
    author_name = text(embed.author.name)
    footer_text = text(embed.footer.text)

    _check_length("title", title, TITLE_LIMIT)
    _check_length("description", description, DESCRIPTION_LIMIT)
    _check_length("author name", author_name, AUTHOR_NAME_LIMIT)
    _check_length("footer text", footer_text, FOOTER_TEXT_LIMIT)
    if len(embed.fields) > FIELD_COUNT_LIMIT:
        raise ValueError(f"Embeds cannot have more than {FIELD_COUNT_LIMIT} fields")

    result = discord.Embed(
        title=title,
        description=description,
        url=normalize_url(embed.url),
        color=discord.Color.from_str(embed.color or DEFAULT_COLOR),
    )

    total = sum(len(part) for part in (title, description, author_name, footer_text) if part)
    for index, embed_field in enumerate(embed.fields, start=1):
        name = text(embed_field.name)
        value = text(embed_field.value)
        if not name or not value:
            raise ValueError(f"Field {index} must have both a name and a value")
        _check_length(f"field {index} name", name, FIELD_NAME_LIMIT)
        _check_length(f"field {index} value", value, FIELD_VALUE_LIMIT)
        total += len(name) + len(value)
        result.add_field(name=name, value=value, inline=embed_field.inline)

    if total > TOTAL_LIMIT:
        raise ValueError(f"Embed exceeds the total limit of {TOTAL_LIMIT} characters")

    if author_name:
        result.set_author(
            name=author_name,
            url=normalize_url(embed.author.url),
            icon_url=normalize_url(embed.author.icon_url),
        )
    if footer_text:
        result.set_footer(text=footer_text, icon_url=normalize_url(embed.footer.icon_url))
    if normalize_url(embed.image):
        result.set_image(url=embed.image)
    if normalize_url(embed.thumbnail):
        result.set_thumbnail(url=embed.thumbnail)
    return result
