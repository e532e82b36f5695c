# -*- coding: utf-8 -*-
"""
Interactive embed editor.

The editor lives on an ephemeral message: a property select menu opens modals
pre-filled with the current values, and every change is validated by building
the embed from a candidate copy of the draft before it is accepted.
"""

from __future__ import annotations

import asyncio
import logging
import random
import string
import time
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

import discord

from .database import DatabaseManager
from .embed_draft import (
    EmbedDraft,
    EmbedField,
    MessageDraft,
    build_embed,
    is_empty_embed,
    normalize_color,
    normalize_url,
    parse_inline,
)
from .utils import fail_embed, safe_call, success_embed

logger = logging.getLogger(__name__)

EDITOR_TIMEOUT = 15 * 60  # seconds of inactivity
DOCS_URL = "https://discordstatus.com/"
PLACEHOLDER_TITLE = "🎨 Embed Editor"
PLACEHOLDER_DESCRIPTION = "> You can edit this embed using the components below, and press **✅ Save** when you are done."

EXPORT_PREFIX = "lumen_"
EXPORT_CODE_LENGTH = 29

MENU_ID = "select-custom-embed"
SAVE_ID = "button-custom-save"
DELETE_ID = "button-custom-delete"
EDIT_FIELD_PICKER_ID = "select-field-to-edit"
REMOVE_FIELD_PICKER_ID = "select-field-to-delete"

PROPERTY_OPTIONS = [
    ("Edit Content", "select-custom-message", "📝"),
    ("Edit Title", "select-custom-title", "📝"),
    ("Edit Description", "select-custom-description", "📝"),
    ("Edit Author", "select-custom-author", "📝"),
    ("Edit Footer", "select-custom-footer", "📝"),
    ("Edit Thumbnail", "select-custom-thumbnail", "🖼️"),
    ("Edit Banner", "select-custom-banner", "🖼️"),
    ("Add Field", "select-custom-add-field", "➕"),
    ("Edit Field", "select-custom-edit-field", "✏️"),
    ("Remove Field", "select-custom-remove-field", "🗑️"),
    ("Edit Color", "select-custom-edit-color", "🖌️"),
    ("Import", "select-custom-import", "📥"),
    ("Export", "select-custom-export", "📤"),
]

SubmitHandler = Callable[[discord.Interaction, Dict[str, str]], Awaitable[None]]
SessionResult = Optional[Tuple[MessageDraft, discord.Interaction]]


def _to_base36(number: int) -> str:
    digits = string.digits + string.ascii_lowercase
    result = ""
    while number:
        number, remainder = divmod(number, 36)
        result = digits[remainder] + result
    return result or "0"


def generate_export_code() -> str:
    """Short opaque code: prefix, base-36 millisecond timestamp and a random suffix."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=13))
    return f"{EXPORT_PREFIX}{_to_base36(int(time.time() * 1000))}{suffix}"[:EXPORT_CODE_LENGTH]


class PropertyModal(discord.ui.Modal):
    """A modal built from a list of text inputs; submitted values are handed to a callback by key."""

    def __init__(self, title: str, on_submit: SubmitHandler):
        super().__init__(title=title, timeout=EDITOR_TIMEOUT)
        self.inputs: Dict[str, discord.ui.TextInput] = {}
        self._on_submit = on_submit

    def add_input(
        self,
        key: str,
        label: str,
        *,
        max_length: int,
        placeholder: Optional[str] = None,
        default: Optional[str] = None,
        paragraph: bool = False,
    ) -> PropertyModal:
        text_input = discord.ui.TextInput(
            label=label,
            style=discord.TextStyle.paragraph if paragraph else discord.TextStyle.short,
            placeholder=placeholder,
            default=default[:max_length] if default else None,
            required=False,
            max_length=max_length,
        )
        self.inputs[key] = text_input
        self.add_item(text_input)
        return self

    def values(self) -> Dict[str, str]:
        return {key: text_input.value or "" for key, text_input in self.inputs.items()}

    async def on_submit(self, interaction: discord.Interaction) -> None:
        await self._on_submit(interaction, self.values())


class FieldPickerView(discord.ui.View):
    """Secondary ephemeral selector listing the embed's fields."""

    def __init__(self, custom_id: str, fields: List[EmbedField], emoji: str,
                 on_pick: Callable[[discord.Interaction, int], Awaitable[None]]):
        super().__init__(timeout=EDITOR_TIMEOUT)
        self._on_pick = on_pick
        picker = discord.ui.Select(
            custom_id=custom_id,
            placeholder="Select a field...",
            options=[
                discord.SelectOption(
                    label=field.name[:100] or f"Field {index + 1}",
                    description=field.value[:100] or "No description",
                    emoji=emoji,
                    value=str(index),
                )
                for index, field in enumerate(fields[:25])
            ],
        )
        picker.callback = self._picked
        self.picker = picker
        self.add_item(picker)

    async def _picked(self, interaction: discord.Interaction) -> None:
        self.stop()
        await self._on_pick(interaction, int(self.picker.values[0]))


class EmbedEditor(discord.ui.View):
    """
    An embed editing session bound to a deferred slash command interaction.

    Call ``start()`` to render the editor, then ``wait_for_submit()`` which
    resolves once with ``(draft, interaction)`` when the user saves, or
    ``None`` when the editor is deleted or times out.
    """

    def __init__(
        self,
        interaction: discord.Interaction,
        database: DatabaseManager,
        message: Optional[MessageDraft] = None,
        docs_url: str = DOCS_URL,
    ):
        super().__init__(timeout=EDITOR_TIMEOUT)
        self.interaction = interaction
        self.database = database
        self.draft = message or MessageDraft()
        self.docs_url = docs_url

        if not self.draft.embed.color:
            self.draft.embed.color = normalize_color(None)
        if not self.draft.embed.title:
            self.draft.embed.title = PLACEHOLDER_TITLE
        if not self.draft.embed.description:
            self.draft.embed.description = PLACEHOLDER_DESCRIPTION

        self._result: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pickers: List[FieldPickerView] = []
        self._handlers: Dict[str, Callable[[discord.Interaction], Awaitable[None]]] = {
            "select-custom-message": self._edit_content,
            "select-custom-title": self._edit_title,
            "select-custom-description": self._edit_description,
            "select-custom-author": self._edit_author,
            "select-custom-footer": self._edit_footer,
            "select-custom-thumbnail": self._edit_thumbnail,
            "select-custom-banner": self._edit_banner,
            "select-custom-add-field": self._add_field,
            "select-custom-edit-field": self._pick_field_to_edit,
            "select-custom-remove-field": self._pick_field_to_remove,
            "select-custom-edit-color": self._edit_color,
            "select-custom-import": self._import,
            "select-custom-export": self._export,
        }

        self.menu = discord.ui.Select(
            custom_id=MENU_ID,
            placeholder="Edit a property...",
            min_values=0,
            max_values=1,
            options=[discord.SelectOption(label=label, value=value, emoji=emoji) for label, value, emoji in PROPERTY_OPTIONS],
            row=0,
        )
        self.menu.callback = self._on_menu
        self.save_button = discord.ui.Button(label="Save", emoji="✅", style=discord.ButtonStyle.success, custom_id=SAVE_ID, row=1)
        self.save_button.callback = self._on_save
        self.delete_button = discord.ui.Button(label="Delete", emoji="🗑️", style=discord.ButtonStyle.danger, custom_id=DELETE_ID, row=1)
        self.delete_button.callback = self._on_delete
        self.docs_button = discord.ui.Button(label="Documentation", emoji="📖", style=discord.ButtonStyle.link, url=docs_url, row=1)

        for item in (self.menu, self.save_button, self.delete_button, self.docs_button):
            self.add_item(item)

    # --- Session lifecycle ---

    @property
    def finished(self) -> bool:
        return self._result.done()

    async def start(self) -> Optional[discord.Message]:
        message = await safe_call(self.interaction.edit_original_response(**self.render()), "render embed editor")
        if message is None:
            self._finish(None)
        return message

    async def wait_for_submit(self) -> SessionResult:
        return await asyncio.shield(self._result)

    def _finish(self, result: SessionResult) -> None:
        if not self._result.done():
            self._result.set_result(result)
        for picker in self._pickers:
            picker.stop()
        self._pickers.clear()
        self.stop()

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        return interaction.user.id == self.interaction.user.id

    async def on_timeout(self) -> None:
        for item in self.children:
            item.disabled = True
        await safe_call(self.interaction.edit_original_response(**self.render()), "disable embed editor")
        self._finish(None)
        logger.debug(f"Embed editor for {self.interaction.user} timed out")

    # --- Rendering ---

    def preview_embed(self) -> discord.Embed:
        embed = self.draft.embed
        if is_empty_embed(embed):
            embed.title = PLACEHOLDER_TITLE
            embed.description = PLACEHOLDER_DESCRIPTION
        return build_embed(embed)

    def render(self) -> dict:
        return {"content": self.draft.content or None, "embed": self.preview_embed(), "view": self}

    async def _refresh(self, interaction: Optional[discord.Interaction] = None) -> None:
        """Re-renders the editor, through ``interaction`` when it can still respond."""
        if interaction is not None and not interaction.response.is_done():
            await safe_call(interaction.response.edit_message(**self.render()), "edit embed editor")
        else:
            await safe_call(self.interaction.edit_original_response(**self.render()), "edit embed editor")

    async def _settle(self, interaction: discord.Interaction, changed: bool) -> None:
        if changed:
            await self._refresh(interaction)
        elif not interaction.response.is_done():
            await safe_call(interaction.response.defer(), "defer update")

    # --- Draft mutations ---

    def _try_apply(self, mutate: Callable[[EmbedDraft], None]) -> bool:
        candidate = self.draft.embed.copy()
        mutate(candidate)
        try:
            build_embed(candidate)
        except ValueError as e:
            logger.debug(f"Rejected embed edit: {e}")
            return False
        self.draft.embed = candidate
        return True

    def apply_content(self, content: str) -> bool:
        self.draft.content = content or None
        return True

    def apply_title(self, title: str) -> bool:
        return self._try_apply(lambda embed: setattr(embed, "title", title or None))

    def apply_description(self, description: str) -> bool:
        return self._try_apply(lambda embed: setattr(embed, "description", description or None))

    def apply_author(self, name: str, icon_url: str) -> bool:
        def mutate(embed: EmbedDraft) -> None:
            embed.author.name = name or None
            embed.author.icon_url = normalize_url(icon_url)
        return self._try_apply(mutate)

    def apply_footer(self, text: str, icon_url: str) -> bool:
        def mutate(embed: EmbedDraft) -> None:
            embed.footer.text = text or None
            embed.footer.icon_url = normalize_url(icon_url)
        return self._try_apply(mutate)

    def apply_thumbnail(self, url: str) -> bool:
        return self._try_apply(lambda embed: setattr(embed, "thumbnail", normalize_url(url)))

    def apply_image(self, url: str) -> bool:
        return self._try_apply(lambda embed: setattr(embed, "image", normalize_url(url)))

    def apply_color(self, color: str) -> bool:
        # Anything that is not a strict #rrggbb value falls back to the default color.
        self.draft.embed.color = normalize_color(color)
        return True

    def add_field(self, name: str, value: str, inline: str) -> bool:
        field = EmbedField(name=name, value=value, inline=parse_inline(inline))
        return self._try_apply(lambda embed: embed.fields.append(field))

    def edit_field(self, index: int, name: str, value: str, inline: str) -> bool:
        if not 0 <= index < len(self.draft.embed.fields):
            return False
        def mutate(embed: EmbedDraft) -> None:
            embed.fields[index] = EmbedField(name=name, value=value, inline=parse_inline(inline))
        return self._try_apply(mutate)

    def remove_field(self, index: int) -> bool:
        if not 0 <= index < len(self.draft.embed.fields):
            return False
        del self.draft.embed.fields[index]
        return True

    def load_draft(self, draft: MessageDraft) -> bool:
        try:
            build_embed(draft.embed)
        except ValueError as e:
            logger.debug(f"Rejected imported draft: {e}")
            return False
        self.draft = draft
        return True

    # --- Component callbacks ---

    async def _on_menu(self, interaction: discord.Interaction) -> None:
        if not self.menu.values:
            await safe_call(interaction.response.defer(), "defer update")
            return
        handler = self._handlers.get(self.menu.values[0])
        if handler is None:
            await safe_call(interaction.response.defer(), "defer update")
            return
        await handler(interaction)

    async def _on_save(self, interaction: discord.Interaction) -> None:
        # Placeholders are only expanded in the posted message and may push it over the limits
        try:
            build_embed(self.draft.embed, interaction.user, interaction.guild)
        except ValueError as e:
            await safe_call(
                interaction.response.send_message(
                    embed=fail_embed(f"This embed cannot be posted once placeholders are filled in: {e}"),
                    ephemeral=True,
                ),
                "send reply",
            )
            return
        logger.info(f"Embed editor saved by {interaction.user} ({interaction.user.id})")
        self._finish((self.draft, interaction))

    async def _on_delete(self, interaction: discord.Interaction) -> None:
        await safe_call(interaction.response.defer(), "defer update")
        await safe_call(interaction.delete_original_response(), "delete embed editor")
        self._finish(None)

    async def _show(self, interaction: discord.Interaction, modal: PropertyModal) -> None:
        await safe_call(interaction.response.send_modal(modal), "show modal")

    # --- Property modals ---

    async def _edit_content(self, interaction: discord.Interaction) -> None:
        async def submit(modal_interaction: discord.Interaction, values: Dict[str, str]) -> None:
            await self._settle(modal_interaction, self.apply_content(values["content"]))

        modal = PropertyModal("Edit Content", submit).add_input(
            "content", "Edit Content:", max_length=2000, paragraph=True,
            placeholder="Enter the new content for this message...", default=self.draft.content,
        )
        await self._show(interaction, modal)

    async def _edit_title(self, interaction: discord.Interaction) -> None:
        async def submit(modal_interaction: discord.Interaction, values: Dict[str, str]) -> None:
            await self._settle(modal_interaction, self.apply_title(values["title"]))

        modal = PropertyModal("Edit Title", submit).add_input(
            "title", "Edit Title:", max_length=256,
            placeholder="Enter the new title for this embed...", default=self.draft.embed.title,
        )
        await self._show(interaction, modal)

    async def _edit_description(self, interaction: discord.Interaction) -> None:
        async def submit(modal_interaction: discord.Interaction, values: Dict[str, str]) -> None:
            await self._settle(modal_interaction, self.apply_description(values["description"]))

        modal = PropertyModal("Edit Description", submit).add_input(
            "description", "Edit Description:", max_length=4000, paragraph=True,
            placeholder="Enter the new description for this embed...", default=self.draft.embed.description,
        )
        await self._show(interaction, modal)

    async def _edit_author(self, interaction: discord.Interaction) -> None:
        async def submit(modal_interaction: discord.Interaction, values: Dict[str, str]) -> None:
            await self._settle(modal_interaction, self.apply_author(values["name"], values["icon"]))

        author = self.draft.embed.author
        modal = (
            PropertyModal("Edit Author", submit)
            .add_input("name", "Edit Author Name:", max_length=256,
                       placeholder="Enter the new author name for this embed...", default=author.name)
            .add_input("icon", "Edit Author Icon:", max_length=4000,
                       placeholder="Enter the new author icon for this embed...", default=author.icon_url)
        )
        await self._show(interaction, modal)

    async def _edit_footer(self, interaction: discord.Interaction) -> None:
        async def submit(modal_interaction: discord.Interaction, values: Dict[str, str]) -> None:
            await self._settle(modal_interaction, self.apply_footer(values["text"], values["icon"]))

        footer = self.draft.embed.footer
        modal = (
            PropertyModal("Edit Footer", submit)
            .add_input("text", "Edit Footer Text:", max_length=256,
                       placeholder="Enter the new footer text for this embed...", default=footer.text)
            .add_input("icon", "Edit Footer Icon:", max_length=4000,
                       placeholder="Enter the new footer icon for this embed...", default=footer.icon_url)
        )
        await self._show(interaction, modal)

    async def _edit_thumbnail(self, interaction: discord.Interaction) -> None:
        async def submit(modal_interaction: discord.Interaction, values: Dict[str, str]) -> None:
            await self._settle(modal_interaction, self.apply_thumbnail(values["thumbnail"]))

        modal = PropertyModal("Edit Thumbnail", submit).add_input(
            "thumbnail", "Edit Thumbnail:", max_length=4000,
            placeholder="Enter the new thumbnail for this embed...", default=self.draft.embed.thumbnail,
        )
        await self._show(interaction, modal)

    async def _edit_banner(self, interaction: discord.Interaction) -> None:
        async def submit(modal_interaction: discord.Interaction, values: Dict[str, str]) -> None:
            await self._settle(modal_interaction, self.apply_image(values["image"]))

        modal = PropertyModal("Edit Banner", submit).add_input(
            "image", "Edit Banner:", max_length=4000,
            placeholder="Enter the new banner for this embed...", default=self.draft.embed.image,
        )
        await self._show(interaction, modal)

    async def _edit_color(self, interaction: discord.Interaction) -> None:
        async def submit(modal_interaction: discord.Interaction, values: Dict[str, str]) -> None:
            await self._settle(modal_interaction, self.apply_color(values["color"]))

        modal = PropertyModal("Edit Color", submit).add_input(
            "color", "Edit Color:", max_length=256,
            placeholder="Enter the new color for this embed...", default=self.draft.embed.color,
        )
        await self._show(interaction, modal)

    # --- Fields ---

    def _field_modal(self, title: str, submit: SubmitHandler, field: Optional[EmbedField] = None) -> PropertyModal:
        return (
            PropertyModal(title, submit)
            .add_input("name", "Edit Field Name:", max_length=256,
                       placeholder="Enter the field name for this embed...", default=field.name if field else None)
            .add_input("value", "Edit Field Text:", max_length=1024, paragraph=True,
                       placeholder="Enter the field text for this embed...", default=field.value if field else None)
            .add_input("inline", "Should field be inline? (Y/N):", max_length=5,
                       placeholder="Should the field be inline? (Y/N)",
                       default=("Yes" if field.inline else "No") if field else None)
        )

    async def _add_field(self, interaction: discord.Interaction) -> None:
        async def submit(modal_interaction: discord.Interaction, values: Dict[str, str]) -> None:
            await self._settle(modal_interaction, self.add_field(values["name"], values["value"], values["inline"]))

        await self._show(interaction, self._field_modal("Add Field", submit))

    async def _no_fields(self, interaction: discord.Interaction) -> bool:
        if self.draft.embed.fields:
            return False
        await safe_call(
            interaction.response.send_message(embed=fail_embed("There are no fields on this embed."), ephemeral=True),
            "send reply",
        )
        return True

    async def _send_picker(self, interaction: discord.Interaction, picker: FieldPickerView) -> None:
        self._pickers.append(picker)
        await safe_call(interaction.response.send_message(view=picker, ephemeral=True), "send field selector")

    async def _pick_field_to_edit(self, interaction: discord.Interaction) -> None:
        if await self._no_fields(interaction):
            return

        async def picked(picker_interaction: discord.Interaction, index: int) -> None:
            if not 0 <= index < len(self.draft.embed.fields):
                await safe_call(picker_interaction.response.defer(), "defer update")
                return

            async def submit(modal_interaction: discord.Interaction, values: Dict[str, str]) -> None:
                await safe_call(modal_interaction.response.defer(), "defer update")
                await safe_call(picker_interaction.delete_original_response(), "delete field selector")
                if self.edit_field(index, values["name"], values["value"], values["inline"]):
                    await self._refresh()

            await self._show(picker_interaction, self._field_modal("Edit Field", submit, self.draft.embed.fields[index]))

        await self._send_picker(interaction, FieldPickerView(EDIT_FIELD_PICKER_ID, self.draft.embed.fields, "✏️", picked))

    async def _pick_field_to_remove(self, interaction: discord.Interaction) -> None:
        if await self._no_fields(interaction):
            return

        async def picked(picker_interaction: discord.Interaction, index: int) -> None:
            await safe_call(picker_interaction.response.defer(), "defer update")
            removed = self.remove_field(index)
            await safe_call(picker_interaction.delete_original_response(), "delete field selector")
            if removed:
                await self._refresh()

        await self._send_picker(interaction, FieldPickerView(REMOVE_FIELD_PICKER_ID, self.draft.embed.fields, "🗑️", picked))

    # --- Import / export ---

    async def _import(self, interaction: discord.Interaction) -> None:
        async def submit(modal_interaction: discord.Interaction, values: Dict[str, str]) -> None:
            code = values["code"].strip()
            draft = await self.database.get_message(code) if code else None
            if draft is None or not self.load_draft(draft):
                await safe_call(
                    modal_interaction.response.send_message(embed=fail_embed("Invalid export code provided."), ephemeral=True),
                    "send reply",
                )
                return
            logger.info(f"{modal_interaction.user} imported embed draft '{code}'")
            await self._refresh(modal_interaction)

        modal = PropertyModal("Import Message from Exported Code", submit).add_input(
            "code", "Exportable Code:", max_length=2000,
            placeholder="Enter the exportable code to import the message from...",
        )
        await self._show(interaction, modal)

    async def _export(self, interaction: discord.Interaction) -> None:
        code = generate_export_code()
        await self.database.update_messages(code, interaction.user.id, self.draft)
        logger.info(f"{interaction.user} exported embed draft '{code}'")
        await safe_call(
            interaction.response.send_message(
                embed=success_embed(
                    f"Your message has been exported successfully! Here's your exportable code:\n```{code}```\n"
                    "-# You can share this code with others so they can import this message."
                ),
                ephemeral=True,
            ),
            "send export code",
        )
