# -*- coding: utf-8 -*-
"""
Paginated messages driven by buttons and a page-selector menu.

``Pagination`` owns the page index and the two collectors (buttons, menu),
``PaginationBuilder`` decorates a single page with navigation controls, and
``create_pagination`` computes the page window shown in the selector.
"""

from __future__ import annotations

import inspect
import logging
import math
from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Any, Awaitable, Callable, ClassVar, Dict, List, NamedTuple, Optional, Sequence, Union

import discord

from .collector import ComponentCollector

logger = logging.getLogger(__name__)

# --- Defaults ---
DEFAULT_PER_PAGE_ITEM = 10
DEFAULT_TIME = 300_000  # ms
DEFAULT_IDS = {
    "previous": "pagination@previous",
    "backward": "pagination@backward",
    "middle": "pagination@middle",
    "forward": "pagination@forward",
    "next": "pagination@next",
    "exit": "pagination@exit",
}
DEFAULT_MENU_ID = "pagination@menu"

DEFAULT_CURRENT_PAGE = 0
DEFAULT_PAGE_SIZE = 10
DEFAULT_MAX_PAGES = 10
MAX_SELECT_OPTIONS = 25


class SelectMenuPageId(IntEnum):
    START = -1
    END = -2


# --- Page window math ---
@dataclass
class PaginationInfo:
    current_page: int
    end_index: int
    end_page: int
    page_size: int
    pages: List[int]
    start_index: int
    start_page: int
    total_items: int
    total_pages: int


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _validate_pagination_inputs(total_items: int, current_page: int, page_size: int, max_pages: int) -> None:
    if not _is_int(total_items) or total_items < 0:
        raise ValueError(f"Total items must be a non-negative integer, received: {total_items}")
    if not _is_int(current_page) or current_page < 0:
        raise ValueError(f"Current page must be a non-negative integer, received: {current_page}")
    if not _is_int(page_size) or page_size < 1:
        raise ValueError(f"Page size must be a positive integer, received: {page_size}")
    if not _is_int(max_pages) or max_pages < 1:
        raise ValueError(f"Max pages must be a positive integer, received: {max_pages}")


def _calculate_page_range(current_page: int, total_pages: int, max_pages: int) -> tuple[int, int]:
    if total_pages <= max_pages:
        return 0, total_pages - 1

    before = max_pages // 2
    after = math.ceil(max_pages / 2) - 1

    if current_page <= before:
        return 0, max_pages - 1
    if current_page + after >= total_pages:
        return total_pages - max_pages, total_pages - 1
    return current_page - before, current_page + after


def create_pagination(
    total_items: int,
    current_page: int = DEFAULT_CURRENT_PAGE,
    page_size: int = DEFAULT_PAGE_SIZE,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> PaginationInfo:
    """
    Computes the page window and item slice for the given position.

    >>> create_pagination(total_items=100, current_page=5, page_size=10, max_pages=7).start_page
    2
    """
    try:
        _validate_pagination_inputs(total_items, current_page, page_size, max_pages)
    except ValueError as e:
        raise ValueError(f"Pagination creation failed: {e}") from e

    total_pages = math.ceil(total_items / page_size)
    current_page = 0 if total_pages == 0 else max(0, min(current_page, total_pages - 1))
    start_page, end_page = _calculate_page_range(current_page, total_pages, max_pages)
    start_index = current_page * page_size
    end_index = min(start_index + page_size - 1, total_items - 1)

    return PaginationInfo(
        current_page=current_page,
        end_index=end_index,
        end_page=end_page,
        page_size=page_size,
        pages=list(range(start_page, end_page + 1)),
        start_index=start_index,
        start_page=start_page,
        total_items=total_items,
        total_pages=total_pages,
    )


# --- Options ---
@dataclass
class ButtonOptions:
    enabled: Optional[bool] = None
    id: Optional[str] = None
    label: Optional[str] = None
    emoji: Optional[str] = None
    style: Optional[discord.ButtonStyle] = None
    # Only used by the middle button; navigation buttons are handled by the pagination.
    callback: Optional[Callable[[discord.Interaction], Awaitable[Any]]] = None


@dataclass
class ButtonsConfig:
    disabled: bool = False
    skip_amount: int = DEFAULT_PER_PAGE_ITEM
    previous: ButtonOptions = field(default_factory=ButtonOptions)
    backward: ButtonOptions = field(default_factory=ButtonOptions)
    middle: ButtonOptions = field(default_factory=ButtonOptions)
    forward: ButtonOptions = field(default_factory=ButtonOptions)
    next: ButtonOptions = field(default_factory=ButtonOptions)
    exit: ButtonOptions = field(default_factory=ButtonOptions)


@dataclass
class SelectMenuLabels:
    start: str = "First page"
    end: str = "Last page"


@dataclass
class SelectMenuOptions:
    disabled: bool = False
    menu_id: str = DEFAULT_MENU_ID
    page_text: Union[str, Sequence[str]] = "Page {page}"
    labels: SelectMenuLabels = field(default_factory=SelectMenuLabels)
    range_placeholder_format: str = "Currently viewing #{start} - #{end} of #{total}"


@dataclass
class PaginationOptions:
    items_per_page: int = DEFAULT_PER_PAGE_ITEM
    buttons: ButtonsConfig = field(default_factory=ButtonsConfig)
    select_menu: SelectMenuOptions = field(default_factory=SelectMenuOptions)
    ephemeral: bool = False
    time: int = DEFAULT_TIME
    idle: Optional[int] = None
    auto_refresh: bool = False
    initial_page: int = 0
    on_timeout: Optional[Callable[[int, discord.Message], Any]] = None
    filter: Optional[Callable[[discord.Interaction], bool]] = None


# --- Page items ---
@dataclass
class PaginationItem:
    content: Optional[str] = None
    embeds: List[discord.Embed] = field(default_factory=list)
    files: List[discord.File] = field(default_factory=list)
    attachments: List[Union[discord.Attachment, discord.File]] = field(default_factory=list)
    components: List[discord.ui.Item] = field(default_factory=list)
    middle_button: Optional[ButtonOptions] = None

    def copy(self) -> PaginationItem:
        return replace(
            self,
            embeds=[embed.copy() for embed in self.embeds],
            files=list(self.files),
            attachments=list(self.attachments),
            components=list(self.components),
        )

    def to_send_kwargs(self, view: Optional[discord.ui.View] = None) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {"content": self.content, "embeds": self.embeds}
        if self.files:
            kwargs["files"] = self.files
        if view is not None:
            kwargs["view"] = view
        return kwargs

    def to_edit_kwargs(self, view: Optional[discord.ui.View] = None) -> Dict[str, Any]:
        return {
            "content": self.content,
            "embeds": self.embeds,
            "attachments": [*self.attachments, *self.files],
            "view": view,
        }


Resolver = Callable[[int, "Pagination"], Union[Optional[PaginationItem], Awaitable[Optional[PaginationItem]]]]


class PaginationResolver:
    """Resolves pages on demand instead of holding a fixed list."""

    def __init__(self, resolver: Resolver, max_length: int):
        self.resolver = resolver
        self.max_length = max_length


class PaginationCollectors(NamedTuple):
    button_collector: ComponentCollector
    menu_collector: ComponentCollector


# --- Builder ---
class PaginationBuilder:
    """Decorates a single page with the select menu and navigation buttons."""

    def __init__(self, item: PaginationItem, current_page: int, max_page: int, options: Optional[PaginationOptions] = None):
        self.item = item.copy()
        self.current_page = current_page
        self.max_page = max_page
        self.options = options or PaginationOptions()
        self.per_page = self.options.items_per_page
        self.skip_amount = self.options.buttons.skip_amount
        self._validate_inputs()

    def _validate_inputs(self) -> None:
        if self.max_page <= 0:
            raise ValueError("Maximum pages must be greater than 0")
        if self.current_page < 0 or self.current_page >= self.max_page:
            raise ValueError(f"Page {self.current_page} is out of bounds (0-{self.max_page - 1})")
        if self.options.buttons.disabled and self.options.select_menu.disabled:
            raise ValueError("Both navigation buttons and the select menu cannot be disabled at the same time")

    def _get_page_text(self, page_number: int) -> str:
        page_text = self.options.select_menu.page_text
        if isinstance(page_text, str):
            return page_text
        if page_number < len(page_text):
            return page_text[page_number]
        return "Page {page}"

    def _create_page_options(self, paginator: PaginationInfo) -> List[discord.SelectOption]:
        labels = self.options.select_menu.labels
        options = [
            discord.SelectOption(
                label=self._get_page_text(page_number).replace("{page}", f"{page_number + 1:02d}"),
                value=str(page_number),
            )
            for page_number in paginator.pages
        ]

        if paginator.current_page != 0:
            options.insert(0, discord.SelectOption(label=labels.start, value=str(int(SelectMenuPageId.START))))
        if paginator.current_page != paginator.total_pages - 1:
            options.append(discord.SelectOption(label=labels.end, value=str(int(SelectMenuPageId.END))))
        return options

    def _create_navigation_buttons(self) -> List[discord.ui.Button]:
        can_go_back = self.current_page > 0
        can_go_forward = self.current_page < self.max_page - 1
        buttons_config = self.options.buttons

        # (key, default emoji, default label, default style, disabled, enabled by default)
        button_specs = [
            ("previous", "◀️", "Previous", discord.ButtonStyle.secondary, not can_go_back, True),
            ("backward", "⏪", f"-{min(self.current_page, self.skip_amount)}", discord.ButtonStyle.primary, not can_go_back, True),
            ("middle", "🔘", "Action", discord.ButtonStyle.success, False, False),
            ("forward", "⏩", f"+{min(self.max_page - (self.current_page + 1), self.skip_amount)}", discord.ButtonStyle.primary, not can_go_forward, True),
            ("next", "▶️", "Next", discord.ButtonStyle.secondary, not can_go_forward, True),
            ("exit", "⚔️", "Stop", discord.ButtonStyle.danger, False, False),
        ]

        buttons = []
        for key, emoji, label, style, disabled, enabled_by_default in button_specs:
            user_config: ButtonOptions = getattr(buttons_config, key)
            is_enabled = user_config.enabled if user_config.enabled is not None else enabled_by_default

            if key == "middle" and self.item.middle_button is not None:
                user_config = self.item.middle_button
                is_enabled = user_config.enabled if user_config.enabled is not None else True

            if is_enabled:
                buttons.append(self._create_button(key, user_config, emoji, label, style, disabled))
        return buttons

    def _create_button(
        self,
        key: str,
        user_config: ButtonOptions,
        default_emoji: str,
        default_label: str,
        default_style: discord.ButtonStyle,
        disabled: bool,
    ) -> discord.ui.Button:
        label = user_config.label if user_config.label is not None else default_label
        emoji = user_config.emoji if user_config.emoji is not None else default_emoji
        if not label and not emoji:
            raise ValueError("Pagination buttons must include either an emoji or a label")

        return discord.ui.Button(
            custom_id=user_config.id or DEFAULT_IDS[key],
            style=user_config.style or default_style,
            label=label or None,
            emoji=emoji or None,
            disabled=disabled,
        )

    def get_base_item(self) -> PaginationItem:
        return self.item

    def get_paginated_item(self) -> PaginationItem:
        paginator = create_pagination(
            total_items=self.max_page,
            current_page=self.current_page,
            page_size=1,
            max_pages=self.per_page,
        )
        menu_options = self.options.select_menu
        placeholder = (
            menu_options.range_placeholder_format
            .replace("{start}", str(paginator.start_page + 1))
            .replace("{end}", str(paginator.end_page + 1))
            .replace("{total}", str(paginator.total_items))
        )

        components = list(self.item.components)
        if not menu_options.disabled:
            components.append(
                discord.ui.Select(
                    custom_id=menu_options.menu_id,
                    placeholder=placeholder,
                    options=self._create_page_options(paginator),
                )
            )
        if not self.options.buttons.disabled:
            components.extend(self._create_navigation_buttons())

        return replace(self.item, components=components)


# --- View ---
class PaginationView(discord.ui.View):
    """Routes navigation components to the pagination's collectors."""

    def __init__(self, pagination: Pagination):
        super().__init__(timeout=None)
        self.pagination = pagination

    def render(self, item: PaginationItem) -> PaginationView:
        button_ids = self.pagination.button_ids
        menu_id = self.pagination.menu_id

        self.clear_items()
        for component in item.components:
            if isinstance(component, discord.ui.Button) and component.custom_id in button_ids:
                component.callback = self._on_button
            elif isinstance(component, discord.ui.Select) and component.custom_id == menu_id:
                component.callback = self._on_menu
            self.add_item(component)
        return self

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        check = self.pagination.options.filter
        return check(interaction) if check else True

    async def _on_button(self, interaction: discord.Interaction) -> None:
        collectors = self.pagination.collectors
        if collectors and not await collectors.button_collector.collect(interaction):
            await _acknowledge(interaction)

    async def _on_menu(self, interaction: discord.Interaction) -> None:
        collectors = self.pagination.collectors
        if collectors and not await collectors.menu_collector.collect(interaction):
            await _acknowledge(interaction)


async def _acknowledge(interaction: discord.Interaction) -> None:
    if interaction.response.is_done():
        return
    try:
        await interaction.response.defer()
    except discord.HTTPException as e:
        logger.debug(f"Could not acknowledge pagination interaction: {e}")


# --- Pagination ---
class Pagination:
    """
    A paginated message with navigation buttons and a page-selector menu.

    Pages come either from a fixed list of ``PaginationItem`` or from a
    ``PaginationResolver``. The page index always stays in ``[0, max_length)``.
    """

    _instances: ClassVar[Dict[int, Pagination]] = {}

    def __init__(
        self,
        send_to: Union[discord.Message, discord.Interaction, discord.abc.Messageable],
        pages: Union[Sequence[PaginationItem], PaginationResolver],
        options: Optional[PaginationOptions] = None,
    ):
        self.send_to = send_to
        self.options = options or PaginationOptions()

        self._pages: Union[List[PaginationItem], PaginationResolver] = []
        self._max_length = 0
        self._current_page = 0
        self._collectors: Optional[PaginationCollectors] = None
        self._view: Optional[PaginationView] = None
        self._message: Optional[discord.Message] = None
        self._is_sent = False
        self._is_follow_up = False
        self._end_handled = False

        self.set_pages(pages)
        self._validate_configuration()
        self._current_page = self.options.initial_page

    # --- Properties ---
    @property
    def message(self) -> discord.Message:
        if self._message is None:
            raise RuntimeError("Pagination has not been sent yet. Send the pagination to retrieve its message")
        return self._message

    @property
    def is_sent(self) -> bool:
        return self._is_sent

    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def max_length(self) -> int:
        return self._max_length

    @property
    def pages(self) -> Union[List[PaginationItem], PaginationResolver]:
        return self._pages

    @property
    def collectors(self) -> Optional[PaginationCollectors]:
        return self._collectors

    @property
    def auto_refresh_enabled(self) -> bool:
        return self.options.auto_refresh

    @property
    def button_ids(self) -> set[str]:
        return {self._get_button_id(key) for key in DEFAULT_IDS}

    @property
    def menu_id(self) -> str:
        return self.options.select_menu.menu_id

    def set_current_page(self, page: int) -> None:
        if page < 0 or page >= self._max_length:
            raise ValueError(f"Page {page} is out of bounds. Must be between 0 and {self._max_length - 1}")
        self._current_page = page

    def set_max_length(self, length: int) -> None:
        if length <= 0:
            raise ValueError("Maximum length must be greater than 0")
        self._max_length = length
        if self._current_page >= self._max_length:
            self._current_page = 0

    def set_pages(self, pages: Union[Sequence[PaginationItem], PaginationResolver]) -> None:
        if isinstance(pages, PaginationResolver):
            self._pages = pages
            self._max_length = pages.max_length
        else:
            self._pages = list(pages)
            self._max_length = len(self._pages)
        if self._current_page >= self._max_length:
            self._current_page = 0

    # --- Instance registry ---
    @classmethod
    def get_instance(cls, message_id: int) -> Optional[Pagination]:
        return cls._instances.get(message_id)

    @classmethod
    def get_all_instances(cls) -> Dict[int, Pagination]:
        return dict(cls._instances)

    @classmethod
    def clear_instances(cls) -> None:
        cls._instances.clear()

    def _store_instance(self) -> None:
        if self._message is not None and self.options.auto_refresh:
            Pagination._instances[self._message.id] = self
            logger.debug(f"Auto-refresh enabled for pagination instance: {self._message.id}")

    def _remove_instance(self) -> None:
        if self._message is not None:
            Pagination._instances.pop(self._message.id, None)

    async def force_refresh(self) -> None:
        """Re-renders the current page on the sent message with fresh data."""
        if self._message is None:
            raise RuntimeError("Cannot refresh: pagination message not found")
        if not self.options.auto_refresh:
            logger.debug("Auto-refresh is disabled for this pagination instance")
            return

        page = await self.get_page(self._current_page)
        item = page.get_paginated_item()
        await self._message.edit(**item.to_edit_kwargs(self._render(item)))
        logger.debug(f"Pagination force-refreshed on page {self._current_page}")

    # --- Configuration ---
    def _validate_configuration(self) -> None:
        options = self.options
        if options.ephemeral and options.buttons.exit.enabled:
            raise ValueError("Ephemeral pagination does not support exit mode")
        if self._max_length <= 0:
            raise ValueError("Pagination must have at least one page")
        if options.initial_page < 0 or options.initial_page >= self._max_length:
            raise ValueError(
                f"Initial page {options.initial_page} is out of bounds. Must be between 0 and {self._max_length - 1}"
            )
        if not 1 <= options.items_per_page <= MAX_SELECT_OPTIONS - 2:
            raise ValueError(f"Items per page must be between 1 and {MAX_SELECT_OPTIONS - 2}")

        ids = [self._get_button_id(key) for key in ("previous", "backward", "forward", "next", "exit")]
        duplicates = sorted({button_id for button_id in ids if ids.count(button_id) > 1})
        if duplicates:
            raise ValueError(f"Duplicate button IDs found: {', '.join(duplicates)}")

    def _get_button_id(self, key: str) -> str:
        return getattr(self.options.buttons, key).id or DEFAULT_IDS[key]

    def _get_skip_amount(self) -> int:
        return self.options.buttons.skip_amount

    def _unable_to_update(self, error: BaseException) -> None:
        logger.debug(f"Unable to update pagination: {error}")

    # --- Core ---
    async def get_page(self, page: int) -> PaginationBuilder:
        if page < 0 or page >= self._max_length:
            raise ValueError(f"Page {page} is out of bounds (0-{self._max_length - 1})")

        if isinstance(self._pages, PaginationResolver):
            item = self._pages.resolver(page, self)
            if inspect.isawaitable(item):
                item = await item
        else:
            item = self._pages[page]
            item = item.copy() if item is not None else None

        if item is None:
            raise ValueError(f"No content found for page {page}")
        return PaginationBuilder(item, page, self._max_length, self.options)

    async def send(self) -> tuple[PaginationCollectors, discord.Message]:
        """Sends the first page and starts listening. A pagination can only be sent once."""
        if self._is_sent:
            raise RuntimeError("Pagination has already been sent. Create a new instance to send again.")

        try:
            page = await self.get_page(self._current_page)
            item = page.get_paginated_item()
            message = await self._send_message(item, self._render(item))
        except Exception as e:
            logger.debug(f"Failed to send pagination: {e}")
            raise RuntimeError(f"Failed to send pagination: {e}") from e

        self._message = message
        self._is_sent = True
        self._collectors = self._create_collectors()
        self._store_instance()

        logger.debug(f"Pagination sent successfully with {self._max_length} pages")
        return self._collectors, message

    def stop(self) -> None:
        """Ends both collectors. Safe to call more than once."""
        if self._collectors is None:
            return
        for collector in self._collectors:
            if not collector.ended:
                collector.stop()
        self._remove_instance()
        logger.debug("Pagination stopped manually")

    # --- Navigation ---
    def navigate_to_page(self, page: int) -> bool:
        if page < 0 or page >= self._max_length:
            logger.debug(f"Cannot navigate to page {page}: out of bounds (0-{self._max_length - 1})")
            return False
        if page == self._current_page:
            logger.debug(f"Already on page {page}")
            return False
        self.set_current_page(page)
        return True

    def navigate_next(self) -> bool:
        if self._current_page >= self._max_length - 1:
            return False
        self.set_current_page(self._current_page + 1)
        return True

    def navigate_previous(self) -> bool:
        if self._current_page <= 0:
            return False
        self.set_current_page(self._current_page - 1)
        return True

    def navigate_to_start(self) -> bool:
        if self._current_page == 0:
            return False
        self.set_current_page(0)
        return True

    def navigate_to_end(self) -> bool:
        last_page = self._max_length - 1
        if self._current_page == last_page:
            return False
        self.set_current_page(last_page)
        return True

    def can_navigate_next(self) -> bool:
        return self._current_page < self._max_length - 1

    def can_navigate_previous(self) -> bool:
        return self._current_page > 0

    def get_page_info(self) -> Dict[str, Any]:
        return {
            "current_page": self._current_page,
            "total_pages": self._max_length,
            "can_next": self.can_navigate_next(),
            "can_previous": self.can_navigate_previous(),
            "is_first": self._current_page == 0,
            "is_last": self._current_page == self._max_length - 1,
        }

    # --- Message handling ---
    def _render(self, item: PaginationItem) -> PaginationView:
        if self._view is None:
            self._view = PaginationView(self)
        return self._view.render(item)

    async def _send_message(self, item: PaginationItem, view: PaginationView) -> discord.Message:
        kwargs = item.to_send_kwargs(view)

        if isinstance(self.send_to, discord.Message):
            return await self.send_to.reply(**kwargs)
        if isinstance(self.send_to, discord.Interaction):
            return await self._send_interaction_message(kwargs)
        if isinstance(self.send_to, discord.StageChannel):
            raise ValueError("Pagination not supported with guild stage channel")
        return await self.send_to.send(**kwargs)

    async def _send_interaction_message(self, kwargs: Dict[str, Any]) -> discord.Message:
        interaction: discord.Interaction = self.send_to
        if interaction.response.is_done():
            self._is_follow_up = True

        if self._is_follow_up:
            return await interaction.followup.send(**kwargs, ephemeral=self.options.ephemeral, wait=True)

        await interaction.response.send_message(**kwargs, ephemeral=self.options.ephemeral)
        return await interaction.original_response()

    async def _update_pagination_message(self, interaction: discord.Interaction) -> None:
        try:
            page = await self.get_page(self._current_page)
            item = page.get_paginated_item()
            await interaction.response.edit_message(**item.to_edit_kwargs(self._render(item)))
        except Exception as e:
            self._unable_to_update(e)

    async def _handle_exit(self, interaction: discord.Interaction) -> None:
        try:
            page = await self.get_page(self._current_page)
            await interaction.response.edit_message(**page.get_base_item().to_edit_kwargs(None))
        except Exception as e:
            self._unable_to_update(e)
        self.stop()

    # --- Collectors ---
    def _create_collectors(self) -> PaginationCollectors:
        collectors = PaginationCollectors(
            button_collector=ComponentCollector(time=self.options.time, idle=self.options.idle, name="pagination buttons"),
            menu_collector=ComponentCollector(time=self.options.time, idle=self.options.idle, name="pagination menu"),
        )
        collectors.button_collector.on_collect(self._on_button_collect)
        collectors.menu_collector.on_collect(self._on_menu_collect)
        collectors.button_collector.on_end(self._on_collector_end)
        collectors.menu_collector.on_end(self._on_collector_end)
        return collectors

    def _reset_collector_timers(self) -> None:
        for collector in self._collectors:
            collector.reset_timer(time=self.options.time, idle=self.options.idle)

    async def _on_button_collect(self, interaction: discord.Interaction) -> None:
        if await self._handle_button_interaction(interaction):
            await self._update_pagination_message(interaction)
            self._reset_collector_timers()
        else:
            await _acknowledge(interaction)

    async def _on_menu_collect(self, interaction: discord.Interaction) -> None:
        if self._handle_select_menu_interaction(interaction):
            await self._update_pagination_message(interaction)
            self._reset_collector_timers()
        else:
            await _acknowledge(interaction)

    async def _handle_button_interaction(self, interaction: discord.Interaction) -> bool:
        custom_id = (interaction.data or {}).get("custom_id")

        if custom_id == self._get_button_id("exit"):
            await self._handle_exit(interaction)
            return False
        if custom_id == self._get_button_id("previous"):
            return self.navigate_previous()
        if custom_id == self._get_button_id("next"):
            return self.navigate_next()
        if custom_id == self._get_button_id("backward"):
            return self.navigate_to_page(max(0, self._current_page - self._get_skip_amount()))
        if custom_id == self._get_button_id("forward"):
            return self.navigate_to_page(min(self._max_length - 1, self._current_page + self._get_skip_amount()))
        if custom_id == self._get_button_id("middle"):
            await self._handle_middle(interaction)
        return False

    async def _handle_middle(self, interaction: discord.Interaction) -> None:
        callback = self.options.buttons.middle.callback
        if isinstance(self._pages, list) and self._pages[self._current_page].middle_button is not None:
            callback = self._pages[self._current_page].middle_button.callback or callback
        if callback is None:
            return
        try:
            await callback(interaction)
        except Exception as e:
            logger.error(f"Pagination middle button callback failed: {e}", exc_info=True)

    def _handle_select_menu_interaction(self, interaction: discord.Interaction) -> bool:
        data = interaction.data or {}
        if data.get("custom_id") != self.menu_id:
            return False

        values = data.get("values") or ["0"]
        selected = int(values[0])
        if selected == SelectMenuPageId.START:
            return self.navigate_to_start()
        if selected == SelectMenuPageId.END:
            return self.navigate_to_end()
        return self.navigate_to_page(selected)

    def _on_collector_end(self, reason: str) -> Optional[Awaitable[None]]:
        if self._end_handled:
            return None
        self._end_handled = True
        for collector in self._collectors:
            collector.stop(reason)
        return self._handle_collector_end()

    async def _handle_collector_end(self) -> None:
        if self._message is None:
            return

        if self._view is not None:
            self._view.stop()

        try:
            page = await self.get_page(self._current_page)
            kwargs = page.get_base_item().to_edit_kwargs(None)
            if self.options.ephemeral and isinstance(self.send_to, discord.Interaction) and not self._is_follow_up:
                await self.send_to.edit_original_response(**kwargs)
            else:
                await self._message.edit(**kwargs)
        except Exception as e:
            self._unable_to_update(e)

        self._remove_instance()

        if self.options.on_timeout is not None:
            result = self.options.on_timeout(self._current_page, self._message)
            if inspect.isawaitable(result):
                await result
