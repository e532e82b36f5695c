# -*- coding: utf-8 -*-
"""Rank card rendering with Pillow. Rendering is blocking; run it in an executor."""

from __future__ import annotations

import io
import math
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import humanize
from PIL import Image, ImageDraw, ImageFont

CARD_WIDTH = 930
CARD_HEIGHT = 280
PADDING = 24
PANEL_RADIUS = 16
AVATAR_SIZE = 152
STATUS_SIZE = 32
BAR_WIDTH = 640
BAR_HEIGHT = 24

DEFAULT_FONT_PATH = Path(__file__).resolve().parent.parent / "assets" / "fonts" / "font.ttf"

STATUS_COLORS: Dict[str, str] = {
    "online": "#43b581",
    "idle": "#faa61a",
    "dnd": "#f04747",
    "offline": "#747f8d",
    "streaming": "#593695",
}

# humanize.metric prefixes -> compact suffixes
_SUFFIXES = {"k": "K", "M": "M", "G": "B", "T": "T"}

Number = Union[int, float]


@dataclass
class RankCardStyles:
    background: str = "#2b2f35"
    track: str = "#484b4e"
    thumb: str = "#ffffff"
    username: str = "#ffffff"
    handle: str = "#808386"
    label: str = "#808386"
    value: str = "#ffffff"
    avatar_placeholder: str = "#484b4e"


@dataclass
class RankCardTexts:
    level: str = "LEVEL:"
    xp: str = "XP:"
    rank: str = "RANK:"


@dataclass
class RankCardProps:
    rank: Optional[int] = None
    level: Optional[int] = None
    current_xp: Optional[Number] = None
    required_xp: Optional[Number] = None
    avatar: Optional[bytes] = None
    username: Optional[str] = None
    handle: Optional[str] = None
    status: Optional[str] = None
    abbreviate: bool = True
    background_color: Optional[str] = None
    background_image: Optional[bytes] = None
    styles: RankCardStyles = field(default_factory=RankCardStyles)
    texts: RankCardTexts = field(default_factory=RankCardTexts)


def progress_width(current_xp: Optional[Number], required_xp: Optional[Number]) -> int:
    """Fill percentage of the progress bar, clamped to [0, 100]. Undefined ratios give 0."""
    try:
        ratio = current_xp / required_xp * 100
    except (TypeError, ZeroDivisionError):
        return 0
    if math.isnan(ratio) or math.isinf(ratio):
        return 0
    return max(0, min(100, math.floor(ratio + 0.5)))


def compact_number(value: Number) -> str:
    """
    Short English notation for large numbers, rounding half away from zero.

    >>> compact_number(1234), compact_number(1250), compact_number(12000), compact_number(1500000)
    ('1.2K', '1.3K', '12K', '1.5M')
    """
    if abs(value) < 1000:
        return str(value) if isinstance(value, int) else f"{value:.0f}"

    # Two significant digits below 10 of a unit (1.2K), whole units above (12K, 123K)
    number = Decimal(str(value))
    unit = Decimal(10) ** (number.adjusted() // 3 * 3)
    step = unit if abs(number) / unit >= 10 else unit / 10
    number = (number / step).quantize(Decimal(1), rounding=ROUND_HALF_UP) * step

    mantissa, prefix = humanize.metric(float(number), precision=2).split(" ")
    mantissa = mantissa[:-2] if mantissa.endswith(".0") else mantissa
    return f"{mantissa}{_SUFFIXES.get(prefix, prefix)}"


def _load_font(path: Optional[Path], size: int) -> ImageFont.FreeTypeFont:
    if path is not None and path.exists():
        return ImageFont.truetype(str(path), size)
    return ImageFont.load_default(size=size)


def _circle_mask(size: int) -> Image.Image:
    mask = Image.new("L", (size, size), 0)
    ImageDraw.Draw(mask).ellipse((0, 0, size - 1, size - 1), fill=255)
    return mask


class RankCard:
    def __init__(self, props: RankCardProps, font_path: Optional[Path] = DEFAULT_FONT_PATH):
        self.props = props
        self.font_path = font_path

    def _format(self, value: Number) -> str:
        return compact_number(value) if self.props.abbreviate else str(value)

    def _draw_panel(self, card: Image.Image) -> None:
        props = self.props
        box = (PADDING, PADDING, CARD_WIDTH - PADDING, CARD_HEIGHT - PADDING)
        panel_size = (box[2] - box[0], box[3] - box[1])

        mask = Image.new("L", panel_size, 0)
        ImageDraw.Draw(mask).rounded_rectangle((0, 0, panel_size[0] - 1, panel_size[1] - 1), radius=PANEL_RADIUS, fill=255)

        if props.background_image:
            panel = Image.open(io.BytesIO(props.background_image)).convert("RGBA").resize(panel_size)
        else:
            panel = Image.new("RGBA", panel_size, props.background_color or props.styles.background)
        card.paste(panel, box[:2], mask)

    def _draw_avatar(self, card: Image.Image) -> Tuple[int, int]:
        props = self.props
        x = PADDING + 32
        y = (CARD_HEIGHT - AVATAR_SIZE) // 2

        if props.avatar:
            avatar = Image.open(io.BytesIO(props.avatar)).convert("RGBA").resize((AVATAR_SIZE, AVATAR_SIZE))
        else:
            avatar = Image.new("RGBA", (AVATAR_SIZE, AVATAR_SIZE), props.styles.avatar_placeholder)
        card.paste(avatar, (x, y), _circle_mask(AVATAR_SIZE))

        color = STATUS_COLORS.get(props.status or "none")
        if color:
            dot_x = x + AVATAR_SIZE - STATUS_SIZE
            dot_y = y + AVATAR_SIZE - 20 - STATUS_SIZE
            ImageDraw.Draw(card).ellipse((dot_x, dot_y, dot_x + STATUS_SIZE, dot_y + STATUS_SIZE), fill=color)
        return x, y

    def _draw_details(self, card: Image.Image, left: int) -> None:
        props, styles, texts = self.props, self.props.styles, self.props.texts
        draw = ImageDraw.Draw(card)
        name_font = _load_font(self.font_path, 30)
        handle_font = _load_font(self.font_path, 18)
        stat_font = _load_font(self.font_path, 20)

        y = 70
        if props.username:
            draw.text((left, y), props.username, font=name_font, fill=styles.username)
            y += 38 if props.handle else 46
        if props.handle:
            draw.text((left, y), props.handle, font=handle_font, fill=styles.handle)
            y += 30

        # Progress bar
        draw.rounded_rectangle((left, y, left + BAR_WIDTH, y + BAR_HEIGHT), radius=BAR_HEIGHT // 2, fill=styles.track)
        fill = BAR_WIDTH * progress_width(props.current_xp, props.required_xp) // 100
        if fill > 0:
            draw.rounded_rectangle((left, y, left + max(fill, BAR_HEIGHT), y + BAR_HEIGHT), radius=BAR_HEIGHT // 2, fill=styles.thumb)
        y += BAR_HEIGHT + 14

        x = left
        for label, value in ((texts.level, props.level), (texts.xp, props.current_xp), (texts.rank, props.rank)):
            if value is None:
                continue
            draw.text((x, y), label, font=stat_font, fill=styles.label)
            x += draw.textlength(label, font=stat_font) + 4
            text = self._format(value)
            draw.text((x, y), text, font=stat_font, fill=styles.value)
            x += draw.textlength(text, font=stat_font) + 32

    def render(self) -> bytes:
        """Draws the card and returns it as PNG bytes."""
        card = Image.new("RGBA", (CARD_WIDTH, CARD_HEIGHT), (0, 0, 0, 0))
        self._draw_panel(card)
        avatar_x, _ = self._draw_avatar(card)
        self._draw_details(card, avatar_x + AVATAR_SIZE + 32)

        buffer = io.BytesIO()
        card.save(buffer, format="PNG")
        return buffer.getvalue()
