"""Tests for rank card math, number formatting and rendering."""

import io

import pytest
from PIL import Image

from utils.level_card import (
    CARD_HEIGHT,
    CARD_WIDTH,
    RankCard,
    RankCardProps,
    compact_number,
    progress_width,
)


def png_bytes(size=(64, 64), color="#ff0000") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


# =============================================================================
# Progress Bar Tests
# =============================================================================

class TestProgressWidth:
    """Tests for progress_width()."""

    @pytest.mark.parametrize(
        "current, required, expected",
        [
            (0, 100, 0),
            (50, 100, 50),
            (1, 3, 33),
            (2, 3, 67),
            (100, 100, 100),
            (250, 100, 100),
            (-5, 100, 0),
        ],
    )
    def test_percentages(self, current, required, expected):
        assert progress_width(current, required) == expected

    @pytest.mark.parametrize(
        "current, required",
        [(10, 0), (0, 0), (None, 100), (10, None), (float("nan"), 100), (float("inf"), 100)],
    )
    def test_undefined_ratios_give_zero(self, current, required):
        assert progress_width(current, required) == 0


# =============================================================================
# Number Formatting Tests
# =============================================================================

class TestCompactNumber:
    """Tests for compact_number()."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (0, "0"),
            (999, "999"),
            (1000, "1K"),
            (1234, "1.2K"),
            (12000, "12K"),
            (123456, "123K"),
            (1500000, "1.5M"),
            (2000000000, "2B"),
        ],
    )
    def test_values(self, value, expected):
        assert compact_number(value) == expected

    def test_rounding_into_next_unit(self):
        assert compact_number(999999) == "1M"

    @pytest.mark.parametrize("value, expected", [(1250, "1.3K"), (12500, "13K"), (1150000, "1.2M"), (-1250, "-1.3K")])
    def test_halves_round_away_from_zero(self, value, expected):
        assert compact_number(value) == expected


# =============================================================================
# Rendering Tests
# =============================================================================

class TestRankCard:
    """Tests for RankCard.render()."""

    def _open(self, data: bytes) -> Image.Image:
        assert data[:8] == b"\x89PNG\r\n\x1a\n"
        return Image.open(io.BytesIO(data))

    def test_full_card(self):
        props = RankCardProps(
            rank=3,
            level=7,
            current_xp=1234,
            required_xp=2000,
            avatar=png_bytes(),
            username="Sam",
            handle="@sam",
            status="online",
        )
        image = self._open(RankCard(props, font_path=None).render())
        assert image.size == (CARD_WIDTH, CARD_HEIGHT)

    def test_minimal_card(self):
        image = self._open(RankCard(RankCardProps(), font_path=None).render())
        assert image.size == (CARD_WIDTH, CARD_HEIGHT)

    def test_background_image_and_unknown_status(self):
        props = RankCardProps(
            level=1,
            current_xp=10,
            required_xp=155,
            status="invisible",
            abbreviate=False,
            background_image=png_bytes((300, 100), "#0000ff"),
        )
        image = self._open(RankCard(props, font_path=None).render())
        assert image.size == (CARD_WIDTH, CARD_HEIGHT)

    def test_missing_font_file_falls_back(self, tmp_path):
        props = RankCardProps(username="Sam", level=1)
        data = RankCard(props, font_path=tmp_path / "missing.ttf").render()
        assert self._open(data).size == (CARD_WIDTH, CARD_HEIGHT)
