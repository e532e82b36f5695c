"""Tests for the page window computation used by the page selector."""

import pytest

from utils.pagination import create_pagination


class TestCreatePagination:
    """Tests for create_pagination()."""

    def test_window_centered_on_current_page(self):
        info = create_pagination(total_items=100, current_page=5, page_size=10, max_pages=7)
        assert info.total_pages == 10
        assert info.current_page == 5
        assert info.start_page == 2
        assert info.end_page == 8
        assert info.pages == [2, 3, 4, 5, 6, 7, 8]

    def test_window_pinned_to_start(self):
        info = create_pagination(total_items=100, current_page=1, page_size=10, max_pages=4)
        assert (info.start_page, info.end_page) == (0, 3)

    def test_window_pinned_to_end(self):
        info = create_pagination(total_items=100, current_page=9, page_size=10, max_pages=4)
        assert (info.start_page, info.end_page) == (6, 9)

    def test_even_window_has_more_pages_before_current(self):
        # before = max_pages // 2, after = ceil(max_pages / 2) - 1
        info = create_pagination(total_items=200, current_page=10, page_size=10, max_pages=4)
        assert (info.start_page, info.end_page) == (8, 11)

    def test_all_pages_fit_in_window(self):
        info = create_pagination(total_items=25, current_page=2, page_size=10, max_pages=10)
        assert info.total_pages == 3
        assert info.pages == [0, 1, 2]

    def test_item_indexes(self):
        info = create_pagination(total_items=25, current_page=2, page_size=10)
        assert info.start_index == 20
        assert info.end_index == 24

    def test_current_page_clamped_to_last_page(self):
        info = create_pagination(total_items=25, current_page=99, page_size=10)
        assert info.current_page == 2

    def test_no_items(self):
        info = create_pagination(total_items=0)
        assert info.total_pages == 0
        assert info.current_page == 0
        assert info.pages == []

    def test_defaults(self):
        info = create_pagination(total_items=1000)
        assert info.page_size == 10
        assert len(info.pages) == 10

    def test_window_invariants(self):
        for total_items in (1, 9, 10, 11, 57, 230):
            for page_size in (1, 3, 10):
                for max_pages in (1, 2, 5, 8):
                    total_pages = -(-total_items // page_size)
                    for current_page in range(total_pages):
                        info = create_pagination(total_items, current_page, page_size, max_pages)
                        assert 0 <= info.start_page <= info.current_page <= info.end_page < info.total_pages
                        assert info.end_page - info.start_page + 1 <= max_pages

    @pytest.mark.parametrize(
        "kwargs, message",
        [
            ({"total_items": -1}, "Total items must be a non-negative integer"),
            ({"total_items": 10, "current_page": -1}, "Current page must be a non-negative integer"),
            ({"total_items": 10, "page_size": 0}, "Page size must be a positive integer"),
            ({"total_items": 10, "max_pages": 0}, "Max pages must be a positive integer"),
            ({"total_items": 2.5}, "Total items must be a non-negative integer"),
        ],
    )
    def test_invalid_inputs(self, kwargs, message):
        with pytest.raises(ValueError, match=f"Pagination creation failed: {message}"):
            create_pagination(**kwargs)
