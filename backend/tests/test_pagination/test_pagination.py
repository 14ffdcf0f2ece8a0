"""
Tests for page clamping and the Page envelope.
"""

import pytest

from dealer_sales.schemas.common import Page
from dealer_sales.services.pagination import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    normalize_page,
    paginate,
)


class TestNormalizePage:
    """Test clamping of requested page numbers and sizes."""

    @pytest.mark.parametrize(
        "requested,expected",
        [
            ((1, 10), (1, 10)),
            ((3, 25), (3, 25)),
            ((0, 10), (1, 10)),
            ((-4, 10), (1, 10)),
            ((2, 0), (2, DEFAULT_PAGE_SIZE)),
            ((2, -1), (2, DEFAULT_PAGE_SIZE)),
            ((2, MAX_PAGE_SIZE), (2, MAX_PAGE_SIZE)),
            ((2, 101), (2, DEFAULT_PAGE_SIZE)),
            ((0, 500), (1, DEFAULT_PAGE_SIZE)),
        ],
    )
    def test_normalize(self, requested, expected):
        assert normalize_page(*requested) == expected


class TestPaginate:
    """Test slicing sequences into pages."""

    def test_middle_page(self):
        page = paginate(list(range(25)), page_number=2, page_size=10)

        assert page.items == list(range(10, 20))
        assert page.total_count == 25
        assert page.total_pages == 3
        assert page.has_previous is True
        assert page.has_next is True

    def test_last_partial_page(self):
        page = paginate(list(range(25)), page_number=3, page_size=10)

        assert page.items == [20, 21, 22, 23, 24]
        assert page.has_next is False

    def test_page_past_the_end(self):
        page = paginate(list(range(5)), page_number=4, page_size=10)

        assert page.items == []
        assert page.total_count == 5
        assert page.page_number == 4

    def test_invalid_request_is_clamped(self):
        page = paginate(list(range(15)), page_number=0, page_size=500)

        assert page.page_number == 1
        assert page.page_size == 10
        assert page.items == list(range(10))

    def test_empty_sequence(self):
        page = paginate([], page_number=1, page_size=10)

        assert page.total_pages == 0
        assert page.has_previous is False
        assert page.has_next is False


class TestPageSerialization:
    """Test the serialized envelope."""

    def test_computed_fields_are_serialized(self):
        page = Page[int](items=[1, 2], total_count=12, page_number=1, page_size=2)

        data = page.model_dump()

        assert data == {
            "items": [1, 2],
            "total_count": 12,
            "page_number": 1,
            "page_size": 2,
            "total_pages": 6,
            "has_previous": False,
            "has_next": True,
        }
