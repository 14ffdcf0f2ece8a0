"""
Pagination helpers.

Page numbers below 1 are treated as 1 and page sizes outside ``[1, 100]``
fall back to the default of 10. ``paginate`` slices an in-memory sequence;
``paginate_query`` counts a filtered statement and then fetches one page of it.
"""

from typing import Callable, Sequence, TypeVar

from sqlalchemy import Select

from dealer_sales.database.repository import BaseRepository
from dealer_sales.schemas.common import Page

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def normalize_page(page_number: int, page_size: int) -> tuple[int, int]:
    """Clamp a requested page number and size to valid values."""
    if page_number < 1:
        page_number = 1
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        page_size = DEFAULT_PAGE_SIZE
    return page_number, page_size


def paginate(items: Sequence[T], page_number: int, page_size: int) -> Page[T]:
    """
    Slice a sequence into one page.

    Args:
        items: Full, already ordered sequence
        page_number: Requested 1-based page
        page_size: Requested page size

    Returns:
        Page with the clamped number and size
    """
    page_number, page_size = normalize_page(page_number, page_size)
    start = (page_number - 1) * page_size
    return Page(
        items=list(items[start : start + page_size]),
        total_count=len(items),
        page_number=page_number,
        page_size=page_size,
    )


async def paginate_query(
    repository: BaseRepository,
    stmt: Select,
    page_number: int,
    page_size: int,
    transform: Callable[[T], R],
) -> Page[R]:
    """
    Count a filtered statement, then fetch and transform one page of it.

    The statement must already carry its ordering.
    """
    page_number, page_size = normalize_page(page_number, page_size)
    total_count = await repository.count(stmt)
    rows = await repository.scalars(
        stmt.offset((page_number - 1) * page_size).limit(page_size),
        "fetch page",
        page_number=page_number,
        page_size=page_size,
    )
    return Page(
        items=[transform(row) for row in rows],
        total_count=total_count,
        page_number=page_number,
        page_size=page_size,
    )
