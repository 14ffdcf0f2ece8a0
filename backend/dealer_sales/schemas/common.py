"""
Shared schemas: the generic pagination envelope.
"""

import math
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, computed_field

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """
    One page of results.

    Attributes:
        items: Items on this page
        total_count: Number of items across all pages
        page_number: 1-based page number
        page_size: Maximum items per page
    """

    model_config = ConfigDict(from_attributes=True)

    items: list[T] = Field(default_factory=list)
    total_count: int = Field(..., ge=0, description="Total matching items")
    page_number: int = Field(..., ge=1, description="Current page number")
    page_size: int = Field(..., ge=1, description="Items per page")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.total_count else 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_previous(self) -> bool:
        return self.page_number > 1

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_next(self) -> bool:
        return self.page_number < self.total_pages


class ErrorResponse(BaseModel):
    """Error body returned by the API exception handler."""

    error: str
    message: str
    context: dict[str, str] = Field(default_factory=dict)
