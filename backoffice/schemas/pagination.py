"""Page envelope returned by listing endpoints."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One page of results."""

    results: list[T]
    page: int
    limit: int
    total_pages: int
    total_results: int
