"""Sorting and page-envelope helper shared by listing endpoints."""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy import ColumnElement, Select, func, select
from sqlalchemy.orm import Session

from backoffice.core.config import settings
from backoffice.domain.exceptions import InvalidQuery


@dataclass(frozen=True)
class PageOptions:
    """Caller-supplied listing options, before normalisation."""

    sort_by: str | None = None
    limit: int | None = None
    page: int | None = None


@dataclass
class PageResult:
    """One page of results plus the totals needed to walk the rest."""

    results: Sequence[Any]
    page: int
    limit: int
    total_pages: int
    total_results: int


def normalize_limit(limit: int | None) -> int:
    """Fall back to the default page size for missing or non-positive values."""
    if not limit or limit <= 0:
        return settings.DEFAULT_PAGE_SIZE
    return min(limit, settings.MAX_PAGE_SIZE)


def normalize_page(page: int | None) -> int:
    if not page or page <= 0:
        return 1
    return page


def parse_sort_by(
    sort_by: str | None,
    sortable: Mapping[str, ColumnElement[Any]],
    default: Sequence[ColumnElement[Any]],
) -> list[ColumnElement[Any]]:
    """Turn ``"field:desc,other:asc"`` into ORDER BY clauses.

    The direction defaults to ascending. Fields outside ``sortable`` raise
    ``InvalidQuery``.
    """
    if not sort_by or not sort_by.strip():
        return list(default)

    clauses: list[ColumnElement[Any]] = []
    for option in sort_by.split(","):
        option = option.strip()
        if not option:
            continue
        field, _, direction = option.partition(":")
        field = field.strip()
        column = sortable.get(field)
        if column is None:
            raise InvalidQuery(f"Cannot sort by '{field}'")
        clauses.append(column.desc() if direction.strip().lower() == "desc" else column.asc())
    return clauses or list(default)


def paginate(
    db: Session,
    statement: Select,
    options: PageOptions,
    sortable: Mapping[str, ColumnElement[Any]],
    default_sort: Sequence[ColumnElement[Any]],
    tiebreaker: ColumnElement[Any],
) -> PageResult:
    """Run ``statement`` as a sorted, paginated query.

    ``tiebreaker`` is appended to the ordering so pages never overlap when the
    sort keys have duplicates.
    """
    limit = normalize_limit(options.limit)
    page = normalize_page(options.page)
    order = parse_sort_by(options.sort_by, sortable, default_sort)

    total_results = db.scalar(
        select(func.count()).select_from(statement.order_by(None).subquery())
    ) or 0

    rows = db.scalars(
        statement.order_by(*order, tiebreaker.asc())
        .limit(limit)
        .offset((page - 1) * limit)
    ).all()

    return PageResult(
        results=rows,
        page=page,
        limit=limit,
        total_pages=math.ceil(total_results / limit),
        total_results=total_results,
    )
