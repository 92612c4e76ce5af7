"""Pagination resolution and the paginated response envelope."""

import math
from dataclasses import dataclass
from typing import Any

from namerec.viewset.core.exceptions import QueryParseError
from namerec.viewset.core.types import PaginationMode
from namerec.viewset.query.constants import PAGE_KEY
from namerec.viewset.query.constants import SIZE_KEY


@dataclass(frozen=True, slots=True)
class PaginationSpec:
    """Resolved pagination for one listing."""

    enabled: bool
    page: int = 1
    page_size: int = 20

    def __post_init__(self) -> None:
        """Validate page and size."""
        if self.page < 1 or self.page_size < 1:
            msg = f'page and page_size must be >= 1, got {self.page} and {self.page_size}'
            raise ValueError(msg)

    @property
    def offset(self) -> int:
        """Rows skipped before this page."""
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        """Rows on one page."""
        return self.page_size

    def page_count(self, count: int) -> int:
        """
        Number of pages needed for a total row count.

        Args:
            count: Total matching rows

        Returns:
            ceil(count / page_size); 0 when there are no rows
        """
        return math.ceil(count / self.page_size) if count > 0 else 0

    def envelope(self, results: list[Any], count: int) -> dict[str, Any]:
        """
        Wrap one page of results.

        The total is read from a window count carried on each fetched row,
        so a page past the last row reports count 0 and page_count 0.

        Args:
            results: Rows on this page
            count: Total matching rows (0 when the page is empty)

        Returns:
            Dictionary with count, page, size, page_count and results
        """
        return {
            'count': count,
            'page': self.page,
            'size': self.page_size,
            'page_count': self.page_count(count),
            'results': results,
        }


def _parse_int(raw: str | int | None, key: str) -> int | None:
    if raw is None or raw == '':
        return None
    if isinstance(raw, int):
        return raw
    try:
        return int(raw.strip())
    except ValueError:
        msg = f'"{key}" must be an integer, got {raw!r}'
        raise QueryParseError(msg, key) from None


def resolve_pagination(
    query_page: str | int | None,
    mode: PaginationMode,
    page_size: int,
    query_size: str | int | None = None,
    max_page_size: int | None = None,
) -> PaginationSpec:
    """
    Decide whether and how a listing is paginated.

    FORCED always pages, DISABLED never does, AUTO pages exactly when a
    page parameter was supplied. A missing or non-positive page becomes 1.
    A positive size parameter overrides the configured page size, capped
    at max_page_size.

    Args:
        query_page: Raw page parameter (None when absent)
        mode: Pagination mode of the resource
        page_size: Configured page size
        query_size: Raw size parameter (None when absent)
        max_page_size: Upper bound for a requested size

    Returns:
        Pagination spec

    Raises:
        QueryParseError: If page or size is not an integer
    """
    match mode:
        case PaginationMode.FORCED:
            enabled = True
        case PaginationMode.DISABLED:
            enabled = False
        case PaginationMode.AUTO:
            enabled = query_page is not None
        case _:
            msg = f'Unknown pagination mode: {mode}'
            raise ValueError(msg)

    page = _parse_int(query_page, PAGE_KEY) if enabled else None
    size = _parse_int(query_size, SIZE_KEY) if enabled else None

    if size is not None and size > 0:
        page_size = min(size, max_page_size) if max_page_size else size

    return PaginationSpec(
        enabled=enabled,
        page=page if page is not None and page > 0 else 1,
        page_size=page_size,
    )
