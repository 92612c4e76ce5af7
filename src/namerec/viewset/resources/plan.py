"""Query plan: everything a listing needs before it touches the database."""

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Column
from sqlalchemy import Select
from sqlalchemy import Table
from sqlalchemy import select

from namerec.viewset.query.compiler import compile_filter
from namerec.viewset.query.compiler import compile_ordering
from namerec.viewset.query.pagination import PaginationSpec
from namerec.viewset.query.types import FilterNode
from namerec.viewset.query.types import OrderSpec


@dataclass(frozen=True)
class QueryPlan:
    """
    Filter tree, ordering and pagination attached to a projection.

    Built fresh per request and discarded once executed.
    """

    table: Table
    columns: tuple[Column, ...]
    where: FilterNode | None = None
    ordering: OrderSpec | None = None
    pagination: PaginationSpec | None = None

    @property
    def limit(self) -> int | None:
        """Row limit, or None when not paginated."""
        if self.pagination is None or not self.pagination.enabled:
            return None
        return self.pagination.limit

    @property
    def offset(self) -> int | None:
        """Row offset, or None when not paginated."""
        if self.pagination is None or not self.pagination.enabled:
            return None
        return self.pagination.offset

    @property
    def paginated(self) -> bool:
        """Whether the result is wrapped in a pagination envelope."""
        return self.limit is not None

    def to_select(self) -> Select:
        """
        Compile to a SQLAlchemy SELECT.

        Returns:
            SELECT with WHERE, ORDER BY, LIMIT and OFFSET applied
        """
        query = select(*self.columns)
        if self.where is not None:
            query = query.where(compile_filter(self.where, self.table))
        if self.ordering:
            query = query.order_by(*compile_ordering(self.ordering, self.table))
        if self.paginated:
            query = query.limit(self.limit).offset(self.offset)
        return query

    def describe(self) -> dict[str, Any]:
        """
        Summarize the plan for logging and the CLI.

        Returns:
            Dictionary with filter JSON, sort tokens, limit and offset
        """
        return {
            'table': self.table.name,
            'columns': [column.name for column in self.columns],
            'filter': self.where.to_dict() if self.where is not None else None,
            'sort': [item.to_token() for item in self.ordering] if self.ordering else None,
            'limit': self.limit,
            'offset': self.offset,
        }
