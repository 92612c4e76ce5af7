"""Free-text search backends."""

from typing import TYPE_CHECKING
from typing import Any
from typing import Protocol
from typing import runtime_checkable

from sqlalchemy import String
from sqlalchemy import cast
from sqlalchemy import or_

from namerec.viewset.core.types import RequestContext
from namerec.viewset.query.compiler import compile_ordering
from namerec.viewset.resources.schemas import validate

if TYPE_CHECKING:
    from namerec.viewset.resources.viewset import ResourceViewSet


@runtime_checkable
class SearchBackend(Protocol):
    """Protocol for free-text matching across a resource's searchable fields."""

    async def search(
        self,
        viewset: 'ResourceViewSet',
        query: str,
        request: RequestContext,
    ) -> list[dict[str, Any]]:
        """
        Find rows matching a free-text query.

        Args:
            viewset: Resource being searched
            query: Non-empty value of the q parameter
            request: Request context

        Returns:
            Rows validated against the list schema
        """
        ...


class NullSearchBackend:
    """Matches nothing. Default until a real backend is plugged in."""

    async def search(
        self,
        viewset: 'ResourceViewSet',  # noqa: ARG002
        query: str,  # noqa: ARG002
        request: RequestContext,  # noqa: ARG002
    ) -> list[dict[str, Any]]:
        return []


def _escape_like(text: str, escape: str = '\\') -> str:
    return text.replace(escape, escape * 2).replace('%', f'{escape}%').replace('_', f'{escape}_')


class ILikeSearchBackend:
    """
    Case-insensitive substring match: OR of `field ILIKE %q%`.

    Non-text columns are cast to text first. Results follow the
    resource's default ordering and are capped at `limit` rows.
    """

    def __init__(self, limit: int | None = 100) -> None:
        """
        Initialize backend.

        Args:
            limit: Maximum rows returned (None for no cap)
        """
        self.limit = limit

    async def search(
        self,
        viewset: 'ResourceViewSet',
        query: str,
        request: RequestContext,  # noqa: ARG002
    ) -> list[dict[str, Any]]:
        binding = viewset.binding
        if not binding.searchable_fields:
            return []

        pattern = f'%{_escape_like(query)}%'
        conditions = [
            cast(binding.table.columns[name], String).ilike(pattern, escape='\\')
            for name in binding.searchable_fields
        ]

        stmt = viewset.select_list_columns().where(or_(*conditions))
        if binding.default_ordering:
            stmt = stmt.order_by(*compile_ordering(binding.default_ordering, binding.table))
        if self.limit is not None:
            stmt = stmt.limit(self.limit)

        rows = await viewset.gateway.fetch_all(stmt)
        return [validate(binding.schemas.list, row) for row in rows]
