"""Type definitions for ViewSet."""

from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from typing import Any
from typing import Protocol
from typing import runtime_checkable

from namerec.viewset.core.exceptions import QueryParseError

# Raw query parameters as handed over by the transport: a repeated key
# arrives as a list of strings.
QueryParams = Mapping[str, str | list[str]]


class Operation(str, Enum):
    """Canonical resource operations."""

    LIST = 'list'
    CREATE = 'create'
    RETRIEVE = 'retrieve'
    UPDATE = 'update'
    DESTROY = 'destroy'
    SEARCH = 'search'


ALL_OPERATIONS = tuple(Operation)


class PaginationMode(str, Enum):
    """When a listing is paginated."""

    AUTO = 'auto'  # only when a page parameter is supplied
    FORCED = 'forced'
    DISABLED = 'disabled'


@dataclass(frozen=True)
class RequestContext:
    """
    Transport-neutral view of one request.

    The core never looks at headers or status codes; the routing layer
    builds this from the framework request and renders whatever comes back.
    """

    query_params: QueryParams = field(default_factory=dict)
    path_params: Mapping[str, Any] = field(default_factory=dict)
    body: Any = None

    def single(self, key: str) -> str | None:
        """
        Get the value of a query parameter that may appear only once.

        Args:
            key: Query parameter name

        Returns:
            The value, or None when the key is absent

        Raises:
            QueryParseError: If the key was sent more than once
        """
        value = self.query_params.get(key)
        if not isinstance(value, list):
            return value
        if len(value) > 1:
            msg = f'Query parameter "{key}" may appear only once'
            raise QueryParseError(msg, key)
        return value[0] if value else None


@runtime_checkable
class OperationHandler(Protocol):
    """
    Replacement for a built-in operation.

    Receives only the raw request context and bypasses filtering,
    ordering, pagination and schema validation entirely.
    """

    async def __call__(self, request: RequestContext) -> Any:
        """
        Handle the request.

        Args:
            request: Raw request context

        Returns:
            Response payload for the transport layer
        """
        ...
