"""Custom actions: extra named endpoints on a resource."""

from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from namerec.viewset.core.types import RequestContext

ActionHandler = Callable[[RequestContext], Awaitable[Any]]

ACTION_MARKER = '__viewset_action__'


@dataclass(frozen=True, slots=True)
class Action:
    """
    Named endpoint attached to a resource.

    A detail action gets the lookup column appended to its path, e.g.
    `/users/{id}/activate`; a non-detail one lives at `/users/stats`.
    """

    name: str
    handler: ActionHandler
    path: str
    methods: tuple[str, ...] = ('GET',)
    detail: bool = False

    @classmethod
    def build(
        cls,
        name: str,
        handler: ActionHandler,
        *,
        path: str | None = None,
        methods: Sequence[str] | None = None,
        detail: bool = False,
    ) -> 'Action':
        """
        Build an action with defaults filled in.

        Args:
            name: Action name
            handler: Async callable receiving the request context
            path: Path segment (defaults to the name with '_' replaced by '-')
            methods: HTTP verbs (defaults to GET)
            detail: Whether the lookup column is part of the path

        Returns:
            Action
        """
        return cls(
            name=name,
            handler=handler,
            path=(path or name.replace('_', '-')).strip('/'),
            methods=tuple(method.upper() for method in methods or ('GET',)),
            detail=detail,
        )


def action(
    detail: bool = False,
    methods: Sequence[str] | None = None,
    path: str | None = None,
) -> Callable[[Callable], Callable]:
    """
    Mark a viewset method as a custom action.

    Usage:
        class UserViewSet(ResourceViewSet):
            @action(detail=True, methods=['POST'])
            async def activate(self, request: RequestContext) -> dict:
                ...

    Args:
        detail: Whether the lookup column is part of the path
        methods: HTTP verbs (defaults to GET)
        path: Path segment (defaults to the method name)

    Returns:
        Decorator that leaves the function unchanged apart from the marker
    """

    def decorator(func: Callable) -> Callable:
        setattr(func, ACTION_MARKER, {'detail': detail, 'methods': methods, 'path': path})
        return func

    return decorator
