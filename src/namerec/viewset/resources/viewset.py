"""Resource operation orchestrator."""

from __future__ import annotations

import dataclasses
from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Collection
from collections.abc import Mapping
from typing import TYPE_CHECKING
from typing import Any
from typing import Literal

import structlog
from sqlalchemy import Select
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine

from namerec.viewset.core.exceptions import NotFoundError
from namerec.viewset.core.exceptions import OperationNotAllowedError
from namerec.viewset.core.exceptions import SchemaValidationError
from namerec.viewset.core.types import ALL_OPERATIONS
from namerec.viewset.core.types import Operation
from namerec.viewset.core.types import OperationHandler
from namerec.viewset.core.types import RequestContext
from namerec.viewset.query.constants import PAGE_KEY
from namerec.viewset.query.constants import SEARCH_KEY
from namerec.viewset.query.constants import SIZE_KEY
from namerec.viewset.query.constants import SORT_KEY
from namerec.viewset.query.pagination import resolve_pagination
from namerec.viewset.resources.actions import ACTION_MARKER
from namerec.viewset.resources.actions import Action
from namerec.viewset.resources.actions import ActionHandler
from namerec.viewset.resources.binding import ResourceBinding
from namerec.viewset.resources.gateway import SQLAlchemyGateway
from namerec.viewset.resources.keys import LookupKey
from namerec.viewset.resources.plan import QueryPlan
from namerec.viewset.resources.schemas import schema_fields
from namerec.viewset.resources.schemas import validate
from namerec.viewset.resources.search import NullSearchBackend
from namerec.viewset.resources.search import SearchBackend

if TYPE_CHECKING:
    from fastapi import APIRouter

logger = structlog.get_logger(__name__)

OperationSubset = Literal['all'] | Collection[Operation | str]


def normalize_operations(operations: OperationSubset) -> frozenset[Operation]:
    if operations == 'all':
        return frozenset(ALL_OPERATIONS)
    if isinstance(operations, str):
        msg = f'Operations must be "all" or a collection of operation names, got {operations!r}'
        raise ValueError(msg)
    return frozenset(Operation(op) for op in operations)


class ResourceViewSet:
    """
    Binds a resource to list, create, retrieve, update, destroy and search.

    Each request is handled independently: filter tree, ordering and
    pagination are built fresh from the query parameters, combined into a
    query plan and executed in one round trip. Any operation can be
    replaced by an external handler, which then receives only the raw
    request context.
    """

    def __init__(
        self,
        binding: ResourceBinding,
        engine: AsyncEngine,
        handlers: Mapping[Operation | str, OperationHandler] | None = None,
        search_backend: SearchBackend | None = None,
        actions: Collection[Action] = (),
        operations: OperationSubset = 'all',
    ) -> None:
        """
        Initialize viewset.

        Args:
            binding: Resource binding
            engine: Async SQLAlchemy engine
            handlers: Per-operation overrides
            search_backend: Free-text search backend (defaults to NullSearchBackend)
            actions: Custom actions in addition to decorated methods
            operations: Exposed operations, "all" or a subset
        """
        self.binding = binding
        self.gateway = SQLAlchemyGateway(engine, binding.table)
        self.search_backend = search_backend or NullSearchBackend()
        self.exposed = normalize_operations(operations)
        self._handlers: dict[Operation, OperationHandler] = {
            Operation(op): handler for op, handler in (handlers or {}).items()
        }
        self._builtin: dict[Operation, Callable[[RequestContext], Awaitable[Any]]] = {
            Operation.LIST: self._list,
            Operation.CREATE: self._create,
            Operation.RETRIEVE: self._retrieve,
            Operation.UPDATE: self._update,
            Operation.DESTROY: self._destroy,
            Operation.SEARCH: self._search,
        }
        self.actions: dict[str, Action] = {}
        self._collect_actions()
        for item in actions:
            self.actions[item.name] = item

    @property
    def name(self) -> str:
        """Resource name."""
        return self.binding.name

    @property
    def operations(self) -> dict[Operation, Callable[[RequestContext], Awaitable[Any]]]:
        """Exposed operations mapped to their entry points."""
        entry_points = {
            Operation.LIST: self.list,
            Operation.CREATE: self.create,
            Operation.RETRIEVE: self.retrieve,
            Operation.UPDATE: self.update,
            Operation.DESTROY: self.destroy,
            Operation.SEARCH: self.search,
        }
        return {op: entry_points[op] for op in ALL_OPERATIONS if op in self.exposed}

    # ========== Overrides and actions ==========

    def override(self, operation: Operation | str) -> Callable[[OperationHandler], OperationHandler]:
        """
        Decorator replacing a built-in operation.

        Args:
            operation: Operation to replace

        Returns:
            Decorator registering the handler
        """

        def decorator(handler: OperationHandler) -> OperationHandler:
            self._handlers[Operation(operation)] = handler
            return handler

        return decorator

    def add_action(
        self,
        name: str,
        handler: ActionHandler,
        *,
        path: str | None = None,
        methods: Collection[str] | None = None,
        detail: bool = False,
    ) -> Action:
        """
        Register a custom action.

        Args:
            name: Action name
            handler: Async callable receiving the request context
            path: Path segment (defaults to the name)
            methods: HTTP verbs (defaults to GET)
            detail: Whether the lookup column is part of the path

        Returns:
            Registered action
        """
        item = Action.build(name, handler, path=path, methods=list(methods) if methods else None, detail=detail)
        self.actions[name] = item
        return item

    def _collect_actions(self) -> None:
        for attr_name in dir(type(self)):
            options = getattr(getattr(type(self), attr_name, None), ACTION_MARKER, None)
            if options is not None:
                self.add_action(attr_name, getattr(self, attr_name), **options)

    async def perform_action(self, name: str, request: RequestContext) -> Any:
        """
        Run a custom action.

        Detail actions see the lookup value converted to the column type.

        Args:
            name: Action name
            request: Request context

        Returns:
            Whatever the action handler returns
        """
        item = self.actions[name]
        if item.detail:
            request = self._with_lookup(self.binding.detail_key, request)
        logger.debug('Running action', resource=self.name, action=name)
        return await item.handler(request)

    # ========== Public entry points ==========

    async def dispatch(self, operation: Operation | str, request: RequestContext) -> Any:
        """
        Run an operation, preferring an override handler when one is set.

        Args:
            operation: Operation to run
            request: Request context

        Returns:
            Response payload

        Raises:
            OperationNotAllowedError: If the operation is not exposed
        """
        operation = Operation(operation)
        if operation not in self.exposed:
            raise OperationNotAllowedError(self.name, operation.value)

        handler = self._handlers.get(operation)
        if handler is not None:
            logger.debug('Dispatching to override', resource=self.name, operation=operation.value)
            return await handler(request)
        return await self._builtin[operation](request)

    async def list(self, request: RequestContext) -> Any:
        """List rows, paginated or as a plain list."""
        return await self.dispatch(Operation.LIST, request)

    async def create(self, request: RequestContext) -> Any:
        """Create a row from the request body."""
        return await self.dispatch(Operation.CREATE, request)

    async def retrieve(self, request: RequestContext) -> Any:
        """Fetch one row by its lookup column."""
        return await self.dispatch(Operation.RETRIEVE, request)

    async def update(self, request: RequestContext) -> Any:
        """Update one row by its lookup column."""
        return await self.dispatch(Operation.UPDATE, request)

    async def destroy(self, request: RequestContext) -> Any:
        """Delete one row by its lookup column."""
        return await self.dispatch(Operation.DESTROY, request)

    async def search(self, request: RequestContext) -> Any:
        """Free-text search via the search backend."""
        return await self.dispatch(Operation.SEARCH, request)

    def register(
        self,
        router: APIRouter,
        base_path: str | None = None,
        subset: OperationSubset = 'all',
    ) -> APIRouter:
        """
        Add routes for this resource to a FastAPI router.

        Args:
            router: Router to extend
            base_path: Path prefix (defaults to '/<resource name>')
            subset: "all" or the operations to route

        Returns:
            The router
        """
        # Import here to avoid circular dependency
        from namerec.viewset.routing import register

        return register(self, router, base_path, subset)

    # ========== Query plan ==========

    def list_columns(self) -> tuple:
        """
        Columns projected by list: list-schema fields that exist on the table.

        Returns:
            Tuple of columns (every column when the schema names none of them)
        """
        table = self.binding.table
        columns = tuple(table.columns[name] for name in schema_fields(self.binding.schemas.list) if name in table.columns)
        return columns or tuple(table.columns)

    def select_list_columns(self) -> Select:
        """SELECT of the list projection with no conditions."""
        return select(*self.list_columns())

    def build_list_plan(self, request: RequestContext) -> QueryPlan:
        """
        Build the query plan for a listing.

        Args:
            request: Request context

        Returns:
            Query plan

        Raises:
            QueryParseError: If filter, sort, page or size is malformed
        """
        binding = self.binding

        where = binding.filter_parser.parse(request.query_params) if binding.filterable_fields else None
        ordering = binding.ordering_parser.parse(request.single(SORT_KEY)) or binding.default_ordering
        pagination = resolve_pagination(
            request.single(PAGE_KEY),
            binding.pagination,
            binding.page_size,
            query_size=request.single(SIZE_KEY),
            max_page_size=binding.max_page_size,
        )

        plan = QueryPlan(
            table=binding.table,
            columns=self.list_columns(),
            where=where,
            ordering=ordering,
            pagination=pagination,
        )
        logger.debug(
            'Built list plan',
            resource=self.name,
            operation=Operation.LIST.value,
            filters=plan.describe()['filter'],
            page=pagination.page if pagination.enabled else None,
        )
        return plan

    def _with_lookup(self, key: LookupKey, request: RequestContext) -> RequestContext:
        if key.name not in request.path_params:
            raise SchemaValidationError(
                [{'field': key.name, 'message': 'Missing path parameter', 'type': 'missing'}],
                schema_name='path',
                resource_name=self.name,
            )
        path_params = dict(request.path_params)
        path_params[key.name] = key.coerce(path_params[key.name])
        return dataclasses.replace(request, path_params=path_params)

    def _lookup_value(self, operation: Operation, request: RequestContext) -> tuple[LookupKey, Any]:
        key = self.binding.key_for(operation)
        return key, self._with_lookup(key, request).path_params[key.name]

    def _not_found(self, key: LookupKey, value: Any, operation: Operation) -> NotFoundError:
        logger.warning('Row not found', resource=self.name, operation=operation.value, lookup=key.name, value=value)
        return NotFoundError(self.name, key.name, value)

    # ========== Built-in operations ==========

    async def _list(self, request: RequestContext) -> list[dict[str, Any]] | dict[str, Any]:
        plan = self.build_list_plan(request)
        schema = self.binding.schemas.list
        query = plan.to_select()

        if plan.paginated:
            rows, count = await self.gateway.fetch_page(query)
            return plan.pagination.envelope([validate(schema, row) for row in rows], count)

        rows = await self.gateway.fetch_all(query)
        return [validate(schema, row) for row in rows]

    async def _create(self, request: RequestContext) -> dict[str, Any]:
        schema = self.binding.schemas.create
        table = self.binding.table

        data = validate(schema, request.body, partial=True)
        values = {name: value for name, value in data.items() if name in table.columns}
        row = await self.gateway.insert(values, returning=list(table.columns))
        logger.info('Row created', resource=self.name)

        fields = schema_fields(schema)
        return validate(schema, {name: value for name, value in row.items() if name in fields})

    async def _retrieve(self, request: RequestContext) -> dict[str, Any]:
        key, value = self._lookup_value(Operation.RETRIEVE, request)
        schema = self.binding.schemas.retrieve

        query = select(*self._retrieve_columns()).where(key.column == value)
        row = await self.gateway.fetch_one(query)
        if row is None:
            raise self._not_found(key, value, Operation.RETRIEVE)
        return validate(schema, row)

    async def _update(self, request: RequestContext) -> dict[str, Any]:
        key, value = self._lookup_value(Operation.UPDATE, request)
        table = self.binding.table

        data = validate(self.binding.schemas.update, request.body, partial=True)
        values = {name: val for name, val in data.items() if name in table.columns}
        row = await self.gateway.update(key.column == value, values, returning=self._retrieve_columns())
        if row is None:
            raise self._not_found(key, value, Operation.UPDATE)
        logger.info('Row updated', resource=self.name, lookup=key.name, value=value)

        # Client always sees the canonical (retrieve) representation
        return validate(self.binding.schemas.retrieve, row)

    async def _destroy(self, request: RequestContext) -> Any:
        key, value = self._lookup_value(Operation.DESTROY, request)

        row = await self.gateway.delete(key.column == value, returning=[key.column])
        if row is None:
            raise self._not_found(key, value, Operation.DESTROY)
        logger.info('Row deleted', resource=self.name, lookup=key.name, value=value)
        return row[key.name]

    async def _search(self, request: RequestContext) -> list[dict[str, Any]]:
        query = request.single(SEARCH_KEY)
        if not query:
            return []
        return await self.search_backend.search(self, query, request)

    def _retrieve_columns(self) -> list:
        table = self.binding.table
        columns = [table.columns[name] for name in schema_fields(self.binding.schemas.retrieve) if name in table.columns]
        return columns or list(table.columns)
