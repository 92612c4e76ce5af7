"""FastAPI route registration and error rendering for resource viewsets."""

import json
import traceback
from collections.abc import Awaitable
from collections.abc import Callable
from typing import Any

import structlog
from fastapi import APIRouter
from fastapi import FastAPI
from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from namerec.viewset.core.config import get_settings
from namerec.viewset.core.exceptions import BackendError
from namerec.viewset.core.exceptions import NotFoundError
from namerec.viewset.core.exceptions import OperationNotAllowedError
from namerec.viewset.core.exceptions import QueryParseError
from namerec.viewset.core.exceptions import SchemaValidationError
from namerec.viewset.core.exceptions import ViewSetError
from namerec.viewset.core.types import Operation
from namerec.viewset.core.types import RequestContext
from namerec.viewset.resources.actions import Action
from namerec.viewset.resources.viewset import OperationSubset
from namerec.viewset.resources.viewset import ResourceViewSet
from namerec.viewset.resources.viewset import normalize_operations

logger = structlog.get_logger(__name__)


class ErrorResponse(BaseModel):
    """Unified error response format."""

    id: str  # Exception type (e.g., "NotFoundError")
    message: str
    details: dict[str, Any]


# ========== Request conversion ==========


async def build_context(request: Request) -> RequestContext:
    """
    Convert a FastAPI request into a request context.

    Repeated query keys become lists; an empty body becomes None.

    Args:
        request: FastAPI request

    Returns:
        Request context

    Raises:
        SchemaValidationError: If the body is not valid JSON
    """
    query_params: dict[str, str | list[str]] = {}
    for key, value in request.query_params.multi_items():
        if key not in query_params:
            query_params[key] = value
        elif isinstance(existing := query_params[key], list):
            existing.append(value)
        else:
            query_params[key] = [existing, value]

    body = None
    raw = await request.body()
    if raw:
        try:
            body = json.loads(raw)
        except json.JSONDecodeError as e:
            raise SchemaValidationError(
                [{'field': 'body', 'message': f'Invalid JSON: {e.msg}', 'type': 'json_invalid'}],
                schema_name='body',
            ) from e

    return RequestContext(
        query_params=query_params,
        path_params=dict(request.path_params),
        body=body,
    )


# ========== Route registration ==========


def _operation_endpoint(viewset: ResourceViewSet, operation: Operation) -> Callable[[Request], Awaitable[Any]]:
    async def endpoint(request: Request) -> Any:
        context = await build_context(request)
        logger.debug('Resource request', resource=viewset.name, operation=operation.value)
        return await viewset.dispatch(operation, context)

    return endpoint


def _action_endpoint(viewset: ResourceViewSet, item: Action) -> Callable[[Request], Awaitable[Any]]:
    async def endpoint(request: Request) -> Any:
        context = await build_context(request)
        return await viewset.perform_action(item.name, context)

    return endpoint


def register(
    viewset: ResourceViewSet,
    router: APIRouter,
    base_path: str | None = None,
    subset: OperationSubset = 'all',
) -> APIRouter:
    """
    Add one route per selected operation plus one per custom action.

    Collection routes (list, create, search, non-detail actions) are added
    before detail routes so '/users/search' is not taken for a lookup value.
    Detail routes name their path parameter after the resolved lookup column.

    Args:
        viewset: Resource viewset
        router: Router to extend
        base_path: Path prefix (defaults to '/<resource name>')
        subset: "all" or the operations to route

    Returns:
        The router
    """
    base = (base_path or f'/{viewset.name}').rstrip('/')
    selected = normalize_operations(subset) & viewset.exposed
    tags = [viewset.name]

    def add(path: str, operation: Operation, method: str, status_code: int = 200) -> None:
        router.add_api_route(
            path,
            _operation_endpoint(viewset, operation),
            methods=[method],
            status_code=status_code,
            name=f'{viewset.name}-{operation.value}',
            tags=tags,
        )

    def detail_path(operation: Operation) -> str:
        return f'{base}/{{{viewset.binding.key_for(operation).name}}}'

    if Operation.LIST in selected:
        add(base or '/', Operation.LIST, 'GET')
    if Operation.CREATE in selected:
        add(base or '/', Operation.CREATE, 'POST', status_code=201)
    if Operation.SEARCH in selected:
        add(f'{base}/search', Operation.SEARCH, 'GET')

    for item in viewset.actions.values():
        if not item.detail:
            router.add_api_route(
                f'{base}/{item.path}',
                _action_endpoint(viewset, item),
                methods=list(item.methods),
                name=f'{viewset.name}-{item.name}',
                tags=tags,
            )

    if Operation.RETRIEVE in selected:
        add(detail_path(Operation.RETRIEVE), Operation.RETRIEVE, 'GET')
    if Operation.UPDATE in selected:
        add(detail_path(Operation.UPDATE), Operation.UPDATE, 'PUT')
        add(detail_path(Operation.UPDATE), Operation.UPDATE, 'PATCH')
    if Operation.DESTROY in selected:
        add(detail_path(Operation.DESTROY), Operation.DESTROY, 'DELETE')

    for item in viewset.actions.values():
        if item.detail:
            router.add_api_route(
                f'{detail_path(Operation.RETRIEVE)}/{item.path}',
                _action_endpoint(viewset, item),
                methods=list(item.methods),
                name=f'{viewset.name}-{item.name}',
                tags=tags,
            )

    logger.info(
        'Registered resource routes',
        resource=viewset.name,
        base_path=base or '/',
        operations=sorted(op.value for op in selected),
        actions=sorted(viewset.actions),
    )
    return router


# ========== Error rendering ==========


def handle_viewset_exception(exc: Exception, debug_mode: bool) -> tuple[ErrorResponse, int]:
    """
    Convert an exception to ErrorResponse with HTTP status code.

    Args:
        exc: Exception to handle
        debug_mode: If True, include detailed traceback in response

    Returns:
        Tuple of (ErrorResponse, HTTP status code)
    """
    error_id = exc.__class__.__name__
    details: dict[str, Any] = {'resource_name': getattr(exc, 'resource_name', None)}

    if isinstance(exc, QueryParseError):
        status_code = 400
        details['field_name'] = exc.field_name
        details['position'] = exc.position
    elif isinstance(exc, SchemaValidationError):
        status_code = 422
        details['schema_name'] = exc.schema_name
        details['errors'] = exc.errors
    elif isinstance(exc, NotFoundError):
        status_code = 404
        details['lookup_field'] = exc.lookup_field
        details['lookup_value'] = str(exc.lookup_value)
    elif isinstance(exc, OperationNotAllowedError):
        status_code = 405
        details['operation'] = exc.operation
    elif isinstance(exc, BackendError):
        status_code = 500
        if exc.original_error is not None:
            details['error_type'] = type(exc.original_error).__name__
    elif isinstance(exc, ViewSetError):
        status_code = 500
    else:
        status_code = 500
        details = {'exception_type': error_id}

    if debug_mode:
        details['traceback'] = ''.join(traceback.format_exception(exc))
        details['debug_mode'] = True

    return ErrorResponse(id=error_id, message=str(exc), details=details), status_code


def install_exception_handlers(app: FastAPI, debug_mode: bool | None = None) -> None:
    """
    Render ViewSetError subclasses as ErrorResponse JSON.

    Args:
        app: FastAPI application
        debug_mode: Include tracebacks (defaults to settings.debug_mode)
    """
    if debug_mode is None:
        debug_mode = get_settings().debug_mode

    async def viewset_error_handler(request: Request, exc: ViewSetError) -> JSONResponse:  # noqa: ARG001
        error, status_code = handle_viewset_exception(exc, debug_mode)
        if status_code >= 500:  # noqa: PLR2004
            logger.error('Resource error', error_id=error.id, message=error.message)
        else:
            logger.warning('Request rejected', error_id=error.id, message=error.message)
        return JSONResponse(status_code=status_code, content=error.model_dump(mode='json'))

    app.add_exception_handler(ViewSetError, viewset_error_handler)
