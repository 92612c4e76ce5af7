"""ViewSet exception hierarchy."""

from typing import Any


class ViewSetError(Exception):
    """Base exception for resource view errors."""

    def __init__(self, message: str, resource_name: str | None = None) -> None:
        """
        Initialize ViewSet exception.

        Args:
            message: Error message
            resource_name: Optional resource name context
        """
        self.resource_name = resource_name
        super().__init__(message)


class QueryParseError(ViewSetError, ValueError):
    """Query string could not be turned into a filter, ordering or page."""

    def __init__(
        self,
        message: str,
        field_name: str | None = None,
        position: int | None = None,
        resource_name: str | None = None,
    ) -> None:
        """
        Initialize query parse error.

        Args:
            message: Error message
            field_name: Query key the error is attributed to
            position: Character offset inside a grouped expression
            resource_name: Optional resource name
        """
        self.field_name = field_name
        self.position = position
        if position is not None:
            message = f'{message} (at position {position})'
        super().__init__(message, resource_name)


class UnknownFilterFieldError(QueryParseError):
    """Query references a field that is not on the filter allow-list."""

    def __init__(self, field_name: str, position: int | None = None) -> None:
        super().__init__(f'Unknown filter field: {field_name}', field_name, position)


class InvalidOperatorSyntaxError(QueryParseError):
    """Sigil grammar violated (bad range, non-numeric comparison, ...)."""


class TypeMismatchError(QueryParseError):
    """Array operands disagree on their coerced type."""


class NotImplementedCombinationError(QueryParseError):
    """Repeated query value cannot be decoded into a single predicate."""


class InvalidOrderSpecError(QueryParseError):
    """Sort token is malformed or names a field outside the allow-list."""


class SchemaValidationError(ViewSetError):
    """Request body or stored row failed schema validation."""

    def __init__(
        self,
        errors: list[dict[str, Any]],
        schema_name: str | None = None,
        resource_name: str | None = None,
    ) -> None:
        """
        Initialize schema validation error.

        Args:
            errors: One entry per offending field ({'field', 'message', 'type'})
            schema_name: Name of the schema that rejected the data
            resource_name: Optional resource name
        """
        self.errors = errors
        self.schema_name = schema_name
        fields = ', '.join(str(err.get('field')) for err in errors) or '<root>'
        msg = f'Validation failed for {schema_name or "schema"}: {fields}'
        super().__init__(msg, resource_name)


class NotFoundError(ViewSetError):
    """Keyed lookup matched zero rows."""

    def __init__(
        self,
        resource_name: str,
        lookup_field: str,
        lookup_value: Any,
        message: str | None = None,
    ) -> None:
        """
        Initialize not found error.

        Args:
            resource_name: Resource name
            lookup_field: Key column used for the lookup
            lookup_value: Value that matched nothing
            message: Optional custom message
        """
        self.lookup_field = lookup_field
        self.lookup_value = lookup_value
        msg = message or f'{resource_name} with {lookup_field}={lookup_value!r} not found'
        super().__init__(msg, resource_name)


class MissingPrimaryKeyError(ViewSetError):
    """No identifying column could be resolved at registration time."""

    def __init__(self, resource_name: str, operations: list[str], message: str | None = None) -> None:
        """
        Initialize missing primary key error.

        Args:
            resource_name: Resource (table) name
            operations: Operations left without a key column
            message: Optional custom message
        """
        self.operations = operations
        msg = message or (
            f'Cannot resolve a lookup column for {", ".join(operations)} on "{resource_name}": '
            'table has no single-column primary key and no lookup field was configured'
        )
        super().__init__(msg, resource_name)


class OperationNotAllowedError(ViewSetError):
    """Operation is not exposed by the resource."""

    def __init__(self, resource_name: str, operation: str) -> None:
        self.operation = operation
        super().__init__(f'Operation {operation} is not exposed by {resource_name}', resource_name)


class BackendError(ViewSetError):
    """Data-access collaborator failed; never retried here."""

    def __init__(
        self,
        message: str,
        resource_name: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """
        Initialize backend error.

        Args:
            message: Error message
            resource_name: Optional resource name
            original_error: Exception raised by the driver or SQLAlchemy
        """
        self.original_error = original_error
        super().__init__(message, resource_name)
