"""Primary-key policy: which column identifies a row for each detail operation."""

from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError
from sqlalchemy import Column
from sqlalchemy import Table

from namerec.viewset.core.exceptions import MissingPrimaryKeyError
from namerec.viewset.core.exceptions import SchemaValidationError
from namerec.viewset.core.types import Operation


@lru_cache
def _adapter(python_type: type) -> TypeAdapter:
    return TypeAdapter(python_type)


@dataclass(frozen=True, slots=True)
class LookupKey:
    """Resolved identifying column for one operation."""

    operation: Operation
    column: Column

    @property
    def name(self) -> str:
        """Column name; also the name of the route path parameter."""
        return self.column.name

    def coerce(self, raw: Any) -> Any:
        """
        Convert a raw path value to the column's Python type.

        Args:
            raw: Value taken from the route path

        Returns:
            Converted value (raw value when the type has no Python equivalent)

        Raises:
            SchemaValidationError: If the value cannot be converted
        """
        try:
            python_type = self.column.type.python_type
        except NotImplementedError:
            return raw

        try:
            return _adapter(python_type).validate_python(raw)
        except ValidationError as e:
            errors = [
                {
                    'field': self.name,
                    'message': err['msg'],
                    'type': err['type'],
                }
                for err in e.errors()
            ]
            raise SchemaValidationError(errors, schema_name='path', resource_name=self.column.table.name) from e


@dataclass(frozen=True, slots=True)
class PrimaryKeyPolicy:
    """
    Per-operation lookup column configuration.

    Unset operations fall back to `lookup_field`, then to the table's
    single-column primary key.
    """

    retrieve: str | None = None
    update: str | None = None
    delete: str | None = None
    lookup_field: str | None = None

    def configured(self, operation: Operation) -> str | None:
        """Column configured for an operation, if any."""
        match operation:
            case Operation.RETRIEVE:
                return self.retrieve or self.lookup_field
            case Operation.UPDATE:
                return self.update or self.lookup_field
            case Operation.DESTROY:
                return self.delete or self.lookup_field
            case _:
                return None


def detect_primary_key(table: Table) -> Column | None:
    """
    Find the single primary-key column of a table.

    Args:
        table: SQLAlchemy table

    Returns:
        Primary-key column, or None for composite or missing keys
    """
    pk_columns = list(table.primary_key.columns)
    if len(pk_columns) == 1:
        return pk_columns[0]
    return None


def resolve_keys(table: Table, policy: PrimaryKeyPolicy | None = None) -> dict[Operation, LookupKey]:
    """
    Resolve the lookup column for retrieve, update and destroy.

    Args:
        table: SQLAlchemy table
        policy: Explicit configuration (None to detect everything)

    Returns:
        Mapping of operation to lookup key

    Raises:
        MissingPrimaryKeyError: If a configured column does not exist, or an
            unconfigured operation has no single-column primary key to fall back on
    """
    policy = policy or PrimaryKeyPolicy()
    detected = detect_primary_key(table)

    keys: dict[Operation, LookupKey] = {}
    missing: list[str] = []

    for operation in (Operation.RETRIEVE, Operation.UPDATE, Operation.DESTROY):
        column_name = policy.configured(operation)
        if column_name is not None:
            if column_name not in table.columns:
                msg = f'Lookup column "{column_name}" for {operation.value} does not exist on "{table.name}"'
                raise MissingPrimaryKeyError(table.name, [operation.value], msg)
            keys[operation] = LookupKey(operation, table.columns[column_name])
        elif detected is not None:
            keys[operation] = LookupKey(operation, detected)
        else:
            missing.append(operation.value)

    if missing:
        raise MissingPrimaryKeyError(table.name, missing)
    return keys
