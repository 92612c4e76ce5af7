"""Pydantic schemas generated from table columns, and validation helpers."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import ValidationError
from pydantic import create_model
from sqlalchemy import Column
from sqlalchemy import Integer
from sqlalchemy import Table

from namerec.viewset.core.exceptions import SchemaValidationError


def _model_name(table: Table, suffix: str) -> str:
    return ''.join(part.capitalize() for part in table.name.split('_')) + suffix


def _python_type(column: Column) -> Any:
    try:
        return column.type.python_type
    except NotImplementedError:
        return Any


def _is_generated(column: Column) -> bool:
    """Column gets a value from the database when omitted on insert."""
    if column.default is not None or column.server_default is not None:
        return True
    if not column.primary_key or column.autoincrement is False:
        return False
    return isinstance(column.type, Integer)


def select_model(table: Table) -> type[BaseModel]:
    """
    Build the read schema: every column, nullable columns optional.

    Args:
        table: SQLAlchemy table

    Returns:
        Pydantic model class
    """
    fields: dict[str, Any] = {}
    for column in table.columns:
        python_type = _python_type(column)
        if column.nullable:
            fields[column.name] = (python_type | None, None)
        else:
            fields[column.name] = (python_type, ...)

    return create_model(
        _model_name(table, 'Select'),
        __config__=ConfigDict(from_attributes=True, extra='ignore'),
        **fields,
    )


def insert_model(table: Table) -> type[BaseModel]:
    """
    Build the create schema.

    Nullable columns, columns with a default and autoincrement integer
    primary keys are optional; everything else is required.

    Args:
        table: SQLAlchemy table

    Returns:
        Pydantic model class
    """
    fields: dict[str, Any] = {}
    for column in table.columns:
        python_type = _python_type(column)
        if column.nullable or _is_generated(column):
            fields[column.name] = (python_type | None, None)
        else:
            fields[column.name] = (python_type, ...)

    return create_model(
        _model_name(table, 'Insert'),
        __config__=ConfigDict(extra='forbid'),
        **fields,
    )


def update_model(table: Table) -> type[BaseModel]:
    """
    Build the partial update schema: every column optional.

    Args:
        table: SQLAlchemy table

    Returns:
        Pydantic model class
    """
    fields: dict[str, Any] = {}
    for column in table.columns:
        python_type = _python_type(column)
        fields[column.name] = (python_type | None if column.nullable else python_type, None)

    return create_model(
        _model_name(table, 'Update'),
        __config__=ConfigDict(extra='forbid'),
        **fields,
    )


def validate(schema: type[BaseModel], data: Any, partial: bool = False) -> dict[str, Any]:
    """
    Validate data against a schema.

    Args:
        schema: Pydantic model class
        data: Mapping (or row) to validate
        partial: Keep only the fields present in data, so omitted columns
            are left to their stored value or database default

    Returns:
        Validated and coerced dictionary

    Raises:
        SchemaValidationError: If validation fails
    """
    if isinstance(data, Mapping):
        data = dict(data)
    elif data is None:
        data = {}

    try:
        instance = schema.model_validate(data)
    except ValidationError as e:
        errors = [
            {
                'field': '.'.join(str(loc) for loc in err['loc']),
                'message': err['msg'],
                'type': err['type'],
            }
            for err in e.errors()
        ]
        raise SchemaValidationError(errors, schema_name=schema.__name__) from e

    return instance.model_dump(exclude_unset=partial)


def schema_fields(schema: type[BaseModel]) -> list[str]:
    """
    Field names declared by a schema, in declaration order.

    Args:
        schema: Pydantic model class

    Returns:
        List of field names
    """
    return list(schema.model_fields)


@dataclass(frozen=True)
class SchemaSet:
    """Schema per operation: list, create, retrieve and update."""

    list: type[BaseModel]
    create: type[BaseModel]
    retrieve: type[BaseModel]
    update: type[BaseModel]

    @classmethod
    def from_table(
        cls,
        table: Table,
        default: type[BaseModel] | None = None,
        list: type[BaseModel] | None = None,  # noqa: A002
        create: type[BaseModel] | None = None,
        retrieve: type[BaseModel] | None = None,
        update: type[BaseModel] | None = None,
    ) -> 'SchemaSet':
        """
        Fill unspecified schemas from the table.

        list and retrieve fall back to `default`, then to the generated
        select schema; create and update fall back to generated ones.

        Args:
            table: SQLAlchemy table
            default: Read schema shared by list and retrieve
            list: List schema
            create: Create schema
            retrieve: Retrieve schema
            update: Update schema

        Returns:
            Complete schema set
        """
        read_default = default or select_model(table)
        return cls(
            list=list or read_default,
            create=create or insert_model(table),
            retrieve=retrieve or read_default,
            update=update or update_model(table),
        )
