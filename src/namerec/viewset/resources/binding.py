"""Resource binding: a table plus everything fixed at registration time."""

from collections.abc import Collection
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from types import MappingProxyType

from pydantic import BaseModel
from sqlalchemy import Table

from namerec.viewset.core.config import ViewSetSettings
from namerec.viewset.core.config import get_settings
from namerec.viewset.core.exceptions import ViewSetError
from namerec.viewset.core.types import Operation
from namerec.viewset.core.types import PaginationMode
from namerec.viewset.query.ordering import OrderingParser
from namerec.viewset.query.parser import FilterParser
from namerec.viewset.query.types import OrderSpec
from namerec.viewset.resources.keys import LookupKey
from namerec.viewset.resources.keys import PrimaryKeyPolicy
from namerec.viewset.resources.keys import resolve_keys
from namerec.viewset.resources.schemas import SchemaSet


def _check_fields(table: Table, fields: Collection[str], kind: str, name: str) -> tuple[str, ...]:
    unknown = [f for f in fields if f not in table.columns]
    if unknown:
        msg = f'Unknown {kind} field(s) on "{table.name}": {", ".join(unknown)}'
        raise ViewSetError(msg, name)
    return tuple(fields)


@dataclass(frozen=True)
class ResourceBinding:
    """
    Immutable per-resource configuration.

    Shared read-only by every request to the resource. Parsers are
    compiled once here rather than per request.
    """

    name: str
    table: Table
    keys: Mapping[Operation, LookupKey]
    schemas: SchemaSet
    filterable_fields: tuple[str, ...] = ()
    orderable_fields: tuple[str, ...] = ()
    searchable_fields: tuple[str, ...] = ()
    default_ordering: OrderSpec | None = None
    page_size: int = 20
    max_page_size: int = 1000
    pagination: PaginationMode = PaginationMode.AUTO
    filter_parser: FilterParser = field(repr=False, compare=False, default=None)  # type: ignore[assignment]
    ordering_parser: OrderingParser = field(repr=False, compare=False, default=None)  # type: ignore[assignment]

    @classmethod
    def create(
        cls,
        table: Table,
        *,
        name: str | None = None,
        primary_key: PrimaryKeyPolicy | str | None = None,
        default_schema: type[BaseModel] | None = None,
        list_schema: type[BaseModel] | None = None,
        create_schema: type[BaseModel] | None = None,
        retrieve_schema: type[BaseModel] | None = None,
        update_schema: type[BaseModel] | None = None,
        filterable_fields: Collection[str] | None = None,
        orderable_fields: Collection[str] | None = None,
        searchable_fields: Collection[str] | None = None,
        default_ordering: str | None = None,
        page_size: int | None = None,
        pagination: PaginationMode | str | None = None,
        settings: ViewSetSettings | None = None,
    ) -> 'ResourceBinding':
        """
        Build and validate a binding.

        Args:
            table: SQLAlchemy table
            name: Resource name (defaults to the table name)
            primary_key: Lookup policy, or a column name used for every detail operation
            default_schema: Read schema shared by list and retrieve
            list_schema: List schema
            create_schema: Create schema
            retrieve_schema: Retrieve schema
            update_schema: Update schema
            filterable_fields: Fields allowed in filters (none: filtering is off)
            orderable_fields: Fields allowed in sort (none: every column)
            searchable_fields: Fields matched by free-text search
            default_ordering: Sort applied when a request sends none, e.g. '-created_at'
            page_size: Page size (defaults to settings)
            pagination: Pagination mode (defaults to settings)
            settings: Settings instance (defaults to the process-wide one)

        Returns:
            Binding ready to serve requests

        Raises:
            MissingPrimaryKeyError: If retrieve, update or destroy has no lookup column
            ViewSetError: If a configured field is not a column of the table
            InvalidOrderSpecError: If the default ordering is malformed
        """
        settings = settings or get_settings()
        name = name or table.name

        if isinstance(primary_key, str):
            primary_key = PrimaryKeyPolicy(lookup_field=primary_key)

        columns = [column.name for column in table.columns]
        filterable = _check_fields(table, filterable_fields or (), 'filterable', name)
        orderable = _check_fields(table, columns if orderable_fields is None else orderable_fields, 'orderable', name)
        searchable = _check_fields(table, searchable_fields or (), 'searchable', name)

        return cls(
            name=name,
            table=table,
            keys=MappingProxyType(resolve_keys(table, primary_key)),
            schemas=SchemaSet.from_table(
                table,
                default=default_schema,
                list=list_schema,
                create=create_schema,
                retrieve=retrieve_schema,
                update=update_schema,
            ),
            filterable_fields=filterable,
            orderable_fields=orderable,
            searchable_fields=searchable,
            # Default ordering may name any column, not just orderable ones
            default_ordering=OrderingParser(columns).parse(default_ordering),
            page_size=page_size or settings.page_size,
            max_page_size=settings.max_page_size,
            pagination=PaginationMode(pagination) if pagination else settings.pagination,
            filter_parser=FilterParser(filterable),
            ordering_parser=OrderingParser(orderable),
        )

    def key_for(self, operation: Operation) -> LookupKey:
        """
        Lookup key of a detail operation.

        Args:
            operation: retrieve, update or destroy

        Returns:
            Resolved lookup key
        """
        return self.keys[operation]

    @property
    def detail_key(self) -> LookupKey:
        """Lookup key used in detail routes and detail actions."""
        return self.keys[Operation.RETRIEVE]
