#!/usr/bin/env python3
"""Console script showing how a list query string is interpreted."""

import json
from typing import Annotated

import sqlparse
import typer
from sqlalchemy import Column
from sqlalchemy import MetaData
from sqlalchemy import Table
from sqlalchemy.dialects import postgresql
from sqlalchemy.dialects import sqlite

from namerec.viewset.core.exceptions import QueryParseError
from namerec.viewset.core.types import PaginationMode
from namerec.viewset.core.types import RequestContext
from namerec.viewset.query.constants import PAGE_KEY
from namerec.viewset.query.constants import SIZE_KEY
from namerec.viewset.query.constants import SORT_KEY
from namerec.viewset.query.ordering import OrderingParser
from namerec.viewset.query.pagination import resolve_pagination
from namerec.viewset.query.parser import FilterParser
from namerec.viewset.query.parser import parse_query_string
from namerec.viewset.resources.plan import QueryPlan

app = typer.Typer(help='Explain how a list query string becomes a filter, ordering and page.')

DIALECTS = {
    'postgresql': postgresql.dialect,
    'sqlite': sqlite.dialect,
}


@app.command()
def explain(
    query: Annotated[str, typer.Argument(help='Query string, e.g. "age=>=18&sort=-name&page=1"')],
    fields: Annotated[
        list[str],
        typer.Option('--field', '-f', help='Filterable field (repeatable)'),
    ],
    sort_fields: Annotated[
        list[str] | None,
        typer.Option('--sort-field', '-s', help='Orderable field (repeatable, defaults to every --field)'),
    ] = None,
    table_name: Annotated[str, typer.Option('--table', '-t', help='Table name used in SQL output')] = 'resource',
    page_size: Annotated[int, typer.Option('--page-size', help='Configured page size')] = 20,
    pagination: Annotated[
        PaginationMode,
        typer.Option('--pagination', help='Pagination mode'),
    ] = PaginationMode.AUTO,
    show_sql: Annotated[bool, typer.Option('--sql/--no-sql', help='Also print the compiled SELECT')] = False,
    dialect: Annotated[str, typer.Option('--dialect', '-d', help='SQL dialect (postgresql, sqlite)')] = 'postgresql',
) -> None:
    """
    Parse a query string the way a list request would and print the plan.

    Examples:

        # Filter tree, ordering and pagination as JSON
        uv run viewset-explain 'age=>=18&sort=-name&page=1' -f age -f name

        # Grouped filter compiled for PostgreSQL
        uv run viewset-explain 'or=(age=<18|name=~a%)' -f age -f name --sql
    """
    if dialect not in DIALECTS:
        typer.echo(f'Error: Unknown dialect "{dialect}". Use one of: {", ".join(DIALECTS)}.', err=True)
        raise typer.Exit(1)

    orderable = sort_fields or fields
    # Untyped columns: bound values take their type from the literal
    table = Table(table_name, MetaData(), *[Column(name) for name in dict.fromkeys([*fields, *orderable])])
    params = parse_query_string(query)
    request = RequestContext(query_params=params)

    try:
        plan = QueryPlan(
            table=table,
            columns=tuple(table.columns),
            where=FilterParser(fields).parse(params),
            ordering=OrderingParser(orderable).parse(request.single(SORT_KEY)),
            pagination=resolve_pagination(
                request.single(PAGE_KEY),
                pagination,
                page_size,
                query_size=request.single(SIZE_KEY),
            ),
        )
    except QueryParseError as e:
        typer.echo(f'Error: {e!s}', err=True)
        if e.field_name:
            typer.echo(f'  field: {e.field_name}', err=True)
        raise typer.Exit(1) from None

    description = plan.describe()
    typer.echo(json.dumps(
        {
            'filter': description['filter'],
            'sort': description['sort'],
            'pagination': {
                'enabled': plan.paginated,
                'page': plan.pagination.page,
                'size': plan.pagination.page_size,
                'limit': description['limit'],
                'offset': description['offset'],
            },
        },
        indent=2,
    ))

    if show_sql:
        compiled = plan.to_select().compile(
            dialect=DIALECTS[dialect](),
            compile_kwargs={'literal_binds': True},
        )
        typer.echo(sqlparse.format(str(compiled), reindent=True, keyword_case='upper'))


def main() -> None:
    """Entry point for the script."""
    app()


if __name__ == '__main__':
    main()
