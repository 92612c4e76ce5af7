"""Data access over an async SQLAlchemy engine."""

from collections.abc import Sequence
from typing import Any

import structlog
from sqlalchemy import ColumnElement
from sqlalchemy import Select
from sqlalchemy import Table
from sqlalchemy import delete
from sqlalchemy import func
from sqlalchemy import insert
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from namerec.viewset.core.exceptions import BackendError

logger = structlog.get_logger(__name__)

TOTAL_COUNT_LABEL = '__total_count__'


class SQLAlchemyGateway:
    """
    Executes statements for one table.

    Every method is a single round trip. Failures are wrapped into
    BackendError and never retried.
    """

    def __init__(self, engine: AsyncEngine, table: Table) -> None:
        """
        Initialize gateway.

        Args:
            engine: Async engine
            table: Table the statements target
        """
        self.engine = engine
        self.table = table

    def _wrap(self, action: str, error: SQLAlchemyError) -> BackendError:
        logger.exception('Backend call failed', table=self.table.name, action=action)
        return BackendError(f'{action} on "{self.table.name}" failed: {error}', self.table.name, error)

    async def fetch_all(self, query: Select) -> list[dict[str, Any]]:
        """
        Execute a SELECT and return every row.

        Args:
            query: SELECT statement

        Returns:
            Rows as dictionaries
        """
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(query)
                return [dict(row) for row in result.mappings().all()]
        except SQLAlchemyError as e:
            raise self._wrap('select', e) from e

    async def fetch_page(self, query: Select) -> tuple[list[dict[str, Any]], int]:
        """
        Execute a SELECT with a window count over the unpaged result.

        The count rides on every row, so an empty page reports zero.

        Args:
            query: SELECT statement with limit/offset applied

        Returns:
            Tuple of (rows without the count column, total count)
        """
        counted = query.add_columns(func.count().over().label(TOTAL_COUNT_LABEL))
        rows = await self.fetch_all(counted)
        count = rows[0][TOTAL_COUNT_LABEL] if rows else 0
        for row in rows:
            del row[TOTAL_COUNT_LABEL]
        return rows, count

    async def fetch_one(self, query: Select) -> dict[str, Any] | None:
        """
        Execute a SELECT and return the first row.

        Args:
            query: SELECT statement

        Returns:
            Row as dictionary, or None when nothing matched
        """
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(query)
                row = result.mappings().first()
                return dict(row) if row is not None else None
        except SQLAlchemyError as e:
            raise self._wrap('select', e) from e

    async def insert(self, values: dict[str, Any], returning: Sequence[ColumnElement]) -> dict[str, Any]:
        """
        Insert one row.

        Args:
            values: Column values
            returning: Columns to return

        Returns:
            Inserted row
        """
        stmt = insert(self.table).values(**values).returning(*returning)
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(stmt)
                return dict(result.mappings().one())
        except SQLAlchemyError as e:
            raise self._wrap('insert', e) from e

    async def update(
        self,
        where: ColumnElement[bool],
        values: dict[str, Any],
        returning: Sequence[ColumnElement],
    ) -> dict[str, Any] | None:
        """
        Update rows matching a condition.

        Args:
            where: Row condition
            values: Column values to set
            returning: Columns to return

        Returns:
            First updated row, or None when nothing matched
        """
        stmt = update(self.table).where(where).returning(*returning)
        if values:
            stmt = stmt.values(**values)
        else:
            # Empty body: touch nothing but still report whether the row exists
            key_column = next(iter(self.table.primary_key.columns), None) or next(iter(self.table.columns))
            stmt = stmt.values({key_column.name: key_column})
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(stmt)
                row = result.mappings().first()
                return dict(row) if row is not None else None
        except SQLAlchemyError as e:
            raise self._wrap('update', e) from e

    async def delete(self, where: ColumnElement[bool], returning: Sequence[ColumnElement]) -> dict[str, Any] | None:
        """
        Delete rows matching a condition.

        Args:
            where: Row condition
            returning: Columns to return

        Returns:
            First deleted row, or None when nothing matched
        """
        stmt = delete(self.table).where(where).returning(*returning)
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(stmt)
                row = result.mappings().first()
                return dict(row) if row is not None else None
        except SQLAlchemyError as e:
            raise self._wrap('delete', e) from e
