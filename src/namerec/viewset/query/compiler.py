"""Compilation of filter trees and orderings into SQLAlchemy expressions."""

from sqlalchemy import Column
from sqlalchemy import ColumnElement
from sqlalchemy import Table
from sqlalchemy import and_
from sqlalchemy import not_
from sqlalchemy import or_
from sqlalchemy.dialects.postgresql import array

from namerec.viewset.core.exceptions import InvalidOrderSpecError
from namerec.viewset.core.exceptions import UnknownFilterFieldError
from namerec.viewset.query.constants import SORT_KEY
from namerec.viewset.query.constants import FilterOperator
from namerec.viewset.query.constants import LogicalOperator
from namerec.viewset.query.constants import OrderDirection
from namerec.viewset.query.types import FilterGroup
from namerec.viewset.query.types import FilterLeaf
from namerec.viewset.query.types import FilterNode
from namerec.viewset.query.types import OperatorNode
from namerec.viewset.query.types import OrderSpec
from namerec.viewset.query.values import ScalarKind


def _column(table: Table, field_name: str) -> Column:
    try:
        return table.columns[field_name]
    except KeyError:
        raise UnknownFilterFieldError(field_name) from None


def _binds_text(column: ColumnElement) -> bool:
    column_type = getattr(column.type, 'item_type', column.type)  # ARRAY element type
    try:
        return column_type.python_type is str
    except NotImplementedError:
        return False


def compile_operator(column: ColumnElement, node: OperatorNode) -> ColumnElement[bool]:
    """
    Apply one operator node to a column.

    Args:
        column: Column (or any column expression)
        node: Operator node

    Returns:
        Boolean SQLAlchemy expression
    """
    # Text columns compare against the token as written, so 007 stays 007
    text = _binds_text(column)
    values = [value.raw if text else value.value for value in node.values]

    match node.operator:
        case FilterOperator.NULL:
            return column.is_(None) if node.is_null else column.is_not(None)
        case FilterOperator.EQ:
            if node.value.kind == ScalarKind.NULL:
                return column.is_(None)
            return column == values[0]
        case FilterOperator.NEQ:
            if node.value.kind == ScalarKind.NULL:
                return column.is_not(None)
            return column != values[0]
        case FilterOperator.GT:
            return column > values[0]
        case FilterOperator.GTE:
            return column >= values[0]
        case FilterOperator.LT:
            return column < values[0]
        case FilterOperator.LTE:
            return column <= values[0]
        case FilterOperator.IN:
            return column.in_(values)
        case FilterOperator.NOT_IN:
            return column.not_in(values)
        case FilterOperator.LIKE:
            return column.like(values[0])
        case FilterOperator.NOT_LIKE:
            return column.not_like(values[0])
        case FilterOperator.ILIKE:
            return column.ilike(values[0])
        case FilterOperator.NOT_ILIKE:
            return column.not_ilike(values[0])
        case FilterOperator.BETWEEN:
            return column.between(values[0], values[1])
        case FilterOperator.NOT_BETWEEN:
            return not_(column.between(values[0], values[1]))
        case FilterOperator.CONTAINS:
            # PostgreSQL array operators
            return column.op('@>')(array(values))
        case FilterOperator.CONTAINED:
            return column.op('<@')(array(values))
        case _:
            msg = f'Unknown operator: {node.operator}'
            raise ValueError(msg)


def compile_filter(node: FilterNode, table: Table) -> ColumnElement[bool]:
    """
    Compile a filter tree into a WHERE clause.

    Args:
        node: Filter tree
        table: Table the field names refer to

    Returns:
        Boolean SQLAlchemy expression

    Raises:
        UnknownFilterFieldError: If a leaf names a column the table lacks
    """
    match node:
        case FilterLeaf(field=field_name, op=op):
            return compile_operator(_column(table, field_name), op)
        case FilterGroup(kind=LogicalOperator.AND, children=children):
            return and_(*[compile_filter(child, table) for child in children])
        case FilterGroup(kind=LogicalOperator.OR, children=children):
            return or_(*[compile_filter(child, table) for child in children])
        case FilterGroup(kind=LogicalOperator.NOT, children=(child,)):
            return not_(compile_filter(child, table))
        case _:
            msg = f'Cannot compile filter node: {node!r}'
            raise TypeError(msg)


def compile_ordering(ordering: OrderSpec, table: Table) -> list[ColumnElement]:
    """
    Compile order items into ORDER BY expressions.

    Args:
        ordering: Order items
        table: Table the field names refer to

    Returns:
        List of SQLAlchemy order expressions

    Raises:
        InvalidOrderSpecError: If an item names a column the table lacks
    """
    result: list[ColumnElement] = []
    for item in ordering:
        if item.field not in table.columns:
            msg = f'Cannot sort by: {item.field}'
            raise InvalidOrderSpecError(msg, SORT_KEY)
        column = table.columns[item.field]

        match item.direction:
            case OrderDirection.ASC:
                result.append(column.asc())
            case OrderDirection.DESC:
                result.append(column.desc())
            case _:
                msg = f'Invalid ORDER BY direction: {item.direction}'
                raise InvalidOrderSpecError(msg, SORT_KEY)
    return result
