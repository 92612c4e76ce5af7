"""Predicate, ordering and pagination value objects."""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date
from typing import Any
from typing import TypeAlias

from namerec.viewset.query.constants import LIST_OPERATORS
from namerec.viewset.query.constants import RANGE_OPERATORS
from namerec.viewset.query.constants import FilterOperator
from namerec.viewset.query.constants import LogicalOperator
from namerec.viewset.query.constants import OrderDirection
from namerec.viewset.query.values import ScalarValue


def _to_json(value: ScalarValue) -> Any:
    if isinstance(value.value, date):
        return value.value.isoformat()
    return value.value


@dataclass(frozen=True, slots=True)
class OperatorNode:
    """
    One comparison applied to a field.

    Arity by operator:
    - NULL: no values, `is_null` set
    - IN, NOT_IN, CONTAINS, CONTAINED: one or more values
    - BETWEEN, NOT_BETWEEN: exactly two values (low, high)
    - everything else: exactly one value
    """

    operator: FilterOperator
    values: tuple[ScalarValue, ...] = ()
    is_null: bool | None = None

    def __post_init__(self) -> None:
        """Validate arity against the operator."""
        count = len(self.values)
        if self.operator == FilterOperator.NULL:
            if count or self.is_null is None:
                msg = 'NULL operator takes no values and requires is_null'
                raise ValueError(msg)
        elif self.operator in LIST_OPERATORS:
            if count < 1:
                msg = f'{self.operator.name} requires at least one value'
                raise ValueError(msg)
        elif self.operator in RANGE_OPERATORS:
            if count != 2:  # noqa: PLR2004
                msg = f'{self.operator.name} requires exactly two values'
                raise ValueError(msg)
        elif count != 1:
            msg = f'{self.operator.name} requires exactly one value'
            raise ValueError(msg)

    @property
    def value(self) -> ScalarValue:
        """Single operand of a unary operator."""
        return self.values[0]

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to the JSON form, e.g. {'$gte': 5}.

        Returns:
            Single-key dictionary
        """
        if self.operator == FilterOperator.NULL:
            payload: Any = self.is_null
        elif self.operator in LIST_OPERATORS or self.operator in RANGE_OPERATORS:
            payload = [_to_json(v) for v in self.values]
        else:
            payload = _to_json(self.value)
        return {self.operator.value: payload}


@dataclass(frozen=True, slots=True)
class FilterLeaf:
    """Field-to-operator predicate."""

    field: str
    op: OperatorNode

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON form, e.g. {'age': {'$gte': 5}}."""
        return {self.field: self.op.to_dict()}

    def iter_leaves(self) -> Iterator['FilterLeaf']:
        """Yield this leaf."""
        yield self


@dataclass(frozen=True, slots=True)
class FilterGroup:
    """Logical combinator over child nodes."""

    kind: LogicalOperator
    children: tuple['FilterNode', ...]

    def __post_init__(self) -> None:
        """Validate child count for the combinator."""
        if self.kind == LogicalOperator.NOT and len(self.children) != 1:
            msg = 'NOT takes exactly one child'
            raise ValueError(msg)
        if not self.children:
            msg = f'{self.kind.name} requires at least one child'
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON form, e.g. {'$or': [...]}."""
        if self.kind == LogicalOperator.NOT:
            return {self.kind.json_key: self.children[0].to_dict()}
        return {self.kind.json_key: [child.to_dict() for child in self.children]}

    def iter_leaves(self) -> Iterator[FilterLeaf]:
        """Yield every leaf below this group, depth first."""
        for child in self.children:
            yield from child.iter_leaves()


FilterNode: TypeAlias = FilterLeaf | FilterGroup


def and_(*children: FilterNode) -> FilterGroup:
    """Build an AND group."""
    return FilterGroup(LogicalOperator.AND, tuple(children))


def or_(*children: FilterNode) -> FilterGroup:
    """Build an OR group."""
    return FilterGroup(LogicalOperator.OR, tuple(children))


def not_(child: FilterNode) -> FilterGroup:
    """Build a NOT group."""
    return FilterGroup(LogicalOperator.NOT, (child,))


@dataclass(frozen=True, slots=True)
class OrderItem:
    """One sort key."""

    field: str
    direction: OrderDirection = OrderDirection.ASC

    def to_token(self) -> str:
        """Render back to the sort syntax ('-name' or 'name')."""
        prefix = '-' if self.direction == OrderDirection.DESC else ''
        return f'{prefix}{self.field}'


OrderSpec: TypeAlias = tuple[OrderItem, ...]
