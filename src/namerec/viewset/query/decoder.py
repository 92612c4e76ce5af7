"""Sigil grammar: one raw query value to one operator node."""

from collections.abc import Sequence

from namerec.viewset.core.exceptions import InvalidOperatorSyntaxError
from namerec.viewset.core.exceptions import NotImplementedCombinationError
from namerec.viewset.query.constants import COMPARISON_PREFIXES
from namerec.viewset.query.constants import CONTAINED_PREFIX
from namerec.viewset.query.constants import CONTAINS_PREFIX
from namerec.viewset.query.constants import LIST_SEPARATOR
from namerec.viewset.query.constants import NEGATE
from namerec.viewset.query.constants import PATTERN_PREFIXES
from namerec.viewset.query.constants import RANGE_SEPARATOR
from namerec.viewset.query.constants import FilterOperator
from namerec.viewset.query.types import FilterLeaf
from namerec.viewset.query.types import FilterNode
from namerec.viewset.query.types import OperatorNode
from namerec.viewset.query.types import and_
from namerec.viewset.query.values import ScalarKind
from namerec.viewset.query.values import ScalarValue
from namerec.viewset.query.values import coerce
from namerec.viewset.query.values import coerce_array
from namerec.viewset.query.values import is_number

_PREFIX_BY_OPERATOR = {
    **{operator: prefix for prefix, operator in COMPARISON_PREFIXES},
    **{operator: prefix for prefix, operator in PATTERN_PREFIXES},
}


def decode(raw: str, field_name: str | None = None) -> OperatorNode:
    """
    Decode a single query value into an operator node.

    Rules are tried in order and the first match wins:
    empty -> IS NULL, '!' -> IS NOT NULL, plain number -> EQ,
    >=, <=, >, < -> comparison, '..' -> range, ',' -> list forms,
    ~ / !~ / ~* / !~* -> pattern match, leading '!' -> NEQ, else EQ.

    Args:
        raw: Raw value as received (already URL-decoded)
        field_name: Query key, for error attribution

    Returns:
        Operator node

    Raises:
        InvalidOperatorSyntaxError: If a sigil is followed by an unusable operand
        TypeMismatchError: If a list mixes value types
    """
    if raw == '':
        return OperatorNode(FilterOperator.NULL, is_null=True)
    if raw == NEGATE:
        return OperatorNode(FilterOperator.NULL, is_null=False)
    if is_number(raw):
        return OperatorNode(FilterOperator.EQ, (coerce(raw),))

    for prefix, operator in COMPARISON_PREFIXES:
        if raw.startswith(prefix):
            return _decode_comparison(operator, raw[len(prefix):], field_name)

    if RANGE_SEPARATOR in raw:
        return _decode_range(raw, field_name)

    if LIST_SEPARATOR in raw:
        return _decode_list(raw, field_name)

    for prefix, operator in PATTERN_PREFIXES:
        if raw.startswith(prefix):
            remainder = raw[len(prefix):]
            return OperatorNode(operator, (ScalarValue(ScalarKind.STRING, remainder, remainder),))

    if raw.startswith(NEGATE):
        return OperatorNode(FilterOperator.NEQ, (coerce(raw[len(NEGATE):]),))

    return OperatorNode(FilterOperator.EQ, (coerce(raw),))


def _decode_comparison(operator: FilterOperator, operand: str, field_name: str | None) -> OperatorNode:
    value = coerce(operand) if operand else None
    if value is None or not value.is_numberish:
        msg = f'{operator.name} on "{field_name}" needs a number or date, got {operand!r}'
        raise InvalidOperatorSyntaxError(msg, field_name)
    return OperatorNode(operator, (value,))


def _decode_range(raw: str, field_name: str | None) -> OperatorNode:
    negated = raw.startswith(NEGATE)
    body = raw[len(NEGATE):] if negated else raw
    parts = body.split(RANGE_SEPARATOR)
    if len(parts) != 2 or not all(parts):  # noqa: PLR2004
        msg = f'Range on "{field_name}" must look like low..high, got {raw!r}'
        raise InvalidOperatorSyntaxError(msg, field_name)

    low, high = coerce(parts[0]), coerce(parts[1])
    if low.kind != high.kind:
        msg = f'Range bounds on "{field_name}" differ in type: {low.kind.value} and {high.kind.value}'
        raise InvalidOperatorSyntaxError(msg, field_name)

    operator = FilterOperator.NOT_BETWEEN if negated else FilterOperator.BETWEEN
    return OperatorNode(operator, (low, high))


def _decode_list(raw: str, field_name: str | None) -> OperatorNode:
    if raw.startswith(CONTAINED_PREFIX):
        operator, body = FilterOperator.CONTAINED, raw[len(CONTAINED_PREFIX):]
    elif raw.startswith(CONTAINS_PREFIX):
        operator, body = FilterOperator.CONTAINS, raw[len(CONTAINS_PREFIX):]
    elif raw.startswith(NEGATE):
        operator, body = FilterOperator.NOT_IN, raw[len(NEGATE):]
    else:
        operator, body = FilterOperator.IN, raw
    values = coerce_array(body.split(LIST_SEPARATOR), field_name)
    return OperatorNode(operator, tuple(values))


def decode_values(field_name: str, raws: Sequence[object]) -> FilterNode:
    """
    Decode every occurrence of a repeated query key.

    A single occurrence yields a leaf; several occurrences are combined
    with AND instead of the later one replacing the earlier.

    Args:
        field_name: Query key
        raws: Raw values in the order they appeared

    Returns:
        Leaf or AND group of leaves on the same field

    Raises:
        NotImplementedCombinationError: If an element is not a plain string
        InvalidOperatorSyntaxError: If no value was supplied
    """
    leaves: list[FilterLeaf] = []
    for raw in raws:
        if not isinstance(raw, str):
            msg = f'Nested value for "{field_name}" cannot be decoded: {type(raw).__name__}'
            raise NotImplementedCombinationError(msg, field_name)
        leaves.append(FilterLeaf(field_name, decode(raw, field_name)))

    if not leaves:
        msg = f'No value given for "{field_name}"'
        raise InvalidOperatorSyntaxError(msg, field_name)
    if len(leaves) == 1:
        return leaves[0]
    return and_(*leaves)


def encode_operator(node: OperatorNode) -> str:
    """
    Render an operator node back into its sigil form.

    Args:
        node: Operator node

    Returns:
        Query value that decodes to an equivalent node
    """
    raws = [value.raw for value in node.values]
    match node.operator:
        case FilterOperator.NULL:
            return '' if node.is_null else NEGATE
        case FilterOperator.EQ:
            return raws[0]
        case FilterOperator.NEQ:
            return f'{NEGATE}{raws[0]}'
        case (
            FilterOperator.GT | FilterOperator.GTE | FilterOperator.LT | FilterOperator.LTE
            | FilterOperator.LIKE | FilterOperator.NOT_LIKE | FilterOperator.ILIKE | FilterOperator.NOT_ILIKE
        ):
            return f'{_PREFIX_BY_OPERATOR[node.operator]}{raws[0]}'
        case FilterOperator.BETWEEN:
            return RANGE_SEPARATOR.join(raws)
        case FilterOperator.NOT_BETWEEN:
            return f'{NEGATE}{RANGE_SEPARATOR.join(raws)}'
        case FilterOperator.IN:
            return LIST_SEPARATOR.join(raws)
        case FilterOperator.NOT_IN:
            return f'{NEGATE}{LIST_SEPARATOR.join(raws)}'
        case FilterOperator.CONTAINS:
            return f'{CONTAINS_PREFIX}{LIST_SEPARATOR.join(raws)}'
        case FilterOperator.CONTAINED:
            return f'{CONTAINED_PREFIX}{LIST_SEPARATOR.join(raws)}'
        case _:
            msg = f'Unknown operator: {node.operator}'
            raise ValueError(msg)
