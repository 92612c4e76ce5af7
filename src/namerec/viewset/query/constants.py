"""Constants for the query-string filter language."""

from enum import Enum


class FilterOperator(str, Enum):
    """Comparison operators; values are the keys of the JSON form."""

    EQ = '$eq'
    NEQ = '$ne'
    GT = '$gt'
    GTE = '$gte'
    LT = '$lt'
    LTE = '$lte'
    IN = '$in'
    NOT_IN = '$nin'
    NULL = '$null'
    LIKE = '$like'
    NOT_LIKE = '$nlike'
    ILIKE = '$ilike'
    NOT_ILIKE = '$nilike'
    BETWEEN = '$between'
    NOT_BETWEEN = '$nbetween'
    CONTAINS = '$contains'
    CONTAINED = '$contained'


class LogicalOperator(str, Enum):
    """Combinators; values double as the query keys that open a group."""

    AND = 'and'
    OR = 'or'
    NOT = 'not'

    @property
    def json_key(self) -> str:
        """Key used in the JSON form ($and, $or, $not)."""
        return f'${self.value}'


class OrderDirection(str, Enum):
    """Sort directions."""

    ASC = 'asc'
    DESC = 'desc'


# Query keys
PAGE_KEY = 'page'
SIZE_KEY = 'size'
SORT_KEY = 'sort'
SEARCH_KEY = 'q'

RESERVED_KEYS = frozenset({
    PAGE_KEY,
    SIZE_KEY,
    SORT_KEY,
    SEARCH_KEY,
    LogicalOperator.AND.value,
    LogicalOperator.OR.value,
    LogicalOperator.NOT.value,
})

# Sigils, longest first where prefixes overlap
NEGATE = '!'
RANGE_SEPARATOR = '..'
LIST_SEPARATOR = ','
COMPARISON_PREFIXES = (
    ('>=', FilterOperator.GTE),
    ('<=', FilterOperator.LTE),
    ('>', FilterOperator.GT),
    ('<', FilterOperator.LT),
)
PATTERN_PREFIXES = (
    ('!~*', FilterOperator.NOT_ILIKE),
    ('~*', FilterOperator.ILIKE),
    ('!~', FilterOperator.NOT_LIKE),
    ('~', FilterOperator.LIKE),
)
CONTAINED_PREFIX = '@>'
CONTAINS_PREFIX = '@'

# Grouped expressions: and=(a=1|b=2)
GROUP_OPEN = '('
GROUP_CLOSE = ')'
GROUP_SEPARATOR = '|'
ASSIGN = '='

# Operator groups for easier checking
LIST_OPERATORS = frozenset({
    FilterOperator.IN,
    FilterOperator.NOT_IN,
    FilterOperator.CONTAINS,
    FilterOperator.CONTAINED,
})
RANGE_OPERATORS = frozenset({FilterOperator.BETWEEN, FilterOperator.NOT_BETWEEN})
