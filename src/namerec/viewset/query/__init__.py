"""Query-string filter language: values, operators, filters, ordering, pagination."""

from namerec.viewset.query.compiler import compile_filter
from namerec.viewset.query.compiler import compile_operator
from namerec.viewset.query.compiler import compile_ordering
from namerec.viewset.query.constants import FilterOperator
from namerec.viewset.query.constants import LogicalOperator
from namerec.viewset.query.constants import OrderDirection
from namerec.viewset.query.decoder import decode
from namerec.viewset.query.decoder import decode_values
from namerec.viewset.query.decoder import encode_operator
from namerec.viewset.query.ordering import OrderingParser
from namerec.viewset.query.ordering import parse_ordering
from namerec.viewset.query.pagination import PaginationSpec
from namerec.viewset.query.pagination import resolve_pagination
from namerec.viewset.query.parser import FilterParser
from namerec.viewset.query.parser import parse_query_string
from namerec.viewset.query.types import FilterGroup
from namerec.viewset.query.types import FilterLeaf
from namerec.viewset.query.types import FilterNode
from namerec.viewset.query.types import OperatorNode
from namerec.viewset.query.types import OrderItem
from namerec.viewset.query.types import OrderSpec
from namerec.viewset.query.values import ScalarKind
from namerec.viewset.query.values import ScalarValue
from namerec.viewset.query.values import coerce
from namerec.viewset.query.values import coerce_array

__all__ = [
    # Values
    'ScalarKind',
    'ScalarValue',
    'coerce',
    'coerce_array',
    # Operators
    'FilterOperator',
    'LogicalOperator',
    'OrderDirection',
    'OperatorNode',
    'decode',
    'decode_values',
    'encode_operator',
    # Filter tree
    'FilterLeaf',
    'FilterGroup',
    'FilterNode',
    'FilterParser',
    'parse_query_string',
    # Ordering
    'OrderItem',
    'OrderSpec',
    'OrderingParser',
    'parse_ordering',
    # Pagination
    'PaginationSpec',
    'resolve_pagination',
    # SQL
    'compile_filter',
    'compile_operator',
    'compile_ordering',
]
