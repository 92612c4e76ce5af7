"""Tests for the filter expression parser."""

import pytest

from namerec.viewset.core.exceptions import InvalidOperatorSyntaxError
from namerec.viewset.core.exceptions import UnknownFilterFieldError
from namerec.viewset.query.constants import FilterOperator
from namerec.viewset.query.constants import LogicalOperator
from namerec.viewset.query.parser import FilterParser
from namerec.viewset.query.parser import parse_query_string
from namerec.viewset.query.types import FilterGroup
from namerec.viewset.query.types import FilterLeaf


@pytest.fixture
def parser() -> FilterParser:
    """Parser over a small allow-list."""
    return FilterParser(['age', 'name', 'email', 'tags'])


def test_parse_query_string_keeps_blanks_and_repeats() -> None:
    """Blank values survive and repeated keys become lists."""
    params = parse_query_string('?email=&age=>18&age=<65&name=a%2Cb')
    assert params == {'email': '', 'age': ['>18', '<65'], 'name': 'a,b'}


def test_no_filters_returns_none(parser: FilterParser) -> None:
    """Reserved keys alone produce no filter."""
    assert parser.parse({'page': '2', 'size': '10', 'sort': '-age', 'q': 'bob'}) is None


def test_leaves_under_top_level_and(parser: FilterParser) -> None:
    """Every key becomes a leaf of one AND."""
    tree = parser.parse({'age': '>=18', 'name': '~a%'})
    assert tree.kind == LogicalOperator.AND
    assert tree.to_dict() == {'$and': [{'age': {'$gte': 18}}, {'name': {'$like': 'a%'}}]}


def test_unknown_field_rejected(parser: FilterParser) -> None:
    """Unknown keys fail the whole request."""
    with pytest.raises(UnknownFilterFieldError) as exc_info:
        parser.parse({'age': '>=18', 'password': 'x'})
    assert exc_info.value.field_name == 'password'


def test_malformed_value_rejects_request(parser: FilterParser) -> None:
    """One bad value means no filter at all."""
    with pytest.raises(InvalidOperatorSyntaxError):
        parser.parse({'name': 'bob', 'age': '>abc'})


def test_duplicate_keys_merge(parser: FilterParser) -> None:
    """Repeated keys are combined with AND."""
    tree = parser.parse(parse_query_string('age=>18&age=<65'))
    (child,) = tree.children
    assert isinstance(child, FilterGroup)
    assert child.kind == LogicalOperator.AND
    assert [leaf.op.operator for leaf in child.iter_leaves()] == [FilterOperator.GT, FilterOperator.LT]


def test_or_group(parser: FilterParser) -> None:
    """or=(...) attaches an OR group."""
    tree = parser.parse({'or': '(age=<18|name=~a%)'})
    (group,) = tree.children
    assert group.to_dict() == {'$or': [{'age': {'$lt': 18}}, {'name': {'$like': 'a%'}}]}


def test_not_group_single_term(parser: FilterParser) -> None:
    """not=(...) with one term negates it directly."""
    tree = parser.parse({'not': '(name=bob)'})
    (group,) = tree.children
    assert group.to_dict() == {'$not': {'name': {'$eq': 'bob'}}}


def test_not_group_several_terms(parser: FilterParser) -> None:
    """not=(...) with several terms negates their conjunction."""
    tree = parser.parse({'not': '(name=bob|age=5)'})
    (group,) = tree.children
    assert group.to_dict() == {'$not': {'$and': [{'name': {'$eq': 'bob'}}, {'age': {'$eq': 5}}]}}


def test_nested_groups(parser: FilterParser) -> None:
    """Groups nest to any depth."""
    tree = parser.parse({'or': '(age=<5|and=(name=~a%|email=!))'})
    (group,) = tree.children
    assert group.to_dict() == {
        '$or': [
            {'age': {'$lt': 5}},
            {'$and': [{'name': {'$like': 'a%'}}, {'email': {'$null': False}}]},
        ],
    }


def test_group_bare_field_is_null_test(parser: FilterParser) -> None:
    """A term without '=' tests for NULL."""
    group = parser.parse_group(LogicalOperator.AND, '(email)')
    assert group.to_dict() == {'$and': [{'email': {'$null': True}}]}


def test_group_values_with_lists_and_escapes(parser: FilterParser) -> None:
    """Commas stay list sigils; %7C and %29 escape group syntax."""
    group = parser.parse_group(LogicalOperator.AND, '(age=1,2,3|name=a%7Cb%29)')
    leaves = list(group.iter_leaves())
    assert leaves[0].op.operator == FilterOperator.IN
    assert leaves[1].op.value.value == 'a|b)'


def test_group_duplicate_keys_merge(parser: FilterParser) -> None:
    """Repeated keys inside a group merge into AND at the first slot."""
    group = parser.parse_group(LogicalOperator.OR, '(age=>1|name=x|age=<9)')
    first, second = group.children
    assert isinstance(first, FilterGroup)
    assert first.kind == LogicalOperator.AND
    assert isinstance(second, FilterLeaf)
    assert second.field == 'name'


def test_groups_follow_leaves(parser: FilterParser) -> None:
    """Leaf filters come first, then and/or/not groups."""
    tree = parser.parse({'or': '(age=1|age=2)', 'name': 'bob'})
    assert isinstance(tree.children[0], FilterLeaf)
    assert tree.children[1].kind == LogicalOperator.OR


def test_repeated_group_key(parser: FilterParser) -> None:
    """Each occurrence of a group key adds a group."""
    tree = parser.parse({'or': ['(age=1|age=2)', '(name=a|name=b)']})
    assert [child.kind for child in tree.children] == [LogicalOperator.OR, LogicalOperator.OR]


@pytest.mark.parametrize(
    ('text', 'message', 'position'),
    [
        ('()', 'Empty group', 1),
        ('(age=1', 'Unclosed group', 6),
        ('age=1)', r'Expected "\("', 0),
        ('(age=1)x', 'Unexpected trailing input', 7),
        ('(=1)', 'Missing field name', 1),
        ('(age=1|)', 'Missing field name', 7),
        ('(and(age=1))', 'Expected "="', 4),
    ],
)
def test_group_syntax_errors(parser: FilterParser, text: str, message: str, position: int) -> None:
    """Malformed groups report where parsing stopped."""
    with pytest.raises(InvalidOperatorSyntaxError, match=message) as exc_info:
        parser.parse_group(LogicalOperator.AND, text)
    assert exc_info.value.position == position
    assert exc_info.value.field_name == 'and'


def test_group_unknown_field(parser: FilterParser) -> None:
    """Unknown fields inside groups are rejected with their position."""
    with pytest.raises(UnknownFilterFieldError) as exc_info:
        parser.parse_group(LogicalOperator.OR, '(age=1|secret=2)')
    assert exc_info.value.field_name == 'secret'
    assert exc_info.value.position == 7
