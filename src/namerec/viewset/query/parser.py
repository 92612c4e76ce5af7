"""Filter expression parser: query parameters to a filter tree."""

from collections.abc import Collection
from urllib.parse import parse_qsl
from urllib.parse import unquote

from namerec.viewset.core.exceptions import InvalidOperatorSyntaxError
from namerec.viewset.core.exceptions import UnknownFilterFieldError
from namerec.viewset.core.types import QueryParams
from namerec.viewset.query.constants import ASSIGN
from namerec.viewset.query.constants import GROUP_CLOSE
from namerec.viewset.query.constants import GROUP_OPEN
from namerec.viewset.query.constants import GROUP_SEPARATOR
from namerec.viewset.query.constants import RESERVED_KEYS
from namerec.viewset.query.constants import LogicalOperator
from namerec.viewset.query.decoder import decode_values
from namerec.viewset.query.types import FilterGroup
from namerec.viewset.query.types import FilterNode
from namerec.viewset.query.types import and_
from namerec.viewset.query.types import not_

_LOGICAL_KEYS = {op.value: op for op in LogicalOperator}


def parse_query_string(query_string: str) -> dict[str, str | list[str]]:
    """
    Split a raw query string into parameters.

    Blank values are kept (`?deleted_at=` is a null test) and repeated keys
    collapse into a list in order of appearance.

    Args:
        query_string: Query string without the leading '?'

    Returns:
        Mapping of key to a string, or to a list for repeated keys
    """
    params: dict[str, str | list[str]] = {}
    for key, value in parse_qsl(query_string.lstrip('?'), keep_blank_values=True):
        if key not in params:
            params[key] = value
        elif isinstance(existing := params[key], list):
            existing.append(value)
        else:
            params[key] = [existing, value]
    return params


def _combine(kind: LogicalOperator, children: list[FilterNode]) -> FilterGroup:
    if kind == LogicalOperator.NOT:
        return not_(children[0] if len(children) == 1 else and_(*children))
    return FilterGroup(kind, tuple(children))


class _GroupReader:
    """
    Recursive-descent reader for grouped expressions.

    Grammar:
        group := '(' term ('|' term)* ')'
        term  := ('and' | 'or' | 'not') '=' group
               | field ['=' value]
        value := any characters up to the next '|' or ')'

    Keys and values are percent-decoded once more after splitting, so a
    client writes %7C and %29 (double-encoded on the wire) for a literal
    '|' or ')'.
    """

    def __init__(self, parser: 'FilterParser', text: str, group_key: str) -> None:
        self.parser = parser
        self.text = text
        self.group_key = group_key
        self.pos = 0

    def _error(self, message: str) -> InvalidOperatorSyntaxError:
        return InvalidOperatorSyntaxError(message, self.group_key, self.pos)

    def _peek(self) -> str | None:
        return self.text[self.pos] if self.pos < len(self.text) else None

    def _expect(self, char: str) -> None:
        if self._peek() != char:
            found = self._peek()
            raise self._error(f'Expected "{char}", found {"end of input" if found is None else repr(found)}')
        self.pos += 1

    def read(self) -> list[FilterNode]:
        """
        Read a complete group and require nothing after it.

        Returns:
            Child nodes of the group in order of first appearance
        """
        children = self._read_group()
        if self.pos != len(self.text):
            raise self._error(f'Unexpected trailing input {self.text[self.pos:]!r}')
        return children

    def _read_group(self) -> list[FilterNode]:
        self._expect(GROUP_OPEN)
        if self._peek() == GROUP_CLOSE:
            raise self._error('Empty group')

        # Repeated keys merge into the slot of their first occurrence
        slots: list[str | FilterNode] = []
        raws: dict[str, list[str]] = {}

        while True:
            start = self.pos
            key = unquote(self._read_until(ASSIGN, GROUP_SEPARATOR, GROUP_CLOSE, GROUP_OPEN))
            if not key:
                raise self._error('Missing field name')

            if key in _LOGICAL_KEYS:
                self._expect(ASSIGN)
                kind = _LOGICAL_KEYS[key]
                slots.append(_combine(kind, self._read_group()))
            else:
                if key not in self.parser.filterable_fields:
                    raise UnknownFilterFieldError(key, start)
                value = ''
                if self._peek() == ASSIGN:
                    self.pos += 1
                    value = unquote(self._read_until(GROUP_SEPARATOR, GROUP_CLOSE))
                if key not in raws:
                    raws[key] = []
                    slots.append(key)
                raws[key].append(value)

            match self._peek():
                case '|':
                    self.pos += 1
                case ')':
                    self.pos += 1
                    break
                case None:
                    raise self._error('Unclosed group')
                case other:
                    raise self._error(f'Unexpected {other!r}')

        return [decode_values(slot, raws[slot]) if isinstance(slot, str) else slot for slot in slots]

    def _read_until(self, *stops: str) -> str:
        start = self.pos
        while self.pos < len(self.text) and self.text[self.pos] not in stops:
            self.pos += 1
        return self.text[start:self.pos]


class FilterParser:
    """
    Turns query parameters into a filter tree.

    Reserved keys (page, size, sort, q) are skipped; and/or/not carry
    grouped sub-expressions; every other key must be on the allow-list.
    The whole request is rejected on the first error, so a partial filter
    is never produced.
    """

    def __init__(self, filterable_fields: Collection[str]) -> None:
        """
        Initialize parser.

        Args:
            filterable_fields: Field names that may be filtered on
        """
        self.filterable_fields = frozenset(filterable_fields)

    def parse(self, query_params: QueryParams) -> FilterGroup | None:
        """
        Parse query parameters.

        Args:
            query_params: Mapping of key to a string or a list of strings

        Returns:
            Top-level AND of leaves and groups, or None if nothing filters

        Raises:
            UnknownFilterFieldError: If a key is not on the allow-list
            InvalidOperatorSyntaxError: If a value or group is malformed
            TypeMismatchError: If a list mixes value types
            NotImplementedCombinationError: If a repeated value is not a string
        """
        children: list[FilterNode] = []

        for key, value in query_params.items():
            if key in RESERVED_KEYS:
                continue
            if key not in self.filterable_fields:
                raise UnknownFilterFieldError(key)
            children.append(decode_values(key, value if isinstance(value, list) else [value]))

        for kind in LogicalOperator:
            value = query_params.get(kind.value)
            if value is None:
                continue
            for text in value if isinstance(value, list) else [value]:
                children.append(self.parse_group(kind, text))

        return and_(*children) if children else None

    def parse_group(self, kind: LogicalOperator, text: str) -> FilterGroup:
        """
        Parse one parenthesized group, e.g. '(age=>18|name=~a%)'.

        Args:
            kind: Combinator the group is attached under
            text: Group text including the outer parentheses

        Returns:
            Combinator node; NOT over several terms wraps them in AND

        Raises:
            InvalidOperatorSyntaxError: If the group is malformed (with position)
            UnknownFilterFieldError: If a term names an unknown field
        """
        return _combine(kind, _GroupReader(self, text, kind.value).read())
