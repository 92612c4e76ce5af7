"""Sort specification parser ('-name,age')."""

import re
from collections.abc import Collection

from namerec.viewset.core.exceptions import InvalidOrderSpecError
from namerec.viewset.query.constants import SORT_KEY
from namerec.viewset.query.constants import OrderDirection
from namerec.viewset.query.types import OrderItem
from namerec.viewset.query.types import OrderSpec


class OrderingParser:
    """
    Parses comma-separated sort tokens against a fixed set of fields.

    The validation pattern is compiled once per field set, so a parser is
    built at resource registration time and shared by every request.
    """

    def __init__(self, allowed_fields: Collection[str]) -> None:
        """
        Initialize parser.

        Args:
            allowed_fields: Field names that may appear in a sort token
        """
        self.allowed_fields = frozenset(allowed_fields)
        # Longest first so 'name_full' is not matched as 'name'
        names = '|'.join(re.escape(name) for name in sorted(self.allowed_fields, key=len, reverse=True))
        token = f'-?(?:{names})' if names else '(?!)'
        self._pattern = re.compile(f'{token}(?:,{token})*')

    def parse(self, raw: str | None) -> OrderSpec | None:
        """
        Parse a sort specification.

        Args:
            raw: e.g. '-created_at,name'; None or '' means no ordering

        Returns:
            Tuple of order items, or None for empty input

        Raises:
            InvalidOrderSpecError: If the spec is malformed or names an unknown field
        """
        if not raw:
            return None
        if self._pattern.fullmatch(raw) is None:
            unknown = [
                token.lstrip('-') for token in raw.split(',')
                if token.lstrip('-') not in self.allowed_fields
            ]
            if unknown and all(unknown):
                msg = f'Cannot sort by: {", ".join(unknown)}'
            else:
                msg = f'Malformed sort specification: {raw!r}'
            raise InvalidOrderSpecError(msg, SORT_KEY)

        items: list[OrderItem] = []
        for token in raw.split(','):
            if token.startswith('-'):
                items.append(OrderItem(token[1:], OrderDirection.DESC))
            else:
                items.append(OrderItem(token, OrderDirection.ASC))
        return tuple(items)


def parse_ordering(raw: str | None, allowed_fields: Collection[str]) -> OrderSpec | None:
    """
    Parse a sort specification with a one-off parser.

    Args:
        raw: Sort specification
        allowed_fields: Field names that may appear

    Returns:
        Tuple of order items, or None for empty input
    """
    return OrderingParser(allowed_fields).parse(raw)
