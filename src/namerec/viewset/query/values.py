"""Coercion of raw query tokens into typed scalars."""

import math
import re
from dataclasses import dataclass
from datetime import date
from datetime import datetime
from enum import Enum
from typing import Any

from namerec.viewset.core.exceptions import TypeMismatchError

# Integers beyond 2**53 - 1 lose precision as floats
MAX_SAFE_INTEGER = 2**53 - 1

# Decimal literals only; float() alone would also accept 'nan', 'inf' and '1_000'
_NUMBER_RE = re.compile(r'[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')
_INTEGER_RE = re.compile(r'[+-]?\d+')
_DATE_RE = re.compile(r'\d{4}-\d{2}-\d{2}')


class ScalarKind(str, Enum):
    """Variant tag of a coerced scalar."""

    STRING = 'string'
    NUMBER = 'number'
    BIGINT = 'bigint'
    BOOLEAN = 'boolean'
    NULL = 'null'
    DATE = 'date'


@dataclass(frozen=True, slots=True)
class ScalarValue:
    """Tagged scalar produced from a raw query token."""

    kind: ScalarKind
    value: Any
    raw: str

    @property
    def is_numberish(self) -> bool:
        """True for variants that support ordering comparisons."""
        return self.kind in (ScalarKind.NUMBER, ScalarKind.BIGINT, ScalarKind.DATE)

    def __str__(self) -> str:
        return self.raw


def is_number(raw: str) -> bool:
    """
    Check whether a token is a plain decimal number.

    Args:
        raw: Raw token

    Returns:
        True if the whole token is a number literal
    """
    return _NUMBER_RE.fullmatch(raw.strip()) is not None


def _parse_number(raw: str) -> ScalarValue | None:
    text = raw.strip()
    if not is_number(text):
        return None
    if _INTEGER_RE.fullmatch(text):
        number = int(text)
        if abs(number) > MAX_SAFE_INTEGER:
            return ScalarValue(ScalarKind.BIGINT, number, raw)
        return ScalarValue(ScalarKind.NUMBER, number, raw)
    number = float(text)
    if not math.isfinite(number):
        # Overflows such as 1e400 stay text
        return None
    return ScalarValue(ScalarKind.NUMBER, number, raw)


def _parse_date(raw: str) -> ScalarValue | None:
    text = raw.strip()
    if not _DATE_RE.match(text):
        return None
    try:
        if len(text) == 10:
            return ScalarValue(ScalarKind.DATE, date.fromisoformat(text), raw)
        return ScalarValue(ScalarKind.DATE, datetime.fromisoformat(text.replace('Z', '+00:00')), raw)
    except ValueError:
        return None


def coerce(raw: str) -> ScalarValue:
    """
    Convert a raw token into a typed scalar.

    Order matters: boolean and null literals are intercepted before numeric
    parsing, and a bare number is never read as a date.

    Args:
        raw: Raw query token (non-empty; empty means a null test upstream)

    Returns:
        Coerced scalar value
    """
    lowered = raw.lower()
    if lowered == 'true':
        return ScalarValue(ScalarKind.BOOLEAN, True, raw)
    if lowered == 'false':
        return ScalarValue(ScalarKind.BOOLEAN, False, raw)
    if lowered == 'null':
        return ScalarValue(ScalarKind.NULL, None, raw)
    if (number := _parse_number(raw)) is not None:
        return number
    if (moment := _parse_date(raw)) is not None:
        return moment
    return ScalarValue(ScalarKind.STRING, raw, raw)


def coerce_array(raws: list[str], field_name: str | None = None) -> list[ScalarValue]:
    """
    Coerce every element and require a single resulting variant.

    Args:
        raws: Raw tokens
        field_name: Query key for error attribution

    Returns:
        Coerced values in input order

    Raises:
        TypeMismatchError: If elements coerce to different variants
    """
    values = [coerce(raw) for raw in raws]
    kinds = {value.kind for value in values}
    if len(kinds) > 1:
        found = ', '.join(sorted(kind.value for kind in kinds))
        msg = f'Mixed value types in list for "{field_name}": {found}'
        raise TypeMismatchError(msg, field_name)
    return values
