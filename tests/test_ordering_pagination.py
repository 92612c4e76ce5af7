"""Tests for sort specifications and pagination."""

import pytest

from namerec.viewset.core.exceptions import InvalidOrderSpecError
from namerec.viewset.core.exceptions import QueryParseError
from namerec.viewset.core.types import PaginationMode
from namerec.viewset.query.constants import OrderDirection
from namerec.viewset.query.ordering import OrderingParser
from namerec.viewset.query.ordering import parse_ordering
from namerec.viewset.query.pagination import PaginationSpec
from namerec.viewset.query.pagination import resolve_pagination
from namerec.viewset.query.types import OrderItem


class TestOrdering:
    """Sort specification parsing."""

    def test_descending_and_ascending(self) -> None:
        assert parse_ordering('-name,age', {'name', 'age'}) == (
            OrderItem('name', OrderDirection.DESC),
            OrderItem('age', OrderDirection.ASC),
        )

    def test_field_outside_allow_list(self) -> None:
        with pytest.raises(InvalidOrderSpecError, match='Cannot sort by: email') as exc_info:
            parse_ordering('email', {'name', 'age'})
        assert exc_info.value.field_name == 'sort'

    @pytest.mark.parametrize('raw', ['name,', ',name', '--name', 'name,,age', 'name age'])
    def test_malformed(self, raw: str) -> None:
        with pytest.raises(InvalidOrderSpecError):
            parse_ordering(raw, {'name', 'age'})

    def test_empty_is_none(self) -> None:
        assert parse_ordering('', {'name'}) is None
        assert parse_ordering(None, {'name'}) is None

    def test_prefix_field_names(self) -> None:
        parser = OrderingParser(['name', 'name_full'])
        assert parser.parse('-name_full,name') == (
            OrderItem('name_full', OrderDirection.DESC),
            OrderItem('name', OrderDirection.ASC),
        )
        with pytest.raises(InvalidOrderSpecError):
            parser.parse('name_f')

    def test_empty_allow_list_rejects_everything(self) -> None:
        with pytest.raises(InvalidOrderSpecError):
            OrderingParser([]).parse('name')

    def test_to_token(self) -> None:
        assert [item.to_token() for item in parse_ordering('-name,age', {'name', 'age'})] == ['-name', 'age']


class TestPagination:
    """Pagination resolution."""

    def test_auto_without_page(self) -> None:
        spec = resolve_pagination(None, PaginationMode.AUTO, 20)
        assert spec.enabled is False

    def test_auto_with_page(self) -> None:
        spec = resolve_pagination('2', PaginationMode.AUTO, 20)
        assert spec.enabled is True
        assert spec.page == 2
        assert spec.offset == 20
        assert spec.limit == 20

    def test_forced_defaults_to_first_page(self) -> None:
        spec = resolve_pagination(None, PaginationMode.FORCED, 10)
        assert spec.enabled is True
        assert spec.page == 1
        assert spec.offset == 0

    def test_disabled_ignores_page(self) -> None:
        spec = resolve_pagination('3', PaginationMode.DISABLED, 10)
        assert spec.enabled is False

    @pytest.mark.parametrize('page', ['0', '-4', ''])
    def test_non_positive_or_blank_page(self, page: str) -> None:
        spec = resolve_pagination(page, PaginationMode.AUTO, 10)
        assert spec.enabled is True
        assert spec.page == 1

    def test_non_integer_page_rejected(self) -> None:
        with pytest.raises(QueryParseError) as exc_info:
            resolve_pagination('two', PaginationMode.AUTO, 10)
        assert exc_info.value.field_name == 'page'

    def test_size_override_is_capped(self) -> None:
        assert resolve_pagination('1', PaginationMode.AUTO, 10, query_size='50').page_size == 50
        assert resolve_pagination('1', PaginationMode.AUTO, 10, query_size='5000', max_page_size=100).page_size == 100
        assert resolve_pagination('1', PaginationMode.AUTO, 10, query_size='0').page_size == 10

    def test_page_count(self) -> None:
        spec = PaginationSpec(enabled=True, page=1, page_size=10)
        assert spec.page_count(25) == 3
        assert spec.page_count(20) == 2
        assert spec.page_count(0) == 0

    def test_envelope(self) -> None:
        spec = PaginationSpec(enabled=True, page=2, page_size=2)
        assert spec.envelope([{'id': 3}], 3) == {
            'count': 3,
            'page': 2,
            'size': 2,
            'page_count': 2,
            'results': [{'id': 3}],
        }

    def test_invalid_spec(self) -> None:
        with pytest.raises(ValueError, match='must be >= 1'):
            PaginationSpec(enabled=True, page=0)
