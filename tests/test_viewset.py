"""Tests for the resource operation orchestrator."""

from datetime import date
from typing import Any

import pytest
from pydantic import BaseModel
from sqlalchemy import Boolean
from sqlalchemy import Column
from sqlalchemy import Date
from sqlalchemy import Integer
from sqlalchemy import MetaData
from sqlalchemy import String
from sqlalchemy import Table
from sqlalchemy.ext.asyncio import AsyncEngine

from namerec.viewset import BackendError
from namerec.viewset import ILikeSearchBackend
from namerec.viewset import InvalidOrderSpecError
from namerec.viewset import MissingPrimaryKeyError
from namerec.viewset import NotFoundError
from namerec.viewset import Operation
from namerec.viewset import OperationNotAllowedError
from namerec.viewset import PaginationMode
from namerec.viewset import PrimaryKeyPolicy
from namerec.viewset import QueryParseError
from namerec.viewset import RequestContext
from namerec.viewset import ResourceBinding
from namerec.viewset import ResourceViewSet
from namerec.viewset import SchemaValidationError
from namerec.viewset import UnknownFilterFieldError
from namerec.viewset import ViewSetError
from namerec.viewset import ViewSetSettings
from namerec.viewset import action
from namerec.viewset.query.constants import FilterOperator
from namerec.viewset.query.constants import OrderDirection
from namerec.viewset.query.types import FilterLeaf
from namerec.viewset.resources.keys import resolve_keys


def query(**params: Any) -> RequestContext:
    """Request context with query parameters."""
    return RequestContext(query_params=params)


class UserOut(BaseModel):
    """Public representation of a user."""

    id: int
    name: str


class UserPatch(BaseModel):
    """Fields a client may change."""

    age: int


class TestBinding:
    """Registration-time validation."""

    def test_detects_primary_key(self, binding: ResourceBinding) -> None:
        assert {op: key.name for op, key in binding.keys.items()} == {
            Operation.RETRIEVE: 'id',
            Operation.UPDATE: 'id',
            Operation.DESTROY: 'id',
        }

    def test_missing_primary_key(self, metadata: MetaData) -> None:
        with pytest.raises(MissingPrimaryKeyError) as exc_info:
            ResourceBinding.create(metadata.tables['tags'])
        assert exc_info.value.operations == ['retrieve', 'update', 'destroy']

    def test_partial_policy_still_needs_fallback(self, metadata: MetaData) -> None:
        with pytest.raises(MissingPrimaryKeyError) as exc_info:
            ResourceBinding.create(metadata.tables['tags'], primary_key=PrimaryKeyPolicy(retrieve='slug'))
        assert exc_info.value.operations == ['update', 'destroy']

    def test_lookup_field(self, metadata: MetaData) -> None:
        binding = ResourceBinding.create(metadata.tables['tags'], primary_key='slug')
        assert binding.detail_key.name == 'slug'

    def test_misnamed_lookup_column(self, users_table: Table) -> None:
        with pytest.raises(MissingPrimaryKeyError, match='nope'):
            ResourceBinding.create(users_table, primary_key=PrimaryKeyPolicy(update='nope'))

    def test_unknown_configured_field(self, users_table: Table) -> None:
        with pytest.raises(ViewSetError, match='filterable'):
            ResourceBinding.create(users_table, filterable_fields=['nope'])

    def test_invalid_default_ordering(self, users_table: Table) -> None:
        with pytest.raises(InvalidOrderSpecError):
            ResourceBinding.create(users_table, default_ordering='-nope')

    def test_settings_fallback(self, users_table: Table) -> None:
        settings = ViewSetSettings(page_size=7, pagination=PaginationMode.FORCED)
        binding = ResourceBinding.create(users_table, settings=settings)
        assert binding.page_size == 7
        assert binding.pagination == PaginationMode.FORCED
        assert binding.orderable_fields == ('id', 'name', 'age', 'email', 'joined')

    def test_keys_are_read_only(self, binding: ResourceBinding) -> None:
        with pytest.raises(TypeError):
            binding.keys[Operation.RETRIEVE] = binding.keys[Operation.UPDATE]  # type: ignore[index]


class TestLookupKey:
    """Path values are converted to the lookup column's type."""

    def test_date_key(self) -> None:
        table = Table('days', MetaData(), Column('day', Date, primary_key=True))
        assert resolve_keys(table)[Operation.RETRIEVE].coerce('2024-01-01') == date(2024, 1, 1)

    @pytest.mark.parametrize(('raw', 'expected'), [('false', False), ('true', True), ('0', False), ('1', True)])
    def test_boolean_key(self, raw: str, expected: bool) -> None:  # noqa: FBT001
        table = Table('flags', MetaData(), Column('flag', Boolean, primary_key=True))
        assert resolve_keys(table)[Operation.RETRIEVE].coerce(raw) is expected

    def test_integer_key(self, binding: ResourceBinding) -> None:
        assert binding.detail_key.coerce('42') == 42

    def test_invalid_value(self, binding: ResourceBinding) -> None:
        with pytest.raises(SchemaValidationError) as exc_info:
            binding.detail_key.coerce('abc')
        assert exc_info.value.schema_name == 'path'
        assert exc_info.value.errors[0]['field'] == 'id'


class TestList:
    """List operation."""

    @pytest.mark.asyncio
    async def test_plain_list_uses_default_ordering(self, viewset: ResourceViewSet) -> None:
        rows = await viewset.list(query())
        assert [row['id'] for row in rows] == [1, 2, 3, 4, 5]
        assert rows[0] == {
            'id': 1,
            'name': 'alice',
            'age': 31,
            'email': 'alice@example.com',
            'joined': date(2023, 1, 15),
        }

    @pytest.mark.asyncio
    async def test_filter_and_sort(self, viewset: ResourceViewSet) -> None:
        rows = await viewset.list(query(age='>=18', sort='-age'))
        assert [row['name'] for row in rows] == ['carol', 'alice', 'eve', 'dave']

    @pytest.mark.asyncio
    async def test_date_filter(self, viewset: ResourceViewSet) -> None:
        rows = await viewset.list(query(joined='>=2024-01-01'))
        assert [row['name'] for row in rows] == ['carol', 'dave', 'eve']

    @pytest.mark.asyncio
    async def test_grouped_filter(self, viewset: ResourceViewSet) -> None:
        rows = await viewset.list(query(**{'or': '(age=<18|name=~e%)'}))
        assert [row['name'] for row in rows] == ['bob', 'eve']

    @pytest.mark.asyncio
    async def test_duplicate_keys_narrow(self, viewset: ResourceViewSet) -> None:
        rows = await viewset.list(query(age=['>=18', '<30']))
        assert [row['name'] for row in rows] == ['dave', 'eve']

    @pytest.mark.asyncio
    async def test_unknown_filter_rejected(self, viewset: ResourceViewSet) -> None:
        with pytest.raises(UnknownFilterFieldError):
            await viewset.list(query(email='~%example%'))

    @pytest.mark.asyncio
    async def test_sort_outside_allow_list_rejected(self, viewset: ResourceViewSet) -> None:
        with pytest.raises(InvalidOrderSpecError):
            await viewset.list(query(sort='email'))

    @pytest.mark.asyncio
    async def test_paginated_envelope(self, viewset: ResourceViewSet) -> None:
        page = await viewset.list(query(page='2', size='2'))
        assert page['count'] == 5
        assert page['page'] == 2
        assert page['size'] == 2
        assert page['page_count'] == 3
        assert [row['id'] for row in page['results']] == [3, 4]

    @pytest.mark.asyncio
    async def test_page_past_the_end(self, viewset: ResourceViewSet) -> None:
        page = await viewset.list(query(page='10'))
        assert page['results'] == []
        assert page['count'] == 0
        assert page['page_count'] == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize('key', ['sort', 'page', 'size'])
    async def test_repeated_reserved_key_rejected(self, viewset: ResourceViewSet, key: str) -> None:
        with pytest.raises(QueryParseError, match=key) as exc_info:
            await viewset.list(query(**{key: ['1', '2']}))
        assert exc_info.value.field_name == key

    @pytest.mark.asyncio
    async def test_text_column_keeps_token_as_written(self, engine: AsyncEngine, settings: ViewSetSettings) -> None:
        codes = Table(
            'codes',
            MetaData(),
            Column('id', Integer, primary_key=True),
            Column('code', String(20), nullable=False),
        )
        async with engine.begin() as conn:
            await conn.run_sync(codes.metadata.create_all)
            await conn.execute(codes.insert(), [{'id': 1, 'code': '007'}, {'id': 2, 'code': '1.50'}])

        viewset = ResourceViewSet(
            ResourceBinding.create(codes, filterable_fields=['code'], default_ordering='id', settings=settings),
            engine,
        )
        assert [row['id'] for row in await viewset.list(query(code='007'))] == [1]
        assert [row['id'] for row in await viewset.list(query(code='1.50'))] == [2]
        assert [row['id'] for row in await viewset.list(query(code='007,1.50'))] == [1, 2]

    @pytest.mark.asyncio
    async def test_filtering_off_without_filterable_fields(
        self,
        users_table: Table,
        engine: AsyncEngine,
        settings: ViewSetSettings,
    ) -> None:
        viewset = ResourceViewSet(ResourceBinding.create(users_table, settings=settings), engine)
        rows = await viewset.list(query(age='5'))
        assert len(rows) == 5

    @pytest.mark.asyncio
    async def test_list_projects_list_schema(
        self,
        users_table: Table,
        engine: AsyncEngine,
        settings: ViewSetSettings,
    ) -> None:
        binding = ResourceBinding.create(users_table, list_schema=UserOut, default_ordering='-id', settings=settings)
        viewset = ResourceViewSet(binding, engine)
        assert [column.name for column in viewset.list_columns()] == ['id', 'name']
        rows = await viewset.list(query())
        assert rows[0] == {'id': 5, 'name': 'eve'}


@pytest.mark.asyncio
async def test_end_to_end_plan(users_table: Table, engine: AsyncEngine, settings: ViewSetSettings) -> None:
    """Filter, ordering and pagination land in one query plan."""
    binding = ResourceBinding.create(
        users_table,
        filterable_fields=['age'],
        orderable_fields=['name'],
        page_size=2,
        settings=settings,
    )
    viewset = ResourceViewSet(binding, engine)
    request = query(age='>=18', sort='-name', page='1')

    plan = viewset.build_list_plan(request)
    (leaf,) = plan.where.children
    assert leaf == FilterLeaf('age', leaf.op)
    assert leaf.op.operator == FilterOperator.GTE
    assert leaf.op.value.value == 18
    assert [(item.field, item.direction) for item in plan.ordering] == [('name', OrderDirection.DESC)]
    assert plan.limit == 2
    assert plan.offset == 0

    sql = str(plan.to_select().compile(compile_kwargs={'literal_binds': True}))
    assert 'users.age >= 18' in sql
    assert 'ORDER BY users.name DESC' in sql
    assert 'LIMIT 2' in sql

    page = await viewset.list(request)
    assert [row['name'] for row in page['results']] == ['eve', 'dave']
    assert page['count'] == 4
    assert page['page_count'] == 2


class TestDetail:
    """Create, retrieve, update and destroy."""

    @pytest.mark.asyncio
    async def test_create(self, viewset: ResourceViewSet) -> None:
        row = await viewset.create(RequestContext(body={'name': 'frank', 'age': '40'}))
        assert row == {'id': 6, 'name': 'frank', 'age': 40, 'email': None, 'joined': None}

    @pytest.mark.asyncio
    async def test_create_rejects_invalid_body(self, viewset: ResourceViewSet) -> None:
        with pytest.raises(SchemaValidationError) as exc_info:
            await viewset.create(RequestContext(body={'name': 'frank', 'bogus': 1}))
        errors = {error['field']: error['type'] for error in exc_info.value.errors}
        assert errors == {'age': 'missing', 'bogus': 'extra_forbidden'}

    @pytest.mark.asyncio
    async def test_retrieve(self, viewset: ResourceViewSet) -> None:
        row = await viewset.retrieve(RequestContext(path_params={'id': '3'}))
        assert row['name'] == 'carol'
        assert row['joined'] == date(2024, 2, 29)

    @pytest.mark.asyncio
    async def test_retrieve_not_found(self, viewset: ResourceViewSet) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            await viewset.retrieve(RequestContext(path_params={'id': '99'}))
        assert exc_info.value.lookup_field == 'id'
        assert exc_info.value.lookup_value == 99

    @pytest.mark.asyncio
    async def test_retrieve_bad_key(self, viewset: ResourceViewSet) -> None:
        with pytest.raises(SchemaValidationError):
            await viewset.retrieve(RequestContext(path_params={'id': 'abc'}))

    @pytest.mark.asyncio
    async def test_update_returns_retrieve_shape(
        self,
        users_table: Table,
        engine: AsyncEngine,
        settings: ViewSetSettings,
    ) -> None:
        binding = ResourceBinding.create(
            users_table,
            retrieve_schema=UserOut,
            update_schema=UserPatch,
            settings=settings,
        )
        viewset = ResourceViewSet(binding, engine)

        row = await viewset.update(RequestContext(path_params={'id': '2'}, body={'age': 19}))
        assert row == {'id': 2, 'name': 'bob'}

        full = await ResourceViewSet(ResourceBinding.create(users_table, settings=settings), engine).retrieve(
            RequestContext(path_params={'id': 2}),
        )
        assert full['age'] == 19

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_columns(self, viewset: ResourceViewSet) -> None:
        row = await viewset.update(RequestContext(path_params={'id': '1'}, body={'email': None}))
        assert row['email'] is None
        assert row['age'] == 31

    @pytest.mark.asyncio
    async def test_update_not_found(self, viewset: ResourceViewSet) -> None:
        with pytest.raises(NotFoundError):
            await viewset.update(RequestContext(path_params={'id': '99'}, body={'age': 1}))

    @pytest.mark.asyncio
    async def test_destroy(self, viewset: ResourceViewSet) -> None:
        assert await viewset.destroy(RequestContext(path_params={'id': '5'})) == 5
        with pytest.raises(NotFoundError):
            await viewset.retrieve(RequestContext(path_params={'id': '5'}))
        with pytest.raises(NotFoundError):
            await viewset.destroy(RequestContext(path_params={'id': '5'}))

    @pytest.mark.asyncio
    async def test_lookup_by_other_column(self, metadata: MetaData, engine: AsyncEngine) -> None:
        viewset = ResourceViewSet(ResourceBinding.create(metadata.tables['tags'], primary_key='slug'), engine)
        created = await viewset.create(RequestContext(body={'slug': 'py', 'label': 'Python'}))
        assert created == {'slug': 'py', 'label': 'Python'}
        assert (await viewset.retrieve(RequestContext(path_params={'slug': 'py'})))['label'] == 'Python'

    @pytest.mark.asyncio
    async def test_backend_error(self, viewset: ResourceViewSet) -> None:
        with pytest.raises(BackendError) as exc_info:
            await viewset.create(RequestContext(body={'id': 1, 'name': 'dup', 'age': 1}))
        assert exc_info.value.original_error is not None


class TestSearch:
    """Search operation."""

    @pytest.mark.asyncio
    async def test_default_backend_returns_nothing(self, viewset: ResourceViewSet) -> None:
        assert await viewset.search(query(q='alice')) == []

    @pytest.mark.asyncio
    async def test_empty_query(self, binding: ResourceBinding, engine: AsyncEngine) -> None:
        viewset = ResourceViewSet(binding, engine, search_backend=ILikeSearchBackend())
        assert await viewset.search(query()) == []
        assert await viewset.search(query(q='')) == []

    @pytest.mark.asyncio
    async def test_ilike_backend(self, binding: ResourceBinding, engine: AsyncEngine) -> None:
        viewset = ResourceViewSet(binding, engine, search_backend=ILikeSearchBackend())
        assert [row['name'] for row in await viewset.search(query(q='EXAMPLE.ORG'))] == ['dave', 'eve']
        assert [row['name'] for row in await viewset.search(query(q='ali'))] == ['alice']
        assert await viewset.search(query(q='%')) == []


class TestOverridesAndActions:
    """Handler overrides, exposed subsets and custom actions."""

    @pytest.mark.asyncio
    async def test_override_bypasses_builtin(self, binding: ResourceBinding, engine: AsyncEngine) -> None:
        seen: list[RequestContext] = []

        async def custom_list(request: RequestContext) -> list[str]:
            seen.append(request)
            return ['overridden']

        viewset = ResourceViewSet(binding, engine, handlers={'list': custom_list})
        request = query(password='not-a-field')
        assert await viewset.list(request) == ['overridden']
        assert seen == [request]

    @pytest.mark.asyncio
    async def test_override_decorator(self, viewset: ResourceViewSet) -> None:
        @viewset.override(Operation.RETRIEVE)
        async def custom_retrieve(request: RequestContext) -> dict:
            return {'raw': request.path_params['id']}

        assert await viewset.retrieve(RequestContext(path_params={'id': 'anything'})) == {'raw': 'anything'}

    @pytest.mark.asyncio
    async def test_operation_subset(self, binding: ResourceBinding, engine: AsyncEngine) -> None:
        viewset = ResourceViewSet(binding, engine, operations=['list', 'retrieve'])
        assert list(viewset.operations) == [Operation.LIST, Operation.RETRIEVE]
        with pytest.raises(OperationNotAllowedError):
            await viewset.create(RequestContext(body={'name': 'x', 'age': 1}))

    @pytest.mark.asyncio
    async def test_decorated_and_added_actions(self, binding: ResourceBinding, engine: AsyncEngine) -> None:
        class UserViewSet(ResourceViewSet):
            @action(detail=True, methods=['post'])
            async def activate(self, request: RequestContext) -> dict:
                return {'activated': request.path_params['id']}

        viewset = UserViewSet(binding, engine)

        async def stats(request: RequestContext) -> dict:  # noqa: ARG001
            return {'total': 5}

        viewset.add_action('user_stats', stats)

        activate = viewset.actions['activate']
        assert activate.detail is True
        assert activate.methods == ('POST',)
        assert viewset.actions['user_stats'].path == 'user-stats'

        assert await viewset.perform_action('activate', RequestContext(path_params={'id': '3'})) == {'activated': 3}
        assert await viewset.perform_action('user_stats', RequestContext()) == {'total': 5}
