"""Pytest configuration and fixtures."""

from datetime import date

import pytest
import pytest_asyncio
from sqlalchemy import Column
from sqlalchemy import Date
from sqlalchemy import Integer
from sqlalchemy import MetaData
from sqlalchemy import String
from sqlalchemy import Table
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.ext.asyncio import create_async_engine

from namerec.viewset import ResourceBinding
from namerec.viewset import ResourceViewSet
from namerec.viewset import ViewSetSettings
from namerec.viewset import init_global_registry

USERS = [
    {'id': 1, 'name': 'alice', 'age': 31, 'email': 'alice@example.com', 'joined': '2023-01-15'},
    {'id': 2, 'name': 'bob', 'age': 17, 'email': 'bob@example.com', 'joined': '2023-06-01'},
    {'id': 3, 'name': 'carol', 'age': 45, 'email': None, 'joined': '2024-02-29'},
    {'id': 4, 'name': 'dave', 'age': 18, 'email': 'dave@example.org', 'joined': '2024-11-30'},
    {'id': 5, 'name': 'eve', 'age': 22, 'email': 'eve@example.org', 'joined': '2025-03-03'},
]


@pytest.fixture
def metadata() -> MetaData:
    """Create test metadata with simple schema."""
    metadata = MetaData()

    Table(
        'users',
        metadata,
        Column('id', Integer, primary_key=True),
        Column('name', String(100), nullable=False),
        Column('age', Integer, nullable=False),
        Column('email', String(100), nullable=True),
        Column('joined', Date, nullable=True),
    )

    Table(
        'tags',
        metadata,
        Column('slug', String(50), nullable=False),
        Column('label', String(100), nullable=False),
    )

    return metadata


@pytest.fixture
def users_table(metadata: MetaData) -> Table:
    """Users table."""
    return metadata.tables['users']


@pytest.fixture
def settings() -> ViewSetSettings:
    """Settings independent of the environment."""
    return ViewSetSettings(page_size=20, max_page_size=100)


@pytest_asyncio.fixture
async def engine(metadata: MetaData):  # noqa: ANN201
    """Create async engine with test database and seed rows."""
    engine = create_async_engine('sqlite+aiosqlite:///:memory:')

    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
        await conn.execute(
            metadata.tables['users'].insert(),
            [{**row, 'joined': date.fromisoformat(row['joined'])} for row in USERS],
        )

    yield engine

    await engine.dispose()


@pytest.fixture
def binding(users_table: Table, settings: ViewSetSettings) -> ResourceBinding:
    """Users binding with filtering on every column except email."""
    return ResourceBinding.create(
        users_table,
        filterable_fields=['id', 'name', 'age', 'joined'],
        orderable_fields=['name', 'age'],
        searchable_fields=['name', 'email'],
        default_ordering='id',
        settings=settings,
    )


@pytest.fixture
def viewset(binding: ResourceBinding, engine: AsyncEngine) -> ResourceViewSet:
    """Users viewset."""
    return ResourceViewSet(binding, engine)


@pytest.fixture(autouse=True)
def reset_global_registry() -> None:
    """Reset global registry before each test."""
    init_global_registry()
