"""
FastAPI application serving two resources.

Run with any ASGI server, for example:
    uvicorn examples.api_usage:app --reload
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import APIRouter
from fastapi import FastAPI
from pydantic import BaseModel
from sqlalchemy import Column
from sqlalchemy import DateTime
from sqlalchemy import ForeignKey
from sqlalchemy import Integer
from sqlalchemy import MetaData
from sqlalchemy import String
from sqlalchemy import Table
from sqlalchemy import func
from sqlalchemy.ext.asyncio import create_async_engine

from namerec.viewset import ResourceBinding
from namerec.viewset import ResourceViewSet
from namerec.viewset import configure_logging
from namerec.viewset import get_global_registry
from namerec.viewset import get_settings
from namerec.viewset import install_exception_handlers

settings = get_settings()
configure_logging(settings.log_level)
logger = structlog.get_logger()

metadata = MetaData()

authors_table = Table(
    'authors',
    metadata,
    Column('id', Integer, primary_key=True),
    Column('name', String(100), nullable=False),
    Column('created_at', DateTime, server_default=func.now()),
)

posts_table = Table(
    'posts',
    metadata,
    Column('id', Integer, primary_key=True),
    Column('slug', String(100), nullable=False, unique=True),
    Column('author_id', Integer, ForeignKey('authors.id'), nullable=False),
    Column('title', String(200), nullable=False),
)


class AuthorOut(BaseModel):
    """Author as returned to clients."""

    id: int
    name: str


engine = create_async_engine('sqlite+aiosqlite:///./viewset_demo.db')
router = APIRouter(prefix='/api')

registry = get_global_registry()
registry.register(ResourceViewSet(
    ResourceBinding.create(
        authors_table,
        default_schema=AuthorOut,
        filterable_fields=['name'],
        default_ordering='name',
    ),
    engine,
))
# Posts are addressed by slug and cannot be deleted
registry.register(ResourceViewSet(
    ResourceBinding.create(
        posts_table,
        primary_key='slug',
        filterable_fields=['author_id', 'title'],
        default_ordering='-id',
    ),
    engine,
    operations=['list', 'create', 'retrieve', 'update'],
))

for name in registry.names():
    registry.get(name).register(router)


@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: ARG001, ANN201
    """Create tables at startup and dispose the engine at shutdown."""
    logger.info('Starting viewset demo', resources=registry.names(), debug_mode=settings.debug_mode)
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield

    await engine.dispose()
    logger.info('Database connections closed')


app = FastAPI(title='ViewSet Demo', version='0.1.0', lifespan=lifespan)
app.include_router(router)
install_exception_handlers(app)


@app.get('/health')
async def health_check() -> dict:
    """Health check endpoint."""
    return {'status': 'ok', 'resources': registry.names()}
