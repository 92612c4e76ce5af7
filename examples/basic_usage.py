"""
Basic usage example for ViewSet.

This example demonstrates:
1. Binding a table to a resource viewset
2. Listing with filters, ordering and pagination
3. Create, retrieve, update and destroy
4. Overriding an operation and adding a custom action
"""

import asyncio

from sqlalchemy import Column
from sqlalchemy import Integer
from sqlalchemy import MetaData
from sqlalchemy import Numeric
from sqlalchemy import String
from sqlalchemy import Table
from sqlalchemy.ext.asyncio import create_async_engine

from namerec.viewset import ILikeSearchBackend
from namerec.viewset import NotFoundError
from namerec.viewset import RequestContext
from namerec.viewset import ResourceBinding
from namerec.viewset import ResourceViewSet
from namerec.viewset import action
from namerec.viewset import configure_logging
from namerec.viewset import parse_query_string


# Define schema
metadata = MetaData()

products_table = Table(
    'products',
    metadata,
    Column('id', Integer, primary_key=True),
    Column('name', String(100), nullable=False),
    Column('category', String(50), nullable=False),
    Column('price', Numeric(10, 2), nullable=False),
    Column('stock', Integer, nullable=False, server_default='0'),
)


class ProductViewSet(ResourceViewSet):
    """Products with a restock action."""

    @action(detail=True, methods=['POST'])
    async def restock(self, request: RequestContext) -> dict:
        """Add 10 items to stock."""
        product = await self.retrieve(request)
        return await self.update(
            RequestContext(path_params=request.path_params, body={'stock': product['stock'] + 10}),
        )


async def main() -> None:
    """Run example."""
    configure_logging('DEBUG')

    engine = create_async_engine('sqlite+aiosqlite:///:memory:')
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    binding = ResourceBinding.create(
        products_table,
        filterable_fields=['category', 'price', 'stock'],
        orderable_fields=['name', 'price'],
        searchable_fields=['name'],
        default_ordering='name',
        page_size=2,
    )
    products = ProductViewSet(binding, engine, search_backend=ILikeSearchBackend())

    # Example 1: Create rows
    print('\n=== Example 1: Create ===')
    for name, category, price in [
        ('Kettle', 'kitchen', 30),
        ('Toaster', 'kitchen', 45),
        ('Lamp', 'living', 25),
        ('Blender', 'kitchen', 80),
    ]:
        created = await products.create(RequestContext(body={'name': name, 'category': category, 'price': price}))
        print(f'Created: {created}')

    # Example 2: Filter, sort and paginate
    print('\n=== Example 2: List ===')
    request = RequestContext(query_params=parse_query_string('category=kitchen&price=<50&sort=-price&page=1'))
    print(f'Plan: {products.build_list_plan(request).describe()}')
    print(f'Page: {await products.list(request)}')

    # Example 3: Grouped filter
    print('\n=== Example 3: Grouped filter ===')
    request = RequestContext(query_params=parse_query_string('or=(price=>70|category=living)'))
    print(f'Rows: {await products.list(request)}')

    # Example 4: Detail operations and action
    print('\n=== Example 4: Detail ===')
    print(f"Retrieved: {await products.retrieve(RequestContext(path_params={'id': '1'}))}")
    print(f"Restocked: {await products.perform_action('restock', RequestContext(path_params={'id': '1'}))}")
    print(f"Deleted id: {await products.destroy(RequestContext(path_params={'id': '1'}))}")
    try:
        await products.retrieve(RequestContext(path_params={'id': '1'}))
    except NotFoundError as e:
        print(f'Not found: {e}')

    # Example 5: Search and override
    print('\n=== Example 5: Search and override ===')
    print(f"Search 'er': {await products.search(RequestContext(query_params={'q': 'er'}))}")

    @products.override('search')
    async def search_disabled(request: RequestContext) -> list:  # noqa: ARG001
        return []

    print(f"Search after override: {await products.search(RequestContext(query_params={'q': 'er'}))}")

    await engine.dispose()


if __name__ == '__main__':
    asyncio.run(main())
