"""
Category Tree Seed Data (async, idempotent)
- Demo storefront hierarchy, created through CategoryService so levels are derived
Run:  python scripts/seed/category_data.py
"""

import os, sys
import asyncio
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..")))

from sqlalchemy.ext.asyncio import AsyncSession
from storefront.core.database import async_session_maker, engine
from storefront.db.base import Base
from storefront.schemas.catalog.category import CategoryCreate
from storefront.services.catalog.category_service import CategoryService

# ----------------------------------------------------------------------
# SEED DATA
# ----------------------------------------------------------------------

CATEGORY_SEED = [
    {"name": "Electronics", "slug": "electronics", "sort_order": 1, "is_featured": True, "children": [
        {"name": "Phones", "slug": "phones", "sort_order": 1, "children": [
            {"name": "Smartphones", "slug": "smartphones", "sort_order": 1},
            {"name": "Feature Phones", "slug": "feature-phones", "sort_order": 2},
        ]},
        {"name": "Laptops", "slug": "laptops", "sort_order": 2},
        {"name": "Audio", "slug": "audio", "sort_order": 3},
    ]},
    {"name": "Fashion", "slug": "fashion", "sort_order": 2, "is_featured": True, "children": [
        {"name": "Men", "slug": "men", "sort_order": 1},
        {"name": "Women", "slug": "women", "sort_order": 2},
    ]},
    {"name": "Home & Kitchen", "slug": "home-kitchen", "sort_order": 3},
]

# ----------------------------------------------------------------------
# HELPERS
# ----------------------------------------------------------------------

async def get_or_create_category(service: CategoryService, node: dict, parent_id=None):
    existing = await service.get_category_by_slug(node["slug"])
    if existing:
        return existing, False
    data = {k: v for k, v in node.items() if k != "children"}
    category = await service.create_category(CategoryCreate(**data, parent_id=parent_id))
    return category, True


async def seed_nodes(service: CategoryService, nodes: list, parent_id=None) -> int:
    created = 0
    for node in nodes:
        category, was_created = await get_or_create_category(service, node, parent_id)
        created += int(was_created)
        created += await seed_nodes(service, node.get("children", []), category.category_id)
    return created


async def seed(db: AsyncSession):
    service = CategoryService(db)
    created = await seed_nodes(service, CATEGORY_SEED)
    print(f"✓ Categories ready: {created} created")

# ----------------------------------------------------------------------
# ASYNC ENTRY POINT
# ----------------------------------------------------------------------

async def main():
    # Create tables (safe if already created)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_maker() as db:
        try:
            await seed(db)
            print("✅ Category seed completed successfully!")
        except Exception as ex:
            await db.rollback()
            print(f"❌ Seed failed: {ex}")
            raise

if __name__ == "__main__":
    asyncio.run(main())
