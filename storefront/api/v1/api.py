from fastapi import APIRouter
from storefront.api.v1.endpoints.catalog import categories, category_bulk

api_router = APIRouter()

# Catalog routes; bulk goes first so "/categories/bulk" is not read as a category id
api_router.include_router(category_bulk.router, prefix="/categories/bulk", tags=["Catalog"])
api_router.include_router(categories.router, prefix="/categories", tags=["Catalog"])
