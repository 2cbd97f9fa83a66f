# app/routers/products_router.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.db import get_db
from app.schemas.catalog_schemas import (
    CategoriesResponse,
    ProductFilters,
    ProductListResponse,
    ProductOut,
    ProductSearchResponse,
)
from app.services.catalog_service import get_product, list_categories, list_products, search_products

router = APIRouter(prefix="/products", tags=["Products"])


def get_product_filters(
    category_id: Optional[int] = Query(None, alias="categoryId"),
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    active: Optional[bool] = Query(None),
    tag: Optional[str] = Query(None),
) -> ProductFilters:
    return ProductFilters(
        category_id=category_id,
        min_price=min_price,
        max_price=max_price,
        active=active,
        tag=tag,
    )


@router.get("", response_model=ProductListResponse)
async def all_products(
    db: AsyncSession = Depends(get_db),
    filters: ProductFilters = Depends(get_product_filters),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    """
    Paginated catalog with optional category, price range, active and tag
    filters. Each product carries its best live discount.
    """
    return await list_products(db, filters, page, limit)


@router.get("/categories", response_model=CategoriesResponse)
async def all_categories(
    db: AsyncSession = Depends(get_db),
    active: Optional[bool] = Query(None),
):
    return await list_categories(db, active)


@router.get("/search", response_model=ProductSearchResponse)
async def search(
    db: AsyncSession = Depends(get_db),
    q: Optional[str] = Query(None),
    filters: ProductFilters = Depends(get_product_filters),
    page: int = Query(1, ge=1),
    limit: int = Query(9, ge=1, le=100),
):
    return await search_products(db, q, filters, page, limit)


@router.get("/{product_id}", response_model=ProductOut)
async def product_by_id(product_id: int, db: AsyncSession = Depends(get_db)):
    return await get_product(db, product_id)
