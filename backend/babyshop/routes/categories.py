"""
BabyShop Backend — Category Routes
==================================

What:  GET /api/categories, /{id}, /{id}/products.
"""

from fastapi import APIRouter, Depends, Query

from babyshop.db import Database
from babyshop.dependencies import get_database
from babyshop.schemas.catalog import (
    CategoryListResponse,
    CategoryProductsResponse,
    CategoryResponse,
)
from babyshop.schemas.common import ErrorResponse
from babyshop.services.category_service import category_service

router = APIRouter(prefix="/api/categories", tags=["Categories"])

NOT_FOUND = {404: {"description": "Category not found", "model": ErrorResponse}}


@router.get(
    "",
    response_model=CategoryListResponse,
    summary="List active categories with product counts",
)
async def list_categories(db: Database = Depends(get_database)) -> CategoryListResponse:
    return await category_service.list_categories(db)


@router.get("/{category_id}", response_model=CategoryResponse, responses=NOT_FOUND)
async def get_category(
    category_id: int,
    db: Database = Depends(get_database),
) -> CategoryResponse:
    return await category_service.get_category(db, category_id)


@router.get(
    "/{category_id}/products",
    response_model=CategoryProductsResponse,
    responses=NOT_FOUND,
    summary="Paginated products of a category",
)
async def list_category_products(
    category_id: int,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: Database = Depends(get_database),
) -> CategoryProductsResponse:
    return await category_service.list_category_products(
        db, category_id, page=page, limit=limit
    )
