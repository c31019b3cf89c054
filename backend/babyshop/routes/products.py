"""
BabyShop Backend — Product Routes
=================================

What:  GET /api/products, /search, /category/{id}, /slug/{slug}, /{id}.
How:   Extract and validate query/path parameters, delegate to ProductService.

Route order matters: the literal prefixes (`/search`, `/category`, `/slug`)
are declared before `/{product_id}`.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from babyshop.db import Database
from babyshop.dependencies import get_database
from babyshop.schemas.catalog import ProductListResponse, ProductResponse, ProductSearchResponse
from babyshop.schemas.common import ErrorResponse
from babyshop.services.product_service import product_service

router = APIRouter(prefix="/api/products", tags=["Products"])


@router.get(
    "",
    response_model=ProductListResponse,
    summary="List active products",
    description="Paginated, newest first. Filter by category and/or featured flag.",
)
async def list_products(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    category_id: Optional[int] = Query(default=None, alias="categoryId"),
    featured: bool = Query(default=False, description="Only featured products when true"),
    db: Database = Depends(get_database),
) -> ProductListResponse:
    return await product_service.list_products(
        db, page=page, limit=limit, category_id=category_id, featured=featured
    )


@router.get(
    "/search",
    response_model=ProductSearchResponse,
    responses={400: {"description": "Missing q", "model": ErrorResponse}},
    summary="Search products by name or description",
)
async def search_products(
    q: Optional[str] = Query(default=None, description="Text to look for"),
    db: Database = Depends(get_database),
) -> ProductSearchResponse:
    return await product_service.search(db, q)


@router.get(
    "/category/{category_id}",
    response_model=ProductListResponse,
    summary="Active products of one category",
)
async def list_products_by_category(
    category_id: int,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: Database = Depends(get_database),
) -> ProductListResponse:
    return await product_service.list_products(
        db, page=page, limit=limit, category_id=category_id
    )


@router.get(
    "/slug/{slug}",
    response_model=ProductResponse,
    responses={404: {"description": "Product not found", "model": ErrorResponse}},
    summary="Get a product by slug",
)
async def get_product_by_slug(
    slug: str,
    db: Database = Depends(get_database),
) -> ProductResponse:
    return await product_service.get_by_slug(db, slug)


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    responses={404: {"description": "Product not found", "model": ErrorResponse}},
    summary="Get a product by ID",
)
async def get_product(
    product_id: int,
    db: Database = Depends(get_database),
) -> ProductResponse:
    return await product_service.get_by_id(db, product_id)
