"""
BabyShop Backend — Article Routes
=================================

What:  GET /api/articles, /tag/{tag}, /{slug}, /{id}/products and
       PUT /{id}/view.
Why:   Article failures degrade to empty results inside ArticleService, so
       these handlers only map parameters.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from babyshop.db import Database
from babyshop.dependencies import get_database
from babyshop.schemas.catalog import (
    ArticleListResponse,
    ArticleProductsResponse,
    ArticleResponse,
    ArticleTagResponse,
    ArticleViewResponse,
)
from babyshop.schemas.common import ErrorResponse
from babyshop.services.article_service import article_service

router = APIRouter(prefix="/api/articles", tags=["Articles"])

NOT_FOUND = {404: {"description": "Article not found", "model": ErrorResponse}}


@router.get("", response_model=ArticleListResponse, summary="List published articles")
async def list_articles(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    tag: Optional[str] = Query(default=None),
    db: Database = Depends(get_database),
) -> ArticleListResponse:
    return await article_service.list_articles(db, page=page, limit=limit, tag=tag)


@router.get("/tag/{tag}", response_model=ArticleTagResponse, summary="Articles with a tag")
async def list_articles_by_tag(
    tag: str,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    db: Database = Depends(get_database),
) -> ArticleTagResponse:
    return await article_service.list_by_tag(db, tag, page=page, limit=limit)


@router.get("/{article_id}/products", response_model=ArticleProductsResponse, responses=NOT_FOUND)
async def get_article_products(
    article_id: int,
    db: Database = Depends(get_database),
) -> ArticleProductsResponse:
    return await article_service.get_products(db, article_id)


@router.put("/{article_id}/view", response_model=ArticleViewResponse, responses=NOT_FOUND)
async def record_article_view(
    article_id: int,
    db: Database = Depends(get_database),
) -> ArticleViewResponse:
    return await article_service.record_view(db, article_id)


@router.get("/{slug}", response_model=ArticleResponse, responses=NOT_FOUND)
async def get_article(
    slug: str,
    db: Database = Depends(get_database),
) -> ArticleResponse:
    return await article_service.get_by_slug(db, slug)
