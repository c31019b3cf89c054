"""
BabyShop Backend — Article Service
==================================

What:  Parenting articles: published list (optionally by tag), detail by
       slug, view counter, and the article → products link.
Why:   Articles are editorial content shown around the shop. A failing
       article query must not break the page that embeds it, so this service
       degrades instead of raising:

           list / by tag      → empty page
           detail by slug     → 404
           linked products    → {article: null, data: []}
           view counter       → viewCount 0

       The failure is still logged with its full context; only the HTTP
       answer is softened.
"""

import logging
from typing import Optional

from babyshop.db import Database
from babyshop.db.compose import Conditions, like, page_window, total_pages
from babyshop.exceptions import DatabaseError, NotFoundError
from babyshop.schemas.catalog import (
    Article,
    ArticleListResponse,
    ArticleProductsResponse,
    ArticleRef,
    ArticleResponse,
    ArticleTagResponse,
    ArticleViewResponse,
)
from babyshop.schemas.common import Pagination

logger = logging.getLogger(__name__)

ARTICLE_COLUMNS = """
    a.ArticleId AS _id,
    a.Title AS title,
    a.Slug AS slug,
    a.Summary AS summary,
    a.CoverImage AS coverImage,
    a.AgeGroup AS ageGroup"""


def _empty_page(page: int, limit: int) -> Pagination:
    return Pagination(page=page, limit=limit, total=0, pages=0)


class ArticleService:

    async def list_articles(
        self,
        db: Database,
        page: int = 1,
        limit: int = 20,
        tag: Optional[str] = None,
    ) -> ArticleListResponse:
        where = Conditions("a.IsPublished = 1")
        if tag:
            where.add("a.Tags LIKE ?", like(tag))

        offset, fetch = page_window(page, limit)
        try:
            rows = await db.query(
                f"""
                SELECT {ARTICLE_COLUMNS},
                    a.DisplayOrder,
                    a.IsPublished,
                    a.ViewCount
                FROM dbo.Articles a
                WHERE {where.sql}
                ORDER BY a.DisplayOrder ASC, a.ArticleId DESC
                OFFSET ? ROWS FETCH NEXT ? ROWS ONLY
                """,
                [*where.params, offset, fetch],
            )
            count_rows = await db.query(
                f"SELECT COUNT(*) AS total FROM dbo.Articles a WHERE {where.sql}",
                where.params,
            )
        except DatabaseError as exc:
            logger.warning("Article list unavailable, returning empty page: %s", exc.context)
            return ArticleListResponse(data=[], pagination=_empty_page(page, limit))

        total = int(count_rows[0]["total"]) if count_rows else 0
        return ArticleListResponse(
            data=[Article.model_validate(row) for row in rows],
            pagination=Pagination(
                page=page, limit=limit, total=total, pages=total_pages(total, limit)
            ),
        )

    async def list_by_tag(
        self,
        db: Database,
        tag: str,
        page: int = 1,
        limit: int = 20,
    ) -> ArticleTagResponse:
        pattern = like(tag)
        offset, fetch = page_window(page, limit)
        try:
            rows = await db.query(
                f"""
                SELECT {ARTICLE_COLUMNS}
                FROM dbo.Articles a
                WHERE a.IsPublished = 1 AND a.Tags LIKE ?
                ORDER BY a.ArticleId DESC
                OFFSET ? ROWS FETCH NEXT ? ROWS ONLY
                """,
                [pattern, offset, fetch],
            )
            count_rows = await db.query(
                "SELECT COUNT(*) AS total FROM dbo.Articles a "
                "WHERE a.IsPublished = 1 AND a.Tags LIKE ?",
                [pattern],
            )
        except DatabaseError as exc:
            logger.warning("Articles for tag %r unavailable: %s", tag, exc.context)
            return ArticleTagResponse(tag=tag, data=[], pagination=_empty_page(page, limit))

        total = int(count_rows[0]["total"]) if count_rows else 0
        return ArticleTagResponse(
            tag=tag,
            data=[Article.model_validate(row) for row in rows],
            pagination=Pagination(
                page=page, limit=limit, total=total, pages=total_pages(total, limit)
            ),
        )

    async def get_by_slug(self, db: Database, slug: str) -> ArticleResponse:
        try:
            rows = await db.query(
                f"""
                SELECT {ARTICLE_COLUMNS}, a.ViewCount
                FROM dbo.Articles a
                WHERE a.IsPublished = 1 AND a.Slug = ?
                """,
                [slug],
            )
        except DatabaseError as exc:
            logger.warning("Article %r lookup failed: %s", slug, exc.context)
            rows = []
        if not rows:
            raise NotFoundError(resource="Article", resource_id=slug)
        return ArticleResponse(data=Article.model_validate(rows[0]))

    async def get_products(self, db: Database, article_id: int) -> ArticleProductsResponse:
        # No article → product link table exists yet, so data is always empty
        try:
            rows = await db.query(
                "SELECT ArticleId AS _id, Title AS title, Slug AS slug "
                "FROM dbo.Articles WHERE ArticleId = ?",
                [article_id],
            )
        except DatabaseError as exc:
            logger.warning("Article %s products lookup failed: %s", article_id, exc.context)
            return ArticleProductsResponse(article=None, data=[])
        if not rows:
            raise NotFoundError(resource="Article", resource_id=article_id)
        return ArticleProductsResponse(article=ArticleRef.model_validate(rows[0]), data=[])

    async def record_view(self, db: Database, article_id: int) -> ArticleViewResponse:
        """Increment ViewCount and return the new value."""
        try:
            await db.query(
                "UPDATE dbo.Articles SET ViewCount = ISNULL(ViewCount, 0) + 1 "
                "WHERE ArticleId = ?",
                [article_id],
            )
            rows = await db.query(
                "SELECT ViewCount FROM dbo.Articles WHERE ArticleId = ?",
                [article_id],
            )
        except DatabaseError as exc:
            logger.warning("View count for article %s not recorded: %s", article_id, exc.context)
            return ArticleViewResponse(view_count=0)
        if not rows:
            raise NotFoundError(resource="Article", resource_id=article_id)
        return ArticleViewResponse(view_count=rows[0]["ViewCount"] or 0)


article_service = ArticleService()
