"""
BabyShop Backend — Category Service
===================================

What:  Category listing with active-product counts, single category lookup,
       and the paginated products of one category.
How:   Counts come from a grouped subquery LEFT JOINed onto the categories,
       so categories without products report 0 instead of disappearing.
"""

import logging

from babyshop.db import Database
from babyshop.db.compose import page_window, total_pages
from babyshop.exceptions import NotFoundError
from babyshop.schemas.catalog import (
    Category,
    CategoryListResponse,
    CategoryProductsResponse,
    CategoryResponse,
)
from babyshop.schemas.common import Pagination
from babyshop.services.product_service import PRODUCT_COLUMNS, shape_products

logger = logging.getLogger(__name__)

CATEGORY_COLUMNS = """
    c.CategoryId AS _id,
    c.Name AS name,
    c.Slug AS slug,
    c.Description AS description,
    c.Icon AS icon,
    c.DisplayOrder AS displayOrder,
    c.IsActive AS isActive"""


class CategoryService:

    async def list_categories(self, db: Database) -> CategoryListResponse:
        rows = await db.query(
            f"""
            SELECT {CATEGORY_COLUMNS},
                ISNULL(pc.ProductCount, 0) AS productCount
            FROM dbo.Categories c
            LEFT JOIN (
                SELECT CategoryId, COUNT(*) AS ProductCount
                FROM dbo.Products
                WHERE IsActive = 1
                GROUP BY CategoryId
            ) pc ON pc.CategoryId = c.CategoryId
            WHERE c.IsActive = 1
            ORDER BY c.DisplayOrder ASC
            """
        )
        return CategoryListResponse(data=[Category.model_validate(row) for row in rows])

    async def get_category(self, db: Database, category_id: int) -> CategoryResponse:
        category = await self._load(db, category_id)
        count_rows = await db.query(
            "SELECT COUNT(*) AS cnt FROM dbo.Products WHERE IsActive = 1 AND CategoryId = ?",
            [category_id],
        )
        category.product_count = int(count_rows[0]["cnt"]) if count_rows else 0
        return CategoryResponse(data=category)

    async def list_category_products(
        self,
        db: Database,
        category_id: int,
        page: int = 1,
        limit: int = 20,
    ) -> CategoryProductsResponse:
        """
        Products of one category, each carrying that category as its reference.

        Raises:
            NotFoundError: the category does not exist or is inactive.
        """
        category = await self._load(db, category_id)

        offset, fetch = page_window(page, limit)
        rows = await db.query(
            f"""
            SELECT {PRODUCT_COLUMNS}
            FROM dbo.Products p
            WHERE p.IsActive = 1 AND p.CategoryId = ?
            ORDER BY p.ProductId DESC
            OFFSET ? ROWS FETCH NEXT ? ROWS ONLY
            """,
            [category_id, offset, fetch],
        )
        data = await shape_products(db, rows, category=category.as_ref())

        count_rows = await db.query(
            "SELECT COUNT(*) AS total FROM dbo.Products WHERE IsActive = 1 AND CategoryId = ?",
            [category_id],
        )
        total = int(count_rows[0]["total"]) if count_rows else 0

        return CategoryProductsResponse(
            category=category,
            data=data,
            pagination=Pagination(
                page=page, limit=limit, total=total, pages=total_pages(total, limit)
            ),
        )

    async def _load(self, db: Database, category_id: int) -> Category:
        rows = await db.query(
            f"""
            SELECT {CATEGORY_COLUMNS}
            FROM dbo.Categories c
            WHERE c.IsActive = 1 AND c.CategoryId = ?
            """,
            [category_id],
        )
        if not rows:
            raise NotFoundError(resource="Category", resource_id=category_id)
        return Category.model_validate(rows[0])


category_service = CategoryService()
