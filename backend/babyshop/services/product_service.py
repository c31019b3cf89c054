"""
BabyShop Backend — Product Service
==================================

What:  Read-side queries for the product catalog.
Why:   Routes stay thin; the SQL, the image lookup and the row → model
       shaping live here and can be tested against a mocked `Database`.
How:   One SELECT for the page of products (category joined in), one
       `IN (...)` SELECT for all their images, one COUNT with the same WHERE.

Query conventions (shared with CategoryService and ImageService):
    - Only active products are ever returned (`p.IsActive = 1`).
    - Newest first: `ORDER BY p.ProductId DESC`.
    - Paging with `OFFSET ? ROWS FETCH NEXT ? ROWS ONLY`.
    - Images ordered by `DisplayOrder`, grouped per product in Python.
"""

import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping, Optional

from babyshop.db import Database
from babyshop.db.compose import Conditions, like, page_window, placeholders, total_pages
from babyshop.exceptions import NotFoundError, ValidationError
from babyshop.schemas.catalog import (
    CategoryRef,
    Product,
    ProductListResponse,
    ProductResponse,
    ProductSearchResponse,
)
from babyshop.schemas.common import Pagination

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = """
    p.ProductId AS _id,
    p.Name AS name,
    p.Slug AS slug,
    p.Description AS description,
    p.Brand AS brand,
    p.Price AS price,
    p.Currency AS currency,
    p.Stock AS stock,
    p.Rating AS rating,
    p.IsActive AS isActive,
    p.IsFeatured AS isFeatured"""

CATEGORY_REF_COLUMNS = """
    c.Name AS categoryName,
    c.Slug AS categorySlug,
    c.Icon AS categoryIcon"""

PRODUCTS_WITH_CATEGORY = """
FROM dbo.Products p
LEFT JOIN dbo.Categories c ON c.CategoryId = p.CategoryId"""

SEARCH_LIMIT = 20


async def fetch_image_map(db: Database, product_ids: Iterable[int]) -> Dict[int, List[str]]:
    """Image paths per product id, in DisplayOrder. One query for all ids."""
    ids = list(dict.fromkeys(product_ids))
    if not ids:
        return {}
    rows = await db.query(
        f"""
        SELECT ProductId, ImagePath, DisplayOrder
        FROM dbo.ProductImages
        WHERE ProductId IN ({placeholders(len(ids))})
        ORDER BY DisplayOrder ASC
        """,
        ids,
    )
    images: Dict[int, List[str]] = defaultdict(list)
    for row in rows:
        images[row["ProductId"]].append(row["ImagePath"])
    return dict(images)


def category_ref_from_row(row: Mapping[str, Any]) -> CategoryRef:
    return CategoryRef(
        name=row.get("categoryName"),
        slug=row.get("categorySlug"),
        icon=row.get("categoryIcon"),
    )


def to_product(
    row: Mapping[str, Any],
    images: Mapping[int, List[str]],
    category: Optional[CategoryRef] = None,
) -> Product:
    """Merge a product row with its images and category reference."""
    return Product.model_validate(
        {
            **row,
            "images": images.get(row["_id"], []),
            "categoryId": category or category_ref_from_row(row),
        }
    )


async def shape_products(
    db: Database,
    rows: List[Dict[str, Any]],
    category: Optional[CategoryRef] = None,
) -> List[Product]:
    images = await fetch_image_map(db, (row["_id"] for row in rows))
    return [to_product(row, images, category) for row in rows]


class ProductService:
    """
    Catalog reads for /api/products.

    Stateless: every method takes the `Database` it should use.
    """

    async def list_products(
        self,
        db: Database,
        page: int = 1,
        limit: int = 20,
        category_id: Optional[int] = None,
        featured: bool = False,
    ) -> ProductListResponse:
        """
        One page of active products, newest first.

        The COUNT query reuses the same `Conditions`, so its parameters always
        match the filters of the page query.
        """
        where = Conditions("p.IsActive = 1")
        if category_id is not None:
            where.add("p.CategoryId = ?", category_id)
        if featured:
            where.add("p.IsFeatured = 1")

        offset, fetch = page_window(page, limit)
        rows = await db.query(
            f"""
            SELECT {PRODUCT_COLUMNS}, {CATEGORY_REF_COLUMNS}
            {PRODUCTS_WITH_CATEGORY}
            WHERE {where.sql}
            ORDER BY p.ProductId DESC
            OFFSET ? ROWS FETCH NEXT ? ROWS ONLY
            """,
            [*where.params, offset, fetch],
        )
        data = await shape_products(db, rows)

        count_rows = await db.query(
            f"SELECT COUNT(*) AS total FROM dbo.Products p WHERE {where.sql}",
            where.params,
        )
        total = int(count_rows[0]["total"]) if count_rows else 0

        return ProductListResponse(
            data=data,
            pagination=Pagination(
                page=page, limit=limit, total=total, pages=total_pages(total, limit)
            ),
        )

    async def search(self, db: Database, q: Optional[str]) -> ProductSearchResponse:
        """Up to 20 active products whose name or description contains `q`."""
        if not q or not q.strip():
            raise ValidationError(message='The search parameter "q" is required', field="q")

        pattern = like(q)
        rows = await db.query(
            f"""
            SELECT TOP {SEARCH_LIMIT} {PRODUCT_COLUMNS}, {CATEGORY_REF_COLUMNS}
            {PRODUCTS_WITH_CATEGORY}
            WHERE p.IsActive = 1 AND (p.Name LIKE ? OR p.Description LIKE ?)
            ORDER BY p.ProductId DESC
            """,
            [pattern, pattern],
        )
        data = await shape_products(db, rows)
        logger.debug("Product search %r matched %d row(s)", q, len(data))
        return ProductSearchResponse(data=data, count=len(data))

    async def get_by_slug(self, db: Database, slug: str) -> ProductResponse:
        return await self._get_one(db, "p.Slug = ?", slug)

    async def get_by_id(self, db: Database, product_id: int) -> ProductResponse:
        return await self._get_one(db, "p.ProductId = ?", product_id)

    async def _get_one(self, db: Database, clause: str, value: Any) -> ProductResponse:
        where = Conditions("p.IsActive = 1").add(clause, value)
        rows = await db.query(
            f"""
            SELECT {PRODUCT_COLUMNS}, {CATEGORY_REF_COLUMNS}
            {PRODUCTS_WITH_CATEGORY}
            WHERE {where.sql}
            """,
            where.params,
        )
        if not rows:
            raise NotFoundError(resource="Product", resource_id=value)
        product = (await shape_products(db, rows[:1]))[0]
        return ProductResponse(data=product)


product_service = ProductService()
