"""
BabyShop Backend — Catalog Schemas (products, categories, articles)
===================================================================

What:  Pydantic models for the read-only shop catalog.
How:   Field aliases equal the SQL column aliases the services select
       (`p.ProductId AS _id`, `p.IsActive AS isActive`, ...), so a row dict
       validates directly with `Model.model_validate(row)`.
"""

from typing import List, Optional

from pydantic import Field

from babyshop.schemas.common import ApiModel, Pagination


# ══════════════════════════════════════════════════════════════════════════
# Products
# ══════════════════════════════════════════════════════════════════════════


class CategoryRef(ApiModel):
    """Category summary embedded in each product under `categoryId`."""
    name: Optional[str] = None
    slug: Optional[str] = None
    icon: Optional[str] = None


class Product(ApiModel):
    id: int = Field(alias="_id")
    name: str
    slug: Optional[str] = None
    description: Optional[str] = None
    brand: Optional[str] = None
    price: Optional[float] = None
    currency: Optional[str] = None
    stock: Optional[int] = None
    rating: Optional[float] = None
    is_active: Optional[bool] = Field(default=None, alias="isActive")
    is_featured: Optional[bool] = Field(default=None, alias="isFeatured")
    images: List[str] = Field(default_factory=list, description="Image paths by DisplayOrder")
    category: Optional[CategoryRef] = Field(default=None, alias="categoryId")


class ProductListResponse(ApiModel):
    success: bool = True
    data: List[Product]
    pagination: Pagination


class ProductSearchResponse(ApiModel):
    success: bool = True
    data: List[Product]
    count: int


class ProductResponse(ApiModel):
    success: bool = True
    data: Product


# ══════════════════════════════════════════════════════════════════════════
# Categories
# ══════════════════════════════════════════════════════════════════════════


class Category(ApiModel):
    id: int = Field(alias="_id")
    name: str
    slug: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    display_order: Optional[int] = Field(default=None, alias="displayOrder")
    is_active: Optional[bool] = Field(default=None, alias="isActive")
    product_count: Optional[int] = Field(default=None, alias="productCount")

    def as_ref(self) -> CategoryRef:
        return CategoryRef(name=self.name, slug=self.slug, icon=self.icon)


class CategoryListResponse(ApiModel):
    success: bool = True
    data: List[Category]


class CategoryResponse(ApiModel):
    success: bool = True
    data: Category


class CategoryProductsResponse(ApiModel):
    success: bool = True
    category: Category
    data: List[Product]
    pagination: Pagination


# ══════════════════════════════════════════════════════════════════════════
# Articles
# ══════════════════════════════════════════════════════════════════════════


class Article(ApiModel):
    id: int = Field(alias="_id")
    title: str
    slug: Optional[str] = None
    summary: Optional[str] = None
    cover_image: Optional[str] = Field(default=None, alias="coverImage")
    age_group: Optional[str] = Field(default=None, alias="ageGroup")
    display_order: Optional[int] = Field(default=None, alias="DisplayOrder")
    is_published: Optional[bool] = Field(default=None, alias="IsPublished")
    view_count: Optional[int] = Field(default=None, alias="ViewCount")


class ArticleRef(ApiModel):
    id: int = Field(alias="_id")
    title: str
    slug: Optional[str] = None


class ArticleListResponse(ApiModel):
    success: bool = True
    data: List[Article]
    pagination: Pagination


class ArticleTagResponse(ArticleListResponse):
    tag: str


class ArticleResponse(ApiModel):
    success: bool = True
    data: Article


class ArticleProductsResponse(ApiModel):
    """Products linked to an article. No link table exists yet, so `data` is empty."""
    success: bool = True
    article: Optional[ArticleRef] = None
    data: List[Product] = Field(default_factory=list)


class ArticleViewResponse(ApiModel):
    success: bool = True
    view_count: int = Field(alias="viewCount")
