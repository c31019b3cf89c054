"""
BabyShop Backend — Image Schemas
================================

What:  Models for the product-image listing and the photo analysis endpoint.
How:   `ImageAnalysis` is both the shape the vision model is asked to answer
       with and the shape returned to the client; unknown keys in the model's
       answer are ignored and a malformed keyword list is cleaned up rather
       than rejected.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from babyshop.schemas.catalog import Product
from babyshop.schemas.common import ApiModel


class ImageListResponse(BaseModel):
    success: bool = True
    count: int
    images: List[str]


class AnalyzeRequest(BaseModel):
    image: Optional[str] = Field(
        default=None,
        description="Base64 image, raw or as a data: URL (data:image/png;base64,...)",
    )


class ImageAnalysis(ApiModel):
    product_name_en: Optional[str] = Field(default=None, alias="productNameEn")
    product_name_fr: Optional[str] = Field(default=None, alias="productNameFr")
    description: Optional[str] = None
    usage_guide: Optional[str] = Field(default=None, alias="usageGuide")
    brand_detected: Optional[str] = Field(default=None, alias="brandDetected")
    category: Optional[str] = None
    serial_number: Optional[str] = Field(default=None, alias="serialNumber")
    keywords: List[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator(
        "product_name_en",
        "product_name_fr",
        "description",
        "usage_guide",
        "brand_detected",
        "category",
        "serial_number",
        mode="before",
    )
    @classmethod
    def text_or_none(cls, v: Any) -> Optional[str]:
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return None

    @field_validator("keywords", mode="before")
    @classmethod
    def keep_string_keywords(cls, v: Any) -> List[str]:
        if not isinstance(v, list):
            return []
        return [k for k in v if isinstance(k, str) and k]


class MatchedProduct(Product):
    similarity_score: int = Field(alias="similarityScore")
    prix: Optional[float] = None
    image_url: Optional[str] = None


class AnalyzeResponse(ApiModel):
    success: bool = True
    analysis: ImageAnalysis
    matched_products: List[MatchedProduct] = Field(alias="matchedProducts")
