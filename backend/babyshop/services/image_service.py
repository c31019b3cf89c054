"""
BabyShop Backend — Image Service
================================

What:  Product image listing and "find this product from a photo".
How:   analyze() decodes the uploaded image, asks the vision service to
       describe it, then ranks catalog products against that description:

       1. Tokens: words of both product names, keywords, brand and serial
          number, lower-cased, de-duplicated, longer than 2 characters.
       2. Candidates: up to 15 active products whose name or description
          contains any token.
       3. Score per token: +2 when the token is in the product name,
          +5 when the detected brand is in the name, +10 when the serial
          number is in the name.
       4. Top 5 by score; ties keep the candidate order (newest first).

Who:   /api/image routes.
"""

import base64
import binascii
import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple

from babyshop.config import settings
from babyshop.db import Database
from babyshop.db.compose import Conditions, like
from babyshop.exceptions import ValidationError
from babyshop.schemas.image import AnalyzeResponse, ImageAnalysis, MatchedProduct
from babyshop.services.gemini_service import gemini_service
from babyshop.services.product_service import (
    CATEGORY_REF_COLUMNS,
    PRODUCT_COLUMNS,
    PRODUCTS_WITH_CATEGORY,
    fetch_image_map,
    to_product,
)

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".avif"}

MIN_TOKEN_LENGTH = 3
CANDIDATE_LIMIT = 15
MATCH_LIMIT = 5

NAME_SCORE = 2
BRAND_SCORE = 5
SERIAL_SCORE = 10

DEFAULT_MEDIA_TYPE = "image/jpeg"

_DATA_URL = re.compile(r"^data:(?P<media>[\w.+-]+/[\w.+-]+)?(?:;[^,]*)?;base64,", re.IGNORECASE)


def list_image_urls(root: str, url_prefix: str) -> List[str]:
    """Public URLs of the image files directly under `root`, sorted by name."""
    directory = Path(root)
    if not directory.is_dir():
        return []
    return [
        f"{url_prefix.rstrip('/')}/{entry.name}"
        for entry in sorted(directory.iterdir())
        if entry.is_file() and entry.suffix.lower() in IMAGE_EXTENSIONS
    ]


def decode_image(payload: Optional[str]) -> Tuple[bytes, str]:
    """
    Raw bytes and MIME type of a base64 image.

    Accepts bare base64 or a `data:<mime>;base64,` URL; bare base64 is
    assumed to be JPEG.

    Raises:
        ValidationError: missing payload or invalid base64.
    """
    if not payload or not payload.strip():
        raise ValidationError(message="An image is required", field="image")

    media_type = DEFAULT_MEDIA_TYPE
    data = payload.strip()
    match = _DATA_URL.match(data)
    if match:
        media_type = (match.group("media") or DEFAULT_MEDIA_TYPE).lower()
        data = data[match.end():]
    elif "base64," in data:
        data = data.split("base64,", 1)[1]

    try:
        image = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError(message="The image is not valid base64 data", field="image")
    if not image:
        raise ValidationError(message="An image is required", field="image")
    return image, media_type


def extract_tokens(analysis: ImageAnalysis) -> List[str]:
    tokens: List[str] = []
    for name in (analysis.product_name_en, analysis.product_name_fr):
        if name:
            tokens.extend(name.lower().split(" "))
    tokens.extend(keyword.lower() for keyword in analysis.keywords)
    if analysis.brand_detected:
        tokens.append(analysis.brand_detected.lower())
    if analysis.serial_number:
        tokens.append(analysis.serial_number.lower())
    return [token for token in dict.fromkeys(tokens) if len(token) >= MIN_TOKEN_LENGTH]


def score_product(
    name: Optional[str],
    tokens: List[str],
    brand: Optional[str] = None,
    serial: Optional[str] = None,
) -> int:
    product_name = (name or "").lower()
    brand_hit = bool(brand) and brand.lower() in product_name
    serial_hit = bool(serial) and serial.lower() in product_name

    score = 0
    for token in tokens:
        if token in product_name:
            score += NAME_SCORE
        if brand_hit:
            score += BRAND_SCORE
        if serial_hit:
            score += SERIAL_SCORE
    return score


class ImageService:

    def list_images(self) -> List[str]:
        return list_image_urls(settings.images_root, settings.images_url_prefix)

    async def analyze(self, db: Database, payload: Optional[str], base_url: str) -> AnalyzeResponse:
        image, media_type = decode_image(payload)
        analysis = await gemini_service.describe_image(image, media_type)
        matches = await self.find_matching_products(db, analysis, base_url)
        return AnalyzeResponse(analysis=analysis, matched_products=matches)

    async def find_matching_products(
        self,
        db: Database,
        analysis: ImageAnalysis,
        base_url: str,
    ) -> List[MatchedProduct]:
        tokens = extract_tokens(analysis)
        if not tokens:
            return []

        any_token = Conditions(operator="OR")
        for token in tokens:
            pattern = like(token)
            any_token.add("(p.Name LIKE ? OR p.Description LIKE ?)", pattern, pattern)

        rows = await db.query(
            f"""
            SELECT TOP {CANDIDATE_LIMIT} {PRODUCT_COLUMNS}, {CATEGORY_REF_COLUMNS}
            {PRODUCTS_WITH_CATEGORY}
            WHERE p.IsActive = 1 AND ({any_token.sql})
            ORDER BY p.ProductId DESC
            """,
            any_token.params,
        )
        images = await fetch_image_map(db, (row["_id"] for row in rows))

        image_root = base_url.rstrip("/") + settings.images_url_prefix.rstrip("/")
        scored: List[MatchedProduct] = []
        for row in rows:
            product = to_product(row, images)
            scored.append(
                MatchedProduct(
                    **product.model_dump(by_alias=True),
                    similarityScore=score_product(
                        product.name, tokens, analysis.brand_detected, analysis.serial_number
                    ),
                    prix=product.price,
                    image_url=f"{image_root}/{product.images[0]}" if product.images else None,
                )
            )

        scored.sort(key=lambda item: item.similarity_score, reverse=True)
        logger.info("Image analysis matched %d candidate(s) on %d token(s)", len(rows), len(tokens))
        return scored[:MATCH_LIMIT]


image_service = ImageService()
