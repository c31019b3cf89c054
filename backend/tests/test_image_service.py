"""
BabyShop Backend — Image Service Unit Tests
===========================================

What we test:
    ✅ Image directory listing (extension filter, missing directory)
    ✅ Base64 / data URL decoding and its 400 errors
    ✅ Token extraction and product scoring
    ✅ Matching: one OR query, ranking, image URL, top 5
    ❌ Real Gemini calls (the vision service is patched)
"""

import base64
from unittest.mock import AsyncMock, patch

import pytest

from babyshop.exceptions import ValidationError
from babyshop.schemas.image import ImageAnalysis
from babyshop.services.image_service import (
    decode_image,
    extract_tokens,
    image_service,
    list_image_urls,
    score_product,
)

PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"


class TestListImageUrls:

    def test_lists_images_sorted(self, tmp_path):
        for name in ("b.png", "a.JPG", "notes.txt", "c.avif"):
            (tmp_path / name).write_bytes(b"x")
        (tmp_path / "nested.jpg").mkdir()

        urls = list_image_urls(str(tmp_path), "/images/products")

        assert urls == ["/images/products/a.JPG", "/images/products/b.png", "/images/products/c.avif"]

    def test_missing_directory(self, tmp_path):
        assert list_image_urls(str(tmp_path / "absent"), "/images/products") == []


class TestDecodeImage:

    def test_bare_base64_is_jpeg(self):
        image, media_type = decode_image(base64.b64encode(PNG_BYTES).decode())
        assert image == PNG_BYTES
        assert media_type == "image/jpeg"

    def test_data_url_keeps_media_type(self):
        payload = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()
        image, media_type = decode_image(payload)
        assert image == PNG_BYTES
        assert media_type == "image/png"

    @pytest.mark.parametrize("payload", [None, "", "   "])
    def test_missing_image(self, payload):
        with pytest.raises(ValidationError):
            decode_image(payload)

    def test_invalid_base64(self):
        with pytest.raises(ValidationError) as exc_info:
            decode_image("not*base64!")
        assert exc_info.value.field == "image"


class TestTokensAndScoring:

    def test_tokens_from_every_field(self):
        analysis = ImageAnalysis(
            productNameEn="Baby Bottle",
            productNameFr="Biberon anti colique",
            keywords=["Bottle", "PP", "verre"],
            brandDetected="Avent",
            serialNumber="SCF-035",
        )
        assert extract_tokens(analysis) == [
            "baby", "bottle", "biberon", "anti", "colique", "verre", "avent", "scf-035",
        ]

    def test_no_tokens(self):
        assert extract_tokens(ImageAnalysis(description="AI analysis failed.")) == []

    def test_name_hits(self):
        assert score_product("Biberon verre", ["biberon", "verre", "tétine"]) == 4

    def test_brand_and_serial_count_per_token(self):
        name = "Philips Avent biberon SCF-035"
        score = score_product(name, ["biberon", "lait"], brand="Avent", serial="scf-035")
        # biberon: 2 + 5 + 10, lait: 5 + 10
        assert score == 32

    def test_missing_name(self):
        assert score_product(None, ["biberon"]) == 0


def product(pid, name):
    return {
        "_id": pid,
        "name": name,
        "slug": name.lower().replace(" ", "-"),
        "description": None,
        "brand": None,
        "price": 10.0 + pid,
        "currency": "EUR",
        "stock": 3,
        "rating": None,
        "isActive": True,
        "isFeatured": False,
        "categoryName": None,
        "categorySlug": None,
        "categoryIcon": None,
    }


class TestFindMatchingProducts:

    @pytest.mark.asyncio
    async def test_no_tokens_no_query(self, mock_database):
        matches = await image_service.find_matching_products(
            mock_database, ImageAnalysis(), "http://test/"
        )
        assert matches == []
        mock_database.query.assert_not_called()

    @pytest.mark.asyncio
    async def test_ranked_matches(self, mock_database):
        rows = [product(1, "Doudou lapin"), product(2, "Biberon verre 240ml")]
        images = [{"ProductId": 2, "ImagePath": "biberon.jpg", "DisplayOrder": 1}]
        mock_database.query.side_effect = [rows, images]
        analysis = ImageAnalysis(productNameFr="biberon", keywords=["verre"])

        matches = await image_service.find_matching_products(mock_database, analysis, "http://test/")

        sql, params = mock_database.query.call_args_list[0].args
        assert "TOP 15" in sql
        assert "p.IsActive = 1" in sql
        assert params == ["%biberon%", "%biberon%", "%verre%", "%verre%"]

        assert [m.id for m in matches] == [2, 1]
        assert matches[0].similarity_score == 4
        assert matches[0].prix == 12.0
        assert matches[0].image_url == "http://test/images/products/biberon.jpg"
        assert matches[1].image_url is None

        body = matches[0].model_dump(by_alias=True)
        assert body["similarityScore"] == 4
        assert body["stock"] == 3

    @pytest.mark.asyncio
    async def test_at_most_five(self, mock_database):
        rows = [product(i, f"Biberon {i}") for i in range(1, 9)]
        mock_database.query.side_effect = [rows, []]

        matches = await image_service.find_matching_products(
            mock_database, ImageAnalysis(keywords=["biberon"]), "http://test/"
        )

        assert len(matches) == 5


class TestAnalyze:

    @pytest.mark.asyncio
    async def test_analyze_uses_vision_answer(self, mock_database):
        analysis = ImageAnalysis(productNameEn="Stroller", brandDetected="Yoyo")
        mock_database.query.side_effect = [[], []]
        payload = "data:image/webp;base64," + base64.b64encode(PNG_BYTES).decode()

        with patch("babyshop.services.image_service.gemini_service") as vision:
            vision.describe_image = AsyncMock(return_value=analysis)
            result = await image_service.analyze(mock_database, payload, "http://test/")

        vision.describe_image.assert_awaited_once_with(PNG_BYTES, "image/webp")
        assert result.analysis.product_name_en == "Stroller"
        assert result.matched_products == []

    @pytest.mark.asyncio
    async def test_analyze_rejects_missing_image(self, mock_database):
        with pytest.raises(ValidationError):
            await image_service.analyze(mock_database, None, "http://test/")
