"""
BabyShop Backend — API Endpoint Tests
=====================================

What:  HTTP-level tests through the full middleware and error-handler stack.
How:   `test_client` serves an app built around `mock_database`; each test
       scripts the rows the database returns.

What we test:
    ✅ Response envelopes and JSON keys
    ✅ Error mapping: 400 / 404 / 500 with request_id, no SQL leaked
    ✅ Query/body validation (422) and route ordering
    ✅ X-Request-ID propagation and the health report
"""

import base64
from unittest.mock import AsyncMock, patch

import pytest

from babyshop.exceptions import QueryExecutionError
from babyshop.schemas.image import ImageAnalysis


class TestProductRoutes:

    @pytest.mark.asyncio
    async def test_list_products(self, test_client, mock_database, product_row):
        mock_database.query.side_effect = [[product_row], [], [{"total": 1}]]

        response = await test_client.get("/api/products", params={"page": 1, "limit": 10})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"][0]["_id"] == 7
        assert body["data"][0]["categoryId"]["slug"] == "repas"
        assert body["pagination"] == {"page": 1, "limit": 10, "total": 1, "pages": 1}

    @pytest.mark.asyncio
    async def test_category_filter_alias(self, test_client, mock_database):
        mock_database.query.side_effect = [[], [{"total": 0}]]

        response = await test_client.get("/api/products", params={"categoryId": 3, "featured": "true"})

        assert response.status_code == 200
        assert mock_database.query.call_args_list[1].args[1] == [3]

    @pytest.mark.asyncio
    async def test_invalid_limit(self, test_client):
        response = await test_client.get("/api/products", params={"limit": 0})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_search_requires_q(self, test_client):
        response = await test_client.get("/api/products/search")

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_search_is_not_taken_as_an_id(self, test_client, mock_database, product_row):
        mock_database.query.side_effect = [[product_row], []]

        response = await test_client.get("/api/products/search", params={"q": "bib"})

        assert response.status_code == 200
        assert response.json()["count"] == 1

    @pytest.mark.asyncio
    async def test_by_category_path(self, test_client, mock_database):
        mock_database.query.side_effect = [[], [{"total": 0}]]

        response = await test_client.get("/api/products/category/5")

        assert response.status_code == 200
        assert mock_database.query.call_args_list[0].args[1] == [5, 0, 20]

    @pytest.mark.asyncio
    async def test_product_not_found(self, test_client):
        response = await test_client.get("/api/products/999")

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "not_found"
        assert body["request_id"] == response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_database_error_is_generic(self, test_client, mock_database):
        mock_database.query.side_effect = QueryExecutionError(
            context={"error": "Invalid object name", "sql": "SELECT secret FROM dbo.Products"}
        )

        response = await test_client.get("/api/products/slug/biberon")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert "SELECT" not in response.text
        assert "Invalid object name" not in response.text


class TestOtherResources:

    @pytest.mark.asyncio
    async def test_categories(self, test_client, mock_database):
        mock_database.query.return_value = [{"_id": 1, "name": "Repas", "productCount": 2}]

        response = await test_client.get("/api/categories")

        assert response.status_code == 200
        assert response.json()["data"][0]["productCount"] == 2

    @pytest.mark.asyncio
    async def test_articles_degrade(self, test_client, mock_database):
        mock_database.query.side_effect = QueryExecutionError()

        response = await test_client.get("/api/articles")

        assert response.status_code == 200
        assert response.json()["data"] == []

    @pytest.mark.asyncio
    async def test_article_view(self, test_client, mock_database):
        mock_database.query.side_effect = [[], [{"ViewCount": 3}]]

        response = await test_client.put("/api/articles/4/view")

        assert response.json() == {"success": True, "viewCount": 3}

    @pytest.mark.asyncio
    async def test_update_task(self, test_client, mock_database):
        mock_database.query.side_effect = [[], [{"found": 1}]]

        response = await test_client.put("/api/daily-tasks/8", json={"task_is_completed": True})

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert mock_database.query.call_args_list[0].args[1] == [True, 8]

    @pytest.mark.asyncio
    async def test_generate_requires_inviter(self, test_client):
        response = await test_client.post("/api/daily-tasks/generate", json={})

        assert response.status_code == 400
        assert response.json()["message"] == "inviterId is required"

    @pytest.mark.asyncio
    async def test_generate(self, test_client):
        with patch("babyshop.routes.daily_tasks.daily_task_service") as service:
            service.generate = AsyncMock(return_value=8)
            response = await test_client.post(
                "/api/daily-tasks/generate", json={"inviterId": 12, "day": "2024-05-02"}
            )

        assert response.json() == {"success": True, "count": 8}
        args = service.generate.call_args.args
        assert args[1] == "12"
        assert args[2].isoformat() == "2024-05-02"

    @pytest.mark.asyncio
    async def test_create_inviter(self, test_client, mock_database):
        response = await test_client.post("/api/inviter", json={"Inviter_id": "u1", "Baby_name": "Léa"})

        assert response.status_code == 201
        assert response.json() == {"success": True, "data": {"Inviter_id": "u1"}}

    @pytest.mark.asyncio
    async def test_patch_inviter_sends_only_supplied_keys(self, test_client, mock_database):
        mock_database.query.side_effect = [[], [{"found": 1}]]

        response = await test_client.patch("/api/inviter/u1", json={"Baby_age": None})

        assert response.status_code == 200
        sql, params = mock_database.query.call_args_list[0].args
        assert sql == "UPDATE dbo.Inviter SET Baby_age = ? WHERE Inviter_id = ?"
        assert params == [None, "u1"]

    @pytest.mark.asyncio
    async def test_patch_inviter_without_fields(self, test_client):
        response = await test_client.patch("/api/inviter/u1", json={})
        assert response.status_code == 400


class TestImageRoutes:

    @pytest.mark.asyncio
    async def test_list_images(self, test_client):
        with patch("babyshop.routes.image.image_service") as service:
            service.list_images.return_value = ["/images/products/a.jpg"]
            response = await test_client.get("/api/image")

        assert response.json() == {
            "success": True,
            "count": 1,
            "images": ["/images/products/a.jpg"],
        }

    @pytest.mark.asyncio
    async def test_analyze_without_key_still_answers(self, test_client, mock_database):
        payload = {"image": base64.b64encode(b"fake-jpeg").decode()}

        response = await test_client.post("/api/image/analyze", json=payload)

        assert response.status_code == 200
        body = response.json()
        assert body["analysis"]["description"] == "AI analysis is unavailable at the moment."
        assert body["matchedProducts"] == []

    @pytest.mark.asyncio
    async def test_analyze_matches(self, test_client, mock_database, product_row):
        mock_database.query.side_effect = [[product_row], []]
        analysis = ImageAnalysis(productNameFr="Biberon")
        payload = {"image": "data:image/png;base64," + base64.b64encode(b"png").decode()}

        with patch("babyshop.services.image_service.gemini_service") as vision:
            vision.describe_image = AsyncMock(return_value=analysis)
            response = await test_client.post("/api/image/analyze", json=payload)

        match = response.json()["matchedProducts"][0]
        assert match["similarityScore"] == 2
        assert match["prix"] == 12.9
        assert match["image_url"] is None

    @pytest.mark.asyncio
    async def test_analyze_bad_image(self, test_client):
        response = await test_client.post("/api/image/analyze", json={"image": "%%%"})
        assert response.status_code == 400


class TestHealthAndMiddleware:

    @pytest.mark.asyncio
    async def test_health(self, test_client, mock_database):
        mock_database.query.return_value = [{"ok": 1}]

        response = await test_client.get("/api/health")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["vision"] == "disabled"
        assert body["message"] == "API BabyShop is running"

    @pytest.mark.asyncio
    async def test_health_database_down(self, test_client, mock_database):
        mock_database.query.side_effect = QueryExecutionError()

        body = (await test_client.get("/api/health")).json()

        assert body["status"] == "unhealthy"
        assert body["database"] == "disconnected"

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, test_client):
        response = await test_client.get("/api/health", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"
