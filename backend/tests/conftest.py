"""
BabyShop Backend — Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Tests run without SQL Server and without a Gemini key.
How:   Environment is set before any babyshop import so the settings
       singleton picks it up.

Fixtures:
    mock_database:    AsyncMock standing in for `Database` (query() → [])
    sqlite_database:  a real `Database` whose engine is in-memory SQLite
    test_client:      HTTPX AsyncClient bound to an app using mock_database
"""

import os

# Override settings BEFORE any babyshop import
os.environ["DB_USER"] = "test_user"
os.environ["DB_PASSWORD"] = "test_password"
os.environ["GEMINI_API_KEY"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from babyshop.db import Database  # noqa: E402


def sqlite_engine_factory(url, **kwargs):
    """Ignores the SQL Server URL and pool options; one shared in-memory DB."""
    return create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_database():
    """
    Usage:
        mock_database.query.side_effect = [rows_for_first_call, rows_for_second]
        result = await product_service.get_by_id(mock_database, 1)
    """
    db = AsyncMock(spec=Database)
    db.query.return_value = []
    return db


@pytest_asyncio.fixture
async def sqlite_database():
    db = Database(engine_factory=sqlite_engine_factory)
    yield db
    await db.close()


@pytest.fixture
def product_row():
    """A row as returned by the product SELECT (column aliases included)."""
    return {
        "_id": 7,
        "name": "Biberon Anti-Colique 260ml",
        "slug": "biberon-anti-colique-260ml",
        "description": "Biberon en verre pour nouveau-né",
        "brand": "Philips Avent",
        "price": 12.9,
        "currency": "EUR",
        "stock": 14,
        "rating": 4.5,
        "isActive": True,
        "isFeatured": False,
        "categoryName": "Repas",
        "categorySlug": "repas",
        "categoryIcon": "bottle",
    }


# ══════════════════════════════════════════════════════════════════════════
# HTTP Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(mock_database):
    """
    HTTPX AsyncClient talking to a fresh app that uses `mock_database`.

    ASGITransport does not run the lifespan, so no connection is attempted.
    """
    from babyshop.main import create_app

    app = create_app(mock_database)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
