"""
BabyShop Backend — Application Package Initializer
==================================================

What: Marks the `babyshop` directory as a Python package.
Why:  Enables module imports like `from babyshop.config import settings`.
Who:  Used by uvicorn (`uvicorn babyshop.main:app`) and pytest.

Architecture Note:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Query composition, shaping
    ├─────────────────────────────────────┤
    │            Schemas (Data)           │  ← Pydantic API contracts
    ├─────────────────────────────────────┤
    │       db (SQL adaptation layer)     │  ← placeholders, binding, executor
    └─────────────────────────────────────┘

    Every route reaches SQL Server through `babyshop.db.Database.query()`.
    There is no ORM: services write plain SQL with positional `?` markers
    and the db layer translates, binds and executes it.
"""

__version__ = "1.0.0"
