"""
BabyShop Backend — FastAPI Dependencies
=======================================

What:  Hands the application's shared `Database` to route handlers.
Why:   The connection provider is created by `create_app()` and stored on
       `app.state`; routes receive it through `Depends(get_database)` instead
       of importing a module-level global, so tests can inject their own.
"""

from fastapi import Request

from babyshop.db import Database


def get_database(request: Request) -> Database:
    return request.app.state.database
