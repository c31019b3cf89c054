"""
BabyShop Backend — Middleware Package
=====================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    Request ID runs first so the logging middleware and every exception
    handler can read the ID from `request_id_var`.
"""
