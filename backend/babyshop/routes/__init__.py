"""
BabyShop Backend — API Routes
=============================

Route inventory:
    /api/products       products.py     catalog listing, search, lookups
    /api/categories     categories.py   categories and their products
    /api/articles       articles.py     parenting articles (degrade on failure)
    /api/daily-tasks    daily_tasks.py  daily task tracker
    /api/inviter        inviter.py      baby profile
    /api/image          image.py        image listing and photo analysis
    /api/health         health.py       liveness / dependency status

Handlers stay thin: validate input, call the service, return its model.
Errors raised by services are turned into JSON by the handlers in main.py.
"""
