"""
BabyShop Backend — Services Layer
=================================

What:  Business logic between routes (HTTP) and the SQL adaptation layer.
How:   Each service is a stateless module-level singleton whose methods take
       the `Database` to query as their first argument. Routes pass the
       instance injected by FastAPI; tests pass an AsyncMock.

Service Inventory:
    - ProductService:      product listing, search, detail
    - CategoryService:     categories with product counts
    - ArticleService:      parenting articles (degrades instead of failing)
    - DailyTaskService:    household checklist and plan generation
    - InviterService:      baby profile create/update
    - ImageService:        image listing and photo → product matching
    - VisionService:       abstract image recognition contract
    - GeminiVisionService: Gemini implementation with retry + circuit breaker
"""
