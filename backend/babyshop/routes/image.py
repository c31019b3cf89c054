"""
BabyShop Backend — Image Routes
===============================

What:  GET /api/image lists the product image files;
       POST /api/image/analyze identifies a product from a photo.
Why:   The analysis never fails because of the vision model: a missing key,
       an open circuit or an unreadable answer all produce a fallback
       analysis, and product matching still runs on what is available.
"""

from fastapi import APIRouter, Depends, Request

from babyshop.db import Database
from babyshop.dependencies import get_database
from babyshop.schemas.common import ErrorResponse
from babyshop.schemas.image import AnalyzeRequest, AnalyzeResponse, ImageListResponse
from babyshop.services.image_service import image_service

router = APIRouter(prefix="/api/image", tags=["Images"])


@router.get("", response_model=ImageListResponse, summary="List product image URLs")
async def list_images() -> ImageListResponse:
    images = image_service.list_images()
    return ImageListResponse(count=len(images), images=images)


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    responses={400: {"description": "Missing or undecodable image", "model": ErrorResponse}},
    summary="Analyze a product photo and find matching products",
)
async def analyze_image(
    request: Request,
    payload: AnalyzeRequest,
    db: Database = Depends(get_database),
) -> AnalyzeResponse:
    return await image_service.analyze(db, payload.image, str(request.base_url))
