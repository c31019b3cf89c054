"""
BabyShop Backend — Baby Profile Routes
======================================

What:  POST /api/inviter (create) and PATCH /api/inviter/{id} (partial update).
How:   PATCH forwards only the keys the client actually sent
       (`exclude_unset`), so an explicit null clears a column while an
       omitted key leaves it untouched.
"""

from fastapi import APIRouter, Depends, status

from babyshop.db import Database
from babyshop.dependencies import get_database
from babyshop.schemas.common import ErrorResponse, SuccessResponse
from babyshop.schemas.household import (
    InviterCreate,
    InviterCreatedResponse,
    InviterId,
    InviterUpdate,
)
from babyshop.services.inviter_service import inviter_service

router = APIRouter(prefix="/api/inviter", tags=["Baby profile"])


@router.post(
    "",
    response_model=InviterCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a baby profile",
)
async def create_inviter(
    payload: InviterCreate,
    db: Database = Depends(get_database),
) -> InviterCreatedResponse:
    inviter_id = await inviter_service.create(db, payload)
    return InviterCreatedResponse(data=InviterId(Inviter_id=inviter_id))


@router.patch(
    "/{inviter_id}",
    response_model=SuccessResponse,
    responses={
        400: {"description": "No known field supplied", "model": ErrorResponse},
        404: {"description": "Profile not found", "model": ErrorResponse},
    },
    summary="Update some fields of a baby profile",
)
async def update_inviter(
    inviter_id: str,
    payload: InviterUpdate,
    db: Database = Depends(get_database),
) -> SuccessResponse:
    await inviter_service.update(db, inviter_id, payload.model_dump(exclude_unset=True))
    return SuccessResponse()
