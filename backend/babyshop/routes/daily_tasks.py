"""
BabyShop Backend — Daily Task Routes
====================================

What:  GET /api/daily-tasks?day=, PUT /api/daily-tasks/{id},
       POST /api/daily-tasks/generate.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from babyshop.db import Database
from babyshop.dependencies import get_database
from babyshop.schemas.common import ErrorResponse, SuccessResponse
from babyshop.schemas.household import (
    DailyTaskListResponse,
    DailyTaskUpdate,
    GenerateTasksRequest,
    GenerateTasksResponse,
)
from babyshop.services.daily_task_service import daily_task_service

router = APIRouter(prefix="/api/daily-tasks", tags=["Daily tasks"])


@router.get("", response_model=DailyTaskListResponse, summary="Tasks of one day")
async def list_tasks(
    day: Optional[date] = Query(default=None, description="YYYY-MM-DD, defaults to today (UTC)"),
    db: Database = Depends(get_database),
) -> DailyTaskListResponse:
    return await daily_task_service.list_tasks(db, day)


@router.post(
    "/generate",
    response_model=GenerateTasksResponse,
    responses={
        400: {"description": "inviterId missing", "model": ErrorResponse},
        404: {"description": "Inviter not found", "model": ErrorResponse},
    },
    summary="Regenerate a day's tasks from a baby profile",
)
async def generate_tasks(
    payload: GenerateTasksRequest,
    db: Database = Depends(get_database),
) -> GenerateTasksResponse:
    count = await daily_task_service.generate(db, payload.inviter_id, payload.day)
    return GenerateTasksResponse(count=count)


@router.put(
    "/{task_id}",
    response_model=SuccessResponse,
    responses={404: {"description": "Task not found", "model": ErrorResponse}},
    summary="Mark a task done or not done",
)
async def update_task(
    task_id: int,
    payload: DailyTaskUpdate,
    db: Database = Depends(get_database),
) -> SuccessResponse:
    await daily_task_service.set_completed(db, task_id, payload.task_is_completed)
    return SuccessResponse()
