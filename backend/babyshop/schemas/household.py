"""
BabyShop Backend — Household Schemas (daily tasks, baby profile)
================================================================

What:  Request and response models for the daily-task tracker and the
       baby profile ("inviter") that the tracker is generated from.
Why:   Keys mirror the dbo.Daily_Task / dbo.Inviter column names because
       the frontend reads and sends them verbatim (`Task_Is_Completed`,
       `Baby_name`, ...).
"""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from babyshop.schemas.common import ApiModel


# ══════════════════════════════════════════════════════════════════════════
# Daily tasks
# ══════════════════════════════════════════════════════════════════════════


class DailyTask(ApiModel):
    task_id: int = Field(alias="TaskId")
    day: date = Field(alias="Day")
    task: str = Field(alias="Task")
    completed: bool = Field(default=False, alias="Task_Is_Completed")
    time_group: str = Field(alias="Time_Group")


class DailyTaskListResponse(BaseModel):
    success: bool = True
    data: List[DailyTask]


class DailyTaskUpdate(BaseModel):
    task_is_completed: bool = Field(default=False)


class GenerateTasksRequest(ApiModel):
    """
    inviterId is optional at the schema level so that a missing id is
    reported as a 400 business error rather than a 422 schema error.
    """
    inviter_id: Optional[str] = Field(default=None, alias="inviterId")
    day: Optional[date] = None

    @field_validator("inviter_id", mode="before")
    @classmethod
    def stringify_id(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class GenerateTasksResponse(BaseModel):
    success: bool = True
    count: int


# ══════════════════════════════════════════════════════════════════════════
# Baby profile (dbo.Inviter)
# ══════════════════════════════════════════════════════════════════════════


class InviterFields(BaseModel):
    """
    Columns a client may set. All optional; the service decides what an
    absent value means for create (NULL / false) and update (left untouched).
    """
    Baby_name: Optional[str] = None
    Baby_age: Optional[str] = None
    Baby_alimentation: Optional[str] = None
    Baby_sleep_cycle: Optional[str] = None
    Baby_bath_cycle: Optional[str] = None
    Baby_eay_cycle: Optional[str] = None
    Is_baby_taking_medecine: Optional[bool] = None
    Is_baby_consulting_doctor: Optional[bool] = None

    @field_validator(
        "Baby_name",
        "Baby_age",
        "Baby_alimentation",
        "Baby_sleep_cycle",
        "Baby_bath_cycle",
        "Baby_eay_cycle",
        mode="before",
    )
    @classmethod
    def numbers_as_text(cls, v):
        # Ages and meal counts are stored as NVARCHAR but often sent as numbers
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class InviterCreate(InviterFields):
    Inviter_id: Optional[str] = None


class InviterUpdate(InviterFields):
    pass


class InviterId(BaseModel):
    Inviter_id: str


class InviterCreatedResponse(BaseModel):
    success: bool = True
    data: InviterId
