"""
BabyShop Backend — Daily Task Service
=====================================

What:  The household checklist: list a day's tasks, tick one off, and
       generate a day's plan from the baby profile.
How:   Plan generation is a pure function (`plan_daily_tasks`) fed by two
       profile values: the number of meals per day and whether the baby
       takes medicine. The service only loads those values and persists
       the result.

Generated plan (in insertion order):
    Morning    breakfast
    ...        one feeding per meal: Morning, Day, Afternoon, then Night
    Day        medication (only when the baby takes medicine)
    Afternoon  play time
    Night      dinner, bedtime

Task labels are stored in French because the shop UI displays them as-is.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, List, Optional

from babyshop.db import Database
from babyshop.db.compose import placeholders
from babyshop.exceptions import DatabaseError, NotFoundError, ValidationError
from babyshop.schemas.household import DailyTask, DailyTaskListResponse

logger = logging.getLogger(__name__)

TIME_GROUPS = ("Morning", "Day", "Afternoon", "Night")

# Older databases carry the misspelled column; both are accepted
MEAL_COLUMNS = ("Baby_eay_cycle", "Baby_eat_cycle")

DEFAULT_MEALS = 4

BREAKFAST = "Petit déjeuner"
FEEDING = "Faire manger bébé"
MEDICATION = "Prendre les médicaments"
PLAY = "Jouer avec bébé"
DINNER = "Dîner"
BEDTIME = "Dodo"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class PlannedTask:
    task: str
    group: str


def today() -> date:
    return datetime.now(timezone.utc).date()


def group_for_meal(index: int) -> str:
    """Morning, Day, Afternoon for the first three meals; Night for the rest."""
    return TIME_GROUPS[min(index, len(TIME_GROUPS) - 1)]


def parse_meal_count(raw: Any) -> int:
    """
    Meals per day from the free-text profile column.

    Empty means the default of 4. Otherwise the leading integer is used
    ("5 repas" → 5); text without one, or a negative count, yields no meals.
    """
    if raw is None or raw == "" or raw == 0:
        return DEFAULT_MEALS
    if isinstance(raw, (int, float)):
        return max(0, int(raw))
    match = _LEADING_INT.match(str(raw))
    if not match:
        return 0
    return max(0, int(match.group(1)))


def plan_daily_tasks(meals: int, takes_medicine: bool) -> List[PlannedTask]:
    tasks = [PlannedTask(BREAKFAST, "Morning")]
    tasks.extend(PlannedTask(FEEDING, group_for_meal(i)) for i in range(meals))
    if takes_medicine:
        tasks.append(PlannedTask(MEDICATION, "Day"))
    tasks.append(PlannedTask(PLAY, "Afternoon"))
    tasks.append(PlannedTask(DINNER, "Night"))
    tasks.append(PlannedTask(BEDTIME, "Night"))
    return tasks


class DailyTaskService:

    async def list_tasks(self, db: Database, day: Optional[date] = None) -> DailyTaskListResponse:
        day = day or today()
        rows = await db.query(
            """
            SELECT
                TaskId = dt.Id,
                dt.Day,
                dt.Task,
                dt.Task_Is_Completed,
                dt.Time_Group
            FROM dbo.Daily_Task dt
            WHERE dt.Day = ?
            ORDER BY dt.Time_Group ASC, dt.Task ASC
            """,
            [day.isoformat()],
        )
        return DailyTaskListResponse(data=[DailyTask.model_validate(row) for row in rows])

    async def set_completed(self, db: Database, task_id: int, completed: bool) -> None:
        """
        Update first, then check the row exists. An UPDATE reports no rows
        back through `query()`, so existence needs its own SELECT.
        """
        await db.query(
            "UPDATE dbo.Daily_Task SET Task_Is_Completed = ? WHERE Id = ?",
            [bool(completed), task_id],
        )
        exists = await db.query("SELECT 1 AS found FROM dbo.Daily_Task WHERE Id = ?", [task_id])
        if not exists:
            raise NotFoundError(resource="Task", resource_id=task_id)

    async def generate(
        self,
        db: Database,
        inviter_id: Optional[str],
        day: Optional[date] = None,
    ) -> int:
        """
        Replace a day's tasks with the plan derived from one baby profile.

        Returns:
            Number of tasks inserted.

        Raises:
            ValidationError: no inviter id supplied.
            DatabaseError:   dbo.Inviter has no meal-cycle column.
            NotFoundError:   the profile does not exist.
        """
        if not inviter_id:
            raise ValidationError(message="inviterId is required", field="inviterId")

        meals_column = await self._resolve_meal_column(db)

        # meals_column comes from MEAL_COLUMNS, never from the request
        profile_rows = await db.query(
            f"""
            SELECT {meals_column} AS meals, Is_baby_taking_medecine
            FROM dbo.Inviter
            WHERE Inviter_id = ?
            """,
            [inviter_id],
        )
        if not profile_rows:
            raise NotFoundError(resource="Inviter", resource_id=inviter_id)

        profile = profile_rows[0]
        plan = plan_daily_tasks(
            meals=parse_meal_count(profile.get("meals")),
            takes_medicine=bool(profile.get("Is_baby_taking_medecine")),
        )
        day_value = (day or today()).isoformat()

        await db.query("DELETE FROM dbo.Daily_Task WHERE Day = ?", [day_value])
        inserted = 0
        for item in plan:
            await db.query(
                "INSERT INTO dbo.Daily_Task (Day, Task, Task_Is_Completed, Time_Group) "
                "VALUES (?, ?, 0, ?)",
                [day_value, item.task, item.group],
            )
            inserted += 1

        logger.info("Generated %d task(s) for %s from inviter %s", inserted, day_value, inviter_id)
        return inserted

    async def _resolve_meal_column(self, db: Database) -> str:
        rows = await db.query(
            f"""
            SELECT name FROM sys.columns
            WHERE object_id = OBJECT_ID('dbo.Inviter') AND name IN ({placeholders(len(MEAL_COLUMNS))})
            """,
            list(MEAL_COLUMNS),
        )
        present = {row["name"] for row in rows}
        for column in MEAL_COLUMNS:
            if column in present:
                return column
        raise DatabaseError(
            message="Meal cycle column not found on dbo.Inviter",
            context={"expected_any_of": list(MEAL_COLUMNS)},
        )


daily_task_service = DailyTaskService()
