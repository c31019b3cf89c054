"""
BabyShop Backend — Baby Profile ("Inviter") Service
===================================================

What:  Create and partially update rows of dbo.Inviter.
How:   The UPDATE statement is built only from the whitelisted column names
       in UPDATABLE_COLUMNS; request values always travel as parameters.
"""

import logging
import uuid
from typing import Any, Dict

from babyshop.db import Database
from babyshop.db.compose import placeholders
from babyshop.exceptions import NotFoundError, ValidationError
from babyshop.schemas.household import InviterCreate

logger = logging.getLogger(__name__)

TEXT_COLUMNS = (
    "Baby_name",
    "Baby_age",
    "Baby_alimentation",
    "Baby_sleep_cycle",
    "Baby_bath_cycle",
    "Baby_eay_cycle",
)

FLAG_COLUMNS = (
    "Is_baby_taking_medecine",
    "Is_baby_consulting_doctor",
)

UPDATABLE_COLUMNS = TEXT_COLUMNS + FLAG_COLUMNS


class InviterService:

    async def create(self, db: Database, payload: InviterCreate) -> str:
        """
        Insert a profile and return its id.

        The id is taken from the payload when given, otherwise a new UUID.
        Empty text fields are stored as NULL; flags default to false.
        """
        inviter_id = payload.Inviter_id or str(uuid.uuid4())
        values = [getattr(payload, column) or None for column in TEXT_COLUMNS]
        flags = [bool(getattr(payload, column)) for column in FLAG_COLUMNS]

        columns = ("Inviter_id",) + UPDATABLE_COLUMNS
        column_list = ", ".join(columns)
        await db.query(
            f"""
            INSERT INTO dbo.Inviter ({column_list})
            VALUES ({placeholders(len(columns))})
            """,
            [inviter_id, *values, *flags],
        )
        logger.info("Created inviter %s", inviter_id)
        return inviter_id

    async def update(self, db: Database, inviter_id: str, changes: Dict[str, Any]) -> None:
        """
        Set only the supplied columns. An explicit null clears a column.

        Raises:
            ValidationError: none of the known columns was supplied.
            NotFoundError:   no profile with that id.
        """
        fields = [column for column in UPDATABLE_COLUMNS if column in changes]
        if not fields:
            raise ValidationError(message="No fields to update")

        set_clause = ", ".join(f"{column} = ?" for column in fields)
        await db.query(
            f"UPDATE dbo.Inviter SET {set_clause} WHERE Inviter_id = ?",
            [*(changes[column] for column in fields), inviter_id],
        )
        exists = await db.query(
            "SELECT 1 AS found FROM dbo.Inviter WHERE Inviter_id = ?", [inviter_id]
        )
        if not exists:
            raise NotFoundError(resource="Inviter", resource_id=inviter_id)


inviter_service = InviterService()
