"""
Startup schema bootstrap.

The catalog tables (Products, Categories, ProductImages, Articles) are owned
by the shop's back office and must already exist. The household tables are
owned by this service and are created on first start if missing. Each
statement is guarded with OBJECT_ID so running it again is a no-op.
"""

import logging

from babyshop.db.connection import Database

logger = logging.getLogger(__name__)

DAILY_TASK_DDL = """
IF OBJECT_ID(N'dbo.Daily_Task', N'U') IS NULL
BEGIN
    CREATE TABLE dbo.Daily_Task (
        Id INT IDENTITY(1,1) PRIMARY KEY,
        Day DATE NOT NULL,
        Task NVARCHAR(200) NOT NULL,
        Task_Is_Completed BIT NOT NULL DEFAULT 0,
        Time_Group NVARCHAR(20) NOT NULL
    );
    CREATE INDEX IX_Daily_Task_Day_TimeGroup ON dbo.Daily_Task(Day, Time_Group);
END
"""

INVITER_DDL = """
IF OBJECT_ID(N'dbo.Inviter', N'U') IS NULL
BEGIN
    CREATE TABLE dbo.Inviter (
        Inviter_id NVARCHAR(64) NOT NULL PRIMARY KEY,
        Baby_name NVARCHAR(100) NULL,
        Baby_age NVARCHAR(50) NULL,
        Baby_alimentation NVARCHAR(100) NULL,
        Baby_sleep_cycle NVARCHAR(100) NULL,
        Baby_bath_cycle NVARCHAR(100) NULL,
        Baby_eay_cycle NVARCHAR(100) NULL,
        Is_baby_taking_medecine BIT NOT NULL DEFAULT 0,
        Is_baby_consulting_doctor BIT NOT NULL DEFAULT 0
    );
END
"""

STATEMENTS = (
    ("dbo.Daily_Task", DAILY_TASK_DDL),
    ("dbo.Inviter", INVITER_DDL),
)


async def ensure_schema(db: Database) -> None:
    """Create the household tables when they are missing."""
    for table, ddl in STATEMENTS:
        await db.query(ddl)
        logger.info("Schema ready: %s", table)
