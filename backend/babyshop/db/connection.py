"""
BabyShop Backend — Database Connection & Query Execution
=========================================================

What:  The single shared SQL Server handle and the `query()` call every
       service goes through.
Why:   All routes run plain SQL with positional markers. Keeping the
       connection lifecycle, placeholder translation and typed binding in one
       object gives them a uniform contract: rows in, list of dicts out.
How:   `Database` wraps one pooled async SQLAlchemy engine (mssql+aioodbc).

           connect()  → check credentials, open + probe with retries, cache
           query()    → validate markers, translate, bind, execute, materialize
           close()    → dispose the engine once

Who:   Constructed by `babyshop.main.create_app()`, stored on
       `app.state.database` and injected into routes with `Depends`.
When:  Connected during the application lifespan startup; closed at shutdown.

Connection policy:
    - Startup retries: fixed attempt count and fixed delay (tenacity).
      Exhaustion raises DatabaseConnectionError and aborts startup.
    - After the first success there is no health check or reconnect.
      `pool_pre_ping` is off, so a connection that went stale surfaces as a
      QueryExecutionError on the query that used it.
    - Each `query()` checks out its own connection from the pool and runs as
      one auto-committed statement (`engine.begin()`). No transactions span
      calls.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from babyshop.config import Settings, settings as default_settings
from babyshop.db.params import bind
from babyshop.db.placeholders import count_placeholders, to_text_clause
from babyshop.exceptions import (
    DatabaseConnectionError,
    ParameterCountError,
    QueryExecutionError,
)

logger = logging.getLogger(__name__)

# Failures worth another connect attempt. Driver errors arrive wrapped in
# SQLAlchemy's DBAPIError hierarchy; raw socket errors can escape before that.
CONNECT_ERRORS = (SQLAlchemyError, OSError)

EngineFactory = Callable[..., AsyncEngine]

Row = Dict[str, Any]


class Database:
    """
    Process-wide connection provider.

    At most one engine exists per instance. Concurrent first calls to
    `connect()` are serialized by a lock; later calls return the cached
    engine without touching the network.
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        engine_factory: EngineFactory = create_async_engine,
    ):
        self.settings = config or default_settings
        self._engine_factory = engine_factory
        self._engine: Optional[AsyncEngine] = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def connect(
        self,
        retries: Optional[int] = None,
        delay_ms: Optional[int] = None,
    ) -> AsyncEngine:
        """
        Open the shared engine, retrying with a fixed delay.

        Args:
            retries:  Total attempts (default DB_CONNECT_RETRIES, 3).
            delay_ms: Pause between attempts (default DB_CONNECT_RETRY_DELAY_MS, 500).

        Raises:
            ConfigurationError: DB_USER or DB_PASSWORD missing (no attempt made).
            DatabaseConnectionError: every attempt failed; chained to the last error.
        """
        if self._engine is not None:
            return self._engine

        self.settings.require_database_credentials()

        attempts = max(1, retries if retries is not None else self.settings.db_connect_retries)
        delay = delay_ms if delay_ms is not None else self.settings.db_connect_retry_delay_ms

        async with self._lock:
            if self._engine is not None:
                return self._engine

            try:
                async for attempt in AsyncRetrying(
                    stop=stop_after_attempt(attempts),
                    wait=wait_fixed(delay / 1000),
                    retry=retry_if_exception_type(CONNECT_ERRORS),
                    before_sleep=before_sleep_log(logger, logging.WARNING),
                    reraise=True,
                ):
                    with attempt:
                        self._engine = await self._open(
                            attempt.retry_state.attempt_number, attempts
                        )
            except CONNECT_ERRORS as exc:
                logger.error(
                    "Database connection failed after %d attempt(s): %s", attempts, exc
                )
                raise DatabaseConnectionError(
                    attempts=attempts,
                    context={"error": str(exc), "error_type": type(exc).__name__},
                ) from exc

        return self._engine

    async def _open(self, attempt: int, attempts: int) -> AsyncEngine:
        """One connection attempt: build the engine and probe it with SELECT 1."""
        url = self.settings.database_url
        logger.info(
            "Connecting to SQL Server %s (attempt %d/%d)",
            url.render_as_string(hide_password=True),
            attempt,
            attempts,
        )
        engine = self._engine_factory(
            url,
            pool_size=self.settings.db_pool_size,
            max_overflow=self.settings.db_max_overflow,
            pool_pre_ping=False,
            echo=self.settings.log_level == "DEBUG",
        )
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception:
            await engine.dispose()
            raise
        logger.info("Database connection established")
        return engine

    async def get_connection(self) -> AsyncEngine:
        """The shared handle, connecting on first use."""
        if self._engine is None:
            return await self.connect()
        return self._engine

    async def close(self) -> None:
        """Dispose the engine. Safe to call any number of times."""
        async with self._lock:
            engine, self._engine = self._engine, None
        if engine is None:
            return
        await engine.dispose()
        logger.info("Database connection pool closed")

    # ── Execution ─────────────────────────────────────────────────────────

    async def query(self, template: str, params: Optional[Sequence[Any]] = None) -> List[Row]:
        """
        Run one statement and return its rows.

        Args:
            template: SQL with positional `?` markers.
            params:   One value per marker, in marker order.

        Returns:
            Every row as a plain dict keyed by column alias. An empty list when
            nothing matched or the statement returns no rows (INSERT/UPDATE/DDL).

        Raises:
            ParameterCountError: marker and value counts differ (nothing executed).
            QueryExecutionError: the statement could not be built, or the driver
                rejected or failed it.
        """
        values = list(params or ())
        expected = count_placeholders(template)
        if expected != len(values):
            raise ParameterCountError(expected=expected, received=len(values))

        engine = await self.get_connection()
        try:
            statement = text(to_text_clause(template))
            bound = bind(values)
            if bound:
                statement = statement.bindparams(*(param.to_bindparam() for param in bound))

            async with engine.begin() as conn:
                result = await conn.execute(statement)
                if not result.returns_rows:
                    return []
                return [dict(row) for row in result.mappings().all()]
        except (SQLAlchemyError, ValueError) as exc:
            logger.error("Query failed: %s", exc.__class__.__name__, exc_info=True)
            raise QueryExecutionError(
                message="The database query could not be completed",
                context={"error": str(exc), "sql": template},
            ) from exc
