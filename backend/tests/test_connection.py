"""
BabyShop Backend — Database Connection & Query Tests
====================================================

What:  Tests for `Database`: connection caching, startup retries, credential
       checks, query execution and error wrapping.
How:   The engine factory is replaced. Execution tests use a real in-memory
       SQLite engine (aiosqlite); retry tests use a factory that always fails.

What we test:
    ✅ connect() opens exactly one engine, even when called concurrently
    ✅ Retries: fixed attempt count, fixed delay, then DatabaseConnectionError
    ✅ Missing credentials fail before any attempt
    ✅ Rows come back as dicts; statements without rows give []
    ✅ Driver errors become QueryExecutionError; count mismatches never execute
    ✅ close() is idempotent
"""

import asyncio
import time

import pytest

from babyshop.config import Settings
from babyshop.db import Database
from babyshop.db.params import BoundParameter
from babyshop.exceptions import (
    ConfigurationError,
    DatabaseConnectionError,
    ParameterCountError,
    QueryExecutionError,
)
from conftest import sqlite_engine_factory


class CountingFactory:
    """Engine factory that records how often it is called."""

    def __init__(self, error=None):
        self.calls = 0
        self.error = error

    def __call__(self, url, **kwargs):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return sqlite_engine_factory(url, **kwargs)


class TestConnect:

    @pytest.mark.asyncio
    async def test_connect_is_cached(self):
        factory = CountingFactory()
        db = Database(engine_factory=factory)
        try:
            first = await db.connect()
            second = await db.connect()
            assert first is second
            assert factory.calls == 1
            assert db.is_connected
        finally:
            await db.close()

    @pytest.mark.asyncio
    async def test_concurrent_connects_open_one_engine(self):
        factory = CountingFactory()
        db = Database(engine_factory=factory)
        try:
            engines = await asyncio.gather(db.connect(), db.connect(), db.connect())
            assert factory.calls == 1
            assert engines[0] is engines[1] is engines[2]
        finally:
            await db.close()

    @pytest.mark.asyncio
    async def test_retries_then_raises(self):
        factory = CountingFactory(error=ConnectionRefusedError("refused"))
        db = Database(engine_factory=factory)

        start = time.monotonic()
        with pytest.raises(DatabaseConnectionError) as exc_info:
            await db.connect(retries=3, delay_ms=50)
        elapsed = time.monotonic() - start

        assert factory.calls == 3
        # Two pauses between three attempts
        assert elapsed >= 0.09
        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.__cause__, ConnectionRefusedError)
        assert not db.is_connected

    @pytest.mark.asyncio
    async def test_single_attempt_when_retries_is_one(self):
        factory = CountingFactory(error=OSError("no route"))
        db = Database(engine_factory=factory)

        with pytest.raises(DatabaseConnectionError):
            await db.connect(retries=1, delay_ms=0)
        assert factory.calls == 1

    @pytest.mark.asyncio
    async def test_missing_credentials_fail_before_any_attempt(self):
        factory = CountingFactory()
        config = Settings(db_user="", db_password="")
        db = Database(config=config, engine_factory=factory)

        with pytest.raises(ConfigurationError) as exc_info:
            await db.connect()
        assert factory.calls == 0
        assert exc_info.value.context["missing"] == ["DB_USER", "DB_PASSWORD"]

    @pytest.mark.asyncio
    async def test_get_connection_connects_lazily(self):
        factory = CountingFactory()
        db = Database(engine_factory=factory)
        try:
            assert not db.is_connected
            await db.get_connection()
            await db.get_connection()
            assert factory.calls == 1
        finally:
            await db.close()


class TestClose:

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, sqlite_database):
        await sqlite_database.connect()
        await sqlite_database.close()
        await sqlite_database.close()
        assert not sqlite_database.is_connected

    @pytest.mark.asyncio
    async def test_close_without_connect(self):
        db = Database(engine_factory=CountingFactory())
        await db.close()
        assert not db.is_connected


class TestQuery:

    @pytest.mark.asyncio
    async def test_select_returns_dicts(self, sqlite_database):
        rows = await sqlite_database.query("SELECT 1 AS ok")
        assert rows == [{"ok": 1}]

    @pytest.mark.asyncio
    async def test_positional_parameters(self, sqlite_database):
        await sqlite_database.query("CREATE TABLE t (a INTEGER, b TEXT)")
        await sqlite_database.query("INSERT INTO t (a, b) VALUES (?, ?)", [5, "x"])
        await sqlite_database.query("INSERT INTO t (a, b) VALUES (?, ?)", [6, "y"])

        rows = await sqlite_database.query("SELECT * FROM t WHERE a = ? AND b = ?", [5, "x"])
        assert rows == [{"a": 5, "b": "x"}]

    @pytest.mark.asyncio
    async def test_statements_without_rows_return_empty_list(self, sqlite_database):
        assert await sqlite_database.query("CREATE TABLE u (a INTEGER)") == []
        assert await sqlite_database.query("INSERT INTO u (a) VALUES (?)", [1]) == []
        assert await sqlite_database.query("UPDATE u SET a = ? WHERE a = ?", [2, 1]) == []

    @pytest.mark.asyncio
    async def test_empty_select(self, sqlite_database):
        await sqlite_database.query("CREATE TABLE v (a INTEGER)")
        assert await sqlite_database.query("SELECT a FROM v WHERE a = ?", [1]) == []

    @pytest.mark.asyncio
    async def test_each_query_commits(self, sqlite_database):
        await sqlite_database.query("CREATE TABLE w (a INTEGER)")
        await sqlite_database.query("INSERT INTO w (a) VALUES (?)", [3])
        rows = await sqlite_database.query("SELECT COUNT(*) AS n FROM w")
        assert rows[0]["n"] == 1

    @pytest.mark.asyncio
    async def test_null_and_explicit_parameters(self, sqlite_database):
        await sqlite_database.query("CREATE TABLE n (a INTEGER, b TEXT)")
        await sqlite_database.query(
            "INSERT INTO n (a, b) VALUES (?, ?)", [BoundParameter.integer("4"), None]
        )
        rows = await sqlite_database.query("SELECT a, b FROM n")
        assert rows == [{"a": 4, "b": None}]

    @pytest.mark.asyncio
    async def test_driver_error_is_wrapped(self, sqlite_database):
        with pytest.raises(QueryExecutionError) as exc_info:
            await sqlite_database.query("SELECT * FROM missing_table")
        assert exc_info.value.context["sql"] == "SELECT * FROM missing_table"
        assert exc_info.value.__cause__ is not None

    @pytest.mark.asyncio
    async def test_literal_colon_word_is_not_a_parameter(self, sqlite_database):
        rows = await sqlite_database.query("SELECT 'note :ok' AS s WHERE 1 = ?", [1])
        assert rows == [{"s": "note :ok"}]

    @pytest.mark.asyncio
    async def test_double_colon_survives(self, sqlite_database):
        rows = await sqlite_database.query("SELECT 'a::b' AS s")
        assert rows == [{"s": "a::b"}]

    @pytest.mark.asyncio
    async def test_marker_followed_by_word(self, sqlite_database):
        rows = await sqlite_database.query("SELECT ?AS x", [3])
        assert rows == [{"x": 3}]

    @pytest.mark.asyncio
    async def test_unbindable_value_is_wrapped(self, sqlite_database):
        class Unprintable:
            def __str__(self):
                raise ValueError("no text form")

        with pytest.raises(QueryExecutionError) as exc_info:
            await sqlite_database.query("SELECT ? AS x", [Unprintable()])
        assert isinstance(exc_info.value.__cause__, ValueError)

    @pytest.mark.asyncio
    async def test_count_mismatch_never_executes(self):
        factory = CountingFactory()
        db = Database(engine_factory=factory)

        with pytest.raises(ParameterCountError) as exc_info:
            await db.query("SELECT * FROM t WHERE a = ? AND b = ?", [5])
        assert exc_info.value.expected == 2
        assert exc_info.value.received == 1
        assert factory.calls == 0

    @pytest.mark.asyncio
    async def test_extra_values_rejected(self, sqlite_database):
        with pytest.raises(ParameterCountError):
            await sqlite_database.query("SELECT 1 AS ok", [1])
