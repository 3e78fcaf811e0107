"""Store connections for the migration ledger.

The ledger only needs a handful of things from a store: run a statement,
fetch rows, control a transaction and list a table's columns. StoreConnection
is that surface; SQLite goes through aiosqlite and MySQL through aiomysql.

A connector is a zero-argument callable returning an async context manager
that yields an open StoreConnection and closes it on exit.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from functools import partial
from pathlib import Path
from typing import Any, AsyncContextManager, AsyncIterator, Callable, Sequence

import aiomysql
import aiosqlite

from carestore.exceptions import StoreUnavailable
from carestore.store import DEFAULT_MYSQL_PORT, StoreLocation

SUPPORTED_DIALECTS = ("sqlite", "mysql")


class StoreConnection(ABC):
    """One open connection, as the ledger and `upgrade()` callables see it."""

    dialect: str = ""
    placeholder: str = "?"

    @abstractmethod
    async def execute(self, sql: str, params: Sequence[Any] = ()) -> None: ...

    @abstractmethod
    async def fetchall(self, sql: str, params: Sequence[Any] = ()) -> list[tuple]: ...

    @abstractmethod
    async def begin(self) -> None: ...

    @abstractmethod
    async def commit(self) -> None: ...

    @abstractmethod
    async def rollback(self) -> None: ...

    @abstractmethod
    async def column_names(self, table: str) -> set[str]: ...


Connector = Callable[[], AsyncContextManager[StoreConnection]]


class SqliteConnection(StoreConnection):
    dialect = "sqlite"
    placeholder = "?"

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> None:
        await self._db.execute(sql, tuple(params))

    async def fetchall(self, sql: str, params: Sequence[Any] = ()) -> list[tuple]:
        cursor = await self._db.execute(sql, tuple(params))
        return [tuple(row) for row in await cursor.fetchall()]

    async def begin(self) -> None:
        await self._db.execute("BEGIN")

    async def commit(self) -> None:
        await self._db.commit()

    async def rollback(self) -> None:
        await self._db.rollback()

    async def column_names(self, table: str) -> set[str]:
        rows = await self.fetchall(f"PRAGMA table_info({table})")
        return {row[1] for row in rows}


class MysqlConnection(StoreConnection):
    """aiomysql connection with autocommit off.

    MySQL commits DDL implicitly, so a rollback only undoes the data
    statements of a failed migration.
    """

    dialect = "mysql"
    placeholder = "%s"

    def __init__(self, conn: aiomysql.Connection) -> None:
        self._conn = conn

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> None:
        async with self._conn.cursor() as cursor:
            # Without args aiomysql leaves `%` in the SQL alone
            await cursor.execute(sql, tuple(params) if params else None)

    async def fetchall(self, sql: str, params: Sequence[Any] = ()) -> list[tuple]:
        async with self._conn.cursor() as cursor:
            await cursor.execute(sql, tuple(params) if params else None)
            return [tuple(row) for row in await cursor.fetchall()]

    async def begin(self) -> None:
        await self._conn.begin()

    async def commit(self) -> None:
        await self._conn.commit()

    async def rollback(self) -> None:
        await self._conn.rollback()

    async def column_names(self, table: str) -> set[str]:
        rows = await self.fetchall(
            "SELECT COLUMN_NAME FROM information_schema.COLUMNS "
            "WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = %s",
            (table,),
        )
        return {row[0] for row in rows}


@asynccontextmanager
async def connect_sqlite(db_path: str | Path) -> AsyncIterator[StoreConnection]:
    async with aiosqlite.connect(str(db_path)) as db:
        yield SqliteConnection(db)


@asynccontextmanager
async def connect_mysql(location: StoreLocation) -> AsyncIterator[StoreConnection]:
    try:
        conn = await aiomysql.connect(
            host=location.host,
            port=location.port or DEFAULT_MYSQL_PORT,
            user=location.user or None,
            password=location.password,
            db=location.database,
            charset="utf8mb4",
            autocommit=False,
        )
    except (aiomysql.Error, OSError) as e:
        raise StoreUnavailable(location.redacted(), str(e)) from e
    try:
        yield MysqlConnection(conn)
    finally:
        conn.close()


def connector_for(location: StoreLocation) -> Connector:
    """The connector matching the store technology."""
    if location.is_sqlite:
        return partial(connect_sqlite, location.sqlite_path)
    return partial(connect_mysql, location)
