"""Shared test fixtures: fakes for testing without a database server."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, BinaryIO, Sequence

import pytest

from carestore.backup.coordinator import BackupCoordinator
from carestore.backup.tools import DumpTool
from carestore.migrations.connection import StoreConnection


class FakeDumpTool(DumpTool):
    """Dump tool that emits a canned payload and records what it is fed."""

    name = "fake"

    def __init__(self, payload: bytes = b"CREATE TABLE t (id INTEGER);\n") -> None:
        self.payload = payload
        self.export_error: BaseException | None = None
        self.import_error: BaseException | None = None
        self.block_export: asyncio.Event | None = None
        self.export_started = asyncio.Event()
        self.exports = 0
        self.imported: list[bytes] = []

    async def export_to(self, sink: BinaryIO) -> None:
        self.exports += 1
        half = len(self.payload) // 2
        sink.write(self.payload[:half])
        self.export_started.set()
        if self.block_export is not None:
            await self.block_export.wait()
        if self.export_error is not None:
            raise self.export_error
        sink.write(self.payload[half:])

    async def import_from(self, source: BinaryIO) -> None:
        data = source.read()
        if self.import_error is not None:
            raise self.import_error
        self.imported.append(data)


@pytest.fixture
def fake_tool():
    return FakeDumpTool()


@pytest.fixture
def backup_dir(tmp_path) -> Path:
    return tmp_path / "backups"


@pytest.fixture
def coordinator(fake_tool, backup_dir):
    return BackupCoordinator(fake_tool, backup_dir, prefix="clinic_backup", extension="sql")


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "clinic.db"


class FakeMysqlServer:
    """In-memory MySQL server, as far as the migration ledger can tell.

    Keeps committed `schema_version` rows and the columns added by
    ALTER TABLE; every statement sent is recorded in order.
    """

    def __init__(self) -> None:
        self.statements: list[str] = []
        self.versions: list[tuple] = []
        self.columns: dict[str, set[str]] = {}
        self.connections = 0

    def connector(self):
        @asynccontextmanager
        async def connect():
            self.connections += 1
            yield FakeMysqlConnection(self)

        return connect


class FakeMysqlConnection(StoreConnection):
    dialect = "mysql"
    placeholder = "%s"

    def __init__(self, server: FakeMysqlServer) -> None:
        self._server = server
        self._pending: list[tuple] = []

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> None:
        self._server.statements.append(sql)
        words = sql.split()
        if sql.startswith("INSERT INTO schema_version"):
            assert "%s" in sql
            self._pending.append(tuple(params))
        elif words[:2] == ["ALTER", "TABLE"] and words[3:5] == ["ADD", "COLUMN"]:
            self._server.columns.setdefault(words[2], set()).add(words[5])

    async def fetchall(self, sql: str, params: Sequence[Any] = ()) -> list[tuple]:
        if "MAX(version)" in sql:
            return [(max((row[0] for row in self._server.versions), default=None),)]
        if "FROM schema_version" in sql:
            return sorted(self._server.versions)
        return []

    async def begin(self) -> None:
        self._pending = []

    async def commit(self) -> None:
        self._server.versions.extend(self._pending)
        self._pending = []

    async def rollback(self) -> None:
        self._pending = []

    async def column_names(self, table: str) -> set[str]:
        return set(self._server.columns.get(table, set()))


@pytest.fixture
def fake_mysql():
    return FakeMysqlServer()
