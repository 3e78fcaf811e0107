"""Dump tools: how a snapshot is actually produced and replayed.

The coordinator only talks to the DumpTool interface: stream a consistent
snapshot (schema and data) into a binary sink, or replay one from a binary
source. One implementation per store technology:

  - SqliteDumpTool: in-process, via aiosqlite's iterdump
  - MysqlDumpTool: the mysqldump / mysql command-line clients, streamed
    over stdout / stdin, stderr kept for diagnostics
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import shutil
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO

import aiosqlite

from carestore.exceptions import ExportFailed, ExternalToolUnavailable, RestoreFailed
from carestore.migrations.sql import StatementSplitter
from carestore.store import StoreLocation

_logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
_STDERR_LIMIT = 2000
_REAP_TIMEOUT = 5.0


class DumpTool(ABC):
    """Produces and consumes logical snapshots of one store."""

    name: str = "dump"

    @abstractmethod
    async def export_to(self, sink: BinaryIO) -> None:
        """Write a transactionally consistent snapshot to `sink`.

        Raises ExternalToolUnavailable or ExportFailed.
        """
        ...

    @abstractmethod
    async def import_from(self, source: BinaryIO) -> None:
        """Replay a snapshot from `source` into the store, replacing its contents.

        Not transactional: a failure part-way leaves the store mixed.
        Raises ExternalToolUnavailable or RestoreFailed.
        """
        ...


def _quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class SqliteDumpTool(DumpTool):
    """SQL text dumps of a SQLite file, without needing the sqlite3 CLI."""

    name = "sqlite-iterdump"

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)

    async def export_to(self, sink: BinaryIO) -> None:
        if not self._db_path.exists():
            raise ExportFailed(f"Database file not found: {self._db_path}")
        try:
            async with aiosqlite.connect(self._db_path) as db:
                # Hold one read transaction so every table comes from the same snapshot
                await db.execute("BEGIN")
                async for line in db.iterdump():
                    sink.write(f"{line}\n".encode("utf-8"))
                await db.rollback()
        except sqlite3.Error as e:
            raise ExportFailed(f"{self._db_path}: {e}") from e

    async def _drop_all(self, db: aiosqlite.Connection) -> None:
        """Remove every user view and table (indexes and triggers go with them)."""
        await db.execute("PRAGMA foreign_keys=OFF")
        cursor = await db.execute(
            "SELECT type, name FROM sqlite_master "
            "WHERE type IN ('view', 'table') AND name NOT LIKE 'sqlite_%' "
            "ORDER BY type = 'table'"
        )
        for kind, name in await cursor.fetchall():
            await db.execute(f"DROP {kind.upper()} IF EXISTS {_quote_ident(name)}")
        await db.commit()

    async def import_from(self, source: BinaryIO) -> None:
        splitter = StatementSplitter()
        decoder = codecs.getincrementaldecoder("utf-8")()
        try:
            async with aiosqlite.connect(self._db_path) as db:
                await self._drop_all(db)
                while True:
                    chunk = source.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    for statement in splitter.feed(decoder.decode(chunk)):
                        await db.execute(statement)
                for statement in splitter.feed(decoder.decode(b"", final=True)) + splitter.close():
                    await db.execute(statement)
                await db.commit()
        except (sqlite3.Error, UnicodeDecodeError) as e:
            raise RestoreFailed(f"{self._db_path}: {e}") from e


def _stderr_text(raw: bytes) -> str:
    text = raw.decode(errors="replace").strip()
    return text[-_STDERR_LIMIT:] if text else "no error output"


async def _terminate(proc: asyncio.subprocess.Process) -> None:
    """Kill the client and reap it."""
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    try:
        await asyncio.wait_for(proc.wait(), timeout=_REAP_TIMEOUT)
    except asyncio.TimeoutError:
        _logger.warning("pid %s did not exit after SIGKILL", proc.pid)


class MysqlDumpTool(DumpTool):
    """mysqldump / mysql clients, driven as subprocesses.

    The password travels in MYSQL_PWD, never on the command line where
    other local users could read it from the process table.
    """

    name = "mysqldump"

    def __init__(
        self,
        location: StoreLocation,
        dump_bin: str = "mysqldump",
        load_bin: str = "mysql",
    ) -> None:
        self._location = location
        self._dump_bin = dump_bin
        self._load_bin = load_bin

    def _connection_args(self) -> list[str]:
        args = ["-h", self._location.host]
        if self._location.port:
            args += ["-P", str(self._location.port)]
        if self._location.user:
            args += ["-u", self._location.user]
        return args

    def _env(self) -> dict[str, str]:
        env = dict(os.environ)
        if self._location.password:
            env["MYSQL_PWD"] = self._location.password
        return env

    async def _spawn(
        self, binary: str, args: list[str], stdin: int, stdout: int
    ) -> asyncio.subprocess.Process:
        resolved = shutil.which(binary)
        if resolved is None:
            raise ExternalToolUnavailable(
                binary, "make sure the MySQL client tools are installed and on PATH"
            )
        try:
            return await asyncio.create_subprocess_exec(
                resolved, *args,
                stdin=stdin,
                stdout=stdout,
                stderr=asyncio.subprocess.PIPE,
                env=self._env(),
            )
        except OSError as e:
            raise ExternalToolUnavailable(binary, str(e)) from e

    async def export_to(self, sink: BinaryIO) -> None:
        args = self._connection_args() + [
            "--single-transaction",
            "--routines",
            "--triggers",
            self._location.database,
        ]
        _logger.debug("Running %s for %s", self._dump_bin, self._location.redacted())
        proc = await self._spawn(
            self._dump_bin, args,
            stdin=asyncio.subprocess.DEVNULL, stdout=asyncio.subprocess.PIPE,
        )
        stderr_task = asyncio.ensure_future(proc.stderr.read())

        try:
            while True:
                chunk = await proc.stdout.read(CHUNK_SIZE)
                if not chunk:
                    break
                sink.write(chunk)
            returncode = await proc.wait()
            stderr = await stderr_task
        except BaseException:
            stderr_task.cancel()
            await _terminate(proc)
            raise

        if returncode != 0:
            raise ExportFailed(
                f"{self._dump_bin} exited with status {returncode}: {_stderr_text(stderr)}"
            )

    async def import_from(self, source: BinaryIO) -> None:
        args = self._connection_args() + [self._location.database]
        _logger.debug("Running %s for %s", self._load_bin, self._location.redacted())
        proc = await self._spawn(
            self._load_bin, args,
            stdin=asyncio.subprocess.PIPE, stdout=asyncio.subprocess.DEVNULL,
        )
        stderr_task = asyncio.ensure_future(proc.stderr.read())

        try:
            try:
                while True:
                    chunk = source.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    proc.stdin.write(chunk)
                    await proc.stdin.drain()
                proc.stdin.close()
            except (BrokenPipeError, ConnectionResetError):
                # The client quit early; its exit status and stderr say why
                pass
            returncode = await proc.wait()
            stderr = await stderr_task
        except BaseException:
            stderr_task.cancel()
            await _terminate(proc)
            raise

        if returncode != 0:
            raise RestoreFailed(
                f"{self._load_bin} exited with status {returncode}: {_stderr_text(stderr)}"
            )


def dump_tool_for(
    location: StoreLocation,
    mysqldump_bin: str = "mysqldump",
    mysql_bin: str = "mysql",
) -> DumpTool:
    """Pick the dump tool matching the store technology."""
    if location.is_sqlite:
        return SqliteDumpTool(location.sqlite_path)
    return MysqlDumpTool(location, dump_bin=mysqldump_bin, load_bin=mysql_bin)
