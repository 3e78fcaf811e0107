"""Migration ledger: applies pending migrations on startup.

The ledger is handed an explicit ordered sequence of MigrationRecords and a
connector for one store (SQLite or MySQL, see `connection.py`). It records
every applied version in the store's `schema_version` table and brings the
schema up to the highest defined version, one transaction per migration.
Callers must let `apply_all()` finish before anything else queries the store.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Iterable

from carestore.exceptions import ConfigurationError, MigrationError
from carestore.migrations.connection import Connector, StoreConnection, connect_sqlite
from carestore.migrations.models import AppliedVersion, LedgerStatus, MigrationRecord

_logger = logging.getLogger(__name__)

BOOKKEEPING_TABLE = "schema_version"

_CREATE_BOOKKEEPING = {
    "sqlite": (
        f"CREATE TABLE IF NOT EXISTS {BOOKKEEPING_TABLE} ("
        "version INTEGER PRIMARY KEY, "
        "description TEXT, "
        "checksum TEXT, "
        "applied_at TEXT DEFAULT CURRENT_TIMESTAMP)"
    ),
    "mysql": (
        f"CREATE TABLE IF NOT EXISTS {BOOKKEEPING_TABLE} ("
        "version INT PRIMARY KEY, "
        "description TEXT, "
        "checksum VARCHAR(64), "
        "applied_at VARCHAR(40)"
        ") ENGINE=InnoDB DEFAULT CHARSET=utf8mb4"
    ),
}


def validate_sequence(migrations: Iterable[MigrationRecord]) -> tuple[MigrationRecord, ...]:
    """Check versions are unique and strictly ascending."""
    records = tuple(migrations)
    previous = 0
    for record in records:
        if record.version == previous:
            raise ConfigurationError(f"Duplicate migration version {record.version}")
        if record.version < previous:
            raise ConfigurationError(
                f"Migration v{record.version} ({record.description}) is out of order: "
                f"it follows v{previous}"
            )
        previous = record.version
    return records


class MigrationLedger:
    """Brings a store to the highest defined schema version.

    `store` is a connector (see `connector_for`) or a SQLite file path.
    """

    def __init__(
        self,
        store: Connector | str | Path,
        migrations: Iterable[MigrationRecord],
        strict: bool = True,
    ) -> None:
        self._connect: Connector = store if callable(store) else partial(connect_sqlite, store)
        self._migrations = validate_sequence(migrations)
        self._strict = strict

    @property
    def migrations(self) -> tuple[MigrationRecord, ...]:
        return self._migrations

    @property
    def target_version(self) -> int:
        return self._migrations[-1].version if self._migrations else 0

    async def _ensure_table(self, db: StoreConnection) -> None:
        try:
            ddl = _CREATE_BOOKKEEPING[db.dialect]
        except KeyError:
            raise ConfigurationError(f"No bookkeeping table for dialect '{db.dialect}'") from None
        await db.execute(ddl)
        await db.commit()

    async def _applied(self, db: StoreConnection) -> list[AppliedVersion]:
        rows = await db.fetchall(
            f"SELECT version, description, checksum, applied_at "
            f"FROM {BOOKKEEPING_TABLE} ORDER BY version"
        )
        return [
            AppliedVersion(
                version=row[0],
                description=row[1] or "",
                checksum=row[2],
                applied_at=row[3],
            )
            for row in rows
        ]

    def _verify(self, applied: list[AppliedVersion]) -> None:
        """The applied versions must be a prefix of the defined ones."""
        for index, row in enumerate(applied):
            if index >= len(self._migrations):
                raise ConfigurationError(
                    f"Store has migration v{row.version} applied, but the highest "
                    f"known version is v{self.target_version}; is this an older build?"
                )
            expected = self._migrations[index]
            if expected.version != row.version:
                raise ConfigurationError(
                    f"Store has migration v{row.version} applied where v{expected.version} "
                    f"({expected.description}) was expected; applied versions must be a "
                    "prefix of the defined sequence"
                )
            if row.checksum and row.checksum != expected.checksum:
                msg = (
                    f"Migration v{row.version} ({expected.description}) was modified "
                    "after it was applied"
                )
                if self._strict:
                    raise ConfigurationError(msg)
                _logger.warning("%s; continuing because strict checksums are off", msg)

    async def current_version(self) -> int:
        """Highest applied version, 0 for a fresh store."""
        async with self._connect() as db:
            await self._ensure_table(db)
            rows = await db.fetchall(f"SELECT MAX(version) FROM {BOOKKEEPING_TABLE}")
            return rows[0][0] if rows and rows[0][0] is not None else 0

    async def status(self) -> LedgerStatus:
        """Applied and pending migrations, without changing anything."""
        async with self._connect() as db:
            await self._ensure_table(db)
            applied = await self._applied(db)
        current = applied[-1].version if applied else 0
        return LedgerStatus(
            current_version=current,
            applied=applied,
            pending=[m for m in self._migrations if m.version > current],
        )

    async def apply_all(self) -> list[int]:
        """Apply all pending migrations. Returns list of applied version numbers.

        Each migration and its bookkeeping row commit together. On failure
        that migration is rolled back, nothing after it runs, and
        MigrationError is raised. MySQL commits DDL implicitly, so there a
        failed migration may keep its earlier DDL statements; migrations are
        idempotent and the rerun completes them.
        """
        applied: list[int] = []

        async with self._connect() as db:
            await self._ensure_table(db)
            rows = await self._applied(db)
            self._verify(rows)
            current = rows[-1].version if rows else 0
            mark = db.placeholder

            for record in self._migrations:
                if record.version <= current:
                    continue

                _logger.info("Applying migration v%d (%s)", record.version, record.description)
                try:
                    await db.begin()
                    if record.upgrade is not None:
                        await record.upgrade(db)
                    else:
                        for statement in record.statements:
                            await db.execute(statement)
                    await db.execute(
                        f"INSERT INTO {BOOKKEEPING_TABLE} "
                        f"(version, description, checksum, applied_at) "
                        f"VALUES ({mark}, {mark}, {mark}, {mark})",
                        (
                            record.version,
                            record.description,
                            record.checksum,
                            datetime.now(timezone.utc).isoformat(),
                        ),
                    )
                    await db.commit()
                except Exception as e:
                    await db.rollback()
                    _logger.error("Migration v%d failed: %s", record.version, e)
                    raise MigrationError(record.version, e) from e

                applied.append(record.version)

        if applied:
            _logger.info("Schema now at v%d (%d applied)", applied[-1], len(applied))
        return applied
