"""Startup sequencing: migrations first, then everything else.

`bootstrap()` is the gate the application awaits before it issues any
schema-dependent query.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from carestore.backup.coordinator import BackupCoordinator
from carestore.backup.tools import dump_tool_for
from carestore.config import CarestoreSettings
from carestore.documents import DocumentStore
from carestore.migrations.connection import connector_for
from carestore.migrations.ledger import MigrationLedger
from carestore.migrations.loader import discover_migrations
from carestore.schema import SCHEMA_PACKAGE
from carestore.store import StoreLocation

_logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    """Everything the application needs once the store is ready."""

    location: StoreLocation
    coordinator: BackupCoordinator
    documents: DocumentStore
    ledger: MigrationLedger
    applied: list[int] = field(default_factory=list)


def build_ledger(location: StoreLocation, settings: CarestoreSettings) -> MigrationLedger:
    return MigrationLedger(
        connector_for(location),
        discover_migrations(SCHEMA_PACKAGE, dialect=location.scheme),
        strict=settings.strict_checksums,
    )


def build_coordinator(location: StoreLocation, settings: CarestoreSettings) -> BackupCoordinator:
    tool = dump_tool_for(
        location,
        mysqldump_bin=settings.mysqldump_bin,
        mysql_bin=settings.mysql_bin,
    )
    return BackupCoordinator(
        tool,
        settings.backup_dir,
        prefix=settings.backup_prefix,
        extension=settings.backup_extension,
    )


async def bootstrap(settings: CarestoreSettings, migrate: bool = True) -> Runtime:
    """Parse the store URL, bring the schema up to date, wire the coordinator.

    The ledger runs for SQLite and MySQL stores alike and must finish before
    anything else touches the store.
    """
    location = StoreLocation.parse(settings.database_url)
    _logger.info("Using store %s", location.redacted())

    if location.is_sqlite:
        location.sqlite_path.parent.mkdir(parents=True, exist_ok=True)

    runtime = Runtime(
        location=location,
        coordinator=build_coordinator(location, settings),
        documents=DocumentStore(settings.data_dir),
        ledger=build_ledger(location, settings),
    )
    if migrate:
        runtime.applied = await runtime.ledger.apply_all()

    return runtime
