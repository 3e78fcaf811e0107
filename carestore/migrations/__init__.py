"""Versioned schema migrations for carestore.

Tracks applied versions in a `schema_version` table inside the store and
applies pending migrations sequentially, each inside its own transaction.
A migration is either dialect-specific SQL (`UP_SQL`, `UP_SQL_MYSQL`) or an
`async def upgrade(db)` function. SQLite and MySQL stores are both supported.
"""

from carestore.migrations.connection import StoreConnection, connector_for
from carestore.migrations.ledger import MigrationLedger
from carestore.migrations.loader import discover_migrations
from carestore.migrations.models import AppliedVersion, LedgerStatus, MigrationRecord

__all__ = [
    "AppliedVersion",
    "LedgerStatus",
    "MigrationLedger",
    "MigrationRecord",
    "StoreConnection",
    "connector_for",
    "discover_migrations",
]
