"""Migration 006: users.email."""

from __future__ import annotations

from carestore.migrations.connection import StoreConnection
from carestore.schema._columns import add_column_if_missing

VERSION = 6
DESCRIPTION = "add_email_to_users"


async def upgrade(db: StoreConnection) -> None:
    definition = "VARCHAR(255)" if db.dialect == "mysql" else "TEXT"
    await add_column_if_missing(db, "users", "email", definition)
