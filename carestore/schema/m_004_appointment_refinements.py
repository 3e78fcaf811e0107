"""Migration 004: who posted an appointment, and from which role."""

from __future__ import annotations

from carestore.migrations.connection import StoreConnection
from carestore.schema._columns import add_column_if_missing

VERSION = 4
DESCRIPTION = "appointment_refinements"

_SHORT_TEXT = {"sqlite": "TEXT", "mysql": "VARCHAR(50)"}


async def upgrade(db: StoreConnection) -> None:
    text = _SHORT_TEXT[db.dialect]
    await add_column_if_missing(db, "appointments", "posted_by", f"{text} DEFAULT 'Hospital'")
    await add_column_if_missing(db, "appointments", "created_by_role", text)
