"""Column additions neither dialect can guard with IF NOT EXISTS."""

from __future__ import annotations

from carestore.migrations.connection import StoreConnection


async def add_column_if_missing(
    db: StoreConnection, table: str, column: str, definition: str
) -> bool:
    """ALTER TABLE ... ADD COLUMN, skipped when the column already exists."""
    if column in await db.column_names(table):
        return False
    await db.execute(f"ALTER TABLE {table} ADD COLUMN {column} {definition}")
    return True
