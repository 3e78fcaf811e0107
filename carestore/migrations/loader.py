"""Migration discovery.

Migrations are Python modules in a package, named `m_NNN_description.py`
where NNN is a zero-padded version number. Each must define:

- VERSION: int, matching NNN
- DESCRIPTION: str
- UP_SQL (SQLite) and UP_SQL_MYSQL (MySQL): str, or one
  `async def upgrade(db: StoreConnection)` function shared by both dialects
"""

from __future__ import annotations

import importlib
from pathlib import Path

from carestore.exceptions import ConfigurationError
from carestore.migrations.models import MigrationRecord

MIGRATION_PREFIX = "m_"

SQL_ATTRIBUTES = {"sqlite": "UP_SQL", "mysql": "UP_SQL_MYSQL"}


def discover_migrations(package: str, dialect: str = "sqlite") -> list[MigrationRecord]:
    """Load every migration module in `package` for one SQL dialect, sorted by version."""
    if dialect not in SQL_ATTRIBUTES:
        raise ConfigurationError(f"Unsupported migration dialect '{dialect}'")
    sql_attribute = SQL_ATTRIBUTES[dialect]

    pkg = importlib.import_module(package)
    if not getattr(pkg, "__file__", None):
        raise ConfigurationError(f"Migration package {package} has no location on disk")
    directory = Path(pkg.__file__).parent

    records: list[MigrationRecord] = []
    for mf in sorted(directory.glob(f"{MIGRATION_PREFIX}*.py")):
        # m_001_description.py -> 1
        parts = mf.stem.split("_")
        if len(parts) < 2 or not parts[1].isdigit():
            continue
        file_version = int(parts[1])

        module = importlib.import_module(f"{package}.{mf.stem}")
        version = getattr(module, "VERSION", None)
        if version != file_version:
            raise ConfigurationError(
                f"{mf.name}: VERSION is {version!r} but the filename says {file_version}"
            )

        up_sql = getattr(module, sql_attribute, None)
        upgrade = getattr(module, "upgrade", None)
        if up_sql is None and upgrade is None:
            raise ConfigurationError(f"{mf.name}: defines neither {sql_attribute} nor upgrade()")

        try:
            records.append(
                MigrationRecord(
                    version=version,
                    description=getattr(module, "DESCRIPTION", mf.stem),
                    script=up_sql,
                    upgrade=upgrade if up_sql is None else None,
                )
            )
        except ValueError as e:
            raise ConfigurationError(f"{mf.name}: {e}") from e

    records.sort(key=lambda r: r.version)
    return records
