"""Tests for migration module discovery."""

import uuid

import pytest

from carestore.exceptions import ConfigurationError
from carestore.migrations.loader import discover_migrations
from carestore.schema import SCHEMA_PACKAGE


def _make_package(tmp_path, monkeypatch, files: dict[str, str]) -> str:
    name = f"fake_migrations_{uuid.uuid4().hex[:8]}"
    pkg = tmp_path / name
    pkg.mkdir()
    (pkg / "__init__.py").write_text("")
    for filename, body in files.items():
        (pkg / filename).write_text(body)
    monkeypatch.syspath_prepend(str(tmp_path))
    return name


def test_discovers_clinical_schema():
    records = discover_migrations(SCHEMA_PACKAGE)
    assert [r.version for r in records] == [1, 2, 3, 4, 5, 6, 7]
    assert records[0].description == "initial_schema"
    assert records[3].upgrade is not None
    assert records[4].script is not None


def test_discovers_sql_and_code_migrations(tmp_path, monkeypatch):
    package = _make_package(tmp_path, monkeypatch, {
        "m_002_code.py": (
            "VERSION = 2\nDESCRIPTION = 'code'\n"
            "async def upgrade(db):\n    await db.execute('CREATE TABLE b (id INTEGER)')\n"
        ),
        "m_001_sql.py": "VERSION = 1\nDESCRIPTION = 'sql'\nUP_SQL = 'CREATE TABLE a (id INTEGER);'\n",
        "helpers.py": "X = 1\n",
        "m_notes.py": "VERSION = 99\n",
    })

    records = discover_migrations(package)

    assert [(r.version, r.description) for r in records] == [(1, "sql"), (2, "code")]
    assert records[0].statements == ("CREATE TABLE a (id INTEGER);",)
    assert records[1].upgrade is not None


def test_version_must_match_filename(tmp_path, monkeypatch):
    package = _make_package(tmp_path, monkeypatch, {
        "m_003_wrong.py": "VERSION = 4\nUP_SQL = 'SELECT 1;'\n",
    })
    with pytest.raises(ConfigurationError, match="filename"):
        discover_migrations(package)


def test_module_without_body_rejected(tmp_path, monkeypatch):
    package = _make_package(tmp_path, monkeypatch, {
        "m_001_empty.py": "VERSION = 1\nDESCRIPTION = 'empty'\n",
    })
    with pytest.raises(ConfigurationError, match="neither"):
        discover_migrations(package)


def test_discovers_mysql_dialect():
    sqlite = discover_migrations(SCHEMA_PACKAGE)
    mysql = discover_migrations(SCHEMA_PACKAGE, dialect="mysql")

    assert [r.version for r in mysql] == [1, 2, 3, 4, 5, 6, 7]
    assert "AUTO_INCREMENT" in mysql[0].statements[0]
    assert "AUTOINCREMENT" in sqlite[0].statements[0]
    assert mysql[0].checksum != sqlite[0].checksum
    # Column additions are shared between dialects
    assert mysql[3].upgrade is sqlite[3].upgrade


def test_unknown_dialect_rejected():
    with pytest.raises(ConfigurationError, match="postgres"):
        discover_migrations(SCHEMA_PACKAGE, dialect="postgres")


def test_module_without_dialect_script_rejected(tmp_path, monkeypatch):
    package = _make_package(tmp_path, monkeypatch, {
        "m_001_sqlite_only.py": "VERSION = 1\nUP_SQL = 'CREATE TABLE a (id INTEGER);'\n",
    })

    assert len(discover_migrations(package)) == 1
    with pytest.raises(ConfigurationError, match="UP_SQL_MYSQL"):
        discover_migrations(package, dialect="mysql")
