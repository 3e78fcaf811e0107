"""Backup and restore of the clinical store.

The coordinator owns a retention directory of dump artifacts and delegates
the actual dump/load to a DumpTool (aiosqlite for SQLite stores, the
mysqldump/mysql clients for MySQL).

Usage:
    from carestore.backup import BackupCoordinator, SqliteDumpTool

    coordinator = BackupCoordinator(SqliteDumpTool("clinic.db"), Path("backups"))
    artifact = await coordinator.export_snapshot("manual")
"""

from carestore.backup.coordinator import BackupCoordinator
from carestore.backup.models import BackupArtifact
from carestore.backup.schedule import BackupScheduler
from carestore.backup.tools import DumpTool, MysqlDumpTool, SqliteDumpTool, dump_tool_for

__all__ = [
    "BackupArtifact",
    "BackupCoordinator",
    "BackupScheduler",
    "DumpTool",
    "MysqlDumpTool",
    "SqliteDumpTool",
    "dump_tool_for",
]
