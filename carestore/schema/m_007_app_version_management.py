"""Migration 007: published app versions, per platform."""

VERSION = 7
DESCRIPTION = "app_version_management"

UP_SQL = """
CREATE TABLE IF NOT EXISTS app_versions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    platform TEXT NOT NULL,
    version TEXT NOT NULL,
    value TEXT,
    priority INTEGER DEFAULT 0,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

INSERT OR IGNORE INTO app_versions (id, platform, version, value, priority)
VALUES (1, 'all', '0.1.0', 'Initial release version', 0);
"""

UP_SQL_MYSQL = """
CREATE TABLE IF NOT EXISTS app_versions (
    id INT AUTO_INCREMENT PRIMARY KEY,
    platform VARCHAR(50) NOT NULL,
    version VARCHAR(20) NOT NULL,
    value TEXT,
    priority INT DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;

INSERT IGNORE INTO app_versions (id, platform, version, value, priority)
VALUES (1, 'all', '0.1.0', 'Initial release version', 0);
"""
