"""Migration 005: settings, password policy, audit log, permissions, backup history."""

VERSION = 5
DESCRIPTION = "settings_and_user_enhancements"

UP_SQL = """
CREATE TABLE IF NOT EXISTS system_settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    setting_key TEXT UNIQUE NOT NULL,
    setting_value TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS password_policy (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    min_length INTEGER DEFAULT 8,
    require_uppercase INTEGER DEFAULT 1,
    require_numbers INTEGER DEFAULT 1,
    require_special_chars INTEGER DEFAULT 1,
    expiry_days INTEGER DEFAULT 90,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS audit_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER REFERENCES users(id) ON DELETE SET NULL,
    action TEXT NOT NULL,
    details TEXT,
    severity TEXT DEFAULT 'info' CHECK (severity IN ('info', 'warning', 'critical')),
    ip_address TEXT,
    timestamp TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS roles_permissions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    role TEXT NOT NULL,
    permission TEXT NOT NULL,
    allowed INTEGER DEFAULT 0,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (role, permission)
);

CREATE TABLE IF NOT EXISTS backup_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    type TEXT NOT NULL CHECK (type IN ('Automatic', 'Manual')),
    filename TEXT NOT NULL,
    size_mb REAL,
    status TEXT NOT NULL CHECK (status IN ('Success', 'Failed')),
    error_message TEXT,
    timestamp TEXT DEFAULT CURRENT_TIMESTAMP
);

INSERT OR IGNORE INTO system_settings (setting_key, setting_value) VALUES
    ('clinicName', ''),
    ('clinicAddress', ''),
    ('clinicPhone', ''),
    ('clinicEmail', ''),
    ('timezone', 'UTC'),
    ('language', 'fr'),
    ('dateFormat', 'DD/MM/YYYY'),
    ('currency', 'XAF');

INSERT OR IGNORE INTO password_policy
    (id, min_length, require_uppercase, require_numbers, require_special_chars, expiry_days)
VALUES (1, 8, 1, 1, 1, 90);

INSERT OR IGNORE INTO roles_permissions (role, permission, allowed) VALUES
    ('doctor', 'view_medical', 1),
    ('doctor', 'edit_patient', 1),
    ('doctor', 'manage_prescriptions', 1),
    ('doctor', 'create_consultations', 1),
    ('doctor', 'manage_billing', 0),
    ('doctor', 'staff_management', 0),
    ('doctor', 'view_analytics', 1),
    ('secretary', 'view_medical', 0),
    ('secretary', 'edit_patient', 1),
    ('secretary', 'manage_prescriptions', 0),
    ('secretary', 'create_consultations', 1),
    ('secretary', 'manage_billing', 1),
    ('secretary', 'staff_management', 0),
    ('secretary', 'view_analytics', 0);
"""

UP_SQL_MYSQL = """
CREATE TABLE IF NOT EXISTS system_settings (
    id INT AUTO_INCREMENT PRIMARY KEY,
    setting_key VARCHAR(255) UNIQUE NOT NULL,
    setting_value TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;

CREATE TABLE IF NOT EXISTS password_policy (
    id INT AUTO_INCREMENT PRIMARY KEY,
    min_length INT DEFAULT 8,
    require_uppercase BOOLEAN DEFAULT TRUE,
    require_numbers BOOLEAN DEFAULT TRUE,
    require_special_chars BOOLEAN DEFAULT TRUE,
    expiry_days INT DEFAULT 90,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;

CREATE TABLE IF NOT EXISTS audit_logs (
    id INT AUTO_INCREMENT PRIMARY KEY,
    user_id INT,
    action VARCHAR(255) NOT NULL,
    details TEXT,
    severity ENUM('info', 'warning', 'critical') DEFAULT 'info',
    ip_address VARCHAR(45),
    timestamp TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE SET NULL
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;

CREATE TABLE IF NOT EXISTS roles_permissions (
    id INT AUTO_INCREMENT PRIMARY KEY,
    role VARCHAR(50) NOT NULL,
    permission VARCHAR(100) NOT NULL,
    allowed BOOLEAN DEFAULT FALSE,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP,
    UNIQUE KEY unique_role_permission (role, permission)
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;

CREATE TABLE IF NOT EXISTS backup_history (
    id INT AUTO_INCREMENT PRIMARY KEY,
    type ENUM('Automatic', 'Manual') NOT NULL,
    filename VARCHAR(255) NOT NULL,
    size_mb DECIMAL(10,2),
    status ENUM('Success', 'Failed') NOT NULL,
    error_message TEXT,
    timestamp TIMESTAMP DEFAULT CURRENT_TIMESTAMP
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;

INSERT IGNORE INTO system_settings (setting_key, setting_value) VALUES
    ('clinicName', ''),
    ('clinicAddress', ''),
    ('clinicPhone', ''),
    ('clinicEmail', ''),
    ('timezone', 'UTC'),
    ('language', 'fr'),
    ('dateFormat', 'DD/MM/YYYY'),
    ('currency', 'XAF');

INSERT IGNORE INTO password_policy
    (id, min_length, require_uppercase, require_numbers, require_special_chars, expiry_days)
VALUES (1, 8, TRUE, TRUE, TRUE, 90);

INSERT IGNORE INTO roles_permissions (role, permission, allowed) VALUES
    ('doctor', 'view_medical', TRUE),
    ('doctor', 'edit_patient', TRUE),
    ('doctor', 'manage_prescriptions', TRUE),
    ('doctor', 'create_consultations', TRUE),
    ('doctor', 'manage_billing', FALSE),
    ('doctor', 'staff_management', FALSE),
    ('doctor', 'view_analytics', TRUE),
    ('secretary', 'view_medical', FALSE),
    ('secretary', 'edit_patient', TRUE),
    ('secretary', 'manage_prescriptions', FALSE),
    ('secretary', 'create_consultations', TRUE),
    ('secretary', 'manage_billing', TRUE),
    ('secretary', 'staff_management', FALSE),
    ('secretary', 'view_analytics', FALSE);
"""
