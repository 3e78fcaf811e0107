"""Migration 001: users, patients and their contacts and risk factors."""

VERSION = 1
DESCRIPTION = "initial_schema"

UP_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT UNIQUE NOT NULL,
    password_hash TEXT NOT NULL,
    full_name TEXT NOT NULL,
    role TEXT NOT NULL CHECK (role IN ('Doctor', 'Secretary')),
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS patients (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    patient_id TEXT UNIQUE NOT NULL,
    full_name TEXT NOT NULL,
    gender TEXT NOT NULL CHECK (gender IN ('Male', 'Female', 'Other')),
    dob TEXT NOT NULL,
    nationality TEXT,
    cni TEXT,
    age INTEGER,
    weight REAL,
    height REAL,
    phone TEXT,
    email TEXT,
    address TEXT,
    ref_doctor TEXT,
    insurance TEXT,
    insurance_policy TEXT,
    consent INTEGER DEFAULT 0,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS emergency_contacts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    patient_db_id INTEGER NOT NULL REFERENCES patients(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    relationship TEXT,
    phone TEXT
);

CREATE TABLE IF NOT EXISTS risk_factors (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    patient_db_id INTEGER NOT NULL REFERENCES patients(id) ON DELETE CASCADE,
    factor_label TEXT NOT NULL
);

-- Bootstrap account. '!' is not a valid hash: the password must be set before first login.
INSERT OR IGNORE INTO users (username, password_hash, full_name, role)
VALUES ('admin', '!', 'Administrator', 'Doctor');
"""

UP_SQL_MYSQL = """
CREATE TABLE IF NOT EXISTS users (
    id INT AUTO_INCREMENT PRIMARY KEY,
    username VARCHAR(255) UNIQUE NOT NULL,
    password_hash VARCHAR(255) NOT NULL,
    full_name VARCHAR(255) NOT NULL,
    role ENUM('Doctor', 'Secretary') NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;

CREATE TABLE IF NOT EXISTS patients (
    id INT AUTO_INCREMENT PRIMARY KEY,
    patient_id VARCHAR(50) UNIQUE NOT NULL,
    full_name VARCHAR(255) NOT NULL,
    gender ENUM('Male', 'Female', 'Other') NOT NULL,
    dob DATE NOT NULL,
    nationality VARCHAR(100),
    cni VARCHAR(100),
    age INT,
    weight FLOAT,
    height FLOAT,
    phone VARCHAR(50),
    email VARCHAR(255),
    address TEXT,
    ref_doctor VARCHAR(255),
    insurance VARCHAR(255),
    insurance_policy VARCHAR(255),
    consent BOOLEAN DEFAULT FALSE,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;

CREATE TABLE IF NOT EXISTS emergency_contacts (
    id INT AUTO_INCREMENT PRIMARY KEY,
    patient_db_id INT NOT NULL,
    name VARCHAR(255) NOT NULL,
    relationship VARCHAR(100),
    phone VARCHAR(50),
    FOREIGN KEY (patient_db_id) REFERENCES patients(id) ON DELETE CASCADE
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;

CREATE TABLE IF NOT EXISTS risk_factors (
    id INT AUTO_INCREMENT PRIMARY KEY,
    patient_db_id INT NOT NULL,
    factor_label VARCHAR(255) NOT NULL,
    FOREIGN KEY (patient_db_id) REFERENCES patients(id) ON DELETE CASCADE
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;

INSERT IGNORE INTO users (username, password_hash, full_name, role)
VALUES ('admin', '!', 'Administrator', 'Doctor');
"""
