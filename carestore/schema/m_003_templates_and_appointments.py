"""Migration 003: prescription templates and appointments."""

VERSION = 3
DESCRIPTION = "templates_and_appointments"

UP_SQL = """
CREATE TABLE IF NOT EXISTS prescription_templates (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    label TEXT NOT NULL,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS template_medications (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    template_id INTEGER NOT NULL REFERENCES prescription_templates(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    dosage TEXT,
    frequency TEXT,
    duration TEXT,
    instructions TEXT
);

CREATE TABLE IF NOT EXISTS appointments (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    patient_db_id INTEGER NOT NULL REFERENCES patients(id) ON DELETE CASCADE,
    doctor_db_id INTEGER REFERENCES users(id) ON DELETE SET NULL,
    appointment_date TEXT NOT NULL,
    appointment_time TEXT NOT NULL,
    type TEXT NOT NULL,
    status TEXT DEFAULT 'Scheduled',
    notes TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""

UP_SQL_MYSQL = """
CREATE TABLE IF NOT EXISTS prescription_templates (
    id INT AUTO_INCREMENT PRIMARY KEY,
    label VARCHAR(255) NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;

CREATE TABLE IF NOT EXISTS template_medications (
    id INT AUTO_INCREMENT PRIMARY KEY,
    template_id INT NOT NULL,
    name VARCHAR(255) NOT NULL,
    dosage VARCHAR(100),
    frequency VARCHAR(100),
    duration VARCHAR(100),
    instructions TEXT,
    FOREIGN KEY (template_id) REFERENCES prescription_templates(id) ON DELETE CASCADE
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;

CREATE TABLE IF NOT EXISTS appointments (
    id INT AUTO_INCREMENT PRIMARY KEY,
    patient_db_id INT NOT NULL,
    doctor_db_id INT,
    appointment_date DATE NOT NULL,
    appointment_time TIME NOT NULL,
    type VARCHAR(50) NOT NULL,
    status VARCHAR(50) DEFAULT 'Scheduled',
    notes TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (patient_db_id) REFERENCES patients(id) ON DELETE CASCADE,
    FOREIGN KEY (doctor_db_id) REFERENCES users(id) ON DELETE SET NULL
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;
"""
