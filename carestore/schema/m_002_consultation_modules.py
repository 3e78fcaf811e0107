"""Migration 002: consultations and everything recorded during one."""

VERSION = 2
DESCRIPTION = "consultation_modules"

UP_SQL = """
CREATE TABLE IF NOT EXISTS consultations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    patient_db_id INTEGER NOT NULL REFERENCES patients(id) ON DELETE CASCADE,
    doctor_db_id INTEGER NOT NULL REFERENCES users(id),
    reason TEXT,
    status TEXT DEFAULT 'In Progress'
        CHECK (status IN ('In Progress', 'Completed', 'Cancelled')),
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TRIGGER IF NOT EXISTS consultations_touch_updated_at
AFTER UPDATE ON consultations
FOR EACH ROW WHEN NEW.updated_at = OLD.updated_at
BEGIN
    UPDATE consultations SET updated_at = CURRENT_TIMESTAMP WHERE id = NEW.id;
END;

CREATE TABLE IF NOT EXISTS clinical_exams (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    consultation_id INTEGER NOT NULL REFERENCES consultations(id) ON DELETE CASCADE,
    bp_sys INTEGER,
    bp_dia INTEGER,
    heart_rate INTEGER,
    weight REAL,
    height REAL,
    temp REAL,
    spo2 INTEGER,
    bmi REAL,
    notes TEXT
);

CREATE TABLE IF NOT EXISTS diagnostic_results (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    consultation_id INTEGER NOT NULL REFERENCES consultations(id) ON DELETE CASCADE,
    primary_diagnosis TEXT,
    secondary_diagnoses TEXT,
    nyha_class TEXT,
    notes TEXT
);

CREATE TABLE IF NOT EXISTS ecg_ett_exams (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    consultation_id INTEGER NOT NULL REFERENCES consultations(id) ON DELETE CASCADE,
    ecg_interpretation TEXT,
    ett_fevg REAL,
    ett_lvedd REAL,
    ett_interpretation TEXT
);

CREATE TABLE IF NOT EXISTS scores (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    consultation_id INTEGER NOT NULL REFERENCES consultations(id) ON DELETE CASCADE,
    chads_vasc INTEGER,
    has_bled INTEGER,
    cv_risk TEXT
);

CREATE TABLE IF NOT EXISTS prescriptions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    consultation_id INTEGER NOT NULL REFERENCES consultations(id) ON DELETE CASCADE,
    drug TEXT NOT NULL,
    dosage TEXT,
    frequency TEXT,
    duration TEXT
);
"""

# ON UPDATE CURRENT_TIMESTAMP does the trigger's job on MySQL
UP_SQL_MYSQL = """
CREATE TABLE IF NOT EXISTS consultations (
    id INT AUTO_INCREMENT PRIMARY KEY,
    patient_db_id INT NOT NULL,
    doctor_db_id INT NOT NULL,
    reason TEXT,
    status ENUM('In Progress', 'Completed', 'Cancelled') DEFAULT 'In Progress',
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP,
    FOREIGN KEY (patient_db_id) REFERENCES patients(id) ON DELETE CASCADE,
    FOREIGN KEY (doctor_db_id) REFERENCES users(id)
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;

CREATE TABLE IF NOT EXISTS clinical_exams (
    id INT AUTO_INCREMENT PRIMARY KEY,
    consultation_id INT NOT NULL,
    bp_sys INT,
    bp_dia INT,
    heart_rate INT,
    weight FLOAT,
    height FLOAT,
    temp FLOAT,
    spo2 INT,
    bmi FLOAT,
    notes TEXT,
    FOREIGN KEY (consultation_id) REFERENCES consultations(id) ON DELETE CASCADE
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;

CREATE TABLE IF NOT EXISTS diagnostic_results (
    id INT AUTO_INCREMENT PRIMARY KEY,
    consultation_id INT NOT NULL,
    primary_diagnosis VARCHAR(255),
    secondary_diagnoses TEXT,
    nyha_class VARCHAR(50),
    notes TEXT,
    FOREIGN KEY (consultation_id) REFERENCES consultations(id) ON DELETE CASCADE
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;

CREATE TABLE IF NOT EXISTS ecg_ett_exams (
    id INT AUTO_INCREMENT PRIMARY KEY,
    consultation_id INT NOT NULL,
    ecg_interpretation TEXT,
    ett_fevg FLOAT,
    ett_lvedd FLOAT,
    ett_interpretation TEXT,
    FOREIGN KEY (consultation_id) REFERENCES consultations(id) ON DELETE CASCADE
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;

CREATE TABLE IF NOT EXISTS scores (
    id INT AUTO_INCREMENT PRIMARY KEY,
    consultation_id INT NOT NULL,
    chads_vasc INT,
    has_bled INT,
    cv_risk VARCHAR(50),
    FOREIGN KEY (consultation_id) REFERENCES consultations(id) ON DELETE CASCADE
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;

CREATE TABLE IF NOT EXISTS prescriptions (
    id INT AUTO_INCREMENT PRIMARY KEY,
    consultation_id INT NOT NULL,
    drug VARCHAR(255) NOT NULL,
    dosage VARCHAR(100),
    frequency VARCHAR(100),
    duration VARCHAR(100),
    FOREIGN KEY (consultation_id) REFERENCES consultations(id) ON DELETE CASCADE
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;
"""
