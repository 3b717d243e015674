"""SQLite database schema definitions."""

SCHEMA_SQL = """
-- Coached clients and their current nutrition targets
CREATE TABLE IF NOT EXISTS clients (
    client_id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    gender TEXT NOT NULL CHECK(gender IN ('male', 'female')),
    goal_type TEXT NOT NULL CHECK(goal_type IN ('cut', 'bulk', 'maintain')),
    diet_start_date DATE,
    target_weight REAL,
    competition_date DATE,
    calories_target REAL,
    protein_target REAL,
    carbs_target REAL,
    fat_target REAL,
    carbs_training_day REAL,
    carbs_rest_day REAL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Body composition measurements (one per client per day)
CREATE TABLE IF NOT EXISTS body_composition (
    record_id INTEGER PRIMARY KEY AUTOINCREMENT,
    client_id TEXT NOT NULL,
    date DATE NOT NULL,
    height REAL,
    weight REAL,
    body_fat REAL,
    muscle_mass REAL,
    visceral_fat REAL,
    bmi REAL,
    UNIQUE(client_id, date),
    FOREIGN KEY (client_id) REFERENCES clients(client_id)
);

CREATE INDEX IF NOT EXISTS idx_body_composition_client_date ON body_composition(client_id, date);

-- Daily nutrition adherence and intake
CREATE TABLE IF NOT EXISTS nutrition_logs (
    log_id INTEGER PRIMARY KEY AUTOINCREMENT,
    client_id TEXT NOT NULL,
    date DATE NOT NULL,
    compliant BOOLEAN,
    calories REAL,
    protein_grams REAL,
    carbs_grams REAL,
    fat_grams REAL,
    UNIQUE(client_id, date),
    FOREIGN KEY (client_id) REFERENCES clients(client_id)
);

CREATE INDEX IF NOT EXISTS idx_nutrition_logs_client_date ON nutrition_logs(client_id, date);

-- Training sessions ('rest' marks a rest day)
CREATE TABLE IF NOT EXISTS training_logs (
    log_id INTEGER PRIMARY KEY AUTOINCREMENT,
    client_id TEXT NOT NULL,
    date DATE NOT NULL,
    training_type TEXT NOT NULL,
    UNIQUE(client_id, date),
    FOREIGN KEY (client_id) REFERENCES clients(client_id)
);

CREATE INDEX IF NOT EXISTS idx_training_logs_client_date ON training_logs(client_id, date);
"""


def get_schema_sql() -> str:
    """Return the complete schema SQL."""
    return SCHEMA_SQL
