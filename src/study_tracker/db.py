"""Database initialization and connection management."""
import sqlite3
from pathlib import Path

DEFAULT_DB_PATH = str(Path.home() / ".study_tracker" / "tracker.db")

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    display_name TEXT NOT NULL,
    grade TEXT,
    total_reviews_completed INTEGER DEFAULT 0,
    total_understanding_score INTEGER DEFAULT 0,
    average_understanding REAL DEFAULT 0,
    stats_calculated_at TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS study_records (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    study_date TEXT NOT NULL,
    subject TEXT NOT NULL,
    study_minutes INTEGER NOT NULL,
    start_time TEXT,
    end_time TEXT,
    content TEXT NOT NULL,
    details TEXT,
    memo TEXT,
    session_id TEXT,
    should_review INTEGER DEFAULT 0,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS review_items (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    subject TEXT NOT NULL,
    unit TEXT NOT NULL,
    content TEXT,
    study_record_id TEXT REFERENCES study_records(id),
    progress TEXT NOT NULL DEFAULT '[]',  -- JSON, five stage entries
    current_stage INTEGER NOT NULL DEFAULT 1,
    is_completed INTEGER DEFAULT 0,
    version INTEGER NOT NULL DEFAULT 1,
    created_at TEXT,
    updated_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_review_items_user ON review_items(user_id);

CREATE TABLE IF NOT EXISTS review_results (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    review_item_id TEXT NOT NULL REFERENCES review_items(id) ON DELETE CASCADE,
    question_id TEXT DEFAULT '',
    stage INTEGER NOT NULL,
    understanding INTEGER,
    result TEXT NOT NULL,
    time_spent INTEGER DEFAULT 0,
    feedback TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS study_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    subject TEXT NOT NULL,
    unit TEXT NOT NULL,
    content TEXT,
    study_type TEXT DEFAULT 'lecture',
    duration INTEGER NOT NULL DEFAULT 0,
    understanding TEXT NOT NULL,
    notes TEXT,
    study_date TEXT NOT NULL,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS user_settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL UNIQUE,
    value TEXT
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory and foreign keys enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()
