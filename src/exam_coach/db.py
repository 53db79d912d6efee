"""Database initialization and connection management."""
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

DEFAULT_DB_PATH = str(Path.home() / ".exam_coach" / "coach.db")

SCHEMA = """
CREATE TABLE IF NOT EXISTS subjects (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    weight INTEGER,
    priority TEXT DEFAULT 'medium',
    color TEXT DEFAULT ''
);

CREATE TABLE IF NOT EXISTS topics (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    subject_id INTEGER NOT NULL REFERENCES subjects(id),
    name TEXT NOT NULL,
    difficulty TEXT,
    weight INTEGER,
    position INTEGER DEFAULT 0,
    last_studied_at TEXT,
    completed INTEGER DEFAULT 0,
    questions_answered INTEGER DEFAULT 0,
    questions_correct INTEGER DEFAULT 0,
    current_review_cycle INTEGER DEFAULT 0,
    total_reviews INTEGER DEFAULT 0,
    is_blocked INTEGER DEFAULT 0,
    next_review_date TEXT,
    total_xp_earned INTEGER DEFAULT 0
);

CREATE TABLE IF NOT EXISTS flashcards (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    topic_id INTEGER NOT NULL REFERENCES topics(id),
    front TEXT NOT NULL,
    back TEXT NOT NULL,
    difficulty TEXT DEFAULT 'medium',
    times_reviewed INTEGER DEFAULT 0,
    interval_days INTEGER DEFAULT 0,
    next_review_date TEXT,
    last_quality TEXT,
    last_reviewed_at TEXT
);

CREATE TABLE IF NOT EXISTS study_sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    subject TEXT NOT NULL,
    topic TEXT,
    subtopic TEXT,
    start_time TEXT NOT NULL,
    end_time TEXT,
    duration INTEGER NOT NULL DEFAULT 0,
    completed INTEGER DEFAULT 1,
    performance TEXT,
    notes TEXT DEFAULT '{}'
);

CREATE TABLE IF NOT EXISTS question_attempts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    topic_id INTEGER NOT NULL REFERENCES topics(id),
    is_correct INTEGER NOT NULL,
    confidence_level TEXT DEFAULT 'certeza',
    time_taken INTEGER,
    error_type TEXT,
    xp_earned INTEGER DEFAULT 0,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS performance_metrics (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    metric_type TEXT NOT NULL,
    metric_date TEXT NOT NULL,
    study_time INTEGER DEFAULT 0,
    sessions_count INTEGER DEFAULT 0,
    focus_score REAL DEFAULT 0,
    productivity_score REAL DEFAULT 0,
    subject_breakdown TEXT DEFAULT '{}'
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


def to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def from_iso(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None
