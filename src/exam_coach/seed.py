"""Seed the database with a sample study plan and flashcards."""
import json
from pathlib import Path

from exam_coach.db import get_connection

CONTENT_DIR = Path(__file__).parent / "content"


def is_seeded(db_path: str) -> bool:
    """Check whether the database already has subjects."""
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM subjects").fetchone()[0]
    conn.close()
    return count > 0


def _load_plan() -> dict:
    return json.loads((CONTENT_DIR / "plan.json").read_text(encoding="utf-8"))


def seed_subjects(db_path: str) -> None:
    """Insert subjects and their topics, keeping plan order as topic position.

    Topics without a weight of their own follow their subject's weight.
    """
    data = _load_plan()
    conn = get_connection(db_path)
    for subject in data["subjects"]:
        cur = conn.execute(
            "INSERT INTO subjects (name, weight, priority, color) VALUES (?, ?, ?, ?)",
            (subject["name"], subject["weight"], subject["priority"], subject["color"]),
        )
        subject_id = cur.lastrowid
        for position, topic in enumerate(subject["topics"]):
            conn.execute(
                "INSERT INTO topics (subject_id, name, difficulty, weight, position) VALUES (?, ?, ?, ?, ?)",
                (subject_id, topic["name"], topic["difficulty"], topic.get("weight"), position),
            )
    conn.commit()
    conn.close()


def seed_flashcards(db_path: str) -> None:
    data = _load_plan()
    conn = get_connection(db_path)
    for card in data["flashcards"]:
        # Look up topic_id by name
        row = conn.execute("SELECT id FROM topics WHERE name = ?", (card["topic"],)).fetchone()
        if row is None:
            continue
        conn.execute(
            "INSERT INTO flashcards (topic_id, front, back) VALUES (?, ?, ?)",
            (row["id"], card["front"], card["back"]),
        )
    conn.commit()
    conn.close()


def seed_all(db_path: str) -> None:
    """Run all seed functions in order."""
    if is_seeded(db_path):
        return
    seed_subjects(db_path)
    seed_flashcards(db_path)
