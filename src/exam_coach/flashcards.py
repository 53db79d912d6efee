"""Flashcard storage and review sessions on the quality-rated schedule."""
from datetime import datetime

from exam_coach.config import DEFAULT_CONFIG, EngineConfig
from exam_coach.db import from_iso, get_connection, to_iso
from exam_coach.errors import InvalidInputError
from exam_coach.models import DIFFICULTIES, Flashcard
from exam_coach.scheduler import due_cards, schedule_flashcard


def _row_to_card(row) -> Flashcard:
    return Flashcard(
        id=row["id"],
        topic_id=row["topic_id"],
        front=row["front"],
        back=row["back"],
        difficulty=row["difficulty"],
        times_reviewed=row["times_reviewed"],
        interval_days=row["interval_days"],
        next_review_date=from_iso(row["next_review_date"]),
        last_quality=row["last_quality"],
        last_reviewed_at=from_iso(row["last_reviewed_at"]),
    )


def add_flashcard(db_path: str, topic_id: int, front: str, back: str, difficulty: str = "medium") -> int:
    if difficulty not in DIFFICULTIES:
        raise InvalidInputError("difficulty", f"expected one of {', '.join(DIFFICULTIES)}")
    conn = get_connection(db_path)
    cur = conn.execute(
        "INSERT INTO flashcards (topic_id, front, back, difficulty) VALUES (?, ?, ?, ?)",
        (topic_id, front, back, difficulty),
    )
    conn.commit()
    conn.close()
    return cur.lastrowid


def get_flashcards(db_path: str, topic_id: int | None = None) -> list[Flashcard]:
    conn = get_connection(db_path)
    if topic_id is None:
        rows = conn.execute("SELECT * FROM flashcards ORDER BY id").fetchall()
    else:
        rows = conn.execute(
            "SELECT * FROM flashcards WHERE topic_id = ? ORDER BY id", (topic_id,)
        ).fetchall()
    conn.close()
    return [_row_to_card(r) for r in rows]


def get_due_cards(db_path: str, now: datetime, limit: int = 15, topic_id: int | None = None) -> list[Flashcard]:
    return due_cards(get_flashcards(db_path, topic_id), now, limit)


def record_flashcard_result(
    db_path: str, card_id: int, quality: str, now: datetime, config: EngineConfig = DEFAULT_CONFIG
) -> Flashcard:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM flashcards WHERE id = ?", (card_id,)).fetchone()
    if row is None:
        conn.close()
        raise InvalidInputError("card_id", f"no flashcard with id {card_id}")
    card = schedule_flashcard(_row_to_card(row), quality, now, config)
    conn.execute(
        """UPDATE flashcards SET times_reviewed=?, interval_days=?, next_review_date=?,
            last_quality=?, last_reviewed_at=?
        WHERE id=?""",
        (card.times_reviewed, card.interval_days, to_iso(card.next_review_date),
         card.last_quality, to_iso(card.last_reviewed_at), card_id),
    )
    conn.commit()
    conn.close()
    return card
