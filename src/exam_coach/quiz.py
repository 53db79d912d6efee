"""Question attempt recording and per-topic answer statistics."""
import sqlite3
from datetime import datetime

from exam_coach.db import from_iso, get_connection, to_iso
from exam_coach.errors import InvalidInputError
from exam_coach.models import CONFIDENCE_LEVELS, ERROR_TYPES, QuestionAttempt


def validate_attempt(attempt: QuestionAttempt) -> QuestionAttempt:
    """Reject malformed fields; an incorrect answer without an error type gets 'nao_definido'."""
    if attempt.confidence_level not in CONFIDENCE_LEVELS:
        raise InvalidInputError("confidence_level", f"expected one of {', '.join(CONFIDENCE_LEVELS)}")
    if attempt.time_taken is not None and attempt.time_taken < 0:
        raise InvalidInputError("time_taken", "must not be negative")
    if attempt.is_correct:
        attempt.error_type = None
    elif attempt.error_type is None:
        attempt.error_type = "nao_definido"
    elif attempt.error_type not in ERROR_TYPES:
        raise InvalidInputError("error_type", f"expected one of {', '.join(ERROR_TYPES)}")
    return attempt


def insert_attempt(conn: sqlite3.Connection, attempt: QuestionAttempt) -> int:
    cur = conn.execute(
        """INSERT INTO question_attempts
        (topic_id, is_correct, confidence_level, time_taken, error_type, xp_earned, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)""",
        (attempt.topic_id, int(attempt.is_correct), attempt.confidence_level, attempt.time_taken,
         attempt.error_type, attempt.xp_earned, to_iso(attempt.created_at)),
    )
    return cur.lastrowid


def record_question_attempt(
    db_path: str,
    topic_id: int,
    is_correct: bool,
    confidence_level: str = "certeza",
    time_taken: int | None = None,
    error_type: str | None = None,
    xp_earned: int = 0,
    answered_at: datetime | None = None,
) -> int:
    """Store one practice answer and roll it into the topic's attempt counters."""
    attempt = validate_attempt(QuestionAttempt(
        id=0, topic_id=topic_id, is_correct=is_correct, confidence_level=confidence_level,
        time_taken=time_taken, error_type=error_type, xp_earned=xp_earned,
        created_at=answered_at or datetime.now(),
    ))
    conn = get_connection(db_path)
    attempt_id = insert_attempt(conn, attempt)
    conn.execute(
        """UPDATE topics SET
            questions_answered = questions_answered + 1,
            questions_correct = questions_correct + ?,
            total_xp_earned = total_xp_earned + ?,
            last_studied_at = ?
        WHERE id = ?""",
        (int(is_correct), xp_earned, to_iso(attempt.created_at), topic_id),
    )
    conn.commit()
    conn.close()
    return attempt_id


def get_attempts(db_path: str, topic_id: int | None = None) -> list[QuestionAttempt]:
    conn = get_connection(db_path)
    if topic_id is None:
        rows = conn.execute("SELECT * FROM question_attempts ORDER BY created_at, id").fetchall()
    else:
        rows = conn.execute(
            "SELECT * FROM question_attempts WHERE topic_id = ? ORDER BY created_at, id", (topic_id,)
        ).fetchall()
    conn.close()
    return [
        QuestionAttempt(
            id=r["id"],
            topic_id=r["topic_id"],
            is_correct=bool(r["is_correct"]),
            confidence_level=r["confidence_level"],
            time_taken=r["time_taken"],
            error_type=r["error_type"],
            xp_earned=r["xp_earned"],
            created_at=from_iso(r["created_at"]),
        )
        for r in rows
    ]


def get_confidence_breakdown(db_path: str) -> dict:
    """Accuracy per confidence level, e.g. how often guesses were right."""
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT confidence_level, COUNT(*) as total, SUM(is_correct) as correct
        FROM question_attempts GROUP BY confidence_level"""
    ).fetchall()
    conn.close()
    return {
        r["confidence_level"]: {
            "total": r["total"],
            "correct": r["correct"],
            "accuracy": round(r["correct"] / r["total"] * 100, 1),
        }
        for r in rows
    }


def get_error_breakdown(db_path: str) -> dict:
    conn = get_connection(db_path)
    rows = conn.execute(
        """SELECT error_type, COUNT(*) as total FROM question_attempts
        WHERE is_correct = 0 GROUP BY error_type ORDER BY total DESC"""
    ).fetchall()
    conn.close()
    return {r["error_type"]: r["total"] for r in rows}
