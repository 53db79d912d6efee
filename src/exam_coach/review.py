"""Topic loading plus persistence of unlock checks and completed reviews."""
import logging
from datetime import datetime

from exam_coach.db import get_connection, to_iso
from exam_coach.engine import Engine
from exam_coach.errors import InvalidInputError
from exam_coach.models import QuestionAttempt, ReviewOutcome, Topic
from exam_coach.quiz import insert_attempt, validate_attempt
from exam_coach.study import get_exam_date, row_to_topic

logger = logging.getLogger(__name__)


def get_topic(db_path: str, topic_id: int) -> Topic:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM topics WHERE id = ?", (topic_id,)).fetchone()
    conn.close()
    if row is None:
        raise InvalidInputError("topic_id", f"no topic with id {topic_id}")
    return row_to_topic(row)


def get_topics(db_path: str, subject_id: int | None = None) -> list[Topic]:
    conn = get_connection(db_path)
    if subject_id is None:
        rows = conn.execute("SELECT * FROM topics ORDER BY subject_id, position, id").fetchall()
    else:
        rows = conn.execute(
            "SELECT * FROM topics WHERE subject_id = ? ORDER BY position, id", (subject_id,)
        ).fetchall()
    conn.close()
    return [row_to_topic(r) for r in rows]


def _save_topic(conn, topic: Topic) -> None:
    conn.execute(
        """UPDATE topics SET
            last_studied_at = ?, completed = ?, questions_answered = ?, questions_correct = ?,
            current_review_cycle = ?, total_reviews = ?, is_blocked = ?, next_review_date = ?,
            total_xp_earned = ?
        WHERE id = ?""",
        (to_iso(topic.last_studied_at), int(topic.completed), topic.questions_answered,
         topic.questions_correct, topic.current_review_cycle, topic.total_reviews,
         int(topic.is_blocked), to_iso(topic.next_review_date), topic.total_xp_earned, topic.id),
    )


def save_topic(db_path: str, topic: Topic) -> None:
    conn = get_connection(db_path)
    _save_topic(conn, topic)
    conn.commit()
    conn.close()


def refresh_unlocks(db_path: str, engine: Engine, now: datetime) -> list[int]:
    """Release topics whose review date has passed and persist the change.

    Returns the ids that were unlocked on this call; a second call with the
    same ``now`` returns an empty list.
    """
    topics, unlocked = engine.check_and_unlock(get_topics(db_path), now)
    if unlocked:
        released = set(unlocked)
        conn = get_connection(db_path)
        for topic in topics:
            if topic.id in released:
                _save_topic(conn, topic)
        conn.commit()
        conn.close()
    return unlocked


def get_available_topics(db_path: str, engine: Engine, now: datetime) -> list[Topic]:
    """Topics that can be battled right now."""
    return [
        t for t in get_topics(db_path)
        if not engine.compute_unlock_state(t, now).is_blocked
    ]


def complete_review(
    db_path: str, engine: Engine, topic_id: int, attempts: list, now: datetime
) -> Topic:
    """Store a finished battle round and move the topic to its next review state.

    ``attempts`` is the list of QuestionAttempt records answered during the
    round. Nothing is written if the topic is still locked.
    """
    topic = get_topic(db_path, topic_id)
    checked = [validate_attempt(a) for a in attempts]
    for attempt in checked:
        if attempt.topic_id != topic_id:
            raise InvalidInputError("topic_id", f"attempt belongs to topic {attempt.topic_id}, not {topic_id}")
    outcome = ReviewOutcome(
        questions_answered=len(checked),
        questions_correct=sum(1 for a in checked if a.is_correct),
        xp_earned=sum(a.xp_earned for a in checked),
    )
    updated = engine.record_review_outcome(topic, outcome, now, get_exam_date(db_path))

    conn = get_connection(db_path)
    for attempt in checked:
        if attempt.created_at is None:
            attempt.created_at = now
        insert_attempt(conn, attempt)
    _save_topic(conn, updated)
    conn.commit()
    conn.close()
    logger.info(
        "Review of topic %s stored: %d/%d correct, cycle %d",
        topic_id, outcome.questions_correct, outcome.questions_answered, updated.current_review_cycle,
    )
    return updated


def battle_attempt(topic_id: int, is_correct: bool, confidence_level: str = "certeza",
                   error_type: str | None = None, xp_earned: int = 0) -> QuestionAttempt:
    return QuestionAttempt(
        id=0, topic_id=topic_id, is_correct=is_correct, confidence_level=confidence_level,
        error_type=error_type, xp_earned=xp_earned,
    )
