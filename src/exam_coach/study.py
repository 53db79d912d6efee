"""Study plan, session and settings storage."""
import json
from datetime import date, datetime, timedelta

from exam_coach.db import from_iso, get_connection, to_iso
from exam_coach.errors import InvalidInputError
from exam_coach.models import (
    DIFFICULTIES, PERFORMANCE_BUCKETS, PerformanceMetric, StudySession, Subject, Topic,
    WeightSuggestion,
)
from exam_coach.weights import apply_weight_suggestion


def get_setting(db_path: str, key: str, default: str = None) -> str | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    conn.close()
    return row["value"] if row else default


def set_setting(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
        (key, value, value),
    )
    conn.commit()
    conn.close()


def get_exam_date(db_path: str) -> datetime | None:
    return from_iso(get_setting(db_path, "exam_date"))


def set_exam_date(db_path: str, exam_date: datetime | None) -> None:
    set_setting(db_path, "exam_date", to_iso(exam_date) or "")


def add_subject(db_path: str, name: str, weight: int | None = None, priority: str = "medium", color: str = "") -> int:
    if weight is not None and not 1 <= weight <= 10:
        raise InvalidInputError("weight", "must be between 1 and 10")
    conn = get_connection(db_path)
    cur = conn.execute(
        "INSERT INTO subjects (name, weight, priority, color) VALUES (?, ?, ?, ?)",
        (name, weight, priority, color),
    )
    conn.commit()
    conn.close()
    return cur.lastrowid


def add_topic(
    db_path: str, subject_id: int, name: str, difficulty: str | None = None, weight: int | None = None,
) -> int:
    if difficulty is not None and difficulty not in DIFFICULTIES:
        raise InvalidInputError("difficulty", f"expected one of {', '.join(DIFFICULTIES)}")
    conn = get_connection(db_path)
    position = conn.execute(
        "SELECT COUNT(*) FROM topics WHERE subject_id = ?", (subject_id,)
    ).fetchone()[0]
    cur = conn.execute(
        "INSERT INTO topics (subject_id, name, difficulty, weight, position) VALUES (?, ?, ?, ?, ?)",
        (subject_id, name, difficulty, weight, position),
    )
    conn.commit()
    conn.close()
    return cur.lastrowid


def row_to_topic(row) -> Topic:
    return Topic(
        id=row["id"],
        subject_id=row["subject_id"],
        name=row["name"],
        difficulty=row["difficulty"],
        weight=row["weight"],
        last_studied_at=from_iso(row["last_studied_at"]),
        completed=bool(row["completed"]),
        questions_answered=row["questions_answered"],
        questions_correct=row["questions_correct"],
        current_review_cycle=row["current_review_cycle"],
        total_reviews=row["total_reviews"],
        is_blocked=bool(row["is_blocked"]),
        next_review_date=from_iso(row["next_review_date"]),
        total_xp_earned=row["total_xp_earned"],
    )


def get_subjects(db_path: str) -> list[Subject]:
    """All subjects with their topics nested, in plan order."""
    conn = get_connection(db_path)
    subjects = conn.execute("SELECT * FROM subjects ORDER BY id").fetchall()
    topics = conn.execute("SELECT * FROM topics ORDER BY subject_id, position, id").fetchall()
    conn.close()
    by_subject = {}
    for row in topics:
        by_subject.setdefault(row["subject_id"], []).append(row_to_topic(row))
    return [
        Subject(
            id=s["id"], name=s["name"], weight=s["weight"], priority=s["priority"],
            color=s["color"], topics=by_subject.get(s["id"], []),
        )
        for s in subjects
    ]


def update_subject_weight(db_path: str, subject_id: int, weight: int) -> None:
    conn = get_connection(db_path)
    conn.execute("UPDATE subjects SET weight = ? WHERE id = ?", (weight, subject_id))
    conn.commit()
    conn.close()


def apply_suggestion(db_path: str, suggestion: WeightSuggestion) -> Subject:
    """Persist an accepted weight suggestion and return the updated subject."""
    subject = next((s for s in get_subjects(db_path) if s.name == suggestion.subject_name), None)
    if subject is None:
        raise InvalidInputError("subject_name", f"unknown subject {suggestion.subject_name!r}")
    updated = apply_weight_suggestion(subject, suggestion)
    update_subject_weight(db_path, updated.id, updated.weight)
    return updated


def record_study_session(
    db_path: str,
    subject: str,
    start_time: datetime,
    duration: int,
    performance: str | None = None,
    topic: str | None = None,
    subtopic: str | None = None,
    completed: bool = True,
    notes: dict | None = None,
) -> int:
    if duration is None or duration < 0:
        raise InvalidInputError("duration", "must be a non-negative number of minutes")
    if performance is not None and performance not in PERFORMANCE_BUCKETS:
        raise InvalidInputError("performance", f"expected one of {', '.join(PERFORMANCE_BUCKETS)}")
    end_time = start_time + timedelta(minutes=duration)
    conn = get_connection(db_path)
    cur = conn.execute(
        """INSERT INTO study_sessions
        (subject, topic, subtopic, start_time, end_time, duration, completed, performance, notes)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (subject, topic, subtopic, to_iso(start_time), to_iso(end_time), duration,
         int(completed), performance, json.dumps(notes or {})),
    )
    if topic:
        conn.execute(
            """UPDATE topics SET last_studied_at = ?
            WHERE name = ? AND subject_id = (SELECT id FROM subjects WHERE name = ?)""",
            (to_iso(end_time), topic, subject),
        )
    conn.commit()
    conn.close()
    return cur.lastrowid


def get_study_sessions(db_path: str, since: datetime | None = None) -> list[StudySession]:
    conn = get_connection(db_path)
    if since is None:
        rows = conn.execute("SELECT * FROM study_sessions ORDER BY start_time").fetchall()
    else:
        rows = conn.execute(
            "SELECT * FROM study_sessions WHERE start_time >= ? ORDER BY start_time", (to_iso(since),)
        ).fetchall()
    conn.close()
    return [
        StudySession(
            id=r["id"],
            subject=r["subject"],
            topic=r["topic"],
            subtopic=r["subtopic"],
            start_time=from_iso(r["start_time"]),
            end_time=from_iso(r["end_time"]),
            duration=r["duration"],
            completed=bool(r["completed"]),
            performance=r["performance"],
            notes=json.loads(r["notes"] or "{}"),
        )
        for r in rows
    ]


def save_metric(db_path: str, metric: PerformanceMetric) -> int:
    conn = get_connection(db_path)
    cur = conn.execute(
        """INSERT INTO performance_metrics
        (metric_type, metric_date, study_time, sessions_count, focus_score, productivity_score, subject_breakdown)
        VALUES (?, ?, ?, ?, ?, ?, ?)""",
        (metric.metric_type, metric.metric_date, metric.study_time, metric.sessions_count,
         metric.focus_score, metric.productivity_score, json.dumps(metric.subject_breakdown)),
    )
    conn.commit()
    conn.close()
    return cur.lastrowid


def get_metrics(db_path: str, metric_type: str | None = None) -> list[PerformanceMetric]:
    conn = get_connection(db_path)
    if metric_type is None:
        rows = conn.execute("SELECT * FROM performance_metrics ORDER BY metric_date").fetchall()
    else:
        rows = conn.execute(
            "SELECT * FROM performance_metrics WHERE metric_type = ? ORDER BY metric_date", (metric_type,)
        ).fetchall()
    conn.close()
    return [
        PerformanceMetric(
            id=r["id"],
            metric_type=r["metric_type"],
            metric_date=r["metric_date"],
            study_time=r["study_time"],
            sessions_count=r["sessions_count"],
            focus_score=r["focus_score"],
            productivity_score=r["productivity_score"],
            subject_breakdown=json.loads(r["subject_breakdown"] or "{}"),
        )
        for r in rows
    ]


def record_daily_metric(db_path: str, day: date) -> int:
    """Summarize one calendar day of sessions into a daily metric row."""
    start = datetime.combine(day, datetime.min.time())
    sessions = [s for s in get_study_sessions(db_path, since=start) if s.start_time.date() == day]
    breakdown = {}
    for s in sessions:
        breakdown[s.subject] = breakdown.get(s.subject, 0) + s.duration
    completed = sum(1 for s in sessions if s.completed)
    metric = PerformanceMetric(
        id=0,
        metric_type="daily",
        metric_date=day.isoformat(),
        study_time=sum(breakdown.values()),
        sessions_count=len(sessions),
        productivity_score=round(completed / len(sessions) * 100, 1) if sessions else 0.0,
        subject_breakdown=breakdown,
    )
    return save_metric(db_path, metric)
