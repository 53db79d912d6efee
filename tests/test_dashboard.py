# tests/test_dashboard.py
from datetime import datetime, timedelta

from exam_coach.dashboard import (
    get_insights, get_prediction, get_priority_rows, get_review_stats, get_subject_scores,
    get_tier_summary,
)
from exam_coach.engine import Engine
from exam_coach.models import ReadinessTier
from exam_coach.quiz import record_question_attempt
from exam_coach.seed import seed_all
from exam_coach.study import add_subject, add_topic, record_study_session

NOW = datetime(2026, 10, 1, 12, 0)


def test_tier_summary_counts_every_topic(ready_db):
    seed_all(ready_db)
    summary = get_tier_summary(ready_db, Engine())
    assert [row["tier"] for row in summary] == list(ReadinessTier)
    assert summary[0]["label"] == "UNTESTED"
    assert summary[0]["count"] == 11
    assert sum(row["count"] for row in summary) == 11


def test_subject_scores(ready_db):
    sid = add_subject(ready_db, "Português", weight=6)
    tid = add_topic(ready_db, sid, "Crase")
    for correct in (True, True, True, False):
        record_question_attempt(ready_db, tid, correct)
    [row] = get_subject_scores(ready_db, Engine())
    assert row["accuracy"] == 75.0
    assert row["label"] == "DEVELOPING"
    assert row["color"] == "yellow"


def test_priority_rows_sorted(ready_db):
    seed_all(ready_db)
    rows = get_priority_rows(ready_db, Engine(), NOW, limit=5)
    assert len(rows) == 5
    scores = [r["score"] for r in rows]
    assert None not in scores
    assert scores == sorted(scores, reverse=True)
    assert all(r["locked"] is False for r in rows)


def test_review_stats_for_fresh_plan(ready_db):
    seed_all(ready_db)
    stats = get_review_stats(ready_db, Engine(), NOW)
    assert stats["total"] == 11
    assert stats["locked"] == 0
    assert stats["available"] == 11


def test_prediction_and_insights(ready_db):
    assert get_prediction(ready_db, Engine(), NOW).insufficient_data is True
    assert get_insights(ready_db, Engine(), NOW) == []
    for days in (1, 2, 3):
        record_study_session(ready_db, "Licitações", NOW - timedelta(days=days), 60, "low")
    prediction = get_prediction(ready_db, Engine(), NOW)
    assert prediction.insufficient_data is False
    found = get_insights(ready_db, Engine(), NOW)
    assert found[0].severity == "critical"
