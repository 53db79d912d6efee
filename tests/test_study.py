# tests/test_study.py
from datetime import date, datetime, timedelta

import pytest

from exam_coach.errors import InvalidInputError
from exam_coach.models import WeightSuggestion
from exam_coach.study import (
    add_subject, add_topic, apply_suggestion, get_exam_date, get_metrics, get_setting,
    get_study_sessions, get_subjects, record_daily_metric, record_study_session, set_exam_date,
    set_setting, update_subject_weight,
)


def test_settings_round_trip(ready_db):
    assert get_setting(ready_db, "missing", "fallback") == "fallback"
    set_setting(ready_db, "theme", "dark")
    set_setting(ready_db, "theme", "light")
    assert get_setting(ready_db, "theme") == "light"


def test_exam_date(ready_db):
    assert get_exam_date(ready_db) is None
    exam = datetime(2026, 11, 20, 8, 0)
    set_exam_date(ready_db, exam)
    assert get_exam_date(ready_db) == exam
    set_exam_date(ready_db, None)
    assert get_exam_date(ready_db) is None


def test_subjects_with_nested_topics(ready_db):
    sid = add_subject(ready_db, "Português", weight=6)
    add_topic(ready_db, sid, "Crase", difficulty="easy")
    add_topic(ready_db, sid, "Concordância", difficulty="medium", weight=4)
    other = add_subject(ready_db, "Raciocínio Lógico")
    [pt, rl] = get_subjects(ready_db)
    assert pt.name == "Português"
    assert pt.weight == 6
    assert [t.name for t in pt.topics] == ["Crase", "Concordância"]
    assert pt.topics[1].weight == 4
    assert pt.topics[0].is_blocked is False
    assert rl.id == other
    assert rl.weight is None
    assert rl.topics == []


def test_invalid_subject_and_topic_input(ready_db):
    with pytest.raises(InvalidInputError):
        add_subject(ready_db, "Português", weight=11)
    sid = add_subject(ready_db, "Português")
    with pytest.raises(InvalidInputError) as exc:
        add_topic(ready_db, sid, "Crase", difficulty="brutal")
    assert exc.value.field == "difficulty"


def test_update_and_apply_weight(ready_db):
    sid = add_subject(ready_db, "Português", weight=5)
    update_subject_weight(ready_db, sid, 7)
    assert get_subjects(ready_db)[0].weight == 7
    suggestion = WeightSuggestion("Português", 7, -1, "high_performance", "low")
    updated = apply_suggestion(ready_db, suggestion)
    assert updated.weight == 6
    assert get_subjects(ready_db)[0].weight == 6
    with pytest.raises(InvalidInputError):
        apply_suggestion(ready_db, WeightSuggestion("Física", 3, 1, "manual_adjustment", "low"))


def test_record_study_session_updates_topic(ready_db):
    sid = add_subject(ready_db, "Português")
    add_topic(ready_db, sid, "Crase")
    start = datetime(2026, 3, 1, 9, 0)
    record_study_session(ready_db, "Português", start, 50, "high", topic="Crase", notes={"pages": 12})
    [session] = get_study_sessions(ready_db)
    assert session.end_time == start + timedelta(minutes=50)
    assert session.performance == "high"
    assert session.notes == {"pages": 12}
    topic = get_subjects(ready_db)[0].topics[0]
    assert topic.last_studied_at == start + timedelta(minutes=50)


def test_record_study_session_validation(ready_db):
    with pytest.raises(InvalidInputError):
        record_study_session(ready_db, "Português", datetime(2026, 3, 1), -5)
    with pytest.raises(InvalidInputError):
        record_study_session(ready_db, "Português", datetime(2026, 3, 1), 30, performance="great")


def test_sessions_since(ready_db):
    record_study_session(ready_db, "Português", datetime(2026, 3, 1, 9), 30)
    record_study_session(ready_db, "Português", datetime(2026, 3, 5, 9), 30)
    assert len(get_study_sessions(ready_db, since=datetime(2026, 3, 2))) == 1


def test_daily_metric(ready_db):
    record_study_session(ready_db, "Português", datetime(2026, 3, 1, 9), 30)
    record_study_session(ready_db, "Crase", datetime(2026, 3, 1, 14), 45, completed=False)
    record_study_session(ready_db, "Português", datetime(2026, 3, 2, 9), 60)
    record_daily_metric(ready_db, date(2026, 3, 1))
    [metric] = get_metrics(ready_db, "daily")
    assert metric.metric_date == "2026-03-01"
    assert metric.study_time == 75
    assert metric.sessions_count == 2
    assert metric.productivity_score == 50.0
    assert metric.subject_breakdown == {"Português": 30, "Crase": 45}
    assert get_metrics(ready_db, "weekly") == []
