# tests/test_integration.py
"""End-to-end test of the core workflow."""
from datetime import datetime, timedelta

from exam_coach.config import load_config
from exam_coach.dashboard import get_insights, get_prediction, get_priority_rows, get_tier_summary
from exam_coach.db import init_db
from exam_coach.engine import Engine
from exam_coach.flashcards import get_due_cards, record_flashcard_result
from exam_coach.models import ReadinessTier
from exam_coach.review import battle_attempt, complete_review, get_topic, refresh_unlocks
from exam_coach.seed import seed_all
from exam_coach.study import (
    apply_suggestion, get_subjects, record_study_session, set_exam_date, set_setting,
)


def test_full_study_cycle(tmp_db):
    """Seed a plan, battle a topic until it is mastered and check every summary."""
    init_db(tmp_db)
    seed_all(tmp_db)
    set_setting(tmp_db, "config.verde_threshold", "80")
    engine = Engine(load_config(tmp_db))
    now = datetime(2026, 5, 4, 20, 0)
    set_exam_date(tmp_db, now + timedelta(days=40))

    topic = get_subjects(tmp_db)[0].topics[0]
    assert engine.classify_readiness(topic) is ReadinessTier.TRIAGEM

    # Day 1: weak battle locks the topic for a day
    attempts = [battle_attempt(topic.id, i < 2) for i in range(6)]
    topic = complete_review(tmp_db, engine, topic.id, attempts, now)
    assert topic.is_blocked and topic.current_review_cycle == 1
    record_study_session(tmp_db, "Direito Constitucional", now - timedelta(hours=1), 60, "low", topic=topic.name)

    # Day 2: unlocked, strong battle brings it to the green tier
    now += timedelta(days=1, hours=1)
    assert refresh_unlocks(tmp_db, engine, now) == [topic.id]
    attempts = [battle_attempt(topic.id, True, xp_earned=10) for _ in range(20)]
    topic = complete_review(tmp_db, engine, topic.id, attempts, now)
    assert engine.classify_readiness(topic) is ReadinessTier.VERDE
    assert topic.is_blocked is False
    assert get_topic(tmp_db, topic.id).total_xp_earned == 200
    record_study_session(tmp_db, "Direito Constitucional", now - timedelta(hours=1), 60, "high", topic=topic.name)

    # Flashcards
    for card in get_due_cards(tmp_db, now, limit=3):
        record_flashcard_result(tmp_db, card.id, "good", now, engine.config)
    assert len(get_due_cards(tmp_db, now)) == 5

    # Summaries
    tiers = {row["tier"]: row["count"] for row in get_tier_summary(tmp_db, engine)}
    assert tiers[ReadinessTier.VERDE] == 1
    assert tiers[ReadinessTier.TRIAGEM] == 10
    rows = get_priority_rows(tmp_db, engine, now, limit=20)
    assert len(rows) == 11
    scores = {row["topic"]: row["score"] for row in rows}
    assert scores["Organização do Estado"] > scores[topic.name]
    prediction = get_prediction(tmp_db, engine, now)
    assert prediction.insufficient_data is False
    assert "Direito Constitucional" in prediction.time_to_mastery
    assert isinstance(get_insights(tmp_db, engine, now), list)

    # Weight advisor
    suggestions = engine.generate_weight_suggestions(get_subjects(tmp_db), now=now)
    for suggestion in suggestions:
        apply_suggestion(tmp_db, suggestion)
    assert all(1 <= s.weight <= 10 for s in get_subjects(tmp_db))


def test_accepted_suggestion_raises_topic_priority(tmp_db):
    init_db(tmp_db)
    seed_all(tmp_db)
    engine = Engine()
    now = datetime(2026, 5, 4, 20, 0)

    def score_of(topic_name):
        rows = get_priority_rows(tmp_db, engine, now, limit=20)
        return next(row["score"] for row in rows if row["topic"] == topic_name)

    before = score_of("Proposições")
    suggestions = engine.generate_weight_suggestions(get_subjects(tmp_db), now=now)
    suggestion = next(s for s in suggestions if s.subject_name == "Raciocínio Lógico")
    assert suggestion.delta > 0
    apply_suggestion(tmp_db, suggestion)
    assert score_of("Proposições") > before
