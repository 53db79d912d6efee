# tests/test_scheduler.py
from datetime import datetime, timedelta

import pytest

from exam_coach.errors import InvalidInputError, PreconditionViolatedError
from exam_coach.models import Flashcard, ReviewOutcome, Topic
from exam_coach.scheduler import (
    UnlockNotifier, check_and_unlock, compute_unlock_state, due_cards, is_locked,
    record_review_outcome, review_delay, review_stats, schedule_flashcard,
)

NOW = datetime(2026, 3, 10, 9, 0)


def make_topic(**kw):
    fields = {"id": 1, "subject_id": 1, "name": "Licitações"}
    fields.update(kw)
    return Topic(**fields)


def test_failed_review_locks_topic():
    """20 answered / 10 correct is vermelha; a failed review moves it to cycle 1."""
    topic = make_topic(questions_answered=20, questions_correct=10)
    updated = record_review_outcome(topic, ReviewOutcome(10, 4, 40), NOW)
    assert updated.current_review_cycle == 1
    assert updated.is_blocked is True
    assert updated.next_review_date > NOW
    assert updated.questions_answered == 30
    assert updated.questions_correct == 14
    assert updated.total_xp_earned == 40
    assert updated.total_reviews == 1
    assert updated.last_studied_at == NOW
    # input record is untouched
    assert topic.current_review_cycle == 0


def test_review_on_locked_topic_is_rejected():
    topic = record_review_outcome(make_topic(questions_answered=10, questions_correct=2), ReviewOutcome(5, 1), NOW)
    with pytest.raises(PreconditionViolatedError) as exc:
        record_review_outcome(topic, ReviewOutcome(5, 5), NOW + timedelta(hours=1))
    assert exc.value.state.is_blocked is True
    assert exc.value.state.current_review_cycle == 1


def test_cycle_is_monotone_and_capped():
    topic = make_topic(questions_answered=10, questions_correct=2)
    now = NOW
    cycles = []
    for _ in range(8):
        topic = record_review_outcome(topic, ReviewOutcome(10, 2), now)
        cycles.append(topic.current_review_cycle)
        now = topic.next_review_date
    assert cycles == [1, 2, 3, 4, 5, 5, 5, 5]


def test_review_delays_grow():
    delays = [review_delay(c).days for c in range(1, 6)]
    assert delays == [1, 3, 7, 15, 30]
    assert review_delay(9).days == 30


def test_mastered_topic_stays_unlocked():
    topic = make_topic(questions_answered=20, questions_correct=18)
    updated = record_review_outcome(topic, ReviewOutcome(10, 10), NOW)
    assert updated.is_blocked is False
    assert updated.next_review_date is None
    assert updated.current_review_cycle == 0


def test_next_review_never_after_exam():
    exam = NOW + timedelta(hours=12)
    topic = make_topic(questions_answered=10, questions_correct=2)
    updated = record_review_outcome(topic, ReviewOutcome(5, 1), NOW, exam_date=exam)
    assert updated.next_review_date == exam


def test_invalid_outcome_counts():
    with pytest.raises(InvalidInputError) as exc:
        record_review_outcome(make_topic(), ReviewOutcome(3, 5), NOW)
    assert exc.value.field == "questions_correct"
    with pytest.raises(InvalidInputError):
        record_review_outcome(make_topic(), ReviewOutcome(-1, 0), NOW)


def test_is_locked_predicate():
    future = NOW + timedelta(days=2)
    assert not is_locked(make_topic(), NOW)
    assert not is_locked(make_topic(is_blocked=True, next_review_date=None), NOW)
    assert not is_locked(make_topic(is_blocked=True, next_review_date=NOW - timedelta(minutes=1)), NOW)
    assert is_locked(make_topic(is_blocked=True, next_review_date=future, current_review_cycle=2), NOW)
    # mastered topics that were never cycled are always available
    mastered = make_topic(is_blocked=True, next_review_date=future, questions_answered=20, questions_correct=19)
    assert not is_locked(mastered, NOW)


def test_compute_unlock_state_reports_effective_lock():
    topic = make_topic(is_blocked=True, next_review_date=NOW - timedelta(days=1), current_review_cycle=3)
    state = compute_unlock_state(topic, NOW)
    assert state.is_blocked is False
    assert state.current_review_cycle == 3


def test_check_and_unlock_is_idempotent():
    topics = [
        make_topic(id=1, is_blocked=True, next_review_date=NOW - timedelta(hours=1), current_review_cycle=1),
        make_topic(id=2, is_blocked=True, next_review_date=NOW + timedelta(days=3), current_review_cycle=2),
        make_topic(id=3),
    ]
    first, unlocked = check_and_unlock(topics, NOW)
    assert unlocked == [1]
    assert [t.is_blocked for t in first] == [False, True, False]
    second, unlocked_again = check_and_unlock(first, NOW)
    assert unlocked_again == []
    assert second == first


def test_notifier_receives_unlocked_ids():
    received = []
    notifier = UnlockNotifier()
    notifier.subscribe(received.append)
    topics = [make_topic(is_blocked=True, next_review_date=NOW - timedelta(days=1), current_review_cycle=1)]
    check_and_unlock(topics, NOW, notifier)
    assert received == [[1]]
    notifier.unsubscribe(received.append)
    check_and_unlock(topics, NOW, notifier)
    assert received == [[1]]


def test_review_stats():
    topics = [
        make_topic(id=1, is_blocked=True, next_review_date=NOW + timedelta(days=1), current_review_cycle=5, total_reviews=5),
        make_topic(id=2, is_blocked=True, next_review_date=NOW - timedelta(days=1), current_review_cycle=1, total_reviews=1),
        make_topic(id=3),
    ]
    stats = review_stats(topics, NOW)
    assert stats == {"total": 3, "locked": 1, "ready": 1, "available": 2, "maxed": 1, "total_reviews": 6}


def make_card(**kw):
    fields = {"id": 1, "topic_id": 1, "front": "Q", "back": "A"}
    fields.update(kw)
    return Flashcard(**fields)


def test_new_card_uses_base_interval():
    card = schedule_flashcard(make_card(), "good", NOW)
    assert card.interval_days == 4
    assert card.times_reviewed == 1
    assert card.next_review_date == NOW + timedelta(days=4)
    assert card.last_quality == "good"
    assert card.last_reviewed_at == NOW


def test_card_interval_grows_and_resets():
    card = schedule_flashcard(make_card(), "good", NOW)
    card = schedule_flashcard(card, "good", NOW)
    assert card.interval_days == 8
    card = schedule_flashcard(card, "easy", NOW)
    assert card.interval_days == 21
    card = schedule_flashcard(card, "again", NOW)
    assert card.interval_days == 1


def test_card_interval_is_capped():
    card = schedule_flashcard(make_card(times_reviewed=9, interval_days=300), "easy", NOW)
    assert card.interval_days == 365


def test_unknown_quality_rejected():
    with pytest.raises(InvalidInputError) as exc:
        schedule_flashcard(make_card(), "perfect", NOW)
    assert exc.value.field == "quality"


def test_due_cards_order_and_limit():
    cards = [
        make_card(id=1, next_review_date=NOW - timedelta(days=1)),
        make_card(id=2, next_review_date=NOW + timedelta(days=1)),
        make_card(id=3),
        make_card(id=4, next_review_date=NOW - timedelta(days=5)),
    ]
    assert [c.id for c in due_cards(cards, NOW)] == [3, 4, 1]
    assert [c.id for c in due_cards(cards, NOW, limit=2)] == [3, 4]
