"""Review unlock scheduling for topics and spaced repetition for flashcards.

A topic is either Unlocked or Locked(cycle). Completing a review on a topic
that is not yet mastered advances its review cycle (capped) and locks it until
``next_review_date``. Polling with ``check_and_unlock`` releases topics whose
date has passed. Flashcards follow their own schedule keyed by a four-valued
quality rating.
"""
import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable, Optional

from exam_coach.config import DEFAULT_CONFIG, EngineConfig
from exam_coach.errors import InvalidInputError, PreconditionViolatedError
from exam_coach.models import (
    FLASHCARD_QUALITIES, Flashcard, ReadinessTier, ReviewOutcome, Topic, UnlockState,
)
from exam_coach.readiness import classify_readiness

logger = logging.getLogger(__name__)


def is_locked(topic: Topic, now: datetime, config: EngineConfig = DEFAULT_CONFIG) -> bool:
    """The one predicate deciding whether a topic is unavailable for review."""
    if not topic.is_blocked or topic.next_review_date is None:
        return False
    if topic.next_review_date <= now:
        return False
    if topic.current_review_cycle == 0 and classify_readiness(topic, config) is ReadinessTier.VERDE:
        return False
    return True


def compute_unlock_state(
    topic: Topic, now: datetime, config: EngineConfig = DEFAULT_CONFIG
) -> UnlockState:
    return UnlockState(
        is_blocked=is_locked(topic, now, config),
        next_review_date=topic.next_review_date,
        current_review_cycle=topic.current_review_cycle,
    )


def review_delay(cycle: int, config: EngineConfig = DEFAULT_CONFIG) -> timedelta:
    intervals = config.review_interval_days
    index = max(0, min(cycle, len(intervals)) - 1)
    return timedelta(days=intervals[index])


def _validate_outcome(outcome: ReviewOutcome) -> None:
    if outcome.questions_answered < 0:
        raise InvalidInputError("questions_answered", "must not be negative")
    if outcome.questions_correct < 0:
        raise InvalidInputError("questions_correct", "must not be negative")
    if outcome.questions_correct > outcome.questions_answered:
        raise InvalidInputError("questions_correct", "cannot exceed questions_answered")


def record_review_outcome(
    topic: Topic,
    outcome: ReviewOutcome,
    now: datetime,
    exam_date: Optional[datetime] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Topic:
    """Apply a completed review and return the topic's next state.

    Raises PreconditionViolatedError (with the current UnlockState attached)
    when the topic is still locked. The caller persists the returned topic.
    """
    if is_locked(topic, now, config):
        state = compute_unlock_state(topic, now, config)
        raise PreconditionViolatedError(
            f"Topic {topic.name!r} is locked until {topic.next_review_date:%Y-%m-%d %H:%M}",
            state=state,
        )
    _validate_outcome(outcome)

    updated = replace(
        topic,
        questions_answered=topic.questions_answered + outcome.questions_answered,
        questions_correct=topic.questions_correct + outcome.questions_correct,
        total_xp_earned=topic.total_xp_earned + outcome.xp_earned,
        total_reviews=topic.total_reviews + 1,
        last_studied_at=now,
    )
    tier = classify_readiness(updated, config)
    if tier is ReadinessTier.VERDE:
        logger.debug("Topic %s mastered; staying unlocked", topic.id)
        return replace(updated, is_blocked=False, next_review_date=None)

    cycle = min(topic.current_review_cycle + 1, config.max_review_cycle)
    next_date = now + review_delay(cycle, config)
    if exam_date is not None and now < exam_date < next_date:
        next_date = exam_date
    logger.debug("Topic %s (%s) locked at cycle %d until %s", topic.id, tier.value, cycle, next_date)
    return replace(updated, current_review_cycle=cycle, is_blocked=True, next_review_date=next_date)


class UnlockNotifier:
    """Subscription point for topics released by ``check_and_unlock``."""

    def __init__(self):
        self._listeners = []

    def subscribe(self, listener: Callable[[list], None]) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[list], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def publish(self, topic_ids: list) -> None:
        for listener in list(self._listeners):
            listener(list(topic_ids))


def check_and_unlock(
    topics: list,
    now: datetime,
    notifier: Optional[UnlockNotifier] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> tuple:
    """Release every blocked topic whose review date has passed.

    Returns ``(topics, unlocked_ids)``. Safe to call repeatedly.
    """
    result = []
    unlocked = []
    for topic in topics:
        if topic.is_blocked and not is_locked(topic, now, config):
            topic = replace(topic, is_blocked=False)
            unlocked.append(topic.id)
        result.append(topic)
    if unlocked:
        logger.info("Unlocked %d topics for review", len(unlocked))
        if notifier is not None:
            notifier.publish(unlocked)
    return result, unlocked


def review_stats(topics: list, now: datetime, config: EngineConfig = DEFAULT_CONFIG) -> dict:
    locked = sum(1 for t in topics if is_locked(t, now, config))
    ready = sum(1 for t in topics if t.is_blocked and not is_locked(t, now, config))
    return {
        "total": len(topics),
        "locked": locked,
        "ready": ready,
        "available": len(topics) - locked,
        "maxed": sum(1 for t in topics if t.current_review_cycle >= config.max_review_cycle),
        "total_reviews": sum(t.total_reviews for t in topics),
    }


def schedule_flashcard(
    card: Flashcard, quality: str, now: datetime, config: EngineConfig = DEFAULT_CONFIG
) -> Flashcard:
    """Compute a card's next review from a quality rating (again/hard/good/easy).

    ``again`` always resets to the shortest interval; other ratings grow the
    current interval by their multiplier, never below the rating's base.
    """
    if quality not in FLASHCARD_QUALITIES:
        raise InvalidInputError("quality", f"expected one of {', '.join(FLASHCARD_QUALITIES)}, got {quality!r}")
    index = FLASHCARD_QUALITIES.index(quality)
    base = config.flashcard_base_days[index]
    if quality == "again" or card.times_reviewed == 0 or card.interval_days <= 0:
        interval = base
    else:
        interval = max(base, round(card.interval_days * config.flashcard_multipliers[index]))
    interval = min(interval, config.flashcard_max_interval)
    return replace(
        card,
        times_reviewed=card.times_reviewed + 1,
        interval_days=interval,
        next_review_date=now + timedelta(days=interval),
        last_quality=quality,
        last_reviewed_at=now,
    )


def is_card_due(card: Flashcard, now: datetime) -> bool:
    return card.next_review_date is None or card.next_review_date <= now


def due_cards(cards: list, now: datetime, limit: int = 15) -> list:
    """Due cards, never-reviewed first, then most overdue."""
    due = [c for c in cards if is_card_due(c, now)]
    due.sort(key=lambda c: (c.next_review_date is not None, c.next_review_date or now))
    return due[:limit]
