"""Topic priority scoring.

score = weight * urgency * difficulty + performance boost + recency boost

Weight is the manual 1-10 base priority (the subject's when the topic has none);
urgency grows as the exam nears; recency grows with time since the topic was
last studied and saturates after a week. Missing dates contribute a neutral
term instead of failing.
"""
import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from exam_coach.config import DEFAULT_CONFIG, EngineConfig
from exam_coach.models import PriorityLevel, PriorityResult, Subject, Topic

logger = logging.getLogger(__name__)

DIFFICULTY_FACTORS = {"hard": 1.5, "medium": 1.2, "easy": 1.0}
UNKNOWN_DIFFICULTY_FACTOR = 1.1


@dataclass(frozen=True)
class PriorityContext:
    current_date: datetime
    exam_date: Optional[datetime] = None
    performance_history: Optional[dict] = None  # topic id -> average performance (0-1)
    subject_weights: Optional[dict] = None  # subject id -> weight, for topics without their own


def get_urgency_multiplier(exam_date: Optional[datetime], current_date: datetime) -> float:
    if exam_date is None:
        return 1.0
    days_until_exam = (exam_date - current_date).days
    if days_until_exam < 0:
        return 1.0
    if days_until_exam <= 7:
        return 2.0
    if days_until_exam <= 14:
        return 1.8
    if days_until_exam <= 30:
        return 1.5
    if days_until_exam <= 60:
        return 1.2
    return 1.0


def get_recency_boost(
    last_studied: Optional[datetime], current_date: datetime, config: EngineConfig = DEFAULT_CONFIG
) -> float:
    if last_studied is None:
        return config.neutral_recency_boost
    hours = (current_date - last_studied).total_seconds() / 3600
    if hours > 168:
        return 1.8
    if hours > 72:
        return 1.2
    if hours > 24:
        return 0.8
    return 0.2


def get_difficulty_factor(difficulty: Optional[str]) -> float:
    return DIFFICULTY_FACTORS.get(difficulty, UNKNOWN_DIFFICULTY_FACTOR)


def topic_performance(topic: Topic, history: Optional[dict] = None) -> Optional[float]:
    if history and history.get(topic.id) is not None:
        return history[topic.id]
    if topic.accuracy_rate is None:
        return None
    return topic.accuracy_rate / 100


def get_performance_boost(performance: Optional[float]) -> float:
    """Weak topics gain priority, strong ones lose a little."""
    if performance is None:
        return 0.0
    if performance < 0.3:
        return 3.0
    if performance < 0.5:
        return 2.0
    if performance < 0.7:
        return 1.0
    return -0.5


def effective_weight(topic: Topic, context: PriorityContext) -> Optional[int]:
    """The topic's own weight, else the weight of its subject."""
    if topic.weight is not None:
        return topic.weight
    return (context.subject_weights or {}).get(topic.subject_id)


def calculate_topic_priority(
    topic: Topic, context: PriorityContext, config: EngineConfig = DEFAULT_CONFIG
) -> Optional[float]:
    """Continuous score, or None when there is nothing to score (no weight and no history)."""
    base = effective_weight(topic, context)
    has_history = topic.last_studied_at is not None or topic.questions_answered > 0
    if base is None and not has_history:
        return None
    weight = min(10, max(1, base if base is not None else 1))
    urgency = get_urgency_multiplier(context.exam_date, context.current_date)
    difficulty = get_difficulty_factor(topic.difficulty)
    performance = get_performance_boost(topic_performance(topic, context.performance_history))
    recency = get_recency_boost(topic.last_studied_at, context.current_date, config)
    return weight * urgency * difficulty + performance + recency


def get_priority_level(score: Optional[float], config: EngineConfig = DEFAULT_CONFIG) -> PriorityLevel:
    if score is None:
        return PriorityLevel.UNDEFINED
    if score >= config.critical_priority:
        return PriorityLevel.CRITICAL
    if score >= config.important_priority:
        return PriorityLevel.IMPORTANT
    return PriorityLevel.MODERATE


def compute_priority(
    topic: Topic, context: PriorityContext, config: EngineConfig = DEFAULT_CONFIG
) -> PriorityResult:
    score = calculate_topic_priority(topic, context, config)
    if score is not None:
        score = round(score, 2)
    return PriorityResult(score=score, level=get_priority_level(score, config))


def calculate_subject_priorities(
    subject: Subject, context: PriorityContext, config: EngineConfig = DEFAULT_CONFIG
) -> list:
    """(topic, PriorityResult) pairs for a subject, highest score first."""
    if context.subject_weights is None:
        context = replace(context, subject_weights={subject.id: subject.weight})
    scored = [(topic, compute_priority(topic, context, config)) for topic in subject.topics]
    scored.sort(key=lambda pair: pair[1].score if pair[1].score is not None else -1, reverse=True)
    return scored


def redistribute_hours(scored_topics: list, total_hours: float) -> list:
    """Split ``total_hours`` across (topic, PriorityResult) pairs in proportion to score."""
    if not scored_topics:
        return []
    scores = [1.0 if result.score is None else max(result.score, 0.0) for _, result in scored_topics]
    total = sum(scores)
    allocation = []
    for (topic, _), score in zip(scored_topics, scores):
        hours = score / total * total_hours if total > 0 else total_hours / len(scored_topics)
        allocation.append((topic, round(hours, 2)))
    return allocation


def _input_key(topic: Topic, context: PriorityContext) -> tuple:
    history = context.performance_history or {}
    return (
        effective_weight(topic, context),
        topic.difficulty,
        topic.last_studied_at,
        topic.questions_answered,
        topic.questions_correct,
        context.current_date,
        context.exam_date,
        history.get(topic.id),
    )


class PriorityCache:
    """Memoizes the latest priority result of each topic.

    One entry per topic id holds the inputs it was computed from; a lookup with
    different inputs recomputes and replaces it. ``invalidate`` drops a topic
    when its records change.
    """

    def __init__(self, config: EngineConfig = DEFAULT_CONFIG):
        self.config = config
        self._entries = {}  # topic id -> (input key, PriorityResult)
        self.hits = 0
        self.misses = 0

    def get(self, topic: Topic, context: PriorityContext) -> PriorityResult:
        key = _input_key(topic, context)
        entry = self._entries.get(topic.id)
        if entry is not None and entry[0] == key:
            self.hits += 1
            return entry[1]
        self.misses += 1
        result = compute_priority(topic, context, self.config)
        self._entries[topic.id] = (key, result)
        return result

    def invalidate(self, topic_id) -> None:
        self._entries.pop(topic_id, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
