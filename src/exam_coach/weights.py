"""Auto-weight advisor: suggests bounded changes to subject weights.

The advisor never mutates a subject. Suggestions are applied in a separate,
explicit step with ``apply_weight_suggestion``.
"""
import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional

from exam_coach.config import DEFAULT_CONFIG, EngineConfig
from exam_coach.errors import InvalidInputError
from exam_coach.models import AdjustmentReport, Subject, WeightSuggestion

logger = logging.getLogger(__name__)

MIN_WEIGHT = 1
MAX_WEIGHT = 10


def clamp_weight(weight: int) -> int:
    return max(MIN_WEIGHT, min(MAX_WEIGHT, weight))


def current_weight(subject: Subject) -> int:
    return clamp_weight(subject.weight if subject.weight is not None else MIN_WEIGHT)


def subject_signals(subject: Subject, now: datetime) -> dict:
    answered = sum(t.questions_answered for t in subject.topics)
    correct = sum(t.questions_correct for t in subject.topics)
    studied = [t.last_studied_at for t in subject.topics if t.last_studied_at is not None]
    last = max(studied) if studied else None
    return {
        "answered": answered,
        "accuracy": correct / answered * 100 if answered else None,
        "last_studied_at": last,
        "days_since_study": (now - last).days if last else None,
    }


def _suggestion(subject: Subject, delta: int, reason: str, impact: str, message: str) -> Optional[WeightSuggestion]:
    weight = current_weight(subject)
    bounded = clamp_weight(weight + delta) - weight
    if bounded == 0:
        return None
    return WeightSuggestion(
        subject_name=subject.name,
        current_weight=weight,
        delta=bounded,
        reason=reason,
        impact=impact,
        message=message,
    )


def _is_stale(signals: dict, config: EngineConfig) -> bool:
    days = signals["days_since_study"]
    return days is None or days > config.stale_days


def _performance_rules(subject: Subject, signals: dict, config: EngineConfig) -> list:
    found = []
    accuracy = signals["accuracy"]
    weight = current_weight(subject)
    if accuracy is None:
        return found
    if (
        signals["answered"] >= config.low_performance_min_sample
        and accuracy < config.low_performance_accuracy
        and weight < config.low_performance_weight_cap
    ):
        impact = "high" if accuracy < config.very_low_performance_accuracy else "medium"
        found.append(_suggestion(
            subject, 2, "low_performance", impact,
            f"{subject.name}: accuracy {accuracy:.0f}% over {signals['answered']} questions, study it more",
        ))
    if (
        not _is_stale(signals, config)
        and signals["answered"] >= config.high_performance_min_sample
        and accuracy >= config.high_performance_accuracy
        and weight > config.high_performance_weight_floor
    ):
        found.append(_suggestion(
            subject, -1, "high_performance", "low",
            f"{subject.name}: accuracy {accuracy:.0f}%, time can go to weaker subjects",
        ))
    return found


def _recency_rule(subject: Subject, signals: dict, config: EngineConfig) -> Optional[WeightSuggestion]:
    days = signals["days_since_study"]
    if days is None:
        return _suggestion(subject, 1, "not_studied_recently", "medium", f"{subject.name} has never been studied")
    if days > config.very_stale_days:
        return _suggestion(subject, 2, "not_studied_recently", "high", f"{subject.name} not studied for {days} days")
    if days > config.stale_days:
        return _suggestion(subject, 1, "not_studied_recently", "medium", f"{subject.name} not studied for {days} days")
    return None


def _exam_rule(
    subject: Subject, mean_weight: float, exam_date: Optional[datetime], now: datetime, config: EngineConfig
) -> Optional[WeightSuggestion]:
    if exam_date is None:
        return None
    days = (exam_date - now).days
    if days < 0 or days > config.exam_near_days or current_weight(subject) >= mean_weight:
        return None
    if days <= config.exam_imminent_days:
        return _suggestion(subject, 2, "exam_proximity", "high", f"Exam in {days} days, {subject.name} is under-weighted")
    return _suggestion(subject, 1, "exam_proximity", "medium", f"Exam in {days} days, {subject.name} is under-weighted")


def generate_weight_suggestions(
    subjects: list,
    exam_date: Optional[datetime] = None,
    now: Optional[datetime] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> list:
    """Every applicable suggestion for every subject. All rules fire independently."""
    now = now or datetime.now()
    if not subjects:
        return []
    mean_weight = sum(current_weight(s) for s in subjects) / len(subjects)
    suggestions = []
    for subject in subjects:
        signals = subject_signals(subject, now)
        found = _performance_rules(subject, signals, config)
        found.append(_recency_rule(subject, signals, config))
        found.append(_exam_rule(subject, mean_weight, exam_date, now, config))
        suggestions.extend(s for s in found if s is not None)
    logger.debug("Generated %d weight suggestions for %d subjects", len(suggestions), len(subjects))
    return suggestions


def manual_adjustment(subject: Subject, new_weight: int) -> Optional[WeightSuggestion]:
    if not MIN_WEIGHT <= new_weight <= MAX_WEIGHT:
        raise InvalidInputError("weight", f"must be between {MIN_WEIGHT} and {MAX_WEIGHT}")
    delta = new_weight - current_weight(subject)
    return _suggestion(subject, delta, "manual_adjustment", "low", f"{subject.name} weight set to {new_weight}")


def apply_weight_suggestion(subject: Subject, suggestion: WeightSuggestion) -> Subject:
    """Return a copy of ``subject`` with the suggested weight. Nothing else changes."""
    if suggestion.subject_name != subject.name:
        raise InvalidInputError(
            "subject_name", f"suggestion is for {suggestion.subject_name!r}, not {subject.name!r}"
        )
    return replace(subject, weight=clamp_weight(current_weight(subject) + suggestion.delta))


def generate_adjustment_report(
    subjects: list,
    exam_date: Optional[datetime] = None,
    now: Optional[datetime] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> AdjustmentReport:
    suggestions = generate_weight_suggestions(subjects, exam_date, now, config)
    impact_rank = {"high": 0, "medium": 1, "low": 2}
    suggestions.sort(key=lambda s: (impact_rank[s.impact], -abs(s.delta)))
    return AdjustmentReport(
        total_suggestions=len(suggestions),
        critical_adjustments=sum(1 for s in suggestions if s.impact == "high"),
        moderate_adjustments=sum(1 for s in suggestions if s.impact == "medium"),
        suggestions=suggestions,
    )
