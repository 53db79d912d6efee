"""Per-subject learning curves and exam readiness forecasts.

Each subject's study sessions are reduced to a LearningCurve:

- current level: recency-weighted mean of session performance scores
- learning rate: improvement between the first and second half of the
  sessions, per hour studied (never below a small positive floor)
- difficulty factor: high when many hours produced poor results

Forecasts project those curves forward to the exam date. With no history the
prediction falls back to neutral values and flags ``insufficient_data``.
"""
import logging
import math
from datetime import datetime
from typing import Optional

from exam_coach.config import DEFAULT_CONFIG, EngineConfig
from exam_coach.models import LearningCurve, PerformancePrediction

logger = logging.getLogger(__name__)

PERFORMANCE_SCORES = {"high": 1.0, "medium": 0.6, "low": 0.3}
UNKNOWN_PERFORMANCE_SCORE = 0.5


def performance_score(performance: Optional[str]) -> float:
    return PERFORMANCE_SCORES.get(performance, UNKNOWN_PERFORMANCE_SCORE)


def session_minutes(session) -> int:
    """Session duration, with negative or missing values counted as zero."""
    if session.duration is None or session.duration < 0:
        logger.warning("Session %s has invalid duration %r; counting it as 0", session.id, session.duration)
        return 0
    return session.duration


def _mean(values: list) -> float:
    return sum(values) / len(values)


def calculate_current_level(performances: list, config: EngineConfig = DEFAULT_CONFIG) -> float:
    if not performances:
        return 0.0
    weights = [config.recency_ratio ** i for i in range(len(performances))]
    return sum(p * w for p, w in zip(performances, weights)) / sum(weights)


def calculate_learning_rate(performances: list, minutes: float, config: EngineConfig = DEFAULT_CONFIG) -> float:
    if len(performances) < 2 or minutes <= 0:
        return config.default_learning_rate
    half = len(performances) // 2
    improvement = _mean(performances[half:]) - _mean(performances[:half])
    return max(config.min_learning_rate, improvement / (minutes / 60))


def calculate_difficulty_factor(performances: list, minutes: float) -> float:
    if not performances:
        return 0.5
    average = _mean(performances)
    hours = minutes / 60
    if hours > 10 and average < 0.5:
        return 0.8
    if hours > 5 and average < 0.7:
        return 0.6
    if average > 0.8:
        return 0.2
    return 0.4


def calculate_learning_curves(sessions: list, config: EngineConfig = DEFAULT_CONFIG) -> dict:
    """Subject name -> LearningCurve, sessions taken in chronological order."""
    grouped = {}
    for session in sorted(sessions, key=lambda s: s.start_time):
        data = grouped.setdefault(session.subject, {"performances": [], "minutes": 0})
        data["performances"].append(performance_score(session.performance))
        data["minutes"] += session_minutes(session)

    return {
        subject: LearningCurve(
            subject=subject,
            current_level=calculate_current_level(data["performances"], config),
            learning_rate=calculate_learning_rate(data["performances"], data["minutes"], config),
            difficulty_factor=calculate_difficulty_factor(data["performances"], data["minutes"]),
            plateau_threshold=config.plateau_threshold,
        )
        for subject, data in grouped.items()
    }


def time_to_mastery(curves: dict) -> dict:
    """Hours each subject needs to reach its plateau, inflated by difficulty."""
    result = {}
    for subject, curve in curves.items():
        remaining = max(0.0, curve.plateau_threshold - curve.current_level)
        hours = remaining / curve.learning_rate * (1 + curve.difficulty_factor)
        result[subject] = math.ceil(hours)
    return result


def forecast_level(curve: LearningCurve, hours: float) -> float:
    potential = max(0.0, curve.plateau_threshold - curve.current_level)
    if hours >= potential / curve.learning_rate:
        level = max(curve.current_level, curve.plateau_threshold)
    else:
        level = curve.current_level + curve.learning_rate * hours
    level *= 1 - curve.difficulty_factor * 0.2
    return min(1.0, max(0.0, level))


def predict_exam_performance(curves: dict, days_until_exam: int, config: EngineConfig = DEFAULT_CONFIG) -> int:
    subjects = list(curves.values())
    if not subjects:
        return 50
    hours = days_until_exam * config.subject_hours_per_day
    futures = [forecast_level(curve, hours) for curve in subjects]
    total_level = sum(curve.current_level for curve in subjects)
    if total_level > 0:
        weights = [curve.current_level / total_level for curve in subjects]
    else:
        weights = [1 / len(subjects)] * len(subjects)
    return round(sum(f * w for f, w in zip(futures, weights)) * 100)


def _sigmoid(x: float) -> float:
    return 1 / (1 + math.exp(-x))


def calculate_goal_probability(curves: dict, days_until_target: int, config: EngineConfig = DEFAULT_CONFIG) -> float:
    subjects = list(curves.values())
    if not subjects:
        return 0.5
    hours = days_until_target * config.total_hours_per_day / len(subjects)
    probabilities = []
    for curve in subjects:
        required = max(0.0, config.target_level - curve.current_level)
        possible = curve.learning_rate * hours
        if required == 0:
            probabilities.append(1.0)
        elif possible == 0:
            probabilities.append(0.0)
        else:
            probabilities.append(_sigmoid(config.sigmoid_steepness * (possible / required - 1)))
    return _mean(probabilities)


def calculate_recommended_time(
    curves: dict, days_until_target: int, goal_probability: float, config: EngineConfig = DEFAULT_CONFIG
) -> int:
    """Daily study hours needed to bring every subject to the target level, within [2, 12]."""
    if not curves:
        return 4
    if goal_probability < 0.3:
        multiplier = 1.5
    elif goal_probability < 0.6:
        multiplier = 1.2
    else:
        multiplier = 1.0
    needed = sum(
        max(0.0, config.target_level - curve.current_level) / curve.learning_rate
        for curve in curves.values()
    )
    daily = needed / days_until_target * multiplier
    return max(2, min(12, math.ceil(daily)))


def calculate_weakness_improvement(curves: dict) -> dict:
    """Improvement potential (% per hour) for subjects well below the average level."""
    if not curves:
        return {}
    average = _mean([curve.current_level for curve in curves.values()])
    return {
        subject: round((curve.plateau_threshold - curve.current_level) * curve.learning_rate * 100)
        for subject, curve in curves.items()
        if curve.current_level < average * 0.8
    }


def calculate_confidence(
    sessions: list, metrics: list, now: datetime, config: EngineConfig = DEFAULT_CONFIG
) -> float:
    if not sessions:
        return 0.5
    data_confidence = min(1.0, (len(sessions) + len(metrics)) / config.confidence_full_records)
    recent = [s for s in sessions if (now - s.start_time).total_seconds() / 86400 <= config.confidence_recent_days]
    density_confidence = min(1.0, len(recent) / config.confidence_full_recent_sessions)
    scores = [performance_score(s.performance) for s in sessions]
    average = _mean(scores)
    variance = _mean([(score - average) ** 2 for score in scores])
    stability_confidence = max(0.0, 1 - variance)
    return data_confidence * 0.4 + density_confidence * 0.4 + stability_confidence * 0.2


def days_until(target: Optional[datetime], now: datetime, config: EngineConfig = DEFAULT_CONFIG) -> int:
    if target is None:
        return config.default_horizon_days
    return max(1, math.ceil((target - now).total_seconds() / 86400))


def predict_performance(
    sessions: list,
    metrics: list = (),
    exam_date: Optional[datetime] = None,
    now: Optional[datetime] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> PerformancePrediction:
    now = now or datetime.now()
    metrics = list(metrics)
    if not sessions:
        return PerformancePrediction(
            exam_performance=50,
            time_to_mastery={},
            goal_achievement_probability=0.5,
            recommended_study_time=4,
            weakness_improvement={},
            confidence_level=0.5,
            insufficient_data=True,
        )

    curves = calculate_learning_curves(sessions, config)
    days = days_until(exam_date, now, config)
    goal = calculate_goal_probability(curves, days, config)
    return PerformancePrediction(
        exam_performance=predict_exam_performance(curves, days, config),
        time_to_mastery=time_to_mastery(curves),
        goal_achievement_probability=round(goal, 3),
        recommended_study_time=calculate_recommended_time(curves, days, goal, config),
        weakness_improvement=calculate_weakness_improvement(curves),
        confidence_level=round(calculate_confidence(sessions, metrics, now, config), 3),
    )
