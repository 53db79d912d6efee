"""Study insights: weaknesses, strengths, time patterns, burnout and consistency."""
import logging
from datetime import datetime, timedelta
from typing import Optional

from exam_coach.config import DEFAULT_CONFIG, EngineConfig
from exam_coach.models import Insight, StudyPattern
from exam_coach.prediction import performance_score, session_minutes

logger = logging.getLogger(__name__)

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
SEVERITY_RANK = {"critical": 0, "high": 1, "medium": 2, "low": 3}


def _mean(values: list) -> float:
    return sum(values) / len(values)


def _within(sessions: list, now: datetime, days: int) -> list:
    return [s for s in sessions if (now - s.start_time).total_seconds() / 86400 <= days]


def analyze_subject_performance(sessions: list) -> dict:
    grouped = {}
    for session in sessions:
        data = grouped.setdefault(session.subject, {"scores": [], "minutes": 0})
        data["scores"].append(performance_score(session.performance))
        data["minutes"] += session_minutes(session)
    return {
        subject: {
            "average_performance": _mean(data["scores"]),
            "total_time": data["minutes"],
            "session_count": len(data["scores"]),
        }
        for subject, data in grouped.items()
    }


def _best_buckets(buckets: dict, threshold: float) -> list:
    ranked = [(key, _mean(scores)) for key, scores in buckets.items()]
    ranked = [pair for pair in ranked if pair[1] >= threshold]
    ranked.sort(key=lambda pair: pair[1], reverse=True)
    return [key for key, _ in ranked]


def analyze_burnout_risk(sessions: list, now: datetime, config: EngineConfig = DEFAULT_CONFIG) -> float:
    """Average of an hours-load risk and a performance risk over the recent window."""
    recent = _within(sessions, now, config.burnout_window_days)
    if not recent:
        return 0.0
    daily_hours = sum(session_minutes(s) for s in recent) / 60 / config.burnout_window_days
    average = _mean([performance_score(s.performance) for s in recent])

    if daily_hours > 8:
        hours_risk = 0.8
    elif daily_hours > 6:
        hours_risk = 0.5
    else:
        hours_risk = 0.2

    if average < 0.5:
        performance_risk = 0.8
    elif average < 0.7:
        performance_risk = 0.4
    else:
        performance_risk = 0.1

    return min((hours_risk + performance_risk) / 2, 1.0)


def analyze_consistency(sessions: list, now: datetime, config: EngineConfig = DEFAULT_CONFIG) -> float:
    """Fraction of the last N calendar days with at least one session."""
    window = config.consistency_window_days
    days = {now.date() - timedelta(days=k) for k in range(window)}
    study_days = {s.start_time.date() for s in sessions} & days
    return len(study_days) / window


def calculate_productivity_score(sessions: list) -> float:
    if not sessions:
        return 0.0
    completion = sum(1 for s in sessions if s.completed) / len(sessions)
    average = _mean([performance_score(s.performance) for s in sessions])
    return (completion * 0.6 + average * 0.4) * 100


def analyze_time_patterns(
    sessions: list, now: Optional[datetime] = None, config: EngineConfig = DEFAULT_CONFIG
) -> StudyPattern:
    now = now or datetime.now()
    by_hour = {}
    by_day = {}
    subject_time = {}
    for session in sessions:
        score = performance_score(session.performance)
        by_hour.setdefault(session.start_time.hour, []).append(score)
        by_day.setdefault(WEEKDAYS[session.start_time.weekday()], []).append(score)
        subject_time[session.subject] = subject_time.get(session.subject, 0) + session_minutes(session)

    preferred = sorted(subject_time, key=subject_time.get, reverse=True)[:3]
    return StudyPattern(
        best_hours=_best_buckets(by_hour, config.good_pattern_threshold),
        best_days=_best_buckets(by_day, config.good_pattern_threshold),
        average_session_duration=_mean([session_minutes(s) for s in sessions]) if sessions else 0.0,
        productivity_score=calculate_productivity_score(sessions),
        preferred_subjects=preferred,
        burnout_risk=analyze_burnout_risk(sessions, now, config),
    )


def _subject_insights(sessions: list, now: datetime, config: EngineConfig) -> list:
    insights = []
    for subject, perf in analyze_subject_performance(sessions).items():
        average = perf["average_performance"]
        count = perf["session_count"]
        if average < config.weakness_threshold and count >= config.weakness_min_sessions:
            insights.append(Insight(
                id=f"weakness_{subject}",
                type="weakness",
                title=f"Struggling with {subject}",
                description=f"Low performance detected ({round(average * 100)}%) over {count} sessions",
                severity="critical" if average < config.critical_weakness_threshold else "high",
                suggestion=f"Increase study time or change the study method for {subject}",
                data={"subject": subject, "performance": average, "sessions": count},
                created_at=now,
            ))
        elif average >= config.strength_threshold and count >= config.strength_min_sessions:
            insights.append(Insight(
                id=f"strength_{subject}",
                type="strength",
                title=f"Strong results in {subject}",
                description=f"Consistently high performance ({round(average * 100)}%) over {count} sessions",
                severity="low",
                actionable=False,
                data={"subject": subject, "performance": average, "sessions": count},
                created_at=now,
            ))
    return insights


def _pattern_insights(pattern: StudyPattern, now: datetime) -> list:
    insights = []
    if pattern.best_hours:
        hours = sorted(pattern.best_hours)
        insights.append(Insight(
            id="best_hours",
            type="pattern",
            title="Most productive hours identified",
            description=f"You perform best between {hours[0]}h and {hours[-1]}h",
            severity="low",
            suggestion="Schedule your hardest subjects in these hours",
            data={"best_hours": pattern.best_hours},
            created_at=now,
        ))
    if pattern.best_days:
        insights.append(Insight(
            id="best_days",
            type="pattern",
            title="Most productive days identified",
            description=f"Your best study days: {', '.join(pattern.best_days[:3])}",
            severity="low",
            suggestion="Plan long sessions and mock exams on these days",
            data={"best_days": pattern.best_days},
            created_at=now,
        ))
    return insights


def generate_insights(
    sessions: list,
    metrics: list = (),
    now: Optional[datetime] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> list:
    """Independent findings over the session history. Ranking is left to the caller."""
    now = now or datetime.now()
    insights = _subject_insights(sessions, now, config)
    pattern = analyze_time_patterns(sessions, now, config)
    insights.extend(_pattern_insights(pattern, now))

    if pattern.burnout_risk > config.burnout_alert_threshold:
        insights.append(Insight(
            id="burnout_risk",
            type="alert",
            title="Burnout risk detected",
            description="Heavy study load with falling performance over the last days",
            severity="critical",
            suggestion="Reduce the daily load and add more breaks",
            data={"burnout_risk": pattern.burnout_risk},
            created_at=now,
        ))

    if sessions:
        consistency = analyze_consistency(sessions, now, config)
        if consistency < config.consistency_threshold:
            insights.append(Insight(
                id="consistency",
                type="recommendation",
                title="Study more consistently",
                description=f"Current consistency: {round(consistency * 100)}% of the last {config.consistency_window_days} days",
                severity="medium",
                suggestion="Set a fixed daily study routine",
                data={"consistency": consistency},
                created_at=now,
            ))

    logger.debug("Generated %d insights from %d sessions and %d metrics", len(insights), len(sessions), len(metrics))
    return insights


def rank_insights(insights: list) -> list:
    """Most severe first, actionable before informational."""
    return sorted(insights, key=lambda i: (SEVERITY_RANK.get(i.severity, 4), not i.actionable))
