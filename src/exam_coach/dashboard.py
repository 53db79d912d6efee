"""Readiness, priority and forecast summaries for the dashboard."""
from datetime import datetime

from exam_coach.engine import Engine
from exam_coach.insights import rank_insights
from exam_coach.models import ReadinessTier
from exam_coach.priority import PriorityContext
from exam_coach.readiness import classify_accuracy, tier_color, tier_label
from exam_coach.scheduler import review_stats
from exam_coach.study import get_exam_date, get_metrics, get_study_sessions, get_subjects


def get_tier_summary(db_path: str, engine: Engine) -> list[dict]:
    """One row per readiness tier with its topic count and display attributes."""
    counts = {tier: 0 for tier in ReadinessTier}
    for subject in get_subjects(db_path):
        for topic in subject.topics:
            counts[engine.classify_readiness(topic)] += 1
    return [
        {"tier": tier, "label": tier_label(tier), "color": tier_color(tier), "count": count}
        for tier, count in counts.items()
    ]


def get_subject_scores(db_path: str, engine: Engine) -> list[dict]:
    results = []
    for subject in get_subjects(db_path):
        answered = sum(t.questions_answered for t in subject.topics)
        correct = sum(t.questions_correct for t in subject.topics)
        accuracy = correct / answered * 100 if answered else None
        tier = classify_accuracy(accuracy, answered, engine.config)
        results.append({
            "subject_id": subject.id,
            "name": subject.name,
            "weight": subject.weight,
            "topics": len(subject.topics),
            "answered": answered,
            "accuracy": round(accuracy, 1) if accuracy is not None else None,
            "label": tier_label(tier),
            "color": tier_color(tier),
        })
    return results


def get_priority_rows(db_path: str, engine: Engine, now: datetime, limit: int = 10) -> list[dict]:
    """Highest-priority topics first."""
    context = PriorityContext(current_date=now, exam_date=get_exam_date(db_path))
    rows = []
    for subject, topic, result in engine.rank_topics(get_subjects(db_path), context)[:limit]:
        rows.append({
            "subject": subject.name,
            "topic": topic.name,
            "topic_id": topic.id,
            "score": result.score,
            "level": result.level.value,
            "locked": engine.compute_unlock_state(topic, now).is_blocked,
        })
    return rows


def get_review_stats(db_path: str, engine: Engine, now: datetime) -> dict:
    topics = [t for s in get_subjects(db_path) for t in s.topics]
    return review_stats(topics, now, engine.config)


def get_prediction(db_path: str, engine: Engine, now: datetime):
    return engine.predict_performance(
        get_study_sessions(db_path), get_metrics(db_path), get_exam_date(db_path), now
    )


def get_insights(db_path: str, engine: Engine, now: datetime) -> list:
    return rank_insights(engine.generate_insights(get_study_sessions(db_path), get_metrics(db_path), now))
