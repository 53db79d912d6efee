"""Single entry point bundling the engine operations with one config.

The Engine owns the priority cache and the unlock notifier, so callers never
share them through module globals. Every method returns fresh records; the
caller persists anything it wants to keep.
"""
from dataclasses import replace
from datetime import datetime
from typing import Optional

from exam_coach import insights, prediction, priority, readiness, scheduler, weights
from exam_coach.config import DEFAULT_CONFIG, EngineConfig
from exam_coach.models import (
    PerformancePrediction, PriorityResult, ReadinessTier, ReviewOutcome, Subject, Topic,
    UnlockState, WeightSuggestion,
)


class Engine:
    def __init__(self, config: EngineConfig = DEFAULT_CONFIG):
        self.config = config
        self.priorities = priority.PriorityCache(config)
        self.notifier = scheduler.UnlockNotifier()

    def classify_readiness(self, topic: Topic) -> ReadinessTier:
        return readiness.classify_readiness(topic, self.config)

    def compute_unlock_state(self, topic: Topic, now: datetime) -> UnlockState:
        return scheduler.compute_unlock_state(topic, now, self.config)

    def check_and_unlock(self, topics: list, now: datetime) -> tuple:
        return scheduler.check_and_unlock(topics, now, self.notifier, self.config)

    def record_review_outcome(
        self, topic: Topic, outcome: ReviewOutcome, now: datetime, exam_date: Optional[datetime] = None
    ) -> Topic:
        updated = scheduler.record_review_outcome(topic, outcome, now, exam_date, self.config)
        self.priorities.invalidate(topic.id)
        return updated

    def compute_priority(self, topic: Topic, context: priority.PriorityContext) -> PriorityResult:
        return self.priorities.get(topic, context)

    def rank_topics(self, subjects: list, context: priority.PriorityContext) -> list:
        """(subject, topic, PriorityResult) across all subjects, highest score first."""
        if context.subject_weights is None:
            context = replace(context, subject_weights={s.id: s.weight for s in subjects})
        ranked = [
            (subject, topic, self.compute_priority(topic, context))
            for subject in subjects
            for topic in subject.topics
        ]
        ranked.sort(key=lambda row: row[2].score if row[2].score is not None else -1, reverse=True)
        return ranked

    def generate_weight_suggestions(
        self, subjects: list, exam_date: Optional[datetime] = None, now: Optional[datetime] = None
    ) -> list:
        return weights.generate_weight_suggestions(subjects, exam_date, now, self.config)

    def apply_weight_suggestion(self, subject: Subject, suggestion: WeightSuggestion) -> Subject:
        return weights.apply_weight_suggestion(subject, suggestion)

    def predict_performance(
        self, sessions: list, metrics: list = (), exam_date: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> PerformancePrediction:
        return prediction.predict_performance(sessions, metrics, exam_date, now, self.config)

    def generate_insights(self, sessions: list, metrics: list = (), now: Optional[datetime] = None) -> list:
        return insights.generate_insights(sessions, metrics, now, self.config)
