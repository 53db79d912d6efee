"""Readiness tier classification from attempt counters."""
from typing import Optional

from exam_coach.config import DEFAULT_CONFIG, EngineConfig
from exam_coach.models import ReadinessTier, Topic


def classify_accuracy(
    accuracy_rate: Optional[float],
    questions_answered: int,
    config: EngineConfig = DEFAULT_CONFIG,
) -> ReadinessTier:
    """Map an accuracy percentage to a tier. Boundaries belong to the higher tier."""
    if questions_answered <= 0 or accuracy_rate is None:
        return ReadinessTier.TRIAGEM
    if accuracy_rate < config.amarela_threshold:
        return ReadinessTier.VERMELHA
    if accuracy_rate < config.verde_threshold:
        return ReadinessTier.AMARELA
    return ReadinessTier.VERDE


def classify_readiness(topic: Topic, config: EngineConfig = DEFAULT_CONFIG) -> ReadinessTier:
    return classify_accuracy(topic.accuracy_rate, topic.questions_answered, config)


def group_by_tier(topics: list, config: EngineConfig = DEFAULT_CONFIG) -> dict:
    groups = {tier: [] for tier in ReadinessTier}
    for topic in topics:
        groups[classify_readiness(topic, config)].append(topic)
    return groups


def tier_label(tier: ReadinessTier) -> str:
    return {
        ReadinessTier.TRIAGEM: "UNTESTED",
        ReadinessTier.VERMELHA: "CRITICAL",
        ReadinessTier.AMARELA: "DEVELOPING",
        ReadinessTier.VERDE: "MASTERED",
    }[tier]


def tier_color(tier: ReadinessTier) -> str:
    return {
        ReadinessTier.TRIAGEM: "grey50",
        ReadinessTier.VERMELHA: "red",
        ReadinessTier.AMARELA: "yellow",
        ReadinessTier.VERDE: "green",
    }[tier]
