# tests/test_readiness.py
from dataclasses import replace

from exam_coach.config import EngineConfig
from exam_coach.models import ReadinessTier, Topic
from exam_coach.readiness import (
    classify_accuracy, classify_readiness, group_by_tier, tier_color, tier_label,
)


def topic_with(answered, correct):
    return Topic(id=1, subject_id=1, name="Crase", questions_answered=answered, questions_correct=correct)


def test_no_answers_is_triagem():
    assert classify_readiness(topic_with(0, 0)) is ReadinessTier.TRIAGEM


def test_accuracy_ignored_when_nothing_answered():
    assert classify_accuracy(100.0, 0) is ReadinessTier.TRIAGEM
    assert classify_accuracy(None, 5) is ReadinessTier.TRIAGEM


def test_tier_boundaries():
    assert classify_accuracy(69.9, 10) is ReadinessTier.VERMELHA
    assert classify_accuracy(70.0, 10) is ReadinessTier.AMARELA
    assert classify_accuracy(84.9, 10) is ReadinessTier.AMARELA
    assert classify_accuracy(85.0, 10) is ReadinessTier.VERDE
    assert classify_accuracy(0.0, 10) is ReadinessTier.VERMELHA
    assert classify_accuracy(100.0, 10) is ReadinessTier.VERDE


def test_classify_from_counters():
    assert classify_readiness(topic_with(20, 10)) is ReadinessTier.VERMELHA
    assert classify_readiness(topic_with(20, 15)) is ReadinessTier.AMARELA
    assert classify_readiness(topic_with(20, 18)) is ReadinessTier.VERDE


def test_thresholds_come_from_config():
    strict = EngineConfig(amarela_threshold=80.0, verde_threshold=95.0)
    assert classify_readiness(topic_with(20, 15), strict) is ReadinessTier.VERMELHA
    assert classify_readiness(topic_with(20, 18), strict) is ReadinessTier.AMARELA


def test_group_by_tier_has_every_tier():
    topics = [topic_with(0, 0), replace(topic_with(10, 9), id=2)]
    groups = group_by_tier(topics)
    assert set(groups) == set(ReadinessTier)
    assert [t.id for t in groups[ReadinessTier.TRIAGEM]] == [1]
    assert [t.id for t in groups[ReadinessTier.VERDE]] == [2]
    assert groups[ReadinessTier.VERMELHA] == []


def test_labels_and_colors():
    assert tier_label(ReadinessTier.VERDE) == "MASTERED"
    assert tier_color(ReadinessTier.VERMELHA) == "red"
