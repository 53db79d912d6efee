# tests/test_models.py
from exam_coach.errors import EngineError, InvalidInputError, PreconditionViolatedError
from exam_coach.models import PriorityLevel, ReadinessTier, Topic, WeightSuggestion


def test_accuracy_rate():
    assert Topic(id=1, subject_id=1, name="Crase").accuracy_rate is None
    assert Topic(id=1, subject_id=1, name="Crase", questions_answered=4, questions_correct=3).accuracy_rate == 75.0


def test_enums_are_strings():
    assert ReadinessTier.VERDE == "verde"
    assert PriorityLevel.UNDEFINED.value == "undefined"


def test_suggested_weight():
    suggestion = WeightSuggestion("Crase", 4, 2, "low_performance", "medium")
    assert suggestion.suggested_weight == 6


def test_error_taxonomy():
    err = InvalidInputError("quality", "unknown rating")
    assert isinstance(err, EngineError)
    assert err.field == "quality"
    assert "quality" in str(err)
    locked = PreconditionViolatedError("locked", state="s")
    assert isinstance(locked, EngineError)
    assert locked.state == "s"
