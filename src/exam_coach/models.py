"""Data classes for the study planning domain model."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class ReadinessTier(str, Enum):
    TRIAGEM = "triagem"
    VERMELHA = "vermelha"
    AMARELA = "amarela"
    VERDE = "verde"


class PriorityLevel(str, Enum):
    CRITICAL = "critical"
    IMPORTANT = "important"
    MODERATE = "moderate"
    UNDEFINED = "undefined"


DIFFICULTIES = ("easy", "medium", "hard")
PERFORMANCE_BUCKETS = ("low", "medium", "high")
CONFIDENCE_LEVELS = ("certeza", "duvida", "chute")
ERROR_TYPES = ("interpretacao", "conteudo", "distracao", "nao_definido")
FLASHCARD_QUALITIES = ("again", "hard", "good", "easy")


@dataclass
class Topic:
    id: int
    subject_id: int
    name: str
    difficulty: Optional[str] = None
    weight: Optional[int] = None
    last_studied_at: Optional[datetime] = None
    completed: bool = False
    questions_answered: int = 0
    questions_correct: int = 0
    current_review_cycle: int = 0
    total_reviews: int = 0
    is_blocked: bool = False
    next_review_date: Optional[datetime] = None
    total_xp_earned: int = 0

    @property
    def accuracy_rate(self) -> Optional[float]:
        if self.questions_answered <= 0:
            return None
        return self.questions_correct / self.questions_answered * 100


@dataclass
class Subject:
    id: int
    name: str
    weight: Optional[int] = None
    priority: str = "medium"
    color: str = ""
    topics: list = field(default_factory=list)


@dataclass
class Flashcard:
    id: int
    topic_id: int
    front: str
    back: str
    difficulty: str = "medium"
    times_reviewed: int = 0
    interval_days: int = 0
    next_review_date: Optional[datetime] = None
    last_quality: Optional[str] = None
    last_reviewed_at: Optional[datetime] = None


@dataclass
class StudySession:
    id: int
    subject: str
    start_time: datetime
    duration: int = 0  # minutes
    topic: Optional[str] = None
    subtopic: Optional[str] = None
    end_time: Optional[datetime] = None
    completed: bool = True
    performance: Optional[str] = None
    notes: dict = field(default_factory=dict)


@dataclass
class QuestionAttempt:
    id: int
    topic_id: int
    is_correct: bool
    confidence_level: str = "certeza"
    time_taken: Optional[int] = None  # seconds
    error_type: Optional[str] = None
    xp_earned: int = 0
    created_at: Optional[datetime] = None


@dataclass
class PerformanceMetric:
    id: int
    metric_type: str
    metric_date: str
    study_time: int = 0  # minutes
    sessions_count: int = 0
    focus_score: float = 0.0
    productivity_score: float = 0.0
    subject_breakdown: dict = field(default_factory=dict)


@dataclass(frozen=True)
class UnlockState:
    is_blocked: bool
    next_review_date: Optional[datetime]
    current_review_cycle: int


@dataclass(frozen=True)
class ReviewOutcome:
    """Result of one battle/review round against a topic."""
    questions_answered: int = 0
    questions_correct: int = 0
    xp_earned: int = 0


@dataclass(frozen=True)
class PriorityResult:
    score: Optional[float]
    level: PriorityLevel


@dataclass(frozen=True)
class WeightSuggestion:
    subject_name: str
    current_weight: int
    delta: int
    reason: str
    impact: str
    message: str = ""

    @property
    def suggested_weight(self) -> int:
        return self.current_weight + self.delta


@dataclass
class AdjustmentReport:
    total_suggestions: int
    critical_adjustments: int
    moderate_adjustments: int
    suggestions: list = field(default_factory=list)


@dataclass(frozen=True)
class LearningCurve:
    subject: str
    current_level: float
    learning_rate: float
    difficulty_factor: float
    plateau_threshold: float = 0.85


@dataclass
class PerformancePrediction:
    exam_performance: int
    time_to_mastery: dict
    goal_achievement_probability: float
    recommended_study_time: int
    weakness_improvement: dict
    confidence_level: float
    insufficient_data: bool = False


@dataclass
class Insight:
    id: str
    type: str
    title: str
    description: str
    severity: str
    actionable: bool = True
    suggestion: Optional[str] = None
    data: dict = field(default_factory=dict)
    created_at: Optional[datetime] = None


@dataclass
class StudyPattern:
    best_hours: list
    best_days: list
    average_session_duration: float
    productivity_score: float
    preferred_subjects: list
    burnout_risk: float
