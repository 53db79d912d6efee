"""Tunable engine thresholds.

Every heuristic cut point used by the engine lives on ``EngineConfig`` so it can
be tuned without touching algorithm code. Overrides are read from the
``user_settings`` table as ``config.<field>`` keys.
"""
import logging
from dataclasses import dataclass, fields, replace

from exam_coach.db import DEFAULT_DB_PATH, get_connection

logger = logging.getLogger(__name__)

SETTING_PREFIX = "config."


@dataclass(frozen=True)
class EngineConfig:
    # Readiness tiers (inclusive lower bounds, percent)
    amarela_threshold: float = 70.0
    verde_threshold: float = 85.0

    # Review unlock scheduler
    max_review_cycle: int = 5
    review_interval_days: tuple = (1, 3, 7, 15, 30)
    flashcard_base_days: tuple = (1, 2, 4, 7)  # again, hard, good, easy
    flashcard_multipliers: tuple = (0.0, 1.2, 2.0, 2.6)
    flashcard_max_interval: int = 365

    # Priority engine
    critical_priority: float = 15.0
    important_priority: float = 8.0
    neutral_recency_boost: float = 1.0

    # Auto-weight advisor
    low_performance_accuracy: float = 50.0
    very_low_performance_accuracy: float = 30.0
    low_performance_min_sample: int = 10
    low_performance_weight_cap: int = 8
    high_performance_accuracy: float = 85.0
    high_performance_min_sample: int = 20
    high_performance_weight_floor: int = 3
    stale_days: int = 7
    very_stale_days: int = 21
    exam_near_days: int = 14
    exam_imminent_days: int = 7

    # Learning-curve predictor
    plateau_threshold: float = 0.85
    target_level: float = 0.8
    recency_ratio: float = 1.1
    min_learning_rate: float = 0.001
    default_learning_rate: float = 0.01
    subject_hours_per_day: float = 2.0
    total_hours_per_day: float = 6.0
    default_horizon_days: int = 30
    sigmoid_steepness: float = 2.0
    confidence_full_records: int = 50
    confidence_full_recent_sessions: int = 10
    confidence_recent_days: int = 14

    # Insight generator
    weakness_threshold: float = 0.6
    critical_weakness_threshold: float = 0.4
    weakness_min_sessions: int = 2
    strength_threshold: float = 0.85
    strength_min_sessions: int = 3
    good_pattern_threshold: float = 0.7
    burnout_alert_threshold: float = 0.7
    consistency_threshold: float = 0.5
    consistency_window_days: int = 30
    burnout_window_days: int = 7


DEFAULT_CONFIG = EngineConfig()


def _coerce(raw: str, default):
    if isinstance(default, bool):
        return raw.strip().lower() in ("1", "true", "yes")
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    if isinstance(default, tuple):
        kind = type(default[0]) if default else float
        return tuple(kind(part) for part in raw.split(",") if part.strip())
    return raw


def load_config(db_path: str = DEFAULT_DB_PATH) -> EngineConfig:
    """Build an EngineConfig with any ``config.*`` overrides stored in user_settings."""
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT key, value FROM user_settings WHERE key LIKE ?", (SETTING_PREFIX + "%",)
    ).fetchall()
    conn.close()
    overrides = {}
    known = {f.name: getattr(DEFAULT_CONFIG, f.name) for f in fields(EngineConfig)}
    for row in rows:
        name = row["key"][len(SETTING_PREFIX):]
        if name not in known:
            logger.warning("Ignoring unknown config override %r", name)
            continue
        try:
            overrides[name] = _coerce(row["value"], known[name])
        except ValueError:
            logger.warning("Ignoring malformed config override %s=%r", name, row["value"])
    return replace(DEFAULT_CONFIG, **overrides)
