"""
Tutor Scoring Package.

Tutor-level pipeline fed by daily session rollups:
- DailyAggregator: sessions -> one row per (tutor, date)
- TutorHealthScorer (THS): 7-day reliability, 0-100
- TutorChurnRiskScorer (TCRS): 14-day churn risk, 0.0-1.0
"""

from .config import ChurnRiskConfig, HealthScoreConfig
from .types import (
    DailyAggregateRow,
    TcrsComponents,
    TcrsResult,
    ThsComponents,
    ThsResult,
    Trend,
)
from .repository import AggregateRepository, DailyScoreRepository
from .aggregation import DailyAggregator
from .health import TutorHealthScorer, tier_penalty
from .churn import TutorChurnRiskScorer, consistency_score

__all__ = [
    "ChurnRiskConfig",
    "HealthScoreConfig",
    "DailyAggregateRow",
    "TcrsComponents",
    "TcrsResult",
    "ThsComponents",
    "ThsResult",
    "Trend",
    "AggregateRepository",
    "DailyScoreRepository",
    "DailyAggregator",
    "TutorHealthScorer",
    "tier_penalty",
    "TutorChurnRiskScorer",
    "consistency_score",
]
