"""
Tutor Scoring - Configuration.

============================================================
PURPOSE
============================================================
Windows, tiers and weights for the tutor-level scorers.

Tiers are threshold buckets, NOT continuous: each metric is
compared against its tiers from the most severe down and the
first match wins.

============================================================
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Tuple


# ============================================================
# TUTOR HEALTH SCORE
# ============================================================


@dataclass(frozen=True)
class HealthScoreConfig:
    """
    Configuration for the Tutor Health Score.

    ============================================================
    TIERS (threshold, penalty), most severe first
    ============================================================
    Reschedule rate:  >=30% -25, >=20% -15, >=10% -5
    No-shows:         >=6 -30,   >=3 -20,   >=1 -10
    Lateness (min):   >=15 -25,  >=10 -15,  >=5 -5

    Lateness is weighted: the 3 most recent days count 60%, the
    older (up to 4) days 40%.
    ============================================================
    """

    max_score: float = 100.0
    lookback_days: int = 30
    window_size: int = 7

    reschedule_rate_tiers: Tuple[Tuple[float, int], ...] = ((0.30, 25), (0.20, 15), (0.10, 5))
    no_show_tiers: Tuple[Tuple[int, int], ...] = ((6, 30), (3, 20), (1, 10))
    lateness_tiers: Tuple[Tuple[float, int], ...] = ((15.0, 25), (10.0, 15), (5.0, 5))

    recent_days: int = 3
    recent_weight: float = 0.6
    older_weight: float = 0.4

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ============================================================
# TUTOR CHURN RISK SCORE
# ============================================================


@dataclass(frozen=True)
class ChurnRiskConfig:
    """
    Configuration for the Tutor Churn Risk Score.

    Risk starts at 0.0 and accumulates:
    - activity: avg daily sessions below 0.5 / 1.0 / 2.0
    - inconsistency: (1 - consistency) * inconsistency_weight
    - trend: declining adds, improving subtracts only when
      consistency is above improving_min_consistency
    - sparsity: fewer than window_size days of data
    """

    lookback_days: int = 30
    window_size: int = 14

    very_low_activity: float = 0.5
    very_low_activity_penalty: float = 0.5
    low_activity: float = 1.0
    low_activity_weight: float = 0.5
    moderate_activity: float = 2.0
    moderate_activity_weight: float = 0.25

    inconsistency_weight: float = 0.45

    trend_dead_band: float = 0.5
    trend_min_days: int = 4
    declining_penalty: float = 0.4
    improving_bonus_weight: float = 0.2
    improving_min_consistency: float = 0.5

    sparsity_weight: float = 0.15

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = ["HealthScoreConfig", "ChurnRiskConfig"]
