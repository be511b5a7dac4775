"""
Session Scoring - Configuration.

============================================================
PURPOSE
============================================================
Weights and thresholds for the per-session scorers.

SQS and FSQS share transcript detectors but not their rules for
operational disruption:

- SQS sums lateness, shortfall and tech penalties independently,
  scaled by magnitude.
- FSQS ORs "tech issue" with "more than 5 minutes late" into one
  flat penalty.

Keep both.

============================================================
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict


# ============================================================
# SQS CONFIGURATION
# ============================================================


@dataclass(frozen=True)
class SqsConfig:
    """
    Configuration for the Session Quality Score.

    Lateness:  min(lateness_cap, lateness_points_per_minute * ceil(minutes))
    Shortfall: min(shortfall_cap, shortfall_points_per_minute * ceil(minutes))
    """

    max_score: int = 100

    lateness_points_per_minute: int = 2
    lateness_cap: int = 20
    shortfall_points_per_minute: int = 1
    shortfall_cap: int = 10
    tech_penalty: int = 10

    confusion_penalty: int = 20
    word_share_penalty: int = 20
    goal_setting_penalty: int = 20
    encouragement_penalty: int = 10
    closing_summary_penalty: int = 15
    negative_phrasing_penalty: int = 5

    # Label bands
    risk_below: float = 60.0   # score < 60 -> risk
    warn_max: float = 75.0     # 60 <= score <= 75 -> warn, above -> ok

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ============================================================
# FSQS CONFIGURATION
# ============================================================


@dataclass(frozen=True)
class FsqsConfig:
    """Configuration for the First-Session Quality Score."""

    max_score: int = 100

    confusion_penalty: int = 20
    word_share_penalty: int = 20
    goal_setting_penalty: int = 20
    encouragement_penalty: int = 10
    negative_phrasing_penalty: int = 5
    closing_summary_penalty: int = 15
    tech_lateness_penalty: int = 10
    greeting_penalty: int = 15
    intro_penalty: int = 15
    future_planning_penalty: int = 15

    # Lateness strictly above this many (rounded-up) minutes counts as disruption
    lateness_threshold_minutes: int = 5

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = ["SqsConfig", "FsqsConfig"]
