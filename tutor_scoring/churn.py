"""
Tutor Churn Risk Score (TCRS).

============================================================
PURPOSE
============================================================
0.0-1.0 churn probability from a tutor's last 14 daily aggregates
(within a 30-day lookback). Higher means more risk.

============================================================
SIGNALS
============================================================
- activity: average completed sessions per day
- consistency: 1 / (1 + CV), CV = sample stdev / mean
    all-zero series -> 1.0 (steady absence is not double-counted)
    zero mean       -> 0.0
    single day      -> stdev 0
- trend: later half vs earlier half of the date-sorted window,
  +/-0.5 sessions/day dead-band, fewer than 4 days -> stable
- sparsity: fewer than 14 days of data

============================================================
"""

import logging
import statistics
from datetime import date, timedelta
from typing import List, Optional, Sequence

from .config import ChurnRiskConfig
from .types import DailyAggregateRow, TcrsComponents, TcrsResult, Trend

logger = logging.getLogger(__name__)


def consistency_score(counts: Sequence[float]) -> float:
    """Inverse coefficient-of-variation transform, clamped to [0, 1]."""
    if not counts or all(count == 0 for count in counts):
        return 1.0

    mean = statistics.mean(counts)
    if mean == 0:
        return 0.0

    stdev = statistics.stdev(counts) if len(counts) > 1 else 0.0
    cv = stdev / mean
    return max(0.0, min(1.0, 1.0 / (1.0 + cv)))


class TutorChurnRiskScorer:
    """Stateless TCRS calculator."""

    def __init__(self, config: Optional[ChurnRiskConfig] = None):
        self._config = config or ChurnRiskConfig()

    @property
    def config(self) -> ChurnRiskConfig:
        return self._config

    def select_window(
        self,
        aggregates: Sequence[DailyAggregateRow],
        as_of: Optional[date] = None,
    ) -> List[DailyAggregateRow]:
        """Most recent `window_size` rows, date descending, inside the lookback."""
        rows = list(aggregates)
        if as_of is not None:
            cutoff = as_of - timedelta(days=self._config.lookback_days)
            rows = [row for row in rows if row.date >= cutoff]
        rows.sort(key=lambda row: row.date, reverse=True)
        return rows[: self._config.window_size]

    def score(
        self,
        aggregates: Sequence[DailyAggregateRow],
        as_of: Optional[date] = None,
    ) -> Optional[TcrsResult]:
        """
        Compute TCRS.

        Returns:
            TcrsResult, or None when there are no rows
        """
        window = self.select_window(aggregates, as_of)
        if not window:
            return None

        cfg = self._config
        counts = [row.sessions_completed for row in window]
        total_sessions = sum(counts)
        days = len(window)
        avg_daily = total_sessions / days
        consistency = consistency_score(counts)
        trend = self.trend(window)

        activity = self.activity_penalty(avg_daily)
        inconsistency = (1.0 - consistency) * cfg.inconsistency_weight
        trend_adjustment = self.trend_adjustment(trend, consistency)
        sparsity = (
            (cfg.window_size - days) / cfg.window_size * cfg.sparsity_weight
            if days < cfg.window_size else 0.0
        )

        risk = activity + inconsistency + trend_adjustment + sparsity
        value = round(max(0.0, min(1.0, risk)), 3)

        logger.debug(
            f"TCRS tutor={window[0].tutor_id} avg={avg_daily:.2f} "
            f"consistency={consistency:.3f} trend={trend.value} risk={value}"
        )

        return TcrsResult(
            score=value,
            components=TcrsComponents(
                session_count=total_sessions,
                avg_daily_sessions=round(avg_daily, 2),
                consistency_score=round(consistency, 3),
                trend=trend,
                days_of_data=days,
                activity_penalty=round(activity, 3),
                inconsistency_penalty=round(inconsistency, 3),
                trend_adjustment=round(trend_adjustment, 3),
                sparsity_penalty=round(sparsity, 3),
            ),
        )

    def trend(self, window: Sequence[DailyAggregateRow]) -> Trend:
        cfg = self._config
        if len(window) < cfg.trend_min_days:
            return Trend.STABLE

        ordered = sorted(window, key=lambda row: row.date)
        mid = len(ordered) // 2
        earlier = statistics.mean(row.sessions_completed for row in ordered[:mid])
        later = statistics.mean(row.sessions_completed for row in ordered[mid:])
        difference = later - earlier

        if difference > cfg.trend_dead_band:
            return Trend.IMPROVING
        if difference < -cfg.trend_dead_band:
            return Trend.DECLINING
        return Trend.STABLE

    def activity_penalty(self, avg_daily: float) -> float:
        cfg = self._config
        if avg_daily < cfg.very_low_activity:
            return cfg.very_low_activity_penalty
        if avg_daily < cfg.low_activity:
            return (cfg.low_activity - avg_daily) * cfg.low_activity_weight
        if avg_daily < cfg.moderate_activity:
            return (cfg.moderate_activity - avg_daily) / cfg.moderate_activity * cfg.moderate_activity_weight
        return 0.0

    def trend_adjustment(self, trend: Trend, consistency: float) -> float:
        cfg = self._config
        if trend == Trend.DECLINING:
            return cfg.declining_penalty
        if trend == Trend.IMPROVING and consistency > cfg.improving_min_consistency:
            return -cfg.improving_bonus_weight * consistency
        return 0.0


__all__ = ["TutorChurnRiskScorer", "consistency_score"]
