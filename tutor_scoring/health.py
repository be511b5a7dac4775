"""
Tutor Health Score (THS).

============================================================
PURPOSE
============================================================
0-100 reliability score from a tutor's last 7 daily aggregates
(within a 30-day lookback). Higher is better.

    THS = 100 - reschedule tier - no-show tier - lateness tier

No aggregates means no score.

============================================================
"""

import logging
from datetime import date, timedelta
from typing import Optional, Sequence, Tuple

from .config import HealthScoreConfig
from .types import DailyAggregateRow, ThsComponents, ThsResult

logger = logging.getLogger(__name__)


def tier_penalty(value: float, tiers: Sequence[Tuple[float, int]]) -> int:
    """Penalty of the first (most severe) tier whose threshold `value` reaches."""
    for threshold, penalty in tiers:
        if value >= threshold:
            return penalty
    return 0


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


class TutorHealthScorer:
    """Stateless THS calculator."""

    def __init__(self, config: Optional[HealthScoreConfig] = None):
        self._config = config or HealthScoreConfig()

    @property
    def config(self) -> HealthScoreConfig:
        return self._config

    def select_window(
        self,
        aggregates: Sequence[DailyAggregateRow],
        as_of: Optional[date] = None,
    ) -> list:
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
    ) -> Optional[ThsResult]:
        """
        Compute THS.

        Args:
            aggregates: Daily rows for one tutor (any order)
            as_of: Day the lookback is measured from; when omitted,
                rows are assumed to be pre-filtered

        Returns:
            ThsResult, or None when there are no rows
        """
        window = self.select_window(aggregates, as_of)
        if not window:
            return None

        cfg = self._config
        total_sessions = sum(row.sessions_completed for row in window)
        total_reschedules = sum(row.reschedules_tutor_initiated for row in window)
        total_no_shows = sum(row.no_shows for row in window)
        total_events = total_sessions + total_reschedules + total_no_shows

        reschedule_rate = total_reschedules / total_events if total_events > 0 else 0.0
        lateness = self.weighted_lateness(window)

        reschedule_penalty = tier_penalty(reschedule_rate, cfg.reschedule_rate_tiers)
        no_show_penalty = tier_penalty(total_no_shows, cfg.no_show_tiers)
        lateness_penalty = tier_penalty(lateness, cfg.lateness_tiers)

        value = cfg.max_score - reschedule_penalty - no_show_penalty - lateness_penalty
        value = round(max(0.0, min(cfg.max_score, value)), 2)

        return ThsResult(
            score=value,
            components=ThsComponents(
                reschedule_rate=round(reschedule_rate, 3),
                no_show_count=total_no_shows,
                avg_lateness=round(lateness, 2),
                total_sessions=total_sessions,
                days_of_data=len(window),
                reschedule_penalty=reschedule_penalty,
                no_show_penalty=no_show_penalty,
                lateness_penalty=lateness_penalty,
            ),
        )

    def weighted_lateness(self, window: Sequence[DailyAggregateRow]) -> float:
        """
        Recent days weighted 60%, older days 40%.

        `window` must be date descending. If only one group has rows,
        its plain mean is used.
        """
        cfg = self._config
        recent = [row.avg_lateness_min for row in window[: cfg.recent_days]]
        older = [row.avg_lateness_min for row in window[cfg.recent_days:]]

        if recent and older:
            return _mean(recent) * cfg.recent_weight + _mean(older) * cfg.older_weight
        if recent:
            return _mean(recent)
        if older:
            return _mean(older)
        return 0.0


__all__ = ["TutorHealthScorer", "tier_penalty"]
