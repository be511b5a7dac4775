"""
Reporting - Performance Summary.

============================================================
PURPOSE
============================================================
Tutor-facing narrative built from the 5 most recent SQS values:

- trend: recent half vs older half, +/-5 point dead-band
- average_sqs: mean, 1dp
- summary / what_went_well / improvement_suggestion text tiers

Fewer than 3 scores yields an "insufficient data" summary.

============================================================
CACHING
============================================================
Results are cached per tutor for an hour under
"performance_summary:tutor:<id>". Persisting a new SQS must call
invalidate(tutor_id); nothing expires the entry implicitly.

============================================================
"""

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from core.clock import ClockFactory, ClockProtocol
from core.constants import ScoreType, SECONDS_PER_HOUR
from session_scoring.repository import ScoreRepository

from .cache import TTLCache

logger = logging.getLogger(__name__)


RECENT_SCORES = 5
MIN_SCORES_FOR_TREND = 3
TREND_DEAD_BAND = 5.0
DEFAULT_TTL_SECONDS = SECONDS_PER_HOUR


class SummaryTrend(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"
    INSUFFICIENT_DATA = "insufficient_data"


@dataclass(frozen=True)
class PerformanceSummary:
    trend: SummaryTrend
    average_sqs: Optional[float]
    summary: str
    what_went_well: str
    improvement_suggestion: str

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["trend"] = self.trend.value
        return data


def performance_summary_key(tutor_id: int) -> str:
    return f"performance_summary:tutor:{tutor_id}"


def invalidate_performance_summary(cache: TTLCache, tutor_id: int) -> bool:
    """Drop a tutor's cached summary. Returns True if one was cached."""
    removed = cache.delete(performance_summary_key(tutor_id))
    if removed:
        logger.debug(f"Invalidated performance summary for tutor {tutor_id}")
    return removed


def _average(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


class PerformanceSummaryService:
    """Cached, trend-aware summary of a tutor's recent session quality."""

    def __init__(
        self,
        repository: ScoreRepository,
        cache: TTLCache,
        clock: Optional[ClockProtocol] = None,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
    ):
        self._repository = repository
        self._cache = cache
        self._clock = clock or ClockFactory.get_clock()
        self._ttl_seconds = ttl_seconds

    def generate(self, tutor_id: int) -> PerformanceSummary:
        return self._cache.fetch(
            performance_summary_key(tutor_id),
            lambda: self.compute(tutor_id),
            ttl_seconds=self._ttl_seconds,
        )

    def invalidate(self, tutor_id: int) -> bool:
        return invalidate_performance_summary(self._cache, tutor_id)

    def compute(self, tutor_id: int) -> PerformanceSummary:
        """Build a summary without touching the cache."""
        scores = [
            float(value)
            for value in self._repository.recent_values(tutor_id, ScoreType.SQS, RECENT_SCORES)
        ]
        return summarize(scores)


# ============================================================
# PURE SUMMARY LOGIC
# ============================================================


def summarize(scores: List[float]) -> PerformanceSummary:
    """Summarize SQS values ordered newest first."""
    if len(scores) < MIN_SCORES_FOR_TREND:
        return insufficient_data_summary(scores)

    trend = analyze_trend(scores)
    average = _average(scores)

    return PerformanceSummary(
        trend=trend,
        average_sqs=round(average, 1),
        summary=summary_text(trend, average, len(scores)),
        what_went_well=what_went_well_text(average, trend),
        improvement_suggestion=improvement_text(average, trend),
    )


def analyze_trend(scores: Sequence[float]) -> SummaryTrend:
    """Compare the newer half (first n//2) against the older half."""
    if len(scores) < MIN_SCORES_FOR_TREND:
        return SummaryTrend.INSUFFICIENT_DATA

    mid = len(scores) // 2
    difference = _average(scores[:mid]) - _average(scores[mid:])

    if difference > TREND_DEAD_BAND:
        return SummaryTrend.IMPROVING
    if difference < -TREND_DEAD_BAND:
        return SummaryTrend.DECLINING
    return SummaryTrend.STABLE


def insufficient_data_summary(scores: Sequence[float]) -> PerformanceSummary:
    if not scores:
        return PerformanceSummary(
            trend=SummaryTrend.INSUFFICIENT_DATA,
            average_sqs=None,
            summary=(
                "Welcome! Complete your first sessions to see your performance summary. "
                "We're excited to support your tutoring journey!"
            ),
            what_went_well="Getting started with new students",
            improvement_suggestion=(
                "Focus on building rapport and setting clear goals in your first few sessions"
            ),
        )

    average = _average(scores)
    start = "great" if average >= 80 else "good"
    return PerformanceSummary(
        trend=SummaryTrend.INSUFFICIENT_DATA,
        average_sqs=round(average, 1),
        summary=(
            f"You're off to a {start} start! "
            "Complete a few more sessions to see detailed trends and insights."
        ),
        what_went_well="Building your session history",
        improvement_suggestion="Keep up the consistent work as you establish your tutoring patterns",
    )


def summary_text(trend: SummaryTrend, average: float, count: int) -> str:
    avg = round(average, 1)

    if trend == SummaryTrend.IMPROVING:
        if average >= 85:
            return (
                f"Excellent work! Your recent {count} sessions show strong improvement, "
                f"with an average quality score of {avg}. "
                "Students are clearly benefiting from your sessions."
            )
        return (
            f"Great progress! Your session quality has been improving consistently over your last {count} sessions. "
            "Keep building on this positive momentum!"
        )

    if trend == SummaryTrend.DECLINING:
        if average >= 75:
            return (
                f"Your recent {count} sessions average {avg}, which is still solid. "
                "There's been a slight dip recently, but this is a normal part of tutoring. "
                "Let's identify opportunities to get back on track."
            )
        return (
            f"Over your last {count} sessions, there's been some variation in session quality. "
            "This is completely normal! Let's focus on what's working and build from there."
        )

    if average >= 85:
        return (
            f"Excellent consistency! Your sessions are maintaining a high quality score of {avg} "
            f"across {count} recent sessions. Students appreciate your reliable approach."
        )
    if average >= 75:
        return (
            f"You're maintaining consistent session quality at {avg} over {count} sessions. "
            "There's opportunity to level up even further!"
        )
    return (
        f"Your recent {count} sessions show consistent patterns. "
        "Let's explore some strategies to boost your session quality further."
    )


def what_went_well_text(average: float, trend: SummaryTrend) -> str:
    if average >= 90:
        return (
            "Your sessions are consistently excellent! You're maintaining strong punctuality, "
            "full session durations, and smooth technical experiences."
        )
    if average >= 80:
        return "You're delivering quality sessions with good punctuality and session completion rates."
    if average >= 70:
        return "You're showing solid fundamentals in your tutoring sessions."
    if trend == SummaryTrend.IMPROVING:
        return "You're making positive progress and learning from each session."
    return "You're building experience and developing your tutoring approach."


def improvement_text(average: float, trend: SummaryTrend) -> str:
    if average >= 90:
        return "Continue your excellent work! Consider mentoring other tutors or sharing what works for you."
    if average >= 80:
        return (
            "Focus on consistency: aim to start sessions within 2 minutes of scheduled time "
            "and complete full durations."
        )
    if average >= 70:
        return "Pay attention to session timing: starting on time and completing full sessions makes a big difference."
    if trend == SummaryTrend.DECLINING:
        return (
            "Review your recent sessions: are there patterns in timing or technical issues? "
            "Small adjustments can help."
        )
    return "Focus on the basics: arrive on time, complete full session durations, and minimize technical disruptions."


__all__ = [
    "SummaryTrend",
    "PerformanceSummary",
    "PerformanceSummaryService",
    "performance_summary_key",
    "invalidate_performance_summary",
    "summarize",
    "analyze_trend",
]
