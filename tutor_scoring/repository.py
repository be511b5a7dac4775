"""
Tutor Scoring - Repository.

============================================================
PURPOSE
============================================================
Persistence for daily aggregates and day-scoped tutor scores.

Both writes are atomic upserts:
- tutor_daily_aggregates keyed on (tutor_id, date)
- scores keyed on (tutor_id, score_type, score_date) for ths/tcrs

so recomputing on the same calendar day updates the row in place
and stays race-free if tutors are processed in parallel.

============================================================
"""

import logging
from datetime import date, datetime
from typing import List, Optional, Union

from sqlalchemy import desc, select

from core.constants import ScoreType
from database.models import Score, TutorDailyAggregate, Tutor
from database.upsert import upsert

from .types import DailyAggregateRow, TcrsResult, ThsResult

logger = logging.getLogger(__name__)


class AggregateRepository:
    """Reads and upserts TutorDailyAggregate rows."""

    def __init__(self, session):
        self._session = session

    def upsert(self, row: DailyAggregateRow, updated_at: Optional[datetime] = None) -> TutorDailyAggregate:
        values = {
            "tutor_id": row.tutor_id,
            "date": row.date,
            "sessions_completed": row.sessions_completed,
            "reschedules_tutor_initiated": row.reschedules_tutor_initiated,
            "no_shows": row.no_shows,
            "avg_lateness_min": row.avg_lateness_min,
        }
        if updated_at is not None:
            values["updated_at"] = updated_at

        return upsert(
            self._session,
            TutorDailyAggregate,
            values,
            conflict_columns=("tutor_id", "date"),
            update_columns=[key for key in values if key not in ("tutor_id", "date")],
        )

    def recent(self, tutor_id: int, since: date, limit: int) -> List[DailyAggregateRow]:
        """Up to `limit` rows dated on/after `since`, most recent first."""
        query = (
            select(TutorDailyAggregate)
            .where(TutorDailyAggregate.tutor_id == tutor_id)
            .where(TutorDailyAggregate.date >= since)
            .order_by(desc(TutorDailyAggregate.date))
            .limit(limit)
        )
        return [DailyAggregateRow.from_model(row) for row in self._session.execute(query).scalars()]

    def tutor_ids_since(self, since: date) -> List[int]:
        """Distinct tutors with at least one aggregate on/after `since`."""
        query = (
            select(TutorDailyAggregate.tutor_id)
            .where(TutorDailyAggregate.date >= since)
            .distinct()
            .order_by(TutorDailyAggregate.tutor_id)
        )
        return list(self._session.execute(query).scalars())

    def all_tutor_ids(self) -> List[int]:
        return list(self._session.execute(select(Tutor.id).order_by(Tutor.id)).scalars())


class DailyScoreRepository:
    """Day-scoped ths/tcrs score writes."""

    def __init__(self, session):
        self._session = session

    def save_daily_score(
        self,
        tutor_id: int,
        result: Union[ThsResult, TcrsResult],
        computed_at: datetime,
        score_date: Optional[date] = None,
    ) -> Score:
        """
        Insert today's score for a tutor, or update it if one exists.

        Args:
            tutor_id: Owning tutor
            result: ThsResult or TcrsResult
            computed_at: Timestamp of this computation
            score_date: Calendar day the score belongs to
                (defaults to computed_at's date)
        """
        if isinstance(result, ThsResult):
            score_type = ScoreType.THS
        elif isinstance(result, TcrsResult):
            score_type = ScoreType.TCRS
        else:
            raise TypeError(f"Unsupported daily score result: {type(result).__name__}")

        score = upsert(
            self._session,
            Score,
            {
                "tutor_id": tutor_id,
                "session_id": None,
                "score_type": score_type.value,
                "value": result.score,
                "components": result.components.to_dict(),
                "computed_at": computed_at,
                "score_date": score_date or computed_at.date(),
            },
            conflict_columns=("tutor_id", "score_type", "score_date"),
            update_columns=("value", "components", "computed_at"),
        )
        logger.debug(f"Upserted {score_type.value}={result.score} for tutor {tutor_id} on {score.score_date}")
        return score

    def score_for_day(self, tutor_id: int, score_type: ScoreType, day: date) -> Optional[Score]:
        query = (
            select(Score)
            .where(Score.tutor_id == tutor_id)
            .where(Score.score_type == ScoreType(score_type).value)
            .where(Score.score_date == day)
        )
        return self._session.execute(query).scalar_one_or_none()


__all__ = ["AggregateRepository", "DailyScoreRepository"]
