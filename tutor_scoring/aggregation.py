"""
Tutor Scoring - Daily Aggregator.

============================================================
PURPOSE
============================================================
Rolls raw sessions into one TutorDailyAggregate per
(tutor, calendar date of scheduled start):

- sessions_completed
- reschedules_tutor_initiated (student-initiated are excluded)
- no_shows
- avg_lateness_min: mean of POSITIVE lateness over completed
  sessions only; on-time sessions are excluded, not counted as 0

Re-running over an overlapping window is safe: rows are upserted
on (tutor_id, date).

============================================================
"""

import logging
from collections import defaultdict
from datetime import date, datetime, time
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session as DbSession

from core.clock import ClockFactory, ClockProtocol
from core.constants import RescheduleInitiator, SessionStatus
from session_scoring.repository import SessionRepository
from session_scoring.types import SessionInput

from .repository import AggregateRepository
from .types import DailyAggregateRow

logger = logging.getLogger(__name__)


class DailyAggregator:
    """Groups sessions by tutor and day and upserts the rollups."""

    def __init__(self, clock: Optional[ClockProtocol] = None):
        self._clock = clock or ClockFactory.get_clock()

    def compute(self, sessions: Iterable[SessionInput]) -> List[DailyAggregateRow]:
        """
        Pure rollup of sessions into daily rows.

        Sessions without a scheduled start cannot be dated and are
        ignored. Output is sorted by (tutor_id, date).
        """
        groups: Dict[Tuple[int, date], List[SessionInput]] = defaultdict(list)
        for session in sessions:
            if session.scheduled_start_at is None:
                continue
            groups[(session.tutor_id, session.scheduled_start_at.date())].append(session)

        return [
            self.aggregate_group(tutor_id, day, members)
            for (tutor_id, day), members in sorted(groups.items())
        ]

    def aggregate_group(
        self,
        tutor_id: int,
        day: date,
        sessions: List[SessionInput],
    ) -> DailyAggregateRow:
        completed = [s for s in sessions if s.status == SessionStatus.COMPLETED.value]
        reschedules = sum(
            1 for s in sessions
            if s.status == SessionStatus.RESCHEDULED.value
            and s.reschedule_initiator == RescheduleInitiator.TUTOR.value
        )
        no_shows = sum(1 for s in sessions if s.status == SessionStatus.NO_SHOW.value)

        lateness = [
            minutes for minutes in (s.exact_lateness_minutes for s in completed)
            if minutes is not None and minutes > 0
        ]
        avg_lateness = round(sum(lateness) / len(lateness), 2) if lateness else 0.0

        return DailyAggregateRow(
            tutor_id=tutor_id,
            date=day,
            sessions_completed=len(completed),
            reschedules_tutor_initiated=reschedules,
            no_shows=no_shows,
            avg_lateness_min=avg_lateness,
        )

    def load_sessions(self, db_session: DbSession, start_date: date, end_date: date) -> List[SessionInput]:
        """Sessions scheduled anywhere within [start_date, end_date]."""
        start = datetime.combine(start_date, time.min)
        end = datetime.combine(end_date, time.max)
        rows = SessionRepository(db_session).sessions_scheduled_between(start, end)
        return [SessionInput.from_model(row) for row in rows]

    def run(self, db_session: DbSession, start_date: date, end_date: date) -> List[DailyAggregateRow]:
        """
        Rebuild aggregates for a date range inside the caller's transaction.

        Returns:
            The rows that were upserted
        """
        rows = self.compute(self.load_sessions(db_session, start_date, end_date))
        repository = AggregateRepository(db_session)
        now = self._clock.now()
        for row in rows:
            repository.upsert(row, updated_at=now)

        logger.info(f"Upserted {len(rows)} daily aggregates for {start_date} .. {end_date}")
        return rows


__all__ = ["DailyAggregator"]
