"""
Tests for the daily aggregator.
"""

from datetime import date, datetime, timedelta

import pytest
from sqlalchemy import func, select

from core.constants import SessionStatus
from database.models import TutorDailyAggregate
from session_scoring import SessionInput
from tutor_scoring import AggregateRepository, DailyAggregator


DAY = date(2025, 11, 3)
START = datetime(2025, 11, 3, 15, 0, 0)


def session(status=SessionStatus.COMPLETED.value, late_minutes=0.0, start=START, initiator=None, tutor_id=1):
    return SessionInput(
        session_id=None,
        tutor_id=tutor_id,
        scheduled_start_at=start,
        scheduled_end_at=start + timedelta(hours=1),
        actual_start_at=start + timedelta(minutes=late_minutes),
        actual_end_at=start + timedelta(hours=1),
        status=status,
        reschedule_initiator=initiator,
    )


class TestDailyAggregatorCompute:

    def test_rolls_up_one_day(self):
        rows = DailyAggregator().compute([
            session(),
            session(late_minutes=4),
            session(late_minutes=-2),
            session(status=SessionStatus.RESCHEDULED.value, initiator="tutor"),
            session(status=SessionStatus.RESCHEDULED.value, initiator="student"),
            session(status=SessionStatus.NO_SHOW.value),
        ])

        assert len(rows) == 1
        row = rows[0]
        assert row.date == DAY
        assert row.sessions_completed == 3
        assert row.reschedules_tutor_initiated == 1
        assert row.no_shows == 1
        # on-time and early sessions are excluded, not averaged in as zero
        assert row.avg_lateness_min == 4.0

    def test_groups_by_tutor_and_day(self):
        rows = DailyAggregator().compute([
            session(tutor_id=2),
            session(tutor_id=1, start=START + timedelta(days=1)),
            session(tutor_id=1),
        ])

        assert [(row.tutor_id, row.date) for row in rows] == [
            (1, DAY),
            (1, DAY + timedelta(days=1)),
            (2, DAY),
        ]

    def test_undated_sessions_are_ignored(self):
        undated = SessionInput(session_id=None, tutor_id=1)

        assert DailyAggregator().compute([undated]) == []

    def test_no_completed_sessions_means_zero_lateness(self):
        rows = DailyAggregator().compute([session(status=SessionStatus.NO_SHOW.value, late_minutes=10)])

        assert rows[0].avg_lateness_min == 0.0


class TestDailyAggregatorRun:

    def test_rerun_updates_rows_in_place(self, db, factory, clock):
        tutor = factory.tutor()
        factory.session(tutor, start=START, late_minutes=6)
        aggregator = DailyAggregator(clock=clock)

        aggregator.run(db, DAY, DAY)
        db.commit()
        factory.session(tutor, start=START + timedelta(hours=2))
        aggregator.run(db, DAY, DAY)
        db.commit()

        count = db.execute(select(func.count(TutorDailyAggregate.id))).scalar_one()
        assert count == 1

        rows = AggregateRepository(db).recent(tutor.id, DAY, limit=7)
        assert rows[0].sessions_completed == 2
        assert rows[0].avg_lateness_min == 6.0

    def test_window_bounds_are_inclusive(self, db, factory, clock):
        tutor = factory.tutor()
        factory.session(tutor, start=datetime(2025, 11, 1, 0, 0, 0))
        factory.session(tutor, start=datetime(2025, 11, 3, 23, 30, 0))
        factory.session(tutor, start=datetime(2025, 11, 4, 0, 0, 0))

        rows = DailyAggregator(clock=clock).run(db, date(2025, 11, 1), date(2025, 11, 3))

        assert [row.date for row in rows] == [date(2025, 11, 1), date(2025, 11, 3)]
