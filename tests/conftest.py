"""
Shared test fixtures.

============================================================
PURPOSE
============================================================
- In-memory SQLite engine (StaticPool so every session shares
  one connection) with all tables created
- Session factory and an open ORM session
- MockClock pinned to a fixed UTC instant
- Builders for tutors, sessions, transcripts, scores and
  daily aggregates
- Canned transcript payloads

============================================================
"""

from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from core.clock import ClockFactory, MockClock
from core.constants import SessionStatus
from database.engine import build_session_factory, create_all_tables
from database.models import (
    Score,
    Session,
    SessionTranscript,
    Student,
    Tutor,
    TutorDailyAggregate,
)


NOW = datetime(2025, 11, 10, 12, 0, 0)


# ============================================================
# TRANSCRIPT PAYLOADS
# ============================================================

def build_payload(
    turns: Sequence[Tuple[str, str]],
    total_words_tutor: Optional[int] = None,
    total_words_student: Optional[int] = None,
) -> Dict[str, Any]:
    """Payload from (speaker, text) pairs; word counts from whitespace splits."""
    speakers = [
        {
            "speaker": speaker,
            "text": text,
            "words": len(text.split()),
            "timestamp": f"00:{index:02d}:00",
        }
        for index, (speaker, text) in enumerate(turns)
    ]
    metadata = {}
    if total_words_tutor is not None:
        metadata["total_words_tutor"] = total_words_tutor
    if total_words_student is not None:
        metadata["total_words_student"] = total_words_student
    return {"speakers": speakers, "metadata": metadata}


# Passes every transcript check used by SQS and FSQS.
GOOD_TURNS = [
    ("tutor", "Hello, my name is Sam. What would you like to work on today?"),
    ("student", "I want to practice fractions before my quiz."),
    ("tutor", "Great, let us start with an example together."),
    ("student", "One half plus one third is five sixths."),
    ("tutor", "Excellent work on that one."),
    ("student", "Thanks, that makes sense now."),
    ("tutor", "Let us recap what we covered and plan the next session on decimals."),
    ("student", "Sounds good, see you then."),
]

# Fails every transcript check used by SQS and FSQS.
POOR_TURNS = [
    ("tutor", "Open your book to page ten."),
    ("student", "I am confused."),
    ("tutor", "Solve the first problem now."),
    ("student", "I do not understand, I am lost."),
    ("tutor", "That answer is wrong, you cannot do it that way."),
    ("tutor", "Do the rest at home."),
]


@pytest.fixture
def good_payload() -> Dict[str, Any]:
    return build_payload(GOOD_TURNS, total_words_tutor=40, total_words_student=30)


@pytest.fixture
def poor_payload() -> Dict[str, Any]:
    return build_payload(POOR_TURNS, total_words_tutor=90, total_words_student=10)


@pytest.fixture
def make_payload():
    return build_payload


# ============================================================
# CLOCK
# ============================================================

@pytest.fixture
def clock():
    """MockClock installed as the global clock for the test."""
    mock = MockClock(NOW)
    ClockFactory.set_clock(mock)
    yield mock
    ClockFactory.reset()


# ============================================================
# DATABASE
# ============================================================

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_all_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


# ============================================================
# BUILDERS
# ============================================================

class Factory:
    """Inserts rows and commits so other sessions can see them."""

    def __init__(self, db):
        self.db = db
        self._counter = 0

    def _save(self, row):
        self.db.add(row)
        self.db.commit()
        return row

    def tutor(self, name: str = "Tutor") -> Tutor:
        self._counter += 1
        return self._save(Tutor(name=name, email=f"tutor{self._counter}@example.com"))

    def student(self, name: str = "Student") -> Student:
        return self._save(Student(name=name))

    def session(
        self,
        tutor: Tutor,
        student: Optional[Student] = None,
        start: datetime = NOW - timedelta(days=1),
        duration_minutes: int = 60,
        late_minutes: float = 0,
        early_end_minutes: float = 0,
        status: str = SessionStatus.COMPLETED.value,
        tech_issue: bool = False,
        first: bool = False,
        reschedule_initiator: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Session:
        student = student or self.student()
        end = start + timedelta(minutes=duration_minutes)
        completed = status == SessionStatus.COMPLETED.value
        row = Session(
            tutor_id=tutor.id,
            student_id=student.id,
            scheduled_start_at=start,
            scheduled_end_at=end,
            actual_start_at=start + timedelta(minutes=late_minutes) if completed else None,
            actual_end_at=end - timedelta(minutes=early_end_minutes) if completed else None,
            status=status,
            tech_issue=tech_issue,
            first_session_for_student=first,
            reschedule_initiator=reschedule_initiator,
        )
        self._save(row)
        if payload is not None:
            self._save(SessionTranscript(session_id=row.id, payload=payload))
        return row

    def score(
        self,
        tutor: Tutor,
        score_type: str,
        value: float,
        computed_at: datetime = NOW,
        components: Optional[Dict[str, Any]] = None,
        score_date: Optional[date] = None,
        session: Optional[Session] = None,
    ) -> Score:
        return self._save(Score(
            tutor_id=tutor.id,
            session_id=session.id if session is not None else None,
            score_type=score_type,
            value=value,
            components=components or {},
            computed_at=computed_at,
            score_date=score_date,
        ))

    def aggregate(
        self,
        tutor: Tutor,
        day: date,
        sessions_completed: int = 0,
        reschedules: int = 0,
        no_shows: int = 0,
        avg_lateness: float = 0.0,
    ) -> TutorDailyAggregate:
        return self._save(TutorDailyAggregate(
            tutor_id=tutor.id,
            date=day,
            sessions_completed=sessions_completed,
            reschedules_tutor_initiated=reschedules,
            no_shows=no_shows,
            avg_lateness_min=avg_lateness,
        ))

    def daily_series(self, tutor: Tutor, counts: List[int], end: date) -> None:
        """One aggregate per day ending at `end`; counts are oldest first."""
        start = end - timedelta(days=len(counts) - 1)
        for offset, count in enumerate(counts):
            self.aggregate(tutor, start + timedelta(days=offset), sessions_completed=count)


@pytest.fixture
def factory(db):
    return Factory(db)
