"""
Database ORM Models - All Tables.

============================================================
DATABASE SCHEMA
============================================================

Defines the tables read and written by the scoring pipeline:

  tutors, students        reference data
  sessions                one tutoring appointment
  session_transcripts     optional 1:1 diarized transcript
  scores                  sqs / fsqs / ths / tcrs facts
  tutor_daily_aggregates  one row per (tutor, date)
  alerts                  tutor-scoped incidents

All timestamps are naive UTC.

============================================================
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, String, Float, Boolean, Date,
    DateTime, JSON, ForeignKey, Index, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from core.constants import AlertStatus, SessionStatus

from .engine import Base


# =============================================================
# HELPER FUNCTIONS
# =============================================================

def utc_now():
    """Get current naive UTC timestamp."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# =============================================================
# 1. REFERENCE TABLES
# =============================================================

class Tutor(Base):
    __tablename__ = "tutors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True, unique=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    sessions = relationship("Session", back_populates="tutor")


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utc_now)


# =============================================================
# 2. SESSIONS TABLE
# =============================================================

class Session(Base):
    """
    One tutoring appointment.

    Exactly one session per (tutor, student) pair carries
    first_session_for_student=True: the earliest by scheduled_start_at.
    Completed sessions are immutable for scoring purposes.
    """
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tutor_id = Column(Integer, ForeignKey("tutors.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)

    scheduled_start_at = Column(DateTime, nullable=True)
    scheduled_end_at = Column(DateTime, nullable=True)
    actual_start_at = Column(DateTime, nullable=True)
    actual_end_at = Column(DateTime, nullable=True)

    status = Column(String(20), nullable=False, default=SessionStatus.COMPLETED.value)
    reschedule_initiator = Column(String(20), nullable=True)  # tutor, student
    tech_issue = Column(Boolean, nullable=False, default=False)
    first_session_for_student = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, nullable=False, default=utc_now)

    tutor = relationship("Tutor", back_populates="sessions")
    student = relationship("Student")
    transcript = relationship(
        "SessionTranscript", back_populates="session", uselist=False,
    )

    __table_args__ = (
        Index("idx_sessions_tutor_scheduled", "tutor_id", "scheduled_start_at"),
        Index("idx_sessions_status", "status"),
    )


class SessionTranscript(Base):
    """
    Diarized transcript payload.

    {"speakers": [{"speaker", "text", "words", "timestamp"}],
     "metadata": {"total_words_tutor", "total_words_student"}}
    """
    __tablename__ = "session_transcripts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(Integer, ForeignKey("sessions.id"), nullable=False, unique=True)
    payload = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    session = relationship("Session", back_populates="transcript")


# =============================================================
# 3. SCORES TABLE
# =============================================================

class Score(Base):
    """
    Computed score fact.

    score_date is set only for ths/tcrs, so the unique constraint
    gives one row per tutor per day for those types while NULLs keep
    sqs/fsqs append-only.
    """
    __tablename__ = "scores"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tutor_id = Column(Integer, ForeignKey("tutors.id"), nullable=False, index=True)
    session_id = Column(Integer, ForeignKey("sessions.id"), nullable=True, index=True)

    score_type = Column(String(10), nullable=False)  # sqs, fsqs, ths, tcrs
    value = Column(Float, nullable=False)
    components = Column(JSON, nullable=False, default=dict)

    computed_at = Column(DateTime, nullable=False, default=utc_now)
    score_date = Column(Date, nullable=True)

    __table_args__ = (
        UniqueConstraint("tutor_id", "score_type", "score_date", name="uq_scores_tutor_type_date"),
        Index("idx_scores_tutor_type_computed", "tutor_id", "score_type", "computed_at"),
        Index("idx_scores_session_type", "session_id", "score_type"),
    )


# =============================================================
# 4. DAILY AGGREGATES TABLE
# =============================================================

class TutorDailyAggregate(Base):
    __tablename__ = "tutor_daily_aggregates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tutor_id = Column(Integer, ForeignKey("tutors.id"), nullable=False)
    date = Column(Date, nullable=False)

    sessions_completed = Column(Integer, nullable=False, default=0)
    reschedules_tutor_initiated = Column(Integer, nullable=False, default=0)
    no_shows = Column(Integer, nullable=False, default=0)
    avg_lateness_min = Column(Float, nullable=False, default=0.0)

    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint("tutor_id", "date", name="uq_daily_aggregate_tutor_date"),
        Index("idx_daily_aggregate_date", "date"),
    )


# =============================================================
# 5. ALERTS TABLE
# =============================================================

class Alert(Base):
    """
    Tutor-scoped incident.

    At most one active (open or acknowledged) alert per
    (tutor, alert_type). The JSON column is named "metadata" in the
    database; the attribute is alert_metadata because "metadata" is
    reserved on declarative classes. Replace the dict on update,
    never mutate it in place.
    """
    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tutor_id = Column(Integer, ForeignKey("tutors.id"), nullable=False)

    alert_type = Column(String(50), nullable=False)
    severity = Column(String(10), nullable=False)
    status = Column(String(20), nullable=False, default=AlertStatus.OPEN.value)

    triggered_at = Column(DateTime, nullable=False, default=utc_now)
    acknowledged_at = Column(DateTime, nullable=True)
    acknowledged_by = Column(String(255), nullable=True)
    resolved_at = Column(DateTime, nullable=True)

    alert_metadata = Column("metadata", JSON, nullable=False, default=dict)

    __table_args__ = (
        Index("idx_alerts_tutor_type_status", "tutor_id", "alert_type", "status"),
        Index("idx_alerts_status_triggered", "status", "triggered_at"),
    )


__all__ = [
    "Tutor",
    "Student",
    "Session",
    "SessionTranscript",
    "Score",
    "TutorDailyAggregate",
    "Alert",
    "utc_now",
]
