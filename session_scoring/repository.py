"""
Session Scoring - Repository.

============================================================
PURPOSE
============================================================
Repository pattern implementation for session and score
persistence.

Provides clean interface for:
- Finding sessions that still need an SQS or FSQS
- Loading a session's transcript
- Saving per-session scores (append-only)
- Reading the latest / recent scores of a type for a tutor
- Recomputing first_session_for_student flags
- Loading recent transcribed sessions for LLM feedback

============================================================
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, desc, exists, select, update
from sqlalchemy.orm import Session as DbSession, joinedload

from core.constants import ScoreType, SessionStatus
from database.models import Score, Session, SessionTranscript, utc_now

from .types import FsqsResult, SqsResult

logger = logging.getLogger(__name__)


class SessionRepository:
    """
    Read access to sessions and transcripts.

    ============================================================
    METHODS
    ============================================================
    - sessions_needing_sqs: completed sessions with no sqs row
    - sessions_needing_fsqs: completed first sessions with a
      transcript and no fsqs row
    - get_session / get_transcript_payload
    - sessions_scheduled_between: raw input for daily aggregation
    - mark_first_sessions: recompute first_session_for_student

    ============================================================
    """

    def __init__(self, session: DbSession):
        self._session = session

    def get_session(self, session_id: int) -> Optional[Session]:
        return self._session.get(Session, session_id)

    def get_transcript_payload(self, session_id: int) -> Optional[Dict[str, Any]]:
        return self._session.execute(
            select(SessionTranscript.payload).where(SessionTranscript.session_id == session_id)
        ).scalar_one_or_none()

    def sessions_needing_sqs(self) -> List[int]:
        """Ids of completed sessions without an sqs score, oldest first."""
        return self._session_ids_missing(ScoreType.SQS, first_only=False)

    def sessions_needing_fsqs(self) -> List[int]:
        """Ids of completed first sessions with a transcript and no fsqs score."""
        return self._session_ids_missing(ScoreType.FSQS, first_only=True)

    def _session_ids_missing(self, score_type: ScoreType, first_only: bool) -> List[int]:
        has_score = exists().where(
            and_(Score.session_id == Session.id, Score.score_type == score_type.value)
        )
        query = (
            select(Session.id)
            .where(Session.status == SessionStatus.COMPLETED.value)
            .where(~has_score)
            .order_by(Session.scheduled_start_at, Session.id)
        )
        if first_only:
            query = query.where(Session.first_session_for_student.is_(True)).where(
                exists().where(SessionTranscript.session_id == Session.id)
            )
        return list(self._session.execute(query).scalars())

    def sessions_scheduled_between(self, start: datetime, end: datetime) -> List[Session]:
        """Sessions whose scheduled start falls within [start, end]."""
        query = (
            select(Session)
            .where(Session.scheduled_start_at >= start)
            .where(Session.scheduled_start_at <= end)
            .order_by(Session.tutor_id, Session.scheduled_start_at)
        )
        return list(self._session.execute(query).scalars())

    def recent_transcribed_sessions(self, tutor_id: int, limit: int) -> List[Session]:
        """Latest completed sessions with a transcript, student and transcript loaded."""
        query = (
            select(Session)
            .join(SessionTranscript, SessionTranscript.session_id == Session.id)
            .where(Session.tutor_id == tutor_id)
            .where(Session.status == SessionStatus.COMPLETED.value)
            .options(joinedload(Session.student), joinedload(Session.transcript))
            .order_by(desc(Session.scheduled_start_at), desc(Session.id))
            .limit(limit)
        )
        return list(self._session.execute(query).unique().scalars())

    def mark_first_sessions(self, tutor_id: Optional[int] = None) -> int:
        """
        Recompute first_session_for_student.

        Exactly one session per (tutor, student) is flagged: the
        earliest by scheduled_start_at, lowest id on ties.

        Returns:
            Number of sessions flagged
        """
        query = select(
            Session.id, Session.tutor_id, Session.student_id, Session.scheduled_start_at,
        )
        if tutor_id is not None:
            query = query.where(Session.tutor_id == tutor_id)

        rows = self._session.execute(query).all()
        earliest: Dict[tuple, tuple] = {}
        for session_id, row_tutor, student_id, scheduled in rows:
            key = (row_tutor, student_id)
            rank = (scheduled is None, scheduled or datetime.min, session_id)
            if key not in earliest or rank < earliest[key][0]:
                earliest[key] = (rank, session_id)

        first_ids = [session_id for _, session_id in earliest.values()]
        all_ids = [row[0] for row in rows]

        if all_ids:
            self._session.execute(
                update(Session)
                .where(Session.id.in_(all_ids))
                .values(first_session_for_student=False)
            )
        if first_ids:
            self._session.execute(
                update(Session)
                .where(Session.id.in_(first_ids))
                .values(first_session_for_student=True)
            )
        self._session.flush()
        logger.info(f"Flagged {len(first_ids)} first sessions across {len(all_ids)} sessions")
        return len(first_ids)


class ScoreRepository:
    """
    Repository for score rows shared by every scorer.

    sqs/fsqs are append-only, one per session. The job guarantees
    it only scores sessions lacking a score of that type.
    """

    def __init__(self, session: DbSession):
        self._session = session

    # --------------------------------------------------------
    # WRITE OPERATIONS
    # --------------------------------------------------------

    def save_session_score(
        self,
        tutor_id: int,
        session_id: int,
        result: Any,
        computed_at: Optional[datetime] = None,
    ) -> Score:
        """
        Persist an SqsResult or FsqsResult.

        Args:
            tutor_id: Owning tutor
            session_id: Scored session
            result: SqsResult or FsqsResult
            computed_at: Timestamp (defaults to now)
        """
        if isinstance(result, SqsResult):
            score_type, components = ScoreType.SQS, result.components_dict()
        elif isinstance(result, FsqsResult):
            score_type, components = ScoreType.FSQS, result.components.to_dict()
        else:
            raise TypeError(f"Unsupported session score result: {type(result).__name__}")

        score = Score(
            tutor_id=tutor_id,
            session_id=session_id,
            score_type=score_type.value,
            value=result.score,
            components=components,
            computed_at=computed_at or utc_now(),
        )
        self._session.add(score)
        self._session.flush()

        logger.debug(
            f"Saved {score_type.value} score {result.score} for session {session_id} "
            f"(tutor {tutor_id})"
        )
        return score

    # --------------------------------------------------------
    # READ OPERATIONS
    # --------------------------------------------------------

    def latest_score(self, tutor_id: int, score_type: ScoreType) -> Optional[Score]:
        """Most recently computed score of a type for a tutor."""
        query = (
            select(Score)
            .where(Score.tutor_id == tutor_id)
            .where(Score.score_type == ScoreType(score_type).value)
            .order_by(desc(Score.computed_at), desc(Score.id))
            .limit(1)
        )
        return self._session.execute(query).scalar_one_or_none()

    def recent_scores(self, tutor_id: int, score_type: ScoreType, limit: int) -> List[Score]:
        """Up to `limit` scores of a type, newest first."""
        query = (
            select(Score)
            .where(Score.tutor_id == tutor_id)
            .where(Score.score_type == ScoreType(score_type).value)
            .order_by(desc(Score.computed_at), desc(Score.id))
            .limit(limit)
        )
        return list(self._session.execute(query).scalars())

    def recent_values(self, tutor_id: int, score_type: ScoreType, limit: int) -> List[float]:
        return [score.value for score in self.recent_scores(tutor_id, score_type, limit)]


__all__ = ["SessionRepository", "ScoreRepository"]
