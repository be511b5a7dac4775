"""
Orchestrator - Scoring Jobs.

============================================================
RESPONSIBILITY
============================================================
The five batch jobs of a scoring cycle:

1. SessionScoringJob    SQS / FSQS for sessions lacking them
2. DailyAggregationJob  trailing-window daily rollups
3. TutorHealthJob       THS for tutors with recent aggregates
4. ChurnRiskJob         TCRS for every tutor
5. AlertJob             alert evaluation for every tutor

============================================================
FAILURE MODEL
============================================================
Each unit of work (one session, one tutor-day, one tutor) runs
in its own transaction. A failing unit is rolled back, logged
with its traceback and recorded as a UnitFailure; the batch
moves on to the next unit.

============================================================
"""

import logging
from datetime import date, timedelta
from typing import Callable, List, Optional, Tuple

from sqlalchemy.orm import Session as DbSession, sessionmaker

from core.clock import ClockFactory, ClockProtocol
from core.constants import SessionStatus
from database.engine import get_session_factory, transaction_scope
from session_scoring.fsqs import FirstSessionQualityScorer
from session_scoring.repository import ScoreRepository, SessionRepository
from session_scoring.sqs import SessionQualityScorer
from session_scoring.types import SessionInput
from transcript_analysis.types import Transcript
from tutor_scoring.aggregation import DailyAggregator
from tutor_scoring.churn import TutorChurnRiskScorer
from tutor_scoring.health import TutorHealthScorer
from tutor_scoring.repository import AggregateRepository, DailyScoreRepository
from tutor_scoring.types import DailyAggregateRow
from alerting.engine import AlertEngine
from alerting.notifications import AlertNotifier, LoggingAlertNotifier, WebhookAlertNotifier
from alerting.repository import AlertRepository
from alerting.types import AlertEvaluation
from reporting.cache import TTLCache
from reporting.performance_summary import invalidate_performance_summary

from .models import BatchReport, JobConfig, JobName, UnitFailure

logger = logging.getLogger(__name__)

UnitWork = Callable[[DbSession], bool]


# ============================================================
# BASE JOB
# ============================================================

class ScoringJob:
    """
    Base class for batch jobs.

    Subclasses implement _execute(report) and call _run_unit()
    once per unit of work. The unit callable returns True when it
    wrote something and False when the unit was skipped.
    """

    name: JobName

    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        config: Optional[JobConfig] = None,
        clock: Optional[ClockProtocol] = None,
    ):
        self._session_factory = session_factory or get_session_factory()
        self._config = config or JobConfig()
        self._clock = clock or ClockFactory.get_clock()

    @property
    def config(self) -> JobConfig:
        return self._config

    def run(self) -> BatchReport:
        report = BatchReport(job_name=self.name.value, started_at=self._clock.now())
        logger.info(f"Job {self.name.value} START")

        try:
            self._execute(report)
        except Exception as e:
            logger.exception(f"Job {self.name.value} aborted: {e}")
            report.failures.append(UnitFailure.from_exception("batch", e))

        report.completed_at = self._clock.now()
        log = logger.warning if report.failures else logger.info
        log(
            f"Job {self.name.value} COMPLETE: {report.succeeded} succeeded, "
            f"{report.skipped} skipped, {len(report.failures)} failed"
        )
        return report

    def _execute(self, report: BatchReport) -> None:
        raise NotImplementedError

    def _run_unit(self, report: BatchReport, unit_id: str, work: UnitWork) -> bool:
        try:
            with transaction_scope(self._session_factory) as session:
                wrote = work(session)
        except Exception as e:
            logger.exception(f"Job {self.name.value}: unit {unit_id} failed: {e}")
            report.failures.append(UnitFailure.from_exception(unit_id, e))
            return False

        if wrote:
            report.succeeded += 1
        else:
            report.skipped += 1
        return wrote

    def _read(self, query: Callable[[DbSession], list]) -> list:
        with transaction_scope(self._session_factory) as session:
            return query(session)


# ============================================================
# 1. SESSION SCORING
# ============================================================

class SessionScoringJob(ScoringJob):
    """
    Scores completed sessions.

    SQS for every completed session without one; FSQS for
    completed first sessions with a transcript and no FSQS.
    Sessions without a diarized transcript are skipped and will be
    retried on the next run.
    """

    name = JobName.SCORE_SESSIONS

    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        config: Optional[JobConfig] = None,
        clock: Optional[ClockProtocol] = None,
        summary_cache: Optional[TTLCache] = None,
    ):
        super().__init__(session_factory, config, clock)
        self._sqs = SessionQualityScorer(self._config.sqs)
        self._fsqs = FirstSessionQualityScorer(self._config.fsqs)
        self._summary_cache = summary_cache

    def _execute(self, report: BatchReport) -> None:
        sqs_ids = self._read(lambda s: SessionRepository(s).sessions_needing_sqs())
        fsqs_ids = self._read(lambda s: SessionRepository(s).sessions_needing_fsqs())
        logger.info(f"{len(sqs_ids)} sessions need SQS, {len(fsqs_ids)} need FSQS")

        for session_id in sqs_ids:
            self._run_unit(report, f"sqs:{session_id}", self._sqs_unit(session_id))
        for session_id in fsqs_ids:
            self._run_unit(report, f"fsqs:{session_id}", self._fsqs_unit(session_id))

    def _load(self, db: DbSession, session_id: int):
        repository = SessionRepository(db)
        row = repository.get_session(session_id)
        if row is None or row.status != SessionStatus.COMPLETED.value:
            return None, None
        payload = repository.get_transcript_payload(session_id)
        transcript = Transcript.from_payload(payload, session_id=session_id) if payload is not None else None
        return SessionInput.from_model(row), transcript

    def _sqs_unit(self, session_id: int) -> UnitWork:
        def work(db: DbSession) -> bool:
            session_input, transcript = self._load(db, session_id)
            if session_input is None:
                return False
            result = self._sqs.score(session_input, transcript)
            if result is None:
                return False
            ScoreRepository(db).save_session_score(
                session_input.tutor_id, session_id, result, computed_at=self._clock.now(),
            )
            if self._summary_cache is not None:
                invalidate_performance_summary(self._summary_cache, session_input.tutor_id)
            return True
        return work

    def _fsqs_unit(self, session_id: int) -> UnitWork:
        def work(db: DbSession) -> bool:
            session_input, transcript = self._load(db, session_id)
            if session_input is None:
                return False
            result = self._fsqs.score(session_input, transcript)
            if result is None:
                return False
            ScoreRepository(db).save_session_score(
                session_input.tutor_id, session_id, result, computed_at=self._clock.now(),
            )
            return True
        return work


# ============================================================
# 2. DAILY AGGREGATION
# ============================================================

class DailyAggregationJob(ScoringJob):
    """Rebuilds the trailing aggregation window, one tutor-day per unit."""

    name = JobName.AGGREGATE

    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        config: Optional[JobConfig] = None,
        clock: Optional[ClockProtocol] = None,
    ):
        super().__init__(session_factory, config, clock)
        self._aggregator = DailyAggregator(clock=self._clock)

    def _execute(self, report: BatchReport) -> None:
        end_date = self._clock.today()
        start_date = end_date - timedelta(days=self._config.aggregation_window_days)

        sessions = self._read(lambda s: self._aggregator.load_sessions(s, start_date, end_date))
        rows = self._aggregator.compute(sessions)
        logger.info(f"Aggregating {len(sessions)} sessions into {len(rows)} rows ({start_date} .. {end_date})")

        for row in rows:
            self._run_unit(report, f"{row.tutor_id}:{row.date.isoformat()}", self._upsert_unit(row))

    def _upsert_unit(self, row: DailyAggregateRow) -> UnitWork:
        def work(db: DbSession) -> bool:
            AggregateRepository(db).upsert(row, updated_at=self._clock.now())
            return True
        return work


# ============================================================
# 3. TUTOR HEALTH
# ============================================================

class TutorHealthJob(ScoringJob):
    """THS for tutors with at least one aggregate in the lookback window."""

    name = JobName.HEALTH

    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        config: Optional[JobConfig] = None,
        clock: Optional[ClockProtocol] = None,
    ):
        super().__init__(session_factory, config, clock)
        self._scorer = TutorHealthScorer(self._config.health)

    def _execute(self, report: BatchReport) -> None:
        as_of = self._clock.today()
        since = as_of - timedelta(days=self._config.score_lookback_days)
        tutor_ids = self._read(lambda s: AggregateRepository(s).tutor_ids_since(since))

        for tutor_id in tutor_ids:
            self._run_unit(report, str(tutor_id), self._score_unit(tutor_id, since))

    def _score_unit(self, tutor_id: int, since: date) -> UnitWork:
        def work(db: DbSession) -> bool:
            as_of = self._clock.today()
            rows = AggregateRepository(db).recent(tutor_id, since, self._scorer.config.window_size)
            result = self._scorer.score(rows, as_of=as_of)
            if result is None:
                return False
            DailyScoreRepository(db).save_daily_score(
                tutor_id, result, computed_at=self._clock.now(), score_date=as_of,
            )
            return True
        return work


# ============================================================
# 4. CHURN RISK
# ============================================================

class ChurnRiskJob(ScoringJob):
    """TCRS for every tutor; tutors without recent aggregates are skipped."""

    name = JobName.CHURN

    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        config: Optional[JobConfig] = None,
        clock: Optional[ClockProtocol] = None,
    ):
        super().__init__(session_factory, config, clock)
        self._scorer = TutorChurnRiskScorer(self._config.churn)

    def _execute(self, report: BatchReport) -> None:
        tutor_ids = self._read(lambda s: AggregateRepository(s).all_tutor_ids())
        for tutor_id in tutor_ids:
            self._run_unit(report, str(tutor_id), self._score_unit(tutor_id))

    def _score_unit(self, tutor_id: int) -> UnitWork:
        def work(db: DbSession) -> bool:
            as_of = self._clock.today()
            since = as_of - timedelta(days=self._config.score_lookback_days)
            rows = AggregateRepository(db).recent(tutor_id, since, self._scorer.config.window_size)
            result = self._scorer.score(rows, as_of=as_of)
            if result is None:
                return False
            DailyScoreRepository(db).save_daily_score(
                tutor_id, result, computed_at=self._clock.now(), score_date=as_of,
            )
            return True
        return work


# ============================================================
# 5. ALERTS
# ============================================================

def build_notifiers(config: JobConfig) -> List[AlertNotifier]:
    notifiers: List[AlertNotifier] = [LoggingAlertNotifier()]
    if config.alert_webhook_url:
        notifiers.append(WebhookAlertNotifier(config.alert_webhook_url))
    return notifiers


class AlertJob(ScoringJob):
    """
    Evaluates alert rules for every tutor, one transaction per tutor.

    Notifiers hear about a tutor's new alerts only after that
    tutor's unit has committed.
    """

    name = JobName.ALERTS

    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        config: Optional[JobConfig] = None,
        clock: Optional[ClockProtocol] = None,
        notifiers: Optional[List[AlertNotifier]] = None,
    ):
        super().__init__(session_factory, config, clock)
        self._notifiers = notifiers if notifiers is not None else build_notifiers(self._config)

    def _execute(self, report: BatchReport) -> None:
        tutor_ids = self._read(lambda s: AlertRepository(s).tutor_ids())
        for tutor_id in tutor_ids:
            evaluated: List[Tuple[AlertEngine, AlertEvaluation]] = []
            if self._run_unit(report, str(tutor_id), self._evaluate_unit(tutor_id, evaluated)):
                # Only committed alerts are announced
                engine, evaluation = evaluated[-1]
                engine.dispatch(evaluation.events)

    def _evaluate_unit(
        self,
        tutor_id: int,
        evaluated: List[Tuple[AlertEngine, AlertEvaluation]],
    ) -> UnitWork:
        def work(db: DbSession) -> bool:
            engine = AlertEngine(
                AlertRepository(db),
                config=self._config.alerts,
                clock=self._clock,
                notifiers=self._notifiers,
            )
            evaluation = engine.evaluate_tutor(tutor_id)
            evaluated.append((engine, evaluation))
            return evaluation.changed
        return work


__all__ = [
    "ScoringJob",
    "SessionScoringJob",
    "DailyAggregationJob",
    "TutorHealthJob",
    "ChurnRiskJob",
    "AlertJob",
    "build_notifiers",
]
