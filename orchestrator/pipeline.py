"""
Orchestrator - Scoring Cycle.

============================================================
RESPONSIBILITY
============================================================
Runs the scoring jobs with strict ordering.

- Session scores first
- Aggregation before THS / TCRS
- Alerts last, against this cycle's scores
- A failing job never stops the jobs after it; per-unit
  failures are already captured in each BatchReport

============================================================
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import sessionmaker

from core.clock import ClockFactory, ClockProtocol
from database.engine import get_session_factory, transaction_scope
from session_scoring.repository import ScoreRepository
from alerting.notifications import AlertNotifier
from reporting.cache import TTLCache
from reporting.performance_summary import PerformanceSummary, PerformanceSummaryService

from .jobs import (
    AlertJob,
    ChurnRiskJob,
    DailyAggregationJob,
    ScoringJob,
    SessionScoringJob,
    TutorHealthJob,
)
from .models import BatchReport, CycleReport, JobConfig, JobName

logger = logging.getLogger(__name__)


class ScoringCycle:
    """
    One full pass of the scoring pipeline.

    ============================================================
    USAGE
    ============================================================
    cycle = ScoringCycle(session_factory, JobConfig.from_env())
    report = cycle.run()
    ============================================================
    """

    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        config: Optional[JobConfig] = None,
        clock: Optional[ClockProtocol] = None,
        summary_cache: Optional[TTLCache] = None,
        notifiers: Optional[List[AlertNotifier]] = None,
    ):
        factory = session_factory or get_session_factory()
        config = config or JobConfig()
        clock = clock or ClockFactory.get_clock()
        if summary_cache is None:
            summary_cache = TTLCache(default_ttl_seconds=config.performance_summary_ttl_seconds, clock=clock)

        self._jobs: Dict[JobName, ScoringJob] = {
            JobName.SCORE_SESSIONS: SessionScoringJob(factory, config, clock, summary_cache=summary_cache),
            JobName.AGGREGATE: DailyAggregationJob(factory, config, clock),
            JobName.HEALTH: TutorHealthJob(factory, config, clock),
            JobName.CHURN: ChurnRiskJob(factory, config, clock),
            JobName.ALERTS: AlertJob(factory, config, clock, notifiers=notifiers),
        }
        self._factory = factory
        self._config = config
        self._clock = clock
        self._summary_cache = summary_cache

    def job(self, name: JobName) -> ScoringJob:
        return self._jobs[name]

    def run_job(self, name: JobName) -> BatchReport:
        return self._jobs[name].run()

    def run(self) -> CycleReport:
        """Execute every job in cycle order."""
        report = CycleReport(started_at=self._clock.now())
        logger.info("Scoring cycle START")

        for name in JobName.ordered():
            report.reports.append(self.run_job(name))

        report.completed_at = self._clock.now()
        logger.info(
            f"Scoring cycle COMPLETE: {len(report.reports)} jobs, "
            f"{report.failure_count} unit failures"
        )
        return report

    def performance_summary(self, tutor_id: int) -> PerformanceSummary:
        """Tutor summary from the cache that session scoring invalidates."""
        with transaction_scope(self._factory) as session:
            service = PerformanceSummaryService(
                ScoreRepository(session),
                self._summary_cache,
                clock=self._clock,
                ttl_seconds=self._config.performance_summary_ttl_seconds,
            )
            return service.generate(tutor_id)


__all__ = ["ScoringCycle"]
