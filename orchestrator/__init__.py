"""
Orchestrator Package - Batch Coordination Layer.

============================================================
PACKAGE OVERVIEW
============================================================
Runs the scoring pipeline as serial batch jobs. The
orchestrator has no scoring logic of its own; it wires
repositories to scorers, owns transaction boundaries and
collects per-unit failures.

============================================================
CYCLE ORDER
============================================================
1. score-sessions  SQS / FSQS
2. aggregate       tutor_daily_aggregates
3. health          THS
4. churn           TCRS
5. alerts          alert lifecycle

============================================================
QUICK START
============================================================
Command line usage::

    tutor-scoring --job all
    tutor-scoring --job health --log-level DEBUG

Programmatic usage::

    from orchestrator import ScoringCycle, JobConfig

    report = ScoringCycle(config=JobConfig.from_env()).run()

============================================================
"""

from .models import BatchReport, CycleReport, JobConfig, JobName, UnitFailure
from .jobs import (
    AlertJob,
    ChurnRiskJob,
    DailyAggregationJob,
    ScoringJob,
    SessionScoringJob,
    TutorHealthJob,
)
from .pipeline import ScoringCycle

__all__ = [
    "BatchReport",
    "CycleReport",
    "JobConfig",
    "JobName",
    "UnitFailure",
    "ScoringJob",
    "SessionScoringJob",
    "DailyAggregationJob",
    "TutorHealthJob",
    "ChurnRiskJob",
    "AlertJob",
    "ScoringCycle",
]
