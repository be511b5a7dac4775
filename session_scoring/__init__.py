"""
Session Scoring Package.

Per-session scorers:
- SessionQualityScorer (SQS): every completed session
- FirstSessionQualityScorer (FSQS): a student's first session

plus the session and score repositories they persist through.
"""

from .config import FsqsConfig, SqsConfig
from .types import (
    FsqsComponents,
    FsqsFeedback,
    FsqsResult,
    SessionInput,
    SqsComponents,
    SqsLabel,
    SqsResult,
)
from .sqs import SessionQualityScorer
from .fsqs import FirstSessionQualityScorer, build_feedback
from .repository import ScoreRepository, SessionRepository

__all__ = [
    "FsqsConfig",
    "SqsConfig",
    "FsqsComponents",
    "FsqsFeedback",
    "FsqsResult",
    "SessionInput",
    "SqsComponents",
    "SqsLabel",
    "SqsResult",
    "SessionQualityScorer",
    "FirstSessionQualityScorer",
    "build_feedback",
    "ScoreRepository",
    "SessionRepository",
]
