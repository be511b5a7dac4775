"""
Core Module Package.

This package contains the core infrastructure components
that all other modules depend on.

Components:
- clock: Unified time abstraction
- exceptions: Custom exception hierarchy
"""

from .clock import ClockFactory, ClockProtocol, MockClock, SystemClock
from .exceptions import (
    AlertError,
    AlertNotFound,
    ConfigurationError,
    DataError,
    FeedbackGenerationError,
    InvalidAlertTransition,
    InvalidTranscriptError,
    PersistenceError,
    ScoringSystemError,
    Severity,
)

__all__ = [
    "ClockFactory",
    "ClockProtocol",
    "MockClock",
    "SystemClock",
    "AlertError",
    "AlertNotFound",
    "ConfigurationError",
    "DataError",
    "FeedbackGenerationError",
    "InvalidAlertTransition",
    "InvalidTranscriptError",
    "PersistenceError",
    "ScoringSystemError",
    "Severity",
]
