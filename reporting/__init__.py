"""
Reporting Package.

Tutor-facing read models built on top of stored scores:

- performance_summary: cached trend narrative over recent SQS
- actionable_feedback: action items from SQS deductions
- ai_feedback: LLM-pointed moments in recent transcripts
- cache: TTL store shared by the above
"""

from .cache import CacheEntry, TTLCache
from .performance_summary import (
    PerformanceSummary,
    PerformanceSummaryService,
    SummaryTrend,
    invalidate_performance_summary,
    performance_summary_key,
)
from .actionable_feedback import (
    ActionableFeedback,
    ActionItem,
    DeductionType,
    FeedbackPriority,
    SqsActionableFeedbackService,
)
from .ai_feedback import (
    AiFeedbackResult,
    AiFeedbackService,
    FeedbackGenerator,
    OpenAIChatGenerator,
)

__all__ = [
    "CacheEntry",
    "TTLCache",
    "PerformanceSummary",
    "PerformanceSummaryService",
    "SummaryTrend",
    "invalidate_performance_summary",
    "performance_summary_key",
    "ActionableFeedback",
    "ActionItem",
    "DeductionType",
    "FeedbackPriority",
    "SqsActionableFeedbackService",
    "AiFeedbackResult",
    "AiFeedbackService",
    "FeedbackGenerator",
    "OpenAIChatGenerator",
]
