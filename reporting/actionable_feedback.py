"""
Reporting - SQS Actionable Feedback.

============================================================
PURPOSE
============================================================
Turns the deductions recorded in a tutor's last 10 SQS
components into concrete, prioritized action items:

- lateness   -> "Start Sessions on Time"
- shortfall  -> "Complete Full Session Duration"
- tech_issue -> "Resolve Technical Issues"

Transcript-driven penalties are not surfaced here; they are
covered by the first-session feedback and the LLM service.

============================================================
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from core.constants import ScoreType
from session_scoring.repository import ScoreRepository
from session_scoring.types import SqsComponents

logger = logging.getLogger(__name__)


RECENT_SESSIONS = 10
HIGH_PRIORITY_COUNT = 5
HIGH_PRIORITY_TECH_COUNT = 3

PERFECT_MESSAGE = (
    "You're doing a fantastic job! All your last 10 sessions had perfect scores with no issues."
)


class FeedbackPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return {"high": 3, "medium": 2, "low": 1}[self.value]


class DeductionType(str, Enum):
    LATENESS = "lateness"
    SHORTFALL = "shortfall"
    TECH_ISSUE = "tech_issue"


# ============================================================
# RESULT TYPES
# ============================================================


@dataclass(frozen=True)
class ActionItem:
    type: DeductionType
    priority: FeedbackPriority
    title: str
    description: str
    action: str
    icon: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "type": self.type.value,
            "priority": self.priority.value,
            "title": self.title,
            "description": self.description,
            "action": self.action,
            "icon": self.icon,
        }


@dataclass(frozen=True)
class DeductionSummary:
    lateness_count: int = 0
    shortfall_count: int = 0
    tech_issue_count: int = 0
    lateness_avg_minutes: float = 0.0
    shortfall_avg_minutes: float = 0.0

    @property
    def total_with_deductions(self) -> int:
        return self.lateness_count + self.shortfall_count + self.tech_issue_count

    @property
    def most_common_issue(self) -> DeductionType:
        if self.lateness_count >= self.shortfall_count and self.lateness_count >= self.tech_issue_count:
            return DeductionType.LATENESS
        if self.shortfall_count >= self.tech_issue_count:
            return DeductionType.SHORTFALL
        return DeductionType.TECH_ISSUE


@dataclass(frozen=True)
class ActionableFeedback:
    perfect: bool
    message: Optional[str] = None
    items: List[ActionItem] = field(default_factory=list)
    total_sessions: int = 0
    deductions: Optional[DeductionSummary] = None

    @property
    def summary(self) -> Optional[Dict[str, Any]]:
        if self.perfect or self.deductions is None:
            return None
        return {
            "total_sessions": self.total_sessions,
            "sessions_with_deductions": self.deductions.total_with_deductions,
            "most_common_issue": self.deductions.most_common_issue.value,
        }

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "perfect": self.perfect,
            "message": self.message,
            "items": [item.to_dict() for item in self.items],
        }
        if self.summary is not None:
            data["summary"] = self.summary
        return data


# ============================================================
# ANALYSIS
# ============================================================


def analyze_deductions(components: Sequence[SqsComponents]) -> DeductionSummary:
    """Count sessions carrying each scheduling deduction."""
    lateness_count = shortfall_count = tech_count = 0
    lateness_minutes = shortfall_minutes = 0.0

    for item in components:
        if item.lateness_penalty > 0:
            lateness_count += 1
            lateness_minutes += float(item.lateness_minutes or 0)
        if item.shortfall_penalty > 0:
            shortfall_count += 1
            shortfall_minutes += float(item.shortfall_minutes or 0)
        if item.tech_penalty > 0:
            tech_count += 1

    return DeductionSummary(
        lateness_count=lateness_count,
        shortfall_count=shortfall_count,
        tech_issue_count=tech_count,
        lateness_avg_minutes=round(lateness_minutes / lateness_count, 1) if lateness_count else 0.0,
        shortfall_avg_minutes=round(shortfall_minutes / shortfall_count, 1) if shortfall_count else 0.0,
    )


def _priority(count: int, high_at: int) -> FeedbackPriority:
    return FeedbackPriority.HIGH if count >= high_at else FeedbackPriority.MEDIUM


def build_action_items(deductions: DeductionSummary) -> List[ActionItem]:
    """One item per deduction type present, high priority first."""
    items: List[ActionItem] = []

    if deductions.lateness_count > 0:
        items.append(ActionItem(
            type=DeductionType.LATENESS,
            priority=_priority(deductions.lateness_count, HIGH_PRIORITY_COUNT),
            title="Start Sessions on Time",
            description=(
                f"You were late to {deductions.lateness_count} out of 10 recent sessions, "
                f"averaging {deductions.lateness_avg_minutes} minutes late."
            ),
            action=(
                "Try setting a reminder 5 minutes before each session. Aim to join 2-3 minutes "
                "early to ensure you're ready when the student arrives."
            ),
            icon="⏰",
        ))

    if deductions.shortfall_count > 0:
        items.append(ActionItem(
            type=DeductionType.SHORTFALL,
            priority=_priority(deductions.shortfall_count, HIGH_PRIORITY_COUNT),
            title="Complete Full Session Duration",
            description=(
                f"You ended {deductions.shortfall_count} sessions early, "
                f"averaging {deductions.shortfall_avg_minutes} minutes short."
            ),
            action=(
                "Plan your session content to fill the full duration. If you finish early, use the "
                "extra time for review, practice problems, or goal setting."
            ),
            icon="⏱️",
        ))

    if deductions.tech_issue_count > 0:
        items.append(ActionItem(
            type=DeductionType.TECH_ISSUE,
            priority=_priority(deductions.tech_issue_count, HIGH_PRIORITY_TECH_COUNT),
            title="Resolve Technical Issues",
            description=(
                f"You experienced technical issues in {deductions.tech_issue_count} "
                "out of 10 recent sessions."
            ),
            action=(
                "Test your internet connection, camera, and microphone before each session. "
                "Have a backup plan ready if issues occur."
            ),
            icon="\U0001f527",
        ))

    return sorted(items, key=lambda item: (-item.priority.rank, item.type.value))


# ============================================================
# SERVICE
# ============================================================


class SqsActionableFeedbackService:
    """Action items derived from recent SQS deductions."""

    def __init__(self, repository: ScoreRepository):
        self._repository = repository

    def generate(self, tutor_id: int) -> ActionableFeedback:
        scores = self._repository.recent_scores(tutor_id, ScoreType.SQS, RECENT_SESSIONS)
        if not scores:
            return ActionableFeedback(perfect=True)

        components = [SqsComponents.from_dict(score.components) for score in scores]
        deductions = analyze_deductions(components)

        if deductions.total_with_deductions == 0:
            return ActionableFeedback(
                perfect=True,
                message=PERFECT_MESSAGE,
                total_sessions=len(scores),
                deductions=deductions,
            )

        items = build_action_items(deductions)
        logger.debug(
            f"Tutor {tutor_id}: {len(items)} action items from {len(scores)} sessions "
            f"(most common: {deductions.most_common_issue.value})"
        )
        return ActionableFeedback(
            perfect=False,
            items=items,
            total_sessions=len(scores),
            deductions=deductions,
        )


__all__ = [
    "FeedbackPriority",
    "DeductionType",
    "ActionItem",
    "DeductionSummary",
    "ActionableFeedback",
    "SqsActionableFeedbackService",
    "analyze_deductions",
    "build_action_items",
]
