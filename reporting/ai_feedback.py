"""
Reporting - LLM Actionable Feedback.

============================================================
PURPOSE
============================================================
Asks a language model to point at 2-3 concrete moments in a
tutor's last 5 transcripts where an actionable item (e.g.
"encouragement", "lateness") should have been addressed.

============================================================
GUARDS
============================================================
- Cache:      24h per (tutor, item type)
- Rate limit: 5 generator calls per tutor per day
- Data:       at least 5 completed sessions with transcripts

Any generator failure maps to a canned fallback result for the
item type. A response that cannot be parsed also falls back; it
counts against the rate limit but is not cached.

============================================================
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Protocol, Sequence

import httpx
import openai
from openai import OpenAI

from core.clock import ClockFactory, ClockProtocol
from core.constants import SECONDS_PER_DAY
from core.exceptions import ConfigurationError, FeedbackGenerationError
from session_scoring.repository import SessionRepository
from transcript_analysis.types import Transcript

from .cache import TTLCache

logger = logging.getLogger(__name__)


RATE_LIMIT_PER_DAY = 5
CACHE_TTL_SECONDS = SECONDS_PER_DAY
MIN_SESSIONS = 5

ERROR_RATE_LIMIT = "rate_limit_exceeded"
ERROR_INSUFFICIENT_SESSIONS = "insufficient_sessions"

SYSTEM_PROMPT = (
    "You are a helpful tutor coach. You analyze session transcripts and provide specific, "
    "actionable feedback. Always respond with valid JSON."
)


# ============================================================
# TEXT GENERATORS
# ============================================================


class FeedbackGenerator(Protocol):
    """Anything that turns a prompt into model text."""

    def generate(self, system_prompt: str, prompt: str) -> str:
        ...


class OpenAIChatGenerator:
    """Chat-completions client on the openai SDK."""

    DEFAULT_MODEL = "gpt-4o-mini"
    DEFAULT_BASE_URL = "https://api.openai.com/v1"

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        temperature: float = 0.7,
        max_tokens: int = 1000,
        max_retries: int = 2,
        http_client: Optional[httpx.Client] = None,
    ):
        self.model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._client = OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
            http_client=http_client,
        )

    @classmethod
    def from_env(cls) -> "OpenAIChatGenerator":
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ConfigurationError("OPENAI_API_KEY is not set", config_key="OPENAI_API_KEY")
        return cls(
            api_key=api_key,
            model=os.getenv("OPENAI_MODEL", cls.DEFAULT_MODEL),
            base_url=os.getenv("OPENAI_BASE_URL", cls.DEFAULT_BASE_URL),
        )

    def generate(self, system_prompt: str, prompt: str) -> str:
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": prompt},
                ],
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
            return response.choices[0].message.content or ""
        except openai.APIStatusError as e:
            raise FeedbackGenerationError(
                f"Chat completion failed: HTTP {e.status_code}", cause=e,
            ) from e
        except openai.APIError as e:
            raise FeedbackGenerationError(f"Chat completion request failed: {e}", cause=e) from e
        except (IndexError, AttributeError, TypeError) as e:
            raise FeedbackGenerationError(f"Unexpected chat completion payload: {e}", cause=e) from e


# ============================================================
# ITEM CONTEXTS AND FALLBACKS
# ============================================================


ITEM_CONTEXTS: Dict[str, Dict[str, str]] = {
    "encouragement": {
        "title": "Use More Encouragement",
        "description": "The tutor has been flagged for not using encouragement phrases in recent sessions.",
    },
    "confusion": {
        "title": "Address Student Confusion",
        "description": (
            "Students expressed confusion in recent sessions and the tutor should address it "
            "more effectively."
        ),
    },
    "word_share": {
        "title": "Balance Conversation",
        "description": "The tutor spoke more than 75% of the time in recent sessions, creating an imbalance.",
    },
    "goal_setting": {
        "title": "Set Goals Early",
        "description": "The tutor did not ask about goals in the first few minutes of recent sessions.",
    },
    "closing_summary": {
        "title": "Summarize at the End",
        "description": "The tutor did not provide a summary or next steps at the end of recent sessions.",
    },
    "negative_phrasing": {
        "title": "Use Positive Language",
        "description": "Negative phrasing was detected in recent sessions.",
    },
    "lateness": {
        "title": "Start Sessions on Time",
        "description": "The tutor was late to recent sessions.",
    },
    "shortfall": {
        "title": "Complete Full Session Duration",
        "description": "The tutor ended sessions early in recent sessions.",
    },
    "tech_issue": {
        "title": "Resolve Technical Issues",
        "description": "The tutor experienced technical issues in recent sessions.",
    },
}

DEFAULT_ITEM_CONTEXT = {
    "title": "Improve Session Quality",
    "description": "The tutor has areas for improvement in recent sessions.",
}


def _fallback(context: str, suggestion: str, reason: str) -> Dict[str, str]:
    return {
        "student_name": "Your students",
        "context": context,
        "suggestion": suggestion,
        "reason": reason,
    }


FALLBACK_MOMENTS: Dict[str, Dict[str, str]] = {
    "encouragement": _fallback(
        "When students complete problems or answer questions correctly",
        'Use phrases like "Great job!", "Excellent work!", or "You are doing well!"',
        "This builds student confidence and encourages continued engagement",
    ),
    "confusion": _fallback(
        'When students express confusion or say "I do not understand"',
        'Ask "What part would you like me to explain differently?" and pause to let them process',
        "This helps identify specific areas of confusion and shows you care about their understanding",
    ),
    "word_share": _fallback(
        "Throughout the session",
        "Ask open-ended questions and give students time to think before responding",
        "This creates a better learning environment where students actively participate",
    ),
    "goal_setting": _fallback(
        "At the beginning of each session",
        'Ask "What would you like to work on today?" or "What are your goals for this session?"',
        "This helps focus the session and ensures you address student needs",
    ),
    "closing_summary": _fallback(
        "At the end of each session",
        'Say "Today we covered X, Y, and Z. Next time we will work on..."',
        "This helps students retain what they learned and sets expectations for future sessions",
    ),
    "negative_phrasing": _fallback(
        "When correcting or providing feedback",
        'Instead of "That is wrong", try "Let us try a different approach" or '
        '"That is close, but let us think about..."',
        "Positive language maintains student confidence and encourages learning",
    ),
    "lateness": _fallback(
        "Session start time",
        "Set a reminder 5 minutes before each session and aim to join 2-3 minutes early",
        "Starting on time shows respect for student time and sets a professional tone",
    ),
    "shortfall": _fallback(
        "Session end time",
        "Plan your session content to fill the full duration, or use extra time for review",
        "Completing full sessions ensures students receive the full value they expect",
    ),
    "tech_issue": _fallback(
        "Before sessions start",
        "Test your internet connection, camera, and microphone before each session",
        "Preventing tech issues ensures smooth sessions and better student experience",
    ),
}


# ============================================================
# RESULT
# ============================================================


@dataclass(frozen=True)
class AiFeedbackResult:
    actionable_item_type: str
    moments: List[Dict[str, Any]] = field(default_factory=list)
    cached: bool = False
    fallback: bool = False
    error: Optional[str] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        if self.error is not None:
            return {"error": self.error, "message": self.message}
        data: Dict[str, Any] = {
            "actionable_item_type": self.actionable_item_type,
            "moments": list(self.moments),
            "cached": self.cached,
        }
        if self.fallback:
            data["fallback"] = True
        return data


def fallback_result(item_type: str) -> AiFeedbackResult:
    moment = FALLBACK_MOMENTS.get(item_type, FALLBACK_MOMENTS["encouragement"])
    return AiFeedbackResult(
        actionable_item_type=item_type,
        moments=[dict(moment)],
        fallback=True,
    )


# ============================================================
# PROMPT BUILDING
# ============================================================


@dataclass(frozen=True)
class SessionExcerpt:
    student_name: str
    session_date: str
    session_time: str
    transcript: Transcript

    @classmethod
    def from_model(cls, session: Any) -> "SessionExcerpt":
        scheduled = session.scheduled_start_at
        payload = session.transcript.payload if session.transcript is not None else None
        return cls(
            student_name=session.student.name if session.student is not None else "Unknown student",
            session_date=scheduled.strftime("%Y-%m-%d") if scheduled else "unknown date",
            session_time=scheduled.strftime("%I:%M %p") if scheduled else "unknown time",
            transcript=Transcript.from_payload(payload, session_id=session.id),
        )

    def render(self) -> str:
        lines = [
            f"[{turn.timestamp or ''}] {turn.speaker.capitalize()}: {turn.text}"
            for turn in self.transcript.turns
        ]
        header = f"Session with {self.student_name} on {self.session_date} at {self.session_time}:"
        return "\n".join([header, *lines, "---"])


def build_prompt(item_type: str, excerpts: Sequence[SessionExcerpt]) -> str:
    context = ITEM_CONTEXTS.get(item_type, DEFAULT_ITEM_CONTEXT)
    transcripts = "\n\n".join(excerpt.render() for excerpt in excerpts)

    return f"""You are analyzing tutoring session transcripts to provide specific, actionable feedback for a tutor.

Context:
- Actionable Item: {context["title"]}
- Issue: {context["description"]}

Last 5 Session Transcripts:
{transcripts}

Instructions:
1. Identify 2-3 specific moments across these sessions where the tutor should have addressed the issue ({context["title"]}).
2. For each moment, provide:
   - Student name
   - Session date/time
   - What the student did/said (or what was happening)
   - Specific phrase or action that would have been appropriate
   - Why this would help the student
3. Format your response as valid JSON with this structure:
{{
  "moments": [
    {{
      "student_name": "Student Name",
      "session_date": "YYYY-MM-DD",
      "session_time": "HH:MM AM/PM",
      "context": "What was happening at this moment",
      "suggestion": "Specific phrase or action",
      "reason": "Why this would help"
    }}
  ]
}}

Be specific and reference actual content from the transcripts. Focus on moments where the tutor could have improved based on the actionable item.
"""


_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def parse_moments(text: str) -> Optional[List[Dict[str, Any]]]:
    """Extract the moments list from model text, or None if unusable."""
    match = _JSON_OBJECT.search(text or "")
    if match is None:
        return None
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse feedback response: {e}")
        return None
    if not isinstance(parsed, dict):
        return None
    moments = parsed.get("moments") or []
    if not isinstance(moments, list):
        return None
    return [moment for moment in moments if isinstance(moment, dict)]


# ============================================================
# SERVICE
# ============================================================


def feedback_cache_key(tutor_id: int, item_type: str) -> str:
    return f"ai_feedback:tutor:{tutor_id}:{item_type}"


def rate_limit_key(tutor_id: int) -> str:
    return f"ai_feedback_rate_limit:tutor:{tutor_id}"


class AiFeedbackService:
    """Cached, rate-limited LLM feedback on recent transcripts."""

    def __init__(
        self,
        session_repository: SessionRepository,
        generator: FeedbackGenerator,
        cache: TTLCache,
        clock: Optional[ClockProtocol] = None,
        rate_limit_per_day: int = RATE_LIMIT_PER_DAY,
        cache_ttl_seconds: float = CACHE_TTL_SECONDS,
        min_sessions: int = MIN_SESSIONS,
    ):
        self._sessions = session_repository
        self._generator = generator
        self._cache = cache
        self._clock = clock or ClockFactory.get_clock()
        self.rate_limit_per_day = rate_limit_per_day
        self.cache_ttl_seconds = cache_ttl_seconds
        self.min_sessions = min_sessions

    def requests_today(self, tutor_id: int) -> int:
        return int(self._cache.get(rate_limit_key(tutor_id), 0))

    def generate(self, tutor_id: int, item_type: str) -> AiFeedbackResult:
        cached = self._cache.get(feedback_cache_key(tutor_id, item_type))
        if cached is not None:
            return replace(cached, cached=True)

        if self.requests_today(tutor_id) >= self.rate_limit_per_day:
            logger.info(f"Tutor {tutor_id} hit the daily feedback limit")
            return AiFeedbackResult(
                actionable_item_type=item_type,
                error=ERROR_RATE_LIMIT,
                message=(
                    f"You have reached the daily limit of {self.rate_limit_per_day} AI feedback "
                    "requests. Please try again tomorrow."
                ),
            )

        sessions = self._sessions.recent_transcribed_sessions(tutor_id, self.min_sessions)
        if len(sessions) < self.min_sessions:
            return AiFeedbackResult(
                actionable_item_type=item_type,
                error=ERROR_INSUFFICIENT_SESSIONS,
                message=(
                    f"We need at least {self.min_sessions} completed sessions with transcripts "
                    "to generate AI feedback."
                ),
            )

        prompt = build_prompt(item_type, [SessionExcerpt.from_model(s) for s in sessions])

        try:
            text = self._generator.generate(SYSTEM_PROMPT, prompt)
        except Exception as e:
            logger.exception(f"Feedback generation failed for tutor {tutor_id} ({item_type}): {e}")
            return fallback_result(item_type)

        self._cache.increment(rate_limit_key(tutor_id), ttl_seconds=SECONDS_PER_DAY)

        moments = parse_moments(text)
        if moments is None:
            return fallback_result(item_type)

        result = AiFeedbackResult(actionable_item_type=item_type, moments=moments)
        self._cache.set(feedback_cache_key(tutor_id, item_type), result, ttl_seconds=self.cache_ttl_seconds)
        logger.info(f"Generated {len(moments)} feedback moments for tutor {tutor_id} ({item_type})")
        return result


__all__ = [
    "FeedbackGenerator",
    "OpenAIChatGenerator",
    "AiFeedbackResult",
    "AiFeedbackService",
    "SessionExcerpt",
    "ITEM_CONTEXTS",
    "FALLBACK_MOMENTS",
    "build_prompt",
    "parse_moments",
    "fallback_result",
    "feedback_cache_key",
    "rate_limit_key",
]
