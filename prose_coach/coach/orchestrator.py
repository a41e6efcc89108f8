"""
Coaching Orchestrator — one user message in, one CoachTurnResult out.

States:
  VALIDATE → DANGER_CHECK → (SAFETY_INTERRUPT | PROMPT → MODEL → PARSE → NORMALIZE)

Holds no cross-request memory: the caller supplies facts, timeline and
history with every turn and applies the returned mutations itself.
Turns against the same session must be serialized by the caller, since each
turn's fact update is computed against the snapshot it was given.
"""

import logging
import time
from enum import Enum
from typing import Callable, List, Optional, Type, TypeVar

from prose_coach.coach.errors import CoachInputError, ModelNotConfiguredError
from prose_coach.llm.client import ModelClient, call_with_retries
from prose_coach.models.coach import (
    ArtifactDraft,
    CoachMode,
    CoachRequest,
    CoachTurnResult,
    ParsedResponse,
    SafetyFlagDraft,
    TimelineEventDraft,
)
from prose_coach.models.llm import HistoryTurn, ModelRequest
from prose_coach.models.session import (
    ArtifactType,
    ConversationMessage,
    ConversationRole,
    SafetyFlagCategory,
    SafetyFlagSeverity,
)
from prose_coach.models.settings import CoachSettings
from prose_coach.parsing.response import parse_response
from prose_coach.prompts.builder import (
    PromptContext,
    build_extraction_suffix,
    build_system_prompt,
)
from prose_coach.safety.classifier import (
    SAFETY_INTERRUPT_FLAG_MESSAGE,
    is_immediate_danger,
    matched_danger_patterns,
    safety_interrupt_message,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

# Progress reported by a safety interrupt once a conversation is under way
INTERRUPT_PROGRESS_WITH_HISTORY = 5


def decode_enum(enum_cls: Type[E], value: str, default: E) -> E:
    """
    Decode an untrusted tag from model output into a domain enum.
    Unrecognised tags fall back to the default variant.
    """
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        logger.warning(
            "Unrecognised %s %r from model; using %r",
            enum_cls.__name__, value, default.value,
        )
        return default


def to_model_history(messages: List[ConversationMessage]) -> List[HistoryTurn]:
    """Drop system notes and map roles to the model's user/model vocabulary."""
    return [
        HistoryTurn(
            role="user" if m.role == ConversationRole.USER else "model",
            parts=[m.content],
        )
        for m in messages
        if m.role != ConversationRole.SYSTEM
    ]


def normalize_turn(parsed: ParsedResponse) -> CoachTurnResult:
    """Turn parsed model output into typed domain data, once, centrally."""
    meta = parsed.metadata
    return CoachTurnResult(
        assistant_message=parsed.message,
        next_questions=meta.next_questions,
        extracted_facts=meta.extracted_facts,
        missing_fields=meta.missing_fields,
        progress_percent=meta.progress_percent,
        safety_flags=[
            SafetyFlagDraft(
                severity=decode_enum(SafetyFlagSeverity, f.severity, SafetyFlagSeverity.INFO),
                message=f.message,
                category=decode_enum(SafetyFlagCategory, f.category, SafetyFlagCategory.GENERAL),
            )
            for f in meta.safety_flags
        ],
        timeline_events=[
            TimelineEventDraft(
                date=e.date,
                title=e.title,
                description=e.description,
                is_deadline=e.is_deadline,
            )
            for e in meta.timeline_events
        ],
        suggested_artifacts=[
            ArtifactDraft(
                type=decode_enum(ArtifactType, a.type, ArtifactType.GENERAL),
                title=a.title,
                content=a.content,
            )
            for a in meta.suggested_artifacts
        ],
    )


def safety_interrupt(request: CoachRequest) -> CoachTurnResult:
    """The fixed reply used instead of a model call when danger is detected."""
    return CoachTurnResult(
        assistant_message=safety_interrupt_message(),
        progress_percent=(
            INTERRUPT_PROGRESS_WITH_HISTORY if request.conversation_history else 0
        ),
        safety_flags=[
            SafetyFlagDraft(
                severity=SafetyFlagSeverity.CRITICAL,
                message=SAFETY_INTERRUPT_FLAG_MESSAGE,
                category=SafetyFlagCategory.SAFETY,
            )
        ],
    )


class CoachOrchestrator:
    """Runs coaching turns against an injected model client."""

    def __init__(
        self,
        model_client: ModelClient,
        settings: Optional[CoachSettings] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.model_client = model_client
        self.settings = settings or CoachSettings()
        self._sleep = sleep

    def handle_turn(self, request: CoachRequest) -> CoachTurnResult:
        """
        Run one turn.

        Raises CoachInputError before any model call when the session id or
        message is missing, and UpstreamError subclasses when the model is
        not configured or every attempt failed. Malformed model output never
        raises; it degrades to a plain message.
        """
        mode = request.mode or CoachMode.INTERVIEW

        if not request.session_id.strip() or not request.user_message.strip():
            raise CoachInputError("Missing sessionId or userMessage")

        if is_immediate_danger(request.user_message):
            logger.warning(
                "Safety interrupt for session %s (patterns: %s)",
                request.session_id,
                ", ".join(matched_danger_patterns(request.user_message)),
            )
            return safety_interrupt(request)

        model_request = ModelRequest(
            system_instruction=build_system_prompt(PromptContext.from_request(request), mode),
            history=to_model_history(request.conversation_history),
            message=request.user_message + build_extraction_suffix(),
            user_message=request.user_message,
            max_output_tokens=self.settings.max_output_tokens,
            temperature=self.settings.temperature,
        )

        reply = call_with_retries(
            lambda: self.model_client.generate(model_request),
            attempts=self.settings.max_attempts,
            base_delay=self.settings.backoff_seconds,
            sleep=self._sleep,
            no_retry=(ModelNotConfiguredError,),
        )

        result = normalize_turn(parse_response(reply.text))
        logger.info(
            "Coach turn for session %s (mode=%s, model=%s): %d questions, %d fact keys, "
            "%d flags, progress %d%%",
            request.session_id, mode, reply.model, len(result.next_questions),
            len(result.extracted_facts), len(result.safety_flags), result.progress_percent,
        )
        return result
