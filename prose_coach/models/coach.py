"""Coach turn — request, parsed model metadata, and the turn result."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel

from prose_coach.models.facts import Jurisdiction, OPFacts, WireModel
from prose_coach.models.session import (
    ArtifactType,
    ConversationMessage,
    SafetyFlagCategory,
    SafetyFlagSeverity,
    TimelineEvent,
)


class CoachMode:
    INTERVIEW = "interview"
    ROADMAP_UPDATE = "roadmap_update"


class CoachRequest(WireModel):
    """
    One coaching turn as sent by the browser.

    session_id and user_message default to empty so that a missing value
    reaches the orchestrator's own validation instead of a schema error.
    """

    session_id: str = ""
    user_message: str = ""
    op_facts: OPFacts = OPFacts()
    jurisdiction: Jurisdiction = Jurisdiction()
    timeline: List[TimelineEvent] = []
    conversation_history: List[ConversationMessage] = []
    tone: Literal["formal", "plain"] = "plain"
    mode: Optional[str] = None              # "interview" | "roadmap_update" | free-form


# --- What the model emitted, before domain decoding ---

class RawSafetyFlag(BaseModel):
    severity: str = "info"
    message: str = ""
    category: str = "general"


class RawTimelineEvent(WireModel):
    date: str = ""
    title: str = ""
    description: str = ""
    is_deadline: bool = False


class RawArtifact(BaseModel):
    type: str = "general"
    title: str = ""
    content: str = ""


class CoachMetadata(BaseModel):
    """The fenced JSON block of a model reply. Every key has a default."""

    next_questions: List[str] = []
    extracted_facts: Dict[str, Any] = {}
    missing_fields: List[str] = []
    progress_percent: int = 0
    safety_flags: List[RawSafetyFlag] = []
    timeline_events: List[RawTimelineEvent] = []
    suggested_artifacts: List[RawArtifact] = []


class ParsedResponse(BaseModel):
    message: str
    metadata: CoachMetadata = CoachMetadata()


# --- What the orchestrator hands back to the caller ---

class SafetyFlagDraft(BaseModel):
    """A SafetyFlag before the store assigns id and created_at."""

    severity: SafetyFlagSeverity
    message: str
    category: SafetyFlagCategory


class TimelineEventDraft(WireModel):
    date: str
    title: str
    description: str = ""
    is_deadline: bool = False


class ArtifactDraft(BaseModel):
    type: ArtifactType
    title: str
    content: str


class CoachTurnResult(BaseModel):
    """
    The outcome of one turn. Carries the assistant's reply plus the state
    mutations (facts, timeline, flags, artifacts) the caller must apply.
    Field names are the response keys of the coach endpoint.
    """

    assistant_message: str
    next_questions: List[str] = []
    extracted_facts: Dict[str, Any] = {}
    missing_fields: List[str] = []
    progress_percent: int = 0
    safety_flags: List[SafetyFlagDraft] = []
    timeline_events: List[TimelineEventDraft] = []
    suggested_artifacts: List[ArtifactDraft] = []

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
