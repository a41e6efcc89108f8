"""Case Session — everything the caller's store keeps for one case."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import ConfigDict

from prose_coach.models.facts import Jurisdiction, OPFacts, WireModel


class SafetyFlagSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class SafetyFlagCategory(str, Enum):
    DEADLINE = "deadline"
    JURISDICTION = "jurisdiction"
    SENSITIVE = "sensitive"
    LEGAL_LIMIT = "legal_limit"
    SAFETY = "safety"
    GENERAL = "general"


class ArtifactType(str, Enum):
    TWO_MINUTE_SCRIPT = "two_minute_script"
    FIVE_MINUTE_OUTLINE = "five_minute_outline"
    EVIDENCE_CHECKLIST = "evidence_checklist"
    TIMELINE = "timeline"
    WHAT_TO_BRING = "what_to_bring"
    WHAT_TO_EXPECT = "what_to_expect"
    GENERAL = "general"


ARTIFACT_LABELS = {
    ArtifactType.TWO_MINUTE_SCRIPT: "2-Minute Script",
    ArtifactType.FIVE_MINUTE_OUTLINE: "5-Minute Outline",
    ArtifactType.EVIDENCE_CHECKLIST: "Evidence Checklist",
    ArtifactType.TIMELINE: "Incident Timeline",
    ArtifactType.WHAT_TO_BRING: "What to Bring",
    ArtifactType.WHAT_TO_EXPECT: "What to Expect",
    ArtifactType.GENERAL: "General",
}


class ConversationRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class TimelineEvent(WireModel):
    id: str = ""
    date: str                               # ISO calendar date, e.g. "2024-01-15"
    title: str
    description: str = ""
    is_deadline: bool = False


class SafetyFlag(WireModel):
    """A structured warning. Appended to a session, never edited."""

    model_config = ConfigDict(frozen=True)

    id: str
    severity: SafetyFlagSeverity
    message: str
    category: SafetyFlagCategory
    created_at: datetime


class ConversationMessage(WireModel):
    id: str = ""
    role: ConversationRole
    content: str
    timestamp: Optional[datetime] = None


class GeneratedArtifact(WireModel):
    id: str
    type: ArtifactType
    title: str
    content: str
    version: int = 1
    created_at: datetime
    updated_at: datetime


class CaseSession(WireModel):
    """One Order of Protection case. Owns its OPFacts exclusively."""

    id: str
    created_at: datetime
    updated_at: datetime
    jurisdiction: Jurisdiction = Jurisdiction()
    title: str = "Order of Protection Case"
    op_facts: OPFacts = OPFacts()
    timeline: List[TimelineEvent] = []
    conversation: List[ConversationMessage] = []
    generated_artifacts: List[GeneratedArtifact] = []
    safety_flags: List[SafetyFlag] = []
    intake_completed: bool = False
    intake_step: int = 0
    progress_percent: int = 0
