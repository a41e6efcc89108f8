"""Pro Se Coach data models."""

from prose_coach.models.coach import (
    ArtifactDraft,
    CoachMetadata,
    CoachMode,
    CoachRequest,
    CoachTurnResult,
    ParsedResponse,
    RawArtifact,
    RawSafetyFlag,
    RawTimelineEvent,
    SafetyFlagDraft,
    TimelineEventDraft,
)
from prose_coach.models.facts import (
    ChildrenInfo,
    EvidenceInventory,
    ExistingCases,
    Incident,
    Jurisdiction,
    LivingSituation,
    OPFacts,
    RelationshipCategory,
    ReliefType,
    SafetyConcerns,
    default_op_facts,
)
from prose_coach.models.llm import HistoryTurn, ModelReply, ModelRequest
from prose_coach.models.session import (
    ArtifactType,
    CaseSession,
    ConversationMessage,
    ConversationRole,
    GeneratedArtifact,
    SafetyFlag,
    SafetyFlagCategory,
    SafetyFlagSeverity,
    TimelineEvent,
)
from prose_coach.models.settings import CoachSettings

__all__ = [
    "ArtifactDraft",
    "ArtifactType",
    "CaseSession",
    "ChildrenInfo",
    "CoachMetadata",
    "CoachMode",
    "CoachRequest",
    "CoachSettings",
    "CoachTurnResult",
    "ConversationMessage",
    "ConversationRole",
    "EvidenceInventory",
    "ExistingCases",
    "GeneratedArtifact",
    "HistoryTurn",
    "Incident",
    "Jurisdiction",
    "LivingSituation",
    "ModelReply",
    "ModelRequest",
    "OPFacts",
    "ParsedResponse",
    "RawArtifact",
    "RawSafetyFlag",
    "RawTimelineEvent",
    "RelationshipCategory",
    "ReliefType",
    "SafetyConcerns",
    "SafetyFlag",
    "SafetyFlagCategory",
    "SafetyFlagDraft",
    "SafetyFlagSeverity",
    "TimelineEvent",
    "TimelineEventDraft",
    "default_op_facts",
]
