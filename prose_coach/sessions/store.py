"""
Session Store — keeps case sessions and applies coaching turn results to them.

Updated by: CoachTurnResult mutations + direct edits from the intake UI
Queried by: the coach endpoint, which snapshots facts/timeline/history per turn
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional
from uuid import uuid4

from prose_coach.facts.merge import insert_timeline_event, merge_facts, sort_timeline
from prose_coach.models.coach import (
    ArtifactDraft,
    CoachTurnResult,
    SafetyFlagDraft,
    TimelineEventDraft,
)
from prose_coach.models.facts import Jurisdiction, OPFacts
from prose_coach.models.session import (
    CaseSession,
    ConversationMessage,
    ConversationRole,
    GeneratedArtifact,
    SafetyFlag,
    TimelineEvent,
)

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:12]}"


class SessionNotFoundError(KeyError):
    pass


class SessionStore:
    """
    In-memory session store keyed by session id.
    A deployment that needs durability swaps this for a database-backed
    store with the same methods.
    """

    def __init__(self):
        self._sessions: Dict[str, CaseSession] = {}
        self._lock = threading.RLock()

    # --- Lifecycle ---

    def create_session(
        self,
        jurisdiction: Optional[Jurisdiction] = None,
        title: Optional[str] = None,
        op_facts: Optional[OPFacts] = None,
        timeline: Optional[Iterable[TimelineEvent]] = None,
    ) -> CaseSession:
        """Create a session with default facts unless some are supplied."""
        now = _now()
        session = CaseSession(
            id=_new_id("case"),
            created_at=now,
            updated_at=now,
            jurisdiction=jurisdiction or Jurisdiction(),
            title=title or "Order of Protection Case",
            op_facts=op_facts or OPFacts(),
            timeline=sort_timeline(timeline or []),
        )
        with self._lock:
            self._sessions[session.id] = session
        return session

    def get_session(self, session_id: str) -> Optional[CaseSession]:
        return self._sessions.get(session_id)

    def load(self, session_id: str) -> CaseSession:
        """Get a session, raising SessionNotFoundError if it does not exist."""
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def list_sessions(self) -> List[CaseSession]:
        return list(self._sessions.values())

    def update_session(self, session_id: str, **changes: Any) -> CaseSession:
        """Replace top-level session fields (title, intake_step, ...)."""
        with self._lock:
            session = self.load(session_id)
            for name, value in changes.items():
                setattr(session, name, value)
            session.updated_at = _now()
            return session

    def delete_session(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    # --- Appends and merges ---

    def add_message(self, session_id: str, role: ConversationRole, content: str) -> ConversationMessage:
        with self._lock:
            session = self.load(session_id)
            message = ConversationMessage(
                id=_new_id("msg"), role=role, content=content, timestamp=_now(),
            )
            session.conversation = [*session.conversation, message]
            session.updated_at = message.timestamp
            return message

    def add_timeline_event(self, session_id: str, draft: TimelineEventDraft) -> TimelineEvent:
        """Insert an event, keeping the timeline sorted by date."""
        with self._lock:
            session = self.load(session_id)
            event = TimelineEvent(id=_new_id("evt"), **draft.model_dump())
            session.timeline = insert_timeline_event(session.timeline, event)
            session.updated_at = _now()
            return event

    def remove_timeline_event(self, session_id: str, event_id: str) -> bool:
        with self._lock:
            session = self.load(session_id)
            remaining = [e for e in session.timeline if e.id != event_id]
            if len(remaining) == len(session.timeline):
                return False
            session.timeline = remaining
            session.updated_at = _now()
            return True

    def update_op_facts(self, session_id: str, update: Mapping[str, Any]) -> OPFacts:
        """Deep-merge a partial fact update into the session's facts."""
        with self._lock:
            session = self.load(session_id)
            session.op_facts = merge_facts(session.op_facts, update)
            session.updated_at = _now()
            return session.op_facts

    def add_artifact(self, session_id: str, draft: ArtifactDraft) -> GeneratedArtifact:
        with self._lock:
            session = self.load(session_id)
            now = _now()
            artifact = GeneratedArtifact(
                id=_new_id("art"),
                type=draft.type,
                title=draft.title,
                content=draft.content,
                version=1,
                created_at=now,
                updated_at=now,
            )
            session.generated_artifacts = [*session.generated_artifacts, artifact]
            session.updated_at = now
            return artifact

    def add_safety_flags(self, session_id: str, drafts: Iterable[SafetyFlagDraft]) -> List[SafetyFlag]:
        with self._lock:
            session = self.load(session_id)
            now = _now()
            flags = [
                SafetyFlag(
                    id=_new_id("flag"),
                    severity=d.severity,
                    message=d.message,
                    category=d.category,
                    created_at=now,
                )
                for d in drafts
            ]
            session.safety_flags = [*session.safety_flags, *flags]
            session.updated_at = now
            return flags

    def apply_turn(self, session_id: str, result: CoachTurnResult) -> CaseSession:
        """
        Apply every mutation a coaching turn produced: the assistant reply,
        fact merge, timeline inserts, safety flags, artifacts and progress.
        A progress of 0 means "not reported" and leaves the current value.
        """
        with self._lock:
            session = self.load(session_id)
            self.add_message(session_id, ConversationRole.ASSISTANT, result.assistant_message)
            if result.extracted_facts:
                self.update_op_facts(session_id, result.extracted_facts)
            for event in result.timeline_events:
                self.add_timeline_event(session_id, event)
            if result.safety_flags:
                self.add_safety_flags(session_id, result.safety_flags)
            for artifact in result.suggested_artifacts:
                self.add_artifact(session_id, artifact)
            if result.progress_percent > 0:
                session.progress_percent = result.progress_percent
            logger.info(
                "Applied turn to session %s: %d events, %d flags, %d artifacts",
                session_id, len(result.timeline_events), len(result.safety_flags),
                len(result.suggested_artifacts),
            )
            return session
