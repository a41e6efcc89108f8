"""
Pro Se Coach API — FastAPI endpoints.

Exposes the coaching orchestrator via a REST API for:
- Stateless coaching turns (the caller sends the full session snapshot)
- Model health
- In-memory case sessions, with turns applied server-side
"""

import logging
from typing import Any, Callable, Dict, Literal, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from prose_coach.coach.errors import (
    CoachInputError,
    ModelNotConfiguredError,
    ModelUnavailableError,
)
from prose_coach.coach.orchestrator import CoachOrchestrator
from prose_coach.llm.client import ModelClient, build_model_client, check_model_health
from prose_coach.models.coach import CoachRequest, CoachTurnResult
from prose_coach.models.facts import Jurisdiction, OPFacts, WireModel
from prose_coach.models.session import CaseSession, ConversationRole
from prose_coach.models.settings import CoachSettings
from prose_coach.sessions.store import SessionStore

logger = logging.getLogger(__name__)


# --- Request/Response Models ---

class SessionCreateRequest(WireModel):
    title: Optional[str] = None
    jurisdiction: Jurisdiction = Jurisdiction()
    op_facts: Optional[OPFacts] = None


class TurnRequest(WireModel):
    user_message: str = ""
    tone: Literal["formal", "plain"] = "plain"
    mode: Optional[str] = None


class FactUpdateRequest(BaseModel):
    facts: Dict[str, Any]


def _session_json(session: CaseSession) -> dict:
    return session.model_dump(mode="json", by_alias=True)


def _run_turn(orchestrator: CoachOrchestrator, request: CoachRequest) -> CoachTurnResult:
    """Run a turn, mapping coach failures onto HTTP status codes."""
    try:
        return orchestrator.handle_turn(request)
    except CoachInputError as e:
        raise HTTPException(400, str(e))
    except ModelNotConfiguredError as e:
        raise HTTPException(503, str(e))
    except ModelUnavailableError as e:
        raise HTTPException(502, str(e))
    except Exception as e:
        logger.exception("Coach turn failed for session %s", request.session_id)
        raise HTTPException(500, str(e) or "Internal server error")


# --- Application Factory ---

def create_app(
    settings: Optional[CoachSettings] = None,
    model_client: Optional[ModelClient] = None,
    session_store: Optional[SessionStore] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Pro Se Coach API",
        description="NY Family Court Order of Protection — educational coach",
        version="0.1.0",
    )

    # Initialize components
    cfg = settings or CoachSettings.from_env()
    client = model_client or build_model_client(cfg)
    store = session_store or SessionStore()
    orchestrator_kwargs = {"sleep": sleep} if sleep else {}
    orchestrator = CoachOrchestrator(client, cfg, **orchestrator_kwargs)

    # Store components on app state for access in endpoints
    app.state.settings = cfg
    app.state.model_client = client
    app.state.session_store = store
    app.state.orchestrator = orchestrator

    # === COACH ===

    @app.post("/api/coach")
    def coach(req: CoachRequest):
        """Run one stateless coaching turn against the supplied snapshot."""
        return _run_turn(orchestrator, req).to_wire()

    @app.get("/api/health")
    def health():
        """Model configuration status."""
        return check_model_health(cfg)

    # === SESSIONS ===

    @app.post("/api/sessions")
    def create_session(req: SessionCreateRequest):
        session = store.create_session(
            jurisdiction=req.jurisdiction,
            title=req.title,
            op_facts=req.op_facts,
        )
        return _session_json(session)

    @app.get("/api/sessions")
    def list_sessions():
        return [_session_json(s) for s in store.list_sessions()]

    @app.get("/api/sessions/{session_id}")
    def get_session(session_id: str):
        session = store.get_session(session_id)
        if not session:
            raise HTTPException(404, "Session not found")
        return _session_json(session)

    @app.delete("/api/sessions/{session_id}")
    def delete_session(session_id: str):
        if not store.delete_session(session_id):
            raise HTTPException(404, "Session not found")
        return {"status": "deleted", "session_id": session_id}

    @app.post("/api/sessions/{session_id}/facts")
    def update_facts(session_id: str, req: FactUpdateRequest):
        """Merge a partial fact update from the intake form."""
        if not store.get_session(session_id):
            raise HTTPException(404, "Session not found")
        facts = store.update_op_facts(session_id, req.facts)
        return facts.model_dump(mode="json", by_alias=True)

    @app.delete("/api/sessions/{session_id}/timeline/{event_id}")
    def remove_timeline_event(session_id: str, event_id: str):
        if not store.get_session(session_id):
            raise HTTPException(404, "Session not found")
        if not store.remove_timeline_event(session_id, event_id):
            raise HTTPException(404, "Timeline event not found")
        return {"status": "removed", "event_id": event_id}

    @app.post("/api/sessions/{session_id}/turns")
    def session_turn(session_id: str, req: TurnRequest):
        """
        Run a turn against the stored session and apply its result.
        On failure a visible error note is appended and the user's own
        message is kept, so no input is lost.
        """
        session = store.get_session(session_id)
        if not session:
            raise HTTPException(404, "Session not found")

        coach_request = CoachRequest(
            session_id=session.id,
            user_message=req.user_message,
            op_facts=session.op_facts,
            jurisdiction=session.jurisdiction,
            timeline=session.timeline,
            conversation_history=session.conversation,
            tone=req.tone,
            mode=req.mode,
        )

        if req.user_message.strip():
            store.add_message(session_id, ConversationRole.USER, req.user_message)

        try:
            result = _run_turn(orchestrator, coach_request)
        except HTTPException as e:
            store.add_message(session_id, ConversationRole.SYSTEM, f"Error: {e.detail}")
            raise

        session = store.apply_turn(session_id, result)
        return {"turn": result.to_wire(), "session": _session_json(session)}

    return app


# Default application instance
app = create_app()
