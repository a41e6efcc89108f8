"""
Model collaborator — the narrow contract through which the coach reaches an LLM.

Two implementations:
  GeminiModelClient: Google Gemini via the google-genai SDK
  MockModelClient:   deterministic canned reply for offline use and tests

The SDK client is created lazily and reused for connection pooling. It is
owned by the GeminiModelClient instance the application builds once and
injects into the orchestrator; there is no module-level singleton.
"""

import json
import logging
import threading
import time
from typing import Callable, Optional, Protocol, Tuple, Type, TypeVar

from google import genai
from google.genai import types as genai_types

from prose_coach.coach.errors import ModelNotConfiguredError, ModelUnavailableError
from prose_coach.models.llm import ModelReply, ModelRequest
from prose_coach.models.settings import CoachSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ModelClient(Protocol):
    """Protocol for model access — pluggable backend."""

    def generate(self, request: ModelRequest) -> ModelReply: ...


def call_with_retries(
    fn: Callable[[], T],
    *,
    attempts: int = 3,
    base_delay: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
    no_retry: Tuple[Type[BaseException], ...] = (),
) -> T:
    """
    Call fn up to `attempts` times. Delays double from base_delay and only
    fall between attempts. Exceptions listed in no_retry propagate at once.
    Exhaustion raises a single ModelUnavailableError chained to the last failure.
    """
    last_error: Optional[Exception] = None
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except no_retry:
            raise
        except Exception as e:
            last_error = e
            if attempt == attempts:
                break
            delay = base_delay * (2 ** (attempt - 1))
            logger.warning(
                "Model call attempt %d/%d failed (%s); retrying in %.1fs",
                attempt, attempts, type(e).__name__, delay,
            )
            sleep(delay)

    logger.error("Model call failed after %d attempts: %s", attempts, last_error)
    raise ModelUnavailableError(
        f"Failed to get a response from the model after {attempts} attempts: {last_error}",
        attempts=attempts,
    ) from last_error


class GeminiModelClient:
    """Gemini chat call: system instruction, prior turns, then the new message."""

    def __init__(self, api_key: str, model_name: str):
        self.api_key = api_key
        self.model_name = model_name
        self._client: Optional[genai.Client] = None
        self._lock = threading.Lock()

    def _get_client(self) -> genai.Client:
        if not self.api_key:
            raise ModelNotConfiguredError(
                "Gemini API key not configured. Set GEMINI_API_KEY or enable MOCK_LLM=1."
            )
        with self._lock:
            if self._client is None:
                self._client = genai.Client(api_key=self.api_key)
            return self._client

    def generate(self, request: ModelRequest) -> ModelReply:
        client = self._get_client()

        contents = [
            genai_types.Content(
                role=turn.role,
                parts=[genai_types.Part(text=text) for text in turn.parts],
            )
            for turn in request.history
        ]
        contents.append(genai_types.Content(
            role="user",
            parts=[genai_types.Part(text=request.message)],
        ))

        response = client.models.generate_content(
            model=self.model_name,
            contents=contents,
            config=genai_types.GenerateContentConfig(
                system_instruction=request.system_instruction,
                max_output_tokens=request.max_output_tokens,
                temperature=request.temperature,
            ),
        )
        return ModelReply(text=response.text or "", model=self.model_name)


MOCK_REPLY_TEXT = """Thank you for sharing that. I want to help you understand the NY Family Court Order of Protection process.

**What I Understand So Far:**
Based on what you've told me, it sounds like you may be dealing with a family offense situation in New York. An Order of Protection (OP) under Article 8 of the Family Court Act can provide protections such as stay-away orders, no-contact orders, and exclusive occupancy of a shared residence.

**Key Questions to Help Me Understand Your Situation:**
1. What is your relationship with the person you need protection from?
2. When did the most recent incident occur? Please include the date, approximate time, and location.
3. Were there any physical injuries, threats of violence, or use of weapons?
4. Are there children who witnessed or were affected by any incidents?
5. Do you have any evidence such as text messages, photos of injuries, police reports, or medical records?
6. Are you currently safe?

**What You Should Know:**
- A Temporary Order of Protection (TOP) can often be issued the same day you file your petition.
- You do NOT need a lawyer to file, though legal aid organizations can help.

This is educational information only, not legal advice.
Jurisdiction: NY Family Court. Procedures may vary by county."""


class MockModelClient:
    """Returns the same well-formed reply every time, echoing the message start."""

    model_name = "mock"

    def generate(self, request: ModelRequest) -> ModelReply:
        echo = request.user_message or request.message
        metadata = {
            "next_questions": [
                "What is your relationship with the person you need protection from?",
                "When and where did the most recent incident occur?",
                "Were there injuries, threats, or weapons involved?",
                "Are children involved or did they witness any incidents?",
                "What evidence do you have (texts, photos, police reports, medical records)?",
                "Are you currently safe?",
            ],
            "extracted_facts": {"additionalNotes": echo[:100]},
            "missing_fields": [
                "relationship",
                "mostRecentIncidentDate",
                "respondentName",
                "livingSituation",
                "safety.safeNow",
                "children.childrenInvolved",
                "evidence",
            ],
            "progress_percent": 10,
            "safety_flags": [
                {
                    "severity": "info",
                    "message": "This is educational information only, not legal advice.",
                    "category": "legal_limit",
                },
                {
                    "severity": "info",
                    "message": "NY Family Court procedures may vary by county.",
                    "category": "jurisdiction",
                },
            ],
            "timeline_events": [],
            "suggested_artifacts": [],
        }
        # Backticks only occur inside JSON strings, where \u0060 is equivalent
        block = json.dumps(metadata, indent=2).replace("`", "\\u0060")
        text = f"{MOCK_REPLY_TEXT}\n\n```json\n{block}\n```"
        return ModelReply(text=text, model=self.model_name, mock=True)


def build_model_client(settings: CoachSettings) -> ModelClient:
    """Pick the mock when MOCK_LLM is on, otherwise Gemini."""
    if settings.mock_llm:
        logger.info("Using mock model client")
        return MockModelClient()
    return GeminiModelClient(api_key=settings.gemini_api_key, model_name=settings.gemini_model)


def check_model_health(settings: CoachSettings) -> dict:
    if settings.mock_llm:
        return {"gemini": "mock", "model": "mock", "mock": True}
    if not settings.gemini_api_key:
        return {"gemini": "missing_key", "model": settings.gemini_model, "mock": False}
    return {"gemini": "ok", "model": settings.gemini_model, "mock": False}
