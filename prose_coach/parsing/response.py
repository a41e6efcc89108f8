"""
Response Parser — turns a model's free-text reply into a message plus metadata.

Behavioral Contract:
- Never raises. Whenever structured extraction is impossible the raw text
  passes through as the message with all-default metadata.
- Only the first ```json fenced block is considered.
- A block whose interior is not a JSON object is treated as if absent, and
  its text stays in the message because it could not be confidently stripped.
- Each recognised key is coerced on its own; a key of the wrong shape falls
  back to that key's default without affecting its siblings.
"""

import json
import logging
import math
import re
from typing import Any, Callable, Dict, List, Type

from pydantic import BaseModel, ValidationError

from prose_coach.models.coach import (
    CoachMetadata,
    ParsedResponse,
    RawArtifact,
    RawSafetyFlag,
    RawTimelineEvent,
)

logger = logging.getLogger(__name__)

JSON_BLOCK_PATTERN = re.compile(r"```json\s*(.*?)\s*```", re.DOTALL)


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        raise TypeError("expected a list")
    return [item for item in value if isinstance(item, str)]


def _mapping(value: Any) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise TypeError("expected an object")
    return value


def _percent(value: Any) -> int:
    if isinstance(value, bool):
        raise TypeError("expected a number")
    number = float(value)          # accepts numeric strings
    if math.isnan(number) or math.isinf(number):
        raise ValueError("expected a finite number")
    return max(0, min(100, int(round(number))))


def _records(model: Type[BaseModel]) -> Callable[[Any], list]:
    def coerce(value: Any) -> list:
        if not isinstance(value, list):
            raise TypeError("expected a list")
        records = []
        for item in value:
            if not isinstance(item, dict):
                continue
            try:
                records.append(model.model_validate(item))
            except ValidationError:
                logger.debug("Dropping malformed %s entry", model.__name__)
        return records
    return coerce


_COERCERS: Dict[str, Callable[[Any], Any]] = {
    "next_questions": _string_list,
    "extracted_facts": _mapping,
    "missing_fields": _string_list,
    "progress_percent": _percent,
    "safety_flags": _records(RawSafetyFlag),
    "timeline_events": _records(RawTimelineEvent),
    "suggested_artifacts": _records(RawArtifact),
}


def coerce_metadata(decoded: Dict[str, Any]) -> CoachMetadata:
    """Overlay decoded keys on the defaults, one key at a time."""
    fields: Dict[str, Any] = {}
    for key, coerce in _COERCERS.items():
        if key not in decoded:
            continue
        try:
            fields[key] = coerce(decoded[key])
        except (TypeError, ValueError, OverflowError):
            logger.warning("Model metadata key %r has the wrong shape; using default", key)
    return CoachMetadata(**fields)


def parse_response(raw: str) -> ParsedResponse:
    """Split a model reply into the user-facing message and its JSON metadata."""
    raw = raw or ""
    match = JSON_BLOCK_PATTERN.search(raw)
    if not match:
        return ParsedResponse(message=raw.strip())

    try:
        decoded = json.loads(match.group(1))
    except (ValueError, RecursionError):
        logger.warning("Model reply carried an unparsable JSON block; passing text through")
        return ParsedResponse(message=raw.strip())

    if not isinstance(decoded, dict):
        logger.warning("Model reply JSON block is not an object; passing text through")
        return ParsedResponse(message=raw.strip())

    message = JSON_BLOCK_PATTERN.sub("", raw, count=1).strip()
    return ParsedResponse(message=message, metadata=coerce_metadata(decoded))
