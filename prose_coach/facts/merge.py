"""
Fact Merge Engine — applies a partial fact update to a session's OPFacts.

Behavioral Contract:
- Returns a new OPFacts; the current value is never mutated
- Keys absent from the update are left untouched, nested or not
- A mapping sent for a nested group (safety, children, existingCases,
  evidence) is merged one level deep; sibling keys survive
- Everything else (scalars, lists, enums) replaces the current value wholesale
- Dotted keys ("safety.firearmsPresent") are expanded into nested updates
- Keys may be wire aliases or attribute names; unknown keys are ignored
- A value that does not validate for its field is dropped and that field
  keeps its current value

Only one level of nesting is merged. Anything deeper is replaced wholesale.
"""

import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Type

from pydantic import BaseModel, ValidationError

from prose_coach.models.facts import OPFacts
from prose_coach.models.session import TimelineEvent

logger = logging.getLogger(__name__)

# Upper bound on validate/revert rounds; each round reverts at least one field.
_MAX_REPAIR_ROUNDS = 64


def _field_lookup(model: Type[BaseModel]) -> Dict[str, str]:
    """Map both attribute names and wire aliases to attribute names."""
    lookup = {}
    for name, info in model.model_fields.items():
        lookup[name] = name
        if info.alias:
            lookup[info.alias] = name
    return lookup


_TOP_LEVEL = _field_lookup(OPFacts)

# Nested groups: fields whose type is itself a model
_GROUPS: Dict[str, Dict[str, str]] = {
    name: _field_lookup(info.annotation)
    for name, info in OPFacts.model_fields.items()
    if isinstance(info.annotation, type) and issubclass(info.annotation, BaseModel)
}


def _normalize_update(update: Mapping[str, Any]) -> Dict[str, Any]:
    """Resolve key names and expand dotted keys into nested mappings."""
    normalized: Dict[str, Any] = {}
    for key, value in update.items():
        head, dot, tail = str(key).partition(".")
        name = _TOP_LEVEL.get(head)
        if name is None:
            logger.info("Ignoring unknown fact key %r", key)
            continue

        if not dot:
            if name in _GROUPS and isinstance(value, Mapping):
                existing = normalized.get(name)
                if isinstance(existing, dict):
                    existing.update(value)
                    continue
                value = dict(value)
            normalized[name] = value
            continue

        if name not in _GROUPS:
            logger.info("Ignoring dotted key %r on a non-group fact", key)
            continue
        group = normalized.get(name)
        if not isinstance(group, dict):
            group = {}
            normalized[name] = group
        group[tail] = value
    return normalized


def _merge_group(current: Dict[str, Any], name: str, sub_update: Mapping[str, Any]) -> Dict[str, Any]:
    lookup = _GROUPS[name]
    merged = dict(current)
    for key, value in sub_update.items():
        sub_name = lookup.get(key)
        if sub_name is None:
            logger.info("Ignoring unknown fact key %r in %s", key, name)
            continue
        merged[sub_name] = value
    return merged


def _resolve_loc(loc: Tuple[Any, ...]) -> Tuple[Optional[str], Optional[str]]:
    if not loc:
        return None, None
    top = _TOP_LEVEL.get(str(loc[0]))
    if top in _GROUPS and len(loc) > 1:
        return top, _GROUPS[top].get(str(loc[1]))
    return top, None


def _validate_dropping_invalid(
    merged: Dict[str, Any],
    baseline: Dict[str, Any],
) -> Optional[OPFacts]:
    for _ in range(_MAX_REPAIR_ROUNDS):
        try:
            return OPFacts.model_validate(merged)
        except ValidationError as e:
            for error in e.errors():
                top, sub = _resolve_loc(error["loc"])
                if top is None:
                    continue
                logger.warning("Dropping invalid value for fact %s%s", top, f".{sub}" if sub else "")
                if sub is not None:
                    merged[top] = dict(merged[top])
                    merged[top][sub] = baseline[top][sub]
                else:
                    merged[top] = baseline[top]
    return None


def merge_facts(current: OPFacts, update: Optional[Mapping[str, Any]]) -> OPFacts:
    """Merge a partial fact update into the current facts, returning a new value."""
    if not update:
        return current.model_copy(deep=True)

    baseline = current.model_dump()
    merged = dict(baseline)

    for name, value in _normalize_update(update).items():
        if name in _GROUPS and isinstance(value, Mapping):
            merged[name] = _merge_group(baseline[name], name, value)
        else:
            merged[name] = value

    result = _validate_dropping_invalid(merged, baseline)
    if result is None:
        logger.warning("Fact update could not be applied; keeping current facts")
        return current.model_copy(deep=True)
    return result


def _sort_key(event: TimelineEvent) -> date:
    try:
        return date.fromisoformat(event.date[:10])
    except ValueError:
        return date.max                     # undated or malformed events sort last


def sort_timeline(timeline: Iterable[TimelineEvent]) -> List[TimelineEvent]:
    """Ascending by date; stable for events on the same day."""
    return sorted(timeline, key=_sort_key)


def insert_timeline_event(timeline: Iterable[TimelineEvent], event: TimelineEvent) -> List[TimelineEvent]:
    """Return a new timeline with the event inserted in date order."""
    return sort_timeline([*timeline, event])
