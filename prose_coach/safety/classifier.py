"""
Danger Classifier — deterministic immediate-danger detection.

Behavioral Contract:
- Pure function of a single user utterance; no side effects
- Case-insensitive; returns True if ANY pattern matches
- Recall over precision: a missed emergency costs more than an interrupted
  conversation, but descriptions of past events must not match
- The pattern set is versioned data; extending it never touches control flow
"""

import re
from typing import List, NamedTuple, Pattern


class DangerPattern(NamedTuple):
    name: str
    pattern: Pattern[str]


def _p(name: str, regex: str) -> DangerPattern:
    return DangerPattern(name, re.compile(regex, re.IGNORECASE))


# Apostrophes accept both ASCII and typographic forms (mobile keyboards).
DANGER_PATTERNS_VERSION = "2"

DANGER_PATTERNS = (
    _p("abuser_present", r"\b(he|she)(['’]s| is) (here|outside|coming|at the door)"),
    _p("ongoing_attack", r"being (attacked|hit|beaten|hurt) (right )?now"),
    _p("fear_for_life", r"\bi(['’]m| am) (scared|afraid) (for my life|(he|she)(['’]ll| will) kill)"),
    _p("call_police", r"call (the )?police"),
    _p("lethal_threat", r"going to kill"),
    _p("weapon", r"has a (gun|knife|weapon)"),
    _p("help_plea", r"help me (now|please|immediately)"),
    _p("emergency", r"emergency"),
    _p("self_declared_danger", r"\bi(['’]m| am) in (immediate )?danger"),
)


def matched_danger_patterns(text: str) -> List[str]:
    """Names of every danger pattern that matches the text."""
    if not text:
        return []
    return [p.name for p in DANGER_PATTERNS if p.pattern.search(text)]


def is_immediate_danger(text: str) -> bool:
    """True when the utterance describes an emergency happening now."""
    if not text:
        return False
    return any(p.pattern.search(text) for p in DANGER_PATTERNS)


SAFETY_INTERRUPT_FLAG_MESSAGE = (
    "Possible immediate danger detected. Emergency resources provided."
)


def safety_interrupt_message() -> str:
    """The fixed hand-off shown instead of a coached reply."""
    return """**If you are in immediate danger, please:**

1. **Call 911** immediately
2. **NY Domestic Violence Hotline:** 1-800-942-6906 (24/7)
3. **National DV Hotline:** 1-800-799-7233
4. **Text "START" to 88788** for text-based help

Your safety is the top priority. This tool cannot help in an emergency. Please contact emergency services right away.

Once you are safe, I'm here to help you understand the Order of Protection process.

---
*This is educational information only, not legal advice.*"""
