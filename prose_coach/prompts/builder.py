"""
Prompt Builder — assembles the coach's system prompt and extraction suffix.

Pure string assembly: no I/O, no failure mode beyond malformed input, which
is tolerated by treating missing fact fields as their defaults.

The extraction suffix and the Response Parser share a de facto protocol:
the suffix tells the model to emit one ```json fenced object with the keys
below, and the parser decodes exactly that. Change both together.
"""

from typing import Iterable, List, Literal, Union

from pydantic import BaseModel

from prose_coach.facts.merge import merge_facts
from prose_coach.models.coach import CoachMode, CoachRequest
from prose_coach.models.facts import (
    LIVING_SITUATION_LABELS,
    RELATIONSHIP_LABELS,
    RELIEF_LABELS,
    Jurisdiction,
    OPFacts,
)
from prose_coach.models.session import TimelineEvent


class PromptContext(BaseModel):
    """What the prompt needs to know about the session."""

    op_facts: OPFacts = OPFacts()
    jurisdiction: Jurisdiction = Jurisdiction()
    timeline: List[TimelineEvent] = []
    tone: Literal["formal", "plain"] = "plain"

    @classmethod
    def from_request(cls, request: CoachRequest) -> "PromptContext":
        return cls(
            op_facts=request.op_facts,
            jurisdiction=request.jurisdiction,
            timeline=request.timeline,
            tone=request.tone,
        )


CORE_RULES = (
    "You are NOT a lawyer. You do NOT provide legal advice. You provide EDUCATIONAL INFORMATION ONLY.",
    "Never claim or imply an attorney-client relationship.",
    "Never make promises about case outcomes or predict what a judge will do.",
    "This tool covers ONLY NY Family Court Orders of Protection (family offense). "
    "If asked about anything else, redirect.",
    "If the user describes IMMEDIATE DANGER, immediately tell them to call 911 "
    "and the NY DV Hotline: 1-800-942-6906.",
    "If sensitive personal information (SSN, credit card or bank numbers) appears, "
    "warn the user to redact it.",
    'Label every piece of drafted text: "TEMPLATE / STARTER TEXT — NOT A LEGAL DOCUMENT."',
)

FAMILY_OFFENSES = (
    "Assault, stalking, harassment, menacing, reckless endangerment, strangulation, "
    "disorderly conduct, criminal mischief, sexual offenses, forcible touching, coercion."
)

INTERVIEW_PRIORITIES = (
    "Exact dates (month/year minimum) for incidents",
    "Specific descriptions of what happened (exact words said, physical actions)",
    "Whether weapons or firearms were involved",
    "Whether children witnessed or were harmed",
    "What evidence exists (texts, photos, police reports, medical records)",
    "Current safety status",
)

TONE_DIRECTIVES = {
    "formal": "Use formal, precise language appropriate for court proceedings.",
    "plain": "Use plain, accessible language that a non-lawyer can easily understand.",
}

_GROUP_LABELS = {
    "safety": {
        "safe_now": "Safe now",
        "threats_of_escalation": "Threats of escalation",
        "firearms_present": "Firearms present",
        "firearms_details": "Firearms details",
        "strangulation": "Strangulation history",
        "suicide_threats": "Suicide threats",
        "pet_harm": "Harm to pets",
        "technology_abuse": "Technology abuse",
    },
    "children": {
        "children_involved": "Children involved",
        "number_of_children": "Number of children",
        "children_witnessed_abuse": "Children witnessed abuse",
        "children_directly_harmed": "Children directly harmed",
        "children_details": "Children details",
    },
    "existing_cases": {
        "existing_order_of_protection": "Existing OP",
        "existing_op_details": "Existing OP details",
        "pending_family_case": "Pending family case",
        "pending_family_case_details": "Pending family case details",
        "pending_criminal_case": "Pending criminal case",
        "pending_criminal_case_details": "Pending criminal case details",
    },
}

_EVIDENCE_LABELS = {
    "texts": "text messages",
    "call_records": "call records",
    "emails": "emails",
    "photos": "photos",
    "videos": "videos",
    "medical_records": "medical records",
    "police_reports": "police reports",
    "witnesses": "witnesses",
    "voicemails": "voicemails",
    "social_media": "social media",
}


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


def _coerce_facts(facts: Union[OPFacts, dict, None]) -> OPFacts:
    if isinstance(facts, OPFacts):
        return facts
    # Fields that fail validation keep their defaults
    return merge_facts(OPFacts(), facts or {})


def summarize_facts(facts: Union[OPFacts, dict, None]) -> str:
    """
    Render only the fields that differ from their defaults, so the prompt
    stays compact and the model does not re-ask answered questions.
    """
    facts = _coerce_facts(facts)
    lines: List[str] = []

    if facts.petitioner_name:
        lines.append(f"Petitioner: {facts.petitioner_name}")
    if facts.respondent_name:
        lines.append(f"Respondent: {facts.respondent_name}")
    if facts.relationship:
        lines.append(f"Relationship: {RELATIONSHIP_LABELS[facts.relationship]}")
    if facts.living_situation:
        lines.append(f"Living situation: {LIVING_SITUATION_LABELS[facts.living_situation]}")
    if facts.cohabitation_details:
        lines.append(f"Cohabitation details: {facts.cohabitation_details}")
    if facts.most_recent_incident_date:
        when = f"{facts.most_recent_incident_date} {facts.most_recent_incident_time}".strip()
        lines.append(f"Most recent incident: {when}")
    if facts.incidents:
        lines.append(f"Number of incidents documented: {len(facts.incidents)}")
        for incident in facts.incidents:
            lines.append(f"  - {incident.date or 'undated'}: {incident.what_happened[:100]}")
    if facts.pattern_description:
        lines.append(f"Pattern: {facts.pattern_description}")

    defaults = OPFacts()
    for group_name, labels in _GROUP_LABELS.items():
        group = getattr(facts, group_name)
        group_defaults = getattr(defaults, group_name)
        for field_name, label in labels.items():
            value = getattr(group, field_name)
            if value == getattr(group_defaults, field_name):
                continue
            rendered = _yes_no(value) if isinstance(value, bool) else value
            lines.append(f"{label}: {rendered}")

    available = [
        label for field_name, label in _EVIDENCE_LABELS.items()
        if getattr(facts.evidence, field_name)
    ]
    if available:
        lines.append(f"Evidence available: {', '.join(available)}")
    if facts.evidence.other:
        lines.append(f"Other evidence: {facts.evidence.other}")

    if facts.requested_relief:
        relief = ", ".join(RELIEF_LABELS[r] for r in facts.requested_relief)
        lines.append(f"Requested relief: {relief}")
    if facts.other_relief_details:
        lines.append(f"Other relief details: {facts.other_relief_details}")
    if facts.desired_outcome:
        lines.append(f"Desired outcome: {facts.desired_outcome}")
    if facts.additional_notes:
        lines.append(f"Additional notes: {facts.additional_notes}")

    return "\n".join(lines) if lines else "None gathered yet."


def summarize_timeline(timeline: Iterable[TimelineEvent]) -> str:
    lines = []
    for event in timeline:
        line = f"- {event.date}: {event.title}"
        if event.is_deadline:
            line += " [DEADLINE]"
        if event.description:
            line += f" ({event.description})"
        lines.append(line)
    return "\n".join(lines) if lines else "No events recorded yet."


def _numbered(items: Iterable[str]) -> str:
    return "\n".join(f"{i + 1}. {item}" for i, item in enumerate(items))


def _base_rules(context: PromptContext) -> str:
    county = (
        f"{context.jurisdiction.county} County"
        if context.jurisdiction.county
        else "County not specified"
    )
    return (
        "CRITICAL RULES — YOU MUST FOLLOW EVERY ONE:\n"
        f"{_numbered(CORE_RULES)}\n\n"
        f"COURT: New York Family Court — {county}\n"
        "SCOPE: Order of Protection (Family Offense, FCA Article 8)\n"
        f"{TONE_DIRECTIVES.get(context.tone, TONE_DIRECTIVES['plain'])}"
    )


def _known_state(context: PromptContext) -> str:
    return (
        f"CURRENT KNOWN FACTS:\n{summarize_facts(context.op_facts)}\n\n"
        f"TIMELINE:\n{summarize_timeline(context.timeline)}"
    )


def _interview_prompt(context: PromptContext) -> str:
    priorities = "\n".join(f"- {p}" for p in INTERVIEW_PRIORITIES)
    return (
        "You are an investigator for a NY Family Court Order of Protection case. "
        "Your goal is to fill in missing critical details through concise, targeted questions.\n\n"
        f"{_base_rules(context)}\n\n"
        "YOUR ROLE: Review the intake data below and identify which critical fields are missing. "
        "Then ask 2-6 specific, focused questions to fill the gaps. Prioritize:\n"
        f"{priorities}\n\n"
        "Be conversational but efficient. Each question should target ONE specific missing "
        "piece of information. Do not ask about facts already listed below.\n\n"
        f"FAMILY OFFENSES UNDER FCA §812 INCLUDE:\n{FAMILY_OFFENSES}\n\n"
        f"{_known_state(context)}"
    )


def _roadmap_update_prompt(context: PromptContext) -> str:
    return (
        "You are a fact updater for a NY Family Court Order of Protection case.\n\n"
        f"{_base_rules(context)}\n\n"
        "YOUR ROLE: The user is providing a new fact or correction about their case. Your job is to:\n"
        "1. Extract the new information and map it to the correct fields.\n"
        "2. If the fact implies a timeline event, include it in timeline_events.\n"
        "3. If the fact has safety implications (firearms, strangulation, threats), flag it.\n"
        "4. Be brief. Acknowledge what you understood. Do NOT re-interview the user and do NOT ask "
        "follow-up questions unless the new fact is genuinely ambiguous.\n"
        "5. End with one sentence confirming what was updated.\n\n"
        f"{_known_state(context)}"
    )


def _conversation_prompt(context: PromptContext) -> str:
    return (
        "You are an educational coach helping a self-represented person understand the "
        "NY Family Court Order of Protection process.\n\n"
        f"{_base_rules(context)}\n\n"
        "YOUR ROLE: Answer the user's question clearly and briefly, using the case facts below "
        "where relevant. Explain procedure, what to bring and what to expect. Ask at most one or "
        "two follow-up questions, and only when they would change your answer.\n\n"
        f"{_known_state(context)}"
    )


def build_system_prompt(context: PromptContext, mode: str = CoachMode.INTERVIEW) -> str:
    """Build the system prompt for a mode; unknown modes get the conversational template."""
    if not mode or mode == CoachMode.INTERVIEW:
        return _interview_prompt(context)
    if mode == CoachMode.ROADMAP_UPDATE:
        return _roadmap_update_prompt(context)
    return _conversation_prompt(context)


def build_extraction_suffix() -> str:
    """Instruction block appended to the user's message, not the system prompt."""
    return """

After your conversational response, output a JSON block wrapped in ```json ... ``` with this structure:
{
  "next_questions": ["question 1", ...],
  "extracted_facts": { ... partial OPFacts fields to merge ... },
  "missing_fields": ["field1", ...],
  "progress_percent": 0-100,
  "safety_flags": [
    { "severity": "info|warning|critical", "message": "...", "category": "deadline|jurisdiction|sensitive|legal_limit|safety|general" }
  ],
  "timeline_events": [
    { "date": "YYYY-MM-DD", "title": "...", "description": "...", "isDeadline": false }
  ],
  "suggested_artifacts": [
    { "type": "two_minute_script|five_minute_outline|evidence_checklist|timeline|what_to_bring|what_to_expect|general", "title": "...", "content": "..." }
  ]
}

Only include fields with new data. Use empty arrays/objects when there is nothing new to report.
CRITICAL: If the user describes immediate danger, set a safety_flag with severity "critical" and category "safety".
For extracted_facts, use the exact OPFacts field names (petitionerName, respondentName, relationship, livingSituation, mostRecentIncidentDate, incidents, safety, children, existingCases, evidence, requestedRelief, ...). For nested fields use dot notation in the JSON keys (e.g. "safety.firearmsPresent": true)."""
