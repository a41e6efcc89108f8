"""Tests for the Prompt Builder."""

from prose_coach.models import CoachRequest, Jurisdiction, OPFacts, TimelineEvent
from prose_coach.prompts.builder import (
    PromptContext,
    build_extraction_suffix,
    build_system_prompt,
    summarize_facts,
    summarize_timeline,
)


def _make_context(**overrides) -> PromptContext:
    return PromptContext(**overrides)


class TestSystemPrompt:
    def test_interview_is_default(self):
        context = _make_context()
        prompt = build_system_prompt(context)
        assert "investigator" in prompt
        assert "2-6 specific" in prompt
        assert prompt == build_system_prompt(context, "interview")

    def test_roadmap_update_mode(self):
        prompt = build_system_prompt(_make_context(), "roadmap_update")
        assert "fact updater" in prompt
        assert "Do NOT re-interview" in prompt
        assert "investigator" not in prompt

    def test_other_modes_get_conversational_prompt(self):
        prompt = build_system_prompt(_make_context(), "hearing_prep")
        assert "educational coach" in prompt
        assert "investigator" not in prompt

    def test_every_mode_carries_core_rules(self):
        for mode in ("interview", "roadmap_update", "hearing_prep"):
            prompt = build_system_prompt(_make_context(), mode)
            assert "NOT a lawyer" in prompt
            assert "1-800-942-6906" in prompt
            assert "NOT A LEGAL DOCUMENT" in prompt
            assert "redact" in prompt

    def test_county_rendered(self):
        prompt = build_system_prompt(_make_context(jurisdiction=Jurisdiction(county="Bronx")))
        assert "New York Family Court — Bronx County" in prompt

    def test_missing_county(self):
        prompt = build_system_prompt(_make_context())
        assert "County not specified" in prompt

    def test_tone_directive(self):
        formal = build_system_prompt(_make_context(tone="formal"))
        plain = build_system_prompt(_make_context(tone="plain"))
        assert "formal, precise language" in formal
        assert "plain, accessible language" in plain

    def test_known_facts_embedded(self):
        context = _make_context(op_facts=OPFacts(petitioner_name="Jane Doe"))
        assert "Petitioner: Jane Doe" in build_system_prompt(context)

    def test_context_from_request(self):
        request = CoachRequest.model_validate({
            "sessionId": "case_1",
            "userMessage": "hi",
            "tone": "formal",
            "jurisdiction": {"county": "Queens"},
        })
        context = PromptContext.from_request(request)
        assert context.tone == "formal"
        assert context.jurisdiction.county == "Queens"


class TestSummarizeFacts:
    def test_empty_facts(self):
        assert summarize_facts(OPFacts()) == "None gathered yet."
        assert summarize_facts(None) == "None gathered yet."
        assert summarize_facts({}) == "None gathered yet."

    def test_only_non_default_fields(self):
        facts = OPFacts.model_validate({
            "petitionerName": "Jane",
            "relationship": "former_spouse",
            "safety": {"firearmsPresent": True, "strangulation": False},
            "evidence": {"photos": True, "texts": True},
            "requestedRelief": ["stay_away"],
        })
        summary = summarize_facts(facts)
        assert "Petitioner: Jane" in summary
        assert "Relationship: Former spouse" in summary
        assert "Firearms present: Yes" in summary
        assert "Strangulation history: No" in summary
        assert "Evidence available: text messages, photos" in summary
        assert "Requested relief: Stay away" in summary
        assert "Respondent" not in summary
        assert "Safe now" not in summary
        assert "Children" not in summary

    def test_accepts_wire_dict(self):
        summary = summarize_facts({"respondentName": "John", "children": {"numberOfChildren": 2}})
        assert "Respondent: John" in summary
        assert "Number of children: 2" in summary

    def test_incidents_listed(self):
        facts = OPFacts.model_validate({
            "incidents": [{"date": "2024-01-10", "whatHappened": "He threw a plate"}, {}],
        })
        summary = summarize_facts(facts)
        assert "Number of incidents documented: 2" in summary
        assert "2024-01-10: He threw a plate" in summary
        assert "undated" in summary

    def test_invalid_dict_values_use_defaults(self):
        summary = summarize_facts({
            "petitionerName": "Jane",
            "relationship": "neighbor",
            "children": {"numberOfChildren": "several"},
        })
        assert "Petitioner: Jane" in summary
        assert "Relationship" not in summary
        assert "Number of children" not in summary


class TestSummarizeTimeline:
    def test_empty(self):
        assert summarize_timeline([]) == "No events recorded yet."

    def test_lines(self):
        timeline = [
            TimelineEvent(date="2024-01-10", title="Incident", description="Pushed"),
            TimelineEvent(date="2024-02-01", title="Hearing", is_deadline=True),
        ]
        assert summarize_timeline(timeline) == (
            "- 2024-01-10: Incident (Pushed)\n"
            "- 2024-02-01: Hearing [DEADLINE]"
        )


class TestExtractionSuffix:
    def test_describes_fenced_block(self):
        suffix = build_extraction_suffix()
        assert "```json" in suffix
        for key in (
            "next_questions",
            "extracted_facts",
            "missing_fields",
            "progress_percent",
            "safety_flags",
            "timeline_events",
            "suggested_artifacts",
        ):
            assert key in suffix

    def test_dot_notation_instruction(self):
        assert '"safety.firearmsPresent": true' in build_extraction_suffix()

    def test_critical_safety_instruction(self):
        suffix = build_extraction_suffix()
        assert 'severity "critical"' in suffix
        assert 'category "safety"' in suffix
