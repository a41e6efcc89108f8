"""Tests for the Session Store."""

import pytest

from prose_coach.models import (
    ArtifactDraft,
    ArtifactType,
    CoachTurnResult,
    ConversationRole,
    Jurisdiction,
    SafetyFlagCategory,
    SafetyFlagDraft,
    SafetyFlagSeverity,
    TimelineEventDraft,
)
from prose_coach.sessions.store import SessionNotFoundError, SessionStore


@pytest.fixture
def store():
    return SessionStore()


def _make_flag(severity=SafetyFlagSeverity.WARNING, category=SafetyFlagCategory.DEADLINE) -> SafetyFlagDraft:
    return SafetyFlagDraft(severity=severity, message="Check the hearing date", category=category)


class TestLifecycle:
    def test_create_defaults(self, store):
        session = store.create_session()
        assert session.id.startswith("case_")
        assert session.title == "Order of Protection Case"
        assert session.op_facts.petitioner_name == ""
        assert session.timeline == []
        assert session.created_at == session.updated_at

    def test_create_with_jurisdiction(self, store):
        session = store.create_session(jurisdiction=Jurisdiction(county="Kings (Brooklyn)"), title="My case")
        assert session.jurisdiction.county == "Kings (Brooklyn)"
        assert session.title == "My case"

    def test_get_and_list(self, store):
        a = store.create_session()
        b = store.create_session()
        assert store.get_session(a.id) is a
        assert store.get_session("missing") is None
        assert {s.id for s in store.list_sessions()} == {a.id, b.id}

    def test_load_missing_raises(self, store):
        with pytest.raises(SessionNotFoundError):
            store.load("missing")

    def test_update_session(self, store):
        session = store.create_session()
        store.update_session(session.id, intake_step=3, intake_completed=True)
        assert session.intake_step == 3
        assert session.intake_completed is True

    def test_delete(self, store):
        session = store.create_session()
        assert store.delete_session(session.id) is True
        assert store.delete_session(session.id) is False
        assert store.get_session(session.id) is None


class TestMutations:
    def test_messages_appended_in_order(self, store):
        session = store.create_session()
        store.add_message(session.id, ConversationRole.USER, "Hi")
        store.add_message(session.id, ConversationRole.ASSISTANT, "Hello")
        assert [m.content for m in session.conversation] == ["Hi", "Hello"]
        assert all(m.id and m.timestamp for m in session.conversation)

    def test_fact_update_deep_merges(self, store):
        session = store.create_session()
        store.update_op_facts(session.id, {"safety": {"safeNow": True}})
        store.update_op_facts(session.id, {"safety.firearmsPresent": True, "petitionerName": "Jane"})
        facts = store.load(session.id).op_facts
        assert facts.safety.safe_now is True
        assert facts.safety.firearms_present is True
        assert facts.petitioner_name == "Jane"

    def test_timeline_kept_sorted(self, store):
        session = store.create_session()
        store.add_timeline_event(session.id, TimelineEventDraft(date="2024-03-01", title="Later"))
        store.add_timeline_event(session.id, TimelineEventDraft(date="2024-01-01", title="Earlier"))
        assert [e.title for e in session.timeline] == ["Earlier", "Later"]
        assert all(e.id.startswith("evt_") for e in session.timeline)

    def test_remove_timeline_event(self, store):
        session = store.create_session()
        event = store.add_timeline_event(session.id, TimelineEventDraft(date="2024-01-01", title="Incident"))
        assert store.remove_timeline_event(session.id, event.id) is True
        assert store.remove_timeline_event(session.id, event.id) is False
        assert session.timeline == []

    def test_artifact_starts_at_version_one(self, store):
        session = store.create_session()
        artifact = store.add_artifact(
            session.id,
            ArtifactDraft(type=ArtifactType.TWO_MINUTE_SCRIPT, title="Script", content="Your Honor..."),
        )
        assert artifact.version == 1
        assert session.generated_artifacts == [artifact]

    def test_flags_append_only(self, store):
        session = store.create_session()
        first = store.add_safety_flags(session.id, [_make_flag()])
        store.add_safety_flags(session.id, [_make_flag(SafetyFlagSeverity.INFO, SafetyFlagCategory.GENERAL)])
        assert len(session.safety_flags) == 2
        assert session.safety_flags[0] == first[0]


class TestApplyTurn:
    def test_applies_every_mutation(self, store):
        session = store.create_session()
        result = CoachTurnResult(
            assistant_message="Noted.",
            extracted_facts={"respondentName": "John", "children": {"childrenInvolved": True}},
            progress_percent=40,
            safety_flags=[_make_flag()],
            timeline_events=[TimelineEventDraft(date="2024-02-01", title="Hearing", is_deadline=True)],
            suggested_artifacts=[
                ArtifactDraft(type=ArtifactType.EVIDENCE_CHECKLIST, title="Checklist", content="- photos"),
            ],
        )
        store.apply_turn(session.id, result)
        session = store.load(session.id)
        assert session.conversation[-1].role == ConversationRole.ASSISTANT
        assert session.conversation[-1].content == "Noted."
        assert session.op_facts.respondent_name == "John"
        assert session.op_facts.children.children_involved is True
        assert session.progress_percent == 40
        assert session.timeline[0].is_deadline is True
        assert len(session.safety_flags) == 1
        assert session.generated_artifacts[0].type == ArtifactType.EVIDENCE_CHECKLIST

    def test_zero_progress_keeps_current(self, store):
        session = store.create_session()
        store.update_session(session.id, progress_percent=30)
        store.apply_turn(session.id, CoachTurnResult(assistant_message="Ok"))
        assert store.load(session.id).progress_percent == 30
