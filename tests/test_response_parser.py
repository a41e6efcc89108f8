"""Tests for the Response Parser."""

from prose_coach.models.coach import CoachMetadata
from prose_coach.parsing.response import parse_response


def _assert_default_metadata(metadata: CoachMetadata) -> None:
    assert metadata.next_questions == []
    assert metadata.extracted_facts == {}
    assert metadata.missing_fields == []
    assert metadata.progress_percent == 0
    assert metadata.safety_flags == []
    assert metadata.timeline_events == []
    assert metadata.suggested_artifacts == []


class TestNoBlock:
    def test_plain_text_passes_through(self):
        raw = "  Hello, I understand your situation. Let me help.\n"
        result = parse_response(raw)
        assert result.message == raw.strip()
        _assert_default_metadata(result.metadata)

    def test_untagged_fence_is_not_metadata(self):
        raw = 'Text\n```\n{"progress_percent": 40}\n```'
        result = parse_response(raw)
        assert result.message == raw.strip()
        _assert_default_metadata(result.metadata)

    def test_empty_and_none(self):
        assert parse_response("").message == ""
        assert parse_response(None).message == ""


class TestHappyPath:
    def test_extracts_metadata_block(self):
        raw = """Here is my response.

```json
{
  "next_questions": ["Q1", "Q2"],
  "extracted_facts": { "petitionerName": "Jane" },
  "missing_fields": ["respondentName"],
  "progress_percent": 25,
  "safety_flags": [
    { "severity": "info", "message": "Educational only", "category": "legal_limit" }
  ],
  "timeline_events": [
    { "date": "2024-01-15", "title": "Incident", "description": "Shoved", "isDeadline": false }
  ],
  "suggested_artifacts": []
}
```"""
        result = parse_response(raw)
        assert result.message == "Here is my response."
        assert "```" not in result.message
        meta = result.metadata
        assert len(meta.next_questions) == 2
        assert meta.next_questions[0] == "Q1"
        assert meta.extracted_facts == {"petitionerName": "Jane"}
        assert meta.missing_fields == ["respondentName"]
        assert meta.progress_percent == 25
        assert len(meta.safety_flags) == 1
        assert meta.safety_flags[0].severity == "info"
        assert meta.timeline_events[0].date == "2024-01-15"
        assert meta.timeline_events[0].is_deadline is False

    def test_text_after_block_is_kept(self):
        raw = 'Before.\n```json\n{"progress_percent": 5}\n```\nAfter.'
        result = parse_response(raw)
        assert result.message == "Before.\n\nAfter."
        assert result.metadata.progress_percent == 5

    def test_only_first_block_is_consumed(self):
        raw = 'A\n```json\n{"progress_percent": 5}\n```\nB\n```json\n{"progress_percent": 9}\n```'
        result = parse_response(raw)
        assert result.metadata.progress_percent == 5
        assert '"progress_percent": 9' in result.message

    def test_unknown_keys_ignored(self):
        raw = 'Ok\n```json\n{"mood": "calm", "progress_percent": 30}\n```'
        result = parse_response(raw)
        assert result.metadata.progress_percent == 30
        assert not hasattr(result.metadata, "mood")


class TestMalformed:
    def test_broken_json_returns_entire_raw(self):
        raw = """Response text.

```json
{ broken json here
```"""
        result = parse_response(raw)
        assert result.message == raw.strip()
        assert "```json" in result.message
        _assert_default_metadata(result.metadata)

    def test_non_object_json_treated_as_no_block(self):
        raw = 'Text\n```json\n["Q1", "Q2"]\n```'
        result = parse_response(raw)
        assert result.message == raw.strip()
        _assert_default_metadata(result.metadata)


class TestPartialMetadata:
    def test_missing_keys_use_defaults(self):
        raw = 'Response.\n\n```json\n{\n  "next_questions": ["Q1"],\n  "progress_percent": 50\n}\n```'
        result = parse_response(raw)
        meta = result.metadata
        assert meta.next_questions == ["Q1"]
        assert meta.progress_percent == 50
        assert meta.extracted_facts == {}
        assert meta.missing_fields == []
        assert meta.safety_flags == []
        assert meta.timeline_events == []
        assert meta.suggested_artifacts == []

    def test_wrong_shape_falls_back_per_key(self):
        raw = (
            'Ok\n```json\n'
            '{"next_questions": "not a list", "extracted_facts": [1, 2], '
            '"progress_percent": "lots", "missing_fields": ["relationship"]}\n```'
        )
        meta = parse_response(raw).metadata
        assert meta.next_questions == []
        assert meta.extracted_facts == {}
        assert meta.progress_percent == 0
        assert meta.missing_fields == ["relationship"]

    def test_malformed_entries_dropped(self):
        raw = (
            'Ok\n```json\n'
            '{"safety_flags": ["oops", {"severity": "warning", "message": "Redact SSN", '
            '"category": "sensitive"}, {"message": 42}], '
            '"next_questions": ["Q1", 7, null]}\n```'
        )
        meta = parse_response(raw).metadata
        assert len(meta.safety_flags) == 1
        assert meta.safety_flags[0].category == "sensitive"
        assert meta.next_questions == ["Q1"]

    def test_progress_is_clamped_and_rounded(self):
        assert parse_response('x\n```json\n{"progress_percent": 140}\n```').metadata.progress_percent == 100
        assert parse_response('x\n```json\n{"progress_percent": -3}\n```').metadata.progress_percent == 0
        assert parse_response('x\n```json\n{"progress_percent": "42.6"}\n```').metadata.progress_percent == 43
        assert parse_response('x\n```json\n{"progress_percent": true}\n```').metadata.progress_percent == 0

    def test_oversized_progress_falls_back(self):
        raw = 'Ok\n```json\n{"progress_percent": 1' + "0" * 400 + ', "next_questions": ["Q1"]}\n```'
        meta = parse_response(raw).metadata
        assert meta.progress_percent == 0
        assert meta.next_questions == ["Q1"]

    def test_deeply_nested_block_passes_text_through(self):
        raw = 'Ok\n```json\n{"extracted_facts": ' + "[" * 100000 + "]" * 100000 + "}\n```"
        result = parse_response(raw)
        assert result.message == raw.strip()
        _assert_default_metadata(result.metadata)
