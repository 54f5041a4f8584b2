"""
Unit tests for extracting a batch preview from the agent's text answer.
"""

import json

import pytest

from app.agent.extractor import decode_json_object, extract_batch_result
from app.core.errors import BatchSchemaError, NonJsonResponseError

SUMMARY = {"totalTasks": 1, "readyToSchedule": 0, "avgCompleteness": 0.4, "keyRisks": ["No asset"]}
PREVIEW = {
    "tasks": [
        {
            "task": {"taskId": "t1", "name": "Launch teaser", "caption": None, "tags": []},
            "validation": {
                "score": 40,
                "issues": [{"code": "MISSING_ASSET", "severity": "critical", "message": "No video"}],
            },
            "captions": [
                {"platform": "instagram", "original": "", "optimized": "Coming soon", "hashtags": ["#launch"]}
            ],
            "schedule": [
                {"platform": "instagram", "suggestedTime": "2025-01-01T10:00:00Z", "conflict": False, "reason": "peak"}
            ],
            "ready": False,
        }
    ],
    "summary": SUMMARY,
}


class TestDecodeJsonObject:
    """Tests for decode_json_object()."""

    def test_plain_json(self) -> None:
        assert decode_json_object('{"a": 1}') == {"a": 1}

    def test_json_wrapped_in_prose(self) -> None:
        text = 'Sure! Here is the result:\n{"tasks":[],"summary":{"totalTasks":0}}\nLet me know.'
        assert decode_json_object(text) == {"tasks": [], "summary": {"totalTasks": 0}}

    def test_json_in_markdown_fence(self) -> None:
        text = "```json\n" + json.dumps(PREVIEW) + "\n```"
        assert decode_json_object(text)["summary"] == SUMMARY

    def test_slices_first_to_last_brace_across_nested_objects(self) -> None:
        text = 'prefix {"outer": {"inner": {}}} suffix'
        assert decode_json_object(text) == {"outer": {"inner": {}}}

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "   ",
            "I could not process these tasks.",
            '{"tasks": [',
            "} backwards {",
            'Here: {"tasks": [} and more',
        ],
    )
    def test_unrecoverable_text_raises(self, text: str) -> None:
        with pytest.raises(NonJsonResponseError):
            decode_json_object(text)

    @pytest.mark.parametrize(
        "text",
        [
            "[" * 100000 + "]" * 100000,
            '{"a":' * 100000 + "1" + "}" * 100000,
        ],
    )
    def test_too_deeply_nested_raises_non_json(self, text: str) -> None:
        with pytest.raises(NonJsonResponseError):
            extract_batch_result(text)

    def test_top_level_array_is_not_accepted(self) -> None:
        with pytest.raises(NonJsonResponseError):
            decode_json_object("[1, 2, 3]")

    def test_error_keeps_raw_excerpt_and_cause(self) -> None:
        with pytest.raises(NonJsonResponseError) as exc_info:
            decode_json_object("x" * 1000)
        assert exc_info.value.raw_excerpt == "x" * 500
        assert exc_info.value.cause is not None
        assert exc_info.value.message == "ORCH_NON_JSON_RESPONSE"


class TestExtractBatchResult:
    """Tests for extract_batch_result()."""

    def test_parses_full_preview(self) -> None:
        preview = extract_batch_result(json.dumps(PREVIEW))
        assert len(preview.tasks) == 1
        item = preview.tasks[0]
        assert item.task.task_id == "t1"
        assert item.validation.issues[0].code == "MISSING_ASSET"
        assert item.captions[0].hashtags == ["#launch"]
        assert item.schedule[0].suggested_time == "2025-01-01T10:00:00Z"
        assert preview.summary.avg_completeness == pytest.approx(0.4)
        assert preview.summary.key_risks == ["No asset"]

    def test_prose_wrapped_preview(self) -> None:
        text = "Sure! Here is the result:\n" + json.dumps(PREVIEW) + "\nLet me know."
        assert extract_batch_result(text).summary.total_tasks == 1

    def test_missing_lists_default_to_empty(self) -> None:
        preview = extract_batch_result('{"summary": {"totalTasks": 0, "readyToSchedule": 0, "avgCompleteness": 0}}')
        assert preview.tasks == []
        assert preview.summary.key_risks == []

    def test_wrong_shape_raises_schema_error(self) -> None:
        with pytest.raises(BatchSchemaError):
            extract_batch_result('{"tasks": "none", "summary": {"avgCompleteness": "high"}}')

    def test_agent_extras_and_unlisted_values_pass_through(self) -> None:
        answer = json.loads(json.dumps(PREVIEW))
        item = answer["tasks"][0]
        item["notes"] = "agent extra"
        item["task"]["extraField"] = {"source": "agent"}
        item["captions"][0]["platform"] = "twitter"
        item["validation"]["issues"][0]["code"] = "TOO_LONG"
        item["validation"]["issues"][0]["severity"] = "blocker"
        answer["summary"]["confidence"] = "high"

        dumped = extract_batch_result(json.dumps(answer)).model_dump(mode="json", by_alias=True)

        out = dumped["tasks"][0]
        assert out["notes"] == "agent extra"
        assert out["task"]["extraField"] == {"source": "agent"}
        assert out["captions"][0]["platform"] == "twitter"
        assert out["validation"]["issues"][0] == {"code": "TOO_LONG", "severity": "blocker", "message": "No video"}
        assert dumped["summary"]["confidence"] == "high"

    def test_integer_score_is_not_coerced(self) -> None:
        dumped = extract_batch_result(json.dumps(PREVIEW)).model_dump(mode="json", by_alias=True)
        score = dumped["tasks"][0]["validation"]["score"]
        assert score == 40 and isinstance(score, int)
