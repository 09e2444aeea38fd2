"""Tests for recovering JSON from generative model output."""

from __future__ import annotations

import json

from video_insight.visual.parsing import (
    ParseStatus,
    close_truncated_descriptions,
    extract_largest_object,
    parse_model_json,
    quote_unquoted_keys,
    remove_trailing_commas,
    repair_stages,
    single_to_double_quotes,
    strip_code_fences,
)


class TestCleaningSteps:
    def test_strip_code_fences(self) -> None:
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_remove_trailing_commas(self) -> None:
        assert remove_trailing_commas('{"a": [1, 2,], }') == '{"a": [1, 2]}'

    def test_close_truncated_descriptions(self) -> None:
        text = '{"descriptions": [{"timestamp": "00:00", "description": "A cat"]}'
        fixed = close_truncated_descriptions(text)
        assert json.loads(fixed)["descriptions"][0]["description"] == "A cat"

    def test_complete_objects_are_untouched(self) -> None:
        text = '{"descriptions": [{"description": "A cat"}]}'
        assert close_truncated_descriptions(text) == text

    def test_quote_unquoted_keys(self) -> None:
        assert json.loads(quote_unquoted_keys('{timestamp: "00:00", description: "x"}')) == {
            "timestamp": "00:00",
            "description": "x",
        }

    def test_repairs_leave_string_values_alone(self) -> None:
        text = "{\"description\": \"Slide reads, Agenda: intro, 'next': Q&A\",}"
        repaired = single_to_double_quotes(quote_unquoted_keys(remove_trailing_commas(text)))
        assert json.loads(repaired) == {"description": "Slide reads, Agenda: intro, 'next': Q&A"}

    def test_single_quotes(self) -> None:
        assert json.loads(single_to_double_quotes("{'a': 'it\\'s \"fine\"'}")) == {
            "a": 'it\'s "fine"'
        }

    def test_extract_largest_object(self) -> None:
        text = 'Sure! Here you go: {"a": {"b": 1}} Hope that helps.'
        assert extract_largest_object(text) == '{"a": {"b": 1}}'
        assert extract_largest_object("no braces") is None

    def test_repair_stages_combine_steps(self) -> None:
        text = "```json\n{descriptions: [{'timestamp': '00:10', 'description': 'A dog',},]}\n```"
        *_, last = repair_stages(text)
        assert json.loads(last) == {
            "descriptions": [{"timestamp": "00:10", "description": "A dog"}]
        }


class TestParseModelJson:
    def test_valid_json(self) -> None:
        result = parse_model_json('{"descriptions": []}')
        assert result.status is ParseStatus.OK
        assert result.value == {"descriptions": []}
        assert result.ok

    def test_fenced_json_is_recovered(self) -> None:
        result = parse_model_json('```json\n{"descriptions": [{"timestamp": "00:00"}]}\n```')
        assert result.status is ParseStatus.RECOVERED
        assert result.value["descriptions"][0]["timestamp"] == "00:00"

    def test_prose_around_object_is_recovered(self) -> None:
        result = parse_model_json('Here is the JSON: {"descriptions": [],} Thanks!')
        assert result.status is ParseStatus.RECOVERED
        assert result.value == {"descriptions": []}

    def test_unrecoverable(self) -> None:
        result = parse_model_json("I cannot watch videos.")
        assert result.status is ParseStatus.UNRECOVERABLE
        assert result.value is None
        assert result.error
        assert not result.ok

    def test_trailing_comma_with_colon_in_description(self) -> None:
        text = (
            '{"descriptions": [{"timestamp": "00:05", '
            '"description": "Slide reads, Agenda: intro"},]}'
        )

        result = parse_model_json(text)

        assert result.status is ParseStatus.RECOVERED
        assert result.value["descriptions"] == [
            {"timestamp": "00:05", "description": "Slide reads, Agenda: intro"}
        ]

    def test_unquoted_keys_with_colon_in_description(self) -> None:
        result = parse_model_json(
            '{descriptions: [{timestamp: "00:05", description: "Title, Step: one"}]}'
        )

        assert result.status is ParseStatus.RECOVERED
        assert result.value["descriptions"][0]["description"] == "Title, Step: one"
