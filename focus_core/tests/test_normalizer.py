import json

import pytest

from focus_core.domain.exceptions import ParseError
from focus_core.pipeline.fallback import DEFAULT_SUGGESTIONS
from focus_core.pipeline.normalizer import (
    normalize_analysis,
    normalize_journal_insights,
    parse_model_json,
    strip_code_fences,
)


FULL = {
    "category": "Writing",
    "priority": "high",
    "estimatedTime": 90,
    "complexity": "low",
    "suggestions": ["Outline first", "Draft", "Edit"],
    "insights": "Start with the outline.",
}


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('```\n{"a": 1}\n```\n') == '{"a": 1}'
    assert strip_code_fences('  {"a": 1} ') == '{"a": 1}'


def test_valid_json_fields_equal_parsed_values():
    result = normalize_analysis(json.dumps(FULL))
    assert result.category == "Writing"
    assert result.priority == "high"
    assert result.estimated_time == 90
    assert result.complexity == "low"
    assert result.suggestions == ["Outline first", "Draft", "Edit"]
    assert result.insights == "Start with the outline."
    assert result.fallback is False


def test_fenced_json_is_parsed():
    result = normalize_analysis("```json\n" + json.dumps(FULL) + "\n```")
    assert result.category == "Writing"
    assert result.fallback is False


def test_missing_fields_take_defaults():
    result = normalize_analysis('{"priority": "low", "complexity": null}')
    assert result.priority == "low"
    assert result.category == "General"
    assert result.estimated_time == 30
    assert result.complexity == "medium"
    assert result.suggestions == list(DEFAULT_SUGGESTIONS)
    assert result.insights == ""
    assert result.fallback is False


def test_analysis_key_is_accepted_for_insights():
    assert normalize_analysis('{"analysis": "looks fine"}').insights == "looks fine"


@pytest.mark.parametrize(
    "raw",
    [
        "Sure! Break it into three steps.",
        '{"category": "Work",}',
        '```json\n{"category": "Wo',
        "[1, 2, 3]",
        "",
    ],
)
def test_unparseable_output_keeps_raw_text(raw):
    result = normalize_analysis(raw)
    assert result.insights == raw
    assert result.category == "General"
    assert result.priority == "medium"
    assert result.estimated_time == 30
    assert result.complexity == "medium"
    assert result.suggestions == list(DEFAULT_SUGGESTIONS)
    assert result.fallback is True


def test_parse_model_json_raises_parse_error():
    with pytest.raises(ParseError) as exc:
        parse_model_json('"just a string"')
    assert exc.value.code == "PARSE_ERROR"


def test_journal_insights_plain_text():
    result = normalize_journal_insights("You wrote a lot about sleep.\n")
    assert result.insights == "You wrote a lot about sleep."
    assert len(result.suggestions) == 2


def test_journal_insights_json():
    result = normalize_journal_insights('{"insights": "Good week", "suggestions": ["Rest"]}')
    assert result.insights == "Good week"
    assert result.suggestions == ["Rest"]
