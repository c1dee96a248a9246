import pytest

from error_analyzer.controller.schemas import Diagnosis
from error_analyzer.errors import MalformedResponseError
from error_analyzer.reasoner.openai.parsing import (
    ResponseInterpreter,
    interpret,
    parse_diagnosis,
    strip_code_fence,
)

DEGRADED_PREVENTION = "AI response format error"


def test_well_formed_json_is_returned_exactly():
    d = interpret('{"type":"X","cause":"Y","solution":"Z","prevention":"W"}')
    assert d.model_dump() == {"type": "X", "cause": "Y", "solution": "Z", "prevention": "W"}


def test_not_json_is_wrapped_without_loss():
    d = interpret("not json")
    assert d.model_dump() == {
        "type": "AI Analysis",
        "cause": "Raw AI Response",
        "solution": "not json",
        "prevention": DEGRADED_PREVENTION,
    }


@pytest.mark.parametrize("raw", ["[1, 2, 3]", "42", '"just a string"', "null", "", "   "])
def test_non_object_json_is_degraded(raw):
    d = interpret(raw)
    assert d.type == "AI Analysis"
    assert d.solution == raw


@pytest.mark.parametrize(
    "raw", ['{"error": "I cannot help with that", "confidence": 0.2}', "{}"]
)
def test_object_without_diagnosis_keys_is_degraded(raw):
    d = interpret(raw)
    assert d.type == "AI Analysis"
    assert d.cause == "Raw AI Response"
    assert d.solution == raw
    with pytest.raises(MalformedResponseError):
        parse_diagnosis(raw)


def test_missing_and_null_keys_become_empty_strings():
    d = interpret('{"type": "Crash", "cause": null}')
    assert d == Diagnosis(type="Crash", cause="", solution="", prevention="")


def test_list_and_object_values_are_flattened():
    d = interpret(
        '{"type": "T", "cause": "C", "solution": ["step one", "step two"], '
        '"prevention": {"tip": "lint"}}'
    )
    assert d.solution == "step one\nstep two"
    assert d.prevention == '{"tip": "lint"}'


def test_extra_keys_are_ignored():
    d = interpret('{"type": "T", "cause": "C", "solution": "S", "prevention": "P", "confidence": 0.9}')
    assert set(d.model_dump()) == {"type", "cause", "solution", "prevention"}


def test_fenced_json_is_accepted():
    raw = '```json\n{"type": "T", "cause": "C", "solution": "S", "prevention": "P"}\n```'
    assert interpret(raw).type == "T"


def test_strip_code_fence_leaves_plain_text_alone():
    assert strip_code_fence("  plain  ") == "plain"


def test_parse_diagnosis_raises_on_bad_text():
    with pytest.raises(MalformedResponseError):
        parse_diagnosis("{not valid")


def test_interpreter_reports_parse_outcome():
    lines = []
    ResponseInterpreter().interpret("oops", lines.append)
    ResponseInterpreter().interpret('{"type": "T"}', lines.append)
    assert lines[0].startswith("Failed to parse JSON")
    assert lines[1] == "Successfully parsed JSON response"
