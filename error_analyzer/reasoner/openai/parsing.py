from __future__ import annotations

import json
import re
from typing import Any, Callable, Optional

from error_analyzer.controller.schemas import DIAGNOSIS_KEYS, Diagnosis
from error_analyzer.errors import MalformedResponseError

# A whole response wrapped in one ```json ... ``` fence.
_FENCE_RE = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?\s*```$", re.DOTALL)


def strip_code_fence(text: str) -> str:
    s = (text or "").strip()
    m = _FENCE_RE.match(s)
    return m.group(1).strip() if m else s


def _field_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return "\n".join(_field_text(v) for v in value)
    if isinstance(value, (dict, bool, int, float)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def parse_diagnosis(raw_text: Optional[str]) -> Diagnosis:
    """Parse model output as a Diagnosis object.

    Raises MalformedResponseError when the text is not a JSON object or the
    object carries none of the diagnosis keys.
    Missing keys become empty strings; extra keys are dropped.
    """

    body = strip_code_fence(raw_text or "")
    if not body:
        raise MalformedResponseError("empty response")

    try:
        obj = json.loads(body)
    except ValueError as exc:
        raise MalformedResponseError(f"invalid JSON: {exc}") from exc

    if not isinstance(obj, dict):
        raise MalformedResponseError(
            f"expected a JSON object, got {type(obj).__name__}"
        )
    if not any(k in obj for k in DIAGNOSIS_KEYS):
        raise MalformedResponseError("JSON object has none of the diagnosis keys")

    return Diagnosis(**{k: _field_text(obj.get(k)) for k in DIAGNOSIS_KEYS})


def degraded_diagnosis(raw_text: Optional[str]) -> Diagnosis:
    """Wrap unparseable output so the user still sees all of it."""

    return Diagnosis(
        type="AI Analysis",
        cause="Raw AI Response",
        solution=raw_text or "",
        prevention="AI response format error",
    )


def interpret(raw_text: Optional[str]) -> Diagnosis:
    """Turn raw completion text into a Diagnosis. Never raises."""

    try:
        return parse_diagnosis(raw_text)
    except MalformedResponseError:
        return degraded_diagnosis(raw_text)


class ResponseInterpreter:
    def interpret(
        self, raw_text: Optional[str], trace: Optional[Callable[[str], None]] = None
    ) -> Diagnosis:
        try:
            diagnosis = parse_diagnosis(raw_text)
        except MalformedResponseError as exc:
            if trace is not None:
                trace(f"Failed to parse JSON: {exc}")
            return degraded_diagnosis(raw_text)
        if trace is not None:
            trace("Successfully parsed JSON response")
        return diagnosis
