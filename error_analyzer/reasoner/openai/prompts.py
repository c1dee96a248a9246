from __future__ import annotations

import json

from error_analyzer.controller.schemas import DIAGNOSIS_KEYS

_SHAPE_HINTS = {
    "type": "error type here",
    "cause": "detailed cause here",
    "solution": "solution with code examples here",
    "prevention": "prevention tips here",
}


def response_shape() -> str:
    """The JSON object shape the model must answer with."""

    return json.dumps({k: _SHAPE_HINTS[k] for k in DIAGNOSIS_KEYS}, indent=2)


def build_system_prompt() -> str:
    """Create the system prompt.

    Keep it focused on the role and the output contract; the Diagnosis model
    in `controller/schemas.py` is the source of truth for the keys.
    """

    keys = ", ".join(f'"{k}"' for k in DIAGNOSIS_KEYS)
    return (
        "You are a React Native expert. Analyze runtime errors from React Native apps "
        "and explain what went wrong and how to fix it.\n\n"
        "Output rules (STRICT):\n"
        "- Return ONE JSON object only (no markdown, no code fences, no extra text).\n"
        f"- Use exactly these string keys: {keys}.\n"
        "- Code samples go inside the \"solution\" string as plain text."
    )


def build_user_prompt(error_text: str) -> str:
    """Create the user message carrying the literal error text."""

    return (
        "Analyze this React Native error and provide a solution in this exact JSON format:\n"
        f"{response_shape()}\n\n"
        f"Error: {error_text}"
    )
