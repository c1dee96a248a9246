from __future__ import annotations

from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from error_analyzer.errors import EmptyInputError

DIAGNOSIS_KEYS = ("type", "cause", "solution", "prevention")


class Diagnosis(BaseModel):
    """Structured classification of one error message.

    All four keys are always present when serialized; unknown values are
    empty strings, never None.
    """

    model_config = ConfigDict(frozen=True)

    type: str = ""
    cause: str = ""
    solution: str = ""
    prevention: str = ""

    @field_validator("type", "cause", "solution", "prevention", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class AnalysisMode(BaseModel):
    model_config = ConfigDict(frozen=True)

    ai_enabled: bool = True
    credential: Optional[str] = None

    @property
    def has_credential(self) -> bool:
        return bool((self.credential or "").strip())


class AnalysisRequest(BaseModel):
    error_text: str = Field(min_length=1)

    @classmethod
    def from_text(cls, raw: Optional[str]) -> "AnalysisRequest":
        text = (raw or "").strip()
        if not text:
            raise EmptyInputError("Please enter an error message")
        return cls(error_text=text)


# --- Outcomes -------------------------------------------------------------


class AnalysisSuccess(BaseModel):
    kind: Literal["success"] = "success"
    diagnosis: Diagnosis

    def to_message(self, request_id: Optional[str] = None) -> Dict[str, Any]:
        msg: Dict[str, Any] = {"type": "analysis", "result": self.diagnosis.model_dump()}
        if request_id:
            msg["requestId"] = request_id
        return msg


class AnalysisFailure(BaseModel):
    kind: Literal["failure"] = "failure"
    message: str

    def to_message(self, request_id: Optional[str] = None) -> Dict[str, Any]:
        msg: Dict[str, Any] = {"type": "error", "message": self.message}
        if request_id:
            msg["requestId"] = request_id
        return msg


AnalysisOutcome = Annotated[
    Union[AnalysisSuccess, AnalysisFailure], Field(discriminator="kind")
]


# --- Inbound surface messages --------------------------------------------


class AnalyzeCommand(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    command: Literal["analyze"]
    error: Optional[str] = ""
    request_id: Optional[str] = Field(default=None, alias="requestId")


class GetSelectedTextCommand(BaseModel):
    command: Literal["getSelectedText"]


InboundMessage = Annotated[
    Union[AnalyzeCommand, GetSelectedTextCommand], Field(discriminator="command")
]

_inbound_adapter: TypeAdapter[InboundMessage] = TypeAdapter(InboundMessage)


def parse_inbound(raw: Any) -> Union[AnalyzeCommand, GetSelectedTextCommand]:
    """Validate a raw surface message. Raises pydantic.ValidationError."""

    return _inbound_adapter.validate_python(raw)


def selected_text_message(text: str) -> Dict[str, Any]:
    return {"command": "selectedText", "text": text}
