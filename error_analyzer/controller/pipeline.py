from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Optional

from error_analyzer.controller.schemas import AnalysisMode, Diagnosis
from error_analyzer.controller.trace import OutputChannel
from error_analyzer.reasoner.base import Classifier, RemoteDiagnosisClient
from error_analyzer.reasoner.heuristic import HeuristicClassifier
from error_analyzer.reasoner.openai.parsing import ResponseInterpreter

logger = logging.getLogger(__name__)


def _preview(text: str, *, max_chars: int) -> str:
    t = (text or "").replace("\r\n", "\n")
    if len(t) <= max_chars:
        return t
    return t[: max_chars - 3] + "..."


@dataclass(frozen=True)
class RemoteAttempt:
    """Outcome of the remote path: exactly one of `diagnosis` / `error`."""

    diagnosis: Optional[Diagnosis] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.diagnosis is not None

    @property
    def error_message(self) -> str:
        if self.error is None:
            return ""
        return str(self.error) or type(self.error).__name__


@dataclass
class DiagnosisPipeline:
    """Remote-first analysis with a deterministic fallback.

    `analyze()` always returns a Diagnosis. Remote failures of any kind are
    reported on the output channel and answered by the heuristic classifier.
    """

    remote: RemoteDiagnosisClient
    classifier: Classifier = field(default_factory=HeuristicClassifier)
    interpreter: ResponseInterpreter = field(default_factory=ResponseInterpreter)
    channel: OutputChannel = field(default_factory=OutputChannel)

    async def analyze(self, error_text: str, mode: AnalysisMode) -> Diagnosis:
        trace = self.channel.append_line
        trace("Starting error analysis...")
        trace(f"AI Analysis enabled: {mode.ai_enabled}")

        if mode.ai_enabled:
            trace("Attempting AI analysis...")
            attempt = await self._try_remote(error_text, mode)
            if attempt.ok:
                trace("AI analysis completed")
                return attempt.diagnosis  # type: ignore[return-value]

            msg = attempt.error_message
            trace(f"AI analysis failed: {msg}")
            self.channel.show_error_message(f"AI analysis failed: {msg}")
            logger.warning(
                "%s",
                {
                    "event": "analyzer.remote_fallback",
                    "error": f"{type(attempt.error).__name__}:{msg}",
                },
            )

        trace("Using basic analysis")
        return self.classifier.classify(error_text)

    async def _try_remote(self, error_text: str, mode: AnalysisMode) -> RemoteAttempt:
        trace = self.channel.append_line
        try:
            trace("Checking API key configuration...")
            trace("API key found" if mode.has_credential else "No API key found")

            trace("Sending request to OpenAI...")
            trace(f"Error to analyze: {error_text}")
            raw_text = await self.remote.request_diagnosis(error_text, mode.credential)

            trace("Received response from OpenAI")
            trace(f"Raw AI response: {_preview(raw_text, max_chars=4000)}")

            return RemoteAttempt(diagnosis=self.interpreter.interpret(raw_text, trace))
        except Exception as exc:
            return RemoteAttempt(error=exc)


def describe(diagnosis: Diagnosis) -> str:
    return json.dumps(diagnosis.model_dump(), indent=2, ensure_ascii=False)
