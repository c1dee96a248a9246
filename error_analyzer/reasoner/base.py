from __future__ import annotations

from typing import Optional, Protocol

from error_analyzer.controller.schemas import Diagnosis


class RemoteDiagnosisClient(Protocol):
    """One remote completion call per request (stateless).

    Implementations must NOT:
    - parse the completion (that is the interpreter's job)
    - retry
    - fall back to heuristics
    """

    async def request_diagnosis(
        self, error_text: str, credential: Optional[str]
    ) -> str:  # pragma: no cover
        ...


class Classifier(Protocol):
    def classify(self, error_text: str) -> Diagnosis:  # pragma: no cover
        ...
