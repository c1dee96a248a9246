from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from error_analyzer.config import Settings
from error_analyzer.errors import ConfigurationError
from error_analyzer.reasoner.openai.client import call_chat_completion
from error_analyzer.reasoner.openai.prompts import (
    build_system_prompt,
    build_user_prompt,
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-3.5-turbo"


@dataclass
class OpenAIDiagnosisClient:
    """OpenAI-backed remote client.

    Returns the raw completion text; parsing and fallback belong to the
    pipeline. Sampling defaults favor repeatable answers.
    """

    model: str = DEFAULT_MODEL
    temperature: float = 0.3
    max_tokens: int = 1000
    timeout_s: float = 30.0
    base_url: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAIDiagnosisClient":
        return cls(
            model=settings.openai_model,
            temperature=settings.openai_temperature,
            max_tokens=settings.openai_max_tokens,
            timeout_s=settings.openai_timeout_s,
            base_url=settings.openai_base_url,
        )

    async def request_diagnosis(
        self, error_text: str, credential: Optional[str]
    ) -> str:
        api_key = (credential or "").strip()
        if not api_key:
            raise ConfigurationError(
                "OpenAI API key not configured. Set OPENAI_API_KEY "
                "or disable AI analysis with ANALYZER_USE_AI=false"
            )

        logger.info(
            "%s",
            {
                "event": "analyzer.openai_call_start",
                "model": self.model,
                "max_tokens": int(self.max_tokens),
                "error_chars": len(error_text or ""),
            },
        )
        return await call_chat_completion(
            api_key=api_key,
            model=self.model,
            system_msg=build_system_prompt(),
            user_msg=build_user_prompt(error_text),
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            timeout_s=self.timeout_s,
            base_url=self.base_url,
        )
