from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
import openai
from openai import AsyncOpenAI

from error_analyzer.errors import RemoteServiceError

logger = logging.getLogger(__name__)


def _describe(exc: Exception) -> str:
    if isinstance(exc, openai.AuthenticationError):
        return "authentication failed (check the OpenAI API key)"
    if isinstance(exc, openai.RateLimitError):
        return "rate limited by the completion service"
    if isinstance(exc, openai.APITimeoutError):
        return "request timed out"
    if isinstance(exc, openai.APIConnectionError):
        return f"could not reach the completion service: {exc}"
    if isinstance(exc, openai.APIStatusError):
        return f"completion service returned HTTP {exc.status_code}: {exc.message}"
    return f"{type(exc).__name__}: {exc}"


async def call_chat_completion(
    *,
    api_key: str,
    model: str,
    system_msg: str,
    user_msg: str,
    temperature: float,
    max_tokens: int,
    timeout_s: float,
    base_url: Optional[str] = None,
) -> str:
    """Single chat completion call; returns the first choice's content.

    Every failure is raised as RemoteServiceError. No retries.
    """

    http_client = httpx.AsyncClient(timeout=timeout_s)
    try:
        client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url or None,
            http_client=http_client,
            max_retries=0,
        )

        create_kwargs: Dict[str, Any] = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_msg},
                {"role": "user", "content": user_msg},
            ],
            "temperature": float(temperature),
            "max_tokens": int(max_tokens),
        }

        try:
            resp = await client.chat.completions.create(**create_kwargs)
        except openai.OpenAIError as exc:
            status = getattr(exc, "status_code", None)
            raise RemoteServiceError(_describe(exc), status_code=status) from exc
        except httpx.HTTPError as exc:
            raise RemoteServiceError(
                f"could not reach the completion service: {exc}"
            ) from exc

        choices = getattr(resp, "choices", None) or []
        if not choices:
            raise RemoteServiceError("completion service returned no choices")

        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        logger.debug(
            "%s",
            {
                "event": "analyzer.openai_response_meta",
                "model": model,
                "finish_reason": getattr(choices[0], "finish_reason", None),
                "has_content": bool(content),
            },
        )
        return content if isinstance(content, str) else ""
    finally:
        await http_client.aclose()
