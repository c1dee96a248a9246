from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from error_analyzer.controller.schemas import AnalysisMode

REPO_ROOT = Path(__file__).resolve().parents[1]


def load_env_file(path: Optional[Path] = None) -> None:
    """Load a local .env into the process environment (never overrides)."""

    load_dotenv(dotenv_path=path or REPO_ROOT / ".env", override=False)


def _split_csv(value: str) -> List[str]:
    items = [v.strip() for v in str(value).split(",")]
    return [v for v in items if v]


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    return default if raw is None else str(raw)


def _env_opt(*names: str) -> Optional[str]:
    for name in names:
        raw = (os.getenv(name) or "").strip()
        if raw:
            return raw
    return None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or str(raw).strip() == "":
        return bool(default)
    return str(raw).strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    try:
        return int(raw) if raw else int(default)
    except ValueError:
        return int(default)


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    try:
        return float(raw) if raw else float(default)
    except ValueError:
        return float(default)


@dataclass(frozen=True)
class Settings:
    ai_enabled: bool = True
    credential: Optional[str] = None

    openai_model: str = "gpt-3.5-turbo"
    openai_base_url: Optional[str] = None
    openai_timeout_s: float = 30.0
    openai_temperature: float = 0.3
    openai_max_tokens: int = 1000

    log_level: str = "INFO"
    log_file: Optional[str] = None

    host: str = "127.0.0.1"
    port: int = 8765
    cors_origins: Tuple[str, ...] = ("*",)

    def analysis_mode(self) -> AnalysisMode:
        return AnalysisMode(ai_enabled=self.ai_enabled, credential=self.credential)


def load_settings() -> Settings:
    defaults = Settings()
    return Settings(
        ai_enabled=_env_bool("ANALYZER_USE_AI", defaults.ai_enabled),
        credential=_env_opt("ANALYZER_OPENAI_API_KEY", "OPENAI_API_KEY"),
        openai_model=_env_str("ANALYZER_OPENAI_MODEL", defaults.openai_model).strip()
        or defaults.openai_model,
        openai_base_url=_env_opt("ANALYZER_OPENAI_BASE_URL"),
        openai_timeout_s=_env_float("ANALYZER_OPENAI_TIMEOUT_S", defaults.openai_timeout_s),
        openai_temperature=_env_float(
            "ANALYZER_OPENAI_TEMPERATURE", defaults.openai_temperature
        ),
        openai_max_tokens=_env_int("ANALYZER_OPENAI_MAX_TOKENS", defaults.openai_max_tokens),
        log_level=_env_str("ANALYZER_LOG_LEVEL", defaults.log_level).upper().strip(),
        log_file=_env_opt("ANALYZER_LOG_FILE"),
        host=_env_str("ANALYZER_HOST", defaults.host).strip() or defaults.host,
        port=_env_int("ANALYZER_PORT", defaults.port),
        cors_origins=tuple(_split_csv(_env_str("ANALYZER_CORS_ORIGINS", "*"))) or ("*",),
    )


def current_mode() -> AnalysisMode:
    """Read the analysis mode fresh from the environment."""

    return load_settings().analysis_mode()
