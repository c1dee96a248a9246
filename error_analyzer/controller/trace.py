from __future__ import annotations

import logging
import sys
from collections import deque
from pathlib import Path
from typing import Callable, Deque, List, Optional

logger = logging.getLogger(__name__)

AlertListener = Callable[[str], None]


class OutputChannel:
    """Ordered, append-only trace of pipeline stages plus user-facing alerts.

    Lines are mirrored to `logging`; the in-memory buffer is bounded.
    """

    def __init__(self, name: str = "Error Analyzer", *, max_lines: int = 1000) -> None:
        self.name = name
        self._lines: Deque[str] = deque(maxlen=max(1, int(max_lines)))
        self._alerts: Deque[str] = deque(maxlen=100)
        self._listeners: List[AlertListener] = []
        self._log = logging.getLogger(f"error_analyzer.trace.{_slug(name)}")

    def append_line(self, text: str) -> None:
        self._lines.append(str(text))
        self._log.info("%s", text)

    def show_error_message(self, text: str) -> None:
        self._alerts.append(str(text))
        self._log.warning("%s", text)
        for listener in list(self._listeners):
            try:
                listener(text)
            except Exception as exc:
                self._log.warning(
                    "Alert listener %r failed: %s: %s", listener, type(exc).__name__, exc
                )

    def on_alert(self, listener: AlertListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def lines(self) -> List[str]:
        return list(self._lines)

    def alerts(self) -> List[str]:
        return list(self._alerts)

    def clear(self) -> None:
        self._lines.clear()
        self._alerts.clear()


def _slug(name: str) -> str:
    return "".join(c if c.isalnum() else "_" for c in name.lower()).strip("_") or "channel"


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    log_level = getattr(logging, (level or "INFO").upper().strip(), logging.INFO)
    fmt = "%(asctime)s %(levelname)s %(name)s %(message)s"

    handlers: list[logging.Handler] = [logging.StreamHandler(stream=sys.stderr)]

    if log_file:
        try:
            p = Path(log_file)
            p.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(p, encoding="utf-8"))
        except OSError as exc:
            logging.getLogger(__name__).warning(
                "Failed to initialize ANALYZER_LOG_FILE=%r: %s", log_file, exc
            )

    logging.basicConfig(level=log_level, format=fmt, handlers=handlers, force=True)

    # httpx/openai log every request at INFO; the trace lines are enough.
    for noisy in ("httpx", "httpcore", "openai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
