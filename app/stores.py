from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Optional


class SelectionStore:
    """Latest editor selection pushed by an editor integration.

    Answers the surface's `getSelectedText` command.
    """

    def __init__(self, *, max_chars: int = 20000) -> None:
        self._lock = threading.Lock()
        self._text: Optional[str] = None
        self._updated_at: Optional[datetime] = None
        self._max_chars = max(1, int(max_chars))

    def set(self, text: Optional[str]) -> None:
        value = (text or "")[: self._max_chars]
        with self._lock:
            self._text = value or None
            self._updated_at = datetime.now(timezone.utc)

    def get(self) -> Optional[str]:
        with self._lock:
            return self._text

    def updated_at(self) -> Optional[datetime]:
        with self._lock:
            return self._updated_at

    def clear(self) -> None:
        with self._lock:
            self._text = None
            self._updated_at = None
