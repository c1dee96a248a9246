from __future__ import annotations

import copy
from typing import Any, Dict, List

from error_analyzer.surface.base import SurfaceHandlers


class InMemorySurface(SurfaceHandlers):
    """Surface that records what it is sent; `send()` plays the front end."""

    def __init__(self, title: str = "Error Analyzer") -> None:
        super().__init__()
        self.title = title
        self.messages: List[Dict[str, Any]] = []
        self.reveal_count = 0

    async def post_message(self, message: Dict[str, Any]) -> bool:
        if self.disposed:
            return False
        self.messages.append(copy.deepcopy(message))
        return True

    async def reveal(self) -> None:
        if not self.disposed:
            self.reveal_count += 1

    async def send(self, message: Any) -> None:
        if not self.disposed:
            await self._dispatch(message)

    async def dispose(self) -> None:
        self._mark_disposed()

    # The user closing the panel looks the same as a host dispose.
    close = dispose
