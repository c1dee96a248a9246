from __future__ import annotations

import json
import logging
from typing import Any, Dict

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from error_analyzer.surface.base import SurfaceHandlers

logger = logging.getLogger(__name__)

REVEAL_MESSAGE = {"command": "reveal"}


class WebSocketSurface(SurfaceHandlers):
    """Surface backed by one accepted WebSocket connection.

    `run()` owns the receive loop; the surface is disposed when the client
    disconnects or the host disposes it.
    """

    def __init__(self, websocket: WebSocket) -> None:
        super().__init__()
        self.websocket = websocket

    def _connected(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def post_message(self, message: Dict[str, Any]) -> bool:
        if self.disposed or not self._connected():
            return False
        try:
            await self.websocket.send_json(message)
        except (WebSocketDisconnect, RuntimeError) as exc:
            logger.info(
                "%s",
                {
                    "event": "analyzer.surface_send_dropped",
                    "error": f"{type(exc).__name__}:{exc}",
                },
            )
            return False
        return True

    async def reveal(self) -> None:
        await self.post_message(dict(REVEAL_MESSAGE))

    async def run(self) -> None:
        try:
            while not self.disposed:
                text = await self.websocket.receive_text()
                try:
                    message = json.loads(text)
                except ValueError:
                    logger.info(
                        "%s",
                        {"event": "analyzer.surface_bad_frame", "chars": len(text)},
                    )
                    continue
                await self._dispatch(message)
        except WebSocketDisconnect as exc:
            logger.debug(
                "%s", {"event": "analyzer.surface_disconnected", "code": exc.code}
            )
        finally:
            await self.dispose()

    async def dispose(self) -> None:
        if not self._mark_disposed():
            return
        if self._connected():
            await self.websocket.close()
