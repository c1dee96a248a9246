from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Protocol

MessageHandler = Callable[[Any], Awaitable[None]]
DisposeHandler = Callable[[], None]


class Surface(Protocol):
    """Presentation surface with a two-way message channel.

    `post_message` never raises: it returns False once the surface is gone so
    late results can be dropped quietly.
    """

    @property
    def disposed(self) -> bool:  # pragma: no cover
        ...

    async def post_message(self, message: Dict[str, Any]) -> bool:  # pragma: no cover
        ...

    async def reveal(self) -> None:  # pragma: no cover
        ...

    def on_did_receive_message(self, handler: MessageHandler) -> None:  # pragma: no cover
        ...

    def on_did_dispose(self, handler: DisposeHandler) -> None:  # pragma: no cover
        ...

    async def dispose(self) -> None:  # pragma: no cover
        ...


SurfaceFactory = Callable[[], Surface]


class SurfaceHandlers:
    """Handler bookkeeping shared by the concrete surfaces."""

    def __init__(self) -> None:
        self._message_handlers: list[MessageHandler] = []
        self._dispose_handlers: list[DisposeHandler] = []
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def on_did_receive_message(self, handler: MessageHandler) -> None:
        self._message_handlers.append(handler)

    def on_did_dispose(self, handler: DisposeHandler) -> None:
        self._dispose_handlers.append(handler)

    async def _dispatch(self, message: Any) -> None:
        for handler in list(self._message_handlers):
            await handler(message)

    def _mark_disposed(self) -> bool:
        """Flip to disposed and fire handlers once. Returns False if already disposed."""

        if self._disposed:
            return False
        self._disposed = True
        handlers, self._dispose_handlers = self._dispose_handlers, []
        self._message_handlers = []
        for handler in handlers:
            handler()
        return True
