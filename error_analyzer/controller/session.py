from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Set

from pydantic import ValidationError

from error_analyzer.config import current_mode
from error_analyzer.controller.pipeline import DiagnosisPipeline, describe
from error_analyzer.controller.schemas import (
    AnalysisFailure,
    AnalysisMode,
    AnalysisRequest,
    AnalysisSuccess,
    AnalyzeCommand,
    GetSelectedTextCommand,
    parse_inbound,
    selected_text_message,
)
from error_analyzer.controller.trace import OutputChannel
from error_analyzer.errors import EmptyInputError
from error_analyzer.surface.base import Surface, SurfaceFactory

logger = logging.getLogger(__name__)

ModeProvider = Callable[[], AnalysisMode]
SelectionProvider = Callable[[], Optional[str]]

IN_PROGRESS_MESSAGE = "An analysis is already in progress"
INVALID_REQUEST_MESSAGE = "Analysis failed: invalid analyze request"


def _log(event: str, **fields) -> None:
    payload = {"event": event, **fields}
    logger.info("%s", payload)


class SessionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


@dataclass
class _Session:
    surface: Surface
    in_flight: Optional[asyncio.Task] = None

    @property
    def busy(self) -> bool:
        return self.in_flight is not None and not self.in_flight.done()


class SessionController:
    """Owns the single active surface and routes its messages to the pipeline.

    Idle --open--> Active (new surface); Active --open--> Active (reveal);
    Active --surface disposed--> Idle. A pending analysis is not cancelled
    when the surface goes away; its result is dropped.
    """

    def __init__(
        self,
        *,
        pipeline: DiagnosisPipeline,
        surface_factory: Optional[SurfaceFactory] = None,
        mode_provider: ModeProvider = current_mode,
        selection_provider: Optional[SelectionProvider] = None,
        channel: Optional[OutputChannel] = None,
    ) -> None:
        self.pipeline = pipeline
        self.surface_factory = surface_factory
        self.mode_provider = mode_provider
        self.selection_provider = selection_provider
        self.channel = channel or pipeline.channel

        self._session: Optional[_Session] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def state(self) -> SessionState:
        return SessionState.ACTIVE if self._session is not None else SessionState.IDLE

    @property
    def surface(self) -> Optional[Surface]:
        return self._session.surface if self._session is not None else None

    async def open(self, factory: Optional[SurfaceFactory] = None) -> Surface:
        """Show the analyzer: create the surface once, reveal it afterwards."""

        if self._session is not None:
            await self._session.surface.reveal()
            _log("analyzer.surface_revealed")
            return self._session.surface

        make = factory or self.surface_factory
        if make is None:
            raise ValueError("SessionController.open() needs a surface factory")

        surface = make()
        session = _Session(surface=surface)

        async def _on_message(raw: Any) -> None:
            await self._handle_message(session, raw)

        surface.on_did_receive_message(_on_message)
        surface.on_did_dispose(lambda: self._on_disposed(session))
        self._session = session

        self.channel.append_line("Webview panel created")
        _log("analyzer.surface_created")
        return surface

    async def dispose(self) -> None:
        """Host shutdown: close the active surface, if any."""

        if self._session is not None:
            await self._session.surface.dispose()

    async def wait_idle(self) -> None:
        """Wait for every dispatched analysis to finish (delivered or dropped)."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _on_disposed(self, session: _Session) -> None:
        if self._session is session:
            self._session = None
            self.channel.append_line("Webview panel disposed")
            _log("analyzer.surface_disposed", pending=session.busy)

    async def _handle_message(self, session: _Session, raw: Any) -> None:
        try:
            message = parse_inbound(raw)
        except ValidationError as exc:
            command = raw.get("command") if isinstance(raw, dict) else None
            if command == "analyze":
                await self._reject_invalid_analyze(session, raw, exc)
                return
            self.channel.append_line(f"Ignoring message: {command!r}")
            _log(
                "analyzer.message_ignored",
                command=command,
                errors=exc.error_count(),
            )
            return

        self.channel.append_line(f"Received message: {message.command}")
        if isinstance(message, AnalyzeCommand):
            await self._handle_analyze(session, message)
        elif isinstance(message, GetSelectedTextCommand):
            await self._handle_selected_text(session)

    async def _reject_invalid_analyze(
        self, session: _Session, raw: Dict[str, Any], exc: ValidationError
    ) -> None:
        request_id = raw.get("requestId")
        if not isinstance(request_id, str):
            request_id = None
        fields = ", ".join(
            ".".join(str(p) for p in err["loc"]) or "message" for err in exc.errors()
        )
        self.channel.append_line(f"Invalid analyze request: {fields}")
        _log("analyzer.analyze_invalid", errors=exc.error_count())
        await session.surface.post_message(
            AnalysisFailure(message=INVALID_REQUEST_MESSAGE).to_message(request_id)
        )

    async def _handle_analyze(self, session: _Session, message: AnalyzeCommand) -> None:
        request_id = message.request_id
        try:
            request = AnalysisRequest.from_text(message.error)
        except EmptyInputError as exc:
            await session.surface.post_message(
                AnalysisFailure(message=str(exc)).to_message(request_id)
            )
            return

        if session.busy:
            _log("analyzer.analysis_rejected", reason="in_flight")
            await session.surface.post_message(
                AnalysisFailure(message=IN_PROGRESS_MESSAGE).to_message(request_id)
            )
            return

        task = asyncio.create_task(self._run_analysis(session, request, request_id))
        session.in_flight = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_analysis(
        self, session: _Session, request: AnalysisRequest, request_id: Optional[str]
    ) -> None:
        trace = self.channel.append_line
        trace("Starting analysis...")
        try:
            diagnosis = await self.pipeline.analyze(
                request.error_text, self.mode_provider()
            )
            trace("Analysis completed. Sending results to webview...")
            trace(f"Analysis result: {describe(diagnosis)}")
            outcome = AnalysisSuccess(diagnosis=diagnosis).to_message(request_id)
        except Exception as exc:
            trace(f"Error during analysis: {exc}")
            outcome = AnalysisFailure(message=f"Analysis failed: {exc}").to_message(
                request_id
            )

        if not await session.surface.post_message(outcome):
            trace("Surface closed before the analysis finished; result dropped")

    async def _handle_selected_text(self, session: _Session) -> None:
        if self.selection_provider is None:
            return
        text = self.selection_provider()
        if text:
            await session.surface.post_message(selected_text_message(text))
