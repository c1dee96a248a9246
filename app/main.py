from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, FastAPI, HTTPException, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from app.stores import SelectionStore
from error_analyzer.config import Settings, current_mode, load_settings
from error_analyzer.controller.pipeline import DiagnosisPipeline
from error_analyzer.controller.schemas import AnalysisRequest
from error_analyzer.controller.session import ModeProvider, SessionController
from error_analyzer.controller.trace import OutputChannel, setup_logging
from error_analyzer.errors import EmptyInputError
from error_analyzer.reasoner.base import RemoteDiagnosisClient
from error_analyzer.reasoner.openai_client import OpenAIDiagnosisClient
from error_analyzer.surface.websocket import WebSocketSurface

SESSION_BUSY_CLOSE_CODE = 1013


class AnalyzeBody(BaseModel):
    error: str = ""


class SelectionBody(BaseModel):
    text: Optional[str] = None


def create_app(
    settings: Optional[Settings] = None,
    *,
    remote: Optional[RemoteDiagnosisClient] = None,
    mode_provider: Optional[ModeProvider] = None,
) -> FastAPI:
    settings = settings or load_settings()

    setup_logging(settings.log_level, settings.log_file)
    logger = logging.getLogger("error-analyzer-api")

    app = FastAPI(title="React Native Error Analyzer API")

    if list(settings.cors_origins) == ["*"]:
        allow_origins = ["*"]
        allow_credentials = False
    else:
        allow_origins = list(settings.cors_origins)
        allow_credentials = True

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    channel = OutputChannel("RN Bug Analyzer")
    pipeline = DiagnosisPipeline(
        remote=remote or OpenAIDiagnosisClient.from_settings(settings),
        channel=channel,
    )
    selection = SelectionStore()
    modes = mode_provider or current_mode
    controller = SessionController(
        pipeline=pipeline,
        mode_provider=modes,
        selection_provider=selection.get,
        channel=channel,
    )

    app.state.settings = settings
    app.state.channel = channel
    app.state.pipeline = pipeline
    app.state.selection = selection
    app.state.controller = controller

    router = APIRouter(prefix="/api")

    @router.get("/health")
    def health() -> Dict[str, Any]:
        return {
            "status": "ok",
            "session": controller.state.value,
        }

    @router.get("/config")
    def config() -> Dict[str, Any]:
        mode = modes()
        return {
            "ai_enabled": mode.ai_enabled,
            "credential_configured": mode.has_credential,
            "model": settings.openai_model,
        }

    @router.post("/analyze")
    async def analyze(body: AnalyzeBody) -> Dict[str, Any]:
        try:
            request = AnalysisRequest.from_text(body.error)
        except EmptyInputError as exc:
            raise HTTPException(
                status_code=422, detail={"error": "empty_input", "message": str(exc)}
            ) from exc
        diagnosis = await pipeline.analyze(request.error_text, modes())
        return {"result": diagnosis.model_dump()}

    @router.put("/selection")
    def put_selection(body: SelectionBody) -> Dict[str, Any]:
        selection.set(body.text)
        updated = selection.updated_at()
        return {
            "has_selection": selection.get() is not None,
            "updated_at": updated.isoformat() if updated else None,
        }

    @router.get("/trace")
    def trace(limit: int = 200) -> Dict[str, Any]:
        lines = channel.lines()
        return {"lines": lines[-max(1, int(limit)) :], "alerts": channel.alerts()}

    app.include_router(router)

    @app.websocket("/api/session")
    async def session(websocket: WebSocket) -> None:
        await websocket.accept()
        surface = WebSocketSurface(websocket)
        active = await controller.open(lambda: surface)
        if active is not surface:
            logger.info("Analyzer already open in another client; revealed it instead")
            await websocket.close(
                code=SESSION_BUSY_CLOSE_CODE, reason="analyzer already open"
            )
            return
        await surface.run()

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        logger.info("Disposing analyzer session")
        await controller.dispose()
        await controller.wait_idle()

    return app
