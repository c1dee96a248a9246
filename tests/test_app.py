import pytest
from _fakes import FailingRemote, StaticRemote
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app.main import SESSION_BUSY_CLOSE_CODE, create_app
from error_analyzer.config import Settings
from error_analyzer.controller.schemas import AnalysisMode

AI_ON = AnalysisMode(ai_enabled=True, credential="sk-test")


def _client(remote=None, mode=AI_ON):
    app = create_app(
        Settings(log_level="WARNING"),
        remote=remote or StaticRemote(),
        mode_provider=lambda: mode,
    )
    return TestClient(app)


def test_health_and_config():
    with _client() as client:
        assert client.get("/api/health").json() == {"status": "ok", "session": "idle"}
        cfg = client.get("/api/config").json()
        assert cfg == {
            "ai_enabled": True,
            "credential_configured": True,
            "model": "gpt-3.5-turbo",
        }


def test_config_never_exposes_credential():
    with _client() as client:
        assert "sk-test" not in client.get("/api/config").text


def test_post_analyze_uses_remote():
    with _client() as client:
        r = client.post("/api/analyze", json={"error": "boom"})
        assert r.status_code == 200
        assert r.json() == {
            "result": {"type": "X", "cause": "Y", "solution": "Z", "prevention": "W"}
        }


def test_post_analyze_falls_back_on_remote_failure():
    with _client(FailingRemote()) as client:
        r = client.post("/api/analyze", json={"error": "Network request failed"})
        assert r.status_code == 200
        assert r.json()["result"]["type"] == "General Error"
        trace = client.get("/api/trace").json()
        assert trace["alerts"] == ["AI analysis failed: connection refused"]


def test_post_analyze_rejects_empty_text():
    with _client() as client:
        r = client.post("/api/analyze", json={"error": "   "})
        assert r.status_code == 422
        assert r.json()["detail"]["error"] == "empty_input"


def test_websocket_session_round_trip():
    with _client() as client:
        with client.websocket_connect("/api/session") as ws:
            assert client.get("/api/health").json()["session"] == "active"
            ws.send_json({"command": "analyze", "error": "boom", "requestId": "42"})
            assert ws.receive_json() == {
                "type": "analysis",
                "result": {"type": "X", "cause": "Y", "solution": "Z", "prevention": "W"},
                "requestId": "42",
            }
            ws.send_json({"command": "analyze", "error": ""})
            assert ws.receive_json() == {
                "type": "error",
                "message": "Please enter an error message",
            }


def test_websocket_selected_text():
    with _client() as client:
        client.put("/api/selection", json={"text": "Cannot read property 'id' of null"})
        with client.websocket_connect("/api/session") as ws:
            ws.send_json({"command": "getSelectedText"})
            assert ws.receive_json() == {
                "command": "selectedText",
                "text": "Cannot read property 'id' of null",
            }


def test_second_websocket_reveals_first_and_is_closed():
    with _client() as client:
        with client.websocket_connect("/api/session") as first:
            with client.websocket_connect("/api/session") as second:
                assert first.receive_json() == {"command": "reveal"}
                with pytest.raises(WebSocketDisconnect) as excinfo:
                    second.receive_json()
                assert excinfo.value.code == SESSION_BUSY_CLOSE_CODE
