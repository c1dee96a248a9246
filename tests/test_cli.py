import json

import pytest

from error_analyzer import __main__ as cli_mod
from error_analyzer.controller.schemas import Diagnosis


@pytest.fixture(autouse=True)
def no_dotenv(monkeypatch):
    monkeypatch.setattr(cli_mod, "load_env_file", lambda: None)
    monkeypatch.setenv("ANALYZER_LOG_LEVEL", "WARNING")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("ANALYZER_OPENAI_API_KEY", raising=False)


def test_analyze_no_ai_json(capsys):
    rc = cli_mod.cli(["analyze", "--no-ai", "--json", "Cannot read property 'x' of undefined"])
    assert rc == 0
    out = json.loads(capsys.readouterr().out)
    assert out["type"] == "Property Access Error"


def test_analyze_from_file(tmp_path, capsys):
    p = tmp_path / "err.txt"
    p.write_text("undefined is not an object\n  at App.js:10", encoding="utf-8")
    assert cli_mod.cli(["analyze", "--no-ai", "--file", str(p)]) == 0
    out = capsys.readouterr().out
    assert out.startswith("Type: Null Reference Error")
    assert "Root Cause: Attempting to access properties on an undefined object" in out


def test_analyze_without_key_falls_back_and_alerts(capsys):
    assert cli_mod.cli(["analyze", "--json", "Network request failed"]) == 0
    captured = capsys.readouterr()
    assert json.loads(captured.out)["cause"] == "Network request failed"
    assert "AI analysis failed" in captured.err


def test_analyze_empty_text_exits_2(monkeypatch, capsys):
    monkeypatch.setattr(cli_mod, "_read_error_text", lambda args: "   ")
    assert cli_mod.cli(["analyze", "--no-ai"]) == 2
    assert "Please enter an error message" in capsys.readouterr().err


def test_render_text_skips_empty_fields():
    text = cli_mod.render_text(Diagnosis(type="T", cause="", solution="S", prevention=""))
    assert text == "Type: T\n\nSolution: S"


def test_serve_runs_app_factory_with_settings(monkeypatch):
    import uvicorn

    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda target, **kw: calls.append((target, kw)))
    monkeypatch.setenv("ANALYZER_HOST", "0.0.0.0")
    monkeypatch.setenv("ANALYZER_PORT", "9100")

    assert cli_mod.cli(["serve"]) == 0
    assert cli_mod.cli(["serve", "--host", "127.0.0.2", "--port", "9200"]) == 0

    (target, kw), (_, override) = calls
    assert target == "app.main:create_app"
    assert kw == {"factory": True, "host": "0.0.0.0", "port": 9100, "log_level": "warning"}
    assert (override["host"], override["port"]) == ("127.0.0.2", 9200)
