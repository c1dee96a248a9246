import asyncio

from _fakes import FailingRemote, StaticRemote

from error_analyzer.controller.pipeline import DiagnosisPipeline, RemoteAttempt
from error_analyzer.controller.schemas import AnalysisMode, Diagnosis
from error_analyzer.controller.trace import OutputChannel
from error_analyzer.errors import ConfigurationError
from error_analyzer.reasoner.heuristic import classify_error
from error_analyzer.reasoner.openai_client import OpenAIDiagnosisClient

AI_ON = AnalysisMode(ai_enabled=True, credential="sk-test")
AI_OFF = AnalysisMode(ai_enabled=False, credential="sk-test")


def _run(pipeline, text, mode):
    return asyncio.run(pipeline.analyze(text, mode))


def test_heuristic_only_mode_never_calls_remote():
    remote = FailingRemote()
    pipeline = DiagnosisPipeline(remote=remote)
    d = _run(pipeline, "Cannot read property 'x' of null", AI_OFF)
    assert d.type == "Property Access Error"
    assert remote.calls == 0


def test_remote_failure_falls_back_to_heuristic():
    channel = OutputChannel()
    pipeline = DiagnosisPipeline(remote=FailingRemote(), channel=channel)
    text = "undefined is not an object (evaluating 'a.b')"
    d = _run(pipeline, text, AI_ON)
    assert d == classify_error(text)
    assert channel.alerts() == ["AI analysis failed: connection refused"]
    assert "Using basic analysis" in channel.lines()


def test_any_exception_falls_back():
    pipeline = DiagnosisPipeline(remote=FailingRemote(ZeroDivisionError("boom")))
    d = _run(pipeline, "Network request failed", AI_ON)
    assert d.type == "General Error"
    assert d.cause == "Network request failed"


def test_missing_credential_falls_back_without_network():
    channel = OutputChannel()
    pipeline = DiagnosisPipeline(remote=OpenAIDiagnosisClient(), channel=channel)
    d = _run(pipeline, "Network request failed", AnalysisMode(ai_enabled=True, credential=None))
    assert d == classify_error("Network request failed")
    assert "No API key found" in channel.lines()
    assert channel.alerts()[0].startswith("AI analysis failed: OpenAI API key not configured")


def test_successful_remote_is_preferred():
    remote = StaticRemote()
    pipeline = DiagnosisPipeline(remote=remote)
    d = _run(pipeline, "undefined is not an object", AI_ON)
    assert d == Diagnosis(type="X", cause="Y", solution="Z", prevention="W")
    assert remote.calls == [("undefined is not an object", "sk-test")]


def test_malformed_remote_output_is_degraded_not_fallback():
    channel = OutputChannel()
    pipeline = DiagnosisPipeline(remote=StaticRemote("Here is my answer"), channel=channel)
    d = _run(pipeline, "Network request failed", AI_ON)
    assert d.type == "AI Analysis"
    assert d.solution == "Here is my answer"
    assert channel.alerts() == []


def test_trace_never_contains_credential():
    channel = OutputChannel()
    pipeline = DiagnosisPipeline(remote=StaticRemote(), channel=channel)
    _run(pipeline, "boom", AnalysisMode(ai_enabled=True, credential="sk-secret-123"))
    assert not any("sk-secret-123" in line for line in channel.lines())


def test_remote_attempt_error_message():
    attempt = RemoteAttempt(error=ConfigurationError(""))
    assert not attempt.ok
    assert attempt.error_message == "ConfigurationError"
