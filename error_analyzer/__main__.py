from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import sys
from typing import List, Optional

from error_analyzer.config import Settings, load_env_file, load_settings
from error_analyzer.controller.pipeline import DiagnosisPipeline
from error_analyzer.controller.schemas import AnalysisRequest, Diagnosis
from error_analyzer.controller.trace import OutputChannel, setup_logging
from error_analyzer.errors import EmptyInputError
from error_analyzer.reasoner.openai_client import OpenAIDiagnosisClient

_LABELS = (
    ("type", "Type"),
    ("cause", "Root Cause"),
    ("solution", "Solution"),
    ("prevention", "Prevention"),
)


def _build_pipeline(settings: Settings, channel: OutputChannel) -> DiagnosisPipeline:
    return DiagnosisPipeline(
        remote=OpenAIDiagnosisClient.from_settings(settings),
        channel=channel,
    )


def _read_error_text(args: argparse.Namespace) -> str:
    if args.file:
        with open(args.file, "r", encoding="utf-8") as f:
            return f.read()
    if args.text:
        return " ".join(args.text)
    if not sys.stdin.isatty():
        return sys.stdin.read()
    return ""


def render_text(diagnosis: Diagnosis) -> str:
    parts: List[str] = []
    for key, label in _LABELS:
        value = getattr(diagnosis, key)
        if value:
            parts.append(f"{label}: {value}")
    return "\n\n".join(parts)


def _run_analyze(args: argparse.Namespace, settings: Settings) -> int:
    try:
        request = AnalysisRequest.from_text(_read_error_text(args))
    except EmptyInputError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    if args.no_ai:
        settings = dataclasses.replace(settings, ai_enabled=False)
    if args.model:
        settings = dataclasses.replace(settings, openai_model=str(args.model))

    channel = OutputChannel("RN Bug Analyzer")
    channel.on_alert(lambda text: print(text, file=sys.stderr))
    pipeline = _build_pipeline(settings, channel)

    diagnosis = asyncio.run(
        pipeline.analyze(request.error_text, settings.analysis_mode())
    )
    if args.json:
        print(json.dumps(diagnosis.model_dump(), indent=2, ensure_ascii=False))
    else:
        print(render_text(diagnosis))
    return 0


def _run_serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    uvicorn.run(
        "app.main:create_app",
        factory=True,
        host=args.host or settings.host,
        port=int(args.port or settings.port),
        log_level=settings.log_level.lower(),
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="error-analyzer", add_help=True)
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_an = sub.add_parser("analyze", help="Analyze one error message and print the diagnosis.")
    p_an.add_argument("text", nargs="*", help="Error text (default: read stdin).")
    p_an.add_argument("--file", default=None, help="Read the error text from a file.")
    p_an.add_argument(
        "--no-ai",
        dest="no_ai",
        action="store_true",
        help="Skip the OpenAI call and use the rule-based classifier only.",
    )
    p_an.add_argument("--model", default=None, help="Explicit OpenAI model override.")
    p_an.add_argument("--json", action="store_true", help="Print the diagnosis as JSON.")

    p_srv = sub.add_parser("serve", help="Run the HTTP/WebSocket analyzer surface.")
    p_srv.add_argument("--host", default=None)
    p_srv.add_argument("--port", type=int, default=None)

    return parser


def cli(argv: Optional[List[str]] = None) -> int:
    load_env_file()
    args = build_parser().parse_args(argv)
    settings = load_settings()
    setup_logging(settings.log_level, settings.log_file)

    if args.cmd == "analyze":
        return _run_analyze(args, settings)
    return _run_serve(args, settings)


def main() -> None:  # pragma: no cover
    sys.exit(cli())


if __name__ == "__main__":  # pragma: no cover
    main()
