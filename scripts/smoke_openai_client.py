from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Allow running as a standalone script without installing the repo as a package.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from error_analyzer.config import load_env_file, load_settings
from error_analyzer.reasoner.openai.parsing import ResponseInterpreter
from error_analyzer.reasoner.openai.prompts import (
    build_system_prompt,
    build_user_prompt,
)
from error_analyzer.reasoner.openai_client import OpenAIDiagnosisClient

SAMPLE_ERROR = (
    "TypeError: undefined is not an object (evaluating 'this.props.navigation.navigate')\n"
    "    at onPress (HomeScreen.js:42:31)"
)


def main() -> int:
    ap = argparse.ArgumentParser(
        description="Smoke test for OpenAIDiagnosisClient.request_diagnosis()"
    )
    ap.add_argument(
        "--error",
        default=SAMPLE_ERROR,
        help="Error text to send (default: a navigation null-reference error)",
    )
    ap.add_argument(
        "--model", default=None, help="Explicit model override (highest priority)"
    )
    ap.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="HTTP timeout seconds for the OpenAI call",
    )
    ap.add_argument(
        "--show-prompts",
        action="store_true",
        help="Print the exact system/user prompts sent to the model",
    )
    ap.add_argument(
        "--debug-raw",
        action="store_true",
        help="Print the raw model output (truncated) before interpretation",
    )
    args = ap.parse_args()

    # Load .env so OPENAI_API_KEY is picked up without exporting it.
    load_env_file(REPO_ROOT / ".env")
    settings = load_settings()

    client = OpenAIDiagnosisClient.from_settings(settings)
    if args.model:
        client.model = str(args.model)
    if args.timeout is not None:
        client.timeout_s = float(args.timeout)

    print(f"Resolved model: {client.model}")
    print(f"API key set: {bool(settings.credential)}")

    if args.show_prompts:
        print("\n=== SYSTEM PROMPT ===\n")
        print(build_system_prompt())
        print("\n=== USER PROMPT ===\n")
        print(build_user_prompt(args.error))

    raw = asyncio.run(client.request_diagnosis(args.error, settings.credential))

    if args.debug_raw:
        print("\n=== RAW MODEL OUTPUT (truncated) ===\n")
        print((raw or "")[:2000])

    trace: list[str] = []
    diagnosis = ResponseInterpreter().interpret(raw, trace.append)
    for line in trace:
        print(f"[interpreter] {line}")

    print("\n=== Diagnosis ===\n")
    print(json.dumps(diagnosis.model_dump(), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
