from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from error_analyzer.controller.schemas import Diagnosis


@dataclass(frozen=True)
class HeuristicRule:
    needle: str
    type: str
    cause: str
    solution: str
    prevention: str

    def matches(self, lowered: str) -> bool:
        return self.needle in lowered

    def diagnosis(self) -> Diagnosis:
        return Diagnosis(
            type=self.type,
            cause=self.cause,
            solution=self.solution,
            prevention=self.prevention,
        )


# Order matters: the first matching rule wins. New rules go at the end.
DEFAULT_RULES: Tuple[HeuristicRule, ...] = (
    HeuristicRule(
        needle="undefined is not an object",
        type="Null Reference Error",
        cause="Attempting to access properties on an undefined object",
        solution="Add null checks before accessing properties",
        prevention="Use static typing and initialize variables",
    ),
    HeuristicRule(
        needle="cannot read property",
        type="Property Access Error",
        cause="Trying to access a property on null/undefined",
        solution="Use optional chaining or add null checks",
        prevention="Add proper type checking and default values",
    ),
    HeuristicRule(
        needle="is not a function",
        type="Type Error",
        cause="Calling a value that is not a function (often an undefined callback or wrong import)",
        solution="Check the import/export of the callee and that callback props are passed",
        prevention="Type callback props and verify default vs named exports",
    ),
    HeuristicRule(
        needle="maximum update depth exceeded",
        type="Render Loop Error",
        cause="A component updates state on every render or in an effect without dependencies",
        solution="Move state updates out of render and give useEffect a dependency array",
        prevention="Avoid setState during render and memoize values passed to effects",
    ),
    HeuristicRule(
        needle="too many re-renders",
        type="Render Loop Error",
        cause="State is set unconditionally during render, causing an infinite loop",
        solution="Wrap event handlers in functions instead of calling them during render",
        prevention="Only update state from event handlers or effects",
    ),
    HeuristicRule(
        needle="unable to resolve module",
        type="Module Resolution Error",
        cause="Metro bundler cannot find the imported module",
        solution="Install the missing package, fix the import path and restart Metro with --reset-cache",
        prevention="Keep dependencies in package.json and prefer absolute import aliases",
    ),
    HeuristicRule(
        needle="invariant violation",
        type="Invariant Violation",
        cause="React Native detected an invalid state, such as an unregistered component or a bad native module call",
        solution="Read the full invariant message; check AppRegistry names and native module linking",
        prevention="Rebuild the native app after adding native dependencies",
    ),
)


@dataclass(frozen=True)
class HeuristicClassifier:
    """Deterministic rule-based classifier (no I/O, never fails)."""

    rules: Tuple[HeuristicRule, ...] = DEFAULT_RULES

    def classify(self, error_text: str) -> Diagnosis:
        text = error_text or ""
        lowered = text.lower()
        rule = self.first_match(lowered)
        if rule is not None:
            return rule.diagnosis()

        return Diagnosis(
            type="General Error",
            cause=text,
            solution="Check component lifecycle and props",
            prevention="Add error boundaries and logging",
        )

    def first_match(self, lowered: str) -> Optional[HeuristicRule]:
        for rule in self.rules:
            if rule.matches(lowered):
                return rule
        return None


_DEFAULT = HeuristicClassifier()


def classify_error(error_text: str) -> Diagnosis:
    return _DEFAULT.classify(error_text)
