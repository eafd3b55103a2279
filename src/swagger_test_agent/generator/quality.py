"""Quality gate: cheap size heuristics deciding whether to re-prompt."""

import re

from pydantic import BaseModel

from swagger_test_agent.targets import JAVA

DEFAULT_MIN_LINES = 80
DEFAULT_MIN_TESTS = 8

# Appended to the user prompt on the 2nd and 3rd attempt respectively
ESCALATIONS = [
    (
        "\n\nIMPORTANT: your previous answer was too short. Generate a COMPLETE test file "
        "with at least {min_tests} separate test methods and at least {min_lines} lines of code. "
        "Cover every endpoint listed above."
    ),
    (
        "\n\nCRITICAL: the previous answers were incomplete and could not be used. "
        "Write EVERY test method in full; do not summarize, skip endpoints or use placeholders. "
        "The file MUST contain at least {min_tests} test methods and at least {min_lines} lines. "
        "Output only the code."
    ),
]


class QualityReport(BaseModel):
    line_count: int
    test_count: int
    passed: bool
    reasons: list[str] = []


class QualityGate:
    """Rejects generated code that is too short or has too few test methods."""

    def __init__(
        self,
        min_lines: int = DEFAULT_MIN_LINES,
        min_tests: int = DEFAULT_MIN_TESTS,
        test_pattern: str = JAVA.test_pattern,
    ):
        self.min_lines = min_lines
        self.min_tests = min_tests
        self.test_pattern = re.compile(test_pattern, re.MULTILINE)

    def check(self, code: str) -> QualityReport:
        line_count = sum(1 for line in code.splitlines() if line.strip())
        test_count = len(self.test_pattern.findall(code))

        reasons = []
        if line_count < self.min_lines:
            reasons.append(f"only {line_count} non-blank lines (minimum {self.min_lines})")
        if test_count < self.min_tests:
            reasons.append(f"only {test_count} test methods (minimum {self.min_tests})")

        return QualityReport(
            line_count=line_count,
            test_count=test_count,
            passed=not reasons,
            reasons=reasons,
        )

    def escalation(self, retry: int) -> str:
        """Extra prompt text for the given retry (1-based); the last one repeats."""
        template = ESCALATIONS[min(retry, len(ESCALATIONS)) - 1]
        return template.format(min_lines=self.min_lines, min_tests=self.min_tests)
