"""Suite generator: prompt -> LLM -> extract -> (quality gate -> re-prompt)."""

import logging

import click
from pydantic import BaseModel

from swagger_test_agent.generator.extract import extract_code
from swagger_test_agent.generator.prompt import PromptBuilder
from swagger_test_agent.generator.quality import QualityGate, QualityReport
from swagger_test_agent.llm import LlmClient

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3


class GenerationResult(BaseModel):
    code: str
    attempts: int
    report: QualityReport | None = None


class SuiteGenerator:
    """Generates one test suite source file for a whole API document.

    With a quality gate, a reply that fails the gate is re-requested with
    increasingly emphatic wording, at most ``max_attempts`` calls in total. The
    last reply is accepted whatever the gate says. Without a gate the first
    reply is accepted.
    """

    def __init__(
        self,
        client: LlmClient,
        builder: PromptBuilder,
        gate: QualityGate | None = None,
        max_attempts: int = MAX_ATTEMPTS,
    ):
        self.client = client
        self.builder = builder
        self.gate = gate
        self.max_attempts = max(1, max_attempts)

    def generate(self, doc: dict) -> GenerationResult:
        # Building first: a malformed document fails before any LLM call
        base_prompt = self.builder.build(doc)
        system = self.builder.system_prompt()
        target = self.builder.target

        prompt = base_prompt
        code = ""
        report = None
        for attempt in range(1, self.max_attempts + 1):
            response = self.client.call(system=system, user=prompt)
            code = extract_code(response, target)

            if self.gate is None:
                return GenerationResult(code=code, attempts=attempt)

            report = self.gate.check(code)
            logger.debug("Attempt %d quality: %s", attempt, report)
            if report.passed:
                click.echo(f"  Attempt {attempt}: {report.line_count} lines, {report.test_count} tests - accepted")
                break

            reasons = "; ".join(report.reasons)
            if attempt < self.max_attempts:
                click.echo(f"  Attempt {attempt}: {reasons}, retrying with a stronger prompt...")
                prompt = base_prompt + self.gate.escalation(attempt)
            else:
                click.echo(f"  Attempt {attempt}: {reasons}; accepting the last result.")

        return GenerationResult(code=code, attempts=attempt, report=report)
