"""CLI entry point for swagger-test-agent."""

from pathlib import Path

import click

from swagger_test_agent.config import DEFAULT_ENV_FILE, DEFAULT_SWAGGER_URL, Settings, load_settings
from swagger_test_agent.errors import ConfigError
from swagger_test_agent.generator.prompt import STYLES, TEST_CATEGORIES, PromptBuilder
from swagger_test_agent.generator.quality import QualityGate
from swagger_test_agent.generator.suite import SuiteGenerator
from swagger_test_agent.llm import LlmClient
from swagger_test_agent.log import configure_logging
from swagger_test_agent.output import endpoint_file_prefix, write_output
from swagger_test_agent.parser.swagger import extract_endpoints, load_source, operation_document, parse_document
from swagger_test_agent.targets import TARGETS, get_target

style_option = click.option(
    "--style", default="detailed", type=click.Choice(STYLES),
    help="Prompt style: detailed (grouped by resource, with suggestions) or compact.",
)
target_option = click.option(
    "--target", "target_name", default="java", type=click.Choice(list(TARGETS)),
    help="Language/framework of the generated tests.",
)
env_file_option = click.option(
    "--env-file", default=DEFAULT_ENV_FILE, type=click.Path(dir_okay=False, path_type=Path),
    help="Env file holding OPENAI_API_KEY and other settings.",
)
category_option = click.option(
    "--category", "categories", multiple=True, type=click.Choice(list(TEST_CATEGORIES)),
    help="Test category to request (repeatable). Default: all categories.",
)
verbose_option = click.option("-v", "--verbose", is_flag=True, help="Log debug details to stderr.")


def _setup(env_file: Path, verbose: bool) -> Settings:
    try:
        settings = load_settings(env_file)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    configure_logging("DEBUG" if verbose else settings.log_level)
    return settings


def _load_doc(source: str, settings: Settings, err: bool = False) -> dict:
    click.echo(f"Using API document: {source}", err=err)
    doc = parse_document(load_source(source, timeout=settings.fetch_timeout_seconds))
    click.echo(f"Found {len(extract_endpoints(doc))} endpoints.", err=err)
    return doc


@click.group()
def main():
    """Swagger Test Agent: generate API test suites from Swagger/OpenAPI docs with an LLM."""
    pass


@main.command()
@click.argument("source", required=False, default=DEFAULT_SWAGGER_URL)
@click.option("-o", "--output-dir", default=None, type=click.Path(file_okay=False, path_type=Path), help="Directory for the generated test file.")
@click.option("--strict/--lenient", default=True, help="Check the output size and re-prompt up to twice if it is too small.")
@click.option("--per-endpoint", is_flag=True, help="Generate one test file per operation instead of one suite.")
@style_option
@target_option
@category_option
@click.option("--model", default=None, help="LLM model to use.")
@click.option("--max-tokens", default=None, type=click.IntRange(min=1), help="Maximum tokens per LLM reply (default: LLM_MAX_TOKENS).")
@env_file_option
@verbose_option
def generate(source: str, output_dir: Path | None, strict: bool, per_endpoint: bool, style: str, target_name: str,
             categories: tuple[str, ...], model: str | None, max_tokens: int | None, env_file: Path, verbose: bool):
    """Generate a test suite for the API document at SOURCE (URL or file)."""
    settings = _setup(env_file, verbose)
    try:
        client = LlmClient.from_settings(settings, model=model, max_tokens=max_tokens)
    except ConfigError as e:
        click.echo(f"ERROR: {e}", err=True)
        return

    target = get_target(target_name)
    doc = _load_doc(source, settings)

    builder = PromptBuilder(
        style=style, target=target, min_lines=settings.min_lines,
        min_tests=settings.min_tests, categories=list(categories),
    )
    gate = QualityGate(settings.min_lines, settings.min_tests, target.test_pattern) if strict else None

    click.echo(f"Generating {target.framework} tests (model: {client.model}, quality gate: {'on' if strict else 'off'})...")
    generator = SuiteGenerator(client, builder, gate)
    directory = output_dir or Path("." if strict else target.test_source_dir)

    if not per_endpoint:
        result = generator.generate(doc)
        path = write_output(result.code, directory, target.file_prefix, target.extension)
        click.echo(f"Test code saved to {path} ({result.attempts} LLM call(s))")
        return

    calls = 0
    endpoints = extract_endpoints(doc)
    for ep in endpoints:
        click.echo(f"Processing endpoint: {ep.title}")
        result = generator.generate(operation_document(doc, ep))
        calls += result.attempts
        prefix = endpoint_file_prefix(target.file_prefix, ep.method, ep.path)
        path = write_output(result.code, directory, prefix, target.extension)
        click.echo(f"Test code saved to {path} ({result.attempts} LLM call(s))")
    click.echo(f"Generated {len(endpoints)} test files ({calls} LLM call(s))")


@main.command()
@click.argument("source", required=False, default=DEFAULT_SWAGGER_URL)
@click.option("-o", "--output", default=None, type=click.Path(dir_okay=False, path_type=Path), help="Write the prompt to this file instead of stdout.")
@click.option("--system", "with_system", is_flag=True, help="Include the system message.")
@style_option
@target_option
@category_option
@env_file_option
@verbose_option
def prompt(source: str, output: Path | None, with_system: bool, style: str, target_name: str,
           categories: tuple[str, ...], env_file: Path, verbose: bool):
    """Print the prompt for SOURCE without calling the LLM."""
    settings = _setup(env_file, verbose)
    builder = PromptBuilder(
        style=style, target=get_target(target_name),
        min_lines=settings.min_lines, min_tests=settings.min_tests, categories=list(categories),
    )
    # status lines go to stderr so stdout carries only the prompt
    doc = _load_doc(source, settings, err=True)

    text = builder.build(doc)
    if with_system:
        text = f"{builder.system_prompt()}\n\n---\n\n{text}"

    if output is None:
        click.echo(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    click.echo(f"Prompt saved to {output}")
