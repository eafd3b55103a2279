from pathlib import Path
from unittest.mock import patch, MagicMock

import pytest
from click.testing import CliRunner

from swagger_test_agent.cli import main
from swagger_test_agent.errors import SpecFormatError

FIXTURES = Path(__file__).parent / "fixtures"

GOOD_CODE = "\n".join(
    ["public class ApiTests {"]
    + [f"    @Test\n    public void test_{i}() {{}}" for i in range(3)]
    + ["}"]
)
GOOD_REPLY = f"```java\n{GOOD_CODE}\n```"
SHORT_REPLY = "```java\npublic class ApiTests {\n    @Test void a() {}\n}\n```"


def _response(content):
    mock_resp = MagicMock()
    mock_resp.choices = [MagicMock()]
    mock_resp.choices[0].message.content = content
    return mock_resp


@pytest.fixture
def env(monkeypatch, tmp_path):
    """Isolated settings: API key from the environment, no .env file, small gate."""
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("MIN_LINES", "5")
    monkeypatch.setenv("MIN_TESTS", "3")
    return ["--env-file", str(tmp_path / "missing.env")]


class TestCliGenerate:
    def test_missing_api_key(self, monkeypatch, tmp_path):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        runner = CliRunner()
        with patch("swagger_test_agent.cli.load_source") as mock_load:
            result = runner.invoke(main, [
                "generate", str(FIXTURES / "jobs.json"),
                "--env-file", str(tmp_path / "missing.env"),
            ])

        assert result.exit_code == 0
        assert "API key is missing" in result.output
        mock_load.assert_not_called()

    @patch("swagger_test_agent.llm.completion")
    def test_lenient_writes_first_reply(self, mock_completion, env, tmp_path):
        mock_completion.return_value = _response(SHORT_REPLY)
        output_dir = tmp_path / "out"

        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", str(FIXTURES / "jobs.json"),
            "-o", str(output_dir), "--lenient", *env,
        ])

        assert result.exit_code == 0, result.output
        assert mock_completion.call_count == 1
        (written,) = output_dir.glob("GeneratedApiTests_*.java")
        assert written.read_text(encoding="utf-8") == "public class ApiTests {\n    @Test void a() {}\n}"
        assert "Found 1 endpoints." in result.output

    @patch("swagger_test_agent.llm.completion")
    def test_strict_retries_then_saves_last(self, mock_completion, env, tmp_path):
        mock_completion.return_value = _response(SHORT_REPLY)
        output_dir = tmp_path / "out"

        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", str(FIXTURES / "petstore.json"), "-o", str(output_dir), *env,
        ])

        assert result.exit_code == 0, result.output
        assert mock_completion.call_count == 3
        assert "retrying" in result.output
        assert len(list(output_dir.glob("*.java"))) == 1

    @patch("swagger_test_agent.llm.completion")
    def test_strict_accepts_good_reply(self, mock_completion, env, tmp_path):
        mock_completion.return_value = _response(GOOD_REPLY)
        output_dir = tmp_path / "out"

        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", str(FIXTURES / "petstore.json"), "-o", str(output_dir), *env,
        ])

        assert result.exit_code == 0, result.output
        assert mock_completion.call_count == 1
        (written,) = output_dir.glob("*.java")
        assert written.read_text(encoding="utf-8") == GOOD_CODE

    @patch("swagger_test_agent.llm.completion")
    def test_lenient_default_directory(self, mock_completion, env, tmp_path):
        mock_completion.return_value = _response(GOOD_REPLY)

        runner = CliRunner()
        with runner.isolated_filesystem(temp_dir=tmp_path):
            result = runner.invoke(main, ["generate", str(FIXTURES / "jobs.json"), "--lenient", *env])
            assert result.exit_code == 0, result.output
            assert len(list(Path("src/test/java/tests").glob("GeneratedApiTests_*.java"))) == 1

    @patch("swagger_test_agent.llm.completion")
    def test_python_target(self, mock_completion, env, tmp_path):
        mock_completion.return_value = _response("```python\nclass TestJobs:\n    def test_a(self):\n        pass\n```")
        output_dir = tmp_path / "out"

        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", str(FIXTURES / "jobs.json"), "-o", str(output_dir),
            "--lenient", "--target", "python", *env,
        ])

        assert result.exit_code == 0, result.output
        assert len(list(output_dir.glob("test_generated_api_*.py"))) == 1
        system = mock_completion.call_args.kwargs["messages"][0]["content"]
        assert "pytest + requests" in system

    @patch("swagger_test_agent.llm.completion")
    def test_document_without_paths(self, mock_completion, env, tmp_path):
        doc = tmp_path / "broken.json"
        doc.write_text('{"openapi": "3.0.0", "info": {"title": "x"}}', encoding="utf-8")

        runner = CliRunner()
        result = runner.invoke(main, ["generate", str(doc), "-o", str(tmp_path / "out"), *env])

        assert result.exit_code != 0
        assert isinstance(result.exception, SpecFormatError)
        mock_completion.assert_not_called()
        assert not (tmp_path / "out").exists()

    @patch("swagger_test_agent.llm.completion")
    @patch("swagger_test_agent.cli.load_source")
    def test_url_source(self, mock_load, mock_completion, env, tmp_path):
        mock_load.return_value = (FIXTURES / "jobs.json").read_text(encoding="utf-8")
        mock_completion.return_value = _response(GOOD_REPLY)

        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", "https://jobs.example.com/swagger/v1/swagger.json",
            "-o", str(tmp_path / "out"), "--lenient", *env,
        ])

        assert result.exit_code == 0, result.output
        assert mock_load.call_args[0][0] == "https://jobs.example.com/swagger/v1/swagger.json"

    @patch("swagger_test_agent.llm.completion")
    def test_model_option(self, mock_completion, env, tmp_path):
        mock_completion.return_value = _response(GOOD_REPLY)

        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", str(FIXTURES / "jobs.json"), "-o", str(tmp_path / "out"),
            "--lenient", "--model", "gpt-4o-mini", *env,
        ])

        assert result.exit_code == 0, result.output
        assert mock_completion.call_args.kwargs["model"] == "gpt-4o-mini"
        assert mock_completion.call_args.kwargs["api_key"] == "sk-test"


class TestCliPrompt:
    def test_prints_prompt(self, env):
        runner = CliRunner()
        result = runner.invoke(main, ["prompt", str(FIXTURES / "jobs.json"), *env])

        assert result.exit_code == 0
        assert "#### GET /jobs" in result.output

    def test_compact_style(self, env):
        runner = CliRunner()
        result = runner.invoke(main, ["prompt", str(FIXTURES / "jobs.json"), "--style", "compact", *env])

        assert result.exit_code == 0
        assert "### Endpoint: GET /jobs" in result.output

    def test_with_system_to_file(self, env, tmp_path):
        output = tmp_path / "prompt.md"
        runner = CliRunner()
        result = runner.invoke(main, [
            "prompt", str(FIXTURES / "petstore.json"), "--system", "-o", str(output), *env,
        ])

        assert result.exit_code == 0
        text = output.read_text(encoding="utf-8")
        assert text.startswith("You are a senior test automation engineer")
        assert "## Resource: pets" in text

    def test_needs_no_api_key(self, monkeypatch, tmp_path):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        runner = CliRunner()
        result = runner.invoke(main, [
            "prompt", str(FIXTURES / "jobs.json"), "--env-file", str(tmp_path / "missing.env"),
        ])

        assert result.exit_code == 0
        assert "/jobs" in result.output


class TestCliGenerateOptions:
    @patch("swagger_test_agent.llm.completion")
    def test_per_endpoint_writes_one_file_per_operation(self, mock_completion, env, tmp_path):
        mock_completion.return_value = _response(GOOD_REPLY)
        output_dir = tmp_path / "out"

        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", str(FIXTURES / "petstore.json"), "-o", str(output_dir), "--per-endpoint", *env,
        ])

        assert result.exit_code == 0, result.output
        assert mock_completion.call_count == 6
        names = sorted(p.name.rsplit("_", 2)[0] for p in output_dir.glob("*.java"))
        assert names == [
            "GeneratedApiTests_DELETE_pets_petId",
            "GeneratedApiTests_GET_health",
            "GeneratedApiTests_GET_pets",
            "GeneratedApiTests_GET_pets_petId",
            "GeneratedApiTests_GET_users_id_posts",
            "GeneratedApiTests_POST_pets",
        ]
        for call in mock_completion.call_args_list:
            user = call.kwargs["messages"][1]["content"]
            assert len([line for line in user.splitlines() if line.startswith("#### ")]) == 1
        assert "Generated 6 test files (6 LLM call(s))" in result.output

    @patch("swagger_test_agent.llm.completion")
    def test_per_endpoint_retries_each_operation(self, mock_completion, env, tmp_path):
        mock_completion.side_effect = [_response(SHORT_REPLY), _response(GOOD_REPLY)]

        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", str(FIXTURES / "jobs.json"), "-o", str(tmp_path / "out"), "--per-endpoint", *env,
        ])

        assert result.exit_code == 0, result.output
        assert mock_completion.call_count == 2
        assert "Generated 1 test files (2 LLM call(s))" in result.output

    @patch("swagger_test_agent.llm.completion")
    def test_categories_and_max_tokens(self, mock_completion, env, tmp_path):
        mock_completion.return_value = _response(GOOD_REPLY)

        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", str(FIXTURES / "jobs.json"), "-o", str(tmp_path / "out"), "--lenient",
            "--category", "performance", "--category", "security", "--max-tokens", "2000", *env,
        ])

        assert result.exit_code == 0, result.output
        assert mock_completion.call_args.kwargs["max_tokens"] == 2000
        user = mock_completion.call_args.kwargs["messages"][1]["content"]
        assert "1. Authorization: " in user
        assert "2. Performance: " in user
        assert "Idempotency" not in user

    def test_unknown_category_rejected(self, env):
        runner = CliRunner()
        result = runner.invoke(main, ["prompt", str(FIXTURES / "jobs.json"), "--category", "fuzzing", *env])
        assert result.exit_code == 2

    @patch("swagger_test_agent.cli.load_source")
    def test_invalid_log_level(self, mock_load, env, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "verbose")

        runner = CliRunner()
        result = runner.invoke(main, ["generate", str(FIXTURES / "jobs.json"), *env])

        assert result.exit_code == 1
        assert "LOG_LEVEL" in result.output
        mock_load.assert_not_called()
