"""Prompt builder: renders an OpenAPI document as an LLM instruction text."""

import json
from pathlib import Path

from swagger_test_agent.generator.quality import DEFAULT_MIN_LINES, DEFAULT_MIN_TESTS
from swagger_test_agent.parser.base import ApiEndpoint
from swagger_test_agent.parser.swagger import extract_endpoints, group_by_resource
from swagger_test_agent.targets import JAVA, TargetProfile

PROMPTS_DIR = Path(__file__).parent.parent / "prompts"

STYLES = ("detailed", "compact")

MAX_RESOURCE_GROUPS = 10

VERB_SUGGESTIONS = {
    "GET": [
        "Retrieve with valid parameters and verify the status code and response schema",
        "Filter and paginate with boundary values (0, 1, max, max+1)",
        "Request a non-existent resource and expect 404",
        "Call without credentials and expect 401/403",
    ],
    "POST": [
        "Create with a valid payload and verify 201/200 and the returned identifier",
        "Omit each required field and expect 400",
        "Send wrong data types and oversized strings and expect 400/422",
        "Submit the same payload twice and verify duplicate handling",
    ],
    "PUT": [
        "Update an existing resource and verify the change persists",
        "Update a non-existent resource and expect 404",
        "Send an incomplete or invalid payload and expect 400",
        "Repeat the same update and verify the result is unchanged",
    ],
    "DELETE": [
        "Delete an existing resource and verify a follow-up GET returns 404",
        "Delete a non-existent resource and expect 404",
        "Delete the same resource twice and verify idempotent behavior",
        "Delete without authorization and expect 401/403",
    ],
}

GENERIC_SUGGESTIONS = [
    "Call with valid input and verify the documented success response",
    "Call with invalid input and verify the error response",
    "Call without credentials and verify access control",
]

# Test categories the prompt asks for, in prompt order: key -> (title, what to cover)
TEST_CATEGORIES = {
    "happy-path": ("Happy path", "valid requests return the documented success status and body."),
    "negative": ("Negative", "missing, malformed or wrongly typed parameters and payloads."),
    "security": ("Authorization", "missing, invalid and expired credentials are rejected."),
    "boundary": ("Boundary", "minimum, maximum, empty and oversized values."),
    "workflow": ("Workflow", "chained API calls such as create -> fetch -> update -> delete."),
    "performance": ("Performance", "each response arrives within 3000 ms."),
    "validation": ("Validation", "response schema, required fields, headers and content type."),
    "idempotency": ("Idempotency", "repeated PUT and DELETE requests leave the same state."),
}


class PromptBuilder:
    """Renders the user prompt (and matching system prompt) for one document."""

    def __init__(
        self,
        style: str = "detailed",
        target: TargetProfile = JAVA,
        max_resources: int = MAX_RESOURCE_GROUPS,
        min_lines: int = DEFAULT_MIN_LINES,
        min_tests: int = DEFAULT_MIN_TESTS,
        categories: list[str] | None = None,
    ):
        if style not in STYLES:
            raise ValueError(f"Unknown prompt style {style!r}; choose one of: {', '.join(STYLES)}")
        unknown = [c for c in categories or [] if c not in TEST_CATEGORIES]
        if unknown:
            raise ValueError(f"Unknown test categories {unknown}; choose from: {', '.join(TEST_CATEGORIES)}")
        self.style = style
        self.target = target
        self.max_resources = max_resources
        self.min_lines = min_lines
        self.min_tests = min_tests
        # empty selection means all categories; document order is kept either way
        selected = set(categories or TEST_CATEGORIES)
        self.categories = [key for key in TEST_CATEGORIES if key in selected]

    def build(self, doc: dict) -> str:
        """Render the prompt for ``doc``. Raises SpecFormatError if it has no ``paths``."""
        endpoints = extract_endpoints(doc)
        if self.style == "compact":
            return self._render_compact(endpoints)
        return self._render_detailed(doc, endpoints)

    def system_prompt(self) -> str:
        return self._template("system.md")

    # -- detailed -------------------------------------------------------------

    def _render_detailed(self, doc: dict, endpoints: list[ApiEndpoint]) -> str:
        groups = group_by_resource(endpoints)
        shown = list(groups.items())[: self.max_resources]
        omitted = len(groups) - len(shown)

        lines = [
            "# API Test Generation Request",
            "",
            f"Generate a comprehensive {self.target.framework} test suite for the API described below.",
            "",
        ]
        lines.extend(_render_api_info(doc))
        lines.append(f"- Endpoints: {len(endpoints)} in {len(groups)} resource groups")
        lines.append("")

        for resource, group in shown:
            lines.append(f"## Resource: {resource}")
            lines.append("")
            for ep in group:
                lines.extend(self._render_endpoint_detailed(ep))
                lines.append("")

        if omitted:
            lines.append(
                f"(Only the first {len(shown)} resource groups are listed; "
                f"{omitted} more were omitted to keep the prompt focused.)"
            )
            lines.append("")

        lines.append(self._template("detailed.md", categories=self._category_lines(numbered=True)))
        return "\n".join(lines)

    def _render_endpoint_detailed(self, ep: ApiEndpoint) -> list[str]:
        lines = [f"#### {ep.method} {ep.path}"]
        if ep.summary:
            lines.append(f"- Summary: {ep.summary}")
        if ep.description:
            lines.append(f"- Description: {ep.description}")
        if ep.operation_id:
            lines.append(f"- Operation ID: {ep.operation_id}")

        if ep.parameters:
            lines.append("- Parameters:")
            for p in ep.parameters:
                flag = "required" if p.required else "optional"
                line = f"  - `{p.name}` ({p.location}, {p.param_type}, {flag})"
                if p.enum:
                    line += f" allowed values: {', '.join(str(v) for v in p.enum)}"
                lines.append(line)

        if ep.has_request_body:
            lines.append(f"- Request body ({ep.request_content_type or 'unspecified content type'}):")
            if ep.request_example is not None:
                lines.append("  ```json")
                example = json.dumps(ep.request_example, indent=2, ensure_ascii=False, default=str)
                lines.extend(f"  {line}" for line in example.splitlines())
                lines.append("  ```")

        if ep.responses:
            lines.append("- Responses:")
            for code, description in ep.responses.items():
                lines.append(f"  - {code}: {description}" if description else f"  - {code}")

        lines.append("- Suggested scenarios:")
        for suggestion in VERB_SUGGESTIONS.get(ep.method, GENERIC_SUGGESTIONS):
            lines.append(f"  - {suggestion}")
        return lines

    # -- compact --------------------------------------------------------------

    def _render_compact(self, endpoints: list[ApiEndpoint]) -> str:
        lines = [
            f"Generate {self.target.framework} API tests for the following Swagger API endpoints.",
            "Ensure the tests cover status codes, request parameters, and response validation.",
            "",
            "Swagger Documentation:",
        ]
        for ep in endpoints:
            lines.append("")
            lines.append(f"### Endpoint: {ep.method} {ep.path}")
            if ep.summary:
                lines.append(f"- Summary: {ep.summary}")
            if ep.parameters:
                lines.append("  - Parameters:")
                for p in ep.parameters:
                    flag = "[Required]" if p.required else "[Optional]"
                    lines.append(f"    - {p.name} ({p.param_type}) {flag}")
            if ep.responses:
                lines.append("  - Responses:")
                for code, description in ep.responses.items():
                    lines.append(f"    - {code}: {description}")
        lines.append("")
        lines.append(self._template("compact.md", categories=self._category_lines(numbered=False)))
        return "\n".join(lines)

    # -- shared ---------------------------------------------------------------

    def _category_lines(self, numbered: bool) -> str:
        lines = []
        for i, key in enumerate(self.categories, 1):
            title, what = TEST_CATEGORIES[key]
            bullet = f"{i}." if numbered else "-"
            lines.append(f"{bullet} {title}: {what}")
        return "\n".join(lines)

    def _template(self, name: str, categories: str = "") -> str:
        template = (PROMPTS_DIR / name).read_text(encoding="utf-8")
        return template.format(
            framework=self.target.framework,
            language=self.target.language,
            extension=self.target.extension,
            file_prefix=self.target.file_prefix,
            annotation_rule=self.target.annotation_rule,
            naming_rule=self.target.naming_rule,
            assertion_rule=self.target.assertion_rule,
            min_lines=self.min_lines,
            min_tests=self.min_tests,
            categories=categories,
        ).strip()


def _render_api_info(doc: dict) -> list[str]:
    info = doc.get("info") if isinstance(doc.get("info"), dict) else {}
    lines = []
    title = info.get("title")
    if title:
        version = info.get("version")
        lines.append(f"- API: {title}" + (f" (version {version})" if version else ""))

    base_url = _base_url(doc)
    if base_url:
        lines.append(f"- Base URL: {base_url}")
    return lines


def _base_url(doc: dict) -> str:
    servers = doc.get("servers")
    if isinstance(servers, list) and servers and isinstance(servers[0], dict):
        return str(servers[0].get("url", ""))
    if doc.get("host"):
        scheme = (doc.get("schemes") or ["https"])[0]
        return f"{scheme}://{doc['host']}{doc.get('basePath', '')}"
    return ""
