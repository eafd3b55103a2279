"""Output language profiles.

A profile tells the prompt builder which framework to ask for, tells the
extractor which markers identify a test class and a test method in the reply,
and tells the quality gate how to count test methods.
"""

from pydantic import BaseModel


class TargetProfile(BaseModel):
    """Language/framework the generated test suite is written in."""

    name: str
    language: str  # fence tag, e.g. ```java
    framework: str
    extension: str
    file_prefix: str
    class_marker: str  # substring that identifies a test class
    test_marker: str  # identifies a test method in free text
    test_pattern: str  # regex, one match per test method (re.MULTILINE)
    test_source_dir: str
    annotation_rule: str
    naming_rule: str
    assertion_rule: str


JAVA = TargetProfile(
    name="java",
    language="java",
    framework="JUnit 5 + RestAssured",
    extension="java",
    file_prefix="GeneratedApiTests",
    class_marker="public class",
    test_marker="@Test",
    test_pattern=r"@(?:Test|ParameterizedTest|RepeatedTest)\b",
    test_source_dir="src/test/java/tests",
    annotation_rule="Annotate every test method with `@Test` and give it a `@DisplayName`.",
    naming_rule="Name test methods `test_<EndpointName>_<Scenario>`, e.g. `test_GetJobs_WithValidData`.",
    assertion_rule="Use `given().when().then()` syntax with `statusCode()`, `body()` and `notNullValue()` assertions.",
)

PYTHON = TargetProfile(
    name="python",
    language="python",
    framework="pytest + requests",
    extension="py",
    file_prefix="test_generated_api",
    class_marker="class Test",
    test_marker="def test_",
    test_pattern=r"^\s*(?:async\s+)?def test_",
    test_source_dir="tests",
    annotation_rule="Group tests in `class Test<Resource>` classes; use `@pytest.mark.parametrize` for data variations.",
    naming_rule="Name test functions `test_<endpoint>_<scenario>`, e.g. `test_get_jobs_with_valid_data`.",
    assertion_rule="Use plain `assert` statements on `resp.status_code` and `resp.json()` fields.",
)

TARGETS: dict[str, TargetProfile] = {t.name: t for t in (JAVA, PYTHON)}


def get_target(name: str) -> TargetProfile:
    try:
        return TARGETS[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown target {name!r}; choose one of: {', '.join(TARGETS)}") from None
