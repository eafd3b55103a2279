"""OpenAPI / Swagger document loading and parsing.

Handles OpenAPI 3.x and Swagger 2.0 documents, fetched over HTTP or read from
disk, and turns their ``paths`` into ApiEndpoint models.
"""

import json
import logging
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import httpx
import yaml

from swagger_test_agent.errors import SpecFetchError, SpecFormatError

from .base import ApiEndpoint, Param

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "put", "post", "delete", "patch", "head", "options", "trace")

MAX_EXAMPLE_DEPTH = 4

FORMAT_EXAMPLES = {
    "date-time": "2024-01-01T12:00:00Z",
    "date": "2024-01-01",
    "email": "test@example.com",
    "uuid": "123e4567-e89b-12d3-a456-426614174000",
    "uri": "https://example.com",
    "password": "TestPassword123!",
}


# -- loading ------------------------------------------------------------------

def fetch_spec(url: str, timeout: float | None = None, transport: httpx.BaseTransport | None = None) -> str:
    """Download an API document with a blocking GET and return the body text.

    Raises SpecFetchError on transport failures and non-2xx responses.
    """
    client_kwargs: dict[str, Any] = {"follow_redirects": True, "transport": transport}
    if timeout is not None:
        client_kwargs["timeout"] = timeout

    try:
        with httpx.Client(**client_kwargs) as client:
            response = client.get(url)
            response.raise_for_status()
    except httpx.HTTPError as e:
        raise SpecFetchError(f"Could not download API document from {url}: {e}") from e

    logger.debug("Fetched %d bytes from %s", len(response.content), url)
    return response.text


def load_source(source: str, timeout: float | None = None, transport: httpx.BaseTransport | None = None) -> str:
    """Return the raw text of an API document given a URL or a local file path."""
    if urlparse(source).scheme in ("http", "https"):
        return fetch_spec(source, timeout=timeout, transport=transport)

    path = Path(source)
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise SpecFetchError(f"Could not read API document {path}: {e}") from e


def parse_document(text: str) -> dict:
    """Parse JSON (or YAML) text into the document mapping."""
    try:
        doc = json.loads(text)
    except json.JSONDecodeError:
        try:
            doc = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise SpecFormatError(f"API document is neither valid JSON nor YAML: {e}") from e

    if not isinstance(doc, dict):
        raise SpecFormatError("API document must be a JSON object at the top level.")
    return doc


# -- endpoints ----------------------------------------------------------------

def extract_endpoints(doc: dict) -> list[ApiEndpoint]:
    """Walk ``paths`` and return one ApiEndpoint per operation, in document order."""
    paths = doc.get("paths")
    if not isinstance(paths, dict):
        raise SpecFormatError(
            "API document does not contain a valid 'paths' object. Please check the API documentation."
        )

    endpoints = []
    for path, item in paths.items():
        item = _resolve(item, doc)
        if not isinstance(item, dict):
            continue
        shared_params = item.get("parameters", [])

        for method, operation in item.items():
            if method.lower() not in HTTP_METHODS or not isinstance(operation, dict):
                continue
            endpoints.append(_parse_operation(doc, str(path), method, operation, shared_params))

    logger.debug("Extracted %d endpoints", len(endpoints))
    return endpoints


def operation_document(doc: dict, endpoint: ApiEndpoint) -> dict:
    """Copy of ``doc`` whose ``paths`` hold only the operation behind ``endpoint``.

    Path-level parameters stay with the operation. The rest of the document is
    shared unchanged so ``$ref`` pointers still resolve.
    """
    item = _resolve(doc["paths"][endpoint.path], doc)
    kept = {
        key: value for key, value in item.items()
        if key == "parameters" or key.lower() == endpoint.method.lower()
    }
    return {**doc, "paths": {endpoint.path: kept}}


def group_by_resource(endpoints: list[ApiEndpoint]) -> dict[str, list[ApiEndpoint]]:
    """Group endpoints by resource name, keeping first-seen order."""
    groups: dict[str, list[ApiEndpoint]] = {}
    for ep in endpoints:
        groups.setdefault(ep.resource, []).append(ep)
    return groups


def _parse_operation(doc: dict, path: str, method: str, operation: dict, shared_params: list) -> ApiEndpoint:
    raw_params = _merge_parameters(doc, shared_params, operation.get("parameters", []))

    params = []
    body_param = None
    for p in raw_params:
        if p.get("in") == "body":
            body_param = p
            continue
        params.append(_parse_parameter(doc, p))

    has_body, content_type, example = _parse_request_body(doc, operation, body_param)

    return ApiEndpoint(
        method=method.upper(),
        path=path,
        summary=operation.get("summary") or "",
        description=operation.get("description") or "",
        operation_id=operation.get("operationId") or "",
        tags=[str(t) for t in operation.get("tags") or []],
        parameters=params,
        has_request_body=has_body,
        request_content_type=content_type,
        request_example=example,
        responses=_parse_responses(doc, operation.get("responses", {})),
    )


def _merge_parameters(doc: dict, shared: list, own: list) -> list[dict]:
    """Path-level parameters overlaid by operation-level ones (same name + location)."""
    merged: dict[tuple[str, str], dict] = {}
    for p in list(shared or []) + list(own or []):
        p = _resolve(p, doc)
        if not isinstance(p, dict) or "name" not in p:
            continue
        merged[(p["name"], p.get("in", "query"))] = p
    return list(merged.values())


def _parse_parameter(doc: dict, p: dict) -> Param:
    # Swagger 2 keeps type/enum on the parameter itself, OpenAPI 3 on its schema
    schema = _resolve(p.get("schema", {}), doc)
    if not isinstance(schema, dict):
        schema = {}
    param_type = schema.get("type") or p.get("type") or "string"
    if isinstance(param_type, list):
        param_type = next((t for t in param_type if t != "null"), "string")

    return Param(
        name=str(p["name"]),
        location=p.get("in", "query"),
        required=bool(p.get("required", False)),
        param_type=param_type,
        enum=list(schema.get("enum") or p.get("enum") or []),
        description=p.get("description") or "",
    )


def _parse_request_body(doc: dict, operation: dict, body_param: dict | None) -> tuple[bool, str, Any]:
    if body_param is not None:
        consumes = operation.get("consumes") or doc.get("consumes") or ["application/json"]
        return True, consumes[0], build_example(body_param.get("schema", {}), doc)

    body = _resolve(operation.get("requestBody"), doc)
    if not isinstance(body, dict):
        return False, "", None

    content = body.get("content") or {}
    if not content:
        return True, "", None

    content_type = "application/json" if "application/json" in content else next(iter(content))
    media = content[content_type] or {}
    if "example" in media:
        return True, content_type, media["example"]
    for named in (media.get("examples") or {}).values():
        named = _resolve(named, doc)
        if isinstance(named, dict) and "value" in named:
            return True, content_type, named["value"]
    return True, content_type, build_example(media.get("schema", {}), doc)


def _parse_responses(doc: dict, responses: dict) -> dict[str, str]:
    result = {}
    for status_code, resp in (responses or {}).items():
        resp = _resolve(resp, doc)
        description = resp.get("description", "") if isinstance(resp, dict) else ""
        result[str(status_code)] = description or ""
    return result


# -- examples -----------------------------------------------------------------

def build_example(schema: Any, doc: dict | None = None, name: str = "", _depth: int = 0) -> Any:
    """Synthesize an example value for a JSON schema.

    Declared ``example`` and ``enum`` values win; otherwise strings get a
    literal (canned values for well-known formats), numbers ``42``, booleans
    ``True``, arrays a two-element list and objects recurse over properties.
    """
    schema = _resolve(schema, doc or {})
    if not isinstance(schema, dict) or _depth > MAX_EXAMPLE_DEPTH:
        return None

    if "example" in schema:
        return schema["example"]
    if schema.get("enum"):
        return schema["enum"][0]

    for combinator in ("oneOf", "anyOf"):
        if schema.get(combinator):
            return build_example(schema[combinator][0], doc, name, _depth + 1)
    if schema.get("allOf"):
        schema = _merge_all_of(schema, doc or {})

    schema_type = schema.get("type")
    if isinstance(schema_type, list):
        schema_type = next((t for t in schema_type if t != "null"), None)
    if schema_type is None and "properties" in schema:
        schema_type = "object"

    if schema_type == "string":
        return FORMAT_EXAMPLES.get(schema.get("format", ""), f"sample_{name}" if name else "string")
    if schema_type in ("integer", "number"):
        return 42
    if schema_type == "boolean":
        return True
    if schema_type == "array":
        item = build_example(schema.get("items", {}), doc, name, _depth + 1)
        if item is None:
            return ["item1", "item2"]
        return [item, item]
    if schema_type == "object":
        return {
            prop: build_example(prop_schema, doc, prop, _depth + 1)
            for prop, prop_schema in (schema.get("properties") or {}).items()
        }
    return None


def _merge_all_of(schema: dict, doc: dict) -> dict:
    merged: dict[str, Any] = {"type": "object", "properties": {}}
    for part in schema["allOf"]:
        part = _resolve(part, doc)
        if isinstance(part, dict):
            merged["properties"].update(part.get("properties") or {})
    merged["properties"].update(schema.get("properties") or {})
    return merged


# -- $ref ---------------------------------------------------------------------

def _resolve(node: Any, doc: dict, _seen: frozenset = frozenset()) -> Any:
    """Follow local ``$ref`` pointers (``#/components/...``, ``#/definitions/...``)."""
    if not isinstance(node, dict) or "$ref" not in node:
        return node

    ref = node["$ref"]
    if not isinstance(ref, str) or not ref.startswith("#/") or ref in _seen:
        return {}

    target: Any = doc
    for part in ref[2:].split("/"):
        part = part.replace("~1", "/").replace("~0", "~")
        if not isinstance(target, dict) or part not in target:
            logger.debug("Unresolvable $ref %s", ref)
            return {}
        target = target[part]
    return _resolve(target, doc, _seen | {ref})
