"""Data models for endpoints read from an OpenAPI/Swagger document.

These are transient: built while rendering a prompt, then discarded.
Every field defaults to empty/False when the source document omits it.
"""

from typing import Any

from pydantic import BaseModel


class Param(BaseModel):
    """A single API parameter (query, path, header, or cookie)."""

    name: str
    location: str = "query"  # query / path / header / cookie
    required: bool = False
    param_type: str = "string"  # string / integer / number / boolean / array / object
    enum: list[Any] = []
    description: str = ""


class ApiEndpoint(BaseModel):
    """A single API operation (one verb on one path)."""

    method: str  # GET / POST / PUT / DELETE / PATCH ...
    path: str  # /users/{id}
    summary: str = ""
    description: str = ""
    operation_id: str = ""
    tags: list[str] = []
    parameters: list[Param] = []
    has_request_body: bool = False
    request_content_type: str = ""
    request_example: Any = None
    responses: dict[str, str] = {}  # {status_code: description}

    @property
    def resource(self) -> str:
        """Resource group this endpoint belongs to (first path segment)."""
        return resource_name(self.path)

    @property
    def title(self) -> str:
        return f"{self.method} {self.path}"


def resource_name(path: str) -> str:
    """Derive the resource group name from a path.

    ``/users/{id}/posts`` -> ``users``; ``/health`` -> ``health``; ``/`` -> ``root``.
    """
    for segment in path.split("/"):
        segment = segment.strip().strip("{}")
        if segment:
            return segment
    return "root"
