"""Exception types raised by the generation pipeline."""


class AgentError(Exception):
    """Base class for all swagger-test-agent errors."""


class ConfigError(AgentError):
    """Required configuration (e.g. the API key) is missing or invalid."""


class SpecFetchError(AgentError, OSError):
    """The API document could not be downloaded."""


class SpecFormatError(AgentError, ValueError):
    """The API document is not a usable OpenAPI/Swagger document."""


class LlmError(AgentError):
    """The LLM provider rejected the request or could not be reached."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class LlmResponseError(LlmError):
    """The LLM provider answered, but not in the expected shape."""
