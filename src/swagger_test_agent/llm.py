"""LLM client wrapper around litellm.

Sends one chat-completion request (system + user message) with fixed
generation parameters and returns the text of the first choice.
"""

import logging

from litellm import completion
from openai import OpenAIError

from swagger_test_agent.config import Settings
from swagger_test_agent.errors import LlmError, LlmResponseError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o"


class LlmClient:
    """Wrapper for chat-completion calls via litellm.

    Credentials and generation parameters are given explicitly; nothing is
    read from the environment here. Transport-level failures (connection
    errors, rate limits, 5xx) are retried by litellm itself, up to
    ``num_retries`` times with backoff.
    """

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        temperature: float = 0.2,
        max_tokens: int = 4096,
        top_p: float = 0.9,
        frequency_penalty: float = 0.0,
        presence_penalty: float = 0.0,
        api_base: str | None = None,
        timeout: float | None = 120,
        num_retries: int = 2,
    ):
        self.api_key = api_key
        self.model = model or DEFAULT_MODEL
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.top_p = top_p
        self.frequency_penalty = frequency_penalty
        self.presence_penalty = presence_penalty
        self.api_base = api_base
        self.timeout = timeout
        self.num_retries = num_retries

    @classmethod
    def from_settings(cls, settings: Settings, model: str | None = None, max_tokens: int | None = None) -> "LlmClient":
        return cls(
            api_key=settings.require_api_key(),
            model=model or settings.llm_model,
            temperature=settings.llm_temperature,
            max_tokens=max_tokens or settings.llm_max_tokens,
            top_p=settings.llm_top_p,
            frequency_penalty=settings.llm_frequency_penalty,
            presence_penalty=settings.llm_presence_penalty,
            api_base=settings.llm_api_base,
            timeout=settings.llm_timeout_seconds,
            num_retries=settings.llm_num_retries,
        )

    def call(self, system: str, user: str) -> str:
        """Send a system+user message to the LLM and return the response text."""
        logger.debug("LLM request: model=%s, prompt=%d chars", self.model, len(system) + len(user))
        try:
            response = completion(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                top_p=self.top_p,
                frequency_penalty=self.frequency_penalty,
                presence_penalty=self.presence_penalty,
                api_key=self.api_key,
                api_base=self.api_base,
                timeout=self.timeout,
                num_retries=self.num_retries,
            )
        except OpenAIError as e:
            message = getattr(e, "message", None) or str(e)
            raise LlmError(f"LLM request failed: {message}") from e

        choices = getattr(response, "choices", None)
        if not choices:
            raise LlmResponseError("Unexpected response format from the LLM API: no choices returned.")

        content = choices[0].message.content
        if not content or not content.strip():
            raise LlmResponseError("Missing 'content' field in the LLM response.")

        logger.debug("LLM response: %d chars", len(content))
        return content
