"""Runtime settings, read from the environment and an optional .env file."""

from pathlib import Path
from typing import Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from swagger_test_agent.errors import ConfigError

DEFAULT_ENV_FILE = ".env"
DEFAULT_SWAGGER_URL = "https://petstore3.swagger.io/api/v3/openapi.json"

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]


class Settings(BaseSettings):
    """All knobs of the pipeline. Passed explicitly into each component."""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False, extra="ignore")

    openai_api_key: str = Field(default="")

    llm_model: str = Field(default="gpt-4o")
    llm_temperature: float = Field(default=0.2)
    llm_max_tokens: int = Field(default=4096)
    llm_top_p: float = Field(default=0.9)
    llm_frequency_penalty: float = Field(default=0.0)
    llm_presence_penalty: float = Field(default=0.0)
    llm_api_base: str | None = Field(default=None)
    llm_timeout_seconds: float = Field(default=120)
    llm_num_retries: int = Field(default=2, ge=0)

    fetch_timeout_seconds: float | None = Field(default=None)

    min_lines: int = Field(default=80, ge=0)
    min_tests: int = Field(default=8, ge=0)

    log_level: LogLevel = Field(default="WARNING")

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value

    def require_api_key(self) -> str:
        """Return the API key, or raise ConfigError when none is configured."""
        key = self.openai_api_key.strip()
        if not key:
            raise ConfigError(
                "OpenAI API key is missing! Set OPENAI_API_KEY in the environment or the .env file."
            )
        return key


def load_settings(env_file: str | Path | None = DEFAULT_ENV_FILE, **overrides) -> Settings:
    """Build Settings from the environment plus ``env_file`` (ignored if absent).

    Keyword ``overrides`` take precedence over both sources. Invalid values
    raise ConfigError naming the offending setting.
    """
    try:
        return Settings(_env_file=env_file, **overrides)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']).upper()}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"Invalid settings: {problems}") from e
