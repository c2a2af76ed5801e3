"""Runtime settings loaded from environment variables."""

from functools import lru_cache
from typing import Annotated, Any

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

NonEmptyStr = Annotated[str, Field(min_length=1)]
NonNegativeFloat = Annotated[float, Field(ge=0.0)]


class ConfigurationError(RuntimeError):
    """Raised when required runtime configuration is missing or invalid."""


class Settings(BaseSettings):
    """Environment-driven client settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        str_strip_whitespace=True,
    )

    openai_api_key: NonEmptyStr = Field(validation_alias="OPENAI_API_KEY")
    openai_timeout_seconds: NonNegativeFloat = Field(
        default=60.0,
        validation_alias="OPENAI_TIMEOUT_SECONDS",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")


def build_settings(**overrides: Any) -> Settings:
    """Build settings, normalizing validation failures into ConfigurationError."""

    try:
        return Settings(**overrides)
    except ValidationError as error:
        problems = [_describe_problem(item) for item in error.errors()]
        raise ConfigurationError(" ".join(problems)) from error


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Load and cache application settings."""

    return build_settings()


def _describe_problem(item: Any) -> str:
    name = ".".join(str(part) for part in item["loc"]) or "settings"
    if item["type"] == "missing":
        return f"Please set the {name} environment variable."
    return f"Invalid value for {name}: {item['msg']}."
