from __future__ import annotations

from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from weatherbot.core.errors import ConfigurationError

GROQ_OPENAI_BASE_URL = "https://api.groq.com/openai/v1"


class Settings(BaseSettings):
    groq_api_key: str = Field(default="", validation_alias="GROQ_API_KEY")
    completion_base_url: str = Field(
        default=GROQ_OPENAI_BASE_URL,
        validation_alias="COMPLETION_BASE_URL",
        description="OpenAI-compatible chat completions endpoint",
    )
    intent_model: str = Field(default="llama3-8b-8192", validation_alias="INTENT_MODEL")
    entity_model: str = Field(default="llama3-8b-8192", validation_alias="ENTITY_MODEL")
    response_model: str = Field(default="llama-3.3-70b-versatile", validation_alias="RESPONSE_MODEL")
    weather_api_key: str = Field(default="", validation_alias="WEATHER_API_KEY")
    weather_api_base_url: str = Field(
        default="https://api.weatherapi.com/v1",
        validation_alias="WEATHER_API_BASE_URL",
    )
    ip_lookup_url: str = Field(
        default="https://api.ipify.org?format=json",
        validation_alias="IP_LOOKUP_URL",
    )
    use_ip_fallback: bool = Field(
        default=True,
        validation_alias="USE_IP_FALLBACK",
        description="Fall back to the caller's public IP when no location is resolved",
    )
    http_timeout_seconds: float = Field(default=10.0, validation_alias="HTTP_TIMEOUT_SECONDS", gt=0)
    context_max_messages: int | None = Field(
        default=None,
        validation_alias="CONTEXT_MAX_MESSAGES",
        description="Retention cap per conversation context (unbounded when unset)",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")
    log_json: bool = Field(default=False, validation_alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(sorted(valid_levels))}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("context_max_messages")
    @classmethod
    def validate_context_max_messages(cls, value: int | None) -> int | None:
        if value is not None and value < 1:
            raise ValueError("CONTEXT_MAX_MESSAGES must be a positive integer")
        return value

    def require_credentials(self) -> None:
        """Fail fast when a credential needed by the message pipeline is missing.

        Called once at startup. Individual messages never see configuration errors.

        Raises:
            ConfigurationError: If GROQ_API_KEY or WEATHER_API_KEY is empty
        """
        missing = [
            name
            for name, value in (("GROQ_API_KEY", self.groq_api_key), ("WEATHER_API_KEY", self.weather_api_key))
            if not value.strip()
        ]
        if missing:
            raise ConfigurationError(
                f"{' and '.join(missing)} must be set in the .env file or environment variables."
            )


settings = Settings()
