"""LLM model abstraction for consistent model access across the application."""

from __future__ import annotations

from pydantic_ai.models.openai import OpenAIModel
from pydantic_ai.providers.openai import OpenAIProvider

from weatherbot.config.settings import Settings, settings


def get_model(provider: str, model_name: str, config: Settings | None = None) -> OpenAIModel:
    """Build a pydantic_ai model.

    Args:
        provider: "groq" uses COMPLETION_BASE_URL with GROQ_API_KEY;
            "openai" uses the OpenAI defaults (OPENAI_API_KEY from the environment)
        model_name: Model identifier
        config: Settings to read credentials from

    Raises:
        ValueError: If the provider is not supported
    """
    config = config or settings
    if provider == "groq":
        return OpenAIModel(
            model_name,
            provider=OpenAIProvider(base_url=config.completion_base_url, api_key=config.groq_api_key),
        )
    if provider == "openai":
        return OpenAIModel(model_name)

    raise ValueError(f"Unsupported LLM provider: {provider}")
