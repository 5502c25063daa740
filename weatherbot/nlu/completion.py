"""Completion collaborator for structured extraction.

This layer does not "think" - it sends role-tagged messages to an
OpenAI-compatible chat completions endpoint in JSON mode and returns the
decoded JSON object. Validation of the object's contents belongs to the
classifier and resolver.
"""

from __future__ import annotations

import json
from typing import Any, Protocol

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from loguru import logger
from pydantic import SecretStr

from weatherbot.config.settings import Settings, settings
from weatherbot.core.errors import CompletionError

JSON_RESPONSE_FORMAT = {"type": "json_object"}


class CompletionClient(Protocol):
    """Anything that turns a system + user prompt into a raw JSON object."""

    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> dict[str, Any]: ...


def parse_json_object(content: object) -> dict[str, Any]:
    """Decode completion content that must be a single JSON object.

    Raises:
        CompletionError: If the content is not a JSON object
    """
    if not isinstance(content, str) or not content.strip():
        raise CompletionError("Completion returned empty content", malformed=True)
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as e:
        raise CompletionError(f"Completion returned non-JSON content: {e}", malformed=True) from e
    if not isinstance(parsed, dict):
        raise CompletionError(f"Completion returned JSON {type(parsed).__name__}, expected an object", malformed=True)
    return parsed


class ChatCompletionClient:
    """JSON-mode chat completions over langchain's ChatOpenAI.

    Groq exposes an OpenAI-compatible API, so the same client works for Groq,
    OpenAI and local gateways; only the base URL and model differ.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        default_model: str = "llama3-8b-8192",
        temperature: float = 0.1,
        timeout: float | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("An API key is required for the completion client.")
        self._api_key = SecretStr(api_key)
        self._base_url = base_url
        self._default_model = default_model
        self._temperature = temperature
        self._timeout = timeout
        self._llms: dict[tuple[str, int | None], ChatOpenAI] = {}

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> ChatCompletionClient:
        config = config or settings
        return cls(
            api_key=config.groq_api_key,
            base_url=config.completion_base_url,
            default_model=config.intent_model,
            timeout=config.http_timeout_seconds,
        )

    def _get_llm(self, model: str, max_tokens: int | None) -> ChatOpenAI:
        key = (model, max_tokens)
        if key not in self._llms:
            self._llms[key] = ChatOpenAI(
                model=model,
                temperature=self._temperature,
                api_key=self._api_key,
                base_url=self._base_url,
                timeout=self._timeout,
                max_tokens=max_tokens,
            )
        return self._llms[key]

    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> dict[str, Any]:
        """Run one JSON-mode completion.

        Args:
            system_prompt: System message content
            user_prompt: User message content
            model: Model identifier (defaults to the client's default model)
            max_tokens: Optional completion token cap

        Returns:
            Decoded JSON object

        Raises:
            CompletionError: On transport failure or non-object output
        """
        model_name = model or self._default_model
        messages: list[BaseMessage] = [
            SystemMessage(content=system_prompt),
            HumanMessage(content=user_prompt),
        ]
        llm = self._get_llm(model_name, max_tokens).bind(response_format=JSON_RESPONSE_FORMAT)

        try:
            response = await llm.ainvoke(messages)
        except Exception as e:
            raise CompletionError(f"Completion request failed: {type(e).__name__}: {e}") from e

        logger.debug("Completion received", model=model_name, content=response.content)
        return parse_json_object(response.content)
