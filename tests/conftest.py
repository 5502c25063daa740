"""Root conftest for all tests.

This file makes shared fixtures available across all test modules.
"""

from typing import Any

import pytest

from weatherbot.conversation.context import ConversationContext
from weatherbot.nlu.registry import KnownEntityRegistry, load_registry


class FakeCompletion:
    """Completion collaborator returning canned JSON objects.

    Each call pops the next response; an Exception instance is raised instead
    of returned. Calls are recorded for prompt assertions.
    """

    def __init__(self, *responses: dict[str, Any] | Exception) -> None:
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> dict[str, Any]:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "model": model,
                "max_tokens": max_tokens,
            }
        )
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def fake_completion():
    """Factory for FakeCompletion instances."""
    return FakeCompletion


@pytest.fixture(scope="session")
def bundled_registry() -> KnownEntityRegistry:
    """Registry loaded from the bundled data file."""
    return load_registry()


@pytest.fixture
def small_registry() -> KnownEntityRegistry:
    """Small registry for matching tests."""
    return KnownEntityRegistry(
        cities=["paris", "london", "new york", "san francisco", "tokyo"],
        capitals={
            "france": "Paris",
            "japan": "Tokyo",
            "united arab emirates": "Abu Dhabi",
            "united kingdom": "London",
        },
        countries=["atlantica"],
    )


@pytest.fixture
def context() -> ConversationContext:
    return ConversationContext("test-conversation")


@pytest.fixture
def weather_payload() -> dict[str, Any]:
    return {
        "location": {"name": "Paris", "country": "France"},
        "current": {
            "temp_c": 18.0,
            "condition": {
                "text": "Partly cloudy",
                "icon": "//cdn.weatherapi.com/weather/64x64/day/116.png",
            },
        },
    }
