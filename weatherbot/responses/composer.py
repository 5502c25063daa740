"""Response composition.

Turns the classified intent and the weather payload into a WeatherCard with
the conversation so far as context. The LLM only writes the card; the
undefined-intent card shape and icon URL rules are enforced here.
"""

from __future__ import annotations

import json
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field
from pydantic_ai import Agent

from weatherbot.config.settings import settings
from weatherbot.integrations.weather.client import condition_icon, ensure_https
from weatherbot.nlu.intents import DEFAULT_WEATHER_INTENTS, UNDEFINED_INTENT
from weatherbot.services.llm.model import get_model

SORRY_TITLE = "Sorry, didn't get you :("

SYSTEM_PROMPT = f"""You are a bot in a weather app. You will be given a json response from a weather api and a user intent, and you should generate a human readable response for the user.

In case the intent was '{UNDEFINED_INTENT}', use the available intents ({", ".join(DEFAULT_WEATHER_INTENTS)}) to tell the user what they could ask for.

Answer using the same language as the last user message.

Your response is a json object with exactly three properties:
- title: generated from the API response
- message: the text message for the user
- icon: the url of an image representing the weather, taken from the json response

If the intent was '{UNDEFINED_INTENT}', the title must be '{SORRY_TITLE}' and the icon must be an empty string.
"""


class WeatherCard(BaseModel):
    """Structured response rendered as a visual card or plain text."""

    title: str = Field(description="Short title for the card")
    message: str = Field(description="Message text for the user")
    icon: str = Field(default="", description="Weather condition icon URL, or empty")

    def as_text(self) -> str:
        return f"{self.title}\n{self.message}" if self.title else self.message


def build_user_prompt(intent: str, weather: dict[str, Any], history: list[dict[str, str]]) -> str:
    lines = []
    if history:
        lines.append("Conversation so far:")
        lines.extend(f"- {entry['role']}: {entry['content']}" for entry in history)
        lines.append("")
    lines.append(f"User Intent: {intent}")
    lines.append(f"Json Response: {json.dumps(weather, default=str)}")
    return "\n".join(lines)


def fallback_card(intent: str, weather: dict[str, Any]) -> WeatherCard:
    """Deterministic card built from the payload when the LLM is unavailable."""
    if intent == UNDEFINED_INTENT:
        return WeatherCard(
            title=SORRY_TITLE,
            message=f"You can ask me about: {', '.join(DEFAULT_WEATHER_INTENTS)}.",
            icon="",
        )

    location = weather.get("location") if isinstance(weather.get("location"), dict) else {}
    current = weather.get("current") if isinstance(weather.get("current"), dict) else {}
    condition = current.get("condition") if isinstance(current.get("condition"), dict) else {}

    place = location.get("name") or "your location"
    parts = []
    if condition.get("text"):
        parts.append(str(condition["text"]))
    if current.get("temp_c") is not None:
        parts.append(f"{current['temp_c']}°C")

    message = ", ".join(parts) if parts else "Weather data is available but could not be summarized."
    return WeatherCard(title=f"Weather in {place}", message=message, icon=condition_icon(weather))


def finalize_card(card: WeatherCard, intent: str, weather: dict[str, Any]) -> WeatherCard:
    """Apply the card rules the model is asked to follow but may not."""
    if intent == UNDEFINED_INTENT:
        return card.model_copy(update={"title": SORRY_TITLE, "icon": ""})

    icon = ensure_https(card.icon) if card.icon else condition_icon(weather)
    return card.model_copy(update={"icon": icon})


class ResponseComposer:
    """Composes the final weather card with an LLM agent."""

    def __init__(self, model: Any | None = None, provider: str = "groq", model_name: str | None = None) -> None:
        self._model = model
        self.provider = provider
        self.model_name = model_name

    def _resolve_model(self) -> Any:
        if self._model is None:
            self._model = get_model(self.provider, self.model_name or settings.response_model)
        return self._model

    async def compose(
        self,
        intent: str,
        weather: dict[str, Any],
        history: list[dict[str, str]] | None = None,
    ) -> WeatherCard:
        """Compose the card for a turn.

        Args:
            intent: Validated intent label
            weather: Weather payload for the resolved location
            history: Conversation as role-tagged chat entries, oldest first

        Returns:
            WeatherCard. Falls back to a deterministic card if the model call fails.
        """
        user_prompt = build_user_prompt(intent, weather, history or [])

        try:
            agent = Agent(
                model=self._resolve_model(),
                system_prompt=SYSTEM_PROMPT,
                output_type=WeatherCard,
            )
            result = await agent.run(user_prompt)
            card = result.output
        except Exception as e:
            logger.warning(f"Response composition failed, using fallback card: {e}", intent=intent)
            return fallback_card(intent, weather)

        logger.info("Response composed", intent=intent, title=card.title)
        return finalize_card(card, intent, weather)
