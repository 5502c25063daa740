"""Weather API client for current conditions.

Provider: weatherapi.com ``current.json``. A location may be a city name or
an IP address (used when no city could be resolved from the message).
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from weatherbot.config.settings import Settings, settings
from weatherbot.core.errors import WeatherFetchError


def condition_icon(payload: dict[str, Any]) -> str:
    """Condition icon URL from a current-weather payload, with an https scheme.

    Returns an empty string when the payload carries no icon.
    """
    current = payload.get("current")
    condition = current.get("condition") if isinstance(current, dict) else None
    icon = condition.get("icon") if isinstance(condition, dict) else None
    if not isinstance(icon, str) or not icon:
        return ""
    return ensure_https(icon)


def ensure_https(url: str) -> str:
    if not url:
        return url
    if url.startswith("//"):
        return f"https:{url}"
    if not url.startswith(("http://", "https://")):
        return f"https://{url.lstrip('/')}"
    return url


class WeatherClient:
    """Client for fetching current weather data."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.weatherapi.com/v1",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize weather client.

        Args:
            api_key: weatherapi.com API key
            base_url: API base URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.api_key = api_key.strip()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> WeatherClient:
        config = config or settings
        return cls(
            api_key=config.weather_api_key,
            base_url=config.weather_api_base_url,
            timeout=config.http_timeout_seconds,
        )

    async def get_current_weather(self, location: str) -> dict[str, Any]:
        """Fetch current weather for a location.

        Args:
            location: City name or IP address

        Returns:
            Raw weather payload (``location``, ``current`` with ``condition.icon``)

        Raises:
            WeatherFetchError: On non-2xx status, transport failure or non-JSON body
        """
        params = {"q": location, "key": self.api_key}
        url = f"{self.base_url}/current.json"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, params=params)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("Weather API returned an error status", location=location, status_code=status)
            raise WeatherFetchError(location, f"HTTP error! Status: {status}", status_code=status) from e
        except httpx.RequestError as e:
            logger.warning("Weather API request failed", location=location, error=str(e))
            raise WeatherFetchError(location, f"Weather request failed: {type(e).__name__}: {e}") from e
        except ValueError as e:
            raise WeatherFetchError(location, f"Weather API returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise WeatherFetchError(location, "Weather API returned an unexpected payload")

        if not condition_icon(data):
            logger.warning("Weather payload has no condition icon", location=location)

        logger.info("Current weather fetched", location=location)
        return data
