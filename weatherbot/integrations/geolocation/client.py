"""Public IP lookup used as a location fallback.

weatherapi.com accepts an IP address as the ``q`` parameter, so the caller's
public IP stands in for a city when none could be resolved from the message.
"""

from __future__ import annotations

import httpx
from loguru import logger

from weatherbot.config.settings import Settings, settings
from weatherbot.core.errors import GeolocationError


class GeolocationClient:
    """Resolves the caller's public IP address."""

    def __init__(
        self,
        lookup_url: str = "https://api.ipify.org?format=json",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.lookup_url = lookup_url
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> GeolocationClient:
        config = config or settings
        return cls(lookup_url=config.ip_lookup_url, timeout=config.http_timeout_seconds)

    async def public_ip(self) -> str:
        """Get the public IP address.

        Raises:
            GeolocationError: If the lookup fails or returns no IP
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(self.lookup_url)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPStatusError, httpx.RequestError, ValueError) as e:
            logger.warning("Public IP lookup failed", error=str(e))
            raise GeolocationError(f"Public IP lookup failed: {e}") from e

        ip = data.get("ip") if isinstance(data, dict) else None
        if not isinstance(ip, str) or not ip:
            raise GeolocationError("Public IP lookup returned no address")

        logger.debug("Public IP resolved", ip=ip)
        return ip
