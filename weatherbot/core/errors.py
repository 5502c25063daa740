"""Error types for the weather bot.

Extraction errors are recovered locally by the classifier and resolver.
Weather fetch errors end the turn. Configuration errors are fatal at startup.
"""

from __future__ import annotations


class WeatherBotError(Exception):
    """Base class for all weather bot errors."""


class ConfigurationError(WeatherBotError):
    """Raised at startup when a required setting or credential is missing."""


class RegistryLoadError(ConfigurationError):
    """Raised when the known entity data file is missing or malformed.

    Attributes:
        code: Machine-readable error code
        message: Human-readable error message
    """

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}")


class CompletionError(WeatherBotError):
    """Raised when the completion service fails or returns unusable output.

    Attributes:
        malformed: True when a response arrived but was not a JSON object
    """

    def __init__(self, message: str, *, malformed: bool = False):
        self.malformed = malformed
        super().__init__(message)


class WeatherFetchError(WeatherBotError):
    """Raised when the weather API cannot serve a location.

    Attributes:
        location: Location that was requested
        status_code: HTTP status code, if a response was received
    """

    def __init__(self, location: str, message: str, status_code: int | None = None):
        self.location = location
        self.status_code = status_code
        super().__init__(message)


class GeolocationError(WeatherBotError):
    """Raised when the public IP lookup fails."""
