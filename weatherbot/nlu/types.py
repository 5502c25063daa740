"""NLU output types and contracts.

Extraction never raises to the caller. Degraded outcomes are explicit:
``error`` carries the message and ``failure`` the machine-readable reason.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from weatherbot.nlu.intents import UNDEFINED_INTENT

DEFAULT_CITY = "this city don't exist"
NO_CITY_FOUND = "no_city_found"
NO_REASONING = "No reasoning provided"
FALLBACK_CONFIDENCE = 0.5


def _utcnow() -> datetime:
    return datetime.now(UTC)


def normalize_confidence(value: object) -> float:
    """Normalize a raw confidence value from a completion.

    Real numbers inside [0, 1] pass through. Anything else (out of range,
    strings such as "high", booleans, None, NaN) becomes FALLBACK_CONFIDENCE.
    """
    if isinstance(value, bool) or not isinstance(value, int | float):
        return FALLBACK_CONFIDENCE
    if math.isnan(value) or value < 0 or value > 1:
        return FALLBACK_CONFIDENCE
    return float(value)


class ExtractionFailure(StrEnum):
    INVALID_INPUT = "invalid_input"
    NO_CANDIDATE = "no_candidate"
    NOT_RECOGNIZED = "not_recognized"
    TRANSPORT_ERROR = "transport_error"
    MALFORMED_RESPONSE = "malformed_response"


class IntentResult(BaseModel):
    """Validated intent classification."""

    intent: str = UNDEFINED_INTENT
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    reasoning: str = NO_REASONING
    timestamp: datetime = Field(default_factory=_utcnow)
    error: str | None = None
    original_message: str | None = None

    @property
    def valid(self) -> bool:
        return self.error is None

    @property
    def is_undefined(self) -> bool:
        return self.intent == UNDEFINED_INTENT


class ExtractionResult(BaseModel):
    """Outcome of a single extraction call."""

    value: str
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    reasoning: str = NO_REASONING
    raw: str | None = None
    valid: bool = False
    error: str | None = None
    failure: ExtractionFailure | None = None
    timestamp: datetime = Field(default_factory=_utcnow)

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, value: object) -> float:
        """Keep confidence inside [0, 1] whatever was supplied."""
        if isinstance(value, bool) or not isinstance(value, int | float) or math.isnan(value):
            return FALLBACK_CONFIDENCE
        return min(1.0, max(0.0, float(value)))


class LocationResult(ExtractionResult):
    """Location extraction with country/capital resolution details."""

    is_country: bool = False
    country_detected: str | None = None
    capital: str | None = None
    allowed_cities: list[str] | None = None
    strict_mode: bool = False

    @property
    def city(self) -> str:
        return self.value


class LocationOptions(BaseModel):
    """Options for location extraction.

    Attributes:
        allowed_cities: Restrict valid matches to this list (exact, case-insensitive).
            Overrides the registry for city validation. Countries still resolve first.
        strict_mode: Without allowed_cities, accept only exact registry matches.
        default_city: Returned when no valid location is resolved.
        include_metadata: Return the full LocationResult instead of the string.
    """

    model_config = ConfigDict(frozen=True)

    allowed_cities: list[str] | None = None
    strict_mode: bool = False
    default_city: str = DEFAULT_CITY
    include_metadata: bool = False
