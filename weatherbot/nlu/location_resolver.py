"""Location extraction and validation.

The completion service proposes a location string; the resolver decides what
it means:

1. A country (matched against the registry) resolves to its capital and is
   returned immediately, even when an allowed-city list is configured.
2. Otherwise the candidate must be an allowed city (exact) or a known city
   (three-tier match, exact only in strict mode).
3. Anything else falls back to the default city with ``valid=False``.
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from weatherbot.core.errors import CompletionError
from weatherbot.nlu.completion import CompletionClient
from weatherbot.nlu.prompts import build_location_prompt, build_location_system_prompt
from weatherbot.nlu.registry import KnownEntityRegistry, format_place_name, normalize_name
from weatherbot.nlu.types import (
    DEFAULT_CITY,
    NO_CITY_FOUND,
    NO_REASONING,
    ExtractionFailure,
    LocationOptions,
    LocationResult,
    normalize_confidence,
)


def _fallback(
    options: LocationOptions,
    failure: ExtractionFailure,
    *,
    confidence: float = 0.0,
    reasoning: str = NO_REASONING,
    raw: str | None = None,
    error: str | None = None,
) -> LocationResult:
    return LocationResult(
        value=options.default_city or DEFAULT_CITY,
        confidence=confidence,
        reasoning=reasoning,
        raw=raw,
        valid=False,
        error=error,
        failure=failure,
        allowed_cities=options.allowed_cities,
        strict_mode=options.strict_mode,
    )


class LocationResolver:
    """Resolves the location a weather query is about."""

    def __init__(
        self,
        completion: CompletionClient,
        registry: KnownEntityRegistry,
        model: str | None = None,
    ) -> None:
        self.completion = completion
        self.registry = registry
        self.model = model

    async def extract_location(
        self,
        text: object,
        options: LocationOptions | None = None,
    ) -> str | LocationResult:
        """Extract a location from a message.

        Args:
            text: User message
            options: Extraction options (defaults apply when omitted)

        Returns:
            The resolved city name, or the full LocationResult when
            ``options.include_metadata`` is set
        """
        options = options or LocationOptions()
        result = await self.resolve(text, options)
        return result if options.include_metadata else result.value

    async def resolve(self, text: object, options: LocationOptions | None = None) -> LocationResult:
        """Extract a location and always return the full result."""
        options = options or LocationOptions()

        if not isinstance(text, str) or not text.strip():
            return _fallback(options, ExtractionFailure.INVALID_INPUT, error="Invalid message input")

        try:
            payload = await self.completion.complete_json(
                build_location_system_prompt(options.allowed_cities),
                build_location_prompt(text, options.allowed_cities),
                model=self.model,
                max_tokens=150,
            )
        except CompletionError as e:
            logger.warning(f"Error extracting city entity: {e}")
            failure = ExtractionFailure.MALFORMED_RESPONSE if e.malformed else ExtractionFailure.TRANSPORT_ERROR
            return _fallback(options, failure, error=str(e))
        except Exception as e:
            logger.exception(f"Unexpected error extracting city entity: {e}")
            return _fallback(options, ExtractionFailure.TRANSPORT_ERROR, error=str(e))

        return self._validate_candidate(payload, options)

    def _validate_candidate(self, payload: dict[str, Any], options: LocationOptions) -> LocationResult:
        raw_city = payload.get("city")
        candidate = normalize_name(raw_city) if isinstance(raw_city, str) else None
        confidence = normalize_confidence(payload.get("confidence"))
        reasoning = payload.get("reasoning")
        reasoning = reasoning if isinstance(reasoning, str) and reasoning else NO_REASONING

        if not candidate or candidate == NO_CITY_FOUND:
            logger.info("No location found in message", raw=raw_city)
            return _fallback(
                options,
                ExtractionFailure.NO_CANDIDATE,
                confidence=confidence,
                reasoning=reasoning,
                raw=candidate,
            )

        # Countries win over cities, including allowed-city lists.
        if self.registry.is_known_country(candidate):
            country = format_place_name(candidate)
            capital = self.registry.capital_of(candidate)
            logger.info("Country detected, resolving to capital", country=country, capital=capital)
            return LocationResult(
                value=capital,
                confidence=confidence,
                reasoning=f'Detected "{country}" which is a country, returning capital city',
                raw=candidate,
                valid=True,
                is_country=True,
                country_detected=country,
                capital=capital,
                allowed_cities=options.allowed_cities,
                strict_mode=options.strict_mode,
            )

        if options.allowed_cities is not None:
            is_valid = any(normalize_name(city) == candidate for city in options.allowed_cities)
        else:
            is_valid = self.registry.is_known_city(candidate, strict=options.strict_mode)

        if not is_valid:
            logger.info("Extracted location not recognized", candidate=candidate, strict_mode=options.strict_mode)
            return _fallback(
                options,
                ExtractionFailure.NOT_RECOGNIZED,
                confidence=confidence,
                reasoning=reasoning,
                raw=candidate,
            )

        city = format_place_name(candidate)
        logger.info("City extracted", city=city, confidence=confidence)
        return LocationResult(
            value=city,
            confidence=confidence,
            reasoning=reasoning,
            raw=candidate,
            valid=True,
            allowed_cities=options.allowed_cities,
            strict_mode=options.strict_mode,
        )
