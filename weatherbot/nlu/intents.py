from __future__ import annotations

from enum import StrEnum


class WeatherIntent(StrEnum):
    TODAY = "today's weather inquiry"
    UPCOMING_WEEK = "upcoming week's weather inquiry"
    UPCOMING_MONTH = "upcoming month's weather inquiry"


UNDEFINED_INTENT = "undefined"

DEFAULT_WEATHER_INTENTS: tuple[str, ...] = tuple(intent.value for intent in WeatherIntent)


def resolve_vocabulary(allowed_intents: list[str] | tuple[str, ...] | None) -> tuple[str, ...]:
    """Use the caller's vocabulary, or the weather intents when none is given."""
    if allowed_intents:
        return tuple(allowed_intents)
    return DEFAULT_WEATHER_INTENTS
