"""Known entity registry.

Immutable lookup tables of known cities, known countries and the
country -> capital mapping, loaded once from YAML at startup.

Membership tests use an explicit, ordered three-tier match:

1. EXACT      - hash lookup against the normalized set
2. SUBSET     - multi-word candidates match an entry containing all their words
3. SUBSTRING  - single-word candidates contained in an entry, or containing one

Tier 3 only applies to single-word candidates. A multi-word candidate with no
subset match is not a member.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from types import MappingProxyType

import yaml
from loguru import logger

from weatherbot.core.errors import RegistryLoadError

DEFAULT_ENTITIES_PATH = Path(__file__).parent / "data" / "known_entities.yaml"

UNKNOWN_CAPITAL = "Unknown"


class MatchTier(StrEnum):
    EXACT = "exact"
    SUBSET = "subset"
    SUBSTRING = "substring"


def normalize_name(name: str) -> str:
    """Lowercase, trim and collapse internal whitespace."""
    return " ".join(name.lower().split())


def format_place_name(name: str) -> str:
    """Title-case each space-separated word: first letter upper, rest lower.

    Idempotent: formatting an already formatted name returns it unchanged.
    """
    return " ".join(word[:1].upper() + word[1:].lower() for word in name.strip().split(" "))


def match_entity(candidate: str, entries: frozenset[str], strict: bool = False) -> MatchTier | None:
    """Match a normalized candidate against a set of normalized entries.

    Args:
        candidate: Normalized candidate name
        entries: Normalized known names
        strict: Only allow exact matches

    Returns:
        The tier that matched, or None if the candidate is not a member
    """
    if not candidate:
        return None

    if candidate in entries:
        return MatchTier.EXACT
    if strict:
        return None

    words = candidate.split(" ")
    if len(words) > 1:
        for entry in entries:
            entry_words = set(entry.split(" "))
            if all(word in entry_words for word in words):
                return MatchTier.SUBSET
        return None

    for entry in entries:
        if candidate in entry or entry in candidate:
            return MatchTier.SUBSTRING
    return None


@dataclass(frozen=True)
class CountryInfo:
    """Country lookup result with a ready-to-send message."""

    country: str
    capital: str
    is_country: bool
    message: str


class KnownEntityRegistry:
    """Read-only registry of known cities, countries and capitals.

    Lookups never lock. ``add_city`` is serialized and swaps in a new frozenset,
    so a concurrent reader sees either the old or the new set, never a partial one.
    """

    def __init__(
        self,
        cities: Iterable[str],
        capitals: Mapping[str, str],
        countries: Iterable[str] = (),
    ):
        normalized_capitals = {normalize_name(country): capital for country, capital in capitals.items()}
        self._capitals: Mapping[str, str] = MappingProxyType(normalized_capitals)
        self._countries = frozenset(normalize_name(c) for c in countries) | frozenset(normalized_capitals)
        self._cities = frozenset(normalize_name(c) for c in cities)
        self._write_lock = threading.Lock()

    @property
    def cities(self) -> frozenset[str]:
        return self._cities

    @property
    def countries(self) -> frozenset[str]:
        return self._countries

    @property
    def capitals(self) -> Mapping[str, str]:
        return self._capitals

    def match_city(self, candidate: str, strict: bool = False) -> MatchTier | None:
        return match_entity(normalize_name(candidate), self._cities, strict=strict)

    def match_country(self, candidate: str, strict: bool = False) -> MatchTier | None:
        return match_entity(normalize_name(candidate), self._countries, strict=strict)

    def is_known_city(self, candidate: str, strict: bool = False) -> bool:
        return self.match_city(candidate, strict=strict) is not None

    def is_known_country(self, candidate: str) -> bool:
        return self.match_country(candidate) is not None

    def capital_of(self, country: str) -> str:
        """Get the capital for a country name.

        Exact key lookup first, then substring containment in either direction.

        Args:
            country: Country name in any case

        Returns:
            Capital display name, or UNKNOWN_CAPITAL if nothing matches
        """
        normalized = normalize_name(country)
        if not normalized:
            return UNKNOWN_CAPITAL

        capital = self._capitals.get(normalized)
        if capital is not None:
            return capital

        for known_country, known_capital in self._capitals.items():
            if normalized in known_country or known_country in normalized:
                return known_capital

        return UNKNOWN_CAPITAL

    def add_city(self, name: str) -> bool:
        """Register a new city.

        Args:
            name: City name in any case

        Returns:
            True if the city was added, False if it was already known or blank
        """
        normalized = normalize_name(name)
        if not normalized:
            return False

        with self._write_lock:
            if normalized in self._cities:
                return False
            self._cities = self._cities | {normalized}

        logger.info(f'City "{name}" added to known cities list', city=normalized)
        return True

    def known_cities(self) -> list[str]:
        return sorted(format_place_name(city) for city in self._cities)

    def known_countries(self) -> list[str]:
        return sorted(format_place_name(country) for country in self._countries)

    def search_cities(self, pattern: str) -> list[str]:
        """Title-cased known cities containing the pattern."""
        normalized = normalize_name(pattern)
        return sorted(format_place_name(city) for city in self._cities if normalized in city)

    def country_info(self, name: str) -> CountryInfo:
        formatted = format_place_name(name)
        capital = self.capital_of(name)
        return CountryInfo(
            country=formatted,
            capital=capital,
            is_country=self.is_known_country(name),
            message=f"{formatted} is a country and its capital is {capital}. Do you want any information about it?",
        )


def load_registry(path: Path | None = None) -> KnownEntityRegistry:
    """Load the known entity registry from a YAML file.

    Args:
        path: YAML file path (defaults to the bundled known_entities.yaml)

    Returns:
        KnownEntityRegistry instance

    Raises:
        RegistryLoadError: If the file is missing or has the wrong shape
    """
    entities_path = path or DEFAULT_ENTITIES_PATH

    if not entities_path.exists():
        raise RegistryLoadError("ENTITIES_NOT_FOUND", f"Known entities file not found: {entities_path}")

    try:
        data = yaml.safe_load(entities_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise RegistryLoadError("INVALID_ENTITIES_YAML", f"Invalid YAML in {entities_path}: {e}") from e

    if not isinstance(data, dict):
        raise RegistryLoadError("INVALID_ENTITIES_YAML", f"{entities_path} must contain a YAML dictionary")

    cities = data.get("cities") or []
    capitals = data.get("capitals") or {}
    extra_countries = data.get("extra_countries") or []

    if not isinstance(cities, list) or not all(isinstance(c, str) for c in cities):
        raise RegistryLoadError("INVALID_CITIES", f"'cities' must be a list of strings in {entities_path}")
    if not isinstance(capitals, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in capitals.items()
    ):
        raise RegistryLoadError("INVALID_CAPITALS", f"'capitals' must map country names to capitals in {entities_path}")
    if not isinstance(extra_countries, list):
        raise RegistryLoadError("INVALID_COUNTRIES", f"'extra_countries' must be a list in {entities_path}")

    registry = KnownEntityRegistry(cities=cities, capitals=capitals, countries=extra_countries)
    logger.info(
        "Known entity registry loaded",
        path=str(entities_path),
        cities=len(registry.cities),
        countries=len(registry.countries),
    )
    return registry
