"""Prompts for intent classification and location extraction."""

from __future__ import annotations

from weatherbot.nlu.intents import UNDEFINED_INTENT
from weatherbot.nlu.types import NO_CITY_FOUND

INTENT_SYSTEM_PROMPT = (
    "You are an expert intent classifier. Analyze the user message and classify it into one of the "
    "provided weather-related intents. If the message is not related to weather or doesn't match any "
    f"of the specific intents, classify it as '{UNDEFINED_INTENT}'. Always respond with a valid JSON object."
)

MULTI_INTENT_SYSTEM_PROMPT = (
    "You are an expert intent classifier that can identify multiple intents in a single message. "
    "Always respond with a valid JSON object."
)

LOCATION_SYSTEM_PROMPT = (
    "You are an expert entity extractor specialized in identifying city names from weather-related "
    "queries. Extract the city name mentioned in the user's message. If no city is mentioned or if the "
    f"text doesn't contain a recognizable city name, respond with '{NO_CITY_FOUND}'. "
    "Always respond with a valid JSON object."
)

RESTRICTED_LOCATION_SYSTEM_PROMPT = (
    "You are an expert entity extractor specialized in identifying city names from weather-related "
    "queries. Extract the city name mentioned in the user's message. Only extract cities from this "
    "allowed list: {allowed}. If no city is mentioned or if the text doesn't contain a city from the "
    f"allowed list, respond with '{NO_CITY_FOUND}'. Always respond with a valid JSON object."
)

LOCATION_EXAMPLES = f"""
Examples:
- "What's the weather in London?" → city: "London"
- "How's the weather in New York today?" → city: "New York"
- "Will it rain in Paris tomorrow?" → city: "Paris"
- "What's the weather in Egypt?" → city: "Egypt" (country will be handled separately)
- "How's the weather in France?" → city: "France" (country will be handled separately)
- "What's today's weather?" → city: "{NO_CITY_FOUND}"
- "Is it sunny?" → city: "{NO_CITY_FOUND}"
"""


def build_intent_prompt(message: str, intents: tuple[str, ...]) -> str:
    joined = ", ".join(intents)
    return f"""
Classify the following user message into one of the provided weather-related intents. If the message is NOT related to weather or doesn't match any of the specific intents, classify it as "{UNDEFINED_INTENT}".

User Message: "{message}"

Available Weather Intents: {joined}

Please respond with a JSON object in this exact format:
{{
    "intent": "the_classified_intent_or_{UNDEFINED_INTENT}",
    "confidence": 0.95,
    "reasoning": "Brief explanation of why this intent was chosen"
}}

The intent must be exactly one of: {joined}, {UNDEFINED_INTENT}
The confidence should be between 0.0 and 1.0.
""".strip()


def build_multi_intent_prompt(message: str, intents: tuple[str, ...]) -> str:
    return f"""
Analyze the following user message and identify ALL possible intents it contains:

User Message: "{message}"

Available Intents: {", ".join(intents)}

Please respond with a JSON object in this exact format:
{{
    "intents": [
        {{
            "intent": "intent_name",
            "confidence": 0.95,
            "reasoning": "explanation"
        }}
    ]
}}

If only one intent is found, return an array with one object. Order by confidence (highest first).
""".strip()


def build_location_system_prompt(allowed_cities: list[str] | None) -> str:
    if allowed_cities:
        return RESTRICTED_LOCATION_SYSTEM_PROMPT.format(allowed=", ".join(allowed_cities))
    return LOCATION_SYSTEM_PROMPT


def build_location_prompt(message: str, allowed_cities: list[str] | None = None) -> str:
    """Build the user prompt for location extraction.

    Args:
        message: User's weather query
        allowed_cities: Optional list restricting which cities may be extracted

    Returns:
        Formatted prompt
    """
    sections = [
        "Extract the city name from the following weather-related message. "
        "Look for any mention of a city, town, or location.",
        f'User Message: "{message}"',
    ]

    if allowed_cities:
        first = allowed_cities[0]
        sections.append(
            f"IMPORTANT: Only extract cities from this allowed list: {', '.join(allowed_cities)}\n"
            f'If the mentioned city is not in the allowed list, respond with "{NO_CITY_FOUND}".'
        )
        sections.append(
            f"Examples with allowed cities [{', '.join(allowed_cities[:3])}]:\n"
            f'- "What\'s the weather in {first}?" → city: "{first}"\n'
            f'- "How\'s the weather in SomeOtherCity?" → city: "{NO_CITY_FOUND}" (not in allowed list)\n'
            f'- "What\'s today\'s weather?" → city: "{NO_CITY_FOUND}"'
        )
    else:
        sections.append(LOCATION_EXAMPLES.strip())

    not_found_clause = " or the location is not in the allowed list" if allowed_cities else ""
    sections.append(
        "IMPORTANT: Extract any location mentioned (city, country, or region). "
        "If it's a country, it will be resolved to its capital city."
    )
    sections.append(
        "Please respond with a JSON object in this exact format:\n"
        "{\n"
        f'    "city": "extracted_location_name_or_{NO_CITY_FOUND}",\n'
        '    "confidence": 0.95,\n'
        '    "reasoning": "Brief explanation of the extraction"\n'
        "}\n\n"
        f'If no location is mentioned{not_found_clause}, use "{NO_CITY_FOUND}" as the city value.'
    )
    return "\n\n".join(sections)
