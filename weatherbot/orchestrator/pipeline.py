"""Per-message weather pipeline.

Runs one user turn: record the message, classify the intent, resolve the
location (falling back to the caller's public IP), fetch the current weather
and compose the response card. Each collaborator call is awaited before the
next one starts.
"""

from __future__ import annotations

from enum import StrEnum

from loguru import logger
from pydantic import BaseModel

from weatherbot.config.settings import Settings, settings
from weatherbot.conversation.context import ConversationContext
from weatherbot.core.errors import GeolocationError, WeatherFetchError
from weatherbot.integrations.geolocation.client import GeolocationClient
from weatherbot.integrations.weather.client import WeatherClient
from weatherbot.nlu.completion import ChatCompletionClient
from weatherbot.nlu.intent_classifier import IntentClassifier
from weatherbot.nlu.location_resolver import LocationResolver
from weatherbot.nlu.registry import KnownEntityRegistry, load_registry
from weatherbot.nlu.types import IntentResult, LocationOptions, LocationResult
from weatherbot.responses.composer import ResponseComposer, WeatherCard

NO_SUCH_LOCATION_TEXT = "Sorry, I couldn't find that location. Try asking about a specific city."


class TurnStatus(StrEnum):
    COMPLETED = "completed"
    NO_SUCH_LOCATION = "no_such_location"
    ABORTED = "aborted"


class TurnResult(BaseModel):
    """Outcome of one processed message.

    ``aborted`` turns carry no user-facing card or text, only the error.
    """

    status: TurnStatus
    intent: IntentResult
    location: LocationResult
    resolved_location: str | None = None
    used_ip_fallback: bool = False
    card: WeatherCard | None = None
    text: str | None = None
    error: str | None = None


class WeatherOrchestrator:
    """Coordinates the NLU, weather and response collaborators for a turn."""

    def __init__(
        self,
        classifier: IntentClassifier,
        resolver: LocationResolver,
        weather_client: WeatherClient,
        composer: ResponseComposer,
        geolocation: GeolocationClient | None = None,
        use_ip_fallback: bool = True,
        location_options: LocationOptions | None = None,
    ) -> None:
        self.classifier = classifier
        self.resolver = resolver
        self.weather_client = weather_client
        self.composer = composer
        self.geolocation = geolocation
        self.use_ip_fallback = use_ip_fallback
        self.location_options = location_options or LocationOptions()

    async def handle_message(
        self,
        text: str,
        context: ConversationContext,
        location_options: LocationOptions | None = None,
    ) -> TurnResult:
        """Process one user message.

        Args:
            text: Raw user message (non-empty)
            context: Conversation the message belongs to
            location_options: Per-turn override of the orchestrator's options

        Returns:
            TurnResult with status completed, no_such_location or aborted

        Raises:
            ValueError: If text is empty or not a string
        """
        if not isinstance(text, str) or not text.strip():
            raise ValueError("User message must be a non-empty string")

        options = location_options or self.location_options
        context.append(text)
        log = logger.bind(conversation_id=context.conversation_id)

        intent = await self.classifier.classify(text)
        location = await self.resolver.resolve(text, options)

        resolved_location: str | None = location.value if location.valid else None
        used_ip_fallback = False

        if resolved_location is None and self.use_ip_fallback and self.geolocation is not None:
            try:
                resolved_location = await self.geolocation.public_ip()
                used_ip_fallback = True
                log.info("Using public IP as location", failure=location.failure)
            except GeolocationError as e:
                log.warning(f"IP fallback failed: {e}")

        if resolved_location is None:
            log.info("No location resolved for message", failure=location.failure)
            return TurnResult(
                status=TurnStatus.NO_SUCH_LOCATION,
                intent=intent,
                location=location,
                text=NO_SUCH_LOCATION_TEXT,
            )

        try:
            weather = await self.weather_client.get_current_weather(resolved_location)
        except WeatherFetchError as e:
            log.error(f"Weather fetch failed, aborting turn: {e}", location=e.location, status_code=e.status_code)
            return TurnResult(
                status=TurnStatus.ABORTED,
                intent=intent,
                location=location,
                resolved_location=resolved_location,
                used_ip_fallback=used_ip_fallback,
                error=str(e),
            )

        card = await self.composer.compose(intent.intent, weather, context.as_chat_history())
        log.info("Turn completed", intent=intent.intent, location=resolved_location)
        return TurnResult(
            status=TurnStatus.COMPLETED,
            intent=intent,
            location=location,
            resolved_location=resolved_location,
            used_ip_fallback=used_ip_fallback,
            card=card,
            text=card.as_text(),
        )


def build_orchestrator(
    config: Settings | None = None,
    registry: KnownEntityRegistry | None = None,
    location_options: LocationOptions | None = None,
) -> WeatherOrchestrator:
    """Wire the production collaborators from settings.

    Raises:
        ConfigurationError: If a required credential is missing
        RegistryLoadError: If the known entity data file cannot be loaded
    """
    config = config or settings
    config.require_credentials()
    registry = registry or load_registry()

    completion = ChatCompletionClient.from_settings(config)
    geolocation = GeolocationClient.from_settings(config) if config.use_ip_fallback else None

    logger.info(
        "Weather orchestrator configured",
        intent_model=config.intent_model,
        entity_model=config.entity_model,
        response_model=config.response_model,
        ip_fallback=config.use_ip_fallback,
    )
    return WeatherOrchestrator(
        classifier=IntentClassifier(completion, model=config.intent_model),
        resolver=LocationResolver(completion, registry, model=config.entity_model),
        weather_client=WeatherClient.from_settings(config),
        composer=ResponseComposer(model_name=config.response_model),
        geolocation=geolocation,
        use_ip_fallback=config.use_ip_fallback,
        location_options=location_options,
    )
