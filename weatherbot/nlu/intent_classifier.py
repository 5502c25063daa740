"""Intent classification for weather queries.

The completion service proposes ``{intent, confidence, reasoning}``; this module
is the validation layer that turns the proposal into a trustworthy IntentResult.
Collaborator failures degrade to ``undefined`` with confidence 0 and are never
raised to the caller.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from loguru import logger

from weatherbot.nlu.completion import CompletionClient
from weatherbot.nlu.intents import UNDEFINED_INTENT, resolve_vocabulary
from weatherbot.nlu.prompts import (
    INTENT_SYSTEM_PROMPT,
    MULTI_INTENT_SYSTEM_PROMPT,
    build_intent_prompt,
    build_multi_intent_prompt,
)
from weatherbot.nlu.types import NO_REASONING, IntentResult, normalize_confidence


class ConfidenceThresholds:
    """Recommended cut-offs for acting on a classification."""

    HIGH = 0.8  # automatic actions
    MEDIUM = 0.6  # suggestions
    LOW = 0.4  # fallback options
    VERY_LOW = 0.0  # uncertain

    @classmethod
    def as_dict(cls) -> dict[str, float]:
        return {
            "high_confidence": cls.HIGH,
            "medium_confidence": cls.MEDIUM,
            "low_confidence": cls.LOW,
            "very_low": cls.VERY_LOW,
        }


def confidence_band(confidence: float) -> str:
    if confidence >= ConfidenceThresholds.HIGH:
        return "high"
    if confidence >= ConfidenceThresholds.MEDIUM:
        return "medium"
    if confidence >= ConfidenceThresholds.LOW:
        return "low"
    return "very_low"


def validate_intent_payload(
    payload: dict[str, Any],
    allowed_intents: tuple[str, ...],
    original_message: str | None = None,
) -> IntentResult:
    """Validate a raw classifier payload.

    - A missing intent, or one outside ``allowed_intents ∪ {undefined}``, becomes ``undefined``.
    - A confidence that is not a number in [0, 1] becomes 0.5.
    - The result is stamped with the extraction time.

    Args:
        payload: Raw object returned by the completion service
        allowed_intents: Intent vocabulary for this call
        original_message: Message that was classified

    Returns:
        Validated IntentResult
    """
    intent = payload.get("intent")
    if not isinstance(intent, str) or intent not in (*allowed_intents, UNDEFINED_INTENT):
        if intent:
            logger.debug("Classifier returned out-of-vocabulary intent", intent=intent)
        intent = UNDEFINED_INTENT

    reasoning = payload.get("reasoning")

    return IntentResult(
        intent=intent,
        confidence=normalize_confidence(payload.get("confidence")),
        reasoning=reasoning if isinstance(reasoning, str) and reasoning else NO_REASONING,
        timestamp=datetime.now(UTC),
        original_message=original_message,
    )


class IntentClassifier:
    """Classifies a user message into a weather intent."""

    def __init__(self, completion: CompletionClient, model: str | None = None) -> None:
        self.completion = completion
        self.model = model

    async def classify(self, text: str, allowed_intents: list[str] | None = None) -> IntentResult:
        """Classify a message and return the full validated result.

        Args:
            text: User message (must be a non-empty string)
            allowed_intents: Intent vocabulary; the weather intents when empty

        Returns:
            IntentResult. On collaborator failure: intent ``undefined``,
            confidence 0.0 and the error message.

        Raises:
            ValueError: If text is empty or not a string
        """
        if not isinstance(text, str) or not text.strip():
            raise ValueError("User message must be a non-empty string")

        intents = resolve_vocabulary(allowed_intents)

        try:
            payload = await self.completion.complete_json(
                INTENT_SYSTEM_PROMPT,
                build_intent_prompt(text, intents),
                model=self.model,
                max_tokens=200,
            )
        except Exception as e:
            logger.warning(f"Error extracting intent: {e}", error_type=type(e).__name__)
            return IntentResult(
                intent=UNDEFINED_INTENT,
                confidence=0.0,
                error=str(e),
                original_message=text,
            )

        result = validate_intent_payload(payload, intents, original_message=text)
        logger.info(
            "Intent extracted",
            intent=result.intent,
            confidence=result.confidence,
            band=confidence_band(result.confidence),
        )
        return result

    async def extract_intent(self, text: str, allowed_intents: list[str] | None = None) -> str:
        """Classify a message and return only the validated intent label."""
        result = await self.classify(text, allowed_intents)
        return result.intent

    async def extract_multiple_intents(
        self,
        text: str,
        allowed_intents: list[str] | None = None,
    ) -> list[IntentResult]:
        """Identify every intent a message contains, highest confidence first.

        Falls back to a single ``classify`` call when the completion has no
        ``intents`` list.
        """
        if not isinstance(text, str) or not text.strip():
            raise ValueError("User message must be a non-empty string")

        intents = resolve_vocabulary(allowed_intents)

        try:
            payload = await self.completion.complete_json(
                MULTI_INTENT_SYSTEM_PROMPT,
                build_multi_intent_prompt(text, intents),
                model=self.model,
                max_tokens=300,
            )
        except Exception as e:
            logger.warning(f"Error extracting multiple intents: {e}", error_type=type(e).__name__)
            return [IntentResult(intent=UNDEFINED_INTENT, confidence=0.0, error=str(e), original_message=text)]

        entries = payload.get("intents")
        if not isinstance(entries, list):
            return [await self.classify(text, allowed_intents)]

        results = [
            validate_intent_payload(entry, intents, original_message=text)
            for entry in entries
            if isinstance(entry, dict)
        ]
        if not results:
            return [await self.classify(text, allowed_intents)]

        return sorted(results, key=lambda r: r.confidence, reverse=True)
