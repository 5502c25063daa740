"""Per-conversation message context.

Each conversation gets its own ConversationContext, created by the store and
passed by reference into every pipeline stage. Appends are serialized so
concurrent messages on the same conversation never interleave a write.
"""

from __future__ import annotations

import threading
from collections import deque

from loguru import logger


class ConversationContext:
    """Ordered, append-only log of raw user messages for one conversation.

    Attributes:
        conversation_id: Conversation the messages belong to
        max_messages: Optional retention cap; the oldest messages are dropped first
    """

    def __init__(self, conversation_id: str, max_messages: int | None = None) -> None:
        if max_messages is not None and max_messages < 1:
            raise ValueError("max_messages must be a positive integer")
        self.conversation_id = conversation_id
        self.max_messages = max_messages
        self._messages: deque[str] = deque(maxlen=max_messages)
        self._lock = threading.Lock()

    def append(self, text: str) -> None:
        with self._lock:
            self._messages.append(text)
        logger.debug(
            "Message appended to conversation context",
            conversation_id=self.conversation_id,
            size=len(self._messages),
        )

    @property
    def messages(self) -> tuple[str, ...]:
        """Snapshot of the messages, oldest first."""
        with self._lock:
            return tuple(self._messages)

    def as_chat_history(self) -> list[dict[str, str]]:
        """Messages as role-tagged chat entries for a completion request."""
        return [{"role": "user", "content": message} for message in self.messages]

    def __len__(self) -> int:
        return len(self._messages)


class ConversationContextStore:
    """Creates and hands out one ConversationContext per conversation ID."""

    def __init__(self, max_messages: int | None = None) -> None:
        self.max_messages = max_messages
        self._contexts: dict[str, ConversationContext] = {}
        self._lock = threading.Lock()

    def get_or_create(self, conversation_id: str) -> ConversationContext:
        with self._lock:
            context = self._contexts.get(conversation_id)
            if context is None:
                context = ConversationContext(conversation_id, max_messages=self.max_messages)
                self._contexts[conversation_id] = context
                logger.debug("Conversation context created", conversation_id=conversation_id)
            return context

    def get(self, conversation_id: str) -> ConversationContext | None:
        with self._lock:
            return self._contexts.get(conversation_id)

    def drop(self, conversation_id: str) -> bool:
        """Forget a conversation. Returns True if it existed."""
        with self._lock:
            return self._contexts.pop(conversation_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._contexts)
