"""Tests for per-conversation message context."""

import threading

import pytest

from weatherbot.conversation.context import ConversationContext, ConversationContextStore


def test_append_preserves_order(context):
    context.append("Hi")
    context.append("Weather in Paris?")

    assert context.messages == ("Hi", "Weather in Paris?")
    assert len(context) == 2


def test_messages_is_a_snapshot(context):
    context.append("first")
    snapshot = context.messages
    context.append("second")

    assert snapshot == ("first",)


def test_as_chat_history(context):
    context.append("Weather in Tokyo?")

    assert context.as_chat_history() == [{"role": "user", "content": "Weather in Tokyo?"}]


def test_retention_drops_oldest():
    context = ConversationContext("c1", max_messages=2)
    for text in ("one", "two", "three"):
        context.append(text)

    assert context.messages == ("two", "three")


def test_invalid_retention():
    with pytest.raises(ValueError, match="positive"):
        ConversationContext("c1", max_messages=0)


def test_concurrent_appends_are_not_lost():
    context = ConversationContext("c1")

    def worker(n: int) -> None:
        for i in range(100):
            context.append(f"{n}-{i}")

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(context) == 800


def test_store_returns_one_context_per_conversation():
    store = ConversationContextStore(max_messages=5)

    first = store.get_or_create("a")
    again = store.get_or_create("a")
    other = store.get_or_create("b")

    assert first is again
    assert first is not other
    assert first.max_messages == 5
    assert len(store) == 2


def test_store_drop():
    store = ConversationContextStore()
    store.get_or_create("a").append("hello")

    assert store.drop("a") is True
    assert store.get("a") is None
    assert store.drop("a") is False
