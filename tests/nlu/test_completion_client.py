"""Tests for the JSON-mode completion client."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from weatherbot.core.errors import CompletionError
from weatherbot.nlu.completion import JSON_RESPONSE_FORMAT, ChatCompletionClient, parse_json_object


def test_parse_json_object():
    assert parse_json_object('{"city": "Paris", "confidence": 0.9}') == {"city": "Paris", "confidence": 0.9}


@pytest.mark.parametrize("content", ["", "   ", None, "not json", "[1, 2]", '"Paris"'])
def test_parse_json_object_rejects_non_objects(content):
    with pytest.raises(CompletionError) as exc_info:
        parse_json_object(content)

    assert exc_info.value.malformed is True


def test_client_requires_api_key():
    with pytest.raises(ValueError, match="API key"):
        ChatCompletionClient(api_key="")


def _mock_llm(content: object = None, error: Exception | None = None) -> tuple[MagicMock, AsyncMock]:
    llm = MagicMock()
    ainvoke = AsyncMock(side_effect=error) if error else AsyncMock(return_value=SimpleNamespace(content=content))
    llm.bind.return_value = SimpleNamespace(ainvoke=ainvoke)
    return llm, ainvoke


@pytest.mark.asyncio
async def test_complete_json_uses_json_mode():
    llm, ainvoke = _mock_llm('{"intent": "undefined"}')

    with patch("weatherbot.nlu.completion.ChatOpenAI", return_value=llm) as chat_cls:
        client = ChatCompletionClient(api_key="test-key", base_url="https://llm.example/v1", default_model="small")
        payload = await client.complete_json("system", "user", max_tokens=200)

    assert payload == {"intent": "undefined"}
    llm.bind.assert_called_once_with(response_format=JSON_RESPONSE_FORMAT)
    kwargs = chat_cls.call_args.kwargs
    assert kwargs["model"] == "small"
    assert kwargs["max_tokens"] == 200
    assert kwargs["base_url"] == "https://llm.example/v1"
    messages = ainvoke.call_args.args[0]
    assert [m.content for m in messages] == ["system", "user"]


@pytest.mark.asyncio
async def test_complete_json_reuses_llm_per_model():
    llm, _ = _mock_llm('{"ok": true}')

    with patch("weatherbot.nlu.completion.ChatOpenAI", return_value=llm) as chat_cls:
        client = ChatCompletionClient(api_key="test-key")
        await client.complete_json("s", "u", model="a")
        await client.complete_json("s", "u", model="a")
        await client.complete_json("s", "u", model="b")

    assert chat_cls.call_count == 2


@pytest.mark.asyncio
async def test_complete_json_wraps_transport_errors():
    llm, _ = _mock_llm(error=TimeoutError("read timeout"))

    with patch("weatherbot.nlu.completion.ChatOpenAI", return_value=llm):
        client = ChatCompletionClient(api_key="test-key")
        with pytest.raises(CompletionError) as exc_info:
            await client.complete_json("s", "u")

    assert exc_info.value.malformed is False
    assert "read timeout" in str(exc_info.value)


@pytest.mark.asyncio
async def test_complete_json_rejects_malformed_content():
    llm, _ = _mock_llm("Sure! The city is Paris.")

    with patch("weatherbot.nlu.completion.ChatOpenAI", return_value=llm):
        client = ChatCompletionClient(api_key="test-key")
        with pytest.raises(CompletionError) as exc_info:
            await client.complete_json("s", "u")

    assert exc_info.value.malformed is True
