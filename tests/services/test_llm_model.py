from unittest.mock import MagicMock

import pytest

from weatherbot.services.llm.model import get_model


def test_groq_model_uses_completion_endpoint():
    config = MagicMock(completion_base_url="https://llm.example/v1", groq_api_key="gsk-test")

    model = get_model("groq", "llama-3.3-70b-versatile", config=config)

    assert model.model_name == "llama-3.3-70b-versatile"


def test_unsupported_provider():
    with pytest.raises(ValueError, match="Unsupported LLM provider"):
        get_model("carrier-pigeon", "any")
