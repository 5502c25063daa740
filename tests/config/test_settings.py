import pytest

from weatherbot.config.settings import GROQ_OPENAI_BASE_URL, Settings
from weatherbot.core.errors import ConfigurationError


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "GROQ_API_KEY",
        "WEATHER_API_KEY",
        "LOG_LEVEL",
        "CONTEXT_MAX_MESSAGES",
        "USE_IP_FALLBACK",
        "INTENT_MODEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    config = Settings(_env_file=None)

    assert config.completion_base_url == GROQ_OPENAI_BASE_URL
    assert config.intent_model == "llama3-8b-8192"
    assert config.response_model == "llama-3.3-70b-versatile"
    assert config.use_ip_fallback is True
    assert config.context_max_messages is None


def test_reads_environment(clean_env):
    clean_env.setenv("INTENT_MODEL", "other-model")
    clean_env.setenv("USE_IP_FALLBACK", "false")
    clean_env.setenv("CONTEXT_MAX_MESSAGES", "20")

    config = Settings(_env_file=None)

    assert config.intent_model == "other-model"
    assert config.use_ip_fallback is False
    assert config.context_max_messages == 20


def test_invalid_log_level_defaults_to_info(clean_env):
    clean_env.setenv("LOG_LEVEL", "chatty")

    assert Settings(_env_file=None).log_level == "INFO"


def test_log_level_is_uppercased(clean_env):
    clean_env.setenv("LOG_LEVEL", "debug")

    assert Settings(_env_file=None).log_level == "DEBUG"


def test_require_credentials_reports_missing_keys(clean_env):
    config = Settings(_env_file=None)

    with pytest.raises(ConfigurationError, match="GROQ_API_KEY and WEATHER_API_KEY"):
        config.require_credentials()


def test_require_credentials_passes(clean_env):
    clean_env.setenv("GROQ_API_KEY", "gsk-test")
    clean_env.setenv("WEATHER_API_KEY", "weather-test")

    Settings(_env_file=None).require_credentials()
