from weatherbot.core.errors import (
    CompletionError,
    ConfigurationError,
    RegistryLoadError,
    WeatherBotError,
    WeatherFetchError,
)


def test_registry_load_error_is_a_configuration_error():
    error = RegistryLoadError("INVALID_CITIES", "'cities' must be a list")

    assert isinstance(error, ConfigurationError)
    assert isinstance(error, WeatherBotError)
    assert error.code == "INVALID_CITIES"
    assert str(error) == "INVALID_CITIES: 'cities' must be a list"


def test_completion_error_defaults_to_transport_failure():
    assert CompletionError("timeout").malformed is False


def test_weather_fetch_error_carries_location():
    error = WeatherFetchError("Paris", "HTTP error! Status: 404", status_code=404)

    assert error.location == "Paris"
    assert error.status_code == 404
    assert str(error) == "HTTP error! Status: 404"
