"""Tests for the developer CLI."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from typer.testing import CliRunner

from cli import cli as weather_cli
from weatherbot.core.errors import ConfigurationError
from weatherbot.nlu.types import IntentResult, LocationResult
from weatherbot.orchestrator.pipeline import TurnResult, TurnStatus
from weatherbot.responses.composer import WeatherCard

runner = CliRunner()


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(weather_cli, "setup_logger", lambda *args, **kwargs: None)


def _turn(status: TurnStatus, **kwargs) -> TurnResult:
    return TurnResult(
        status=status,
        intent=IntentResult(intent="today's weather inquiry", confidence=0.9),
        location=LocationResult(value="Paris", valid=True),
        **kwargs,
    )


def _patch_orchestrator(monkeypatch, result: TurnResult) -> MagicMock:
    orchestrator = MagicMock()
    orchestrator.handle_message = AsyncMock(return_value=result)
    build = MagicMock(return_value=orchestrator)
    monkeypatch.setattr(weather_cli, "build_orchestrator", build)
    return build


def test_ask_prints_card(monkeypatch):
    card = WeatherCard(title="Paris today", message="Partly cloudy", icon="https://cdn.example/116.png")
    build = _patch_orchestrator(
        monkeypatch,
        _turn(TurnStatus.COMPLETED, resolved_location="Paris", card=card, text=card.as_text()),
    )

    result = runner.invoke(
        weather_cli.app,
        ["ask", "Weather in Paris?", "--allowed-city", "Paris", "--strict"],
    )

    assert result.exit_code == 0
    assert "Paris today" in result.output
    assert "Partly cloudy" in result.output
    options = build.call_args.kwargs["location_options"]
    assert options.allowed_cities == ["Paris"]
    assert options.strict_mode is True


def test_ask_no_such_location(monkeypatch):
    _patch_orchestrator(monkeypatch, _turn(TurnStatus.NO_SUCH_LOCATION, text="Sorry, no such place."))

    result = runner.invoke(weather_cli.app, ["ask", "Weather in Atlantis?"])

    assert result.exit_code == 0
    assert "Sorry, no such place." in result.output


def test_ask_aborted_turn_exits_nonzero(monkeypatch):
    _patch_orchestrator(monkeypatch, _turn(TurnStatus.ABORTED, error="HTTP error! Status: 500"))

    result = runner.invoke(weather_cli.app, ["ask", "Weather in Paris?"])

    assert result.exit_code == 1
    assert "HTTP error! Status: 500" in result.output


def test_ask_without_credentials(monkeypatch):
    monkeypatch.setattr(
        weather_cli,
        "build_orchestrator",
        MagicMock(side_effect=ConfigurationError("GROQ_API_KEY must be set")),
    )

    result = runner.invoke(weather_cli.app, ["ask", "Weather in Paris?"])

    assert result.exit_code == 1
    assert "not configured" in result.output


def test_entities_search():
    result = runner.invoke(weather_cli.app, ["entities", "search", "san"])

    assert result.exit_code == 0
    assert "San Francisco" in result.output


def test_entities_search_no_match():
    result = runner.invoke(weather_cli.app, ["entities", "search", "qqq"])

    assert result.exit_code == 1


def test_entities_country():
    result = runner.invoke(weather_cli.app, ["entities", "country", "japan"])

    assert result.exit_code == 0
    assert "Tokyo" in result.output


def test_entities_country_unknown():
    result = runner.invoke(weather_cli.app, ["entities", "country", "atlantis"])

    assert result.exit_code == 1


def test_chat_runs_every_turn_on_one_event_loop(monkeypatch):
    loops = []
    replies = {
        "Weather in Paris?": WeatherCard(title="Paris today", message="Sunny"),
        "And London?": WeatherCard(title="London today", message="Drizzle"),
    }

    async def handle_message(text, context):
        loops.append(asyncio.get_running_loop())
        context.append(text)
        card = replies[text]
        return _turn(TurnStatus.COMPLETED, resolved_location=card.title, card=card, text=card.as_text())

    orchestrator = MagicMock()
    orchestrator.handle_message = AsyncMock(side_effect=handle_message)
    monkeypatch.setattr(weather_cli, "build_orchestrator", MagicMock(return_value=orchestrator))

    result = runner.invoke(weather_cli.app, ["chat"], input="Weather in Paris?\nAnd London?\n\n")

    assert result.exit_code == 0
    assert "Paris today" in result.output
    assert "London today" in result.output
    assert "Empty input detected" in result.output
    assert len(loops) == 2
    assert loops[0] is loops[1]
    contexts = [call.args[1] for call in orchestrator.handle_message.await_args_list]
    assert contexts[0] is contexts[1]
    assert contexts[0].messages == ("Weather in Paris?", "And London?")


def test_chat_exits_on_quit(monkeypatch):
    orchestrator = MagicMock()
    orchestrator.handle_message = AsyncMock()
    monkeypatch.setattr(weather_cli, "build_orchestrator", MagicMock(return_value=orchestrator))

    result = runner.invoke(weather_cli.app, ["chat"], input="quit\n")

    assert result.exit_code == 0
    assert "Exiting..." in result.output
    orchestrator.handle_message.assert_not_awaited()
