"""Developer CLI for the weather bot.

Runs the same orchestrator code path as production against the configured
completion and weather services, plus offline lookups on the entity registry.
"""

from __future__ import annotations

import asyncio
import uuid

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from weatherbot.config.settings import settings
from weatherbot.conversation.context import ConversationContext, ConversationContextStore
from weatherbot.core.errors import ConfigurationError
from weatherbot.core.logger import setup_logger
from weatherbot.nlu.registry import load_registry
from weatherbot.nlu.types import DEFAULT_CITY, LocationOptions
from weatherbot.orchestrator.pipeline import TurnResult, TurnStatus, WeatherOrchestrator, build_orchestrator

console = Console()

app = typer.Typer(
    name="weatherbot-cli",
    help="Weather bot CLI - run conversation turns locally",
    add_completion=False,
)
entities_app = typer.Typer(help="Look up known cities and countries (offline)")
app.add_typer(entities_app, name="entities")


def _setup_logging(debug: bool = False) -> None:
    setup_logger(
        level="DEBUG" if debug else settings.log_level,
        log_file=settings.log_file,
        serialize=settings.log_json,
    )


def _build(options: LocationOptions) -> WeatherOrchestrator:
    try:
        return build_orchestrator(location_options=options)
    except ConfigurationError as e:
        console.print(
            Panel(
                Text("Weather bot is not configured", style="bold red"),
                subtitle=str(e),
                border_style="red",
            )
        )
        console.print("\n[yellow]Set GROQ_API_KEY and WEATHER_API_KEY in .env or the environment.[/yellow]")
        raise typer.Exit(1) from e


def _print_turn(result: TurnResult, verbose: bool = False) -> None:
    if result.status == TurnStatus.COMPLETED and result.card is not None:
        body = result.card.message
        if result.card.icon:
            body = f"{body}\n\n[dim]{result.card.icon}[/dim]"
        console.print(Panel(body, title=result.card.title, border_style="green"))
    elif result.status == TurnStatus.NO_SUCH_LOCATION:
        console.print(f"[yellow]{result.text}[/yellow]")
    else:
        console.print(f"[red]Turn aborted:[/red] {result.error}")

    if verbose:
        source = "public IP" if result.used_ip_fallback else "message"
        console.print(
            f"[dim]intent={result.intent.intent} ({result.intent.confidence:.2f}) "
            f"location={result.resolved_location} via {source}[/dim]"
        )


@app.command()
def ask(
    text: str = typer.Argument(..., help="Message to send to the bot"),
    allowed_city: list[str] | None = typer.Option(None, "--allowed-city", "-c", help="Restrict locations to this city (repeatable)"),
    strict: bool = typer.Option(False, "--strict", help="Accept only exact known-city matches"),
    default_city: str = typer.Option(DEFAULT_CITY, "--default-city", help="Location used when none is resolved"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show intent and location details"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Run a single conversation turn."""
    _setup_logging(debug=debug)
    options = LocationOptions(
        allowed_cities=allowed_city or None,
        strict_mode=strict,
        default_city=default_city,
    )
    orchestrator = _build(options)
    context = ConversationContext(f"cli-{uuid.uuid4()}", max_messages=settings.context_max_messages)

    result = asyncio.run(orchestrator.handle_message(text, context))
    _print_turn(result, verbose=verbose)
    if result.status == TurnStatus.ABORTED:
        raise typer.Exit(1)


async def _chat_loop(orchestrator: WeatherOrchestrator, context: ConversationContext, verbose: bool) -> None:
    """Read and answer messages until empty input, EXIT or QUIT. Every turn runs on this loop."""
    while True:
        try:
            user_input = (await asyncio.to_thread(console.input, "[bold cyan]You:[/bold cyan] ")).strip()
        except EOFError:
            console.print("\n[yellow]End of input. Exiting...[/yellow]")
            break

        if not user_input:
            console.print("[yellow]Empty input detected. Exiting...[/yellow]")
            break
        if user_input.upper() in {"EXIT", "QUIT"}:
            console.print("[yellow]Exiting...[/yellow]")
            break

        try:
            result = await orchestrator.handle_message(user_input, context)
        except Exception as e:
            logger.exception("Turn failed")
            console.print(f"[red]Error:[/red] {e}", style="bold red")
            continue
        _print_turn(result, verbose=verbose)


@app.command()
def chat(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show intent and location details"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Interactive conversation sharing one context across turns."""
    _setup_logging(debug=debug)
    orchestrator = _build(LocationOptions())
    store = ConversationContextStore(max_messages=settings.context_max_messages)
    context = store.get_or_create(f"cli-{uuid.uuid4()}")

    console.print(
        Panel(
            Text("Weather bot - Interactive Mode", style="bold cyan"),
            subtitle="Enter your message (press Enter with empty text, or type EXIT/QUIT to exit)",
            border_style="cyan",
        )
    )
    asyncio.run(_chat_loop(orchestrator, context, verbose))


@entities_app.command("search")
def entities_search(pattern: str = typer.Argument(..., help="Text contained in the city name")) -> None:
    """List known cities containing a pattern."""
    matches = load_registry().search_cities(pattern)
    if not matches:
        console.print(f"[yellow]No known cities match '{pattern}'[/yellow]")
        raise typer.Exit(1)

    table = Table(title=f"Known cities matching '{pattern}'")
    table.add_column("City", style="cyan")
    for city in matches:
        table.add_row(city)
    console.print(table)


@entities_app.command("country")
def entities_country(name: str = typer.Argument(..., help="Country name")) -> None:
    """Show the capital of a country."""
    info = load_registry().country_info(name)
    if not info.is_country:
        console.print(f"[yellow]{info.country} is not a known country[/yellow]")
        raise typer.Exit(1)
    console.print(f"[green]{info.message}[/green]")


if __name__ == "__main__":
    app()
