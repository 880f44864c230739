"""Typer CLI entry point for playing the ladder quiz in a terminal."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import structlog
import typer
from dotenv import load_dotenv

from ..config.settings import DEFAULT_CONFIG_PATH, ConfigError, GameConfig, load_game_config
from ..core.engine import GameEngine, GameStartError
from ..core.ladder import CATEGORIES
from ..narrator import CHOICE_LETTERS, GameNarrator, build_ladder_table, console
from ..providers.question_source import build_question_source

LOGGER = structlog.get_logger(__name__)

app = typer.Typer(help="Play a 15-question ladder quiz with lifelines.", invoke_without_command=False)
_configured_logging = False


def configure_logging(level: int = logging.INFO) -> None:
    global _configured_logging
    if _configured_logging:
        return
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
    _configured_logging = True


def configure_play_logging() -> None:
    """Keep the interactive screen quiet: only warnings and errors are logged."""
    logging.getLogger().setLevel(logging.WARNING)
    configure_logging(logging.WARNING)


def _prompt_categories() -> List[str]:
    for number, category in enumerate(CATEGORIES, start=1):
        console.print(f"  {number:>2}. {category}")
    raw = console.input("Pick categories (comma separated numbers, Enter for all): ").strip()
    if not raw:
        return list(CATEGORIES)

    picked: List[str] = []
    for token in raw.split(","):
        token = token.strip()
        if token.isdigit() and 1 <= int(token) <= len(CATEGORIES):
            picked.append(CATEGORIES[int(token) - 1])
    return picked


async def _dispatch(engine: GameEngine, narrator: GameNarrator, command: str) -> bool:
    """Apply one typed command. Returns False when the player quits."""
    if command in {"q", "quit", "exit"}:
        engine.reset()
        return False
    if command.upper() in CHOICE_LETTERS and len(command) == 1:
        engine.select_choice(CHOICE_LETTERS.index(command.upper()))
    elif command in {"l", "lock"}:
        if engine.provisional_choice is None:
            console.print("[dim]Select an answer first.[/dim]")
        engine.lock_in()
    elif command in {"50", "f", "fifty"}:
        engine.use_fifty_fifty()
    elif command in {"p", "poll"}:
        engine.use_audience_poll()
    elif command in {"s", "switch"}:
        await engine.use_switch_question()
    elif command in {"w", "walk"}:
        engine.walk_away()
    elif command in {"ladder"}:
        state = engine.state
        narrator.show_ladder(state.level if state else None)
    else:
        narrator.show_help()
    return True


async def _play_round(engine: GameEngine, narrator: GameNarrator, reveal_seconds: float) -> bool:
    """Run one game to its end. Returns False when the player quits."""
    while True:
        state = engine.state
        if state is None or state.game_over:
            return True
        if state.answered:
            await asyncio.sleep(reveal_seconds)
            engine.next_question()
            continue

        command = (await asyncio.to_thread(console.input, "[bold]> [/bold]")).strip().lower()
        if engine.state is not state or state.game_over:
            # The timer ran out while waiting for input.
            return True
        if not await _dispatch(engine, narrator, command):
            return False


async def _play_async(engine: GameEngine, narrator: GameNarrator, categories: List[str], reveal_seconds: float) -> int:
    while True:
        try:
            await engine.start_game(categories)
        except GameStartError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            return 1

        narrator.show_help()
        finished = await _play_round(engine, narrator, reveal_seconds)
        engine.reset()
        if not finished:
            return 0

        again = (await asyncio.to_thread(console.input, "Play again? (y/N) ")).strip().lower()
        if again not in {"y", "yes"}:
            return 0
        categories = await asyncio.to_thread(_prompt_categories)


@app.command("play")
def play(
    category: Optional[List[str]] = typer.Option(None, "--category", "-c", help="Category to draw questions from (repeatable)"),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, help="Path to the JSON configuration file"),
    seed: Optional[int] = typer.Option(None, help="Seed for lifeline and fallback randomness"),
    offline: bool = typer.Option(False, "--offline", help="Skip the language model and use the built-in questions"),
) -> None:
    """Play one game in the terminal."""

    load_dotenv()
    configure_play_logging()

    try:
        game_config: GameConfig = load_game_config(config)
    except ConfigError as exc:
        typer.echo(f"Error: {exc}")
        raise typer.Exit(code=1) from exc
    if offline:
        game_config.offline = True

    categories = list(category) if category else _prompt_categories()
    unknown = sorted(set(categories) - set(CATEGORIES))
    if unknown:
        console.print(f"[yellow]Unknown categories (questions may come from the whole bank): {', '.join(unknown)}[/yellow]")

    source = build_question_source(game_config)
    engine = GameEngine(source=source, seed=seed, info_message_seconds=game_config.info_message_seconds)
    narrator = GameNarrator()
    engine.subscribe(narrator)

    console.print(build_ladder_table())
    try:
        code = asyncio.run(_play_async(engine, narrator, categories, game_config.answer_reveal_seconds))
    finally:
        if source is not None:
            source.close()

    if code:
        raise typer.Exit(code=code)


@app.command("categories")
def list_categories() -> None:
    """List the question categories."""
    for name in CATEGORIES:
        typer.echo(name)


@app.command("ladder")
def show_ladder() -> None:
    """Print the money ladder."""
    console.print(build_ladder_table())


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Interface to bind"),
    port: int = typer.Option(8000, help="Port to listen on"),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    load_dotenv()
    configure_logging()
    LOGGER.info("server.start", host=host, port=port)
    uvicorn.run("millionaire.services.web_api:app", host=host, port=port, log_level="info")


if __name__ == "__main__":  # pragma: no cover
    app()
