"""CLI subcommands for puzzle rounds."""

import logging
import random
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional

import typer
from rich.markup import escape
from rich.prompt import Confirm, Prompt
from rich.table import Table

from puzzleround.display import (
    console,
    display_answers,
    display_board,
    display_celebration,
    display_review,
)
from puzzleround.errors import (
    GenerationCancelled,
    GenerationError,
    InvalidInputError,
    PuzzleRoundError,
)
from puzzleround.game_engine import EngineConfig, EngineEvent, EventKind
from puzzleround.generator import DEFAULT_LANGUAGE, DEFAULT_MODEL, PuzzleGenerator
from puzzleround.models import CLUES_PER_GROUP, GROUP_COUNT, TermInput
from puzzleround.puzzle_loader import load_puzzle, save_puzzle
from puzzleround.review import ReviewSession
from puzzleround.round import AppState, PuzzleRound
from puzzleround.scheduler import ManualScheduler
from shared.adapters.openrouter_adapter import _flatten, _load_model_mappings
from shared.utils.logging import setup_logging

app = typer.Typer(help="Generate and play 'find the 4 groups of 3' puzzle rounds")
logger = logging.getLogger(__name__)

QUIT_WORDS = {"q", "quit", "exit"}


def parse_term_option(index: int, raw: str) -> TermInput:
    """Parse ``--term "Paris: Seine, Louvre"`` into a TermInput."""
    term, _, hints = raw.partition(":")
    clues = [c.strip() for c in hints.split(",") if c.strip()] if hints else []
    return TermInput(id=str(index + 1), term=term.strip(), user_clues=tuple(clues[:CLUES_PER_GROUP]))


def _engine_config(confirm_delay: int, mistake_delay: int) -> EngineConfig:
    try:
        return EngineConfig(
            confirm_delay_ms=confirm_delay,
            mistake_delay_ms=mistake_delay,
            mistake_clear_ms=mistake_delay,
        )
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def _make_round(model: str, language: str, config: EngineConfig) -> PuzzleRound:
    generator = PuzzleGenerator(model_name=model, language=language)
    return PuzzleRound(generator=generator, scheduler=ManualScheduler(), config=config)


def _run_generation(puzzle_round: PuzzleRound, theme: str, terms: List[TermInput]) -> Optional[ReviewSession]:
    """Generate on a worker thread behind a spinner; Ctrl+C cancels.

    Returns None when generation failed or was cancelled; the round is back in
    setup in both cases.
    """
    executor = ThreadPoolExecutor(max_workers=1)
    future = executor.submit(puzzle_round.generate, theme, terms)
    try:
        with console.status("[bold]Generating clues...[/bold]", spinner="dots"):
            return future.result()
    except KeyboardInterrupt:
        puzzle_round.cancel_generation()
        console.print("\n[yellow]Generation cancelled.[/yellow]")
        return None
    except GenerationCancelled:
        console.print("[yellow]Generation cancelled.[/yellow]")
        return None
    except GenerationError as e:
        console.print(f"[red]Could not generate the puzzle: {e}[/red]")
        console.print("[yellow]Check OPENROUTER_API_KEY and try again.[/yellow]")
        return None
    finally:
        executor.shutdown(wait=False)


def _prompt_terms() -> tuple:
    """Ask for the theme and the four terms with optional clue hints."""
    console.print("\n[bold]Enter 4 terms.[/bold] Clue hints are optional; the generator fills the rest.")
    theme = Prompt.ask("Theme (optional)", default="", show_default=False)
    terms = []
    for i in range(GROUP_COUNT):
        term = ""
        while not term.strip():
            term = Prompt.ask(f"Term {i + 1}")
            if not term.strip():
                console.print("[red]A term is required.[/red]")
        hints = Prompt.ask("  Clue hints, comma separated (optional)", default="", show_default=False)
        clues = [c.strip() for c in hints.split(",") if c.strip()]
        terms.append(TermInput(id=str(i + 1), term=term.strip(), user_clues=tuple(clues[:CLUES_PER_GROUP])))
    return theme, terms


def _review_loop(review: ReviewSession) -> bool:
    """Let the user correct the generated content.

    Returns True to start playing, False to go back to setup.
    """
    help_text = (
        "[dim]Commands: theme <text> | term <n> <text> | clue <n> <c> <text> | "
        "play | back[/dim]"
    )
    while True:
        display_review(review.data)
        console.print(help_text)
        command = Prompt.ask("review").strip()
        verb, _, rest = command.partition(" ")
        verb = verb.lower()
        try:
            if verb == "play":
                return True
            if verb == "back":
                return False
            if verb == "theme":
                review.set_theme(rest.strip())
            elif verb == "term":
                number, _, text = rest.strip().partition(" ")
                review.set_term(int(number) - 1, text.strip())
            elif verb == "clue":
                parts = rest.strip().split(" ", 2)
                text = parts[2].strip() if len(parts) > 2 else ""
                review.set_clue(int(parts[0]) - 1, int(parts[1]) - 1, text)
            else:
                console.print(f"[red]Unknown command '{verb}'[/red]")
        except (ValueError, IndexError):
            console.print("[red]Invalid command. Group numbers are 1-4, clue numbers 1-3.[/red]")


def _play_loop(puzzle_round: PuzzleRound) -> bool:
    """Play the current puzzle in the terminal.

    Returns True when the puzzle was solved, False when the player quit.
    """
    engine = puzzle_round.engine
    scheduler = engine.scheduler
    puzzle = puzzle_round.puzzle

    def on_event(event: EngineEvent) -> None:
        if event.kind is EventKind.MATCH:
            term = puzzle.group_by_id(event.group_id).term
            console.print(f"[green]✓ Found: {escape(term.upper())}[/green]")
        elif event.kind is EventKind.MISTAKE:
            console.bell()
            console.print("[bold red]✗ Those do not belong together![/bold red]")
        elif event.kind is EventKind.COMPLETE:
            display_celebration(engine.mistakes)

    engine.subscribe(on_event)
    try:
        while not engine.is_complete():
            display_board(engine, puzzle)
            answer = Prompt.ask("Tile numbers (q to quit)").strip().lower()
            if answer in QUIT_WORDS:
                return False
            tiles = engine.tiles
            for token in answer.replace(",", " ").split():
                if not token.isdigit() or not 1 <= int(token) <= len(tiles):
                    console.print(f"[red]'{token}' is not a tile number[/red]")
                    continue
                engine.select_tile(tiles[int(token) - 1].id)
                # Play out the confirmation/mistake delays before the next click
                scheduler.run_all(sleep=time.sleep)
        display_board(engine, puzzle)
        return True
    finally:
        engine.unsubscribe(on_event)


@app.command()
def new(
    model: str = typer.Option(DEFAULT_MODEL, "--model", "-m", help="Model used to write the clues"),
    language: str = typer.Option(DEFAULT_LANGUAGE, help="Language of the generated clues"),
    seed: Optional[int] = typer.Option(None, help="Random seed for the tile order"),
    confirm_delay: int = typer.Option(200, help="Delay (ms) before a correct trio locks in"),
    mistake_delay: int = typer.Option(500, help="Delay (ms) for each step of the mistake feedback"),
    save: Optional[Path] = typer.Option(None, help="Save the reviewed puzzle to this YAML file"),
    log_path: str = typer.Option("logs/puzzleround", help="Directory for log files"),
    verbose: bool = typer.Option(False, help="Enable verbose logging"),
):
    """Enter terms, generate clues, review them and play."""
    setup_logging(Path(log_path), verbose)
    puzzle_round = _make_round(model, language, _engine_config(confirm_delay, mistake_delay))
    rng = random.Random(seed) if seed is not None else None

    while True:
        if puzzle_round.state is AppState.SETUP:
            theme, terms = _prompt_terms()
            try:
                review = _run_generation(puzzle_round, theme, terms)
            except InvalidInputError as e:
                console.print(f"[red]{e}[/red]")
                continue
            if review is None:
                continue

        if puzzle_round.state is AppState.REVIEW:
            if not _review_loop(puzzle_round.review):
                puzzle_round.back_to_setup()
                continue
            puzzle = puzzle_round.confirm(rng)
            if save:
                try:
                    save_puzzle(puzzle, save)
                except PuzzleRoundError as e:
                    console.print(f"[red]Error: {e}[/red]")
                    raise typer.Exit(1)
                console.print(f"[dim]Puzzle saved to {save}[/dim]")

        solved = _play_loop(puzzle_round)
        if solved:
            display_answers(puzzle_round.puzzle)
        if not Confirm.ask("New puzzle?", default=False):
            break
        puzzle_round.reset()


@app.command()
def generate(
    term: List[str] = typer.Option(
        ..., "--term", "-t", help="A term, optionally with hints: 'Paris: Seine, Louvre'. Give 4."
    ),
    theme: str = typer.Option("", help="Theme (optional)"),
    model: str = typer.Option(DEFAULT_MODEL, "--model", "-m", help="Model used to write the clues"),
    language: str = typer.Option(DEFAULT_LANGUAGE, help="Language of the generated clues"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the puzzle to this YAML file"),
    log_path: str = typer.Option("logs/puzzleround", help="Directory for log files"),
    verbose: bool = typer.Option(False, help="Enable verbose logging"),
):
    """Generate a puzzle without playing it."""
    setup_logging(Path(log_path), verbose)
    terms = [parse_term_option(i, raw) for i, raw in enumerate(term)]
    generator = PuzzleGenerator(model_name=model, language=language)

    try:
        with console.status("[bold]Generating clues...[/bold]", spinner="dots"):
            puzzle = generator.generate(theme, terms)
    except InvalidInputError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    except GenerationError as e:
        console.print(f"[red]Could not generate the puzzle: {e}[/red]")
        raise typer.Exit(1)

    display_answers(puzzle)
    if output:
        try:
            save_puzzle(puzzle, output)
        except PuzzleRoundError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1)
        console.print(f"[green]Puzzle saved to {output}[/green]")


@app.command()
def play(
    puzzle_file: Path = typer.Argument(..., help="Puzzle YAML file"),
    seed: Optional[int] = typer.Option(None, help="Random seed for the tile order"),
    confirm_delay: int = typer.Option(200, help="Delay (ms) before a correct trio locks in"),
    mistake_delay: int = typer.Option(500, help="Delay (ms) for each step of the mistake feedback"),
    log_path: str = typer.Option("logs/puzzleround", help="Directory for log files"),
    verbose: bool = typer.Option(False, help="Enable verbose logging"),
):
    """Play a saved puzzle."""
    setup_logging(Path(log_path), verbose)
    try:
        puzzle = load_puzzle(puzzle_file)
    except PuzzleRoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    logger.info(f"Playing {puzzle_file} (seed={seed})")
    puzzle_round = PuzzleRound(
        scheduler=ManualScheduler(),
        config=_engine_config(confirm_delay, mistake_delay),
    )
    puzzle_round.start_game(puzzle, random.Random(seed) if seed is not None else None)
    if _play_loop(puzzle_round):
        display_answers(puzzle)


@app.command()
def answers(puzzle_file: Path = typer.Argument(..., help="Puzzle YAML file")):
    """Print the answer key of a saved puzzle."""
    try:
        puzzle = load_puzzle(puzzle_file)
    except PuzzleRoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    display_answers(puzzle)


@app.command()
def list_models():
    """List models available for clue generation."""
    mappings = _load_model_mappings()
    flat = _flatten(mappings)
    if not flat:
        console.print("[red]No models found in model_mappings.yml[/red]")
        raise typer.Exit(1)

    thinking = set((mappings.get("thinking") or {}).keys())
    table = Table(title="Available AI Models")
    table.add_column("CLI Name", style="cyan", min_width=15)
    table.add_column("OpenRouter Model ID", style="magenta", min_width=30)
    table.add_column("Type", style="green")
    for name in sorted(flat):
        table.add_row(name, flat[name], "thinking" if name in thinking else "standard")
    console.print(table)
    console.print(f"\n[dim]Default: {DEFAULT_MODEL}[/dim]")
