"""Rich rendering of the board, the review screen and the answer key."""

from typing import Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from puzzleround.game_engine import MatchEngine
from puzzleround.models import PuzzleData, Tile

console = Console()

BOARD_COLUMNS = 3


def _tile_cell(number: int, tile: Tile) -> str:
    if tile.is_solved:
        return f"[dim green]{escape(tile.text)}[/dim green]"
    if tile.is_selected:
        return f"[bold black on white] {number}. {escape(tile.text)} [/bold black on white]"
    return f"[white]{number}. {escape(tile.text)}[/white]"


def board_table(tiles: Sequence[Tile]) -> Table:
    """Lay tiles out in a 3-wide grid, numbered from 1."""
    table = Table(show_header=False, show_lines=True, expand=True)
    for _ in range(BOARD_COLUMNS):
        table.add_column(justify="center", ratio=1)

    for row_start in range(0, len(tiles), BOARD_COLUMNS):
        row = tiles[row_start:row_start + BOARD_COLUMNS]
        table.add_row(*[_tile_cell(row_start + i + 1, t) for i, t in enumerate(row)])
    return table


def groups_table(puzzle: PuzzleData, solved: Sequence[str]) -> Table:
    """The row of found terms underneath the board."""
    table = Table(show_header=False, show_lines=True, expand=True)
    for _ in puzzle.groups:
        table.add_column(justify="center", ratio=1)
    table.add_row(*[
        f"[bold green]{escape(g.term.upper())}[/bold green]" if g.id in solved else "[dim]???[/dim]"
        for g in puzzle.groups
    ])
    return table


def display_board(engine: MatchEngine, puzzle: PuzzleData) -> None:
    title = "Which 4 terms are we looking for?"
    if puzzle.theme:
        title += f"\n[dim]{escape(puzzle.theme.upper())}[/dim]"
    console.print()
    console.print(Panel(title, style="bold", expand=True))
    console.print(board_table(engine.tiles))
    console.print(groups_table(puzzle, engine.solved_groups))
    if engine.mistakes:
        console.print(f"[dim]Mistakes: {engine.mistakes}[/dim]")


def display_review(puzzle: PuzzleData) -> None:
    """Show generated content with the indices the edit commands use."""
    console.print(f"\n[bold]Review puzzle[/bold]  theme: [cyan]{escape(puzzle.theme) or '(none)'}[/cyan]")
    table = Table(show_lines=True)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Term", style="bold")
    for c in range(len(puzzle.groups[0].clues) if puzzle.groups else 0):
        table.add_column(f"Clue {c + 1}")
    for index, group in enumerate(puzzle.groups):
        table.add_row(str(index + 1), escape(group.term), *[escape(c) for c in group.clues])
    console.print(table)


def display_answers(puzzle: PuzzleData) -> None:
    """Print the answer key."""
    table = Table(title=f"Answer key{f' - {escape(puzzle.theme)}' if puzzle.theme else ''}")
    table.add_column("Term", style="bold cyan")
    table.add_column("Clues", style="white")
    for group in puzzle.groups:
        table.add_row(escape(group.term.upper()), escape(" • ".join(group.clues)))
    console.print(table)


def display_celebration(mistakes: int) -> None:
    message = "[bold]🏆 Puzzle complete![/bold]"
    if mistakes:
        message += f"\n[dim]{mistakes} mistake{'s' if mistakes != 1 else ''} along the way[/dim]"
    console.print(Panel(message, style="green", expand=True))
