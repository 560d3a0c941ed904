"""Command-line interface for Puzzle Round.

- `puzzle round new` - Enter terms, generate clues, review and play
- `puzzle round generate` - Generate a puzzle file without playing
- `puzzle round play` - Play a saved puzzle
- `puzzle round answers` - Print the answer key of a saved puzzle
- `puzzle round list-models` - Models available for clue generation
"""

import typer
from rich.console import Console

from puzzleround.cli_puzzleround import app as puzzleround_app

app = typer.Typer(
    help="Puzzle Round - generate and play 'find the 4 groups of 3' puzzles",
    no_args_is_help=True,
)
console = Console()

app.add_typer(puzzleround_app, name="round", help="Generate and play puzzle rounds")


@app.callback()
def main():
    """Puzzle Round - 'find the 4 groups of 3' clue-matching game.

    Examples:

        # Full flow: terms -> generated clues -> review -> play
        puzzle round new

        # Generate a puzzle file non-interactively
        puzzle round generate -t Paris -t "Rome: Colosseum" -t Berlin -t Madrid -o capitals.yaml

        # Play it later
        puzzle round play capitals.yaml --seed 7
    """
    pass


@app.command()
def version():
    """Show version information."""
    from puzzleround import __version__ as puzzleround_version
    from shared import __version__ as shared_version

    console.print("[bold]Puzzle Round[/bold]")
    console.print(f"  puzzleround: {puzzleround_version}")
    console.print(f"  shared: {shared_version}")


if __name__ == "__main__":
    app()
