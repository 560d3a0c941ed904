"""Puzzle Round: a 'find the 4 groups of 3' clue-matching game.

The player supplies four terms, a language model writes three short clues per
term, the player reviews and corrects them, and then the twelve clues are
shuffled onto a board:
- Select three tiles that share a term to solve that group
- A wrong trio flashes as a mistake and clears
- Mistakes are unlimited; the round ends when all four groups are found
"""

from puzzleround.game_engine import EngineConfig, EngineState, EventKind, MatchEngine
from puzzleround.models import Group, PuzzleData, TermInput, Tile
from puzzleround.review import ReviewSession
from puzzleround.round import AppState, PuzzleRound

__version__ = "0.1.0"

__all__ = [
    "AppState",
    "EngineConfig",
    "EngineState",
    "EventKind",
    "Group",
    "MatchEngine",
    "PuzzleData",
    "PuzzleRound",
    "ReviewSession",
    "TermInput",
    "Tile",
]
