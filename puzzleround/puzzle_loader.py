"""Reading and writing puzzle YAML files.

Format::

    theme: Capitals
    groups:
      - id: group-0
        term: Paris
        clues: [Seine, Louvre, Eiffel]
"""

import logging
from pathlib import Path
from typing import Union

import yaml

from puzzleround.errors import PuzzleFileError
from puzzleround.models import PuzzleData

logger = logging.getLogger(__name__)


def load_puzzle(path: Union[str, Path]) -> PuzzleData:
    """Load and validate a puzzle file."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise PuzzleFileError(f"Puzzle file not found: {path}") from e
    except yaml.YAMLError as e:
        raise PuzzleFileError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise PuzzleFileError(f"{path} does not contain a puzzle mapping")

    try:
        puzzle = PuzzleData.from_dict(data)
        puzzle.validate()
    except ValueError as e:
        raise PuzzleFileError(f"{path}: {e}") from e

    logger.info(f"Loaded puzzle '{puzzle.theme}' from {path}")
    return puzzle


def save_puzzle(puzzle: PuzzleData, path: Union[str, Path]) -> Path:
    """Write a puzzle to YAML, creating parent directories as needed."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(puzzle.to_dict(), f, sort_keys=False, allow_unicode=True)
    except OSError as e:
        raise PuzzleFileError(f"Could not write {path}: {e}") from e

    logger.info(f"Saved puzzle to {path}")
    return path
