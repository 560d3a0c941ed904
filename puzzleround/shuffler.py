"""Tile construction and shuffling."""

import random
from typing import List, Optional

from puzzleround.models import PuzzleData, Tile


def build_tiles(puzzle: PuzzleData) -> List[Tile]:
    """Flatten a puzzle into tiles in canonical (group, clue) order."""
    puzzle.validate()
    return [
        Tile(id=f"{group.id}-{index}", text=clue, group_id=group.id)
        for group in puzzle.groups
        for index, clue in enumerate(group.clues)
    ]


def fisher_yates(items: List, rng: Optional[random.Random] = None) -> List:
    """Return a uniformly shuffled copy of ``items``.

    Walks from the last index down to 1, swapping each element with a random
    one at or below it. The input list is left untouched.
    """
    rng = rng or random
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def shuffle_tiles(puzzle: PuzzleData, rng: Optional[random.Random] = None) -> List[Tile]:
    """Build the 12 tiles for a puzzle and shuffle them."""
    return fisher_yates(build_tiles(puzzle), rng)
