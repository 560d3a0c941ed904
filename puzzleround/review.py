"""Editable review step between generation and play."""

import logging
from dataclasses import replace

from puzzleround.models import PuzzleData

logger = logging.getLogger(__name__)


class ReviewSession:
    """Working copy of a generated puzzle that the user may correct.

    Each setter swaps in a new ``PuzzleData`` snapshot, so a half-applied edit
    can never be observed. Content is not validated here; empty terms or clues
    are the user's call.
    """

    def __init__(self, puzzle: PuzzleData):
        self.original = puzzle
        self._data = puzzle
        self._confirmed = False

    @property
    def data(self) -> PuzzleData:
        return self._data

    @property
    def is_modified(self) -> bool:
        return self._data != self.original

    @property
    def is_confirmed(self) -> bool:
        return self._confirmed

    def _check_open(self) -> None:
        if self._confirmed:
            raise RuntimeError("Review session already confirmed")

    def set_theme(self, text: str) -> PuzzleData:
        self._check_open()
        self._data = replace(self._data, theme=text)
        return self._data

    def set_term(self, group_index: int, text: str) -> PuzzleData:
        self._check_open()
        index = self._group_index(group_index)
        groups = list(self._data.groups)
        groups[index] = replace(groups[index], term=text)
        self._data = replace(self._data, groups=tuple(groups))
        return self._data

    def set_clue(self, group_index: int, clue_index: int, text: str) -> PuzzleData:
        self._check_open()
        index = self._group_index(group_index)
        groups = list(self._data.groups)
        group = groups[index]
        clues = list(group.clues)
        if not 0 <= clue_index < len(clues):
            raise IndexError(f"Clue index {clue_index} out of range for group {group_index}")
        clues[clue_index] = text
        groups[index] = replace(group, clues=tuple(clues))
        self._data = replace(self._data, groups=tuple(groups))
        return self._data

    def _group_index(self, group_index: int) -> int:
        # Negative indices would silently edit from the end
        if not 0 <= group_index < len(self._data.groups):
            raise IndexError(f"Group index {group_index} out of range")
        return group_index

    def confirm(self) -> PuzzleData:
        """Finish reviewing and hand back the puzzle to play."""
        self._check_open()
        self._confirmed = True
        logger.info(f"Puzzle confirmed ({'edited' if self.is_modified else 'unchanged'})")
        return self._data
