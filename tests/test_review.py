"""Tests for the editable review session."""

import pytest

from puzzleround.models import Group, PuzzleData
from puzzleround.review import ReviewSession


def make_puzzle() -> PuzzleData:
    return PuzzleData(
        theme="Capitals",
        groups=(
            Group("group-0", "Paris", ("Seine", "Louvre", "Eiffel")),
            Group("group-1", "Rome", ("Tiber", "Colosseum", "Vatican")),
            Group("group-2", "Berlin", ("Spree", "Wall", "Brandenburg")),
            Group("group-3", "Madrid", ("Prado", "Real", "Retiro")),
        ),
    )


class TestReviewSession:
    """Test cases for ReviewSession edits."""

    def setup_method(self):
        """Setup for each test."""
        self.puzzle = make_puzzle()
        self.review = ReviewSession(self.puzzle)

    def test_set_clue_isolated(self):
        self.review.set_clue(1, 2, "Pope")
        data = self.review.data
        assert data.groups[1].clues == ("Tiber", "Colosseum", "Pope")
        for index in (0, 2, 3):
            assert data.groups[index] == self.puzzle.groups[index]
        assert data.theme == "Capitals"

    def test_set_term_keeps_clues(self):
        self.review.set_term(0, "Parijs")
        group = self.review.data.groups[0]
        assert group.term == "Parijs"
        assert group.clues == ("Seine", "Louvre", "Eiffel")
        assert group.id == "group-0"

    def test_set_theme(self):
        self.review.set_theme("European capitals")
        assert self.review.data.theme == "European capitals"
        assert self.review.data.groups == self.puzzle.groups

    def test_original_untouched(self):
        self.review.set_clue(0, 0, "River")
        assert self.review.original is self.puzzle
        assert self.puzzle.groups[0].clues[0] == "Seine"

    def test_is_modified(self):
        assert not self.review.is_modified
        self.review.set_term(3, "Madrid")  # same value
        assert not self.review.is_modified
        self.review.set_term(3, "Lisbon")
        assert self.review.is_modified

    def test_empty_values_allowed(self):
        self.review.set_theme("")
        self.review.set_term(2, "")
        self.review.set_clue(2, 1, "")
        data = self.review.confirm()
        assert data.theme == ""
        assert data.groups[2].term == ""
        assert data.groups[2].clues == ("Spree", "", "Brandenburg")

    def test_index_errors(self):
        with pytest.raises(IndexError):
            self.review.set_term(4, "X")
        with pytest.raises(IndexError):
            self.review.set_term(-1, "X")
        with pytest.raises(IndexError):
            self.review.set_clue(0, 3, "X")
        assert self.review.data == self.puzzle

    def test_confirm_returns_current_copy(self):
        self.review.set_clue(3, 0, "Museum")
        confirmed = self.review.confirm()
        assert confirmed.groups[3].clues[0] == "Museum"
        assert self.review.is_confirmed

    def test_no_edits_after_confirm(self):
        self.review.confirm()
        with pytest.raises(RuntimeError):
            self.review.set_theme("late")
        with pytest.raises(RuntimeError):
            self.review.confirm()
