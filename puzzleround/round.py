"""Application flow for one player: setup, generation, review and play.

``PuzzleRound`` replaces module-level game state with an explicit session
object. It is safe to call ``generate`` from a worker thread while the UI
thread polls ``state`` or calls ``cancel_generation``.
"""

import logging
import random
import threading
from enum import Enum
from typing import Optional, Sequence

from puzzleround.errors import (
    GenerationCancelled,
    GenerationInProgressError,
    PuzzleRoundError,
)
from puzzleround.game_engine import EngineConfig, EngineEvent, EventKind, MatchEngine
from puzzleround.generator import PuzzleGenerator, validate_terms
from puzzleround.models import PuzzleData, TermInput
from puzzleround.review import ReviewSession
from puzzleround.scheduler import Scheduler

logger = logging.getLogger(__name__)


class AppState(Enum):
    SETUP = "setup"
    GENERATING = "generating"
    REVIEW = "review"
    PLAYING = "playing"
    FINISHED = "finished"


class PuzzleRound:
    """Drives a round from term entry to a finished puzzle."""

    def __init__(
        self,
        generator: Optional[PuzzleGenerator] = None,
        scheduler: Optional[Scheduler] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.generator = generator or PuzzleGenerator()
        self.engine = MatchEngine(scheduler=scheduler, config=config)
        self.engine.subscribe(self._on_engine_event)

        self._lock = threading.Lock()
        self._state = AppState.SETUP
        self._generation = 0
        self.review: Optional[ReviewSession] = None
        self.puzzle: Optional[PuzzleData] = None

    @property
    def state(self) -> AppState:
        return self._state

    def _set_state(self, new_state: AppState) -> None:
        if new_state is not self._state:
            logger.debug(f"Round state {self._state.value} -> {new_state.value}")
            self._state = new_state

    def _require(self, *states: AppState) -> None:
        if self._state not in states:
            allowed = ", ".join(s.value for s in states)
            raise PuzzleRoundError(f"Not allowed while {self._state.value} (needs {allowed})")

    # -- generation ----------------------------------------------------

    def generate(self, theme: str, terms: Sequence[TermInput]) -> ReviewSession:
        """Generate content and open a review session for it.

        Raises:
            InvalidInputError: Bad setup input; nothing was sent.
            GenerationInProgressError: Another generation is running.
            GenerationCancelled: ``cancel_generation`` was called meanwhile.
            GenerationError: The generator failed; the round is back in setup.
        """
        with self._lock:
            if self._state is AppState.GENERATING:
                raise GenerationInProgressError("A puzzle is already being generated")
            self._require(AppState.SETUP)
            validate_terms(terms)
            self._generation += 1
            token = self._generation
            self._set_state(AppState.GENERATING)

        try:
            puzzle = self.generator.generate(theme, terms)
        except Exception as e:
            with self._lock:
                if token != self._generation:
                    raise GenerationCancelled("Generation was cancelled") from e
                self._set_state(AppState.SETUP)
            logger.error(f"Generation failed: {e}")
            raise

        with self._lock:
            if token != self._generation:
                logger.info("Discarding result of cancelled generation")
                raise GenerationCancelled("Generation was cancelled")
            self.review = ReviewSession(puzzle)
            self._set_state(AppState.REVIEW)
            return self.review

    def cancel_generation(self) -> bool:
        """Abandon the running generation, if any, and return to setup."""
        with self._lock:
            if self._state is not AppState.GENERATING:
                return False
            self._generation += 1
            self._set_state(AppState.SETUP)
            logger.info("Generation cancelled by user")
            return True

    # -- review --------------------------------------------------------

    def back_to_setup(self) -> None:
        """Leave the review step without playing; the generated puzzle is dropped."""
        with self._lock:
            self._require(AppState.REVIEW)
            self.review = None
            self._set_state(AppState.SETUP)

    def confirm(self, rng: Optional[random.Random] = None) -> PuzzleData:
        """Confirm the reviewed puzzle and start playing it."""
        with self._lock:
            self._require(AppState.REVIEW)
            puzzle = self.review.confirm()
            self.review = None
        self.start_game(puzzle, rng)
        return puzzle

    # -- play ----------------------------------------------------------

    def start_game(self, puzzle: PuzzleData, rng: Optional[random.Random] = None) -> None:
        """Play ``puzzle`` directly, e.g. one loaded from a file."""
        if self._state is AppState.GENERATING:
            raise GenerationInProgressError("Cannot start a game while generating")
        self.engine.start(puzzle, rng)
        self.puzzle = puzzle
        self._set_state(AppState.PLAYING)

    def _on_engine_event(self, event: EngineEvent) -> None:
        if event.kind is EventKind.COMPLETE and self._state is AppState.PLAYING:
            self._set_state(AppState.FINISHED)

    def reset(self) -> None:
        """Throw the current round away and go back to setup."""
        with self._lock:
            if self._state is AppState.GENERATING:
                self._generation += 1
            self.engine.reset()
            self.review = None
            self.puzzle = None
            self._set_state(AppState.SETUP)
