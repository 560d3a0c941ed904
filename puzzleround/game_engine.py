"""Match engine for a puzzle round.

The engine owns the authoritative tile state for one game. Presentation code
forwards tile clicks into ``select_tile`` and re-reads ``tiles`` /
``solved_groups`` whenever it receives an event.

Selecting a third tile locks the engine and schedules the evaluation on the
injected scheduler, so the short confirmation and mistake delays never block.
Every scheduled continuation captures the session token it was created under
and does nothing once ``reset`` has moved the token on.
"""

import logging
import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from puzzleround.models import CLUES_PER_GROUP, PuzzleData, Tile
from puzzleround.scheduler import Handle, ManualScheduler, Scheduler
from puzzleround.shuffler import shuffle_tiles

logger = logging.getLogger(__name__)


class EngineState(Enum):
    """States of the match engine."""
    IDLE = "idle"
    EVALUATING = "evaluating"
    COMPLETE = "complete"


class EventKind(Enum):
    """One-shot notifications sent to listeners."""
    CHANGED = "changed"
    MATCH = "match"
    MISTAKE = "mistake"
    COMPLETE = "complete"


@dataclass(frozen=True)
class EngineEvent:
    kind: EventKind
    group_id: Optional[str] = None


@dataclass(frozen=True)
class EngineConfig:
    """Presentation timing for match evaluation, in milliseconds."""
    confirm_delay_ms: int = 200  # third tile lights up before locking in
    mistake_delay_ms: int = 500  # wrong trio stays visible before the error cue
    mistake_clear_ms: int = 500  # error cue plays before the selection clears

    def __post_init__(self):
        for name in ("confirm_delay_ms", "mistake_delay_ms", "mistake_clear_ms"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")


Listener = Callable[[EngineEvent], None]


class MatchEngine:
    """State machine for finding the 4 groups of 3."""

    def __init__(
        self,
        scheduler: Optional[Scheduler] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.scheduler = scheduler if scheduler is not None else ManualScheduler()
        self.config = config or EngineConfig()

        self._tiles: List[Tile] = []
        self._index: Dict[str, int] = {}
        self._group_ids: Tuple[str, ...] = ()
        self._solved: List[str] = []
        self._state = EngineState.IDLE
        self._mistakes = 0

        self._session = 0
        self._pending: Optional[Handle] = None
        self._listeners: List[Listener] = []

    # -- observers -----------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, kind: EventKind, group_id: Optional[str] = None) -> None:
        event = EngineEvent(kind, group_id)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Listener failed handling {kind.value} event")

    # -- queries -------------------------------------------------------

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def tiles(self) -> Tuple[Tile, ...]:
        return tuple(self._tiles)

    @property
    def solved_groups(self) -> Tuple[str, ...]:
        return tuple(self._solved)

    @property
    def selected_tiles(self) -> Tuple[Tile, ...]:
        return tuple(t for t in self._tiles if t.is_selected and not t.is_solved)

    @property
    def is_locked(self) -> bool:
        return self._state is EngineState.EVALUATING

    @property
    def mistakes(self) -> int:
        """Mistakes made this session (informational, not a score)."""
        return self._mistakes

    @property
    def session(self) -> int:
        return self._session

    def is_complete(self) -> bool:
        return bool(self._group_ids) and len(self._solved) == len(self._group_ids)

    def tile(self, tile_id: str) -> Optional[Tile]:
        idx = self._index.get(tile_id)
        return self._tiles[idx] if idx is not None else None

    # -- lifecycle -----------------------------------------------------

    def start(self, puzzle: PuzzleData, rng: Optional[random.Random] = None) -> Tuple[Tile, ...]:
        """Begin a new game on ``puzzle`` with freshly shuffled tiles."""
        tiles = shuffle_tiles(puzzle, rng)
        self.reset()
        self._tiles = tiles
        self._index = {t.id: i for i, t in enumerate(tiles)}
        self._group_ids = puzzle.group_ids
        logger.info(f"Session {self._session} started with {len(tiles)} tiles")
        self._emit(EventKind.CHANGED)
        return self.tiles

    def reset(self) -> None:
        """Drop all tile state and cancel any pending evaluation."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        had_state = bool(self._tiles) or self._state is not EngineState.IDLE
        self._session += 1
        self._tiles = []
        self._index = {}
        self._group_ids = ()
        self._solved = []
        self._mistakes = 0
        self._state = EngineState.IDLE
        if had_state:
            logger.debug(f"Engine reset (session {self._session})")
            self._emit(EventKind.CHANGED)

    # -- selection -----------------------------------------------------

    def select_tile(self, tile_id: str) -> bool:
        """Toggle selection of a tile.

        Stale or impossible clicks (locked engine, finished game, unknown or
        solved tile) are ignored.

        Returns:
            True if the click changed anything.
        """
        if self._state is not EngineState.IDLE:
            logger.debug(f"Ignoring click on {tile_id}: engine is {self._state.value}")
            return False

        idx = self._index.get(tile_id)
        if idx is None:
            logger.debug(f"Ignoring click on unknown tile {tile_id}")
            return False

        tile = self._tiles[idx]
        if tile.is_solved:
            logger.debug(f"Ignoring click on solved tile {tile_id}")
            return False

        self._tiles[idx] = replace(tile, is_selected=not tile.is_selected)

        selected = self.selected_tiles
        if len(selected) == CLUES_PER_GROUP:
            self._begin_evaluation(selected)
        self._emit(EventKind.CHANGED)
        return True

    def _begin_evaluation(self, selected: Tuple[Tile, ...]) -> None:
        self._state = EngineState.EVALUATING
        group_id = selected[0].group_id
        is_match = all(t.group_id == group_id for t in selected)
        tile_ids = tuple(t.id for t in selected)
        session = self._session

        logger.debug(f"Evaluating {list(tile_ids)}: {'match' if is_match else 'mistake'}")

        if is_match:
            self._schedule(self.config.confirm_delay_ms, lambda: self._resolve_match(session, group_id))
        else:
            self._schedule(self.config.mistake_delay_ms, lambda: self._signal_mistake(session, tile_ids))

    def _schedule(self, delay_ms: int, callback: Callable[[], None]) -> None:
        self._pending = self.scheduler.call_later(delay_ms / 1000.0, callback)

    def _is_stale(self, session: int) -> bool:
        if session != self._session:
            logger.debug(f"Discarding continuation from session {session}")
            return True
        return False

    # -- continuations -------------------------------------------------

    def _resolve_match(self, session: int, group_id: str) -> None:
        if self._is_stale(session):
            return
        self._pending = None

        self._tiles = [
            replace(t, is_solved=True, is_selected=False) if t.group_id == group_id else t
            for t in self._tiles
        ]
        self._solved.append(group_id)
        logger.info(f"Group {group_id} solved ({len(self._solved)}/{len(self._group_ids)})")

        if self.is_complete():
            self._state = EngineState.COMPLETE
        else:
            self._state = EngineState.IDLE

        self._emit(EventKind.MATCH, group_id)
        if self._state is EngineState.COMPLETE:
            logger.info(f"Puzzle complete after {self._mistakes} mistakes")
            self._emit(EventKind.COMPLETE)
        self._emit(EventKind.CHANGED)

    def _signal_mistake(self, session: int, tile_ids: Tuple[str, ...]) -> None:
        if self._is_stale(session):
            return
        self._mistakes += 1
        logger.info(f"Mistake #{self._mistakes}: {list(tile_ids)}")
        self._emit(EventKind.MISTAKE)
        self._schedule(self.config.mistake_clear_ms, lambda: self._clear_mistake(session, tile_ids))

    def _clear_mistake(self, session: int, tile_ids: Tuple[str, ...]) -> None:
        if self._is_stale(session):
            return
        self._pending = None
        wrong = set(tile_ids)
        self._tiles = [
            replace(t, is_selected=False) if t.id in wrong else t
            for t in self._tiles
        ]
        self._state = EngineState.IDLE
        self._emit(EventKind.CHANGED)
