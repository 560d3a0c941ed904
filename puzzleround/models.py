"""Data model for a puzzle round: groups, tiles and the puzzle itself."""

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

# Fixed game size
GROUP_COUNT = 4
CLUES_PER_GROUP = 3
TILE_COUNT = GROUP_COUNT * CLUES_PER_GROUP


@dataclass(frozen=True)
class Group:
    """One hidden term and its three clues."""
    id: str
    term: str
    clues: Tuple[str, ...]

    def __post_init__(self):
        # Accept any sequence, store a tuple
        object.__setattr__(self, "clues", tuple(self.clues))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "term": self.term, "clues": list(self.clues)}


@dataclass(frozen=True)
class PuzzleData:
    """A complete puzzle: an optional theme plus four groups."""
    theme: str
    groups: Tuple[Group, ...]

    def __post_init__(self):
        object.__setattr__(self, "groups", tuple(self.groups))

    @property
    def group_ids(self) -> Tuple[str, ...]:
        return tuple(g.id for g in self.groups)

    def group_by_id(self, group_id: str) -> Group:
        for group in self.groups:
            if group.id == group_id:
                return group
        raise KeyError(group_id)

    def validate(self) -> None:
        """Check the 4 x 3 shape and group id uniqueness.

        Raises:
            ValueError: If the puzzle cannot be played.
        """
        if len(self.groups) != GROUP_COUNT:
            raise ValueError(f"Puzzle needs exactly {GROUP_COUNT} groups, got {len(self.groups)}")
        seen = set()
        for group in self.groups:
            if len(group.clues) != CLUES_PER_GROUP:
                raise ValueError(
                    f"Group '{group.id}' needs exactly {CLUES_PER_GROUP} clues, got {len(group.clues)}"
                )
            if group.id in seen:
                raise ValueError(f"Duplicate group id: '{group.id}'")
            seen.add(group.id)

    def to_dict(self) -> Dict[str, Any]:
        return {"theme": self.theme, "groups": [g.to_dict() for g in self.groups]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PuzzleData":
        """Create PuzzleData from a dictionary (e.g. puzzle YAML).

        Raises:
            ValueError: ``groups`` is not a list of mappings, or a group's
                ``clues`` is not a list of strings.
        """
        raw_groups = data.get("groups") or []
        if not isinstance(raw_groups, list):
            raise ValueError("'groups' must be a list")
        groups = []
        for index, raw in enumerate(raw_groups):
            if not isinstance(raw, dict):
                raise ValueError(f"Group {index + 1} must be a mapping with 'term' and 'clues'")
            clues = raw.get("clues") or []
            if not isinstance(clues, list) or not all(isinstance(c, str) for c in clues):
                raise ValueError(f"Group {index + 1} clues must be a list of strings")
            groups.append(Group(
                id=str(raw.get("id") or f"group-{index}"),
                term=str(raw.get("term", "")),
                clues=tuple(clues),
            ))
        return cls(theme=str(data.get("theme") or ""), groups=tuple(groups))


@dataclass(frozen=True)
class Tile:
    """A single selectable clue on the board.

    ``group_id`` is a lookup reference back to the owning group; matching is
    decided on it alone, never on ``text``.
    """
    id: str
    text: str
    group_id: str
    is_solved: bool = False
    is_selected: bool = False


@dataclass
class TermInput:
    """A term entered during setup, with up to three optional clue hints."""
    id: str
    term: str
    user_clues: Tuple[str, ...] = field(default_factory=lambda: ("",) * CLUES_PER_GROUP)

    def __post_init__(self):
        clues = list(self.user_clues)[:CLUES_PER_GROUP]
        clues += [""] * (CLUES_PER_GROUP - len(clues))
        self.user_clues = tuple(clues)

    @property
    def suggestions(self) -> Tuple[str, ...]:
        """Non-blank clue hints, trimmed."""
        return tuple(c.strip() for c in self.user_clues if c.strip())
