"""Content generation for puzzle rounds.

Turns four user terms (plus optional clue hints) into a ``PuzzleData`` by
asking a language model for three clues per term. The model output is
normalised here: clue lists are cut to three, and anything short of a full
4 x 3 puzzle is a ``GenerationError``. Nothing is ever padded.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Sequence

import requests

from puzzleround.errors import GenerationError, InvalidInputError
from puzzleround.models import CLUES_PER_GROUP, GROUP_COUNT, Group, PuzzleData, TermInput
from puzzleround.prompt_manager import PromptManager
from shared.adapters.openrouter_adapter import OpenRouterAdapter

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-flash"
DEFAULT_LANGUAGE = "Dutch"

_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def validate_terms(terms: Sequence[TermInput]) -> None:
    """Reject setup input that must never reach the generator.

    Raises:
        InvalidInputError: Wrong number of terms or an empty term.
    """
    if len(terms) != GROUP_COUNT:
        raise InvalidInputError(f"Exactly {GROUP_COUNT} terms are required, got {len(terms)}")
    empty = [i + 1 for i, t in enumerate(terms) if not t.term.strip()]
    if empty:
        raise InvalidInputError(f"Term {', '.join(str(i) for i in empty)} is empty")


def format_terms(terms: Sequence[TermInput]) -> str:
    """Describe the terms and any clue hints for the prompt."""
    lines = []
    for index, t in enumerate(terms):
        line = f'Term {index + 1}: "{t.term.strip()}"'
        if t.suggestions:
            line += f" (user suggestions for clues: {', '.join(t.suggestions)})"
        lines.append(line)
    return "\n".join(lines)


def _strip_fences(text: str) -> str:
    text = text.strip()
    match = _FENCE.match(text)
    return match.group(1) if match else text


def parse_puzzle_response(text: str, fallback_theme: str = "") -> PuzzleData:
    """Parse and normalise the model's JSON answer.

    Raises:
        GenerationError: Empty, unparsable or incomplete response.
    """
    if not text or not text.strip():
        raise GenerationError("No response received from the model")

    try:
        data = json.loads(_strip_fences(text))
    except json.JSONDecodeError as e:
        raise GenerationError(f"Model response is not valid JSON: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("groups"), list):
        raise GenerationError("Model response has no 'groups' list")

    raw_groups: List[Any] = data["groups"]
    if len(raw_groups) != GROUP_COUNT:
        raise GenerationError(f"Expected {GROUP_COUNT} groups, model returned {len(raw_groups)}")

    groups = []
    for index, raw in enumerate(raw_groups):
        if not isinstance(raw, dict):
            raise GenerationError(f"Group {index + 1} is not an object")
        term = str(raw.get("term") or "").strip()
        if not term:
            raise GenerationError(f"Group {index + 1} has no term")
        clues = raw.get("clues")
        if not isinstance(clues, list):
            raise GenerationError(f"Group {index + 1} ('{term}') has no clue list")
        if not all(isinstance(c, str) for c in clues):
            raise GenerationError(f"Group {index + 1} ('{term}') has a clue that is not text")
        clues = [c.strip() for c in clues]
        if len(clues) < CLUES_PER_GROUP:
            raise GenerationError(
                f"Group {index + 1} ('{term}') has {len(clues)} clues, need {CLUES_PER_GROUP}"
            )
        if len(clues) > CLUES_PER_GROUP:
            logger.debug(f"Truncating {len(clues)} clues for '{term}' to {CLUES_PER_GROUP}")
        groups.append(Group(id=f"group-{index}", term=term, clues=tuple(clues[:CLUES_PER_GROUP])))

    theme = str(data.get("theme") or "").strip() or fallback_theme
    return PuzzleData(theme=theme, groups=tuple(groups))


class PuzzleGenerator:
    """Generates puzzle content through OpenRouter."""

    def __init__(
        self,
        model_name: str = DEFAULT_MODEL,
        language: str = DEFAULT_LANGUAGE,
        prompt_file: str = "generate_puzzle.md",
        system_prompt_file: str = "system.md",
        adapter: Optional[OpenRouterAdapter] = None,
    ):
        self.model_name = model_name
        self.language = language
        self.prompt_file = prompt_file
        self.system_prompt_file = system_prompt_file
        self._adapter = adapter
        self.prompt_manager = PromptManager()
        self._last_call_metadata: Optional[Dict] = None

    @property
    def adapter(self) -> OpenRouterAdapter:
        """Lazy initialization of OpenRouter adapter."""
        if self._adapter is None:
            self._adapter = OpenRouterAdapter()
        return self._adapter

    def get_last_call_metadata(self) -> Optional[Dict]:
        return self._last_call_metadata

    def build_prompt(self, theme: str, terms: Sequence[TermInput]) -> str:
        return self.prompt_manager.load_prompt(
            self.prompt_file,
            {
                "theme": theme.strip() or "Choose a theme that fits the terms",
                "terms": format_terms(terms),
                "language": self.language,
            },
        )

    def generate(self, theme: str, terms: Sequence[TermInput]) -> PuzzleData:
        """Generate a full puzzle for four terms.

        Raises:
            InvalidInputError: Before any model call, for bad setup input.
            GenerationError: Missing credential, transport failure or an
                unusable response.
        """
        validate_terms(terms)
        prompt = self.build_prompt(theme, terms)
        system_prompt = self.prompt_manager.load_template(self.system_prompt_file)

        try:
            content, metadata = self.adapter.call_model_with_metadata(
                self.model_name, prompt, system_prompt=system_prompt, json_mode=True
            )
        except ValueError as e:
            # Raised for a missing OPENROUTER_API_KEY
            logger.error(f"Generator not configured: {e}")
            raise GenerationError(str(e)) from e
        except requests.RequestException as e:
            logger.error(f"Generator call failed: {e}")
            raise GenerationError(f"Could not reach the content generator: {e}") from e
        except Exception as e:
            # Malformed response bodies surface as TypeError/AttributeError/KeyError
            logger.exception("Unexpected error from generator call")
            raise GenerationError(f"Unusable response from the content generator: {e}") from e

        self._last_call_metadata = metadata
        logger.debug(f"Raw generator response: {content}")

        puzzle = parse_puzzle_response(content, fallback_theme=theme.strip())
        logger.info(
            f"Generated puzzle '{puzzle.theme}' with {self.model_name} "
            f"in {metadata.get('latency_ms', 0):.0f}ms"
        )
        return puzzle
