"""Loading and filling Markdown prompt templates."""

import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent / "prompts"

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")


class PromptManager:
    """Fills ``{{name}}`` placeholders in prompt files."""

    def __init__(self, prompts_dir: Optional[Path] = None):
        self.prompts_dir = Path(prompts_dir) if prompts_dir else PROMPTS_DIR
        self._cache: Dict[Path, str] = {}

    def _resolve(self, prompt_file: str) -> Path:
        path = Path(prompt_file)
        if path.is_absolute() or path.exists():
            return path
        return self.prompts_dir / prompt_file

    def load_template(self, prompt_file: str) -> str:
        path = self._resolve(prompt_file)
        if path not in self._cache:
            self._cache[path] = path.read_text(encoding="utf-8")
        return self._cache[path]

    def load_prompt(self, prompt_file: str, context: Dict[str, Any]) -> str:
        """Render a prompt template.

        Unknown placeholders are left untouched and logged, so a typo in a
        template shows up in the logs instead of silently vanishing.
        """
        template = self.load_template(prompt_file)

        def substitute(match: "re.Match") -> str:
            key = match.group(1)
            if key not in context:
                logger.warning(f"Prompt {prompt_file}: no value for placeholder '{key}'")
                return match.group(0)
            return str(context[key])

        return _PLACEHOLDER.sub(substitute, template)
