"""OpenRouter API adapter for LLM calls.

Two layers:
- ``chat``: function-based call to the Chat Completions endpoint, with retry
- ``OpenRouterAdapter``: stateful wrapper that resolves CLI model names from
  model_mappings.yml and returns content plus call metadata
"""

import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

import requests
import yaml

from ..utils.retry import retry_with_backoff

logger = logging.getLogger(__name__)

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"


def _get_shared_inputs_path() -> Path:
    """Get path to shared/inputs directory."""
    return Path(__file__).parent.parent / "inputs"


def _load_model_mappings(mappings_file: Optional[Path] = None) -> Dict[str, Any]:
    """Load model mappings from YAML configuration file."""
    if mappings_file is None:
        mappings_file = _get_shared_inputs_path() / "model_mappings.yml"

    try:
        with open(mappings_file, "r") as f:
            data = yaml.safe_load(f) or {}
        return data.get("models", {})
    except FileNotFoundError:
        logger.warning(f"Model mappings file not found: {mappings_file}")
        return {}
    except yaml.YAMLError as e:
        logger.error(f"Error loading model mappings: {e}")
        return {}


def _flatten(mappings: Dict[str, Any]) -> Dict[str, str]:
    """Flatten hierarchical mappings to a simple name->id dict."""
    flat: Dict[str, str] = {}
    for section in ("thinking", "non_thinking"):
        flat.update(mappings.get(section) or {})
    for k, v in mappings.items():
        if k not in ("thinking", "non_thinking") and isinstance(v, str):
            flat[k] = v
    return flat


def _thinking_model_ids(mappings: Dict[str, Any]) -> Set[str]:
    return set((mappings.get("thinking") or {}).values())


def _get_api_key() -> str:
    """Get OpenRouter API key from environment."""
    api_key = os.getenv("OPENROUTER_API_KEY")
    if not api_key:
        raise ValueError("OPENROUTER_API_KEY environment variable not set")
    return api_key


def resolve_model_id(model_name: str, mappings: Optional[Dict[str, Any]] = None) -> str:
    """Resolve a CLI model name (e.g. "gemini-flash") to an OpenRouter model ID.

    Unknown names are assumed to already be full model IDs.
    """
    if mappings is None:
        mappings = _load_model_mappings()
    return _flatten(mappings).get(model_name, model_name)


@retry_with_backoff(max_retries=3, base_delay=2.0, exceptions=(requests.RequestException,))
def chat(
    messages: List[Dict],
    model: str,
    timeout: int = 120,
    json_mode: bool = False,
    thinking: bool = False,
    api_key: Optional[str] = None,
) -> Dict:
    """Call the OpenRouter Chat Completions API.

    Args:
        messages: List of message objects with 'role' and 'content'
        model: OpenRouter model ID (e.g. 'google/gemini-2.5-flash')
        timeout: Request timeout in seconds
        json_mode: Ask the provider for a JSON object response
        thinking: Model is a reasoning model (no temperature/max_tokens)
        api_key: Explicit key; read from the environment when omitted

    Returns:
        Raw API response JSON including usage and cost info

    Raises:
        requests.RequestException: On transport or HTTP errors
    """
    headers = {
        "Authorization": f"Bearer {api_key or _get_api_key()}",
        "Content-Type": "application/json",
        "X-Title": "Puzzle Round",
    }

    payload: Dict[str, Any] = {
        "model": model,
        "messages": messages,
        "usage": {"include": True},
    }
    if json_mode:
        payload["response_format"] = {"type": "json_object"}

    if thinking:
        # Reasoning models reject sampling params and need longer to answer
        timeout = max(timeout, 600)
    else:
        payload.update({
            "max_tokens": 4000,
            "temperature": 0.7,
        })

    response = requests.post(OPENROUTER_URL, json=payload, headers=headers, timeout=timeout)

    if not response.ok:
        try:
            error_msg = response.json().get("error", {}).get("message", "")
        except ValueError:
            error_msg = ""
        if error_msg:
            logger.error(f"[OpenRouter] {response.status_code} for model {model}: {error_msg}")

    response.raise_for_status()
    return response.json()


class OpenRouterAdapter:
    """Class-based adapter for calling AI models through OpenRouter.

    The API key is checked at construction so a missing credential fails
    before any prompt is built.
    """

    def __init__(self, model_mappings_file: Optional[str] = None, timeout: int = 120):
        self.api_key = _get_api_key()
        self.timeout = timeout

        if model_mappings_file:
            self.model_mappings = _load_model_mappings(Path(model_mappings_file))
        else:
            self.model_mappings = _load_model_mappings()

        logger.info(f"Loaded model mappings with {len(self._flatten_mappings())} models")

    def _flatten_mappings(self) -> Dict[str, str]:
        return _flatten(self.model_mappings)

    def resolve_model(self, model_name: str) -> str:
        """Resolve CLI model name to OpenRouter model ID."""
        return self._flatten_mappings().get(model_name, model_name)

    def is_thinking_model(self, model_name: str) -> bool:
        return self.resolve_model(model_name) in _thinking_model_ids(self.model_mappings)

    def call_model_with_metadata(
        self,
        model_name: str,
        prompt: str,
        system_prompt: Optional[str] = None,
        json_mode: bool = False,
    ) -> Tuple[str, Dict]:
        """Call a model and return ``(content, metadata)``."""
        model_id = self.resolve_model(model_name)

        if model_name not in self._flatten_mappings():
            logger.warning(f"Model '{model_name}' not found in mappings, using as-is: {model_id}")

        logger.debug(f"Calling model {model_id} (from {model_name}) with prompt length: {len(prompt)}")

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        start_time = time.time()
        response_data = chat(
            messages,
            model_id,
            timeout=self.timeout,
            json_mode=json_mode,
            thinking=self.is_thinking_model(model_name),
            api_key=self.api_key,
        )
        latency_ms = (time.time() - start_time) * 1000

        content = ""
        choices = response_data.get("choices") or []
        if choices:
            message = choices[0].get("message") or {}
            content = message.get("content") or ""

        usage = response_data.get("usage") or {}
        metadata = {
            "model_id": model_id,
            "latency_ms": latency_ms,
            "input_tokens": usage.get("prompt_tokens", 0),
            "output_tokens": usage.get("completion_tokens", 0),
            "total_tokens": usage.get("total_tokens", 0),
            "openrouter_cost": usage.get("cost", 0.0) or 0.0,
        }

        if not content.strip() and metadata["output_tokens"] > 0:
            logger.warning(
                f"[OpenRouter] Model generated {metadata['output_tokens']} tokens but content is empty"
            )

        logger.info(
            f"Model call completed. Tokens: {metadata['total_tokens']}, "
            f"Latency: {latency_ms:.1f}ms"
        )

        return content, metadata

    def get_available_models(self) -> List[str]:
        """Get list of available model names."""
        return list(self._flatten_mappings().keys())
