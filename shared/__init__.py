"""Shared infrastructure for the puzzle round tools.

- adapters: OpenRouter API adapter for LLM calls
- utils: Common utilities (retry, logging)
"""

__version__ = "0.1.0"
