"""Abstract transport layer for LLM providers.

Each concrete transport only performs HTTP I/O and returns the raw response
text. Prompt building and JSON parsing live in `generation.prompts` and
`generation.llm_helpers`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Optional


class LLMTransport(ABC):
    """Abstract base class for provider transports."""

    @abstractmethod
    def generate(self, *, system_prompt: str, user_content: str, max_tokens: int,
                 temperature: float = 0.3, response_json: bool = True) -> str:
        """Send a generation request and return the raw response content (string)."""

    def get_token_usage(self) -> Optional[Dict[str, int]]:
        """Return last-request token usage as a dict with 'input' and 'output' keys if available."""
        return None
