"""Client transport implementations for LLM providers."""

from .base import LLMTransport
from .azure_openai import AzureOpenAITransport
from .claude import ClaudeTransport

__all__ = [
    "LLMTransport",
    "AzureOpenAITransport",
    "ClaudeTransport",
]
