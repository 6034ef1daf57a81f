"""Generation service adapters."""

from .runner import GenerationClient, LLMRequest, LLMRunner

__all__ = ["GenerationClient", "LLMRequest", "LLMRunner"]
