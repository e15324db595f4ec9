"""LLM client abstraction layer."""

from .base_client import BaseLLMClient, GenerationRequest, GenerationResponse, TokenUsage

__all__ = [
    "BaseLLMClient",
    "GenerationRequest",
    "GenerationResponse",
    "TokenUsage",
]
