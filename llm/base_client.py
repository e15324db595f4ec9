"""Base LLM client interface."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from schemas.context import ContextItem


class TokenUsage(BaseModel):
    """Token accounting reported by a provider."""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class GenerationRequest(BaseModel):
    """Prompt plus context handed to a provider."""
    prompt: str
    system_prompt: Optional[str] = None
    model: Optional[str] = None
    max_tokens: Optional[int] = 4096
    temperature: Optional[float] = 0.7
    context: List[ContextItem] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class GenerationResponse(BaseModel):
    """Response from LLM."""
    content: str
    model_used: str
    provider: str
    tokens_used: TokenUsage = Field(default_factory=TokenUsage)
    finish_reason: Optional[str] = None


class BaseLLMClient(ABC):
    """Abstract base class for LLM clients."""

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """
        Generate a completion for a request.

        Args:
            request: Prompt, context and sampling settings

        Returns:
            GenerationResponse with generated text and token usage
        """
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        """Get the name of the LLM provider."""
        pass
