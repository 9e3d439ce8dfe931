"""LLM Port - interface for language model providers."""

from typing import AsyncIterator, Literal, Protocol

from pydantic import BaseModel, ConfigDict

Role = Literal["user", "assistant", "system"]


class LLMMessage(BaseModel):
    """Single message in a conversation. Immutable; histories grow by concatenation."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


class GenerationOptions(BaseModel):
    """Per-call extras forwarded to the provider. None = provider/model default."""

    max_tokens: int | None = None
    top_p: float | None = None
    num_ctx: int | None = None  # Ollama only
    request_id: str | None = None  # Correlates every call of one workflow run


class LLMPort(Protocol):
    """Interface for LLM providers (Ollama, LM Studio, etc.)."""

    def generate_stream(
        self,
        messages: list[LLMMessage],
        model: str | None = None,
        temperature: float = 0.7,
        options: GenerationOptions | None = None,
    ) -> AsyncIterator[str]:
        """Generate response with streaming (yields content chunks)."""
        ...

    async def is_available(self) -> bool:
        """Check if the LLM provider is available."""
        ...
