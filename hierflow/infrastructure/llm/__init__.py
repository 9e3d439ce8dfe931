"""LLM adapters and the default workflow collaborators built on them."""

from hierflow.infrastructure.llm.chunk_processor import StreamingChunkProcessor
from hierflow.infrastructure.llm.generation import LLMGenerationClient

__all__ = ["LLMGenerationClient", "StreamingChunkProcessor"]
