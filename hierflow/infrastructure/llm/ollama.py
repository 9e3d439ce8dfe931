"""Ollama adapter - implements LLMPort."""

import logging
from typing import AsyncIterator

import httpx
from ollama import AsyncClient

from hierflow.domain.ports.config import OllamaConfig
from hierflow.domain.ports.llm import GenerationOptions, LLMMessage

logger = logging.getLogger(__name__)

# Fail fast when the host is down; the read timeout covers long generations
DEFAULT_CONNECT_TIMEOUT = 5.0


class OllamaAdapter:
    """Ollama implementation of LLMPort."""

    def __init__(self, config: OllamaConfig) -> None:
        self._config = config
        read_timeout = float(config.timeout) if config.timeout else 120.0
        timeout = httpx.Timeout(
            connect=DEFAULT_CONNECT_TIMEOUT,
            read=read_timeout,
            write=read_timeout,
            pool=30.0,
        )
        self._client = AsyncClient(host=config.host, timeout=timeout)

    def _ollama_options(self, temperature: float, options: GenerationOptions | None) -> dict:
        """Build options dict: run options first, config defaults second."""
        options = options or GenerationOptions()
        opts: dict = {"temperature": temperature}
        num_ctx = options.num_ctx if options.num_ctx is not None else self._config.num_ctx
        if num_ctx is not None:
            opts["num_ctx"] = num_ctx
        num_predict = options.max_tokens if options.max_tokens is not None else self._config.num_predict
        if num_predict is not None:
            opts["num_predict"] = num_predict
        if options.top_p is not None:
            opts["top_p"] = options.top_p
        return opts

    async def generate_stream(
        self,
        messages: list[LLMMessage],
        model: str | None = None,
        temperature: float = 0.7,
        options: GenerationOptions | None = None,
    ) -> AsyncIterator[str]:
        """Generate response with streaming (yields content chunks)."""
        model = model or "llama2"
        msg_dicts = [{"role": m.role, "content": m.content} for m in messages]
        stream = await self._client.chat(
            model=model,
            messages=msg_dicts,
            options=self._ollama_options(temperature, options),
            stream=True,
        )
        async for chunk in stream:
            if chunk.message and chunk.message.content:
                yield chunk.message.content

    async def is_available(self) -> bool:
        """Check if Ollama server answers /api/tags."""
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                resp = await client.get(f"{self._config.host.rstrip('/')}/api/tags")
                return resp.status_code == 200
        except Exception as e:
            logger.debug("Ollama availability check failed: %s", e)
        return False
