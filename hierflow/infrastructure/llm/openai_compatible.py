"""OpenAI-compatible adapter - LM Studio, vLLM, LocalAI."""

import json
import logging
from typing import AsyncIterator

import httpx

from hierflow.domain.ports.config import OpenAICompatibleConfig
from hierflow.domain.ports.llm import GenerationOptions, LLMMessage

logger = logging.getLogger(__name__)


class OpenAICompatibleAdapter:
    """Implements LLMPort via streaming /v1/chat/completions."""

    def __init__(self, config: OpenAICompatibleConfig) -> None:
        self._config = config
        self._base_url = config.base_url.rstrip("/")
        self._headers = {"Content-Type": "application/json"}
        if config.api_key:
            self._headers["Authorization"] = f"Bearer {config.api_key}"
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create persistent async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._config.timeout,
                headers=self._headers,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client (call during app shutdown)."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _chat_body(
        self,
        model: str,
        messages: list[LLMMessage],
        temperature: float,
        options: GenerationOptions,
    ) -> dict:
        """Build streaming request body; run max_tokens wins over config."""
        body: dict = {
            "model": model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": temperature,
            "stream": True,
        }
        max_tokens = options.max_tokens if options.max_tokens is not None else self._config.max_tokens
        if max_tokens is not None:
            body["max_tokens"] = max_tokens
        if options.top_p is not None:
            body["top_p"] = options.top_p
        return body

    async def generate_stream(
        self,
        messages: list[LLMMessage],
        model: str | None = None,
        temperature: float = 0.7,
        options: GenerationOptions | None = None,
    ) -> AsyncIterator[str]:
        """Generate response with streaming (Server-Sent Events)."""
        options = options or GenerationOptions()
        body = self._chat_body(model or "default", messages, temperature, options)
        headers = {"X-Request-ID": options.request_id} if options.request_id else None
        client = self._get_client()
        async with client.stream(
            "POST",
            f"{self._base_url}/chat/completions",
            json=body,
            headers=headers,
        ) as resp:
            if resp.status_code >= 400:
                err_body = await resp.aread()
                err_text = err_body.decode("utf-8", errors="replace")
                logger.error("LLM API error %s: %s", resp.status_code, err_text[:500])
                raise httpx.HTTPStatusError(
                    f"LLM API error {resp.status_code}: {err_text[:200]}",
                    request=resp.request,
                    response=resp,
                )
            async for line in resp.aiter_lines():
                if not line.startswith("data: "):
                    continue
                chunk = line[6:]
                if chunk.strip() == "[DONE]":
                    break
                try:
                    data = json.loads(chunk)
                except json.JSONDecodeError:
                    logger.debug("Skipping malformed stream line: %s", chunk[:200])
                    continue
                delta = (data.get("choices") or [{}])[0].get("delta", {})
                if content := delta.get("content"):
                    yield content

    async def is_available(self) -> bool:
        """Check if the server answers /models."""
        try:
            resp = await self._get_client().get(f"{self._base_url}/models", timeout=5.0)
            return resp.status_code == 200
        except Exception as e:
            logger.debug("OpenAI-compatible availability check failed: %s", e)
            return False
