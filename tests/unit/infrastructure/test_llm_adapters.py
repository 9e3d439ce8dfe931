"""Tests for the Ollama and OpenAI-compatible adapters with the network mocked out."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from hierflow.domain.ports.config import OllamaConfig, OpenAICompatibleConfig
from hierflow.domain.ports.llm import GenerationOptions, LLMMessage
from hierflow.infrastructure.llm.ollama import OllamaAdapter
from hierflow.infrastructure.llm.openai_compatible import OpenAICompatibleAdapter

MESSAGES = [
    LLMMessage(role="system", content="You are a builder."),
    LLMMessage(role="user", content="Write it"),
]


def _ollama_chunk(content):
    return SimpleNamespace(message=SimpleNamespace(content=content))


async def _ollama_stream(*contents):
    for content in contents:
        yield _ollama_chunk(content)


class TestOllamaAdapter:
    @pytest.mark.asyncio
    async def test_generate_stream_yields_content(self):
        adapter = OllamaAdapter(OllamaConfig())
        adapter._client.chat = AsyncMock(return_value=_ollama_stream("def ", "", "main():"))

        chunks = [c async for c in adapter.generate_stream(MESSAGES, model="coder", temperature=0.0)]

        assert chunks == ["def ", "main():"]
        kwargs = adapter._client.chat.call_args.kwargs
        assert kwargs["model"] == "coder"
        assert kwargs["stream"] is True
        assert kwargs["messages"][0] == {"role": "system", "content": "You are a builder."}

    def test_options_prefer_run_values(self):
        adapter = OllamaAdapter(OllamaConfig(num_ctx=4096, num_predict=512))

        opts = adapter._ollama_options(
            0.2, GenerationOptions(max_tokens=128, num_ctx=16384, top_p=0.5)
        )

        assert opts == {"temperature": 0.2, "num_ctx": 16384, "num_predict": 128, "top_p": 0.5}

    def test_options_fall_back_to_config(self):
        adapter = OllamaAdapter(OllamaConfig(num_ctx=4096, num_predict=512))

        assert adapter._ollama_options(0.0, None) == {
            "temperature": 0.0,
            "num_ctx": 4096,
            "num_predict": 512,
        }

    def test_options_minimal(self):
        assert OllamaAdapter(OllamaConfig())._ollama_options(0.7, None) == {"temperature": 0.7}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status, expected", [(200, True), (503, False)])
    async def test_is_available_checks_tags(self, status, expected):
        http = MagicMock()
        http.__aenter__.return_value.get = AsyncMock(return_value=SimpleNamespace(status_code=status))
        adapter = OllamaAdapter(OllamaConfig(host="http://gpu-box:11434/"))

        with patch("hierflow.infrastructure.llm.ollama.httpx.AsyncClient", return_value=http):
            assert await adapter.is_available() is expected

        http.__aenter__.return_value.get.assert_awaited_once_with("http://gpu-box:11434/api/tags")

    @pytest.mark.asyncio
    async def test_is_available_false_when_unreachable(self):
        adapter = OllamaAdapter(OllamaConfig())

        with patch(
            "hierflow.infrastructure.llm.ollama.httpx.AsyncClient",
            side_effect=httpx.ConnectError("refused"),
        ):
            assert await adapter.is_available() is False


def _sse(*payloads) -> bytes:
    lines = []
    for payload in payloads:
        data = payload if isinstance(payload, str) else json.dumps(payload)
        lines.append(f"data: {data}\n\n")
    return "".join(lines).encode()


def _delta(content):
    return {"choices": [{"delta": {"content": content}}]}


def _adapter_with(handler, **config) -> OpenAICompatibleAdapter:
    adapter = OpenAICompatibleAdapter(OpenAICompatibleConfig(base_url="http://llm.test/v1/", **config))
    adapter._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return adapter


class TestOpenAICompatibleAdapter:
    @pytest.mark.asyncio
    async def test_streams_deltas_until_done(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            seen["request_id"] = request.headers.get("X-Request-ID")
            body = _sse(_delta("Hello"), "not json", {"choices": []}, _delta(" world"), "[DONE]", _delta("late"))
            return httpx.Response(200, content=body)

        adapter = _adapter_with(handler, max_tokens=1000)
        options = GenerationOptions(top_p=0.8, request_id="req-7")

        chunks = [c async for c in adapter.generate_stream(MESSAGES, model="local", temperature=0.1, options=options)]

        assert chunks == ["Hello", " world"]
        assert seen["url"] == "http://llm.test/v1/chat/completions"
        assert seen["request_id"] == "req-7"
        assert seen["body"]["model"] == "local"
        assert seen["body"]["stream"] is True
        assert seen["body"]["max_tokens"] == 1000
        assert seen["body"]["top_p"] == 0.8
        assert seen["body"]["messages"][1] == {"role": "user", "content": "Write it"}
        await adapter.close()

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        adapter = _adapter_with(lambda request: httpx.Response(500, content=b"boom"))

        with pytest.raises(httpx.HTTPStatusError, match="500"):
            async for _ in adapter.generate_stream(MESSAGES):
                pass
        await adapter.close()

    @pytest.mark.asyncio
    async def test_is_available(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200 if request.url.path == "/v1/models" else 404)

        adapter = _adapter_with(handler)
        assert await adapter.is_available() is True
        await adapter.close()

    @pytest.mark.asyncio
    async def test_is_available_false_on_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        adapter = _adapter_with(handler)
        assert await adapter.is_available() is False
        await adapter.close()

    def test_run_max_tokens_wins_over_config(self):
        adapter = OpenAICompatibleAdapter(OpenAICompatibleConfig(max_tokens=1000))

        body = adapter._chat_body("m", MESSAGES, 0.0, GenerationOptions(max_tokens=50))

        assert body["max_tokens"] == 50
        assert "top_p" not in body
