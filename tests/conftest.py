"""Pytest configuration and shared fixtures."""

from collections.abc import Callable

import pytest

from hierflow.domain.entities.cancellation import CancellationSignal
from hierflow.domain.errors import GenerationError
from hierflow.domain.ports.config import WorkflowConfig
from hierflow.domain.ports.llm import LLMMessage
from hierflow.domain.ports.workflow import GenerationRequest
from hierflow.infrastructure.llm import StreamingChunkProcessor
from hierflow.infrastructure.workflow import WorkflowEngine


async def _chunks(text: str, size: int = 5):
    for i in range(0, len(text), size):
        yield text[i : i + size]


class RecordingSink:
    """StatusSink that keeps every snapshot it was sent."""

    def __init__(self) -> None:
        self.snapshots: list[str] = []

    async def notify(self, full_response: str) -> None:
        self.snapshots.append(full_response)


class FakeGenerationClient:
    """GenerationClient replaying one canned output per call, streamed in small chunks."""

    def __init__(
        self,
        outputs: list[str],
        default: str = " [OK] ",
        on_generate: Callable[[int, GenerationRequest], None] | None = None,
        fail_on: int | None = None,
    ) -> None:
        self.outputs = outputs
        self.default = default
        self.on_generate = on_generate
        self.fail_on = fail_on
        self.requests: list[GenerationRequest] = []

    async def generate(self, request: GenerationRequest):
        index = len(self.requests)
        self.requests.append(request)
        if self.on_generate:
            self.on_generate(index, request)
        if index == self.fail_on:
            raise GenerationError("backend unavailable")
        text = self.outputs[index] if index < len(self.outputs) else self.default
        return _chunks(text)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def cancellation():
    return CancellationSignal()


@pytest.fixture
def history():
    """Conversation with one user request."""
    return [LLMMessage(role="user", content="Build a todo app")]


@pytest.fixture
def fake_client_cls():
    return FakeGenerationClient


@pytest.fixture
def make_engine(sink):
    """Engine over the given client with the real chunk processor and a recording sink."""

    def _make(client: FakeGenerationClient) -> WorkflowEngine:
        return WorkflowEngine(
            client=client,
            processor=StreamingChunkProcessor(sink),
            sink=sink,
        )

    return _make


@pytest.fixture
def workflow_config():
    return WorkflowConfig(model="test-model", max_retries=2)
