"""Workflow ports - collaborators the engine drives but does not implement."""

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any, Protocol

from hierflow.domain.entities.cancellation import CancellationSignal
from hierflow.domain.entities.workflow_state import StepResult
from hierflow.domain.ports.config import WorkflowConfig
from hierflow.domain.ports.llm import LLMMessage


@dataclass(frozen=True)
class GenerationRequest:
    """Everything one phase hands to the generation backend."""

    instruction: str  # Directing (system) text for the phase's agent
    messages: tuple[LLMMessage, ...]  # History, empty messages already dropped
    cancellation: CancellationSignal
    config: WorkflowConfig
    request_id: str | None = None


class GenerationClient(Protocol):
    """Starts a generation and returns a lazy, ordered, finite chunk stream."""

    async def generate(self, request: GenerationRequest) -> AsyncIterator[Any]:
        """Raise GenerationError if the backend rejects the request."""
        ...


class StatusSink(Protocol):
    """Receives every snapshot of the accumulated response, in issue order."""

    async def notify(self, full_response: str) -> None:
        ...


class StreamChunkProcessor(Protocol):
    """Consumes one generation stream into the accumulated response.

    Must return a full that extends current_full, and must stop early with the
    partial result once cancellation is set.
    """

    async def consume(
        self,
        stream: AsyncIterator[Any],
        current_full: str,
        cancellation: CancellationSignal,
    ) -> StepResult:
        ...
