"""Workflow use case - runs the agent workflow for one request."""

import asyncio
import uuid
from collections.abc import AsyncIterator

import structlog

from hierflow.application.workflow.dto import (
    WorkflowRequest,
    WorkflowResponse,
    WorkflowStreamEvent,
)
from hierflow.application.workflow.runs import RunRegistry
from hierflow.application.workflow.sinks import QueueSink, SnapshotSink
from hierflow.domain.entities.cancellation import CancellationSignal
from hierflow.domain.errors import WorkflowFailedError
from hierflow.domain.ports.config import WorkflowConfig
from hierflow.domain.ports.llm import LLMPort
from hierflow.domain.ports.workflow import StatusSink
from hierflow.domain.services.status_markers import correction_attempts, read_status_markers
from hierflow.infrastructure.llm import LLMGenerationClient, StreamingChunkProcessor
from hierflow.infrastructure.workflow import WorkflowEngine
from hierflow.infrastructure.workflow.prompts import BUILDER_PROMPT

log = structlog.get_logger()

# Seconds a run gets to stop on its own after the stream consumer goes away
DEFAULT_STOP_TIMEOUT = 10.0


def _to_response(run_id: str, content: str, cancelled: bool) -> WorkflowResponse:
    """Map accumulated text to response."""
    return WorkflowResponse(
        run_id=run_id,
        content=content,
        agents=[m.agent for m in read_status_markers(content)],
        correction_attempts=len(correction_attempts(content)),
        cancelled=cancelled,
    )


class WorkflowUseCase:
    """Orchestrates one run: Planner → Enhancer (↺ corrections) → Builder(s)."""

    def __init__(
        self,
        llm: LLMPort,
        config: WorkflowConfig,
        runs: RunRegistry | None = None,
        stop_timeout: float = DEFAULT_STOP_TIMEOUT,
    ) -> None:
        self._config = config
        self._stop_timeout = stop_timeout
        self._runs = runs or RunRegistry()
        self._client = LLMGenerationClient(llm)

    @property
    def runs(self) -> RunRegistry:
        return self._runs

    def _run_config(self, request: WorkflowRequest) -> WorkflowConfig:
        """Apply per-request overrides to the configured defaults."""
        overrides = request.model_dump(include={"model", "variant", "max_retries"}, exclude_none=True)
        if not overrides:
            return self._config
        return WorkflowConfig.model_validate({**self._config.model_dump(), **overrides})

    def _engine(self, sink: StatusSink) -> WorkflowEngine:
        return WorkflowEngine(
            client=self._client,
            processor=StreamingChunkProcessor(sink),
            sink=sink,
        )

    async def _run(
        self,
        request: WorkflowRequest,
        sink: StatusSink,
        cancellation: CancellationSignal,
    ) -> str:
        return await self._engine(sink).run(
            request.messages,
            request.builder_instruction or BUILDER_PROMPT,
            self._run_config(request),
            cancellation,
        )

    def cancel(self, run_id: str) -> bool:
        """Request cancellation of an active run. False if unknown."""
        return self._runs.cancel(run_id)

    async def execute(self, request: WorkflowRequest) -> WorkflowResponse:
        """Run workflow to completion (or cancellation), return full result.

        Raises WorkflowFailedError carrying the partial response when a phase fails.
        """
        run_id = request.run_id or str(uuid.uuid4())
        cancellation = self._runs.start(run_id)
        sink = SnapshotSink()
        try:
            with structlog.contextvars.bound_contextvars(run_id=run_id):
                content = await self._run(request, sink, cancellation)
        except Exception as e:
            log.error("workflow_execute_failed", run_id=run_id, error=str(e))
            raise WorkflowFailedError(str(e), partial=sink.last) from e
        finally:
            self._runs.finish(run_id)
        return _to_response(run_id, content, cancellation.is_cancelled)

    async def execute_stream(self, request: WorkflowRequest) -> AsyncIterator[WorkflowStreamEvent]:
        """Run workflow, stream every accumulated snapshot, then done or error."""
        run_id = request.run_id or str(uuid.uuid4())
        cancellation = self._runs.start(run_id)
        queue: asyncio.Queue[WorkflowStreamEvent] = asyncio.Queue()
        sink = QueueSink(queue)

        async def run_workflow() -> None:
            try:
                content = await self._run(request, sink, cancellation)
                response = _to_response(run_id, content, cancellation.is_cancelled)
                queue.put_nowait(
                    WorkflowStreamEvent(
                        event_type="done",
                        content=content,
                        payload=response.model_dump(exclude={"content"}),
                    )
                )
            except Exception as e:
                log.error("workflow_stream_failed", run_id=run_id, error=str(e))
                queue.put_nowait(
                    WorkflowStreamEvent(
                        event_type="error",
                        content=sink.last,
                        payload={"run_id": run_id, "error": str(e)},
                    )
                )

        # The task copies the current context, so its log events carry run_id
        with structlog.contextvars.bound_contextvars(run_id=run_id):
            task = asyncio.create_task(run_workflow())
        try:
            while True:
                event = await queue.get()
                yield event
                if event.event_type in ("done", "error"):
                    break
        finally:
            if not task.done():
                # Consumer went away: the run stops at the next phase or chunk boundary
                cancellation.cancel("stream closed")
                try:
                    await asyncio.wait_for(task, timeout=self._stop_timeout)
                except asyncio.TimeoutError:
                    log.warning("workflow_stop_timeout", run_id=run_id, timeout=self._stop_timeout)
            self._runs.finish(run_id)
