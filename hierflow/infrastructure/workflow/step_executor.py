"""Step executor - runs exactly one workflow phase."""

from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from hierflow.domain.entities.cancellation import CancellationSignal
from hierflow.domain.entities.workflow_state import WorkflowState
from hierflow.domain.errors import AccumulatorError
from hierflow.domain.ports.config import WorkflowConfig
from hierflow.domain.ports.llm import LLMMessage
from hierflow.domain.ports.workflow import (
    GenerationClient,
    GenerationRequest,
    StreamChunkProcessor,
)
from hierflow.infrastructure.workflow.status import StatusEmitter

log = structlog.get_logger()


@dataclass(frozen=True)
class StepContext:
    """Collaborators shared by every phase of one run."""

    client: GenerationClient
    processor: StreamChunkProcessor
    emitter: StatusEmitter
    cancellation: CancellationSignal
    config: WorkflowConfig
    request_id: str | None = None


async def run_step(
    agent: str,
    instruction: str,
    history: Sequence[LLMMessage],
    state: WorkflowState,
    ctx: StepContext,
    status_message: str = "Thinking...",
) -> tuple[str, WorkflowState]:
    """Run one phase. Returns (phase output, new state).

    Emits the begin marker, starts generation with the non-empty history and
    lets the chunk processor consume the stream. The processor's full text is
    adopted as the new accumulated response.
    """
    state = await ctx.emitter.begin(state, agent, status_message)

    request = GenerationRequest(
        instruction=instruction,
        messages=tuple(m for m in history if m.content),
        cancellation=ctx.cancellation,
        config=ctx.config,
        request_id=ctx.request_id,
    )
    log.debug("step_generate", agent=agent, messages=len(request.messages))
    stream = await ctx.client.generate(request)
    result = await ctx.processor.consume(stream, state.full_response, ctx.cancellation)

    if not result.full.startswith(state.full_response):
        raise AccumulatorError(f"{agent}: chunk processor rewrote the accumulated response")
    new_state = state.append(result.full[len(state.full_response) :])
    log.info(
        "step_done",
        agent=agent,
        output_chars=len(result.incremental),
        total_chars=len(new_state.full_response),
    )
    return result.incremental, new_state
