"""Workflow DTOs."""

from pydantic import BaseModel, Field

from hierflow.domain.ports.config import WorkflowVariant
from hierflow.domain.ports.llm import LLMMessage


class WorkflowRequest(BaseModel):
    """Request to run the workflow over a conversation."""

    messages: list[LLMMessage] = Field(..., min_length=1)
    builder_instruction: str | None = Field(None, max_length=100_000)  # None = default Builder prompt
    run_id: str | None = Field(None, max_length=100)  # For cancellation; auto-generated if omitted
    # Per-run overrides of the configured workflow defaults
    model: str | None = Field(None, max_length=200)
    variant: WorkflowVariant | None = None
    max_retries: int | None = Field(None, ge=0, le=10)


class WorkflowResponse(BaseModel):
    """Result of a finished (or cancelled) run."""

    run_id: str
    content: str  # Accumulated response with status markers
    agents: list[str]  # Agent labels in the order their phases started
    correction_attempts: int = 0
    cancelled: bool = False


class WorkflowStreamEvent(BaseModel):
    """SSE event for streaming workflow progress."""

    event_type: str  # status, done, error
    content: str | None = None  # Accumulated response snapshot
    payload: dict | None = None
