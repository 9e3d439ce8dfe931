"""Workflow state: append-only response buffer plus the correction counter."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Phase(str, Enum):
    """Workflow phase. Exactly one is active at a time."""

    PLANNING = "planning"
    ENHANCING = "enhancing"
    CORRECTING_PLAN = "correcting_plan"
    BUILDING = "building"


class WorkflowState(BaseModel):
    """Immutable per-step snapshot threaded through the workflow.

    append() is the only way to grow full_response; every step returns a new
    snapshot instead of mutating the old one.
    """

    model_config = ConfigDict(frozen=True)

    full_response: str = ""
    retry_count: int = Field(0, ge=0)

    def append(self, text: str) -> "WorkflowState":
        """Return a new snapshot with text added at the end."""
        if not text:
            return self
        return self.model_copy(update={"full_response": self.full_response + text})

    def next_retry(self) -> "WorkflowState":
        """Return a new snapshot with retry_count incremented by one."""
        return self.model_copy(update={"retry_count": self.retry_count + 1})


class StepResult(BaseModel):
    """Chunk processor output for one phase."""

    model_config = ConfigDict(frozen=True)

    full: str  # Accumulated response after the phase
    incremental: str  # Text produced by this phase only
