"""Workflow application layer."""

from hierflow.application.workflow.dto import (
    WorkflowRequest,
    WorkflowResponse,
    WorkflowStreamEvent,
)
from hierflow.application.workflow.runs import RunAlreadyActiveError, RunRegistry
from hierflow.application.workflow.use_case import WorkflowUseCase

__all__ = [
    "RunAlreadyActiveError",
    "RunRegistry",
    "WorkflowRequest",
    "WorkflowResponse",
    "WorkflowStreamEvent",
    "WorkflowUseCase",
]
