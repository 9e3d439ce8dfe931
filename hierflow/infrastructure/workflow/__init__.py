"""Workflow engine - LangGraph."""

from hierflow.infrastructure.workflow.graph import (
    BUILDER_PHASES,
    WorkflowEngine,
    build_workflow_graph,
)
from hierflow.infrastructure.workflow.status import StatusEmitter
from hierflow.infrastructure.workflow.step_executor import StepContext, run_step

__all__ = [
    "BUILDER_PHASES",
    "StatusEmitter",
    "StepContext",
    "WorkflowEngine",
    "build_workflow_graph",
    "run_step",
]
