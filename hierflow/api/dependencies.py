"""FastAPI dependencies."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from hierflow.api.container import get_container
from hierflow.application.workflow import WorkflowUseCase

limiter = Limiter(key_func=get_remote_address)


def get_workflow_use_case() -> WorkflowUseCase:
    """Shared WorkflowUseCase (one run registry per process)."""
    return get_container().workflow_use_case
