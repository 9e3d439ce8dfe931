"""Workflow API routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sse_starlette.sse import EventSourceResponse

from hierflow.api.dependencies import get_workflow_use_case, limiter
from hierflow.application.workflow import (
    RunAlreadyActiveError,
    WorkflowRequest,
    WorkflowResponse,
    WorkflowUseCase,
)
from hierflow.domain.errors import WorkflowFailedError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workflow", tags=["workflow"])


@router.post("", response_model=None)
@limiter.limit("30/minute")
async def workflow(
    request: Request,
    workflow_request: WorkflowRequest,
    use_case: WorkflowUseCase = Depends(get_workflow_use_case),
    stream: bool = False,
) -> WorkflowResponse | EventSourceResponse | JSONResponse:
    """Run workflow. Use stream=true for SSE streaming."""
    if workflow_request.run_id and use_case.runs.is_active(workflow_request.run_id):
        raise HTTPException(status_code=409, detail="Run already in progress")
    if stream:
        return _stream_response(workflow_request, use_case)
    try:
        return await use_case.execute(workflow_request)
    except RunAlreadyActiveError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except WorkflowFailedError as e:
        logger.error("Workflow execution failed: %s", e)
        # Partial response stays available to the caller
        return JSONResponse(
            status_code=500,
            content={"detail": "Workflow execution failed", "content": e.partial},
        )
    except Exception:
        logger.exception("Workflow execution failed")
        raise HTTPException(status_code=500, detail="Workflow execution failed")


@router.post("/{run_id}/cancel")
@limiter.limit("60/minute")
async def cancel_workflow(
    request: Request,
    run_id: str,
    use_case: WorkflowUseCase = Depends(get_workflow_use_case),
) -> dict:
    """Cancel a running workflow; it stops at the next phase or chunk boundary."""
    if not use_case.cancel(run_id):
        raise HTTPException(status_code=404, detail="Run not found")
    return {"run_id": run_id, "cancelled": True}


def _stream_response(
    workflow_request: WorkflowRequest,
    use_case: WorkflowUseCase,
) -> EventSourceResponse:
    """Return SSE stream of workflow events."""

    async def event_generator():
        try:
            async for evt in use_case.execute_stream(workflow_request):
                yield {"event": evt.event_type, "data": evt.model_dump_json()}
        except Exception:
            logger.exception("Workflow stream failed")
            yield {"event": "error", "data": "Stream failed"}
        yield {"event": "close", "data": ""}

    return EventSourceResponse(event_generator())
