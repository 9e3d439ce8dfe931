"""Status emitter - writes phase-begin markers into the accumulated response."""

from hierflow.domain.entities.workflow_state import WorkflowState
from hierflow.domain.ports.workflow import StatusSink
from hierflow.domain.services.status_markers import format_status_marker


class StatusEmitter:
    """Appends a status marker and waits for the sink before the phase generates.

    The sink therefore always sees a phase's marker before any of its content.
    """

    def __init__(self, sink: StatusSink) -> None:
        self._sink = sink

    async def begin(self, state: WorkflowState, agent: str, message: str) -> WorkflowState:
        new_state = state.append(format_status_marker(agent, message))
        await self._sink.notify(new_state.full_response)
        return new_state
