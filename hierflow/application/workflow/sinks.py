"""Status sinks used by the workflow use case."""

import asyncio

from hierflow.application.workflow.dto import WorkflowStreamEvent


class SnapshotSink:
    """Remembers the latest snapshot so partial output survives a failure."""

    def __init__(self) -> None:
        self.last = ""

    async def notify(self, full_response: str) -> None:
        self.last = full_response


class QueueSink(SnapshotSink):
    """Forwards every snapshot as a 'status' event, in order."""

    def __init__(self, queue: asyncio.Queue[WorkflowStreamEvent]) -> None:
        super().__init__()
        self._queue = queue

    async def notify(self, full_response: str) -> None:
        await super().notify(full_response)
        self._queue.put_nowait(WorkflowStreamEvent(event_type="status", content=full_response))
