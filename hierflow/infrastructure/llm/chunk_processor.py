"""Stream chunk processor - folds a generation stream into the accumulated response."""

from collections.abc import AsyncIterator
from typing import Any

import structlog

from hierflow.domain.entities.cancellation import CancellationSignal
from hierflow.domain.entities.workflow_state import StepResult
from hierflow.domain.ports.workflow import StatusSink

log = structlog.get_logger()


class StreamingChunkProcessor:
    """Appends each text chunk and pushes the new snapshot to the sink.

    Cancellation is checked before every chunk; on cancel the stream is closed
    and the partial result returned.
    """

    def __init__(self, sink: StatusSink) -> None:
        self._sink = sink

    async def consume(
        self,
        stream: AsyncIterator[Any],
        current_full: str,
        cancellation: CancellationSignal,
    ) -> StepResult:
        parts: list[str] = []
        full = current_full
        try:
            async for chunk in stream:
                if cancellation.is_cancelled:
                    log.info("stream_cancelled", chars=sum(len(p) for p in parts))
                    break
                text = chunk if isinstance(chunk, str) else str(chunk or "")
                if not text:
                    continue
                parts.append(text)
                full += text
                await self._sink.notify(full)
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()
        return StepResult(full=full, incremental="".join(parts))
