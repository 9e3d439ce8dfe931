"""Generation client - opens a phase's stream on an LLMPort with retry."""

from collections.abc import AsyncIterator

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from hierflow.domain.entities.cancellation import CancellationSignal
from hierflow.domain.errors import GenerationError
from hierflow.domain.ports.llm import GenerationOptions, LLMMessage, LLMPort
from hierflow.domain.ports.workflow import GenerationRequest

log = structlog.get_logger()

TRANSIENT_ERRORS = (TimeoutError, ConnectionError, OSError, httpx.TransportError)


def stop_when_cancelled(cancellation: CancellationSignal):
    """tenacity stop condition: no new attempt once the run is cancelled."""

    def _stop(retry_state: RetryCallState) -> bool:
        return cancellation.is_cancelled

    return _stop


async def _empty_stream() -> AsyncIterator[str]:
    return
    yield


class LLMGenerationClient:
    """GenerationClient over any LLMPort.

    Opening the stream (up to and including the first chunk) is retried on
    transport errors; once text has been produced a failure is final, since a
    restart would duplicate output already shown to the user.
    """

    def __init__(
        self,
        llm: LLMPort,
        wait: wait_base | None = None,
    ) -> None:
        self._llm = llm
        self._wait = wait or wait_exponential(multiplier=1, min=1, max=10)

    @staticmethod
    def _options(request: GenerationRequest) -> GenerationOptions:
        config = request.config
        return GenerationOptions(
            max_tokens=config.max_tokens,
            top_p=config.provider_options.top_p,
            num_ctx=config.provider_options.num_ctx,
            request_id=request.request_id,
        )

    async def generate(self, request: GenerationRequest) -> AsyncIterator[str]:
        """Start generation; returns the stream once the first chunk has arrived."""
        messages = [LLMMessage(role="system", content=request.instruction), *request.messages]
        options = self._options(request)
        retrying = AsyncRetrying(
            stop=(
                stop_after_attempt(request.config.generation_retries + 1)
                | stop_when_cancelled(request.cancellation)
            ),
            wait=self._wait,
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        log.warning(
                            "generation_retry",
                            attempt=attempt.retry_state.attempt_number,
                            request_id=request.request_id,
                        )
                    stream = self._llm.generate_stream(
                        messages=messages,
                        model=request.config.model,
                        temperature=request.config.temperature,
                        options=options,
                    )
                    first = await anext(stream, None)
        except Exception as e:
            if request.cancellation.is_cancelled:
                # Cancelled while opening: nothing was produced, the phase ends empty
                log.info("generation_cancelled", request_id=request.request_id, error=str(e))
                return _empty_stream()
            raise GenerationError(f"Generation failed: {e}") from e
        return self._relay(first, stream)

    @staticmethod
    async def _relay(first: str | None, stream: AsyncIterator[str]) -> AsyncIterator[str]:
        try:
            if first is None:
                return
            yield first
            async for chunk in stream:
                yield chunk
        except Exception as e:
            raise GenerationError(f"Generation stream terminated abnormally: {e}") from e
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()
