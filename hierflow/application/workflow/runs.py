"""Run registry - cancellation signals of in-flight workflow runs."""

import logging

from hierflow.domain.entities.cancellation import CancellationSignal

logger = logging.getLogger(__name__)


class RunAlreadyActiveError(ValueError):
    """A run with the same id is still in progress."""


class RunRegistry:
    """In-memory map run_id → CancellationSignal for the runs of this process.

    Runs share nothing else; an entry lives from start() to finish().
    """

    def __init__(self) -> None:
        self._runs: dict[str, CancellationSignal] = {}

    def start(self, run_id: str) -> CancellationSignal:
        if run_id in self._runs:
            raise RunAlreadyActiveError(f"Run {run_id!r} is already in progress")
        signal = CancellationSignal()
        self._runs[run_id] = signal
        return signal

    def cancel(self, run_id: str, reason: str = "cancelled by user") -> bool:
        """Cancel an active run. Returns False if no such run."""
        signal = self._runs.get(run_id)
        if signal is None:
            return False
        signal.cancel(reason)
        logger.info("Run %s cancelled: %s", run_id, reason)
        return True

    def finish(self, run_id: str) -> None:
        self._runs.pop(run_id, None)

    def is_active(self, run_id: str) -> bool:
        return run_id in self._runs

    def active(self) -> list[str]:
        return list(self._runs)
