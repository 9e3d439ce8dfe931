"""Cooperative cancellation flag shared between a run and its owner."""


class CancellationSignal:
    """One-way flag: once cancelled, stays cancelled for the rest of the run.

    The owner (API route, client disconnect) calls cancel(); the engine and
    the chunk processor only read is_cancelled.
    """

    __slots__ = ("_cancelled", "_reason")

    def __init__(self) -> None:
        self._cancelled = False
        self._reason = ""

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str:
        return self._reason

    def cancel(self, reason: str = "") -> None:
        """Set the flag. Repeated calls keep the first reason."""
        if not self._cancelled:
            self._cancelled = True
            self._reason = reason

    def __bool__(self) -> bool:
        return self._cancelled

    def __repr__(self) -> str:
        return f"CancellationSignal(cancelled={self._cancelled})"
