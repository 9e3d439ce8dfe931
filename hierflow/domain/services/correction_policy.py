"""Correction policy - decides whether a plan review sends the workflow back to planning."""

from enum import Enum

CRITICAL_ISSUES_MARKER = "## CRITICAL ISSUES"


class Decision(str, Enum):
    """Outcome of a plan review."""

    PASS = "pass"
    RETRY = "retry"


class CorrectionPolicy:
    """Bounded retry: re-plan while the reviewer flags critical issues and budget remains.

    With the budget exhausted the decision is PASS even if the marker is still
    present; the workflow builds with unresolved issues rather than loop forever.
    """

    def __init__(self, marker: str = CRITICAL_ISSUES_MARKER) -> None:
        self._marker = marker

    @property
    def marker(self) -> str:
        return self._marker

    def has_critical_issues(self, enhance_output: str) -> bool:
        return self._marker in enhance_output

    def decide(self, enhance_output: str, retry_count: int, max_retries: int) -> Decision:
        if self.has_critical_issues(enhance_output) and retry_count < max_retries:
            return Decision.RETRY
        return Decision.PASS
