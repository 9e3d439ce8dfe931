"""Tests for WorkflowState and CancellationSignal."""

import pytest
from pydantic import ValidationError

from hierflow.domain.entities.cancellation import CancellationSignal
from hierflow.domain.entities.workflow_state import StepResult, WorkflowState


class TestWorkflowState:
    """Append-only, immutable snapshots."""

    def test_starts_empty(self):
        state = WorkflowState()
        assert state.full_response == ""
        assert state.retry_count == 0

    def test_append_returns_new_snapshot(self):
        state = WorkflowState()
        grown = state.append("hello")
        assert grown.full_response == "hello"
        assert state.full_response == ""

    def test_append_is_suffix_growth(self):
        state = WorkflowState().append("a").append("b").append("c")
        assert state.full_response == "abc"

    def test_append_empty_returns_same(self):
        state = WorkflowState(full_response="x")
        assert state.append("") is state

    def test_next_retry_keeps_text(self):
        state = WorkflowState(full_response="plan").next_retry().next_retry()
        assert state.retry_count == 2
        assert state.full_response == "plan"

    def test_frozen(self):
        state = WorkflowState()
        with pytest.raises(ValidationError):
            state.full_response = "rewritten"

    def test_negative_retry_count_rejected(self):
        with pytest.raises(ValidationError):
            WorkflowState(retry_count=-1)

    def test_replaying_appends_reconstructs_text(self):
        pieces = ["\n\n<marker>\n\n", "## Plan", ": 1. Do it", "\n\n<marker>\n\n", "ok"]
        state = WorkflowState()
        snapshots = []
        for piece in pieces:
            state = state.append(piece)
            snapshots.append(state.full_response)
        assert state.full_response == "".join(pieces)
        for earlier, later in zip(snapshots, snapshots[1:]):
            assert later.startswith(earlier)


def test_step_result_fields():
    result = StepResult(full="abc", incremental="c")
    assert result.full == "abc"
    assert result.incremental == "c"


class TestCancellationSignal:
    """One-way cancellation flag."""

    def test_initially_not_cancelled(self):
        signal = CancellationSignal()
        assert not signal.is_cancelled
        assert not signal

    def test_cancel_sticks(self):
        signal = CancellationSignal()
        signal.cancel("user")
        signal.cancel("again")
        assert signal.is_cancelled
        assert signal
        assert signal.reason == "user"
