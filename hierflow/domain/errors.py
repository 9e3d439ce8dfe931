"""Domain errors raised by the workflow core and its collaborators."""


class WorkflowError(Exception):
    """Base class for workflow failures."""


class GenerationError(WorkflowError):
    """Generation backend rejected the request or the stream broke off.

    Fatal for the run: the engine does not retry, the caller sees it as-is.
    """


class AccumulatorError(WorkflowError):
    """A collaborator returned text that does not extend the accumulated response."""


class WorkflowFailedError(WorkflowError):
    """A run stopped on an error. partial holds the response accumulated so far."""

    def __init__(self, message: str, partial: str = "") -> None:
        super().__init__(message)
        self.partial = partial
