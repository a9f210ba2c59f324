"""
Exception hierarchy for diff runs.

Every error except DecodeWarning is fatal to a run: the coordinator
propagates it and no report file is written.
"""


class TableDiffError(Exception):
    """Base class for all tablediff errors."""


class SpecError(TableDiffError, ValueError):
    """Malformed comparison input (tables, column lists, settings)."""


class SizeExceededError(TableDiffError):
    """A single compare column still compiles to a query over the size ceiling."""

    def __init__(self, column: str, byte_length: int, size_ceiling: int):
        self.column = column
        self.byte_length = byte_length
        self.size_ceiling = size_ceiling
        super().__init__(
            f"Query for compare column {column!r} is {byte_length} bytes, "
            f"over the {size_ceiling} byte limit and cannot be split further"
        )


class BackendExecutionError(TableDiffError):
    """The backend reported FAILED/CANCELLED or returned an unusable result."""

    def __init__(self, message: str, execution_id: str | None = None, state: str | None = None):
        self.execution_id = execution_id
        self.state = state
        super().__init__(message)


class BackendTimeoutError(TableDiffError):
    """Polling exhausted its attempt budget before a terminal state."""

    def __init__(self, execution_id: str, attempts: int, elapsed_seconds: float):
        self.execution_id = execution_id
        self.attempts = attempts
        self.elapsed_seconds = elapsed_seconds
        super().__init__(
            f"Query {execution_id} did not finish after {attempts} polls "
            f"({elapsed_seconds:.0f}s)"
        )


class MergeInconsistencyError(TableDiffError):
    """Two subset results disagree on rows that must be identical."""


class DecodeWarning(UserWarning):
    """A condensed diff entry could not be parsed and was skipped."""
