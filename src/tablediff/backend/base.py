"""
Query backend contract and completion polling.

A backend accepts query text, runs it asynchronously and exposes the
result rows (header first) once the execution has succeeded.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol, runtime_checkable

from ..errors import BackendExecutionError, BackendTimeoutError

logger = logging.getLogger(__name__)


class ExecutionState(str, Enum):
    """Query execution states as reported by Athena."""

    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (ExecutionState.SUCCEEDED, ExecutionState.FAILED, ExecutionState.CANCELLED)


@dataclass(frozen=True)
class ExecutionStatus:
    """State of one execution, with the backend's reason on failure."""

    state: ExecutionState
    reason: str | None = None


@runtime_checkable
class QueryBackend(Protocol):
    """Operations the coordinator needs from a query engine."""

    def submit(self, query_text: str, workgroup: str) -> str:
        """Start a query and return its execution id."""
        ...

    def poll(self, execution_id: str) -> ExecutionStatus:
        """Return the current status of an execution."""
        ...

    def fetch_result_location(self, execution_id: str) -> str | None:
        """Return where the result set is stored, if the backend stores one."""
        ...

    def fetch_result_rows(self, execution_id: str) -> list[list[str]]:
        """Return the result rows of a succeeded execution, header first."""
        ...


def wait_for_completion(
    backend: QueryBackend,
    execution_id: str,
    poll_interval: float,
    max_attempts: int,
    sleep: Callable[[float], None] = time.sleep,
) -> ExecutionStatus:
    """
    Poll an execution until it reaches a terminal state.

    Args:
        backend: Backend the query was submitted to
        execution_id: Execution to wait for
        poll_interval: Seconds to sleep between polls
        max_attempts: Number of polls before giving up
        sleep: Sleep function (injectable for tests)

    Returns:
        The SUCCEEDED status

    Raises:
        BackendExecutionError: If the execution FAILED or was CANCELLED
        BackendTimeoutError: If no terminal state is seen within max_attempts polls
    """
    start = time.monotonic()

    for attempt in range(1, max_attempts + 1):
        status = backend.poll(execution_id)
        logger.debug(
            f"Execution {execution_id} is {status.state.value} "
            f"(poll {attempt}/{max_attempts})"
        )

        if status.state == ExecutionState.SUCCEEDED:
            logger.info(
                f"Execution {execution_id} succeeded after {attempt} poll(s) "
                f"({time.monotonic() - start:.1f}s)"
            )
            return status

        if status.state in (ExecutionState.FAILED, ExecutionState.CANCELLED):
            raise BackendExecutionError(
                f"Query {status.state.value}: {status.reason or 'no reason given'}",
                execution_id=execution_id,
                state=status.state.value,
            )

        if attempt < max_attempts:
            sleep(poll_interval)

    raise BackendTimeoutError(execution_id, max_attempts, time.monotonic() - start)
