"""
Diff-run specific tracing helpers.
"""

from functools import wraps

from opentelemetry import trace

from .context import add_span_attributes, add_span_event, trace_operation


def trace_backend_call(operation: str):
    """
    Decorator factory for tracing calls to the query backend.

    The span is a CLIENT span named ``backend.<operation>``.

    Example:
        >>> @trace_backend_call("submit")
        ... def submit(self, query_text, workgroup):
        ...     ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            with trace_operation(
                f"backend.{operation}",
                kind=trace.SpanKind.CLIENT,
                component="backend",
            ):
                return func(*args, **kwargs)

        return wrapper
    return decorator


class SubsetSpan:
    """
    Span covering the execution of one leaf subset.

    Example:
        >>> with SubsetSpan(index=2, columns=("price", "qty")) as span:
        ...     span.set_execution_id("abc-123")
        ...     span.set_row_count(57)
    """

    def __init__(self, index: int, columns: tuple[str, ...]):
        self.index = index
        self.columns = columns
        self._context = None

    def __enter__(self):
        self._context = trace_operation(
            "execute_subset",
            component="coordinator",
            subset_index=self.index,
            column_count=len(self.columns),
        )
        self._context.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return self._context.__exit__(exc_type, exc_val, exc_tb)

    def set_query_bytes(self, byte_length: int) -> None:
        add_span_attributes(query_bytes=byte_length)

    def set_execution_id(self, execution_id: str) -> None:
        add_span_attributes(execution_id=execution_id)
        add_span_event("query_submitted", execution_id=execution_id)

    def set_row_count(self, rows: int) -> None:
        add_span_attributes(row_count=rows)
        add_span_event("results_fetched", rows=rows)
