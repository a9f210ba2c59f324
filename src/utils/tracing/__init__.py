"""
Distributed tracing using OpenTelemetry.

Instruments:
- Subset planning and query compilation
- Query backend calls (submit, poll, fetch)
- Result merging
"""

from .context import add_span_attributes, add_span_event, trace_operation
from .diff import SubsetSpan, trace_backend_call
from .tracer import get_tracer, initialize_tracing, shutdown_tracing

__all__ = [
    "initialize_tracing",
    "get_tracer",
    "shutdown_tracing",
    "trace_operation",
    "add_span_attributes",
    "add_span_event",
    "trace_backend_call",
    "SubsetSpan",
]
