"""
Shared utilities for the tablediff tool

Provides:
- logging: Structured/console logging setup
- retry: Exponential backoff for transient backend failures
- tracing: OpenTelemetry spans around planning, execution and merge
- metrics: Prometheus metrics for diff runs
"""

__version__ = "1.0.0"
__all__ = ["logging", "retry", "tracing", "metrics"]
