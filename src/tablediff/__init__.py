"""
Table diff tool for large tables behind a query backend (Amazon Athena).

This package compiles a single set-comparison query between two tables,
splits the compare-column list when the compiled text exceeds the backend's
query-size limit, executes every subset and merges the partial results into
one report.

Components:
- compare: Query compilation, size bisection and the condensed diff codec
- merge: Reassembly of partial subset results
- backend: Query execution backends (Athena)
- coordinator: Run orchestration
- report: CSV report and run summary
- cli: Command-line entry point

Usage:
    from tablediff.compare import compile_query, plan_subsets
    from tablediff.coordinator import DiffCoordinator
"""

__version__ = "1.0.0"
__all__ = ["compare", "merge", "backend", "coordinator", "report", "cli"]
