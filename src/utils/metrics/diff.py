"""
Metrics for diff runs.

Tracks run outcomes, how many leaf subsets the size ceiling forced,
compiled query sizes and the shape of the final report.
"""

import logging
import time
from typing import Mapping, Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram

from .registry import get_or_create_metric

logger = logging.getLogger(__name__)


class DiffMetrics:
    """
    Metrics for table diff runs

    Instances sharing a registry share the underlying collectors.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """
        Initialize diff metrics

        Args:
            registry: Custom Prometheus registry (default: global REGISTRY)
        """
        self.registry = registry or REGISTRY
        registry = self.registry

        self.runs_total = get_or_create_metric(
            lambda: Counter(
                "tablediff_runs_total",
                "Total number of diff runs",
                ["status"],
                registry=registry,
            ),
            "tablediff_runs_total",
            registry,
        )

        self.run_duration_seconds = get_or_create_metric(
            lambda: Histogram(
                "tablediff_run_duration_seconds",
                "Duration of diff runs in seconds",
                buckets=(5, 10, 30, 60, 120, 300, 600, 1200, 1800, 3600),
                registry=registry,
            ),
            "tablediff_run_duration_seconds",
            registry,
        )

        self.last_run_timestamp = get_or_create_metric(
            lambda: Gauge(
                "tablediff_last_run_timestamp",
                "Timestamp of the last diff run",
                ["table_a", "table_b"],
                registry=registry,
            ),
            "tablediff_last_run_timestamp",
            registry,
        )

        self.subsets_per_run = get_or_create_metric(
            lambda: Histogram(
                "tablediff_subsets_per_run",
                "Number of leaf column subsets executed per run",
                buckets=(1, 2, 4, 8, 16, 32, 64),
                registry=registry,
            ),
            "tablediff_subsets_per_run",
            registry,
        )

        self.query_bytes = get_or_create_metric(
            lambda: Histogram(
                "tablediff_query_bytes",
                "Byte length of compiled subset queries",
                buckets=(4096, 16384, 65536, 131072, 196608, 262144),
                registry=registry,
            ),
            "tablediff_query_bytes",
            registry,
        )

        self.report_rows_total = get_or_create_metric(
            lambda: Counter(
                "tablediff_report_rows_total",
                "Rows written to diff reports by remarks",
                ["remarks"],
                registry=registry,
            ),
            "tablediff_report_rows_total",
            registry,
        )

    def record_run(
        self,
        table_a: str,
        table_b: str,
        success: bool,
        duration: float,
    ) -> None:
        """
        Record the outcome of a diff run

        Args:
            table_a: First table identifier
            table_b: Second table identifier
            success: Whether the run produced a complete report
            duration: Duration in seconds
        """
        status = "success" if success else "failed"

        self.runs_total.labels(status=status).inc()
        self.run_duration_seconds.observe(duration)
        self.last_run_timestamp.labels(table_a=table_a, table_b=table_b).set(time.time())

        logger.debug(
            f"Recorded diff run: {table_a} vs {table_b}, "
            f"status={status}, duration={duration:.2f}s"
        )

    def record_plan(self, query_sizes: list[int]) -> None:
        """Record the subset plan: one entry per leaf query byte length."""
        self.subsets_per_run.observe(len(query_sizes))
        for size in query_sizes:
            self.query_bytes.observe(size)

    def record_report(self, counts_by_remarks: Mapping[str, int]) -> None:
        """Record final report rows grouped by remarks."""
        for remarks, count in counts_by_remarks.items():
            self.report_rows_total.labels(remarks=remarks).inc(count)
