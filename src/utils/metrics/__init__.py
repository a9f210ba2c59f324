"""
Prometheus metrics for diff runs

Usage:
    from utils.metrics import DiffMetrics, MetricsPublisher

    publisher = MetricsPublisher(port=9091)
    publisher.start()

    metrics = DiffMetrics()
    metrics.record_run("db.a", "db.b", success=True, duration=84.2)
"""

from .diff import DiffMetrics
from .publisher import MetricsPublisher
from .registry import get_or_create_metric

__all__ = [
    "DiffMetrics",
    "MetricsPublisher",
    "get_or_create_metric",
]
