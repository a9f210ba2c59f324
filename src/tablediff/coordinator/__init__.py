"""
Diff run orchestration: plan, execute, wait, decode and merge.
"""

from .coordinator import DiffCoordinator, count_by_remarks

__all__ = [
    'DiffCoordinator',
    'count_by_remarks',
]
