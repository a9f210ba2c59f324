"""
Size-driven column bisection.

Splits the compare-column list into contiguous subsets whose compiled
queries each fit under the size ceiling. A list that fits is kept whole;
otherwise it is halved at floor(n/2) and each half is planned in turn,
left leaves before right leaves.
"""

import logging
from typing import Sequence

from ..errors import SizeExceededError
from ..model import ColumnSubset, CompiledQuery, ComparisonSpec
from .compiler import compile_query

logger = logging.getLogger(__name__)


def plan_subsets_with_queries(
    spec: ComparisonSpec,
    columns: Sequence[str],
    size_ceiling: int,
) -> list[tuple[ColumnSubset, CompiledQuery]]:
    """
    Plan leaf subsets and keep the query compiled for each.

    Args:
        spec: Comparison specification
        columns: Compare columns to partition (non-empty)
        size_ceiling: Maximum query size in bytes

    Returns:
        (subset, query) pairs in left-to-right column order

    Raises:
        SizeExceededError: If a single-column query exceeds the ceiling
    """
    full_columns = tuple(columns)
    leaves: list[tuple[ColumnSubset, CompiledQuery]] = []
    splits = 0

    # Right half is pushed first so the left half is planned first
    stack: list[tuple[str, ...]] = [full_columns]
    while stack:
        current = stack.pop()
        subset = ColumnSubset(current, full_columns)
        query = compile_query(spec, subset)

        if query.byte_length <= size_ceiling:
            leaves.append((subset, query))
            continue

        if len(current) == 1:
            raise SizeExceededError(current[0], query.byte_length, size_ceiling)

        middle = len(current) // 2
        stack.append(current[middle:])
        stack.append(current[:middle])
        splits += 1
        logger.debug(
            f"Query for {len(current)} column(s) is {query.byte_length} bytes "
            f"(ceiling {size_ceiling}); splitting at {middle}"
        )

    logger.info(
        f"Planned {len(leaves)} subset(s) for {len(full_columns)} compare column(s) "
        f"after {splits} split(s)",
        extra={"subsets": len(leaves), "size_ceiling": size_ceiling},
    )
    return leaves


def plan_subsets(
    spec: ComparisonSpec,
    columns: Sequence[str],
    size_ceiling: int,
) -> list[ColumnSubset]:
    """
    Partition ``columns`` into contiguous subsets that compile under the
    size ceiling.

    The concatenation of the returned subsets equals ``columns``.

    Raises:
        SizeExceededError: If a single-column query exceeds the ceiling
    """
    return [subset for subset, _ in plan_subsets_with_queries(spec, columns, size_ceiling)]
