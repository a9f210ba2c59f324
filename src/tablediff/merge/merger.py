"""
Per-subset result merging.

Each leaf subset's query reports differences for its own columns only.
Rows are folded into one MergedRow per ``(join values, remarks)`` key
covering the full compare-column list; a column no subset reported stays
empty. A single subset is the one-element case of the same fold.
"""

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Sequence

from ..errors import MergeInconsistencyError
from ..model import MATCHED, ColumnSubset, DecodedRow, FinalReport, MergedRow

logger = logging.getLogger(__name__)


@dataclass
class SubsetResult:
    """Decoded rows of one leaf subset's query."""

    subset: ColumnSubset
    rows: list[DecodedRow] = field(default_factory=list)


def _claim_columns(
    owners: dict[str, int], subset: ColumnSubset, index: int, full_columns: tuple[str, ...]
) -> None:
    for column in subset.columns:
        if column not in full_columns:
            raise MergeInconsistencyError(
                f"Subset {index} column {column!r} is not a compare column"
            )
        if column in owners:
            raise MergeInconsistencyError(
                f"Column {column!r} claimed by subsets {owners[column]} and {index}"
            )
        owners[column] = index


def merge_results(
    subset_results: Sequence[SubsetResult],
    join_columns: Sequence[str],
    full_columns: Sequence[str],
) -> FinalReport:
    """
    Merge subset results into one report sorted by join values, then remarks.

    Non-``matched`` rows (missing and duplicate keys) do not depend on the
    compare columns, so every subset must return them with the same
    multiplicity.

    Args:
        subset_results: One SubsetResult per leaf, in plan order
        join_columns: Join columns of the comparison
        full_columns: Complete compare-column list

    Returns:
        FinalReport over the full compare-column list

    Raises:
        MergeInconsistencyError: If subset results contradict each other
    """
    join_columns = tuple(join_columns)
    full_columns = tuple(full_columns)

    owners: dict[str, int] = {}
    merged: dict[tuple[tuple[str, ...], str], MergedRow] = {}
    seen_in: dict[tuple[tuple[str, ...], str], set[int]] = defaultdict(set)

    for index, result in enumerate(subset_results):
        _claim_columns(owners, result.subset, index, full_columns)
        owned = set(result.subset.columns)
        counts = Counter(row.key for row in result.rows)

        for key, count in counts.items():
            join_values, remarks = key
            if remarks == MATCHED and count > 1:
                raise MergeInconsistencyError(
                    f"Matched key {join_values} appears {count} times in subset {index}"
                )

            existing = merged.get(key)
            if existing is None:
                merged[key] = MergedRow(
                    join_values=join_values,
                    remarks=remarks,
                    values={column: "" for column in full_columns},
                    occurrences=count,
                )
            elif remarks != MATCHED and existing.occurrences != count:
                raise MergeInconsistencyError(
                    f"Key {join_values} ({remarks}) has {existing.occurrences} row(s) "
                    f"in an earlier subset but {count} in subset {index}"
                )
            seen_in[key].add(index)

        for row in result.rows:
            foreign = [column for column in row.differences if column not in owned]
            if foreign:
                raise MergeInconsistencyError(
                    f"Subset {index} reports columns it does not own: {foreign}"
                )
            merged[row.key].values.update(row.differences)

    subset_count = len(subset_results)
    remarks_by_join: dict[tuple[str, ...], set[str]] = defaultdict(set)
    for key in merged:
        join_values, remarks = key
        remarks_by_join[join_values].add(remarks)
        if remarks != MATCHED and len(seen_in[key]) != subset_count:
            missing = sorted(set(range(subset_count)) - seen_in[key])
            raise MergeInconsistencyError(
                f"Key {join_values} ({remarks}) is missing from subset(s) {missing}"
            )

    for join_values, remarks in remarks_by_join.items():
        if MATCHED in remarks and len(remarks) > 1:
            raise MergeInconsistencyError(
                f"Key {join_values} is both matched and {sorted(remarks - {MATCHED})}"
            )

    rows = sorted(merged.values(), key=lambda row: row.sort_key)
    logger.info(
        f"Merged {subset_count} subset result(s) into {len(rows)} distinct row(s)"
    )
    return FinalReport(join_columns=join_columns, compare_columns=full_columns, rows=rows)
