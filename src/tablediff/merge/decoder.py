"""
Result row decoding.

Turns the raw rows a backend returns for one subset (header first) into
DecodedRow values, checking the header against the comparison's result
contract.
"""

import logging
from typing import Sequence

from ..compare.codec import decode_diff_columns
from ..errors import BackendExecutionError
from ..model import ComparisonSpec, DecodedRow, RawResultRow

logger = logging.getLogger(__name__)


def check_header(header: Sequence[str], spec: ComparisonSpec, execution_id: str | None = None) -> None:
    """
    Verify a result header is ``[join columns..., remarks, diff_columns]``.

    Athena lower-cases result column names, so the check ignores case.

    Raises:
        BackendExecutionError: If the header does not match
    """
    expected = [name.lower() for name in spec.result_header]
    actual = [str(name).strip().lower() for name in header]
    if actual != expected:
        raise BackendExecutionError(
            f"Unexpected result header {list(header)}; expected {spec.result_header}",
            execution_id=execution_id,
        )


def to_raw_rows(
    rows: Sequence[Sequence[str]],
    spec: ComparisonSpec,
    execution_id: str | None = None,
) -> list[RawResultRow]:
    """
    Validate the header and convert data rows to RawResultRow.

    Args:
        rows: Result rows, header first
        spec: Comparison the query was compiled from
        execution_id: Backend execution id (for error messages)

    Raises:
        BackendExecutionError: On a missing or mismatching header, or a
            row of the wrong width
    """
    if not rows:
        raise BackendExecutionError(
            "Result set is empty: missing header row", execution_id=execution_id
        )

    header, *data = rows
    check_header(header, spec, execution_id)

    width = len(spec.result_header)
    join_width = len(spec.join_columns)
    raw_rows = []
    for line_number, row in enumerate(data, start=2):
        if len(row) != width:
            raise BackendExecutionError(
                f"Result row {line_number} has {len(row)} fields; expected {width}",
                execution_id=execution_id,
            )
        raw_rows.append(
            RawResultRow(
                join_values=tuple("" if value is None else value for value in row[:join_width]),
                remarks=row[join_width],
                diff_columns=row[join_width + 1] or None,
            )
        )
    return raw_rows


def decode_rows(raw_rows: Sequence[RawResultRow]) -> list[DecodedRow]:
    """Expand the condensed field of each raw row."""
    return [
        DecodedRow(
            join_values=row.join_values,
            remarks=row.remarks,
            differences=decode_diff_columns(row.diff_columns),
        )
        for row in raw_rows
    ]


def decode_result_rows(
    rows: Sequence[Sequence[str]],
    spec: ComparisonSpec,
    execution_id: str | None = None,
) -> list[DecodedRow]:
    """Header check, raw conversion and decoding in one step."""
    decoded = decode_rows(to_raw_rows(rows, spec, execution_id))
    logger.debug(f"Decoded {len(decoded)} result row(s) for execution {execution_id}")
    return decoded
