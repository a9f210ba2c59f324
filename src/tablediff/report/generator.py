"""
Report summary generation.

Summarizes a merged diff report: row counts per remarks label, the number
of matched rows differing in each compare column, an overall status and
actionable recommendations.
"""

from datetime import UTC, datetime
from typing import Any

from ..model import MATCHED, FinalReport

MISSING_PREFIX = "missing in "
DUPLICATE_PREFIX = "duplicate key in "


def format_timestamp(timestamp: datetime) -> str:
    """
    Format timestamp for reports

    Args:
        timestamp: DateTime object

    Returns:
        ISO 8601 formatted timestamp string
    """
    return timestamp.isoformat()


def summarize_report(
    report: FinalReport,
    table_a: str,
    table_b: str,
    timestamp: datetime | None = None,
) -> dict[str, Any]:
    """
    Summarize a diff report

    Args:
        report: Merged report
        table_a: First table identifier
        table_b: Second table identifier
        timestamp: Report time (now when None)

    Returns:
        Dictionary containing:
        - status: PASS (no difference rows) or FAIL
        - table_a, table_b: Compared tables
        - total_rows: Report rows, duplicates counted individually
        - rows_by_remarks: Row count per remarks label
        - differences_by_column: Matched rows differing in each column
        - summary: Human-readable summary
        - recommendations: List of recommended actions
        - timestamp: Report generation timestamp
    """
    rows_by_remarks: dict[str, int] = {}
    differences_by_column = {column: 0 for column in report.compare_columns}

    for row in report.rows:
        rows_by_remarks[row.remarks] = rows_by_remarks.get(row.remarks, 0) + row.occurrences
        if row.remarks == MATCHED:
            for column, value in row.values.items():
                if value:
                    differences_by_column[column] += 1

    total_rows = len(report)
    status = "PASS" if total_rows == 0 else "FAIL"

    return {
        "status": status,
        "table_a": table_a,
        "table_b": table_b,
        "total_rows": total_rows,
        "rows_by_remarks": dict(sorted(rows_by_remarks.items())),
        "differences_by_column": differences_by_column,
        "summary": _generate_summary(table_a, table_b, rows_by_remarks),
        "recommendations": _generate_recommendations(rows_by_remarks, differences_by_column),
        "timestamp": format_timestamp(timestamp or datetime.now(UTC)),
    }


def _count_with_prefix(rows_by_remarks: dict[str, int], prefix: str) -> int:
    return sum(count for remarks, count in rows_by_remarks.items() if remarks.startswith(prefix))


def _generate_summary(table_a: str, table_b: str, rows_by_remarks: dict[str, int]) -> str:
    """
    Generate human-readable summary

    Returns:
        Summary string
    """
    if not rows_by_remarks:
        return f"{table_a} and {table_b} are identical on the compared columns."

    missing = _count_with_prefix(rows_by_remarks, MISSING_PREFIX)
    duplicates = _count_with_prefix(rows_by_remarks, DUPLICATE_PREFIX)
    matched = rows_by_remarks.get(MATCHED, 0)
    return (
        f"Comparison of {table_a} and {table_b} found {missing} missing key row(s), "
        f"{duplicates} duplicate key row(s) and {matched} matched key(s) with differences."
    )


def _generate_recommendations(
    rows_by_remarks: dict[str, int],
    differences_by_column: dict[str, int],
) -> list[str]:
    """
    Generate actionable recommendations based on the difference counts

    Returns:
        List of recommendation strings
    """
    recommendations = []

    if not rows_by_remarks:
        recommendations.append("Tables are consistent. No action required.")
        return recommendations

    for remarks, count in sorted(rows_by_remarks.items()):
        if remarks.startswith(MISSING_PREFIX):
            recommendations.append(
                f"{count} key(s) are {remarks}. Check the load into that table "
                "and whether the row filter matches on both sides."
            )
        elif remarks.startswith(DUPLICATE_PREFIX):
            recommendations.append(
                f"{count} row(s) share a join key ({remarks}). "
                "Verify the join columns form a unique key."
            )

    changed = [column for column, count in differences_by_column.items() if count]
    if changed:
        worst = max(changed, key=lambda column: differences_by_column[column])
        recommendations.append(
            f"Values differ in {len(changed)} column(s); "
            f"{worst!r} differs most often ({differences_by_column[worst]} row(s))."
        )

    return recommendations
