"""
Report formatting and export utilities.

This module writes the diff report CSV and exports its summary as JSON or
console text.
"""

import csv
import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any

from ..model import FinalReport

logger = logging.getLogger(__name__)


def default_report_path(output_dir: str | Path, now: datetime) -> Path:
    """
    Default CSV path: ``comparison_results_<timestamp>.csv``

    The timestamp is ISO 8601 with ':' and '.' replaced by '-'.
    """
    timestamp = now.isoformat().replace(":", "-").replace(".", "-")
    return Path(output_dir) / f"comparison_results_{timestamp}.csv"


def write_report_csv(report: FinalReport, output_path: str | Path) -> Path:
    """
    Write the report CSV

    The file is written to a temporary file in the target directory and
    renamed into place, so a failed write leaves no partial report.

    Args:
        report: Merged report
        output_path: Path to output file

    Returns:
        Path of the written file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    fd, temp_name = tempfile.mkstemp(
        dir=output_path.parent, prefix=f".{output_path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(report.header)
            for record in report.records():
                writer.writerow(record)
        os.replace(temp_name, output_path)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise

    logger.info(f"Wrote {len(report)} report row(s) to {output_path}")
    return output_path


def export_summary_json(summary: dict[str, Any], output_path: str | Path) -> None:
    """
    Export summary to JSON file

    Args:
        summary: Summary dictionary from summarize_report
        output_path: Path to output file
    """
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(summary, f, indent=2)


def format_summary_console(summary: dict[str, Any]) -> str:
    """
    Format summary for console output

    Args:
        summary: Summary dictionary from summarize_report

    Returns:
        Formatted string for console display
    """
    lines = []

    lines.append("=" * 80)
    lines.append("TABLE DIFF REPORT")
    lines.append("=" * 80)
    lines.append(f"Status: {summary['status']}")
    lines.append(f"Timestamp: {summary['timestamp']}")
    lines.append(f"Table A: {summary['table_a']}")
    lines.append(f"Table B: {summary['table_b']}")
    lines.append(f"Difference Rows: {summary['total_rows']:,}")
    lines.append("")

    lines.append("SUMMARY")
    lines.append("-" * 80)
    lines.append(summary['summary'])
    lines.append("")

    if summary['rows_by_remarks']:
        lines.append("ROWS BY REMARKS")
        lines.append("-" * 80)
        for remarks, count in summary['rows_by_remarks'].items():
            lines.append(f"  {remarks}: {count:,}")
        lines.append("")

    changed = {c: n for c, n in summary['differences_by_column'].items() if n}
    if changed:
        lines.append("DIFFERENCES BY COLUMN")
        lines.append("-" * 80)
        for column, count in changed.items():
            lines.append(f"  {column}: {count:,}")
        lines.append("")

    if summary['recommendations']:
        lines.append("RECOMMENDATIONS")
        lines.append("-" * 80)
        for i, rec in enumerate(summary['recommendations'], 1):
            lines.append(f"{i}. {rec}")
        lines.append("")

    lines.append("=" * 80)

    return "\n".join(lines)
