"""
Diff report output.

Writes the merged report as CSV and summarizes it for the console or a
JSON file.
"""

from .formatters import (
    default_report_path,
    export_summary_json,
    format_summary_console,
    write_report_csv,
)
from .generator import format_timestamp, summarize_report

__all__ = [
    'summarize_report',
    'format_timestamp',
    'write_report_csv',
    'default_report_path',
    'export_summary_json',
    'format_summary_console',
]
