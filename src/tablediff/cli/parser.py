"""
Command-line argument parser configuration.

This module sets up the argument parser for the tablediff CLI tool,
defining all commands and their options.
"""

import argparse


def _add_comparison_arguments(parser: argparse.ArgumentParser) -> None:
    """Positional inputs and options shared by run and plan."""
    parser.add_argument('table_a', help='First table as database.table')
    parser.add_argument('table_b', help='Second table as database.table')
    parser.add_argument('join_file', help='File listing join columns (one per line)')
    parser.add_argument('compare_file', help='File listing compare columns (one per line)')
    parser.add_argument(
        '--filter',
        dest='row_filter',
        help='SQL predicate applied to both tables (and the adjustment table)'
    )
    parser.add_argument(
        '--no-adjustments',
        action='store_true',
        help='Do not exclude keys listed in the adjustment table'
    )
    parser.add_argument(
        '--adjustment-table',
        help='Adjustment table as database.table '
             '(default: $TABLEDIFF_ADJUSTMENT_TABLE or <database of TABLE_A>.adjustments)'
    )
    parser.add_argument(
        '--size-ceiling',
        type=int,
        help='Maximum compiled query size in bytes (default: 262144)'
    )


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog='tablediff',
        description="Row-level difference report between two Athena tables",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Compare two tables and write comparison_results_<timestamp>.csv
  tablediff run sales.orders_v1 sales.orders_v2 join.txt compare.txt

  # Restrict both tables to one partition
  tablediff run sales.orders_v1 sales.orders_v2 join.txt compare.txt \\
      --filter "dt = '2024-06-01'" --workgroup analytics

  # Run up to four subset queries at once and export a JSON summary
  tablediff run sales.a sales.b join.txt compare.txt --max-workers 4 --summary-json summary.json

  # Show how the compare columns would be split, with the generated SQL
  tablediff plan sales.a sales.b join.txt compare.txt --show-sql
        """
    )

    parser.add_argument(
        '--log-level',
        type=str.upper,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: $LOG_LEVEL or INFO)'
    )
    parser.add_argument(
        '--log-json',
        action='store_true',
        help='Emit logs as JSON (default: $LOG_JSON)'
    )
    parser.add_argument(
        '--log-file',
        help='Also write logs to this file, rotated (default: $LOG_FILE)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # ========== Run command ==========
    run_parser = subparsers.add_parser('run', help='Compare two tables and write the report')
    _add_comparison_arguments(run_parser)
    run_parser.add_argument(
        '--workgroup',
        help='Athena workgroup (default: $TABLEDIFF_WORKGROUP or primary)'
    )
    run_parser.add_argument(
        '--output',
        help='Report CSV path (default: comparison_results_<timestamp>.csv in --output-dir)'
    )
    run_parser.add_argument(
        '--output-dir',
        help='Directory for the default report path (default: current directory)'
    )
    run_parser.add_argument(
        '--max-workers',
        type=int,
        help='Subset queries run concurrently (default: 1)'
    )
    run_parser.add_argument(
        '--poll-interval',
        type=float,
        help='Seconds between query status polls (default: 2)'
    )
    run_parser.add_argument(
        '--max-poll-attempts',
        type=int,
        help='Status polls before a query times out (default: 300)'
    )
    run_parser.add_argument(
        '--region',
        help='AWS region (default: $AWS_REGION or the SDK default)'
    )
    run_parser.add_argument(
        '--summary-json',
        help='Also export the report summary to this JSON file'
    )
    run_parser.add_argument(
        '--metrics-port',
        type=int,
        help='Expose Prometheus metrics on this port during the run'
    )

    # ========== Plan command ==========
    plan_parser = subparsers.add_parser(
        'plan', help='Show the column subsets a run would execute (no AWS access)'
    )
    _add_comparison_arguments(plan_parser)
    plan_parser.add_argument(
        '--show-sql',
        action='store_true',
        help='Print the compiled query of every subset'
    )

    return parser
