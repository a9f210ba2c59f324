"""
CLI command implementations.

This module contains the implementation of the CLI commands:
- run: Full comparison and report
- plan: Dry run showing the subset plan
"""

import argparse
import logging
import sys
from datetime import UTC, datetime

from utils.metrics import DiffMetrics, MetricsPublisher
from utils.tracing import initialize_tracing, shutdown_tracing

from ..backend.athena import AthenaBackend
from ..compare.bisector import plan_subsets_with_queries
from ..config import DiffSettings, read_column_file, resolve_adjustment_table
from ..coordinator import DiffCoordinator
from ..model import AdjustmentConfig, ComparisonSpec
from ..report import (
    default_report_path,
    export_summary_json,
    format_summary_console,
    summarize_report,
    write_report_csv,
)

logger = logging.getLogger(__name__)


def build_spec(args: argparse.Namespace) -> ComparisonSpec:
    """
    Build the comparison from positional inputs and filter/adjustment options

    Raises:
        SpecError: If a column file or identifier is invalid
    """
    join_columns = read_column_file(args.join_file)
    compare_columns = read_column_file(args.compare_file)

    adjustments = None
    if not args.no_adjustments:
        adjustments = AdjustmentConfig(
            enabled=True,
            table=resolve_adjustment_table(args.table_a, args.adjustment_table),
        )

    return ComparisonSpec(
        table_a=args.table_a,
        table_b=args.table_b,
        join_columns=join_columns,
        compare_columns=compare_columns,
        row_filter=args.row_filter,
        adjustments=adjustments,
    )


def build_settings(args: argparse.Namespace) -> DiffSettings:
    """Environment settings with command-line overrides applied."""
    return DiffSettings.from_env().with_overrides(
        workgroup=getattr(args, 'workgroup', None),
        poll_interval=getattr(args, 'poll_interval', None),
        max_poll_attempts=getattr(args, 'max_poll_attempts', None),
        size_ceiling=args.size_ceiling,
        max_workers=getattr(args, 'max_workers', None),
        output_dir=getattr(args, 'output_dir', None),
        region=getattr(args, 'region', None),
    )


def cmd_run(args: argparse.Namespace) -> None:
    """
    Run a comparison and write the report CSV

    Exits 0 when the report was written (with or without differences),
    1 on any fatal error.

    Args:
        args: Parsed command-line arguments
    """
    logger.info("Starting table diff run")

    try:
        spec = build_spec(args)
        settings = build_settings(args)

        logger.info(f"Table A: {spec.table_a}")
        logger.info(f"Table B: {spec.table_b}")
        logger.info(f"Join columns: {', '.join(spec.join_columns)}")
        logger.info(f"Compare columns: {len(spec.compare_columns)}")
        logger.info(f"Workgroup: {settings.workgroup}")
        if spec.row_filter:
            logger.info(f"Filter: {spec.row_filter}")
        if spec.adjustments_enabled:
            logger.info(f"Excluding keys from {spec.adjustments.table}")

        if args.metrics_port:
            MetricsPublisher(port=args.metrics_port).start()

        initialize_tracing(service_name="tablediff")

        coordinator = DiffCoordinator(
            backend=AthenaBackend(region=settings.region),
            settings=settings,
            metrics=DiffMetrics(),
        )
        report = coordinator.run(spec)

        now = datetime.now(UTC)
        output_path = args.output or default_report_path(settings.output_dir, now)
        write_report_csv(report, output_path)

        summary = summarize_report(report, spec.table_a, spec.table_b, timestamp=now)
        print(format_summary_console(summary))
        print(f"Results saved to: {output_path}")

        if args.summary_json:
            export_summary_json(summary, args.summary_json)
            logger.info(f"Summary saved to {args.summary_json}")

    except Exception as e:
        logger.error(f"Table diff failed: {e}")
        sys.exit(1)

    finally:
        shutdown_tracing()

    logger.info("Table diff completed successfully")
    sys.exit(0)


def cmd_plan(args: argparse.Namespace) -> None:
    """
    Print the subset plan without contacting AWS

    Args:
        args: Parsed command-line arguments
    """
    try:
        spec = build_spec(args)
        settings = build_settings(args)
        planned = plan_subsets_with_queries(
            spec, spec.compare_columns, settings.size_ceiling
        )
    except Exception as e:
        logger.error(f"Planning failed: {e}")
        sys.exit(1)

    print(
        f"{len(planned)} subset(s) for {len(spec.compare_columns)} compare column(s) "
        f"(size ceiling {settings.size_ceiling:,} bytes)"
    )
    for index, (subset, query) in enumerate(planned, 1):
        print(
            f"  Subset {index}: {len(subset)} column(s), {query.byte_length:,} bytes: "
            f"{subset.columns[0]} .. {subset.columns[-1]}"
        )
        if args.show_sql:
            print("")
            print(query.text)
            print("")

    sys.exit(0)
