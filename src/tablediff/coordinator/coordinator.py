"""
Diff run orchestration.

Plans leaf subsets, runs one query per subset through the backend, waits
for each to finish, decodes the results and merges them into the final
report. Subsets run sequentially by default; with ``max_workers > 1`` they
run on a thread pool and are merged by a single writer once all complete.
"""

import logging
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable

from opentelemetry import trace

from utils.logging import ContextLogger
from utils.metrics import DiffMetrics
from utils.tracing import SubsetSpan, trace_operation

from ..backend.base import QueryBackend, wait_for_completion
from ..compare.bisector import plan_subsets_with_queries
from ..config import DiffSettings
from ..merge.decoder import decode_result_rows
from ..merge.merger import SubsetResult, merge_results
from ..model import ColumnSubset, CompiledQuery, ComparisonSpec, FinalReport

logger = logging.getLogger(__name__)

PlannedSubset = tuple[ColumnSubset, CompiledQuery]


class DiffCoordinator:
    """
    Runs one table comparison end to end.

    Any planning, backend or merge error aborts the run; no partial report
    is returned.

    Example:
        >>> coordinator = DiffCoordinator(AthenaBackend(), DiffSettings())
        >>> report = coordinator.run(spec)
        >>> print(f"{len(report)} difference row(s)")
    """

    def __init__(
        self,
        backend: QueryBackend,
        settings: DiffSettings | None = None,
        metrics: DiffMetrics | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            backend: Query backend used for every subset
            settings: Run settings (defaults when None)
            metrics: Optional Prometheus metrics recorder
            sleep: Sleep between status polls (injectable for tests)
        """
        self.backend = backend
        self.settings = settings or DiffSettings()
        self.metrics = metrics
        self.sleep = sleep

    def plan(self, spec: ComparisonSpec) -> list[PlannedSubset]:
        """Partition the compare columns into subsets that fit the size ceiling."""
        with trace_operation(
            "plan_subsets",
            kind=trace.SpanKind.INTERNAL,
            column_count=len(spec.compare_columns),
            size_ceiling=self.settings.size_ceiling,
        ) as span:
            planned = plan_subsets_with_queries(
                spec, spec.compare_columns, self.settings.size_ceiling
            )
            span.set_attribute("subset_count", len(planned))

        if self.metrics:
            self.metrics.record_plan([query.byte_length for _, query in planned])
        return planned

    def execute_subset(
        self,
        spec: ComparisonSpec,
        index: int,
        subset: ColumnSubset,
        query: CompiledQuery,
    ) -> SubsetResult:
        """
        Submit one subset's query, wait for it and decode its rows.

        Raises:
            BackendExecutionError: If the query fails or returns a bad result
            BackendTimeoutError: If the query does not finish in time
        """
        run_logger = ContextLogger(
            __name__, table_a=spec.table_a, table_b=spec.table_b, subset_index=index
        )

        with SubsetSpan(index=index, columns=subset.columns) as span:
            span.set_query_bytes(query.byte_length)
            execution_id = self.backend.submit(query.text, self.settings.workgroup)
            span.set_execution_id(execution_id)
            run_logger.info(
                f"Subset {index} ({len(subset)} column(s), {query.byte_length} bytes) "
                f"submitted as {execution_id}",
                execution_id=execution_id,
            )

            wait_for_completion(
                self.backend,
                execution_id,
                poll_interval=self.settings.poll_interval,
                max_attempts=self.settings.max_poll_attempts,
                sleep=self.sleep,
            )

            rows = self.backend.fetch_result_rows(execution_id)
            decoded = decode_result_rows(rows, spec, execution_id)
            span.set_row_count(len(decoded))
            run_logger.info(
                f"Subset {index} returned {len(decoded)} row(s)",
                execution_id=execution_id,
                rows=len(decoded),
            )

        return SubsetResult(subset=subset, rows=decoded)

    def _execute_sequential(
        self, spec: ComparisonSpec, planned: list[PlannedSubset]
    ) -> list[SubsetResult]:
        return [
            self.execute_subset(spec, index, subset, query)
            for index, (subset, query) in enumerate(planned)
        ]

    def _execute_parallel(
        self, spec: ComparisonSpec, planned: list[PlannedSubset]
    ) -> list[SubsetResult]:
        results: list[SubsetResult | None] = [None] * len(planned)
        max_workers = min(self.settings.max_workers, len(planned))
        logger.info(f"Executing {len(planned)} subsets with {max_workers} workers")

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_index = {
                executor.submit(self.execute_subset, spec, index, subset, query): index
                for index, (subset, query) in enumerate(planned)
            }
            try:
                for future in as_completed(future_to_index):
                    results[future_to_index[future]] = future.result()
            except Exception as e:
                logger.error(
                    f"Subset {future_to_index[future]} failed, cancelling remaining subsets: {e}"
                )
                for pending in future_to_index:
                    pending.cancel()
                raise

        return results

    def run(self, spec: ComparisonSpec) -> FinalReport:
        """
        Execute the comparison and return the merged report.

        Raises:
            SizeExceededError: If a single column cannot fit the size ceiling
            BackendExecutionError: If a subset query fails
            BackendTimeoutError: If a subset query does not finish in time
            MergeInconsistencyError: If subset results contradict each other
        """
        run_logger = ContextLogger(__name__, table_a=spec.table_a, table_b=spec.table_b)
        start_time = time.monotonic()
        success = False

        try:
            with trace_operation(
                "table_diff",
                kind=trace.SpanKind.INTERNAL,
                table_a=spec.table_a,
                table_b=spec.table_b,
            ):
                run_logger.info(
                    f"Comparing {spec.table_a} with {spec.table_b} on "
                    f"{len(spec.join_columns)} join and {len(spec.compare_columns)} compare column(s)"
                )
                planned = self.plan(spec)

                if self.settings.max_workers > 1 and len(planned) > 1:
                    results = self._execute_parallel(spec, planned)
                else:
                    results = self._execute_sequential(spec, planned)

                with trace_operation("merge_results", subset_count=len(results)):
                    report = merge_results(results, spec.join_columns, spec.compare_columns)

            success = True
            if self.metrics:
                self.metrics.record_report(count_by_remarks(report))

            run_logger.info(
                f"Comparison complete: {len(report)} difference row(s) "
                f"from {len(planned)} subset(s) in {time.monotonic() - start_time:.1f}s"
            )
            return report

        except Exception as e:
            run_logger.error(f"Comparison failed: {type(e).__name__}: {e}")
            raise

        finally:
            if self.metrics:
                self.metrics.record_run(
                    spec.table_a, spec.table_b, success, time.monotonic() - start_time
                )


def count_by_remarks(report: FinalReport) -> dict[str, int]:
    """Report rows per remarks label, duplicates counted individually."""
    counts: Counter = Counter()
    for row in report.rows:
        counts[row.remarks] += row.occurrences
    return dict(counts)
