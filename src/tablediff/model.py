"""
Value types shared by compilation, execution and merging.

ComparisonSpec is validated once on construction and never mutated; the
other types describe the data flowing between pipeline stages.
"""

from dataclasses import dataclass, field

from utils.sql_safety import split_table_identifier, validate_identifier

from .errors import SpecError

MATCHED = "matched"

# Name of the condensed difference column produced by every query
DIFF_COLUMNS_FIELD = "diff_columns"
REMARKS_FIELD = "remarks"


def _check_columns(columns: tuple[str, ...], kind: str) -> None:
    if not columns:
        raise SpecError(f"{kind} column list is empty")

    seen = set()
    for column in columns:
        try:
            validate_identifier(column)
        except ValueError as e:
            raise SpecError(f"Invalid {kind} column: {e}") from e
        if column.lower() in seen:
            raise SpecError(f"Duplicate {kind} column: {column!r}")
        seen.add(column.lower())


@dataclass(frozen=True)
class AdjustmentConfig:
    """Rows of ``table`` exclude matching join keys from every result branch."""

    enabled: bool
    table: str

    def __post_init__(self):
        try:
            split_table_identifier(self.table)
        except ValueError as e:
            raise SpecError(f"Invalid adjustment table: {e}") from e


@dataclass(frozen=True)
class ComparisonSpec:
    """
    Immutable description of one table comparison.

    Attributes:
        table_a: First table as ``database.table``
        table_b: Second table as ``database.table``
        join_columns: Columns forming the comparison key
        compare_columns: Non-key columns checked for equality
        row_filter: Optional predicate applied to every input table
        adjustments: Optional exclusion table configuration
    """

    table_a: str
    table_b: str
    join_columns: tuple[str, ...]
    compare_columns: tuple[str, ...]
    row_filter: str | None = None
    adjustments: AdjustmentConfig | None = None

    def __post_init__(self):
        # Accept lists from callers, store tuples
        object.__setattr__(self, "join_columns", tuple(self.join_columns))
        object.__setattr__(self, "compare_columns", tuple(self.compare_columns))
        if self.row_filter is not None and not self.row_filter.strip():
            object.__setattr__(self, "row_filter", None)

        for table in (self.table_a, self.table_b):
            try:
                split_table_identifier(table)
            except ValueError as e:
                raise SpecError(str(e)) from e

        if self.table_a.lower() == self.table_b.lower():
            raise SpecError(f"table_a and table_b must be different tables: {self.table_a!r}")

        _check_columns(self.join_columns, "join")
        _check_columns(self.compare_columns, "compare")

        overlap = {c.lower() for c in self.join_columns} & {
            c.lower() for c in self.compare_columns
        }
        if overlap:
            raise SpecError(
                f"Columns used both as join and compare columns: {sorted(overlap)}"
            )

    @property
    def adjustments_enabled(self) -> bool:
        return self.adjustments is not None and self.adjustments.enabled

    @property
    def result_header(self) -> list[str]:
        """Columns selected by every compiled query, in order."""
        return [*self.join_columns, REMARKS_FIELD, DIFF_COLUMNS_FIELD]


@dataclass(frozen=True)
class ColumnSubset:
    """A contiguous, non-empty slice of the compare-column list."""

    columns: tuple[str, ...]
    full_columns: tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, "columns", tuple(self.columns))
        object.__setattr__(self, "full_columns", tuple(self.full_columns))
        if not self.columns:
            raise SpecError("A column subset must contain at least one column")
        unknown = [c for c in self.columns if c not in self.full_columns]
        if unknown:
            raise SpecError(f"Subset columns not in the compare list: {unknown}")

    def __len__(self) -> int:
        return len(self.columns)


@dataclass(frozen=True)
class CompiledQuery:
    """Query text plus its UTF-8 byte length."""

    text: str
    byte_length: int

    @classmethod
    def from_text(cls, text: str) -> "CompiledQuery":
        return cls(text=text, byte_length=len(text.encode("utf-8")))


@dataclass
class RawResultRow:
    """One row as returned by a single subset's query."""

    join_values: tuple[str, ...]
    remarks: str
    diff_columns: str | None


@dataclass
class DecodedRow:
    """A RawResultRow with its condensed field expanded."""

    join_values: tuple[str, ...]
    remarks: str
    differences: dict[str, str] = field(default_factory=dict)

    @property
    def key(self) -> tuple[tuple[str, ...], str]:
        return (self.join_values, self.remarks)


@dataclass
class MergedRow:
    """
    One report row covering the full compare-column list.

    ``occurrences`` is the number of identical result rows the key stands
    for (greater than one only for duplicate-key rows).
    """

    join_values: tuple[str, ...]
    remarks: str
    values: dict[str, str]
    occurrences: int = 1

    @property
    def sort_key(self) -> tuple[tuple[str, ...], str]:
        return (self.join_values, self.remarks)

    def to_record(self, compare_columns: tuple[str, ...]) -> list[str]:
        """Flatten to ``[join values..., remarks, compare values...]``."""
        return [
            *self.join_values,
            self.remarks,
            *(self.values.get(column, "") for column in compare_columns),
        ]


@dataclass
class FinalReport:
    """Merged, sorted diff rows over the full compare-column list."""

    join_columns: tuple[str, ...]
    compare_columns: tuple[str, ...]
    rows: list[MergedRow]

    @property
    def header(self) -> list[str]:
        return [*self.join_columns, REMARKS_FIELD, *self.compare_columns]

    def records(self):
        """Yield flat records, repeating rows that stand for duplicates."""
        for row in self.rows:
            record = row.to_record(self.compare_columns)
            for _ in range(row.occurrences):
                yield record

    def __len__(self) -> int:
        return sum(row.occurrences for row in self.rows)
