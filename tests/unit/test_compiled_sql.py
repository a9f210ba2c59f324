"""
Execution tests for compiled comparison queries

The compiled text runs on an in-memory DuckDB database holding the
``sales`` tables. DuckDB has no ARRAY_JOIN, so a macro with the Presto
semantics (NULL elements skipped) is registered per connection.

Tests verify:
- One differing column produces a matched row with its condensed entry
- NULL on both sides is equal, NULL on one side is a difference
- Duplicated keys emit every row and suppress matched and missing rows
- Missing keys in both directions
- Adjustment rows exclude keys only when enabled and inside the row filter
"""

import duckdb
import pytest

from tablediff.compare.compiler import compile_sql, remarks_for
from tablediff.merge import decode_result_rows
from tablediff.model import AdjustmentConfig, ColumnSubset, ComparisonSpec

ORDERS_DDL = "(id INTEGER, price INTEGER, status VARCHAR, qty INTEGER, dt VARCHAR)"
DAY = "2024-06-01"


@pytest.fixture
def con():
    connection = duckdb.connect(":memory:")
    connection.execute("CREATE SCHEMA sales")
    connection.execute(f"CREATE TABLE sales.orders_a {ORDERS_DDL}")
    connection.execute(f"CREATE TABLE sales.orders_b {ORDERS_DDL}")
    connection.execute("CREATE TABLE sales.adjustments (id INTEGER, dt VARCHAR)")
    has_array_join = connection.execute(
        "SELECT 1 FROM duckdb_functions() WHERE function_name = 'array_join'"
    ).fetchall()
    if not has_array_join:
        connection.execute(
            "CREATE MACRO array_join(arr, sep) AS list_aggr(arr, 'string_agg', sep)"
        )
    yield connection
    connection.close()


def insert(con, table, rows):
    for row in rows:
        if table == "sales.adjustments":
            con.execute(f"INSERT INTO {table} VALUES (?, ?)", list(row))
        else:
            con.execute(f"INSERT INTO {table} VALUES (?, ?, ?, ?, ?)", list(row))


def run(con, spec, *columns):
    subset = ColumnSubset(columns or spec.compare_columns, spec.compare_columns)
    return con.execute(compile_sql(spec, subset)).fetchall()


class TestMatchedRows:
    """Test the matched branch and its condensed difference field"""

    def test_single_price_difference(self, con, spec):
        insert(con, "sales.orders_a", [(1, 10, "open", 1, DAY)])
        insert(con, "sales.orders_b", [(1, 12, "open", 1, DAY)])

        assert run(con, spec) == [(1, "matched", "price:10 X 12")]

    def test_equal_rows_produce_nothing(self, con, spec):
        insert(con, "sales.orders_a", [(1, 10, "open", 1, DAY), (2, 5, "done", 3, DAY)])
        insert(con, "sales.orders_b", [(1, 10, "open", 1, DAY), (2, 5, "done", 3, DAY)])

        assert run(con, spec) == []

    def test_null_on_both_sides_is_equal(self, con, spec):
        insert(con, "sales.orders_a", [(1, None, None, None, DAY)])
        insert(con, "sales.orders_b", [(1, None, None, None, DAY)])

        assert run(con, spec) == []

    def test_null_on_one_side_is_rendered(self, con, spec):
        insert(con, "sales.orders_a", [(1, 10, None, 1, DAY)])
        insert(con, "sales.orders_b", [(1, 10, "shipped", 1, DAY)])

        assert run(con, spec) == [(1, "matched", "status:NULL X shipped")]

    def test_entries_follow_subset_order(self, con, spec):
        insert(con, "sales.orders_a", [(1, 10, "open", 1, DAY)])
        insert(con, "sales.orders_b", [(1, 12, "shipped", 4, DAY)])

        assert run(con, spec) == [
            (1, "matched", "price:10 X 12; status:open X shipped; qty:1 X 4")
        ]

    def test_only_subset_columns_are_compared(self, con, spec):
        insert(con, "sales.orders_a", [(1, 10, "open", 1, DAY), (2, 7, "open", 1, DAY)])
        insert(con, "sales.orders_b", [(1, 10, "shipped", 1, DAY), (2, 8, "open", 1, DAY)])

        assert run(con, spec, "price") == [(2, "matched", "price:7 X 8")]

    def test_empty_string_value_decodes_unchanged(self, con, spec):
        insert(con, "sales.orders_a", [(1, 10, "", 1, DAY)])
        insert(con, "sales.orders_b", [(1, 10, "shipped", 1, DAY)])

        result = con.execute(
            compile_sql(spec, ColumnSubset(("status",), spec.compare_columns))
        )
        header = [column[0] for column in result.description]
        rows = [[str(value) for value in row] for row in result.fetchall()]

        (decoded,) = decode_result_rows([header, *rows], spec)
        assert decoded.differences == {"status": " X shipped"}


class TestUnmatchedAndDuplicateRows:
    """Test the missing and duplicate branches"""

    def test_missing_keys_in_both_directions(self, con, spec):
        labels = remarks_for(spec)
        insert(con, "sales.orders_a", [(1, 10, "open", 1, DAY), (2, 10, "open", 1, DAY)])
        insert(con, "sales.orders_b", [(2, 10, "open", 1, DAY), (3, 10, "open", 1, DAY)])

        assert run(con, spec) == [
            (1, labels.missing_in_b, None),
            (3, labels.missing_in_a, None),
        ]

    def test_duplicate_key_emits_every_row_only(self, con, spec):
        labels = remarks_for(spec)
        insert(con, "sales.orders_a", [(1, 10, "open", 1, DAY), (1, 11, "open", 1, DAY)])
        insert(con, "sales.orders_b", [(1, 12, "open", 1, DAY)])

        assert run(con, spec) == [
            (1, labels.duplicate_in_a, None),
            (1, labels.duplicate_in_a, None),
        ]

    def test_duplicate_in_b_without_a_row(self, con, spec):
        labels = remarks_for(spec)
        insert(con, "sales.orders_b", [(4, 1, "x", 1, DAY), (4, 1, "x", 1, DAY)])

        assert run(con, spec) == [
            (4, labels.duplicate_in_b, None),
            (4, labels.duplicate_in_b, None),
        ]


class TestFilterAndAdjustments:
    """Test row filtering and adjustment exclusion"""

    @pytest.fixture(autouse=True)
    def tables(self, con):
        insert(
            con,
            "sales.orders_a",
            [(1, 10, "open", 1, DAY), (2, 20, "open", 1, DAY), (3, 30, "open", 1, "2024-05-31")],
        )
        insert(
            con,
            "sales.orders_b",
            [(1, 11, "open", 1, DAY), (2, 21, "open", 1, DAY), (3, 31, "open", 1, "2024-05-31")],
        )

    def test_row_filter_limits_both_tables(self, con, spec):
        filtered = ComparisonSpec(
            spec.table_a, spec.table_b, spec.join_columns, spec.compare_columns,
            row_filter=f"dt = '{DAY}'",
        )

        assert [row[0] for row in run(con, filtered)] == [1, 2]

    def test_adjusted_key_is_excluded(self, con, adjusted_spec):
        insert(con, "sales.adjustments", [(1, DAY)])

        assert run(con, adjusted_spec) == [(2, "matched", "price:20 X 21")]

    def test_adjustment_outside_filter_is_ignored(self, con, adjusted_spec):
        insert(con, "sales.adjustments", [(1, "2024-05-31")])

        assert [row[0] for row in run(con, adjusted_spec)] == [1, 2]

    def test_adjusted_key_excluded_from_missing_rows(self, con, adjusted_spec):
        insert(con, "sales.orders_a", [(5, 1, "open", 1, DAY)])
        insert(con, "sales.adjustments", [(5, DAY)])

        assert [row[0] for row in run(con, adjusted_spec)] == [1, 2]

    def test_disabled_adjustments_exclude_nothing(self, con, adjusted_spec):
        insert(con, "sales.adjustments", [(1, DAY)])
        disabled = ComparisonSpec(
            adjusted_spec.table_a,
            adjusted_spec.table_b,
            adjusted_spec.join_columns,
            adjusted_spec.compare_columns,
            row_filter=adjusted_spec.row_filter,
            adjustments=AdjustmentConfig(enabled=False, table="sales.adjustments"),
        )

        assert [row[0] for row in run(con, disabled)] == [1, 2]
