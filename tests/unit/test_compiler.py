"""
Unit tests for the comparison query compiler

Tests verify:
- Five UNION ALL branches with table-specific remarks
- Filtering happens once, in CTEs, before any other logic
- NULL-safe equality and difference predicates
- EXISTS-based duplicate and adjustment tests
- Identifier and literal quoting
- Determinism and byte measurement
"""

import pytest

from tablediff.compare.compiler import compile_query, compile_sql, remarks_for
from tablediff.model import AdjustmentConfig, ColumnSubset, ComparisonSpec


def subset_of(spec, *columns):
    return ColumnSubset(columns or spec.compare_columns, spec.compare_columns)


class TestRemarks:
    """Test remarks labels"""

    def test_labels_name_the_tables(self, spec):
        labels = remarks_for(spec)

        assert labels.missing_in_b == "missing in sales.orders_b"
        assert labels.missing_in_a == "missing in sales.orders_a"
        assert labels.duplicate_in_a == "duplicate key in sales.orders_a"
        assert labels.duplicate_in_b == "duplicate key in sales.orders_b"
        assert labels.matched == "matched"
        assert len(set(labels.all())) == 5


class TestCompileQueryStructure:
    """Test overall query shape"""

    def test_five_branches(self, spec):
        sql = compile_sql(spec, subset_of(spec))

        assert sql.count("UNION ALL") == 4
        for label in remarks_for(spec).all():
            assert f"'{label}' AS remarks" in sql

    def test_tables_filtered_in_ctes_only(self, adjusted_spec):
        sql = compile_sql(adjusted_spec, subset_of(adjusted_spec))

        assert sql.startswith("-- Filter tables before any joins or comparisons\nWITH filtered_a AS (")
        assert 'SELECT * FROM "sales"."orders_a"\n  WHERE dt = \'2024-06-01\'' in sql
        assert 'SELECT * FROM "sales"."orders_b"\n  WHERE dt = \'2024-06-01\'' in sql
        # Base tables are referenced only inside the filtering CTEs
        assert sql.count('"sales"."orders_a"') == 1
        assert sql.count('"sales"."orders_b"') == 1
        assert sql.count("dt = '2024-06-01'") == 3

    def test_no_where_clause_without_filter(self, spec):
        sql = compile_sql(spec, subset_of(spec))

        assert 'SELECT * FROM "sales"."orders_a"\n)' in sql

    def test_duplicates_computed_on_filtered_data(self, spec):
        sql = compile_sql(spec, subset_of(spec))

        assert 'duplicates_a AS (\n  SELECT "id"\n  FROM filtered_a\n  GROUP BY "id"\n  HAVING COUNT(*) > 1' in sql
        assert 'duplicates_b AS (\n  SELECT "id"\n  FROM filtered_b\n  GROUP BY "id"\n  HAVING COUNT(*) > 1' in sql

    def test_ordered_by_join_columns(self):
        spec = ComparisonSpec("db.a", "db.b", ("region", "id"), ("price",))

        assert compile_sql(spec, subset_of(spec)).endswith('ORDER BY "region", "id"')

    def test_header_columns_selected(self, spec):
        sql = compile_sql(spec, subset_of(spec))

        assert sql.count("AS diff_columns") == 5
        assert sql.count("NULL AS diff_columns") == 4


class TestMembershipTests:
    """Test duplicate and exclusion membership predicates"""

    def test_uses_correlated_exists_not_tuple_in(self):
        spec = ComparisonSpec("db.a", "db.b", ("region", "id"), ("price",))
        sql = compile_sql(spec, subset_of(spec))

        assert " IN (" not in sql
        assert (
            'NOT EXISTS (\n  SELECT 1 FROM duplicates_a dup_a\n'
            '  WHERE tbl_a."region" = dup_a."region" AND tbl_a."id" = dup_a."id"\n)'
        ) in sql
        assert (
            'EXISTS (\n  SELECT 1 FROM duplicates_b dup_b\n'
            '  WHERE tbl_b."region" = dup_b."region" AND tbl_b."id" = dup_b."id"\n)'
        ) in sql

    def test_matched_branch_joins_on_all_join_columns(self):
        spec = ComparisonSpec("db.a", "db.b", ("region", "id"), ("price",))
        sql = compile_sql(spec, subset_of(spec))

        assert 'INNER JOIN filtered_b tbl_b ON tbl_a."region" = tbl_b."region" AND tbl_a."id" = tbl_b."id"' in sql

    def test_no_adjustment_cte_when_disabled(self, spec):
        sql = compile_sql(spec, subset_of(spec))

        assert "filtered_adj" not in sql

    def test_adjustment_cte_excludes_every_branch(self, adjusted_spec):
        sql = compile_sql(adjusted_spec, subset_of(adjusted_spec))

        assert 'filtered_adj AS (\n  SELECT "id" FROM "sales"."adjustments"\n  WHERE dt = \'2024-06-01\'\n)' in sql
        assert sql.count("NOT EXISTS (\n  SELECT 1 FROM filtered_adj adj") == 5
        assert 'WHERE tbl_a."id" = adj."id"' in sql
        assert 'WHERE tbl_b."id" = adj."id"' in sql

    def test_disabled_adjustments_are_not_compiled(self):
        spec = ComparisonSpec(
            "db.a", "db.b", ("id",), ("price",),
            adjustments=AdjustmentConfig(enabled=False, table="db.adjustments"),
        )

        assert "filtered_adj" not in compile_sql(spec, subset_of(spec))


class TestDiffExpressions:
    """Test NULL-safe comparison and the condensed field expression"""

    def test_null_equals_null_in_entry(self, spec):
        sql = compile_sql(spec, subset_of(spec, "price"))

        assert 'IF(tbl_a."price" = tbl_b."price" OR (tbl_a."price" IS NULL AND tbl_b."price" IS NULL), NULL,' in sql

    def test_difference_predicate_covers_one_sided_nulls(self, spec):
        sql = compile_sql(spec, subset_of(spec, "price"))

        assert (
            'tbl_a."price" != tbl_b."price" '
            'OR (tbl_a."price" IS NULL AND tbl_b."price" IS NOT NULL) '
            'OR (tbl_a."price" IS NOT NULL AND tbl_b."price" IS NULL)'
        ) in sql

    def test_entry_renders_value_pair_with_null_literal(self, spec):
        sql = compile_sql(spec, subset_of(spec, "price"))

        assert (
            "CONCAT('price:', COALESCE(CAST(tbl_a.\"price\" AS VARCHAR), 'NULL'), "
            "' X ', COALESCE(CAST(tbl_b.\"price\" AS VARCHAR), 'NULL'))"
        ) in sql

    def test_entries_joined_with_semicolon_space(self, spec):
        sql = compile_sql(spec, subset_of(spec))

        assert "ARRAY_JOIN(" in sql
        assert "'; '\n  ) AS diff_columns" in sql

    def test_only_subset_columns_compared(self, spec):
        sql = compile_sql(spec, subset_of(spec, "status"))

        assert "'status:'" in sql
        assert "'price:'" not in sql
        assert '"qty"' not in sql

    def test_entries_follow_subset_order(self, spec):
        sql = compile_sql(spec, subset_of(spec, "price", "status", "qty"))

        assert sql.index("'price:'") < sql.index("'status:'") < sql.index("'qty:'")


class TestQuoting:
    """Test identifier and literal quoting"""

    def test_double_quotes_in_identifiers_are_doubled(self):
        spec = ComparisonSpec("db.a", "db.b", ("id",), ('odd"name',))
        sql = compile_sql(spec, subset_of(spec))

        assert 'tbl_a."odd""name"' in sql
        assert "'odd\"name:'" in sql

    def test_single_quotes_in_labels_are_doubled(self):
        spec = ComparisonSpec("db.a", "db.b", ("id",), ("o'neil",))
        sql = compile_sql(spec, subset_of(spec))

        assert "'o''neil:'" in sql
        assert 'tbl_a."o\'neil"' in sql

    def test_reserved_word_column_is_quoted(self):
        spec = ComparisonSpec("db.a", "db.b", ("select",), ("from",))
        sql = compile_sql(spec, subset_of(spec))

        assert 'tbl_a."select" = tbl_b."select"' in sql
        assert 'tbl_a."from"' in sql


class TestCompileQuery:
    """Test compile_query result value"""

    def test_deterministic(self, adjusted_spec):
        subset = subset_of(adjusted_spec)

        first = compile_query(adjusted_spec, subset)
        second = compile_query(adjusted_spec, subset)

        assert first == second

    def test_byte_length_counts_utf8_bytes(self):
        spec = ComparisonSpec("db.a", "db.b", ("id",), ("prix_été",))
        query = compile_query(spec, subset_of(spec))

        assert query.byte_length == len(query.text.encode("utf-8"))
        assert query.byte_length > len(query.text)

    def test_more_columns_compile_to_longer_query(self, spec):
        one = compile_query(spec, subset_of(spec, "price"))
        three = compile_query(spec, subset_of(spec))

        assert three.byte_length > one.byte_length

    def test_subset_must_belong_to_compare_list(self, spec):
        from tablediff.errors import SpecError

        with pytest.raises(SpecError):
            ColumnSubset(("unknown",), spec.compare_columns)
