"""
Comparison query compiler.

Builds one Presto/Trino query (Athena dialect) classifying every key of
two tables into five UNION ALL branches:

1. key only in A (and not duplicated in A)  -> missing in <table B>
2. key only in B (and not duplicated in B)  -> missing in <table A>
3. key duplicated in A, every row emitted   -> duplicate key in <table A>
4. key duplicated in B, every row emitted   -> duplicate key in <table B>
5. key once on each side with differences   -> matched, plus diff_columns

Both tables are filtered once in CTEs that every branch reads, so
duplicate counts are computed on the filtered population. Duplicate and
exclusion membership is tested with correlated EXISTS over the join
columns; tuple IN comparisons are unreliable across mixed column types.

The compiler is a pure function of (spec, subset): identical inputs give
byte-identical text.
"""

import logging
from dataclasses import dataclass

from utils.sql_safety import quote_identifier, quote_literal, quote_table

from ..model import (
    DIFF_COLUMNS_FIELD,
    MATCHED,
    REMARKS_FIELD,
    ColumnSubset,
    CompiledQuery,
    ComparisonSpec,
)
from .codec import ENTRY_SEPARATOR, NAME_SEPARATOR, NULL_TEXT, PAIR_SEPARATOR

logger = logging.getLogger(__name__)

ALIAS_A = "tbl_a"
ALIAS_B = "tbl_b"
ALIAS_DUP_A = "dup_a"
ALIAS_DUP_B = "dup_b"
ALIAS_ADJ = "adj"


@dataclass(frozen=True)
class Remarks:
    """Remarks labels emitted by the five branches."""

    missing_in_b: str
    missing_in_a: str
    duplicate_in_a: str
    duplicate_in_b: str
    matched: str = MATCHED

    def all(self) -> tuple[str, ...]:
        return (
            self.missing_in_b,
            self.missing_in_a,
            self.duplicate_in_a,
            self.duplicate_in_b,
            self.matched,
        )


def remarks_for(spec: ComparisonSpec) -> Remarks:
    """Remarks labels for a comparison; they name the tables involved."""
    return Remarks(
        missing_in_b=f"missing in {spec.table_b}",
        missing_in_a=f"missing in {spec.table_a}",
        duplicate_in_a=f"duplicate key in {spec.table_a}",
        duplicate_in_b=f"duplicate key in {spec.table_b}",
    )


def _join_condition(columns: tuple[str, ...], left: str, right: str) -> str:
    return " AND ".join(
        f"{left}.{quote_identifier(c)} = {right}.{quote_identifier(c)}" for c in columns
    )


def _select_keys(columns: tuple[str, ...], alias: str) -> str:
    return ", ".join(f"{alias}.{quote_identifier(c)}" for c in columns)


def _exists(source: str, alias: str, condition: str, negate: bool) -> str:
    keyword = "NOT EXISTS" if negate else "EXISTS"
    return f"{keyword} (\n  SELECT 1 FROM {source} {alias}\n  WHERE {condition}\n)"


def _filtered_cte(name: str, source: str, row_filter: str | None, select: str = "*") -> str:
    where = f"\n  WHERE {row_filter}" if row_filter else ""
    return f"{name} AS (\n  SELECT {select} FROM {source}{where}\n)"


def _duplicates_cte(name: str, source: str, key_list: str) -> str:
    return (
        f"{name} AS (\n"
        f"  SELECT {key_list}\n"
        f"  FROM {source}\n"
        f"  GROUP BY {key_list}\n"
        f"  HAVING COUNT(*) > 1\n"
        f")"
    )


def _column_diff_entry(column: str) -> str:
    """Condensed entry for one column: NULL when equal, else 'col:a X b'."""
    a = f"{ALIAS_A}.{quote_identifier(column)}"
    b = f"{ALIAS_B}.{quote_identifier(column)}"
    null_text = quote_literal(NULL_TEXT)
    return (
        f"IF({a} = {b} OR ({a} IS NULL AND {b} IS NULL), NULL,\n"
        f"      CONCAT({quote_literal(column + NAME_SEPARATOR)}, "
        f"COALESCE(CAST({a} AS VARCHAR), {null_text}), "
        f"{quote_literal(PAIR_SEPARATOR)}, "
        f"COALESCE(CAST({b} AS VARCHAR), {null_text})))"
    )


def _column_differs(column: str) -> str:
    a = f"{ALIAS_A}.{quote_identifier(column)}"
    b = f"{ALIAS_B}.{quote_identifier(column)}"
    return (
        f"{a} != {b} OR ({a} IS NULL AND {b} IS NOT NULL) "
        f"OR ({a} IS NOT NULL AND {b} IS NULL)"
    )


def compile_sql(spec: ComparisonSpec, subset: ColumnSubset) -> str:
    """
    Compile the comparison query text for one column subset.

    Args:
        spec: Comparison specification
        subset: Compare columns whose differences branch 5 reports

    Returns:
        Query text
    """
    join = spec.join_columns
    key_list = ", ".join(quote_identifier(c) for c in join)
    labels = remarks_for(spec)

    cond_ab = _join_condition(join, ALIAS_A, ALIAS_B)
    cond_dup_a = _join_condition(join, ALIAS_A, ALIAS_DUP_A)
    cond_dup_b = _join_condition(join, ALIAS_B, ALIAS_DUP_B)

    ctes = [
        _filtered_cte("filtered_a", quote_table(spec.table_a), spec.row_filter),
        _filtered_cte("filtered_b", quote_table(spec.table_b), spec.row_filter),
    ]
    if spec.adjustments_enabled:
        ctes.append(
            _filtered_cte(
                "filtered_adj",
                quote_table(spec.adjustments.table),
                spec.row_filter,
                select=key_list,
            )
        )
    ctes.append(_duplicates_cte("duplicates_a", "filtered_a", key_list))
    ctes.append(_duplicates_cte("duplicates_b", "filtered_b", key_list))

    def not_adjusted(alias: str) -> list[str]:
        if not spec.adjustments_enabled:
            return []
        condition = _join_condition(join, alias, ALIAS_ADJ)
        return [_exists("filtered_adj", ALIAS_ADJ, condition, negate=True)]

    def branch(
        comment: str,
        alias: str,
        remarks: str,
        source: str,
        predicates: list[str],
        diff_expr: str = "NULL",
    ) -> str:
        where = "\nAND ".join(predicates + not_adjusted(alias))
        return (
            f"-- {comment}\n"
            f"SELECT\n"
            f"  {_select_keys(join, alias)},\n"
            f"  {quote_literal(remarks)} AS {REMARKS_FIELD},\n"
            f"  {diff_expr} AS {DIFF_COLUMNS_FIELD}\n"
            f"FROM {source}\n"
            f"WHERE {where}"
        )

    diff_entries = ",\n      ".join(_column_diff_entry(c) for c in subset.columns)
    diff_expr = (
        f"ARRAY_JOIN(\n    ARRAY[\n      {diff_entries}\n    ],\n"
        f"    {quote_literal(ENTRY_SEPARATOR)}\n  )"
    )
    differs = "\n  OR ".join(_column_differs(c) for c in subset.columns)

    branches = [
        branch(
            "Keys in A but not in B",
            ALIAS_A,
            labels.missing_in_b,
            f"filtered_a {ALIAS_A}",
            [
                _exists("filtered_b", ALIAS_B, cond_ab, negate=True),
                _exists("duplicates_a", ALIAS_DUP_A, cond_dup_a, negate=True),
            ],
        ),
        branch(
            "Keys in B but not in A",
            ALIAS_B,
            labels.missing_in_a,
            f"filtered_b {ALIAS_B}",
            [
                _exists("filtered_a", ALIAS_A, cond_ab, negate=True),
                _exists("duplicates_b", ALIAS_DUP_B, cond_dup_b, negate=True),
            ],
        ),
        branch(
            "Duplicate keys in A",
            ALIAS_A,
            labels.duplicate_in_a,
            f"filtered_a {ALIAS_A}",
            [_exists("duplicates_a", ALIAS_DUP_A, cond_dup_a, negate=False)],
        ),
        branch(
            "Duplicate keys in B",
            ALIAS_B,
            labels.duplicate_in_b,
            f"filtered_b {ALIAS_B}",
            [_exists("duplicates_b", ALIAS_DUP_B, cond_dup_b, negate=False)],
        ),
        branch(
            "Matched keys with column differences",
            ALIAS_A,
            labels.matched,
            f"filtered_a {ALIAS_A}\nINNER JOIN filtered_b {ALIAS_B} ON {cond_ab}",
            [
                _exists("duplicates_a", ALIAS_DUP_A, cond_dup_a, negate=True),
                _exists("duplicates_b", ALIAS_DUP_B, cond_dup_b, negate=True),
                f"(\n  {differs}\n)",
            ],
            diff_expr=diff_expr,
        ),
    ]

    return (
        "-- Filter tables before any joins or comparisons\n"
        "WITH " + ",\n".join(ctes) + "\n\n"
        + "\n\nUNION ALL\n\n".join(branches)
        + f"\n\nORDER BY {key_list}"
    )


def compile_query(spec: ComparisonSpec, subset: ColumnSubset) -> CompiledQuery:
    """
    Compile the query for one subset and measure it in UTF-8 bytes.

    Example:
        >>> spec = ComparisonSpec("db.a", "db.b", ("id",), ("price",))
        >>> query = compile_query(spec, ColumnSubset(("price",), spec.compare_columns))
        >>> query.byte_length > 0
        True
    """
    query = CompiledQuery.from_text(compile_sql(spec, subset))
    logger.debug(
        f"Compiled query for {len(subset)} column(s): {query.byte_length} bytes"
    )
    return query
