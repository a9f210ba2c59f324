"""
SQL safety utilities for compiled comparison queries.

Provides identifier validation and quoting for the Presto/Trino dialect
used by Athena. Identifiers are always emitted double-quoted, so any
printable name is accepted except names carrying the condensed-diff
delimiters (':' and ';'), which the diff field cannot represent.
"""

import re

# Control characters never belong in an identifier
CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")

# Delimiters of the condensed diff field
DIFF_DELIMITERS = (":", ";")


def validate_identifier(identifier: str, kind: str = "column") -> None:
    """
    Validate a column or table-part identifier.

    Args:
        identifier: The identifier to validate
        kind: What the identifier names (for error messages)

    Raises:
        ValueError: If the identifier is empty, padded, or contains
            control characters or diff delimiters
    """
    if not isinstance(identifier, str) or not identifier:
        raise ValueError(f"SQL {kind} identifier cannot be empty")

    if identifier != identifier.strip():
        raise ValueError(f"Invalid {kind} identifier {identifier!r}: leading/trailing whitespace")

    if CONTROL_CHARS.search(identifier):
        raise ValueError(f"Invalid {kind} identifier {identifier!r}: control characters")

    for delimiter in DIFF_DELIMITERS:
        if delimiter in identifier:
            raise ValueError(
                f"Invalid {kind} identifier {identifier!r}: "
                f"{delimiter!r} is reserved by the diff_columns encoding"
            )


def split_table_identifier(table: str) -> tuple[str, str]:
    """
    Split and validate a ``database.table`` identifier.

    Args:
        table: Table identifier, e.g. "sales.orders"

    Returns:
        Tuple of (database, table)

    Raises:
        ValueError: If the identifier is not exactly two valid parts
    """
    if not isinstance(table, str) or not table:
        raise ValueError("Table identifier cannot be empty")

    parts = table.split(".")
    if len(parts) != 2:
        raise ValueError(
            f"Invalid table identifier {table!r}: expected database.table"
        )

    database, name = parts
    validate_identifier(database, kind="database")
    validate_identifier(name, kind="table")
    return database, name


def quote_identifier(identifier: str) -> str:
    """
    Double-quote an identifier after validation.

    Embedded double quotes are doubled.
    """
    validate_identifier(identifier)
    return '"' + identifier.replace('"', '""') + '"'


def quote_table(table: str) -> str:
    """
    Quote a ``database.table`` identifier as ``"database"."table"``.
    """
    database, name = split_table_identifier(table)
    return ".".join(
        '"' + part.replace('"', '""') + '"' for part in (database, name)
    )


def quote_literal(value: str) -> str:
    """Single-quote a string literal, doubling embedded quotes."""
    return "'" + value.replace("'", "''") + "'"


def validate_integer_param(value: int, param_name: str, min_value: int = 0) -> None:
    """
    Validate an integer setting.

    Args:
        value: The value to validate
        param_name: Name of the parameter (for error messages)
        min_value: Minimum allowed value (default 0)

    Raises:
        ValueError: If the value is not an integer or below minimum
    """
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(
            f"Invalid {param_name}: {value!r}. Must be an integer."
        )

    if value < min_value:
        raise ValueError(
            f"Invalid {param_name}: {value}. Must be >= {min_value}."
        )
