"""
Condensed difference field codec.

Matched rows carry every per-column difference in one string column:

    price:10 X 12; status:NULL X shipped

Entries are separated by ';', the column name ends at the first ':', and
the value pair is ``<valueA> X <valueB>`` with the literal ``NULL`` for
nulls. Columns without a difference are omitted. The compiled SQL produces
this format; ``encode_diff_columns`` is its Python mirror.
"""

import logging
import warnings
from typing import Any, Mapping

from utils.sql_safety import validate_identifier

from ..errors import DecodeWarning, SpecError

logger = logging.getLogger(__name__)

ENTRY_SEPARATOR = "; "
NAME_SEPARATOR = ":"
PAIR_SEPARATOR = " X "
NULL_TEXT = "NULL"


def format_value(value: Any) -> str:
    """Render one side of a value pair."""
    return NULL_TEXT if value is None else str(value)


def format_value_pair(value_a: Any, value_b: Any) -> str:
    """Render ``<valueA> X <valueB>``."""
    return f"{format_value(value_a)}{PAIR_SEPARATOR}{format_value(value_b)}"


def encode_diff_columns(differences: Mapping[str, str]) -> str | None:
    """
    Encode a column -> value-pair mapping in insertion order.

    Returns None for an empty mapping, as the query does for rows
    without differences.

    Raises:
        SpecError: If a column name contains ':' or ';'
    """
    entries = []
    for column, pair in differences.items():
        try:
            validate_identifier(column)
        except ValueError as e:
            raise SpecError(str(e)) from e
        entries.append(f"{column}{NAME_SEPARATOR}{pair}")

    return ENTRY_SEPARATOR.join(entries) if entries else None


def decode_diff_columns(field: str | None) -> dict[str, str]:
    """
    Decode a condensed difference field.

    Whitespace before a column name is dropped and blank entries are ignored.
    The value pair after the first ':' is kept verbatim, so an empty value on
    either side survives as " X 12" or "12 X ". An entry without a ':' is
    skipped with a DecodeWarning.

    Args:
        field: Raw diff_columns value (None or "" for no differences)

    Returns:
        Mapping of column name to value-pair text, in field order
    """
    differences: dict[str, str] = {}
    if not field:
        return differences

    for entry in field.split(";"):
        if not entry.strip():
            continue

        column, separator, pair = entry.partition(NAME_SEPARATOR)
        if not separator:
            entry = entry.strip()
            message = f"Skipping malformed diff entry without ':': {entry!r}"
            logger.warning(message, extra={"entry": entry})
            warnings.warn(message, DecodeWarning, stacklevel=2)
            continue

        differences[column.strip()] = pair

    return differences
