"""
Query compilation for table comparison.

This submodule turns a comparison into Athena queries:
- Condensed diff_columns encoding and decoding
- Five-branch comparison query compilation
- Size-driven bisection of the compare-column list
"""

from .bisector import plan_subsets, plan_subsets_with_queries
from .codec import (
    decode_diff_columns,
    encode_diff_columns,
    format_value_pair,
)
from .compiler import Remarks, compile_query, compile_sql, remarks_for

__all__ = [
    'compile_query',
    'compile_sql',
    'remarks_for',
    'Remarks',
    'plan_subsets',
    'plan_subsets_with_queries',
    'encode_diff_columns',
    'decode_diff_columns',
    'format_value_pair',
]
