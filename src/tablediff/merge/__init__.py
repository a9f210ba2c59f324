"""
Result decoding and merging.

Decodes each subset's result rows and folds them into one report over the
full compare-column list.
"""

from .decoder import check_header, decode_result_rows, decode_rows, to_raw_rows
from .merger import SubsetResult, merge_results

__all__ = [
    'SubsetResult',
    'merge_results',
    'check_header',
    'decode_result_rows',
    'decode_rows',
    'to_raw_rows',
]
