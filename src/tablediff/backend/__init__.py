"""
Query execution backends.

- base: QueryBackend protocol, execution states, completion polling
- athena: Amazon Athena implementation over boto3
"""

from .athena import AthenaBackend, parse_csv_rows, parse_s3_uri
from .base import ExecutionState, ExecutionStatus, QueryBackend, wait_for_completion

__all__ = [
    'AthenaBackend',
    'ExecutionState',
    'ExecutionStatus',
    'QueryBackend',
    'wait_for_completion',
    'parse_s3_uri',
    'parse_csv_rows',
]
