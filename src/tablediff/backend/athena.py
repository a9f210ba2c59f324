"""
Amazon Athena query backend.

Queries are started in a workgroup with ``start_query_execution`` and
polled with ``get_query_execution``. Results are read from the CSV file
Athena writes to S3; if that download fails the paginated
``get_query_results`` API is used instead.
"""

import csv
import io
import logging
from urllib.parse import urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from utils.retry import retry_backend_operation
from utils.tracing import add_span_attributes, trace_backend_call

from ..errors import BackendExecutionError
from .base import ExecutionState, ExecutionStatus

logger = logging.getLogger(__name__)


def parse_s3_uri(uri: str) -> tuple[str, str]:
    """
    Split ``s3://bucket/key`` into (bucket, key).

    Raises:
        ValueError: If the URI is not an S3 object URI
    """
    parsed = urlparse(uri)
    key = parsed.path.lstrip("/")
    if parsed.scheme != "s3" or not parsed.netloc or not key:
        raise ValueError(f"Not an S3 object URI: {uri!r}")
    return parsed.netloc, key


def parse_csv_rows(content: str) -> list[list[str]]:
    """Parse an Athena CSV result file (header first)."""
    return [row for row in csv.reader(io.StringIO(content, newline=""))]


class AthenaBackend:
    """
    QueryBackend over boto3 Athena and S3 clients.

    Example:
        >>> backend = AthenaBackend(region="eu-west-1")
        >>> execution_id = backend.submit("SELECT 1", workgroup="primary")
    """

    def __init__(
        self,
        athena_client=None,
        s3_client=None,
        region: str | None = None,
        output_location: str | None = None,
    ):
        """
        Args:
            athena_client: Preconfigured boto3 Athena client (created if None)
            s3_client: Preconfigured boto3 S3 client (created if None)
            region: AWS region for clients created here (SDK default if None)
            output_location: S3 URI for results; the workgroup's setting is
                used when None
        """
        self.athena = athena_client or boto3.client("athena", region_name=region)
        self.s3 = s3_client or boto3.client("s3", region_name=region)
        self.output_location = output_location

    @trace_backend_call("submit")
    @retry_backend_operation(max_retries=3, base_delay=1.0)
    def submit(self, query_text: str, workgroup: str) -> str:
        params = {"QueryString": query_text, "WorkGroup": workgroup}
        if self.output_location:
            params["ResultConfiguration"] = {"OutputLocation": self.output_location}

        response = self.athena.start_query_execution(**params)
        execution_id = response["QueryExecutionId"]
        add_span_attributes(execution_id=execution_id, workgroup=workgroup)
        logger.info(f"Started Athena query {execution_id} in workgroup {workgroup}")
        return execution_id

    @retry_backend_operation(max_retries=3, base_delay=1.0)
    def _get_execution(self, execution_id: str) -> dict:
        response = self.athena.get_query_execution(QueryExecutionId=execution_id)
        return response["QueryExecution"]

    @trace_backend_call("poll")
    def poll(self, execution_id: str) -> ExecutionStatus:
        status = self._get_execution(execution_id)["Status"]
        try:
            state = ExecutionState(status["State"])
        except ValueError as e:
            raise BackendExecutionError(
                f"Unknown query state {status['State']!r}",
                execution_id=execution_id,
                state=status["State"],
            ) from e
        return ExecutionStatus(state=state, reason=status.get("StateChangeReason"))

    @trace_backend_call("fetch_result_location")
    def fetch_result_location(self, execution_id: str) -> str | None:
        execution = self._get_execution(execution_id)
        return execution.get("ResultConfiguration", {}).get("OutputLocation")

    @trace_backend_call("fetch_result_rows")
    def fetch_result_rows(self, execution_id: str) -> list[list[str]]:
        location = self.fetch_result_location(execution_id)
        if location:
            try:
                rows = self._download_csv(location)
                logger.info(f"Downloaded {max(len(rows) - 1, 0)} result row(s) from {location}")
                return rows
            except (ClientError, BotoCoreError, ValueError, UnicodeDecodeError) as e:
                logger.warning(
                    f"S3 download of {location} failed ({type(e).__name__}: {e}); "
                    f"falling back to get_query_results"
                )
        else:
            logger.warning(
                f"No output location for execution {execution_id}; using get_query_results"
            )

        rows = self._paginate_results(execution_id)
        logger.info(f"Fetched {max(len(rows) - 1, 0)} result row(s) via get_query_results")
        return rows

    @retry_backend_operation(max_retries=3, base_delay=1.0)
    def _download_csv(self, location: str) -> list[list[str]]:
        bucket, key = parse_s3_uri(location)
        response = self.s3.get_object(Bucket=bucket, Key=key)
        content = response["Body"].read().decode("utf-8")
        return parse_csv_rows(content)

    @retry_backend_operation(max_retries=3, base_delay=1.0)
    def _paginate_results(self, execution_id: str) -> list[list[str]]:
        paginator = self.athena.get_paginator("get_query_results")
        rows = []
        for page in paginator.paginate(QueryExecutionId=execution_id):
            for row in page["ResultSet"]["Rows"]:
                rows.append([datum.get("VarCharValue", "") for datum in row["Data"]])
        return rows
