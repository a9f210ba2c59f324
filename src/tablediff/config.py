"""
Run configuration.

DiffSettings is an immutable value built once (environment first, CLI flags
on top) and passed explicitly to the coordinator, planner and backend
helpers.
"""

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path

from utils.sql_safety import split_table_identifier, validate_integer_param

from .errors import SpecError

logger = logging.getLogger(__name__)

# Athena rejects query strings above 262144 bytes
ATHENA_MAX_QUERY_BYTES = 262144

DEFAULT_ADJUSTMENT_TABLE_NAME = "adjustments"


@dataclass(frozen=True)
class DiffSettings:
    """
    Tunables for one diff run.

    Attributes:
        workgroup: Athena workgroup queries are submitted to
        poll_interval: Seconds between status polls
        max_poll_attempts: Polls before a query is considered timed out
        size_ceiling: Maximum compiled query size in bytes
        max_workers: Leaf subsets executed concurrently (1 = sequential)
        output_dir: Directory for report files
        region: AWS region for the backend clients (None = SDK default)
    """

    workgroup: str = "primary"
    poll_interval: float = 2.0
    max_poll_attempts: int = 300
    size_ceiling: int = ATHENA_MAX_QUERY_BYTES
    max_workers: int = 1
    output_dir: str = "."
    region: str | None = None

    def __post_init__(self):
        try:
            validate_integer_param(self.max_poll_attempts, "max_poll_attempts", min_value=1)
            validate_integer_param(self.size_ceiling, "size_ceiling", min_value=1)
            validate_integer_param(self.max_workers, "max_workers", min_value=1)
        except ValueError as e:
            raise SpecError(str(e)) from e

        if self.poll_interval < 0:
            raise SpecError(f"Invalid poll_interval: {self.poll_interval}. Must be >= 0.")
        if not self.workgroup:
            raise SpecError("Workgroup cannot be empty")

    @classmethod
    def from_env(cls) -> "DiffSettings":
        """
        Build settings from environment variables

        Environment variables:
            TABLEDIFF_WORKGROUP: Athena workgroup (default: primary)
            TABLEDIFF_POLL_INTERVAL: Seconds between polls (default: 2)
            TABLEDIFF_MAX_POLL_ATTEMPTS: Poll budget (default: 300)
            TABLEDIFF_SIZE_CEILING: Query size limit in bytes (default: 262144)
            TABLEDIFF_MAX_WORKERS: Concurrent subsets (default: 1)
            TABLEDIFF_OUTPUT_DIR: Report directory (default: .)
            AWS_REGION: AWS region
        """
        defaults = cls()
        try:
            return cls(
                workgroup=os.getenv("TABLEDIFF_WORKGROUP", defaults.workgroup),
                poll_interval=float(
                    os.getenv("TABLEDIFF_POLL_INTERVAL", defaults.poll_interval)
                ),
                max_poll_attempts=int(
                    os.getenv("TABLEDIFF_MAX_POLL_ATTEMPTS", defaults.max_poll_attempts)
                ),
                size_ceiling=int(os.getenv("TABLEDIFF_SIZE_CEILING", defaults.size_ceiling)),
                max_workers=int(os.getenv("TABLEDIFF_MAX_WORKERS", defaults.max_workers)),
                output_dir=os.getenv("TABLEDIFF_OUTPUT_DIR", defaults.output_dir),
                region=os.getenv("AWS_REGION") or None,
            )
        except ValueError as e:
            if isinstance(e, SpecError):
                raise
            raise SpecError(f"Invalid tablediff environment setting: {e}") from e

    def with_overrides(self, **overrides) -> "DiffSettings":
        """Return a copy with every non-None override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)


def read_column_file(path: str | Path) -> list[str]:
    """
    Read a column list: one name per line.

    Blank lines and lines starting with '#' are ignored; surrounding
    whitespace is trimmed.

    Raises:
        SpecError: If the file cannot be read
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise SpecError(f"Cannot read column file {path}: {e}") from e

    columns = []
    for line in content.splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            columns.append(line)

    logger.debug(f"Read {len(columns)} column(s) from {path}")
    return columns


def resolve_adjustment_table(table_a: str, explicit: str | None = None) -> str:
    """
    Resolve the adjustment-exclusion table identifier.

    Precedence: explicit value, then $TABLEDIFF_ADJUSTMENT_TABLE, then
    ``<database of table_a>.adjustments``.
    """
    if explicit:
        return explicit

    from_env = os.getenv("TABLEDIFF_ADJUSTMENT_TABLE")
    if from_env:
        return from_env

    try:
        database, _ = split_table_identifier(table_a)
    except ValueError as e:
        raise SpecError(str(e)) from e
    return f"{database}.{DEFAULT_ADJUSTMENT_TABLE_NAME}"
