"""
Pytest configuration and fixtures for tablediff tests.
Provides shared comparison specs, an in-memory query backend and
environment isolation.
"""

import os
from pathlib import Path

import pytest

from fake_athena import InMemoryAthena

from tablediff.model import AdjustmentConfig, ComparisonSpec

TABLEDIFF_ENV_VARS = (
    "TABLEDIFF_WORKGROUP",
    "TABLEDIFF_POLL_INTERVAL",
    "TABLEDIFF_MAX_POLL_ATTEMPTS",
    "TABLEDIFF_SIZE_CEILING",
    "TABLEDIFF_MAX_WORKERS",
    "TABLEDIFF_OUTPUT_DIR",
    "TABLEDIFF_ADJUSTMENT_TABLE",
    "AWS_REGION",
    "OTLP_ENDPOINT",
    "TRACE_CONSOLE",
    "LOG_LEVEL",
    "LOG_FILE",
    "LOG_JSON",
    "LOG_CONSOLE",
)


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "property: mark test as property-based test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Get project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def clean_tablediff_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove tablediff, tracing and logging settings so each test sees defaults."""
    for key in TABLEDIFF_ENV_VARS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def spec() -> ComparisonSpec:
    """Single join column, three compare columns, no filter or adjustments."""
    return ComparisonSpec(
        table_a="sales.orders_a",
        table_b="sales.orders_b",
        join_columns=("id",),
        compare_columns=("price", "status", "qty"),
    )


@pytest.fixture
def adjusted_spec() -> ComparisonSpec:
    """Comparison with adjustment exclusion and a row filter."""
    return ComparisonSpec(
        table_a="sales.orders_a",
        table_b="sales.orders_b",
        join_columns=("id",),
        compare_columns=("price", "status", "qty"),
        row_filter="dt = '2024-06-01'",
        adjustments=AdjustmentConfig(enabled=True, table="sales.adjustments"),
    )


@pytest.fixture
def fake_backend() -> InMemoryAthena:
    """Empty in-memory backend; tests load tables into it."""
    return InMemoryAthena()


@pytest.fixture
def column_files(tmp_path: Path):
    """Write join and compare column files, returning their paths."""
    def _write(join_columns, compare_columns):
        join_file = tmp_path / "join.txt"
        compare_file = tmp_path / "compare.txt"
        join_file.write_text("\n".join(join_columns) + "\n")
        compare_file.write_text("\n".join(compare_columns) + "\n")
        return join_file, compare_file

    return _write


@pytest.fixture
def env_isolated(monkeypatch: pytest.MonkeyPatch):
    """Set environment variables for the duration of one test."""
    def _set(**values):
        for key, value in values.items():
            monkeypatch.setenv(key, str(value))
        return os.environ

    return _set
