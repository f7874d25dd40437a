# tests/pipeline/test_parquet_writer.py
from __future__ import annotations

from pathlib import Path

import duckdb
import polars as pl

from network_pipeline.staging import parquet_writer
from network_pipeline.staging.parquet_writer import write_parquet


def test_write_parquet_creates_missing_directories(tmp_path: Path) -> None:
    target = tmp_path / "staging" / "nested" / "entities.parquet"

    result = write_parquet(pl.DataFrame({"id": ["a", "b"]}), target)

    assert result == target
    rows = duckdb.sql(f"SELECT id FROM read_parquet('{target.as_posix()}') ORDER BY id").fetchall()
    assert rows == [("a",), ("b",)]


def test_staging_module_only_writes() -> None:
    """Staged files are read back by DuckDB, never through polars."""
    assert not hasattr(parquet_writer, "read_parquet")
