# network_pipeline/staging/parquet_writer.py
#
# Parquet output for staging data. Schema enforcement lives in the validate
# step; the DuckDB build reads these files back with read_parquet().
from __future__ import annotations

from pathlib import Path

import polars as pl


def write_parquet(df: pl.DataFrame, path: Path) -> Path:
    """Write a DataFrame to Parquet, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    df.write_parquet(path)
    return path
