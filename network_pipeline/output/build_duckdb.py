# network_pipeline/output/build_duckdb.py
#
# Atomic DuckDB build: staging Parquet files -> the .duckdb file the API reads.
#
# Design decisions:
#   - The build writes to <output>.tmp.duckdb and renames on success. On any
#     failure the tmp file is deleted and the previous output is untouched, so
#     the API never opens a half-built snapshot.
#   - schema.sql is read at build time and is the single source of truth for
#     table structure (the integration tests seed from the same file).
#   - Loading is INSERT ... SELECT FROM read_parquet(): rows never pass
#     through Python. Only columns present in both the table and the parquet
#     are copied; the rest take their schema defaults.
from __future__ import annotations

from pathlib import Path

import duckdb

from network_pipeline.log import log

SCHEMA_PATH = Path(__file__).parent / "schema.sql"

# Staging parquet stem -> table name in schema.sql.
STAGING_TO_TABLE: dict[str, str] = {
    "entities": "entities",
    "cooccurrence": "entity_cooccurrence",
}


def build_duckdb(staging_dir: Path, output_path: Path) -> Path:
    """Build the DuckDB database atomically from staging Parquet files.

    Raises:
        Any exception from duckdb or the filesystem, after removing the tmp file.
    """
    tmp_path = output_path.with_suffix(".tmp.duckdb")
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if tmp_path.exists():
        tmp_path.unlink()

    try:
        conn = duckdb.connect(str(tmp_path))
        try:
            conn.execute(SCHEMA_PATH.read_text(encoding="utf-8"))
            _load_staging_data(conn, staging_dir)
        finally:
            conn.close()

        tmp_path.replace(output_path)
        return output_path

    except Exception:
        if tmp_path.exists():
            tmp_path.unlink()
        raise


def _load_staging_data(conn: duckdb.DuckDBPyConnection, staging_dir: Path) -> None:
    loaded = 0
    for file_stem, table_name in STAGING_TO_TABLE.items():
        parquet_path = staging_dir / f"{file_stem}.parquet"
        if not parquet_path.exists():
            continue

        log(f"  Loading {file_stem} -> {table_name}...")

        # table_name comes from STAGING_TO_TABLE and posix_path is a local
        # path; neither is user-controlled.
        table_cols = [
            row[0]
            for row in conn.execute(
                f"SELECT column_name FROM information_schema.columns "  # noqa: S608
                f"WHERE table_name = '{table_name}' ORDER BY ordinal_position"
            ).fetchall()
        ]
        posix_path = parquet_path.as_posix()
        parquet_cols = {
            row[0]
            for row in conn.execute(
                f"SELECT name FROM parquet_schema('{posix_path}')"  # noqa: S608
            ).fetchall()
        }

        shared_cols = [c for c in table_cols if c in parquet_cols]
        if not shared_cols:
            continue

        cols_sql = ", ".join(shared_cols)
        conn.execute(
            f"INSERT INTO {table_name} ({cols_sql}) "  # noqa: S608
            f"SELECT {cols_sql} FROM read_parquet('{posix_path}')"
        )
        loaded += 1

    log(f"  DuckDB: {loaded} tables loaded")


def validate_tables(output_path: Path) -> dict[str, int]:
    """Row counts per table of a finished database."""
    conn = duckdb.connect(str(output_path), read_only=True)
    try:
        counts: dict[str, int] = {}
        for (table_name,) in conn.execute("SHOW TABLES").fetchall():
            row = conn.execute(f"SELECT COUNT(*) FROM {table_name}").fetchone()  # noqa: S608
            counts[table_name] = int(row[0]) if row else 0
        return counts
    finally:
        conn.close()
