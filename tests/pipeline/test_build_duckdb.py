# tests/pipeline/test_build_duckdb.py
from __future__ import annotations

from pathlib import Path

import duckdb
import polars as pl
import pytest

from network_pipeline.output.build_duckdb import build_duckdb, validate_tables
from network_pipeline.staging.parquet_writer import write_parquet


def _stage(staging: Path, entity_ids: list[str]) -> None:
    write_parquet(
        pl.DataFrame(
            {
                "id": entity_ids,
                "name": [f"Entity {i}" for i in entity_ids],
                "entity_type": ["organization"] * len(entity_ids),
            }
        ),
        staging / "entities.parquet",
    )
    write_parquet(
        pl.DataFrame(
            {
                "entity_a_id": ["a"],
                "entity_b_id": ["b"],
                "cooccurrence_count": [3],
                "jaccard_score": [None],
                "relationship_strength": [0.75],
            },
            schema_overrides={"jaccard_score": pl.Float64},
        ),
        staging / "cooccurrence.parquet",
    )


def test_build_creates_served_tables(tmp_path: Path) -> None:
    staging = tmp_path / "staging"
    _stage(staging, ["a", "b", "c"])
    output = tmp_path / "out" / "network.duckdb"

    result = build_duckdb(staging, output)

    assert result == output
    assert validate_tables(output) == {"entities": 3, "entity_cooccurrence": 1}
    assert not output.with_suffix(".tmp.duckdb").exists()


def test_missing_parquet_columns_take_schema_defaults(tmp_path: Path) -> None:
    staging = tmp_path / "staging"
    _stage(staging, ["a", "b"])
    output = build_duckdb(staging, tmp_path / "network.duckdb")

    conn = duckdb.connect(str(output), read_only=True)
    try:
        row = conn.execute(
            "SELECT cooccurrence_count, invite_cooccurrence_count, jaccard_score, relationship_strength "
            "FROM entity_cooccurrence"
        ).fetchone()
    finally:
        conn.close()

    assert row == (3, 0, None, 0.75)


def test_failed_build_keeps_previous_output(tmp_path: Path) -> None:
    staging = tmp_path / "staging"
    output = tmp_path / "network.duckdb"
    _stage(staging, ["a", "b"])
    build_duckdb(staging, output)

    # Duplicate primary keys abort the second build.
    _stage(staging, ["a", "a"])
    with pytest.raises(duckdb.Error):
        build_duckdb(staging, output)

    assert not output.with_suffix(".tmp.duckdb").exists()
    assert validate_tables(output)["entities"] == 2


def test_build_without_staging_files_yields_empty_tables(tmp_path: Path) -> None:
    staging = tmp_path / "staging"
    staging.mkdir()

    output = build_duckdb(staging, tmp_path / "network.duckdb")

    assert validate_tables(output) == {"entities": 0, "entity_cooccurrence": 0}
