# network_pipeline/sources/snapshot/parse.py
#
# Parse the raw snapshot JSON arrays into typed staging DataFrames.
#
# Design decisions:
#   - Purely structural: columns are projected and cast, nothing is dropped.
#     Cleaning belongs to validate.py.
#   - Missing keys become nulls; unknown keys are ignored.
#   - Casting is non-strict, so a malformed number becomes null and is then
#     handled by the validator instead of aborting the parse.
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import polars as pl

ENTITY_SCHEMA: dict[str, pl.DataType] = {
    "id": pl.Utf8(),
    "name": pl.Utf8(),
    "entity_type": pl.Utf8(),
}

COOCCURRENCE_SCHEMA: dict[str, pl.DataType] = {
    "entity_a_id": pl.Utf8(),
    "entity_b_id": pl.Utf8(),
    "cooccurrence_count": pl.Int64(),
    "total_shared_case_count": pl.Int64(),
    "invite_cooccurrence_count": pl.Int64(),
    "response_cooccurrence_count": pl.Int64(),
    "jaccard_score": pl.Float64(),
    "relationship_strength": pl.Float64(),
}


def parse_entities(path: Path) -> pl.DataFrame:
    return _parse(path, ENTITY_SCHEMA)


def parse_cooccurrence(path: Path) -> pl.DataFrame:
    return _parse(path, COOCCURRENCE_SCHEMA)


def _parse(path: Path, schema: dict[str, pl.DataType]) -> pl.DataFrame:
    records: list[dict[str, Any]] = json.loads(path.read_text(encoding="utf-8"))
    if not records:
        return pl.DataFrame(schema=schema)
    projected = {col: [r.get(col) for r in records] for col in schema}
    return pl.DataFrame(projected, schema=schema, strict=False)
