# tests/pipeline/test_snapshot_parse.py
from __future__ import annotations

import json
from pathlib import Path

import polars as pl

from network_pipeline.sources.snapshot.parse import parse_cooccurrence, parse_entities


def _write(tmp_path: Path, name: str, records: list[dict]) -> Path:  # type: ignore[type-arg]
    path = tmp_path / name
    path.write_text(json.dumps(records), encoding="utf-8")
    return path


def test_parse_entities_projects_known_columns(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "entities.json",
        [
            {"id": "a", "name": "Acme", "entity_type": "organization", "created_at": "2024-01-01"},
            {"id": "b", "name": "Beth"},
        ],
    )

    df = parse_entities(path)

    assert df.columns == ["id", "name", "entity_type"]
    assert df["entity_type"].to_list() == ["organization", None]


def test_parse_cooccurrence_casts_types(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "entity_cooccurrence.json",
        [
            {
                "entity_a_id": "a",
                "entity_b_id": "b",
                "cooccurrence_count": 3,
                "total_shared_case_count": 4,
                "invite_cooccurrence_count": 2,
                "response_cooccurrence_count": 1,
                "jaccard_score": 0.5,
                "relationship_strength": 1,
            },
            {"entity_a_id": "a", "entity_b_id": "c", "relationship_strength": 0.25},
        ],
    )

    df = parse_cooccurrence(path)

    assert df.schema["cooccurrence_count"] == pl.Int64
    assert df.schema["relationship_strength"] == pl.Float64
    assert df["relationship_strength"].to_list() == [1.0, 0.25]
    assert df["jaccard_score"].to_list() == [0.5, None]


def test_parse_empty_array_keeps_schema(tmp_path: Path) -> None:
    df = parse_cooccurrence(_write(tmp_path, "empty.json", []))

    assert df.is_empty()
    assert "relationship_strength" in df.columns
