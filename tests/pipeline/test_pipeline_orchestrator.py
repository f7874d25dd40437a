# tests/pipeline/test_pipeline_orchestrator.py
#
# End to end: mocked snapshot endpoint -> staging parquets -> DuckDB.
from __future__ import annotations

from pathlib import Path

import duckdb
import httpx
import pytest

from network_pipeline.config import PipelineConfig, load_config
from network_pipeline.main import run_pipeline

SNAPSHOT = {
    "entities": [
        {"id": "a", "name": "Acme", "entity_type": "Organization"},
        {"id": "b", "name": None, "entity_type": "person"},
        {"id": "c", "name": "Council", "entity_type": None},
    ],
    "entity_cooccurrence": [
        {"entity_a_id": "a", "entity_b_id": "b", "cooccurrence_count": 2, "relationship_strength": 0.4},
        {"entity_a_id": "b", "entity_b_id": "a", "cooccurrence_count": 5, "relationship_strength": 0.9},
        {"entity_a_id": "a", "entity_b_id": "a", "relationship_strength": 1.0},
        {"entity_a_id": "c", "entity_b_id": "ghost", "relationship_strength": 0.5},
        {"entity_a_id": "b", "entity_b_id": "c", "jaccard_score": 3.0, "relationship_strength": 0.2},
    ],
}


def _client() -> httpx.Client:
    def handler(request: httpx.Request) -> httpx.Response:
        table = request.url.path.rsplit("/", 1)[-1]
        offset = int(request.url.params["offset"])
        limit = int(request.url.params["limit"])
        return httpx.Response(200, json=SNAPSHOT[table][offset : offset + limit])

    return httpx.Client(transport=httpx.MockTransport(handler))


def _config(tmp_path: Path) -> PipelineConfig:
    return PipelineConfig(
        data_dir=tmp_path / "data",
        snapshot_base_url="https://snapshot.test/rest/v1",
        duckdb_output_path=tmp_path / "data" / "output" / "network.duckdb",
        page_size=2,
    )


def test_run_pipeline_builds_clean_database(tmp_path: Path) -> None:
    config = _config(tmp_path)

    with _client() as client:
        output = run_pipeline(config, client=client)

    assert (config.raw_dir / "entities.json").exists()
    assert (config.staging_dir / "cooccurrence.parquet").exists()

    conn = duckdb.connect(str(output), read_only=True)
    try:
        entities = conn.execute("SELECT id, name, entity_type FROM entities ORDER BY id").fetchall()
        edges = conn.execute(
            "SELECT entity_a_id, entity_b_id, cooccurrence_count, jaccard_score, relationship_strength "
            "FROM entity_cooccurrence ORDER BY relationship_strength DESC"
        ).fetchall()
    finally:
        conn.close()

    assert entities == [("a", "Acme", "organization"), ("b", "b", "person"), ("c", "Council", "other")]
    assert edges == [("b", "a", 5, None, 0.9), ("b", "c", 0, 1.0, 0.2)]


def test_skip_download_rebuilds_from_staging(tmp_path: Path) -> None:
    config = _config(tmp_path)
    with _client() as client:
        first = run_pipeline(config, client=client)
    first.unlink()

    def refuse(request: httpx.Request) -> httpx.Response:
        raise AssertionError("network must not be touched")

    with httpx.Client(transport=httpx.MockTransport(refuse)) as client:
        output = run_pipeline(config, skip_download=True, client=client)

    conn = duckdb.connect(str(output), read_only=True)
    try:
        count = conn.execute("SELECT COUNT(*) FROM entity_cooccurrence").fetchone()
    finally:
        conn.close()
    assert count == (2,)


def test_load_config_requires_base_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SNAPSHOT_BASE_URL", "  ")

    with pytest.raises(ValueError, match="SNAPSHOT_BASE_URL"):
        load_config()


def test_load_config_reads_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SNAPSHOT_BASE_URL", "https://snapshot.test/rest/v1/")
    monkeypatch.setenv("PIPELINE_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("DUCKDB_OUTPUT_PATH", raising=False)
    monkeypatch.setenv("SNAPSHOT_API_KEY", "")
    monkeypatch.setenv("PIPELINE_PAGE_SIZE", "250")

    config = load_config()

    assert config.snapshot_base_url == "https://snapshot.test/rest/v1"
    assert config.snapshot_api_key is None
    assert config.page_size == 250
    assert config.duckdb_output_path == tmp_path / "output" / "entity_network.duckdb"
    assert config.raw_dir == tmp_path / "raw"
