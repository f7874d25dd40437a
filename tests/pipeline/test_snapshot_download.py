# tests/pipeline/test_snapshot_download.py
#
# Paginated PostgREST download against httpx.MockTransport.
from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from network_pipeline.config import PipelineConfig
from network_pipeline.sources.snapshot.download import download_snapshot, download_table

BASE = "https://snapshot.test/rest/v1"


def _config(tmp_path: Path, **overrides: object) -> PipelineConfig:
    values: dict[str, object] = {
        "data_dir": tmp_path,
        "snapshot_base_url": BASE,
        "duckdb_output_path": tmp_path / "out.duckdb",
        "page_size": 2,
        "download_retries": 2,
    }
    values.update(overrides)
    return PipelineConfig(**values)  # type: ignore[arg-type]


def _paged(rows: list[dict]) -> httpx.MockTransport:  # type: ignore[type-arg]
    def handler(request: httpx.Request) -> httpx.Response:
        offset = int(request.url.params["offset"])
        limit = int(request.url.params["limit"])
        return httpx.Response(200, json=rows[offset : offset + limit])

    return httpx.MockTransport(handler)


def test_download_table_follows_pages_until_a_short_page(tmp_path: Path) -> None:
    rows = [{"id": str(i)} for i in range(5)]
    seen_offsets: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        offset = int(request.url.params["offset"])
        seen_offsets.append(offset)
        return httpx.Response(200, json=rows[offset : offset + 2])

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        path = download_table(client, f"{BASE}/entities", "entities", ("id",), "id.asc", tmp_path, page_size=2)

    assert json.loads(path.read_text(encoding="utf-8")) == rows
    assert seen_offsets == [0, 2, 4]
    assert not (tmp_path / "entities.json.tmp").exists()


def test_download_snapshot_sends_api_key_and_select(tmp_path: Path) -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=[])

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        paths = download_snapshot(_config(tmp_path, snapshot_api_key="secret"), client=client, backoff=0)

    assert set(paths) == {"entities", "entity_cooccurrence"}
    assert {r.url.path for r in requests} == {"/rest/v1/entities", "/rest/v1/entity_cooccurrence"}
    for request in requests:
        assert request.headers["apikey"] == "secret"
        assert request.headers["Authorization"] == "Bearer secret"
    entity_request = next(r for r in requests if r.url.path.endswith("/entities"))
    assert entity_request.url.params["select"] == "id,name,entity_type"
    assert entity_request.url.params["order"] == "id.asc"


def test_download_retries_server_errors(tmp_path: Path) -> None:
    attempts = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        attempts["n"] += 1
        if attempts["n"] < 3:
            return httpx.Response(503)
        return httpx.Response(200, json=[{"id": "a"}])

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        path = download_table(
            client, f"{BASE}/entities", "entities", ("id",), "id.asc", tmp_path, retries=2, backoff=0
        )

    assert attempts["n"] == 3
    assert json.loads(path.read_text(encoding="utf-8")) == [{"id": "a"}]


def test_download_gives_up_after_retries(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    with httpx.Client(transport=httpx.MockTransport(handler)) as client, pytest.raises(httpx.ConnectError):
        download_table(client, f"{BASE}/entities", "entities", ("id",), "id.asc", tmp_path, retries=1, backoff=0)

    assert not (tmp_path / "entities.json").exists()


def test_download_does_not_retry_client_errors(tmp_path: Path) -> None:
    attempts = {"n": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        attempts["n"] += 1
        return httpx.Response(401, json={"message": "bad key"})

    with httpx.Client(transport=httpx.MockTransport(handler)) as client, pytest.raises(httpx.HTTPStatusError):
        download_table(client, f"{BASE}/entities", "entities", ("id",), "id.asc", tmp_path, retries=3, backoff=0)

    assert attempts["n"] == 1


def test_download_rejects_non_array_payload(tmp_path: Path) -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"error": "oops"}))

    with httpx.Client(transport=transport) as client, pytest.raises(ValueError):
        download_table(client, f"{BASE}/entities", "entities", ("id",), "id.asc", tmp_path)


def test_paged_helper_round_trip(tmp_path: Path) -> None:
    rows = [{"id": "a"}, {"id": "b"}, {"id": "c"}, {"id": "d"}]
    with httpx.Client(transport=_paged(rows)) as client:
        path = download_table(client, f"{BASE}/entities", "entities", ("id",), "id.asc", tmp_path, page_size=2)

    # Exactly two full pages, then one empty page ends the table.
    assert json.loads(path.read_text(encoding="utf-8")) == rows
