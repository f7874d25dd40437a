# network_pipeline/sources/snapshot/download.py
#
# IO-only: page through the two snapshot tables on a PostgREST endpoint and
# save each table as one raw JSON array.
#
# Design decisions:
#   - Paging is offset/limit with a stable ORDER BY so pages never overlap.
#     A short page ends the table.
#   - Transport errors, 429 and 5xx are retried with linear backoff; any
#     other 4xx is a configuration problem and fails immediately.
#   - The raw file is written to <table>.json.tmp and renamed on success, so
#     a crashed download never leaves a truncated file behind.
#   - The httpx.Client is injectable; tests pass one built on MockTransport.
from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any

import httpx

from network_pipeline.config import PipelineConfig
from network_pipeline.log import log

ENTITY_COLUMNS = ("id", "name", "entity_type")
COOCCURRENCE_COLUMNS = (
    "entity_a_id",
    "entity_b_id",
    "cooccurrence_count",
    "total_shared_case_count",
    "invite_cooccurrence_count",
    "response_cooccurrence_count",
    "jaccard_score",
    "relationship_strength",
)

TABLES: dict[str, tuple[tuple[str, ...], str]] = {
    "entities": (ENTITY_COLUMNS, "id.asc"),
    "entity_cooccurrence": (COOCCURRENCE_COLUMNS, "entity_a_id.asc,entity_b_id.asc"),
}

_RETRYABLE_STATUS = {429, 500, 502, 503, 504}


def download_snapshot(
    config: PipelineConfig,
    client: httpx.Client | None = None,
    backoff: float = 1.0,
) -> dict[str, Path]:
    """Download every snapshot table into config.raw_dir.

    Returns:
        Mapping of table name -> raw JSON path.
    """
    headers: dict[str, str] = {"Accept": "application/json"}
    if config.snapshot_api_key:
        headers["apikey"] = config.snapshot_api_key
        headers["Authorization"] = f"Bearer {config.snapshot_api_key}"

    owns_client = client is None
    http = client or httpx.Client(timeout=config.download_timeout, follow_redirects=True)
    try:
        paths: dict[str, Path] = {}
        for table, (columns, order) in TABLES.items():
            paths[table] = download_table(
                http,
                f"{config.snapshot_base_url}/{table}",
                table,
                columns,
                order,
                config.raw_dir,
                headers=headers,
                page_size=config.page_size,
                retries=config.download_retries,
                backoff=backoff,
            )
        return paths
    finally:
        if owns_client:
            http.close()


def download_table(
    client: httpx.Client,
    url: str,
    table: str,
    columns: tuple[str, ...],
    order: str,
    raw_dir: Path,
    headers: dict[str, str] | None = None,
    page_size: int = 1000,
    retries: int = 3,
    backoff: float = 1.0,
) -> Path:
    """Fetch all pages of one table and write them to raw_dir/<table>.json."""
    raw_dir.mkdir(parents=True, exist_ok=True)
    final_path = raw_dir / f"{table}.json"
    tmp_path = raw_dir / f"{table}.json.tmp"

    records: list[dict[str, Any]] = []
    offset = 0
    while True:
        params = {
            "select": ",".join(columns),
            "order": order,
            "offset": offset,
            "limit": page_size,
        }
        page = _get_page(client, url, params, headers or {}, retries, backoff)
        records.extend(page)
        offset += len(page)
        if offset and offset % (page_size * 10) == 0:
            log(f"  {table}: {offset:,} rows so far")
        if len(page) < page_size:
            break

    try:
        tmp_path.write_text(json.dumps(records), encoding="utf-8")
        tmp_path.replace(final_path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise
    log(f"  Downloaded {table}: {len(records):,} rows")
    return final_path


def _get_page(
    client: httpx.Client,
    url: str,
    params: dict[str, Any],
    headers: dict[str, str],
    retries: int,
    backoff: float,
) -> list[dict[str, Any]]:
    attempt = 0
    while True:
        attempt += 1
        try:
            response = client.get(url, params=params, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as err:
            if err.response.status_code not in _RETRYABLE_STATUS or attempt > retries:
                raise
            log(f"  {url}: HTTP {err.response.status_code}, retry {attempt}/{retries}")
        except httpx.TransportError as err:
            if attempt > retries:
                raise
            log(f"  {url}: {type(err).__name__}, retry {attempt}/{retries}")
        else:
            payload = response.json()
            if not isinstance(payload, list):
                raise ValueError(f"Expected a JSON array from {url}, got {type(payload).__name__}")
            return payload
        time.sleep(backoff * attempt)
