# network_api/infrastructure/duckdb_connection.py
#
# Process-wide DuckDB connection to the network snapshot.
#
# Snapshot files are opened read-only and must already hold the tables the
# repositories query; a missing or half-built file surfaces as
# UpstreamUnavailableError (503) instead of a SQL error on the first request.
# A connection injected with set_connection() is borrowed: close_connection()
# leaves it in place.
from __future__ import annotations

import logging
from pathlib import Path

import duckdb

from network_api.domain.network.errors import UpstreamUnavailableError

from .config import get_settings

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"
SNAPSHOT_TABLES = ("entities", "entity_cooccurrence")

_connection: duckdb.DuckDBPyConnection | None = None
_owned = False


def get_connection() -> duckdb.DuckDBPyConnection:
    global _connection, _owned  # noqa: PLW0603
    if _connection is None:
        _connection = _open(get_settings().duckdb_path)
        _owned = True
    return _connection


def set_connection(conn: duckdb.DuckDBPyConnection | None) -> None:
    """Used by tests to inject an in-memory DuckDB."""
    global _connection, _owned  # noqa: PLW0603
    _connection = conn
    _owned = False


def close_connection() -> None:
    global _connection, _owned  # noqa: PLW0603
    if _connection is None or not _owned:
        return
    _connection.close()
    _connection = None
    _owned = False
    logger.info("Closed network snapshot connection")


def _open(path: str) -> duckdb.DuckDBPyConnection:
    if path == MEMORY_PATH:
        return duckdb.connect(MEMORY_PATH)

    if not Path(path).is_file():
        raise UpstreamUnavailableError(f"Network snapshot not found at {path}; run the snapshot loader first")
    try:
        conn = duckdb.connect(path, read_only=True)
    except duckdb.Error as err:
        raise UpstreamUnavailableError(f"Cannot open network snapshot {path}: {err}") from err

    present = {row[0] for row in conn.execute("SHOW TABLES").fetchall()}
    missing = [t for t in SNAPSHOT_TABLES if t not in present]
    if missing:
        conn.close()
        raise UpstreamUnavailableError(f"Network snapshot {path} lacks tables: {', '.join(missing)}")

    logger.info("Opened network snapshot %s (read-only)", path)
    return conn
