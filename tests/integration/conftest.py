# tests/integration/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path

import duckdb
import pytest
from fastapi.testclient import TestClient

SCHEMA_PATH = Path(__file__).parent.parent.parent / "network_pipeline" / "output" / "schema.sql"

TEST_TOKEN = "test-token"

# Rate limit off and one known bearer token for every integration test.
os.environ["API_RATE_LIMIT_PER_MINUTE"] = "0"
os.environ["API_TOKENS"] = TEST_TOKEN


@pytest.fixture(scope="session")
def test_db() -> Generator[duckdb.DuckDBPyConnection, None, None]:
    """In-memory DuckDB with the served schema and a small deterministic network.

    Strengths (min_strength 0.1 keeps all but E-F):
        A-GONE 0.95  (GONE is not in the catalog)
        A-B    0.90
        C-A    0.70
        B-C    0.50
        A-D    0.30
        D-E    0.20
        E-F    0.05
    Z has no edges.
    """
    conn = duckdb.connect(":memory:")
    conn.execute(SCHEMA_PATH.read_text(encoding="utf-8"))

    conn.execute("""
        INSERT INTO entities VALUES
        ('A', 'Acme Corp', 'organization'),
        ('B', 'Beth Ray', 'person'),
        ('C', 'Budget Committee', 'committee'),
        ('D', 'Treasury', 'government_body'),
        ('E', 'Unity Party', 'political_party'),
        ('F', 'Dockworkers Union', 'union'),
        ('Z', 'Lonely Ltd', 'organization')
    """)

    conn.execute("""
        INSERT INTO entity_cooccurrence VALUES
        ('A', 'GONE', 1, 1, 1, 1, 0.90, 0.95),
        ('A', 'B',    4, 6, 3, 2, 0.60, 0.90),
        ('C', 'A',    3, 4, 2, 1, 0.40, 0.70),
        ('B', 'C',    2, 3, 1, 1, 0.30, 0.50),
        ('A', 'D',    1, 2, 1, 0, 0.20, 0.30),
        ('D', 'E',    1, 1, 0, 1, NULL, 0.20),
        ('E', 'F',    1, 1, 1, 0, 0.10, 0.05)
    """)

    yield conn
    conn.close()


@pytest.fixture(scope="session")
def client(test_db: duckdb.DuckDBPyConnection) -> Generator[TestClient, None, None]:
    """Authenticated TestClient with the in-memory DuckDB injected."""
    from network_api.infrastructure import duckdb_connection
    duckdb_connection.set_connection(test_db)

    from network_api.infrastructure.config import get_settings
    get_settings.cache_clear()

    from network_api.interfaces.api.main import app
    with TestClient(app, headers={"Authorization": f"Bearer {TEST_TOKEN}"}) as c:
        yield c
