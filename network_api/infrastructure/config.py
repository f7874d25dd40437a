# network_api/infrastructure/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    duckdb_path: str
    api_tokens: frozenset[str]
    rate_limit_per_minute: int
    max_nodes_cap: int
    overfetch_factor: int
    catalog_batch_size: int
    catalog_max_workers: int
    query_cache_ttl_seconds: float
    debug: bool


def _tokens(raw: str) -> frozenset[str]:
    return frozenset(t.strip() for t in raw.split(",") if t.strip())


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        duckdb_path=os.environ.get("DUCKDB_PATH", ":memory:"),
        api_tokens=_tokens(os.environ.get("API_TOKENS", "")),
        rate_limit_per_minute=int(os.environ.get("API_RATE_LIMIT_PER_MINUTE", "60")),
        max_nodes_cap=int(os.environ.get("NETWORK_MAX_NODES_CAP", "500")),
        overfetch_factor=int(os.environ.get("NETWORK_OVERFETCH_FACTOR", "3")),
        catalog_batch_size=int(os.environ.get("CATALOG_BATCH_SIZE", "100")),
        catalog_max_workers=int(os.environ.get("CATALOG_MAX_WORKERS", "4")),
        query_cache_ttl_seconds=float(os.environ.get("QUERY_CACHE_TTL_SECONDS", "60")),
        debug=os.environ.get("API_DEBUG", "false").lower() == "true",
    )
