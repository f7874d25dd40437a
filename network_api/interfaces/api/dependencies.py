# network_api/interfaces/api/dependencies.py
from __future__ import annotations

import secrets
from functools import lru_cache

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from network_api.application.dtos.network_dto import NetworkDTO
from network_api.application.services.layout_service import LayoutService
from network_api.application.services.network_service import NetworkService
from network_api.application.services.query_cache import QueryCache
from network_api.domain.network.entities import NeighborRecord
from network_api.domain.network.value_objects import NetworkQuery
from network_api.infrastructure.config import get_settings
from network_api.infrastructure.duckdb_connection import get_connection
from network_api.infrastructure.repositories.duckdb_cooccurrence_repo import DuckDBCooccurrenceRepo
from network_api.infrastructure.repositories.duckdb_entity_repo import DuckDBEntityRepo

_bearer = HTTPBearer(auto_error=False)


def require_caller(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),  # noqa: B008
) -> str:
    """Returns the accepted token. An empty API_TOKENS rejects everyone."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=401,
            detail="Missing bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    token = credentials.credentials
    if not any(secrets.compare_digest(token, known) for known in get_settings().api_tokens):
        raise HTTPException(
            status_code=401,
            detail="Invalid bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token


@lru_cache(maxsize=1)
def get_network_cache() -> QueryCache[NetworkQuery, NetworkDTO]:
    return QueryCache(ttl_seconds=get_settings().query_cache_ttl_seconds)


@lru_cache(maxsize=1)
def get_neighbor_cache() -> QueryCache[tuple[str, int], list[NeighborRecord]]:
    return QueryCache(ttl_seconds=get_settings().query_cache_ttl_seconds)


def get_network_service() -> NetworkService:
    conn = get_connection()
    settings = get_settings()
    return NetworkService(
        cooccurrence_repo=DuckDBCooccurrenceRepo(conn),
        entity_catalog=DuckDBEntityRepo(conn),
        network_cache=get_network_cache(),
        neighbor_cache=get_neighbor_cache(),
        batch_size=settings.catalog_batch_size,
        max_workers=settings.catalog_max_workers,
        overfetch_factor=settings.overfetch_factor,
    )


def get_layout_service(
    network_service: NetworkService = Depends(get_network_service),  # noqa: B008
) -> LayoutService:
    return LayoutService(network_service)
