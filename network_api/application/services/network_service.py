# network_api/application/services/network_service.py
from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor

from network_api.domain.network.entities import Entity, NeighborRecord, Subgraph
from network_api.domain.network.errors import UpstreamUnavailableError
from network_api.domain.network.ranking import NeighborRanker
from network_api.domain.network.repository import CooccurrenceRepository, EntityCatalog
from network_api.domain.network.services import SubgraphSelector, count_types
from network_api.domain.network.value_objects import EntityId, NetworkQuery

from ..dtos.network_dto import NeighborDTO, NetworkDTO, SubgraphEdgeDTO, SubgraphNodeDTO
from .query_cache import CancellationToken, QueryCache

logger = logging.getLogger(__name__)


class NetworkService:
    """GetNetwork / GetNeighbors orchestration: fetch, snapshot, select.

    Either a complete result or an exception; a failing catalog chunk fails
    the whole request instead of silently dropping nodes.
    """

    def __init__(
        self,
        cooccurrence_repo: CooccurrenceRepository,
        entity_catalog: EntityCatalog,
        network_cache: QueryCache[NetworkQuery, NetworkDTO] | None = None,
        neighbor_cache: QueryCache[tuple[str, int], list[NeighborRecord]] | None = None,
        batch_size: int = 100,
        max_workers: int = 4,
        overfetch_factor: int = 3,
        type_sample_size: int = 500,
    ) -> None:
        self._cooccurrence_repo = cooccurrence_repo
        self._entity_catalog = entity_catalog
        self._network_cache = network_cache
        self._neighbor_cache = neighbor_cache
        self._batch_size = batch_size
        self._max_workers = max_workers
        self._overfetch_factor = overfetch_factor
        self._type_sample_size = type_sample_size

    def get_subgraph(self, query: NetworkQuery, token: CancellationToken | None = None) -> Subgraph:
        center = query.center.value if query.center else None
        try:
            edges = self._cooccurrence_repo.list_edges(
                query.min_strength,
                query.max_nodes * self._overfetch_factor,
                center,
            )
            _check(token)
            if not edges:
                sample = self._cooccurrence_repo.sample_ids(self._type_sample_size)
                return Subgraph(type_counts=count_types(self.fetch_entities(sample, token).values()))

            ids = {e.entity_a_id for e in edges} | {e.entity_b_id for e in edges}
            snapshot = self.fetch_entities(ids, token)
        except UpstreamUnavailableError:
            logger.exception("Network query failed upstream: %s", query)
            raise
        return SubgraphSelector.select(edges, snapshot, query)

    def get_network(self, query: NetworkQuery, token: CancellationToken | None = None) -> NetworkDTO:
        if self._network_cache is not None:
            cached = self._network_cache.get(query)
            if cached is not None:
                return cached

        subgraph = self.get_subgraph(query, token)
        _check(token)
        dto = _to_network_dto(subgraph)
        if self._network_cache is not None:
            self._network_cache.put(query, dto)
        return dto

    def neighbor_records(
        self,
        entity_id: EntityId,
        limit: int = 10,
        token: CancellationToken | None = None,
    ) -> list[NeighborRecord]:
        key = (entity_id.value, limit)
        if self._neighbor_cache is not None:
            cached = self._neighbor_cache.get(key)
            if cached is not None:
                return cached

        try:
            edges = self._cooccurrence_repo.list_neighbors(entity_id.value, limit)
            _check(token)
            top = NeighborRanker.top_edges(entity_id.value, edges, limit)
            snapshot = self.fetch_entities((e.other(entity_id.value) for e in top), token)
        except UpstreamUnavailableError:
            logger.exception("Neighbor query failed upstream: %s", entity_id)
            raise
        _check(token)
        records = NeighborRanker.rank(entity_id.value, top, snapshot, limit)
        if self._neighbor_cache is not None:
            self._neighbor_cache.put(key, records)
        return records

    def get_neighbors(
        self,
        entity_id: EntityId,
        limit: int = 10,
        token: CancellationToken | None = None,
    ) -> list[NeighborDTO]:
        return [
            NeighborDTO(
                id=r.entity.id,
                name=r.entity.name,
                entity_type=r.entity.entity_type.value,
                shared_cases_count=r.shared_cases_count,
                jaccard_score=r.jaccard_score,
                invite_count=r.invite_count,
                response_count=r.response_count,
            )
            for r in self.neighbor_records(entity_id, limit, token)
        ]

    def find_entity(self, entity_id: EntityId) -> Entity | None:
        return self._lookup([entity_id.value]).get(entity_id.value)

    def fetch_entities(self, ids: Iterable[str], token: CancellationToken | None = None) -> dict[str, Entity]:
        """Chunked catalog lookup, chunks issued concurrently, merged by id."""
        unique = sorted(set(ids))
        chunks = [unique[i : i + self._batch_size] for i in range(0, len(unique), self._batch_size)]
        if len(chunks) <= 1:
            return self._lookup(unique)

        merged: dict[str, Entity] = {}
        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            for found in pool.map(self._entity_catalog.find_by_ids, chunks):
                _check(token)
                merged.update((e.id, e) for e in found)
        return merged

    def _lookup(self, ids: Iterable[str]) -> dict[str, Entity]:
        ids = list(ids)
        if not ids:
            return {}
        return {e.id: e for e in self._entity_catalog.find_by_ids(ids)}


def _check(token: CancellationToken | None) -> None:
    if token is not None:
        token.raise_if_cancelled()


def _to_network_dto(subgraph: Subgraph) -> NetworkDTO:
    return NetworkDTO(
        nodes=[
            SubgraphNodeDTO(
                id=n.id,
                name=n.name,
                entity_type=n.entity_type.value,
                degree=n.degree,
            )
            for n in subgraph.nodes
        ],
        edges=[
            SubgraphEdgeDTO(
                source=e.source,
                target=e.target,
                weight=e.weight,
                invite_count=e.invite_count,
                response_count=e.response_count,
                shared_cases_count=e.shared_cases_count,
                jaccard_score=e.jaccard_score,
            )
            for e in subgraph.edges
        ],
        type_counts=dict(subgraph.type_counts),
    )
