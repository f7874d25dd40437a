# network_api/domain/network/repository.py
from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from .entities import CooccurrenceEdge, Entity


class CooccurrenceRepository(Protocol):
    def list_edges(
        self,
        min_strength: float,
        limit: int,
        entity_id: str | None = None,
    ) -> list[CooccurrenceEdge]:
        """Edges with relationship_strength >= min_strength, strongest first.

        When entity_id is given, only edges touching it (either side)."""
        ...

    def list_neighbors(self, entity_id: str, limit: int) -> list[CooccurrenceEdge]:
        """Edges touching entity_id, strongest first, no strength threshold."""
        ...

    def sample_ids(self, limit: int) -> list[str]:
        """Distinct entity ids from the first `limit` rows of the table."""
        ...


class EntityCatalog(Protocol):
    def find_by_ids(self, ids: Iterable[str]) -> list[Entity]:
        """Single bounded lookup. Unknown ids are simply absent from the result."""
        ...
