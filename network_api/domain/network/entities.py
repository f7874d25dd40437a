# network_api/domain/network/entities.py
from __future__ import annotations

from dataclasses import dataclass

from .enums import EntityType


@dataclass(frozen=True)
class Entity:
    """Catalog identity record. Owned by the catalog, read-only here."""
    id: str
    name: str
    entity_type: EntityType


@dataclass(frozen=True)
class CooccurrenceEdge:
    """Precomputed pairwise statistics between two entities.

    The pair is unordered and the store does not guarantee entity_a_id <
    entity_b_id. relationship_strength is an opaque ordering key, not
    necessarily equal to jaccard_score."""
    entity_a_id: str
    entity_b_id: str
    shared_case_count: int
    invite_cooccurrence_count: int
    response_cooccurrence_count: int
    jaccard_score: float
    relationship_strength: float

    def touches(self, entity_id: str) -> bool:
        return entity_id in (self.entity_a_id, self.entity_b_id)

    def other(self, entity_id: str) -> str:
        """Endpoint opposite to entity_id. Caller guarantees touches(entity_id)."""
        return self.entity_b_id if self.entity_a_id == entity_id else self.entity_a_id


@dataclass(frozen=True)
class SubgraphNode:
    id: str
    name: str
    entity_type: EntityType
    degree: int  # edges touching this node inside the returned subgraph


@dataclass(frozen=True)
class SubgraphEdge:
    source: str
    target: str
    weight: float  # relationship_strength
    invite_count: int
    response_count: int
    shared_cases_count: int
    jaccard_score: float


@dataclass(frozen=True)
class Subgraph:
    """Bounded view model. Every edge endpoint is present in nodes."""
    nodes: tuple[SubgraphNode, ...] = ()
    edges: tuple[SubgraphEdge, ...] = ()
    type_counts: tuple[tuple[str, int], ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.nodes


@dataclass(frozen=True)
class NeighborRecord:
    """One row of a NeighborRanker result."""
    entity: Entity
    shared_cases_count: int
    jaccard_score: float
    invite_count: int
    response_count: int
    relationship_strength: float
