# network_api/domain/network/ranking.py
#
# Top-N neighbors of a single entity, for "related entities" widgets and the
# ego preview graph.
#
# Design decisions:
#   - Unlike SubgraphSelector there is no strength threshold: the result is a
#     top-N regardless of absolute strength.
#   - Rows are truncated to `limit` BEFORE catalog resolution, then neighbors
#     missing from the catalog are dropped (no placeholders). A result may
#     therefore be shorter than `limit` even when more rows exist.
#   - Reuses strongest_first from the selector, so duplicate pair rows and
#     self-loops never produce the same neighbor twice.
from __future__ import annotations

from collections.abc import Iterable, Mapping

from .entities import CooccurrenceEdge, Entity, NeighborRecord
from .services import strongest_first


class NeighborRanker:
    @staticmethod
    def top_edges(entity_id: str, edges: Iterable[CooccurrenceEdge], limit: int) -> list[CooccurrenceEdge]:
        """Edges touching entity_id, strongest first, at most `limit`."""
        return [e for e in strongest_first(edges) if e.touches(entity_id)][:limit]

    @staticmethod
    def rank(
        entity_id: str,
        edges: Iterable[CooccurrenceEdge],
        entities: Mapping[str, Entity],
        limit: int,
    ) -> list[NeighborRecord]:
        """Resolve the top `limit` neighbor rows against a catalog snapshot.

        Args:
            entity_id: Entity whose neighbors are ranked.
            edges:     Rows touching entity_id as returned by the store.
            entities:  Catalog records for the neighbor ids.
            limit:     Maximum number of records returned.

        Returns:
            Records ordered by relationship_strength desc, each neighbor once.
        """
        records: list[NeighborRecord] = []
        for edge in NeighborRanker.top_edges(entity_id, edges, limit):
            entity = entities.get(edge.other(entity_id))
            if entity is None:
                continue
            records.append(
                NeighborRecord(
                    entity=entity,
                    shared_cases_count=edge.shared_case_count,
                    jaccard_score=edge.jaccard_score,
                    invite_count=edge.invite_cooccurrence_count,
                    response_count=edge.response_cooccurrence_count,
                    relationship_strength=edge.relationship_strength,
                )
            )
        return records
