# network_api/domain/network/services.py
#
# Pure domain service that turns candidate co-occurrence edges into a bounded,
# visualization-ready subgraph.
#
# Design decisions:
#   - SubgraphSelector contains only pure, stateless logic. No IO, no database
#     access, no async. The application layer (NetworkService) fetches the
#     candidate edges (already thresholded and over-fetched) and an immutable
#     snapshot of the catalog records they touch; this service applies the
#     type filter, the node budget and the degree bookkeeping.
#   - Degree is computed twice. The first pass ranks nodes; the second pass is
#     recomputed on the final edge set so the numbers shown match what is
#     actually rendered.
#   - Ranking key is (degree desc, strongest incident edge desc, entity id asc).
#     The store's row order never leaks into the result, so equal-degree ties
#     are deterministic for a given store content.
#   - In ego mode the center does not compete for a slot. The top max_nodes
#     other entities are kept and the center is added afterwards, so the node
#     set may hold max_nodes + 1 entities. The center is also exempt from the
#     entity type filter.
#   - The store may hold the same unordered pair twice (A,B and B,A). Only the
#     strongest row of each pair is considered; self-loops are ignored.
#
# Invariants:
#   - select is a pure function: same inputs always produce the same output.
#   - An edge is returned only when BOTH endpoints are in the returned node set.
#   - Every returned node's degree equals the number of returned edges touching
#     it.
#   - len(nodes) <= max_nodes, or max_nodes + 1 in ego mode.
from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from .entities import CooccurrenceEdge, Entity, Subgraph, SubgraphEdge, SubgraphNode
from .value_objects import NetworkQuery


def strongest_first(edges: Iterable[CooccurrenceEdge]) -> list[CooccurrenceEdge]:
    """Sort by relationship_strength desc and keep one row per unordered pair.

    Ranking primitive shared by SubgraphSelector and NeighborRanker. The sort is
    stable, so rows of equal strength keep their input order.
    """
    ordered = sorted(edges, key=lambda e: e.relationship_strength, reverse=True)
    seen: set[frozenset[str]] = set()
    result: list[CooccurrenceEdge] = []
    for edge in ordered:
        if edge.entity_a_id == edge.entity_b_id:
            continue
        pair = frozenset((edge.entity_a_id, edge.entity_b_id))
        if pair in seen:
            continue
        seen.add(pair)
        result.append(edge)
    return result


def count_types(entities: Iterable[Entity]) -> tuple[tuple[str, int], ...]:
    """Entity type histogram, sorted by type name."""
    counts: dict[str, int] = {}
    for entity in entities:
        key = entity.entity_type.value
        counts[key] = counts.get(key, 0) + 1
    return tuple(sorted(counts.items()))


def _degrees(edges: Iterable[CooccurrenceEdge]) -> dict[str, int]:
    degree: dict[str, int] = {}
    for edge in edges:
        degree[edge.entity_a_id] = degree.get(edge.entity_a_id, 0) + 1
        degree[edge.entity_b_id] = degree.get(edge.entity_b_id, 0) + 1
    return degree


class SubgraphSelector:
    """Pure domain service for bounded subgraph selection.

    All methods are static because the service is stateless. The catalog
    snapshot is passed explicitly per call instead of living in a module-level
    cache.
    """

    @staticmethod
    def select(
        edges: Sequence[CooccurrenceEdge],
        entities: Mapping[str, Entity],
        query: NetworkQuery,
    ) -> Subgraph:
        """Build the {nodes, edges} view model for one GetNetwork query.

        Args:
            edges:    Candidate edges, already filtered by min_strength (and by
                      center in ego mode). Order does not matter.
            entities: Catalog records for the ids touched by ``edges``. Ids
                      missing here are treated as deleted entities: their
                      edges are dropped together with them.
            query:    Normalised query parameters.

        Returns:
            Subgraph with nodes ordered center first, then by rank, edges
            ordered by strength desc, and type_counts over every entity in
            ``entities`` (before the type filter).
        """
        type_counts = count_types(entities.values())
        center = query.center.value if query.center is not None else None

        if center is not None and center not in entities:
            # Unknown center: empty ego network, not an error.
            return Subgraph(type_counts=type_counts)

        # Step 3: type filter. The center is exempt.
        allowed_types = query.entity_types
        allowed = {
            entity_id
            for entity_id, entity in entities.items()
            if allowed_types is None or entity.entity_type.value in allowed_types or entity_id == center
        }
        candidates = [
            e for e in strongest_first(edges) if e.entity_a_id in allowed and e.entity_b_id in allowed
        ]

        # Step 4: first-pass degree plus the tie-break weight.
        degree = _degrees(candidates)
        best_strength: dict[str, float] = {}
        for edge in candidates:
            for endpoint in (edge.entity_a_id, edge.entity_b_id):
                if edge.relationship_strength > best_strength.get(endpoint, float("-inf")):
                    best_strength[endpoint] = edge.relationship_strength

        # Step 5: rank and truncate; the center is added after truncation.
        ranked = sorted(
            (entity_id for entity_id in degree if entity_id != center),
            key=lambda entity_id: (-degree[entity_id], -best_strength[entity_id], entity_id),
        )
        kept = ranked[: query.max_nodes]
        if center is not None:
            kept.insert(0, center)
        kept_set = set(kept)

        # Step 6: second edge filter.
        final_edges = [e for e in candidates if e.entity_a_id in kept_set and e.entity_b_id in kept_set]

        # Step 7: degree recomputed from what is actually returned.
        final_degree = _degrees(final_edges)

        nodes = tuple(
            SubgraphNode(
                id=entity_id,
                name=entities[entity_id].name,
                entity_type=entities[entity_id].entity_type,
                degree=final_degree.get(entity_id, 0),
            )
            for entity_id in kept
        )
        return Subgraph(
            nodes=nodes,
            edges=tuple(
                SubgraphEdge(
                    source=e.entity_a_id,
                    target=e.entity_b_id,
                    weight=e.relationship_strength,
                    invite_count=e.invite_cooccurrence_count,
                    response_count=e.response_cooccurrence_count,
                    shared_cases_count=e.shared_case_count,
                    jaccard_score=e.jaccard_score,
                )
                for e in final_edges
            ),
            type_counts=type_counts,
        )
