# network_api/application/services/layout_service.py
#
# Bridges the selector view model to the layout engine and runs headless
# layouts for the server-side layout endpoints.
#
# Design decisions:
#   - The layout engine only sees LayoutGraph (ids, degrees, weights). Names,
#     types and display counters stay in the DTO the renderer already has.
#   - The ego preview keeps at most EGO_PREVIEW_MAX_NEIGHBORS neighbors and
#     uses the Jaccard score as link weight, as the entity page always did.
#   - settle() runs ticks back-to-back until the simulation stops itself. The
#     tick budget bounds the loop, so the request cannot spin.
#   - Headless runs use a fixed seed: identical requests return identical
#     coordinates.
from __future__ import annotations

from collections.abc import Sequence

from network_api.domain.layout.entities import Bounds, LayoutGraph, LayoutLink, LayoutNode, LayoutSnapshot
from network_api.domain.layout.params import EGO_PREVIEW, EGO_PREVIEW_MAX_NEIGHBORS, NETWORK, LayoutParams
from network_api.domain.layout.simulation import ForceSimulation
from network_api.domain.network.entities import Entity, NeighborRecord, Subgraph
from network_api.domain.network.value_objects import EntityId, NetworkQuery

from ..dtos.layout_dto import LayoutDTO, NodePositionDTO
from .network_service import NetworkService

HEADLESS_SEED = 42


def layout_graph_from_subgraph(subgraph: Subgraph, center_id: str | None = None) -> LayoutGraph:
    return LayoutGraph(
        nodes=tuple(LayoutNode(n.id, n.degree, n.id == center_id) for n in subgraph.nodes),
        links=tuple(LayoutLink(e.source, e.target, e.weight) for e in subgraph.edges),
    )


def build_ego_graph(
    center: Entity,
    neighbors: Sequence[NeighborRecord],
    max_neighbors: int = EGO_PREVIEW_MAX_NEIGHBORS,
) -> LayoutGraph:
    top = [n for n in neighbors if n.entity.id != center.id][:max_neighbors]
    return LayoutGraph(
        nodes=(LayoutNode(center.id, len(top), True),)
        + tuple(LayoutNode(n.entity.id, 1) for n in top),
        links=tuple(LayoutLink(center.id, n.entity.id, n.jaccard_score) for n in top),
    )


def settle(
    graph: LayoutGraph,
    params: LayoutParams,
    bounds: Bounds | None = None,
    seed: int | None = HEADLESS_SEED,
) -> LayoutSnapshot:
    simulation = ForceSimulation(graph, params, bounds, seed)
    snapshot = simulation.start()
    while True:
        step = simulation.tick()
        if step is None:
            return snapshot
        snapshot = step


def _to_layout_dto(snapshot: LayoutSnapshot, params: LayoutParams) -> LayoutDTO:
    return LayoutDTO(
        width=params.width,
        height=params.height,
        nodes=[NodePositionDTO(id=p.id, x=p.x, y=p.y) for p in snapshot.positions],
        ticks=snapshot.tick,
        stop_reason=snapshot.stop_reason.value if snapshot.stop_reason else None,
    )


class LayoutService:
    def __init__(self, network_service: NetworkService) -> None:
        self._network_service = network_service

    def network_layout(self, query: NetworkQuery) -> LayoutDTO:
        subgraph = self._network_service.get_subgraph(query)
        center_id = query.center.value if query.center else None
        snapshot = settle(layout_graph_from_subgraph(subgraph, center_id), NETWORK)
        return _to_layout_dto(snapshot, NETWORK)

    def ego_layout(self, entity_id: EntityId, limit: int = EGO_PREVIEW_MAX_NEIGHBORS) -> LayoutDTO:
        """An entity missing from the catalog yields an empty, settled layout."""
        center = self._network_service.find_entity(entity_id)
        if center is None:
            graph = LayoutGraph()
        else:
            graph = build_ego_graph(center, self._network_service.neighbor_records(entity_id, limit))
        snapshot = settle(graph, EGO_PREVIEW)
        return _to_layout_dto(snapshot, EGO_PREVIEW)
