# tests/application/test_layout_service.py
#
# Headless layouts: view model -> LayoutGraph -> settled coordinates.
from fakes import FakeCooccurrenceRepo, FakeEntityCatalog, edge, entity

from network_api.application.services.layout_service import (
    LayoutService,
    build_ego_graph,
    layout_graph_from_subgraph,
    settle,
)
from network_api.application.services.network_service import NetworkService
from network_api.domain.layout.entities import LayoutGraph, SimulationState, StopReason
from network_api.domain.layout.params import EGO_PREVIEW, NETWORK
from network_api.domain.network.entities import NeighborRecord
from network_api.domain.network.services import SubgraphSelector
from network_api.domain.network.value_objects import EntityId, NetworkQuery


def _record(entity_id: str, jaccard: float) -> NeighborRecord:
    return NeighborRecord(entity(entity_id), 3, jaccard, 1, 1, jaccard)


def _layout_service(edges: list, entities: list) -> LayoutService:  # type: ignore[type-arg]
    return LayoutService(NetworkService(FakeCooccurrenceRepo(edges), FakeEntityCatalog(entities)))


def test_layout_graph_keeps_ids_degrees_and_weights() -> None:
    edges = [edge("A", "B", 0.9), edge("A", "C", 0.4)]
    catalog = {x: entity(x) for x in "ABC"}
    subgraph = SubgraphSelector.select(edges, catalog, NetworkQuery.build(center_entity_id="A"))

    graph = layout_graph_from_subgraph(subgraph, "A")

    assert graph.center_id == "A"
    assert graph.max_degree == 2
    assert {(link.source, link.target, link.weight) for link in graph.links} == {("A", "B", 0.9), ("A", "C", 0.4)}


def test_ego_graph_uses_jaccard_weights_and_caps_neighbors() -> None:
    neighbors = [_record(f"n{i}", i / 10) for i in range(10)]

    graph = build_ego_graph(entity("center"), neighbors)

    assert graph.center_id == "center"
    assert len(graph.nodes) == 9
    assert graph.nodes[0].degree == 8
    assert [link.weight for link in graph.links] == [i / 10 for i in range(8)]
    assert all(link.source == "center" for link in graph.links)


def test_ego_graph_never_links_center_to_itself() -> None:
    graph = build_ego_graph(entity("c"), [_record("c", 0.9), _record("a", 0.5)])
    assert [n.id for n in graph.nodes] == ["c", "a"]


def test_settle_runs_until_the_simulation_stops_itself() -> None:
    graph = build_ego_graph(entity("c"), [_record("a", 0.5), _record("b", 0.2)])

    snapshot = settle(graph, EGO_PREVIEW)

    assert snapshot.state is SimulationState.STOPPED
    assert snapshot.stop_reason is StopReason.SETTLED
    assert snapshot.tick == EGO_PREVIEW.max_ticks
    assert settle(graph, EGO_PREVIEW) == snapshot


def test_settle_empty_graph() -> None:
    snapshot = settle(LayoutGraph(), NETWORK)
    assert snapshot.positions == ()
    assert snapshot.tick == 0


def test_network_layout_positions_every_selected_node() -> None:
    service = _layout_service(
        [edge("A", "B", 0.9), edge("B", "C", 0.5), edge("C", "D", 0.05)],
        [entity(x) for x in "ABCD"],
    )

    dto = service.network_layout(NetworkQuery(min_strength=0.1))

    assert (dto.width, dto.height) == (NETWORK.width, NETWORK.height)
    assert {n.id for n in dto.nodes} == {"A", "B", "C"}
    assert dto.ticks == NETWORK.max_ticks
    assert dto.stop_reason == "settled"


def test_ego_layout_centers_the_entity() -> None:
    service = _layout_service(
        [edge("E", f"n{i}", 0.1 * i) for i in range(1, 10)],
        [entity("E")] + [entity(f"n{i}") for i in range(1, 10)],
    )

    dto = service.ego_layout(EntityId("E"))

    assert len(dto.nodes) == 9
    assert (dto.width, dto.height) == (EGO_PREVIEW.width, EGO_PREVIEW.height)
    assert dto.stop_reason == "settled"


def test_ego_layout_of_unknown_entity_is_empty() -> None:
    service = _layout_service([edge("A", "B", 0.9)], [entity("A"), entity("B")])

    dto = service.ego_layout(EntityId("missing"))

    assert dto.nodes == []
    assert dto.ticks == 0
    assert dto.stop_reason == "settled"
