# network_api/application/services/graph_view.py
#
# One interactive graph view: query -> subgraph -> live layout.
#
# Design decisions:
#   - Selector/ranker calls are blocking (DuckDB), so they run on a worker
#     thread via asyncio.to_thread while the tick loop keeps running.
#   - Last-request-wins: every show() begins a new token in the view's slot.
#     A superseded call either observes its cancelled token and stops early,
#     or finishes and has its result discarded by QueryCoordinator.accept().
#   - The layout is re-seeded only when the query identity changes. Showing
#     the same query again keeps the live simulation and its positions.
#   - close() discards in-flight queries and tears the layout down; the view
#     cannot be reused afterwards.
from __future__ import annotations

import asyncio
import logging
from collections.abc import Hashable

from network_api.domain.layout.entities import LayoutGraph
from network_api.domain.layout.params import EGO_PREVIEW, EGO_PREVIEW_MAX_NEIGHBORS, NETWORK
from network_api.domain.network.errors import QueryCancelledError
from network_api.domain.network.value_objects import EntityId, NetworkQuery

from .layout_controller import LayoutController, LayoutListener, SimulationHandle
from .layout_service import build_ego_graph, layout_graph_from_subgraph
from .network_service import NetworkService
from .query_cache import QueryCoordinator

logger = logging.getLogger(__name__)

_SLOT = "graph"


class GraphView:
    def __init__(
        self,
        network_service: NetworkService,
        listener: LayoutListener,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._service = network_service
        self._coordinator = QueryCoordinator()
        self._layout = LayoutController(listener, NETWORK, loop)
        self._shown: Hashable = None
        self._handle: SimulationHandle | None = None

    @property
    def layout(self) -> LayoutController:
        return self._layout

    @property
    def handle(self) -> SimulationHandle | None:
        return self._handle

    async def show(self, query: NetworkQuery) -> SimulationHandle | None:
        """Fetch and lay out `query`. None when a newer call superseded this one."""
        token = self._coordinator.begin(_SLOT, query)
        try:
            subgraph = await asyncio.to_thread(self._service.get_subgraph, query, token)
        except QueryCancelledError:
            logger.debug("Discarding superseded network query %s", query)
            return None
        if self._layout.closed or not self._coordinator.accept(_SLOT, token):
            return None
        if query == self._shown and self._handle is not None and self._handle.is_live:
            return self._handle
        center_id = query.center.value if query.center else None
        self._shown = query
        self._handle = self._layout.start(layout_graph_from_subgraph(subgraph, center_id), params=NETWORK)
        return self._handle

    async def show_ego(self, entity_id: EntityId, limit: int = EGO_PREVIEW_MAX_NEIGHBORS) -> SimulationHandle | None:
        """Ego preview around entity_id. An unknown entity yields an empty layout."""
        key = ("ego", entity_id.value, limit)
        token = self._coordinator.begin(_SLOT, key)
        try:
            center = await asyncio.to_thread(self._service.find_entity, entity_id)
            token.raise_if_cancelled()
            neighbors = await asyncio.to_thread(self._service.neighbor_records, entity_id, limit, token)
        except QueryCancelledError:
            logger.debug("Discarding superseded ego query %s", entity_id)
            return None
        if self._layout.closed or not self._coordinator.accept(_SLOT, token):
            return None
        if key == self._shown and self._handle is not None and self._handle.is_live:
            return self._handle
        self._shown = key
        graph = LayoutGraph() if center is None else build_ego_graph(center, neighbors)
        self._handle = self._layout.start(graph, params=EGO_PREVIEW)
        return self._handle

    def close(self) -> None:
        self._coordinator.cancel_all()
        self._layout.teardown()
        self._handle = None
