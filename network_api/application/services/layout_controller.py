# network_api/application/services/layout_controller.py
#
# Timer-driven tick loop for one graph view, with a superseded-run guard.
#
# Design decisions:
#   - One LayoutController per graph view. It owns at most one live
#     simulation; start() retires the previous one (SUPERSEDED) and cancels
#     its pending timer BEFORE the new run exists.
#   - Each start() bumps a generation counter and returns a fresh
#     SimulationHandle. Tick callbacks, drags and emissions compare their
#     handle against the current live handle and do nothing on mismatch, so a
#     stale callback that was already dequeued cannot touch the newer run.
#   - Ticks are scheduled with loop.call_later on the running asyncio loop:
#     single-threaded and cooperative, drag calls happen between ticks.
#   - A listener that raises is logged; it never stops the loop.
#   - teardown() stops the live run (TORN_DOWN), cancels the timer and closes
#     the controller. No timer fires after teardown.
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from network_api.domain.layout.entities import (
    Bounds,
    LayoutGraph,
    LayoutSnapshot,
    SimulationState,
    StopReason,
)
from network_api.domain.layout.params import NETWORK, LayoutParams
from network_api.domain.layout.simulation import ForceSimulation, SimulationStateError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayoutUpdate:
    generation: int
    snapshot: LayoutSnapshot


LayoutListener = Callable[[LayoutUpdate], None]


class SimulationHandle:
    """Owned handle to one simulation run. Inert once superseded."""

    def __init__(self, controller: LayoutController, generation: int, simulation: ForceSimulation) -> None:
        self._controller = controller
        self._generation = generation
        self._simulation = simulation

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def simulation(self) -> ForceSimulation:
        return self._simulation

    @property
    def state(self) -> SimulationState:
        return self._simulation.state

    @property
    def stop_reason(self) -> StopReason | None:
        return self._simulation.stop_reason

    @property
    def is_live(self) -> bool:
        return self._controller.is_current(self)

    def freeze(self) -> bool:
        return self._controller.freeze(self)

    def resume(self) -> bool:
        return self._controller.resume(self)

    def drag_node(self, node_id: str, x: float, y: float) -> bool:
        return self._controller.drag_node(self, node_id, x, y)

    def release_node(self, node_id: str, keep_pinned: bool = False) -> bool:
        return self._controller.release_node(self, node_id, keep_pinned)


class LayoutController:
    def __init__(
        self,
        listener: LayoutListener,
        params: LayoutParams = NETWORK,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._listener = listener
        self._params = params
        self._loop = loop
        self._generation = 0
        self._live: SimulationHandle | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._closed = False

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def live(self) -> SimulationHandle | None:
        return self._live

    @property
    def closed(self) -> bool:
        return self._closed

    def is_current(self, handle: SimulationHandle) -> bool:
        return not self._closed and handle is self._live and handle.generation == self._generation

    def start(
        self,
        graph: LayoutGraph,
        bounds: Bounds | None = None,
        params: LayoutParams | None = None,
        seed: int | None = None,
    ) -> SimulationHandle:
        if self._closed:
            raise SimulationStateError("LayoutController was torn down")
        self._retire(StopReason.SUPERSEDED)
        self._generation += 1
        handle = SimulationHandle(self, self._generation, ForceSimulation(graph, params or self._params, bounds, seed))
        self._live = handle
        snapshot = handle.simulation.start()
        self._emit(handle, snapshot)
        self._schedule(handle)
        return handle

    def teardown(self) -> None:
        if self._closed:
            return
        self._retire(StopReason.TORN_DOWN)
        self._closed = True

    def freeze(self, handle: SimulationHandle) -> bool:
        if not self.is_current(handle) or not handle.simulation.freeze():
            return False
        self._cancel_timer()
        return True

    def resume(self, handle: SimulationHandle) -> bool:
        if not self.is_current(handle) or not handle.simulation.resume():
            return False
        self._schedule(handle)
        return True

    def drag_node(self, handle: SimulationHandle, node_id: str, x: float, y: float) -> bool:
        if not self.is_current(handle):
            return False
        snapshot = handle.simulation.drag_node(node_id, x, y)
        if snapshot is None:
            return False
        self._emit(handle, snapshot)
        return True

    def release_node(self, handle: SimulationHandle, node_id: str, keep_pinned: bool = False) -> bool:
        if not self.is_current(handle):
            return False
        return handle.simulation.release_node(node_id, keep_pinned)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _retire(self, reason: StopReason) -> None:
        self._cancel_timer()
        if self._live is not None:
            self._live.simulation.stop(reason)
            logger.debug("Layout generation %d stopped: %s", self._live.generation, reason.value)
            self._live = None

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _schedule(self, handle: SimulationHandle) -> None:
        if self._timer is not None or handle.simulation.state is not SimulationState.RUNNING:
            return
        loop = self._loop or asyncio.get_running_loop()
        self._timer = loop.call_later(handle.simulation.params.tick_interval, self._on_tick, handle)

    def _on_tick(self, handle: SimulationHandle) -> None:
        if not self.is_current(handle):
            return
        self._timer = None
        snapshot = handle.simulation.tick()
        if snapshot is None:
            return
        every = max(1, handle.simulation.params.emit_every)
        if snapshot.state is SimulationState.STOPPED or snapshot.tick % every == 0:
            self._emit(handle, snapshot)
        # The listener may have started a newer run or torn the view down.
        if self.is_current(handle):
            self._schedule(handle)

    def _emit(self, handle: SimulationHandle, snapshot: LayoutSnapshot) -> None:
        if not self.is_current(handle):
            return
        try:
            self._listener(LayoutUpdate(handle.generation, snapshot))
        except Exception:
            logger.exception("Layout listener failed on generation %d", handle.generation)
