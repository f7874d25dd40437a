# network_api/domain/layout/simulation.py
#
# Single-threaded force simulation producing 2D coordinates for a LayoutGraph.
#
# Design decisions:
#   - ForceSimulation is synchronous and clock-free: one tick() call is one
#     iteration. Scheduling (timers, event loop, superseded-run guard) lives in
#     the application layer (LayoutController), so this class can be driven
#     headless and tested deterministically.
#   - Initial positions: the center node (if any) starts on the bounds center,
#     every other node is spread evenly on a circle around it. Starting all
#     nodes on one point would leave the repulsion force nothing to separate.
#   - The time budget is counted in ticks (max_duration * ticks_per_second)
#     and restarts on every resume(). When it runs out, or alpha cools below
#     alpha_min, the run stops as SETTLED even if not fully converged.
#   - Dragging pins a point: its x/y become the caller's coordinates and no
#     force or integration step touches them until release.
#
# State machine:
#   IDLE -> RUNNING -> (FROZEN <-> RUNNING) -> STOPPED(settled|superseded|torn_down)
#   STOPPED is terminal; a new run needs a new ForceSimulation.
from __future__ import annotations

import logging
import math

import numpy as np

from .entities import (
    Bounds,
    LayoutGraph,
    LayoutPoint,
    LayoutSnapshot,
    NodePosition,
    SimulationState,
    StopReason,
)
from .forces import CenterForce, CollideForce, Force, LinkForce, ManyBodyForce
from .params import LayoutParams

logger = logging.getLogger(__name__)


class SimulationStateError(RuntimeError):
    """Operation not allowed in the current simulation state."""


class ForceSimulation:
    def __init__(
        self,
        graph: LayoutGraph,
        params: LayoutParams,
        bounds: Bounds | None = None,
        seed: int | None = None,
    ) -> None:
        self._graph = graph
        self._params = params
        self._bounds = bounds or Bounds(0.0, 0.0, params.width, params.height)
        self._rng = np.random.default_rng(seed)
        self._state = SimulationState.IDLE
        self._stop_reason: StopReason | None = None
        self._points: dict[str, LayoutPoint] = {}
        self._forces: list[Force] = []
        self._alpha = 1.0
        self._alpha_target = 0.0
        self._tick = 0
        self._budget_start = 0
        self._dragging: set[str] = set()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def state(self) -> SimulationState:
        return self._state

    @property
    def stop_reason(self) -> StopReason | None:
        return self._stop_reason

    @property
    def ticks(self) -> int:
        return self._tick

    @property
    def alpha(self) -> float:
        return self._alpha

    @property
    def params(self) -> LayoutParams:
        return self._params

    @property
    def bounds(self) -> Bounds:
        return self._bounds

    def point(self, node_id: str) -> LayoutPoint | None:
        return self._points.get(node_id)

    def snapshot(self) -> LayoutSnapshot:
        return LayoutSnapshot(
            tick=self._tick,
            state=self._state,
            positions=tuple(NodePosition(p.id, p.x, p.y, p.pinned) for p in self._points.values()),
            stop_reason=self._stop_reason,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> LayoutSnapshot:
        if self._state is not SimulationState.IDLE:
            raise SimulationStateError(f"start() requires IDLE, got {self._state.value}")
        self._points = self._seed_points()
        cx, cy = self._bounds.center
        p = self._params
        self._forces = [
            LinkForce(self._graph.links, p.link_distance, p.link_strength, self._rng),
            ManyBodyForce(p.charge_strength, self._rng),
            CenterForce(cx, cy),
            CollideForce(p.collide_strength, self._rng),
        ]
        self._state = SimulationState.RUNNING
        self._budget_start = 0
        if not self._points:
            self._stop(StopReason.SETTLED)
        return self.snapshot()

    def tick(self) -> LayoutSnapshot | None:
        """Advance one iteration. Returns None unless RUNNING."""
        if self._state is not SimulationState.RUNNING:
            return None
        p = self._params
        self._alpha += (self._alpha_target - self._alpha) * p.alpha_decay
        for force in self._forces:
            force.apply(self._points, self._alpha)
        self._integrate()
        self._tick += 1

        budget_spent = self._tick - self._budget_start >= p.max_ticks
        cooled = self._alpha < p.alpha_min and not self._dragging
        if budget_spent or cooled:
            self._stop(StopReason.SETTLED)
        return self.snapshot()

    def freeze(self) -> bool:
        if self._state is not SimulationState.RUNNING:
            return False
        self._state = SimulationState.FROZEN
        return True

    def resume(self) -> bool:
        if self._state is not SimulationState.FROZEN:
            return False
        self._alpha = max(self._alpha, self._params.reheat_alpha)
        self._budget_start = self._tick
        self._state = SimulationState.RUNNING
        return True

    def stop(self, reason: StopReason) -> bool:
        if self._state is SimulationState.STOPPED:
            return False
        self._stop(reason)
        return True

    # ------------------------------------------------------------------
    # Interaction
    # ------------------------------------------------------------------
    def drag_node(self, node_id: str, x: float, y: float) -> LayoutSnapshot | None:
        """Pin node_id at (x, y). Returns None when the node is unknown or the run is over."""
        if not (math.isfinite(x) and math.isfinite(y)):
            raise ValueError(f"Drag coordinates must be finite: ({x}, {y})")
        if self._state in (SimulationState.IDLE, SimulationState.STOPPED):
            return None
        point = self._points.get(node_id)
        if point is None:
            return None
        point.x, point.y = x, y
        point.vx = point.vy = 0.0
        point.pinned = True
        self._dragging.add(node_id)
        if self._state is SimulationState.RUNNING:
            self._alpha_target = self._params.drag_alpha_target
        return self.snapshot()

    def release_node(self, node_id: str, keep_pinned: bool = False) -> bool:
        if node_id not in self._dragging:
            return False
        self._dragging.discard(node_id)
        point = self._points.get(node_id)
        if point is not None and not keep_pinned:
            point.pinned = False
        if not self._dragging:
            self._alpha_target = 0.0
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _seed_points(self) -> dict[str, LayoutPoint]:
        cx, cy = self._bounds.center
        max_degree = self._graph.max_degree
        center_id = self._graph.center_id
        unique = list({n.id: n for n in self._graph.nodes}.values())
        ring = [n for n in unique if n.id != center_id]
        points: dict[str, LayoutPoint] = {}
        if center_id is not None:
            center = next(n for n in unique if n.id == center_id)
            points[center_id] = LayoutPoint(center_id, cx, cy, self._params.collide_radius(center, max_degree))
        for index, node in enumerate(ring):
            angle = 2 * math.pi * index / len(ring)
            points[node.id] = LayoutPoint(
                node.id,
                cx + math.cos(angle) * self._params.seed_radius,
                cy + math.sin(angle) * self._params.seed_radius,
                self._params.collide_radius(node, max_degree),
            )
        return points

    def _integrate(self) -> None:
        keep = 1.0 - self._params.velocity_decay
        for point in self._points.values():
            if point.pinned:
                point.vx = point.vy = 0.0
                continue
            prev_x, prev_y = point.x, point.y
            point.vx *= keep
            point.vy *= keep
            point.x += point.vx
            point.y += point.vy
            if not point.is_finite():
                logger.debug("Point %s diverged; restoring previous position", point.id)
                point.x, point.y = prev_x, prev_y
                point.vx = point.vy = 0.0
                if not point.is_finite():
                    cx, cy = self._bounds.center
                    point.x, point.y = cx, cy

    def _stop(self, reason: StopReason) -> None:
        self._state = SimulationState.STOPPED
        self._stop_reason = reason
        logger.debug("Simulation stopped after %d ticks: %s", self._tick, reason.value)
