# network_api/domain/layout/entities.py
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum


class SimulationState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    FROZEN = "frozen"
    STOPPED = "stopped"


class StopReason(str, Enum):
    SETTLED = "settled"
    SUPERSEDED = "superseded"
    TORN_DOWN = "torn_down"


@dataclass(frozen=True)
class LayoutNode:
    id: str
    degree: int = 0
    is_center: bool = False


@dataclass(frozen=True)
class LayoutLink:
    source: str
    target: str
    weight: float = 1.0


@dataclass(frozen=True)
class LayoutGraph:
    """Immutable input handed from the selector side to the layout engine."""
    nodes: tuple[LayoutNode, ...] = ()
    links: tuple[LayoutLink, ...] = ()

    @property
    def center_id(self) -> str | None:
        return next((n.id for n in self.nodes if n.is_center), None)

    @property
    def max_degree(self) -> int:
        return max((n.degree for n in self.nodes), default=0)


@dataclass(frozen=True)
class Bounds:
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2


@dataclass
class LayoutPoint:
    """Mutable per-node state owned by one simulation.

    While pinned, the simulation never writes x/y; only drag does."""
    id: str
    x: float
    y: float
    radius: float
    vx: float = 0.0
    vy: float = 0.0
    pinned: bool = False

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y) and math.isfinite(self.vx) and math.isfinite(self.vy)


@dataclass(frozen=True)
class NodePosition:
    id: str
    x: float
    y: float
    pinned: bool = False


@dataclass(frozen=True)
class LayoutSnapshot:
    tick: int
    state: SimulationState
    positions: tuple[NodePosition, ...]
    stop_reason: StopReason | None = None

    def position_of(self, node_id: str) -> NodePosition | None:
        return next((p for p in self.positions if p.id == node_id), None)
