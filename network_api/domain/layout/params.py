# network_api/domain/layout/params.py
#
# Tuning presets for the force simulation.
#
# Design decisions:
#   - Two presets mirror the two views that render the network: the full
#     dashboard graph (NETWORK) and the small ego preview on an entity page
#     (EGO_PREVIEW). Constants are the ones the dashboard has always used.
#   - Alpha schedule follows the classic force-layout cooling: alpha starts at
#     1 and decays toward alpha_target by alpha_decay per tick, so that the
#     simulation would cool below alpha_min after ~300 ticks. The time budget
#     (max_duration) is shorter and is what actually stops a run.
#   - Per-link and per-node terms are plain functions, not lambdas, so presets
#     stay picklable and show up by name in tracebacks.
from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass

from .entities import LayoutNode

MIN_NODE_RADIUS = 4.0
MAX_NODE_RADIUS = 20.0


def node_radius(degree: int, max_degree: int) -> float:
    """Render radius interpolated 4..20 by degree / max_degree."""
    if max_degree <= 0:
        return MIN_NODE_RADIUS
    return MIN_NODE_RADIUS + (degree / max_degree) * (MAX_NODE_RADIUS - MIN_NODE_RADIUS)


def _weighted_distance(weight: float) -> float:
    return 100.0 / (1.0 + weight * 2.0)


def _weight_as_strength(weight: float) -> float:
    return weight


CENTER_RADIUS_BONUS = 4.0


def _degree_radius(node: LayoutNode, max_degree: int) -> float:
    radius = node_radius(node.degree, max_degree) + 2.0
    return radius + CENTER_RADIUS_BONUS if node.is_center else radius


def _fixed_distance(weight: float) -> float:
    return 70.0


def _half_strength(weight: float) -> float:
    return 0.5


def _center_radius(node: LayoutNode, max_degree: int) -> float:
    return 16.0 if node.is_center else 10.0


@dataclass(frozen=True)
class LayoutParams:
    width: float
    height: float
    link_distance: Callable[[float], float]
    link_strength: Callable[[float], float]
    charge_strength: float
    collide_radius: Callable[[LayoutNode, int], float]
    seed_radius: float
    emit_every: int = 1
    ticks_per_second: int = 60
    max_duration: float = 2.0
    alpha_min: float = 0.001
    alpha_decay: float = 1.0 - 0.001 ** (1.0 / 300.0)
    velocity_decay: float = 0.4
    collide_strength: float = 1.0
    reheat_alpha: float = 0.3
    drag_alpha_target: float = 0.3

    @property
    def max_ticks(self) -> int:
        return math.ceil(self.max_duration * self.ticks_per_second)

    @property
    def tick_interval(self) -> float:
        return 1.0 / self.ticks_per_second


NETWORK = LayoutParams(
    width=800.0,
    height=600.0,
    link_distance=_weighted_distance,
    link_strength=_weight_as_strength,
    charge_strength=-80.0,
    collide_radius=_degree_radius,
    seed_radius=100.0,
    emit_every=3,
)

EGO_PREVIEW = LayoutParams(
    width=320.0,
    height=240.0,
    link_distance=_fixed_distance,
    link_strength=_half_strength,
    charge_strength=-60.0,
    collide_radius=_center_radius,
    seed_radius=80.0,
)

EGO_PREVIEW_MAX_NEIGHBORS = 8
