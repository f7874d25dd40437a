# network_api/domain/layout/forces.py
#
# The four composable forces applied on every simulation tick.
#
# Design decisions:
#   - Forces only write velocities (vx, vy), except CenterForce which
#     translates positions, as in the classic force-layout model. Integration
#     (velocity decay + position update) belongs to ForceSimulation.
#   - Pinned points (being dragged) are exempt: no force writes to them. They
#     still act on their neighbours, so the graph follows the drag.
#   - Points with non-finite state and links with an unknown endpoint or a
#     non-finite weight are skipped for the tick instead of poisoning the
#     whole layout with NaN.
#   - ManyBodyForce and CollideForce are pairwise; they are evaluated exactly
#     with numpy broadcasting (O(n^2) memory per tick; node counts are capped
#     by NETWORK_MAX_NODES_CAP). No quadtree approximation.
#   - Coincident points are separated with a tiny random jiggle drawn from the
#     simulation's own numpy Generator, so a seeded run is reproducible.
#
# Invariants:
#   - apply() never raises for malformed points/links; it skips them.
#   - A pinned point's x/y/vx/vy are never modified by any force.
from __future__ import annotations

import logging
import math
from collections.abc import Callable, Mapping, Sequence
from typing import Protocol

import numpy as np

from .entities import LayoutLink, LayoutPoint

logger = logging.getLogger(__name__)

DISTANCE_MIN2 = 1.0


class Force(Protocol):
    def apply(self, points: Mapping[str, LayoutPoint], alpha: float) -> None: ...


def _jiggle(rng: np.random.Generator, size: int | None = None) -> float | np.ndarray:
    return (rng.random(size) - 0.5) * 1e-6


def _active(points: Mapping[str, LayoutPoint]) -> list[LayoutPoint]:
    active = []
    for point in points.values():
        if point.is_finite():
            active.append(point)
        else:
            logger.debug("Skipping non-finite point %s for this tick", point.id)
    return active


class LinkForce:
    """Pulls linked points toward a target separation distance."""

    def __init__(
        self,
        links: Sequence[LayoutLink],
        distance: Callable[[float], float],
        strength: Callable[[float], float],
        rng: np.random.Generator,
    ) -> None:
        self._links = tuple(links)
        self._distance = distance
        self._strength = strength
        self._rng = rng

    def apply(self, points: Mapping[str, LayoutPoint], alpha: float) -> None:
        valid: list[tuple[LayoutPoint, LayoutPoint, float, float]] = []
        count: dict[str, int] = {}
        for link in self._links:
            source = points.get(link.source)
            target = points.get(link.target)
            if source is None or target is None or source is target:
                logger.debug("Skipping link %s-%s: unknown endpoint", link.source, link.target)
                continue
            if not (source.is_finite() and target.is_finite() and math.isfinite(link.weight)):
                logger.debug("Skipping link %s-%s: non-finite state", link.source, link.target)
                continue
            distance = self._distance(link.weight)
            strength = self._strength(link.weight)
            if not (math.isfinite(distance) and math.isfinite(strength)):
                continue
            valid.append((source, target, distance, strength))
            count[source.id] = count.get(source.id, 0) + 1
            count[target.id] = count.get(target.id, 0) + 1

        for source, target, distance, strength in valid:
            x = target.x + target.vx - source.x - source.vx
            y = target.y + target.vy - source.y - source.vy
            if x == 0:
                x = float(_jiggle(self._rng))
            if y == 0:
                y = float(_jiggle(self._rng))
            length = math.sqrt(x * x + y * y)
            length = (length - distance) / length * alpha * strength
            x *= length
            y *= length
            bias = count[source.id] / (count[source.id] + count[target.id])
            if not target.pinned:
                target.vx -= x * bias
                target.vy -= y * bias
            if not source.pinned:
                source.vx += x * (1 - bias)
                source.vy += y * (1 - bias)


class ManyBodyForce:
    """Pairwise repulsion (negative strength) between every two points."""

    def __init__(self, strength: float, rng: np.random.Generator) -> None:
        self._strength = strength
        self._rng = rng

    def apply(self, points: Mapping[str, LayoutPoint], alpha: float) -> None:
        active = _active(points)
        n = len(active)
        if n < 2:
            return
        xs = np.fromiter((p.x for p in active), dtype=float, count=n)
        ys = np.fromiter((p.y for p in active), dtype=float, count=n)

        # dx[i, j] = x_j - x_i
        dx = xs[None, :] - xs[:, None]
        dy = ys[None, :] - ys[:, None]
        # Only near-coincident pairs are jiggled; aligned points keep a zero axis.
        near = (dx * dx + dy * dy < DISTANCE_MIN2) & ~np.eye(n, dtype=bool)
        if near.any():
            for delta in (dx, dy):
                coincident = near & (delta == 0)
                if coincident.any():
                    delta[coincident] = _jiggle(self._rng, int(coincident.sum()))

        dist2 = dx * dx + dy * dy
        dist2 = np.where(dist2 < DISTANCE_MIN2, np.sqrt(DISTANCE_MIN2 * dist2), dist2)
        np.fill_diagonal(dist2, np.inf)
        scale = self._strength * alpha / dist2
        ax = (dx * scale).sum(axis=1)
        ay = (dy * scale).sum(axis=1)

        for point, fx, fy in zip(active, ax, ay):
            if not point.pinned:
                point.vx += float(fx)
                point.vy += float(fy)


class CenterForce:
    """Translates free points so their mean sits on the viewport center."""

    def __init__(self, cx: float, cy: float, strength: float = 1.0) -> None:
        self._cx = cx
        self._cy = cy
        self._strength = strength

    def apply(self, points: Mapping[str, LayoutPoint], alpha: float) -> None:
        free = [p for p in _active(points) if not p.pinned]
        if not free:
            return
        sx = sum(p.x for p in free) / len(free)
        sy = sum(p.y for p in free) / len(free)
        shift_x = (self._cx - sx) * self._strength
        shift_y = (self._cy - sy) * self._strength
        for point in free:
            point.x += shift_x
            point.y += shift_y


class CollideForce:
    """Keeps points at least radius_i + radius_j apart, using predicted positions."""

    def __init__(self, strength: float, rng: np.random.Generator) -> None:
        self._strength = strength
        self._rng = rng

    def apply(self, points: Mapping[str, LayoutPoint], alpha: float) -> None:
        active = _active(points)
        n = len(active)
        if n < 2:
            return
        px = np.fromiter((p.x + p.vx for p in active), dtype=float, count=n)
        py = np.fromiter((p.y + p.vy for p in active), dtype=float, count=n)
        radii = np.fromiter((p.radius for p in active), dtype=float, count=n)

        # dx[i, j] = x_i - x_j; each pair handled once (i < j).
        dx = px[:, None] - px[None, :]
        dy = py[:, None] - py[None, :]
        reach = radii[:, None] + radii[None, :]
        upper = np.triu(np.ones((n, n), dtype=bool), k=1)
        hit = upper & (dx * dx + dy * dy < reach * reach)
        if not hit.any():
            return
        for delta in (dx, dy):
            coincident = hit & (delta == 0)
            if coincident.any():
                delta[coincident] = _jiggle(self._rng, int(coincident.sum()))

        dist = np.sqrt(dx * dx + dy * dy)
        safe = np.where(dist > 0, dist, 1.0)
        push = np.where(hit, (reach - dist) / safe * self._strength, 0.0)
        mx = dx * push
        my = dy * push

        # The smaller point moves more: i takes r_j^2 / (r_i^2 + r_j^2).
        r2 = radii * radii
        total = r2[:, None] + r2[None, :]
        share = np.where(total > 0, r2[None, :] / np.where(total > 0, total, 1.0), 0.5)
        ax = (mx * share).sum(axis=1) - (mx * (1 - share)).sum(axis=0)
        ay = (my * share).sum(axis=1) - (my * (1 - share)).sum(axis=0)

        for point, fx, fy in zip(active, ax, ay):
            if not point.pinned:
                point.vx += float(fx)
                point.vy += float(fy)
