# network_api/domain/network/value_objects.py
from __future__ import annotations

from dataclasses import dataclass

HARD_MAX_NODES = 500


@dataclass(frozen=True)
class EntityId:
    """Opaque entity identifier. Non-empty, stripped."""

    value: str

    def __post_init__(self) -> None:
        stripped = self.value.strip()
        if not stripped:
            raise ValueError("EntityId cannot be empty")
        object.__setattr__(self, "value", stripped)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class NetworkQuery:
    """Normalised GetNetwork parameters.

    max_nodes above the cap is clamped, never rejected. An empty entity_types
    set means no filter. The frozen value is the query identity used by the
    cache and the coordinator.
    """

    min_strength: float = 0.1
    max_nodes: int = 200
    entity_types: frozenset[str] | None = None
    center: EntityId | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.min_strength <= 1.0:
            raise ValueError(f"min_strength outside [0, 1]: {self.min_strength}")
        if self.max_nodes < 1:
            raise ValueError(f"max_nodes must be >= 1: {self.max_nodes}")
        if self.entity_types is not None and not self.entity_types:
            object.__setattr__(self, "entity_types", None)

    @classmethod
    def build(
        cls,
        min_strength: float = 0.1,
        max_nodes: int = 200,
        entity_types: list[str] | None = None,
        center_entity_id: str | None = None,
        cap: int = HARD_MAX_NODES,
    ) -> NetworkQuery:
        types = frozenset(t.strip() for t in entity_types or [] if t.strip())
        center = EntityId(center_entity_id) if center_entity_id and center_entity_id.strip() else None
        return cls(
            min_strength=min_strength,
            max_nodes=min(max_nodes, cap),
            entity_types=types or None,
            center=center,
        )

    @property
    def is_ego(self) -> bool:
        return self.center is not None
