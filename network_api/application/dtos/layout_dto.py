# network_api/application/dtos/layout_dto.py
from pydantic import BaseModel


class NodePositionDTO(BaseModel):
    id: str
    x: float
    y: float


class LayoutDTO(BaseModel):
    width: float
    height: float
    nodes: list[NodePositionDTO]
    ticks: int
    stop_reason: str | None = None   # "settled" once the run auto-stopped
