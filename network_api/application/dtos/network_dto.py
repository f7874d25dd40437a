# network_api/application/dtos/network_dto.py
from pydantic import BaseModel


class SubgraphNodeDTO(BaseModel):
    id: str
    name: str
    entity_type: str     # "organization" | "person" | "committee" | ...
    degree: int          # edges touching this node in THIS response


class SubgraphEdgeDTO(BaseModel):
    source: str
    target: str
    weight: float        # relationship_strength
    invite_count: int
    response_count: int
    shared_cases_count: int
    jaccard_score: float


class NetworkDTO(BaseModel):
    nodes: list[SubgraphNodeDTO]
    edges: list[SubgraphEdgeDTO]
    type_counts: dict[str, int] = {}   # before the entity type filter


class NeighborDTO(BaseModel):
    id: str
    name: str
    entity_type: str
    shared_cases_count: int
    jaccard_score: float
    invite_count: int
    response_count: int
