# network_api/interfaces/api/routes/network_routes.py
from fastapi import APIRouter, Depends, HTTPException, Query

from network_api.application.dtos.layout_dto import LayoutDTO
from network_api.application.dtos.network_dto import NeighborDTO, NetworkDTO
from network_api.application.services.layout_service import LayoutService
from network_api.application.services.network_service import NetworkService
from network_api.domain.layout.params import EGO_PREVIEW_MAX_NEIGHBORS
from network_api.domain.network.value_objects import EntityId, NetworkQuery
from network_api.infrastructure.config import get_settings
from network_api.interfaces.api.dependencies import (
    get_layout_service,
    get_network_service,
    require_caller,
)

router = APIRouter(dependencies=[Depends(require_caller)])


def network_query(
    min_strength: float = Query(0.1, ge=0.0, le=1.0),
    max_nodes: int = Query(200, ge=1),
    entity_types: str | None = Query(None, description="Comma-separated entity types"),
    entity_id: str | None = Query(None, description="Center entity for the ego network"),
) -> NetworkQuery:
    types = entity_types.split(",") if entity_types else None
    try:
        return NetworkQuery.build(
            min_strength=min_strength,
            max_nodes=max_nodes,
            entity_types=types,
            center_entity_id=entity_id,
            cap=get_settings().max_nodes_cap,
        )
    except ValueError as err:
        raise HTTPException(status_code=422, detail=str(err)) from err


def _entity_id(raw: str) -> EntityId:
    try:
        return EntityId(raw)
    except ValueError as err:
        raise HTTPException(status_code=422, detail="Invalid entity id") from err


@router.get("/network", response_model=NetworkDTO)
def get_network(
    query: NetworkQuery = Depends(network_query),  # noqa: B008
    service: NetworkService = Depends(get_network_service),  # noqa: B008
) -> NetworkDTO:
    return service.get_network(query)


@router.get("/network/layout", response_model=LayoutDTO)
def get_network_layout(
    query: NetworkQuery = Depends(network_query),  # noqa: B008
    service: LayoutService = Depends(get_layout_service),  # noqa: B008
) -> LayoutDTO:
    return service.network_layout(query)


@router.get("/entities/{entity_id}/neighbors", response_model=list[NeighborDTO])
def get_neighbors(
    entity_id: str,
    limit: int = Query(10, ge=1, le=100),
    service: NetworkService = Depends(get_network_service),  # noqa: B008
) -> list[NeighborDTO]:
    return service.get_neighbors(_entity_id(entity_id), limit)


@router.get("/entities/{entity_id}/neighbors/layout", response_model=LayoutDTO)
def get_neighbors_layout(
    entity_id: str,
    limit: int = Query(EGO_PREVIEW_MAX_NEIGHBORS, ge=1, le=EGO_PREVIEW_MAX_NEIGHBORS),
    service: LayoutService = Depends(get_layout_service),  # noqa: B008
) -> LayoutDTO:
    return service.ego_layout(_entity_id(entity_id), limit)
