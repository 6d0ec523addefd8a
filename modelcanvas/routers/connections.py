from fastapi import APIRouter, Depends
from typing import Dict, List, Any

from modelcanvas.schemas.api_schemas import ConnectionCreate, ConnectionUpdate, SuccessResponse
from modelcanvas.dependencies import get_designer_session, get_entity_access_service
from modelcanvas.application.designer_session import DesignerSession
from modelcanvas.application.entity_access_service import EntityAccessService

router = APIRouter()

@router.get("/connections")
async def list_connections(session: DesignerSession = Depends(get_designer_session)) -> List[Dict[str, Any]]:
    """
    Retrieve all service connections.
    """
    return session.connections.connections

@router.post("/connections", status_code=201)
async def create_connection(
    connection_data: ConnectionCreate,
    session: DesignerSession = Depends(get_designer_session),
    access_svc: EntityAccessService = Depends(get_entity_access_service),
) -> Dict[str, Any]:
    """
    Link two existing services.
    """
    access_svc.require_connection_endpoints(connection_data.source_service_id, connection_data.target_service_id)
    return session.add_connection(connection_data.model_dump(exclude_none=True))

@router.patch("/connections/{connection_id}")
async def update_connection(
    connection_id: str,
    connection_data: ConnectionUpdate,
    session: DesignerSession = Depends(get_designer_session),
    access_svc: EntityAccessService = Depends(get_entity_access_service),
) -> Dict[str, Any]:
    access_svc.require_connection_exists(connection_id)
    updates = connection_data.model_dump(exclude_unset=True, exclude={"config"})
    if connection_data.config is not None:
        updates["config"] = connection_data.config.model_dump(exclude_none=True)
    return session.update_connection(connection_id, updates)

@router.delete("/connections/{connection_id}", response_model=SuccessResponse)
async def delete_connection(
    connection_id: str,
    session: DesignerSession = Depends(get_designer_session),
    access_svc: EntityAccessService = Depends(get_entity_access_service),
):
    access_svc.require_connection_exists(connection_id)
    session.remove_connection(connection_id)
    return SuccessResponse(success=True)
