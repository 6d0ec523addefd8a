from fastapi import APIRouter, Depends
from typing import Dict, List, Any

from modelcanvas.schemas.api_schemas import (
    ServiceCreate,
    ServiceUpdate,
    AssignmentRequest,
    TargetConfigUpdate,
    SuccessResponse,
)
from modelcanvas.dependencies import get_designer_session, get_entity_access_service
from modelcanvas.application.designer_session import DesignerSession
from modelcanvas.application.entity_access_service import EntityAccessService

router = APIRouter()

@router.get("/services")
async def list_services(session: DesignerSession = Depends(get_designer_session)) -> List[Dict[str, Any]]:
    """
    Retrieve all service containers.
    """
    return session.services.services

@router.post("/services", status_code=201)
async def create_service(
    service_data: ServiceCreate,
    session: DesignerSession = Depends(get_designer_session),
) -> Dict[str, Any]:
    """
    Add a service container with the next palette color and port.
    """
    return session.add_service(service_data.name)

@router.get("/services/{service_id}")
async def get_service(
    service_id: str,
    session: DesignerSession = Depends(get_designer_session),
    access_svc: EntityAccessService = Depends(get_entity_access_service),
) -> Dict[str, Any]:
    access_svc.require_service_exists(service_id)
    return session.services.get_service(service_id)

@router.patch("/services/{service_id}")
async def update_service(
    service_id: str,
    service_data: ServiceUpdate,
    session: DesignerSession = Depends(get_designer_session),
    access_svc: EntityAccessService = Depends(get_entity_access_service),
) -> Dict[str, Any]:
    access_svc.require_service_exists(service_id)
    updates = service_data.model_dump(exclude_unset=True, exclude={"config"})
    if service_data.config is not None:
        current = session.services.get_service(service_id)["config"]
        updates["config"] = {**current, **service_data.config.model_dump(exclude_none=True)}
    return session.update_service(service_id, updates)

@router.delete("/services/{service_id}", response_model=SuccessResponse)
async def delete_service(
    service_id: str,
    session: DesignerSession = Depends(get_designer_session),
    access_svc: EntityAccessService = Depends(get_entity_access_service),
):
    """
    Delete a service and its connections; its entities become unassigned.
    """
    access_svc.require_service_exists(service_id)
    session.remove_service(service_id)
    return SuccessResponse(success=True)

@router.post("/services/{service_id}/select", response_model=SuccessResponse)
async def select_service(
    service_id: str,
    session: DesignerSession = Depends(get_designer_session),
    access_svc: EntityAccessService = Depends(get_entity_access_service),
):
    access_svc.require_service_exists(service_id)
    session.select_service(service_id)
    return SuccessResponse(success=True)

@router.post("/services/{service_id}/entities")
async def assign_entities(
    service_id: str,
    assignment: AssignmentRequest,
    session: DesignerSession = Depends(get_designer_session),
    access_svc: EntityAccessService = Depends(get_entity_access_service),
) -> Dict[str, Any]:
    """
    Move entities into a service, taking them out of any other service.
    """
    access_svc.require_service_exists(service_id)
    for entity_id in assignment.entity_ids:
        access_svc.require_entity_exists(entity_id)
    session.assign_entities_to_service(assignment.entity_ids, service_id)
    return session.services.get_service(service_id)

@router.delete("/services/{service_id}/entities/{entity_id}")
async def unassign_entity(
    service_id: str,
    entity_id: str,
    session: DesignerSession = Depends(get_designer_session),
    access_svc: EntityAccessService = Depends(get_entity_access_service),
) -> Dict[str, Any]:
    access_svc.require_service_exists(service_id)
    access_svc.require_entity_exists(entity_id)
    session.remove_entity_from_service(entity_id, service_id)
    return session.services.get_service(service_id)

@router.put("/services/{service_id}/target")
async def set_service_target(
    service_id: str,
    target: TargetConfigUpdate,
    session: DesignerSession = Depends(get_designer_session),
    access_svc: EntityAccessService = Depends(get_entity_access_service),
) -> Dict[str, Any]:
    access_svc.require_service_exists(service_id)
    session.set_service_target_config(service_id, target.target_config)
    return session.services.get_service(service_id)
