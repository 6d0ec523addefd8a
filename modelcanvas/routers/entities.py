from fastapi import APIRouter, Depends
from typing import Dict, List, Any

from modelcanvas.schemas.api_schemas import (
    EntityCreate,
    EntityUpdate,
    FieldCreate,
    FieldUpdate,
    SelectionRequest,
    DeletedEntitiesResponse,
    SuccessResponse,
)
from modelcanvas.dependencies import get_designer_session, get_entity_access_service
from modelcanvas.application.designer_session import DesignerSession
from modelcanvas.application.entity_access_service import EntityAccessService

router = APIRouter()

@router.get("/entities")
async def list_entities(session: DesignerSession = Depends(get_designer_session)) -> List[Dict[str, Any]]:
    """
    Retrieve all entities with their fields.
    """
    return session.entities.entities

@router.post("/entities", status_code=201)
async def create_entity(
    entity_data: EntityCreate,
    session: DesignerSession = Depends(get_designer_session),
) -> Dict[str, Any]:
    """
    Add an entity on the next free grid slot; it becomes the selection.
    """
    return session.add_entity(entity_data.name)

@router.get("/entities/{entity_id}")
async def get_entity(
    entity_id: str,
    session: DesignerSession = Depends(get_designer_session),
    access_svc: EntityAccessService = Depends(get_entity_access_service),
) -> Dict[str, Any]:
    access_svc.require_entity_exists(entity_id)
    return session.entities.get_entity(entity_id)

@router.patch("/entities/{entity_id}")
async def update_entity(
    entity_id: str,
    entity_data: EntityUpdate,
    session: DesignerSession = Depends(get_designer_session),
    access_svc: EntityAccessService = Depends(get_entity_access_service),
) -> Dict[str, Any]:
    """
    Partially update an entity.
    """
    access_svc.require_entity_exists(entity_id)
    updates = entity_data.model_dump(exclude_unset=True, exclude={"config"})
    if entity_data.config is not None:
        current = session.entities.get_entity(entity_id)["config"]
        updates["config"] = {**current, **entity_data.config.model_dump(exclude_none=True)}
    return session.update_entity(entity_id, updates)

@router.delete("/entities/{entity_id}", response_model=SuccessResponse)
async def delete_entity(
    entity_id: str,
    session: DesignerSession = Depends(get_designer_session),
    access_svc: EntityAccessService = Depends(get_entity_access_service),
):
    """
    Delete an entity together with its relations and service membership.
    """
    access_svc.require_entity_exists(entity_id)
    session.remove_entity(entity_id)
    return SuccessResponse(success=True)

@router.post("/entities/delete-selected", response_model=DeletedEntitiesResponse)
async def delete_selected_entities(session: DesignerSession = Depends(get_designer_session)):
    """
    Delete the selected entity and every multi-selected entity.
    """
    return DeletedEntitiesResponse(deleted_ids=session.delete_selected_entities())

@router.post("/entities/selection", response_model=SuccessResponse)
async def select_entity(
    selection: SelectionRequest,
    session: DesignerSession = Depends(get_designer_session),
    access_svc: EntityAccessService = Depends(get_entity_access_service),
):
    """
    Select an entity, toggle it in the multi-selection, or clear the selection.
    """
    if selection.entity_id is None:
        session.clear_selection()
        return SuccessResponse(success=True)
    access_svc.require_entity_exists(selection.entity_id)
    if selection.multi:
        session.toggle_entity_selection(selection.entity_id)
    else:
        session.select_entity(selection.entity_id)
    return SuccessResponse(success=True)

# Fields
@router.post("/entities/{entity_id}/fields", status_code=201)
async def create_field(
    entity_id: str,
    field_data: FieldCreate,
    session: DesignerSession = Depends(get_designer_session),
    access_svc: EntityAccessService = Depends(get_entity_access_service),
) -> Dict[str, Any]:
    """
    Add a field; its derived name must be unique within the entity.
    """
    access_svc.require_entity_exists(entity_id)
    return session.add_field(entity_id, field_data.model_dump())

@router.patch("/entities/{entity_id}/fields/{field_id}")
async def update_field(
    entity_id: str,
    field_id: str,
    field_data: FieldUpdate,
    session: DesignerSession = Depends(get_designer_session),
    access_svc: EntityAccessService = Depends(get_entity_access_service),
) -> Dict[str, Any]:
    access_svc.require_field_exists(entity_id, field_id)
    return session.update_field(entity_id, field_id, field_data.model_dump(exclude_unset=True))

@router.delete("/entities/{entity_id}/fields/{field_id}", response_model=SuccessResponse)
async def delete_field(
    entity_id: str,
    field_id: str,
    session: DesignerSession = Depends(get_designer_session),
    access_svc: EntityAccessService = Depends(get_entity_access_service),
):
    access_svc.require_field_exists(entity_id, field_id)
    session.remove_field(entity_id, field_id)
    return SuccessResponse(success=True)
