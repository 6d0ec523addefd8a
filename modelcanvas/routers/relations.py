from fastapi import APIRouter, Depends
from typing import Dict, List, Any

from modelcanvas.schemas.api_schemas import RelationCreate, RelationUpdate, SuccessResponse
from modelcanvas.dependencies import get_designer_session, get_entity_access_service
from modelcanvas.application.designer_session import DesignerSession
from modelcanvas.application.entity_access_service import EntityAccessService

router = APIRouter()

@router.get("/relations")
async def list_relations(session: DesignerSession = Depends(get_designer_session)) -> List[Dict[str, Any]]:
    """
    Retrieve all relations.
    """
    return session.relations.relations

@router.post("/relations", status_code=201)
async def create_relation(
    relation_data: RelationCreate,
    session: DesignerSession = Depends(get_designer_session),
    access_svc: EntityAccessService = Depends(get_entity_access_service),
) -> Dict[str, Any]:
    """
    Draw a relation between two existing entities.
    """
    access_svc.require_relation_endpoints(relation_data.source_entity_id, relation_data.target_entity_id)
    relation = relation_data.model_dump(exclude_none=True)
    return session.add_relation(relation)

@router.get("/relations/{relation_id}")
async def get_relation(
    relation_id: str,
    session: DesignerSession = Depends(get_designer_session),
    access_svc: EntityAccessService = Depends(get_entity_access_service),
) -> Dict[str, Any]:
    access_svc.require_relation_exists(relation_id)
    return session.relations.get_relation(relation_id)

@router.patch("/relations/{relation_id}")
async def update_relation(
    relation_id: str,
    relation_data: RelationUpdate,
    session: DesignerSession = Depends(get_designer_session),
    access_svc: EntityAccessService = Depends(get_entity_access_service),
) -> Dict[str, Any]:
    access_svc.require_relation_exists(relation_id)
    updates = relation_data.model_dump(exclude_unset=True, exclude={"foreign_key"})
    if relation_data.foreign_key is not None:
        current = session.relations.get_relation(relation_id)["foreign_key"]
        updates["foreign_key"] = {**current, **relation_data.foreign_key.model_dump(exclude_none=True)}
    return session.update_relation(relation_id, updates)

@router.delete("/relations/{relation_id}", response_model=SuccessResponse)
async def delete_relation(
    relation_id: str,
    session: DesignerSession = Depends(get_designer_session),
    access_svc: EntityAccessService = Depends(get_entity_access_service),
):
    access_svc.require_relation_exists(relation_id)
    session.remove_relation(relation_id)
    return SuccessResponse(success=True)
