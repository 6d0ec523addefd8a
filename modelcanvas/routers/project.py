from fastapi import APIRouter, Depends, Request, Body
from fastapi.responses import Response
from typing import Dict, Any

from modelcanvas.schemas.api_schemas import ProjectStateResponse, ImportResponse, SuccessResponse
from modelcanvas.dependencies import get_designer_session, get_project_validation_service
from modelcanvas.application.designer_session import DesignerSession
from modelcanvas.application.project_validation_service import ProjectValidationService
from modelcanvas.domain.errors import ValidationError

router = APIRouter()

async def _read_document(request: Request) -> str:
    body = await request.body()
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ValidationError("Invalid JSON format") from e

def _state(session: DesignerSession) -> ProjectStateResponse:
    view = session.view()
    return ProjectStateResponse(
        project=view.project,
        entities=view.entities,
        relations=view.relations,
        services=view.services,
        service_connections=view.service_connections,
        selected_entity_id=view.selected_entity_id,
        selected_entity_ids=view.selected_entity_ids,
        selected_service_id=view.selected_service_id,
        canvas_view=view.canvas_view,
        entity_filter=view.entity_filter,
        expanded_entity_ids=view.expanded_entity_ids,
        layout_preference=view.layout_preference,
        can_undo=view.can_undo,
        can_redo=view.can_redo,
    )

@router.get("/project", response_model=ProjectStateResponse)
async def get_project_state(session: DesignerSession = Depends(get_designer_session)):
    """
    Retrieve the whole designer state.
    """
    return _state(session)

@router.put("/project")
async def update_project(
    updates: Dict[str, Any] = Body(...),
    session: DesignerSession = Depends(get_designer_session),
) -> Dict[str, Any]:
    """
    Merge updates into the project configuration.
    """
    return session.set_project(updates)

@router.put("/project/target")
async def update_target_config(
    updates: Dict[str, Any] = Body(...),
    session: DesignerSession = Depends(get_designer_session),
) -> Dict[str, Any]:
    """
    Merge updates into the project's target language/framework options.
    """
    return session.set_target_config(updates)

@router.post("/project/reset", response_model=SuccessResponse)
async def reset_project(session: DesignerSession = Depends(get_designer_session)):
    """
    Clear every store, the canvas state and the history.
    """
    session.reset_project()
    return SuccessResponse(success=True)

@router.get("/project/export")
async def export_project(session: DesignerSession = Depends(get_designer_session)):
    """
    Export the project as a JSON document.
    """
    return Response(content=session.export_project(), media_type="application/json")

@router.post("/project/import", response_model=ImportResponse)
async def import_project(
    request: Request,
    session: DesignerSession = Depends(get_designer_session),
):
    """
    Replace the whole project with an exported JSON document.
    Nothing changes unless the document is valid in full.
    """
    session.import_project(await _read_document(request))
    return ImportResponse(
        success=True,
        entity_count=len(session.entities.entities),
        relation_count=len(session.relations.relations),
        service_count=len(session.services.services),
    )

@router.post("/project/validate", response_model=SuccessResponse)
async def validate_project(
    request: Request,
    validator: ProjectValidationService = Depends(get_project_validation_service),
):
    """
    Validate a project document without importing it.
    """
    validator.validate(await _read_document(request))
    return SuccessResponse(success=True)
