from dataclasses import asdict
from fastapi import APIRouter, Depends
from typing import Dict, Any

from modelcanvas.canvas import NodeChange
from modelcanvas.schemas.api_schemas import (
    CanvasChangesRequest,
    CanvasResponse,
    CanvasNodeResponse,
    CanvasEdgeResponse,
    CanvasViewRequest,
    ClickRequest,
    DragRequest,
    DropResponse,
    EntityFilterRequest,
    LayoutPreferenceRequest,
    SuccessResponse,
)
from modelcanvas.dependencies import get_designer_session
from modelcanvas.application.designer_session import DesignerSession
from modelcanvas.domain.errors import ValidationError

router = APIRouter()

def _canvas(session: DesignerSession) -> CanvasResponse:
    return CanvasResponse(
        nodes=[CanvasNodeResponse(**asdict(node)) for node in session.canvas.nodes],
        edges=[CanvasEdgeResponse(**asdict(edge)) for edge in session.canvas.edges],
        rebuild_count=session.canvas.rebuild_count,
        initialized=session.canvas.initialized,
    )

@router.get("/canvas", response_model=CanvasResponse)
async def get_canvas(session: DesignerSession = Depends(get_designer_session)):
    """
    Retrieve the node and edge lists for the renderer.
    """
    return _canvas(session)

@router.post("/canvas/changes", response_model=CanvasResponse)
async def apply_changes(
    request: CanvasChangesRequest,
    session: DesignerSession = Depends(get_designer_session),
):
    """
    Apply renderer change events (position, dimensions, select).
    """
    changes = [NodeChange(**change.model_dump()) for change in request.changes]
    session.apply_canvas_changes(changes)
    return _canvas(session)

@router.post("/canvas/drag", response_model=DropResponse)
async def drag_node(
    request: DragRequest,
    session: DesignerSession = Depends(get_designer_session),
):
    """
    Report an in-progress drag; returns the service the node is over.
    """
    return DropResponse(service_id=session.drag_node(request.node_id, request.position.model_dump()))

@router.post("/canvas/drag/stop", response_model=DropResponse)
async def stop_drag(
    request: DragRequest,
    session: DesignerSession = Depends(get_designer_session),
):
    """
    Finish a drag; in the combined view the entity joins the service under it.
    """
    return DropResponse(service_id=session.end_drag(request.node_id, request.position.model_dump()))

@router.post("/canvas/click", response_model=SuccessResponse)
async def click(
    request: ClickRequest,
    session: DesignerSession = Depends(get_designer_session),
):
    if request.node_id is None:
        session.click_pane()
    else:
        session.click_node(request.node_id, multi=request.multi)
    return SuccessResponse(success=True)

@router.post("/canvas/rendered", response_model=SuccessResponse)
async def mark_rendered(session: DesignerSession = Depends(get_designer_session)):
    """
    Renderer callback after it painted the current node list.
    """
    session.mark_rendered()
    return SuccessResponse(success=True)

@router.put("/canvas/view", response_model=SuccessResponse)
async def set_view(
    request: CanvasViewRequest,
    session: DesignerSession = Depends(get_designer_session),
):
    session.set_canvas_view(request.view)
    return SuccessResponse(success=True)

@router.put("/canvas/filter", response_model=SuccessResponse)
async def set_filter(
    request: EntityFilterRequest,
    session: DesignerSession = Depends(get_designer_session),
):
    session.set_entity_filter(request.entity_filter)
    return SuccessResponse(success=True)

@router.post("/canvas/entities/{entity_id}/expand", response_model=SuccessResponse)
async def toggle_expanded(
    entity_id: str,
    session: DesignerSession = Depends(get_designer_session),
):
    session.toggle_entity_expanded(entity_id)
    return SuccessResponse(success=True)

@router.put("/canvas/layout", response_model=SuccessResponse)
async def set_layout_preference(
    request: LayoutPreferenceRequest,
    session: DesignerSession = Depends(get_designer_session),
):
    try:
        session.set_layout_preference(request.preference)
    except ValueError as e:
        raise ValidationError(str(e))
    return SuccessResponse(success=True)

@router.post("/canvas/layout/apply")
async def apply_layout(session: DesignerSession = Depends(get_designer_session)) -> Dict[str, Any]:
    """
    Lay out all entities with the current preset.
    """
    return {"positions": session.auto_layout()}
