from fastapi import APIRouter, Depends

from modelcanvas.schemas.api_schemas import HistoryResponse
from modelcanvas.dependencies import get_designer_session
from modelcanvas.application.designer_session import DesignerSession

router = APIRouter()

@router.post("/history/undo", response_model=HistoryResponse)
async def undo(session: DesignerSession = Depends(get_designer_session)):
    """
    Restore the previous entities/relations snapshot.
    """
    applied = session.undo()
    return HistoryResponse(applied=applied, can_undo=session.history.can_undo, can_redo=session.history.can_redo)

@router.post("/history/redo", response_model=HistoryResponse)
async def redo(session: DesignerSession = Depends(get_designer_session)):
    """
    Re-apply the next snapshot after an undo.
    """
    applied = session.redo()
    return HistoryResponse(applied=applied, can_undo=session.history.can_undo, can_redo=session.history.can_redo)
