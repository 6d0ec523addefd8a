"""
Health check endpoints for the API.
"""
from fastapi import APIRouter, Depends
from typing import Dict, Any
from datetime import datetime

from modelcanvas.config import settings
from modelcanvas.dependencies import get_designer_session
from modelcanvas.application.designer_session import DesignerSession

router = APIRouter()

@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """
    Basic health check endpoint.
    Returns API status and version information.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT
    }

@router.get("/health/session")
async def session_health(
    session: DesignerSession = Depends(get_designer_session)
) -> Dict[str, Any]:
    """
    Designer session statistics.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "entities": len(session.entities.entities),
        "relations": len(session.relations.relations),
        "services": len(session.services.services),
        "service_connections": len(session.connections.connections),
        "history": {
            "past": len(session.history.past),
            "future": len(session.history.future),
            "phase": session.history.phase.value,
        },
    }
