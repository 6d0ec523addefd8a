from __future__ import annotations

import threading

from fastapi import Depends

from modelcanvas.config import settings, Settings
from modelcanvas.application.designer_session import DesignerSession
from modelcanvas.application.entity_access_service import EntityAccessService
from modelcanvas.application.project_facade import ProjectFacade
from modelcanvas.application.project_validation_service import ProjectValidationService
from modelcanvas.canvas import CanvasSynchronizer
from modelcanvas.stores import (
    EntityRemovalCascade,
    EntityStore,
    HistoryStore,
    LayoutStore,
    RelationStore,
    ServiceConnectionStore,
    ServiceStore,
)

_session: DesignerSession | None = None
_session_lock = threading.Lock()


def build_designer_session(config: Settings = settings) -> DesignerSession:
    """Construct the stores bottom-up and wire their removal listeners once."""
    entity_store = EntityStore(
        grid_columns=config.ENTITY_GRID_COLUMNS,
        spacing_x=config.ENTITY_GRID_SPACING_X,
        spacing_y=config.ENTITY_GRID_SPACING_Y,
        padding=config.ENTITY_GRID_PADDING,
    )
    relation_store = RelationStore()
    service_store = ServiceStore()
    connection_store = ServiceConnectionStore()
    layout_store = LayoutStore(
        entity_store,
        service_store,
        canvas_view=config.DEFAULT_CANVAS_VIEW,  # type: ignore[arg-type]
        layout_preference=config.DEFAULT_LAYOUT_PREFERENCE,
    )
    history_store = HistoryStore(max_size=config.MAX_HISTORY_SIZE)

    # Entity -> relations, service membership, layout; Service -> connections
    entity_store.set_removal_listener(EntityRemovalCascade(relation_store, service_store, layout_store))
    entity_store.set_replacement_listener(layout_store)
    service_store.set_removal_listener(connection_store)

    facade = ProjectFacade(
        entity_store,
        relation_store,
        service_store,
        connection_store,
        layout_store,
        history_store,
        validation_service=ProjectValidationService(),
    )
    canvas = CanvasSynchronizer(entity_store, relation_store, service_store, connection_store, layout_store)
    session = DesignerSession(
        entity_store,
        relation_store,
        service_store,
        connection_store,
        layout_store,
        history_store,
        facade,
        canvas,
    )
    session.settle()
    return session


def get_designer_session() -> DesignerSession:
    global _session
    # Sync dependencies resolve on the threadpool
    with _session_lock:
        if _session is None:
            _session = build_designer_session()
    return _session


def get_entity_access_service(
    session: DesignerSession = Depends(get_designer_session),
) -> EntityAccessService:
    return EntityAccessService(session=session)


def get_project_validation_service() -> ProjectValidationService:
    return ProjectValidationService()
