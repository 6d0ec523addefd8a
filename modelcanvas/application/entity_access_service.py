"""Service for designer record existence checks."""
from __future__ import annotations

from modelcanvas.application.designer_session import DesignerSession
from modelcanvas.domain.errors import NotFoundError, ValidationError


class EntityAccessService:
    """Centralizes not-found checks so the silent store operations stay silent."""

    def __init__(self, session: DesignerSession) -> None:
        self._session = session

    def require_entity_exists(self, entity_id: str) -> None:
        """Raise NotFoundError if entity doesn't exist."""
        if self._session.entities.get_entity(entity_id) is None:
            raise NotFoundError(f"Entity not found: {entity_id}")

    def require_field_exists(self, entity_id: str, field_id: str) -> None:
        """Raise NotFoundError if the entity or its field doesn't exist."""
        self.require_entity_exists(entity_id)
        if self._session.entities.get_field(entity_id, field_id) is None:
            raise NotFoundError(f"Field not found: {field_id}")

    def require_relation_exists(self, relation_id: str) -> None:
        if self._session.relations.get_relation(relation_id) is None:
            raise NotFoundError(f"Relation not found: {relation_id}")

    def require_relation_endpoints(self, source_entity_id: str, target_entity_id: str) -> None:
        """Raise ValidationError if a relation would point at a missing entity."""
        for entity_id in (source_entity_id, target_entity_id):
            if self._session.entities.get_entity(entity_id) is None:
                raise ValidationError(f"Relation endpoint does not exist: {entity_id}")

    def require_service_exists(self, service_id: str) -> None:
        if self._session.services.get_service(service_id) is None:
            raise NotFoundError(f"Service not found: {service_id}")

    def require_connection_endpoints(self, source_service_id: str, target_service_id: str) -> None:
        for service_id in (source_service_id, target_service_id):
            if self._session.services.get_service(service_id) is None:
                raise ValidationError(f"Connection endpoint does not exist: {service_id}")

    def require_connection_exists(self, connection_id: str) -> None:
        if self._session.connections.get_connection(connection_id) is None:
            raise NotFoundError(f"Connection not found: {connection_id}")
