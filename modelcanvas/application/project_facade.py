"""Project-level metadata and whole-graph import, export and reset."""
from __future__ import annotations

import copy
import json
import logging
from typing import Any, Dict, Mapping

from modelcanvas.application.project_validation_service import ProjectValidationService
from modelcanvas.domain.entities import DEFAULT_PROJECT_CONFIG
from modelcanvas.domain.events import ProjectImported, ProjectReset, event_publisher
from modelcanvas.schemas.project_schemas import ProjectDocument
from modelcanvas.stores import (
    EntityStore,
    HistoryStore,
    LayoutStore,
    RelationStore,
    ServiceConnectionStore,
    ServiceStore,
)

logger = logging.getLogger(__name__)


def deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``overrides`` over ``base``; unknown keys are kept."""
    merged: Dict[str, Any] = copy.deepcopy(dict(base))
    for key, value in overrides.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class ProjectFacade:
    """Orchestrates operations that span every store.

    Import is all-or-nothing: the document is validated in full before the
    first store is touched.
    """

    def __init__(
        self,
        entity_store: EntityStore,
        relation_store: RelationStore,
        service_store: ServiceStore,
        connection_store: ServiceConnectionStore,
        layout_store: LayoutStore,
        history_store: HistoryStore,
        validation_service: ProjectValidationService | None = None,
    ) -> None:
        self._entities = entity_store
        self._relations = relation_store
        self._services = service_store
        self._connections = connection_store
        self._layout = layout_store
        self._history = history_store
        self._validation = validation_service or ProjectValidationService()
        self.project: Dict[str, Any] = copy.deepcopy(DEFAULT_PROJECT_CONFIG)

    def set_project(self, updates: Mapping[str, Any]) -> Dict[str, Any]:
        self.project = deep_merge(self.project, updates)
        return self.project

    def set_target_config(self, updates: Mapping[str, Any]) -> Dict[str, Any]:
        self.project = deep_merge(self.project, {"target": dict(updates)})
        return self.project["target"]

    def export_document(self) -> Dict[str, Any]:
        document = ProjectDocument.model_validate({
            "project": self.project,
            "entities": self._entities.entities,
            "relations": self._relations.relations,
            "services": self._services.services,
            "service_connections": self._connections.connections,
        })
        return document.to_json_document()

    def export_project(self) -> str:
        return json.dumps(self.export_document(), indent=2)

    def import_project(self, document: str | Dict[str, Any]) -> ProjectDocument:
        """Replace every store with the contents of ``document``.

        Raises:
            ValidationError: if the document is malformed or inconsistent;
                nothing is modified in that case.
        """
        parsed = self._validation.validate(document)
        records = parsed.to_records()

        self.project = deep_merge(DEFAULT_PROJECT_CONFIG, records["project"])
        self._relations.set_relations(records["relations"])
        self._connections.set_connections(records["service_connections"])
        self._services.set_services(records["services"])
        # Also clears the entity selection and requests auto-layout
        self._entities.set_entities(records["entities"])
        self._history.clear_history()

        logger.info(
            f"Imported project '{self.project['name']}': {len(records['entities'])} entities, "
            f"{len(records['relations'])} relations, {len(records['services'])} services"
        )
        event_publisher.publish(ProjectImported(
            event_id="",
            timestamp=None,
            aggregate_id=self.project["name"],
            entity_count=len(records["entities"]),
            relation_count=len(records["relations"]),
            service_count=len(records["services"]),
        ))
        return parsed

    def reset_project(self) -> None:
        self._entities.reset()
        self._relations.reset()
        self._services.reset()
        self._connections.reset()
        self._layout.reset()
        self._history.clear_history()
        self.project = copy.deepcopy(DEFAULT_PROJECT_CONFIG)
        logger.info("Project reset")
        event_publisher.publish(ProjectReset(event_id="", timestamp=None, aggregate_id=self.project["name"]))
