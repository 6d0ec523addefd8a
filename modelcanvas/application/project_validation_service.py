"""Service for project document validation logic."""
from __future__ import annotations

import json
from typing import Any, Dict, List, Tuple

from pydantic import ValidationError as PydanticValidationError

from modelcanvas.domain.errors import ValidationError
from modelcanvas.domain.naming import derived_field_name
from modelcanvas.schemas.project_schemas import ProjectDocument

Issue = Tuple[str, str]


def _format_issues(issues: List[Issue]) -> str:
    return "Validation failed: " + "; ".join(f"{path}: {message}" for path, message in issues)


class ProjectValidationService:
    """Validates an incoming project document in full before anything is replaced.

    Every violation is collected; the caller gets a single ``ValidationError``
    naming each one by its document path.
    """

    def parse(self, document: str | Dict[str, Any]) -> Dict[str, Any]:
        """Decode JSON text; dicts pass through."""
        if isinstance(document, dict):
            return document
        try:
            parsed = json.loads(document)
        except (TypeError, ValueError):
            raise ValidationError("Invalid JSON format")
        if not isinstance(parsed, dict):
            raise ValidationError(_format_issues([("", "Expected a JSON object")]))
        return parsed

    def validate_schema(self, data: Dict[str, Any]) -> ProjectDocument:
        try:
            return ProjectDocument.model_validate(data)
        except PydanticValidationError as e:
            issues = [
                (".".join(str(part) for part in error["loc"]), error["msg"])
                for error in e.errors()
            ]
            raise ValidationError(_format_issues(issues))

    def check_references(self, document: ProjectDocument) -> List[Issue]:
        """Cross-record checks the schema alone cannot express."""
        issues: List[Issue] = []

        entity_ids = set()
        for index, entity in enumerate(document.entities):
            if entity.id in entity_ids:
                issues.append((f"entities.{index}.id", f"Duplicate entity id '{entity.id}'"))
            entity_ids.add(entity.id)
            seen_fields: Dict[str, str] = {}
            for field_index, field in enumerate(entity.fields):
                derived = derived_field_name(field.name)
                if derived in seen_fields:
                    issues.append((
                        f"entities.{index}.fields.{field_index}.name",
                        f"Field '{field.name}' clashes with field '{seen_fields[derived]}'",
                    ))
                else:
                    seen_fields[derived] = field.name

        for index, relation in enumerate(document.relations):
            if relation.source_entity_id not in entity_ids:
                issues.append((f"relations.{index}.sourceEntityId", f"Unknown entity '{relation.source_entity_id}'"))
            if relation.target_entity_id not in entity_ids:
                issues.append((f"relations.{index}.targetEntityId", f"Unknown entity '{relation.target_entity_id}'"))

        service_ids = set()
        owners: Dict[str, str] = {}
        for index, service in enumerate(document.services):
            service_ids.add(service.id)
            for entity_index, entity_id in enumerate(service.entity_ids):
                path = f"services.{index}.entityIds.{entity_index}"
                if entity_id not in entity_ids:
                    issues.append((path, f"Unknown entity '{entity_id}'"))
                elif entity_id in owners and owners[entity_id] != service.id:
                    issues.append((path, f"Entity '{entity_id}' already belongs to service '{owners[entity_id]}'"))
                else:
                    owners[entity_id] = service.id

        for index, connection in enumerate(document.service_connections):
            if connection.source_service_id not in service_ids:
                issues.append((
                    f"serviceConnections.{index}.sourceServiceId",
                    f"Unknown service '{connection.source_service_id}'",
                ))
            if connection.target_service_id not in service_ids:
                issues.append((
                    f"serviceConnections.{index}.targetServiceId",
                    f"Unknown service '{connection.target_service_id}'",
                ))
        return issues

    def validate(self, document: str | Dict[str, Any]) -> ProjectDocument:
        """Parse, validate and cross-check; raises ``ValidationError`` on any violation."""
        parsed = self.validate_schema(self.parse(document))
        issues = self.check_references(parsed)
        if issues:
            raise ValidationError(_format_issues(issues))
        return parsed
