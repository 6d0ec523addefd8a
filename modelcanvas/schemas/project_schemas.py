"""
Project document schemas using Pydantic.

The exported/imported JSON document uses camelCase keys; records in memory use
snake_case. Every model accepts both, so the same classes validate an incoming
document and serialize the stores back out.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from modelcanvas.domain.entities import (
    CascadeType,
    CommunicationType,
    FetchType,
    FKAction,
    JavaType,
    RelationType,
    ServiceDatabaseType,
    ServiceDiscoveryType,
    ValidationType,
)


class DocumentModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OpenDocumentModel(DocumentModel):
    """Tolerates unknown keys and carries them through export."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


# Data model
class PositionDocument(DocumentModel):
    x: float
    y: float


class ValidationRuleDocument(DocumentModel):
    type: ValidationType
    value: Optional[str | float] = None
    message: Optional[str] = None


class FieldDocument(DocumentModel):
    id: str
    name: str = Field(..., min_length=1, description="Field name is required")
    column_name: str
    type: JavaType
    nullable: bool
    unique: bool
    validations: List[ValidationRuleDocument] = Field(default_factory=list)
    default_value: Optional[str] = None
    description: Optional[str] = None


class EntityConfigDocument(DocumentModel):
    generate_controller: bool
    generate_service: bool
    custom_endpoint: Optional[str] = None
    enable_caching: bool


class EntityDocument(DocumentModel):
    id: str
    name: str = Field(..., min_length=1, description="Entity name is required")
    table_name: str
    description: Optional[str] = None
    position: PositionDocument
    fields: List[FieldDocument]
    config: EntityConfigDocument


class ForeignKeyDocument(DocumentModel):
    column_name: str
    nullable: bool
    on_delete: FKAction
    on_update: FKAction


class JoinTableDocument(DocumentModel):
    name: str
    join_column: str
    inverse_join_column: str


class RelationDocument(DocumentModel):
    id: str
    type: RelationType
    source_entity_id: str
    source_field_name: str
    target_entity_id: str
    target_field_name: Optional[str] = None
    foreign_key: ForeignKeyDocument
    join_table: Optional[JoinTableDocument] = None
    bidirectional: bool
    mapped_by: Optional[str] = None
    fetch_type: FetchType
    cascade: List[CascadeType]


# Service topology
class ServiceConfigDocument(OpenDocumentModel):
    port: int = Field(..., ge=1, le=65535)
    context_path: str = "/api"
    database_type: ServiceDatabaseType = "postgresql"
    generate_docker: bool = True
    generate_docker_compose: bool = True
    enable_service_discovery: bool = False
    service_discovery_type: ServiceDiscoveryType = "NONE"
    enable_circuit_breaker: bool = True
    enable_rate_limiting: bool = True
    enable_tracing: bool = True
    enable_metrics: bool = True
    target_config: Optional[Dict[str, Any]] = None


class ServiceDocument(DocumentModel):
    id: str
    name: str = Field(..., min_length=1, description="Service name is required")
    description: str = ""
    color: str
    position: PositionDocument
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)
    entity_ids: List[str]
    config: ServiceConfigDocument


class ConnectionConfigDocument(OpenDocumentModel):
    timeout: int = 30000
    retry_enabled: bool = True
    retry_attempts: int = 3
    circuit_breaker_enabled: bool = True


class ServiceConnectionDocument(DocumentModel):
    id: str
    source_service_id: str
    target_service_id: str
    communication_type: CommunicationType
    label: Optional[str] = None
    config: ConnectionConfigDocument = Field(default_factory=ConnectionConfigDocument)


# Project configuration
class TargetDocument(OpenDocumentModel):
    language: str = "java"
    framework: str = "spring-boot"


class FeaturesDocument(OpenDocumentModel):
    swagger: bool = True
    soft_delete: bool = False
    auditing: bool = True
    caching: bool = True
    docker: bool = True


class DatabaseDocument(OpenDocumentModel):
    type: str = "postgresql"
    generate_migrations: bool = True


class ProjectConfigDocument(OpenDocumentModel):
    name: str = Field(..., min_length=1, description="Project name is required")
    description: str = ""
    group_id: str = Field(..., min_length=1, description="Group ID is required")
    artifact_id: str = Field(..., min_length=1, description="Artifact ID is required")
    package_name: str = Field(..., min_length=1, description="Package name is required")
    target: TargetDocument = Field(default_factory=TargetDocument)
    features: FeaturesDocument = Field(default_factory=FeaturesDocument)
    database: DatabaseDocument = Field(default_factory=DatabaseDocument)


class ProjectDocument(DocumentModel):
    """The unit of import/export."""

    project: ProjectConfigDocument
    entities: List[EntityDocument]
    relations: List[RelationDocument]
    services: List[ServiceDocument] = Field(default_factory=list)
    service_connections: List[ServiceConnectionDocument] = Field(default_factory=list)

    def to_records(self) -> Dict[str, Any]:
        """snake_case records as the stores hold them."""
        return self.model_dump()

    def to_json_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
