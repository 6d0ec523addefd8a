"""
API Request/Response Schemas using Pydantic.

Structure of HTTP requests and responses for the modelcanvas session API.
"""
from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from typing import Annotated, Dict, List, Optional, Any, Literal

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

# Surrounding whitespace is dropped before the length check
Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]


class PositionModel(BaseModel):
    x: float = Field(..., description="Horizontal canvas coordinate")
    y: float = Field(..., description="Vertical canvas coordinate")

class SuccessResponse(BaseModel):
    success: bool = Field(default=True, description="Whether the operation was successful")

# Entity schemas
class EntityCreate(BaseModel):
    name: Name = Field(..., description="Name of the entity")

class EntityConfigModel(BaseModel):
    generate_controller: Optional[bool] = Field(None, description="Generate a REST controller")
    generate_service: Optional[bool] = Field(None, description="Generate a service class")
    custom_endpoint: Optional[str] = Field(None, description="Endpoint path override")
    enable_caching: Optional[bool] = Field(None, description="Cache repository reads")

class EntityUpdate(BaseModel):
    name: Optional[Name] = Field(None, description="New entity name")
    table_name: Optional[str] = Field(None, description="Database table name")
    description: Optional[str] = Field(None, description="Entity description")
    position: Optional[PositionModel] = Field(None, description="Absolute canvas position")
    config: Optional[EntityConfigModel] = Field(None, description="Generation options for the entity")

class ValidationRuleModel(BaseModel):
    type: ValidationType = Field(..., description="Validation rule type, e.g. NotNull or Size")
    value: Optional[str | float] = Field(None, description="Rule argument")
    message: Optional[str] = Field(None, description="Custom validation message")

class FieldCreate(BaseModel):
    name: Name = Field(..., description="Name of the field")
    column_name: Optional[str] = Field(None, description="Column name; derived from the name if omitted")
    type: JavaType = Field("String", description="Field type")
    nullable: bool = Field(True, description="Whether the column accepts NULL")
    unique: bool = Field(False, description="Whether the column is unique")
    validations: List[ValidationRuleModel] = Field(default_factory=list, description="Validation rules")
    default_value: Optional[str] = Field(None, description="Default value")
    description: Optional[str] = Field(None, description="Field description")

class FieldUpdate(BaseModel):
    name: Optional[Name] = Field(None, description="New field name")
    column_name: Optional[str] = Field(None, description="Column name override")
    type: Optional[JavaType] = Field(None, description="Field type")
    nullable: Optional[bool] = Field(None, description="Whether the column accepts NULL")
    unique: Optional[bool] = Field(None, description="Whether the column is unique")
    validations: Optional[List[ValidationRuleModel]] = Field(None, description="Validation rules")
    default_value: Optional[str] = Field(None, description="Default value")
    description: Optional[str] = Field(None, description="Field description")

class SelectionRequest(BaseModel):
    entity_id: Optional[str] = Field(None, description="Entity to select; null clears the selection")
    multi: bool = Field(False, description="Toggle the entity in the multi-selection instead")

class DeletedEntitiesResponse(BaseModel):
    deleted_ids: List[str] = Field(..., description="IDs of the removed entities")

# Relation schemas
class ForeignKeyModel(BaseModel):
    column_name: Optional[str] = Field(None, description="Foreign key column")
    nullable: Optional[bool] = Field(None, description="Whether the column accepts NULL")
    on_delete: Optional[FKAction] = Field(None, description="Referential action on delete")
    on_update: Optional[FKAction] = Field(None, description="Referential action on update")

class JoinTableModel(BaseModel):
    name: Name = Field(..., description="Join table name")
    join_column: Name = Field(..., description="Column referencing the owning side")
    inverse_join_column: Name = Field(..., description="Column referencing the inverse side")

class RelationCreate(BaseModel):
    type: RelationType = Field("ManyToOne", description="Relation cardinality")
    source_entity_id: str = Field(..., description="ID of the owning entity")
    target_entity_id: str = Field(..., description="ID of the referenced entity")
    source_field_name: str = Field("", description="Field name on the source entity")
    target_field_name: Optional[str] = Field(None, description="Field name on the target entity")
    bidirectional: bool = Field(False, description="Whether the relation is navigable both ways")
    mapped_by: Optional[str] = Field(None, description="Owning side field for bidirectional relations")
    fetch_type: FetchType = Field("LAZY", description="Fetch strategy")
    cascade: List[CascadeType] = Field(default_factory=list, description="Cascade operations")
    foreign_key: Optional[ForeignKeyModel] = Field(None, description="Foreign key overrides")
    join_table: Optional[JoinTableModel] = Field(None, description="Join table for ManyToMany")

class RelationUpdate(BaseModel):
    type: Optional[RelationType] = Field(None, description="Relation cardinality")
    source_field_name: Optional[str] = Field(None, description="Field name on the source entity")
    target_field_name: Optional[str] = Field(None, description="Field name on the target entity")
    bidirectional: Optional[bool] = Field(None, description="Whether the relation is navigable both ways")
    mapped_by: Optional[str] = Field(None, description="Owning side field for bidirectional relations")
    fetch_type: Optional[FetchType] = Field(None, description="Fetch strategy")
    cascade: Optional[List[CascadeType]] = Field(None, description="Cascade operations")
    foreign_key: Optional[ForeignKeyModel] = Field(None, description="Foreign key configuration")
    join_table: Optional[JoinTableModel] = Field(None, description="Join table for ManyToMany")

# Service schemas
class ServiceCreate(BaseModel):
    name: Name = Field(..., description="Name of the service")

class ServiceConfigModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    port: Optional[int] = Field(None, description="HTTP port", ge=1, le=65535)
    context_path: Optional[str] = Field(None, description="Servlet context path")
    database_type: Optional[ServiceDatabaseType] = Field(None, description="Backing database")
    generate_docker: Optional[bool] = Field(None, description="Emit a Dockerfile")
    generate_docker_compose: Optional[bool] = Field(None, description="Emit a compose file")
    enable_service_discovery: Optional[bool] = Field(None, description="Register with a discovery server")
    service_discovery_type: Optional[ServiceDiscoveryType] = Field(None, description="Discovery backend")
    enable_circuit_breaker: Optional[bool] = Field(None, description="Wrap outbound calls in a circuit breaker")
    enable_rate_limiting: Optional[bool] = Field(None, description="Throttle inbound requests")
    enable_tracing: Optional[bool] = Field(None, description="Propagate trace headers")
    enable_metrics: Optional[bool] = Field(None, description="Expose metrics")

class ServiceUpdate(BaseModel):
    name: Optional[Name] = Field(None, description="New service name")
    description: Optional[str] = Field(None, description="Service description")
    color: Optional[str] = Field(None, description="Container color")
    position: Optional[PositionModel] = Field(None, description="Canvas position")
    width: Optional[float] = Field(None, description="Container width", gt=0)
    height: Optional[float] = Field(None, description="Container height", gt=0)
    config: Optional[ServiceConfigModel] = Field(None, description="Service configuration")

class AssignmentRequest(BaseModel):
    entity_ids: List[str] = Field(..., description="Entities to move into the service", min_length=1)

class TargetConfigUpdate(BaseModel):
    target_config: Optional[Dict[str, Any]] = Field(None, description="Per-service target override; null clears it")

# Connection schemas
class ConnectionConfigModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    timeout: Optional[int] = Field(None, description="Call timeout in milliseconds", gt=0)
    retry_enabled: Optional[bool] = Field(None, description="Retry failed calls")
    retry_attempts: Optional[int] = Field(None, description="Maximum retries", ge=0)
    circuit_breaker_enabled: Optional[bool] = Field(None, description="Trip after repeated failures")

class ConnectionCreate(BaseModel):
    source_service_id: str = Field(..., description="ID of the calling service")
    target_service_id: str = Field(..., description="ID of the called service")
    communication_type: CommunicationType = Field("REST", description="Transport between the services")
    label: Optional[str] = Field(None, description="Edge label")
    config: Optional[ConnectionConfigModel] = Field(None, description="Overrides of the default connection config")

class ConnectionUpdate(BaseModel):
    communication_type: Optional[CommunicationType] = Field(None, description="Transport between the services")
    label: Optional[str] = Field(None, description="Edge label")
    config: Optional[ConnectionConfigModel] = Field(None, description="Connection config overrides")

# History schemas
class HistoryResponse(BaseModel):
    applied: bool = Field(..., description="Whether a snapshot was restored")
    can_undo: bool = Field(..., description="Whether another undo is possible")
    can_redo: bool = Field(..., description="Whether another redo is possible")

# Canvas schemas
class NodeChangeModel(BaseModel):
    type: Literal["position", "dimensions", "select"] = Field(..., description="Kind of renderer change")
    id: str = Field(..., description="ID of the changed node")
    position: Optional[PositionModel] = Field(None, description="Reported node position")
    dragging: Optional[bool] = Field(None, description="Whether a drag gesture is in progress")
    dimensions: Optional[Dict[str, float]] = Field(None, description="Reported width and height")
    resizing: Optional[bool] = Field(None, description="Whether a resize gesture is in progress")
    selected: Optional[bool] = Field(None, description="Reported selection state")

class CanvasChangesRequest(BaseModel):
    changes: List[NodeChangeModel] = Field(..., description="Renderer change events, in order")

class DragRequest(BaseModel):
    node_id: str = Field(..., description="ID of the dragged node")
    position: PositionModel = Field(..., description="Node position reported by the renderer")

class DropResponse(BaseModel):
    service_id: Optional[str] = Field(None, description="Service under the node, or the new owner after a drop")

class ClickRequest(BaseModel):
    node_id: Optional[str] = Field(None, description="Clicked node; null for a pane click")
    multi: bool = Field(False, description="Ctrl/cmd held")

class CanvasViewRequest(BaseModel):
    view: Literal["entities", "services", "both"] = Field(..., description="Canvas mode")

class EntityFilterRequest(BaseModel):
    entity_filter: str = Field(..., description='"all", "unassigned" or a service id')

class LayoutPreferenceRequest(BaseModel):
    preference: str = Field(..., description="Layout preset, e.g. compact or horizontal")

class CanvasNodeResponse(BaseModel):
    id: str = Field(..., description="Node ID (entity or service ID)")
    type: str = Field(..., description="entity or service")
    position: PositionModel = Field(..., description="Node position, container-relative when nested")
    parent_id: Optional[str] = Field(None, description="Containing service node")
    width: Optional[float] = Field(None, description="Node width")
    height: Optional[float] = Field(None, description="Node height")
    z_index: int = Field(0, description="Stacking order")
    selected: bool = Field(False, description="Selection flag")
    dragging: bool = Field(False, description="Whether the renderer is dragging the node")
    data: Dict[str, Any] = Field(default_factory=dict, description="Record and display flags")

class CanvasEdgeResponse(BaseModel):
    id: str = Field(..., description="Relation or connection ID")
    source: str = Field(..., description="ID of the source node")
    target: str = Field(..., description="ID of the target node")
    type: str = Field(..., description="relation or service-connection")
    source_handle: Optional[str] = Field(None, description="Source handle on the node")
    target_handle: Optional[str] = Field(None, description="Target handle on the node")
    data: Dict[str, Any] = Field(default_factory=dict, description="Underlying record")

class CanvasResponse(BaseModel):
    nodes: List[CanvasNodeResponse] = Field(..., description="Nodes for the renderer")
    edges: List[CanvasEdgeResponse] = Field(..., description="Edges for the renderer")
    rebuild_count: int = Field(..., description="Number of structural rebuilds so far")
    initialized: bool = Field(..., description="Whether the renderer reported the node list rendered")

# Project schemas
class ProjectStateResponse(BaseModel):
    project: Dict[str, Any] = Field(..., description="Project configuration")
    entities: List[Dict[str, Any]] = Field(..., description="Entities with their fields")
    relations: List[Dict[str, Any]] = Field(..., description="Relations between entities")
    services: List[Dict[str, Any]] = Field(..., description="Service containers")
    service_connections: List[Dict[str, Any]] = Field(..., description="Links between services")
    selected_entity_id: Optional[str] = Field(None, description="Primary entity selection")
    selected_entity_ids: List[str] = Field(default_factory=list, description="Multi-selection")
    selected_service_id: Optional[str] = Field(None, description="Selected service")
    canvas_view: str = Field(..., description="Canvas mode")
    entity_filter: str = Field(..., description="Effective entity filter")
    expanded_entity_ids: List[str] = Field(default_factory=list, description="Expanded entity cards")
    layout_preference: str = Field(..., description="Auto-layout preset")
    can_undo: bool = Field(..., description="Whether undo is possible")
    can_redo: bool = Field(..., description="Whether redo is possible")

class ImportResponse(BaseModel):
    success: bool = Field(default=True, description="Whether the import was applied")
    entity_count: int = Field(..., description="Number of imported entities")
    relation_count: int = Field(..., description="Number of imported relations")
    service_count: int = Field(..., description="Number of imported services")
