"""Internal domain records as TypedDicts for type safety at boundaries.

Records are plain dicts with snake_case keys. Stores replace records instead of
mutating them, so a record handed out by a store (or kept in a history
snapshot) never changes underneath its holder.
"""
from __future__ import annotations

from typing import Any, Dict, List, Literal, TypedDict


JavaType = Literal[
    "String",
    "Long",
    "Integer",
    "Double",
    "Float",
    "BigDecimal",
    "Boolean",
    "LocalDate",
    "LocalDateTime",
    "LocalTime",
    "Instant",
    "UUID",
    "byte[]",
]

ValidationType = Literal[
    "NotNull",
    "NotBlank",
    "NotEmpty",
    "Size",
    "Min",
    "Max",
    "DecimalMin",
    "DecimalMax",
    "Positive",
    "PositiveOrZero",
    "Negative",
    "NegativeOrZero",
    "Email",
    "Pattern",
    "Past",
    "PastOrPresent",
    "Future",
    "FutureOrPresent",
]

RelationType = Literal["OneToOne", "OneToMany", "ManyToOne", "ManyToMany"]
CascadeType = Literal["ALL", "PERSIST", "MERGE", "REMOVE", "REFRESH", "DETACH"]
FetchType = Literal["LAZY", "EAGER"]
FKAction = Literal["CASCADE", "SET_NULL", "RESTRICT", "NO_ACTION"]

CommunicationType = Literal["REST", "gRPC", "Kafka", "RabbitMQ", "WebSocket"]
ServiceDatabaseType = Literal["postgresql", "mysql", "mongodb", "redis", "h2"]
ServiceDiscoveryType = Literal["EUREKA", "CONSUL", "KUBERNETES", "NONE"]


class Position(TypedDict):
    x: float
    y: float


class ValidationRule(TypedDict):
    type: ValidationType
    value: str | float | None
    message: str | None


class FieldRecord(TypedDict):
    id: str
    name: str
    column_name: str
    type: JavaType
    nullable: bool
    unique: bool
    validations: List[ValidationRule]
    default_value: str | None
    description: str | None


class EntityConfig(TypedDict):
    generate_controller: bool
    generate_service: bool
    custom_endpoint: str | None
    enable_caching: bool


class EntityRecord(TypedDict):
    id: str
    name: str
    table_name: str
    description: str | None
    position: Position
    fields: List[FieldRecord]
    config: EntityConfig


class ForeignKeyConfig(TypedDict):
    column_name: str
    nullable: bool
    on_delete: FKAction
    on_update: FKAction


class JoinTable(TypedDict):
    name: str
    join_column: str
    inverse_join_column: str


class RelationRecord(TypedDict):
    id: str
    type: RelationType
    source_entity_id: str
    source_field_name: str
    target_entity_id: str
    target_field_name: str | None
    foreign_key: ForeignKeyConfig
    join_table: JoinTable | None
    bidirectional: bool
    mapped_by: str | None
    fetch_type: FetchType
    cascade: List[CascadeType]


class ServiceRecord(TypedDict):
    id: str
    name: str
    description: str
    color: str
    position: Position
    width: float
    height: float
    entity_ids: List[str]
    config: Dict[str, Any]


class ServiceConnectionRecord(TypedDict):
    id: str
    source_service_id: str
    target_service_id: str
    communication_type: CommunicationType
    label: str | None
    config: Dict[str, Any]


class HistorySnapshot(TypedDict):
    entities: List[EntityRecord]
    relations: List[RelationRecord]


# Visual palette for service containers, handed out round-robin
SERVICE_COLORS: List[str] = [
    "#228be6",
    "#40c057",
    "#fab005",
    "#fa5252",
    "#7950f2",
    "#12b886",
    "#fd7e14",
    "#e64980",
    "#15aabf",
    "#495057",
]

DEFAULT_ENTITY_CONFIG: EntityConfig = {
    "generate_controller": True,
    "generate_service": True,
    "custom_endpoint": None,
    "enable_caching": True,
}

DEFAULT_SERVICE_CONFIG: Dict[str, Any] = {
    "port": 8080,
    "context_path": "/api",
    "database_type": "postgresql",
    "generate_docker": True,
    "generate_docker_compose": True,
    "enable_service_discovery": False,
    "service_discovery_type": "NONE",
    "enable_circuit_breaker": True,
    "enable_rate_limiting": True,
    "enable_tracing": True,
    "enable_metrics": True,
    "target_config": None,
}

DEFAULT_CONNECTION_CONFIG: Dict[str, Any] = {
    "timeout": 30000,
    "retry_enabled": True,
    "retry_attempts": 3,
    "circuit_breaker_enabled": True,
}

DEFAULT_PROJECT_CONFIG: Dict[str, Any] = {
    "name": "my-api",
    "description": "",
    "group_id": "com.example",
    "artifact_id": "my-api",
    "package_name": "com.example.myapi",
    "target": {
        "language": "java",
        "framework": "spring-boot",
    },
    "features": {
        "swagger": True,
        "soft_delete": False,
        "auditing": True,
        "caching": True,
        "docker": True,
    },
    "database": {
        "type": "postgresql",
        "generate_migrations": True,
    },
}


def next_service_color(used_colors: List[str]) -> str:
    """Return the first unused palette color, cycling once every color is taken."""
    for color in SERVICE_COLORS:
        if color not in used_colors:
            return color
    return SERVICE_COLORS[len(used_colors) % len(SERVICE_COLORS)]


def default_relation(source_entity_id: str, target_entity_id: str) -> Dict[str, Any]:
    """Relation payload with the designer's defaults, minus the id."""
    return {
        "type": "ManyToOne",
        "source_entity_id": source_entity_id,
        "source_field_name": "",
        "target_entity_id": target_entity_id,
        "target_field_name": None,
        "foreign_key": {
            "column_name": "",
            "nullable": True,
            "on_delete": "NO_ACTION",
            "on_update": "NO_ACTION",
        },
        "join_table": None,
        "bidirectional": False,
        "mapped_by": None,
        "fetch_type": "LAZY",
        "cascade": [],
    }
