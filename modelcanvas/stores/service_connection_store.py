"""Service-connection store: directed links between services."""
from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from modelcanvas.domain.entities import DEFAULT_CONNECTION_CONFIG, ServiceConnectionRecord
from modelcanvas.domain.naming import new_id

logger = logging.getLogger(__name__)


class ServiceConnectionStore:
    """Sole writer of the connection list; cleaned up by service removals."""

    def __init__(self) -> None:
        self._connections: List[ServiceConnectionRecord] = []

    @property
    def connections(self) -> List[ServiceConnectionRecord]:
        return self._connections

    def add_connection(self, connection: Mapping[str, Any]) -> ServiceConnectionRecord:
        record: ServiceConnectionRecord = {
            "id": new_id(),
            "source_service_id": connection["source_service_id"],
            "target_service_id": connection["target_service_id"],
            "communication_type": connection.get("communication_type", "REST"),
            "label": connection.get("label"),
            "config": {**DEFAULT_CONNECTION_CONFIG, **(connection.get("config") or {})},
        }
        self._connections = [*self._connections, record]
        return record

    def get_connection(self, connection_id: str) -> Optional[ServiceConnectionRecord]:
        for connection in self._connections:
            if connection["id"] == connection_id:
                return connection
        return None

    def update_connection(
        self, connection_id: str, updates: Mapping[str, Any]
    ) -> Optional[ServiceConnectionRecord]:
        def merged(connection: ServiceConnectionRecord) -> ServiceConnectionRecord:
            record = {**connection, **updates, "id": connection["id"]}
            if "config" in updates:
                record["config"] = {**connection["config"], **(updates["config"] or {})}
            return record  # type: ignore[return-value]

        self._connections = [
            merged(c) if c["id"] == connection_id else c for c in self._connections
        ]
        return self.get_connection(connection_id)

    def remove_connection(self, connection_id: str) -> bool:
        remaining = [c for c in self._connections if c["id"] != connection_id]
        removed = len(remaining) != len(self._connections)
        self._connections = remaining
        return removed

    def set_connections(self, connections: List[ServiceConnectionRecord]) -> None:
        self._connections = list(connections)

    def notify_removed(self, removed_id: str) -> None:
        """Drop every connection touching a removed service."""
        remaining = [
            c for c in self._connections
            if c["source_service_id"] != removed_id and c["target_service_id"] != removed_id
        ]
        if len(remaining) != len(self._connections):
            logger.debug(f"Removed connections of service {removed_id}")
            self._connections = remaining

    def reset(self) -> None:
        self._connections = []
