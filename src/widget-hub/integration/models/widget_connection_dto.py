"""WidgetConnection DTO for the Read Model.

Durable record of a connection created by the communication system.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from neuroglia.data.abstractions import Identifiable, queryable

from domain.models import WidgetConnection


@queryable
@dataclass
class WidgetConnectionDto(Identifiable[str]):
    """Read model representation of a WidgetConnection."""

    id: str
    source_widget: str
    source_port: str
    target_widget: str
    target_port: str
    connection_type: str
    config: dict[str, Any]
    canvas_id: str = "default"
    tenant_id: str = "default"

    # Health snapshot at the time of the last write
    is_active: bool = True
    message_count: int = 0
    error_count: int = 0
    latency: float = 0.0

    created_at: Optional[datetime] = None


def connection_to_dto(connection: WidgetConnection) -> WidgetConnectionDto:
    return WidgetConnectionDto(
        id=connection.id,
        source_widget=connection.source_widget,
        source_port=connection.source_port,
        target_widget=connection.target_widget,
        target_port=connection.target_port,
        connection_type=connection.connection_type.value,
        config=connection.config.to_dict(),
        canvas_id=connection.canvas_id,
        tenant_id=connection.tenant_id,
        is_active=connection.state.is_active,
        message_count=connection.state.message_count,
        error_count=connection.state.error_count,
        latency=connection.state.latency,
        created_at=connection.created_at,
    )
