"""WidgetMessage DTO for the Read Model.

Durable record of a message sent through the communication system,
used by the message history query.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from neuroglia.data.abstractions import Identifiable, queryable

from domain.models import WidgetMessage


@queryable
@dataclass
class WidgetMessageDto(Identifiable[str]):
    """Read model representation of a WidgetMessage."""

    id: str
    from_widget: str
    message_type: str
    to_widget: Optional[str] = None  # None for fan-out strategies
    payload: dict[str, Any] = field(default_factory=dict)
    priority: str = "normal"
    routing_strategy: str = "direct"
    ttl: Optional[int] = None
    tenant_id: str = "default"
    user_id: Optional[str] = None
    session_id: Optional[str] = None

    # Delivery snapshot at the time of the last write
    attempts: int = 0
    delivered: bool = False
    acknowledged: bool = False
    error: Optional[str] = None

    timestamp: Optional[datetime] = None


def message_to_dto(message: WidgetMessage) -> WidgetMessageDto:
    return WidgetMessageDto(
        id=message.id,
        from_widget=message.from_widget,
        to_widget=message.to_widget,
        message_type=message.message_type,
        payload=message.payload,
        priority=message.priority.value,
        routing_strategy=message.routing.strategy.value,
        ttl=message.ttl,
        tenant_id=message.tenant_id,
        user_id=message.user_id,
        session_id=message.collaboration.session_id if message.collaboration else None,
        attempts=message.delivery.attempts,
        delivered=message.delivery.delivered,
        acknowledged=message.delivery.acknowledged,
        error=message.delivery.error,
        timestamp=message.timestamp,
    )
