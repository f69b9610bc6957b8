"""WidgetMessage model and its routing/delivery parts."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

from domain.enums import MessagePriority, RoutingStrategy
from domain.models.message_filter import MessageFilter


@dataclass
class RoutingInfo:
    """How a message is routed to its recipients."""

    strategy: RoutingStrategy = RoutingStrategy.DIRECT
    topic: str | None = None
    pattern: str | None = None
    filters: list[MessageFilter] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "strategy": self.strategy.value,
            "topic": self.topic,
            "pattern": self.pattern,
            "filters": [f.to_dict() for f in self.filters],
        }


@dataclass
class CollaborationInfo:
    """Collaborative session context carried by a message."""

    session_id: str
    user_id: str
    operation_id: str | None = None

    def to_dict(self) -> dict:
        return {"session_id": self.session_id, "user_id": self.user_id, "operation_id": self.operation_id}


@dataclass
class DeliveryStatus:
    """Delivery bookkeeping; drives retries and acknowledgment."""

    attempts: int = 0
    delivered: bool = False
    acknowledged: bool = False
    error: str | None = None
    last_attempt_at: datetime | None = None
    next_attempt_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "attempts": self.attempts,
            "delivered": self.delivered,
            "acknowledged": self.acknowledged,
            "error": self.error,
            "last_attempt_at": self.last_attempt_at.isoformat() if self.last_attempt_at else None,
        }


@dataclass
class WidgetMessage:
    """A message exchanged between widget instances.

    The message lifecycle ends on acknowledgment, TTL expiry or once the
    retries are exhausted (``delivery.error`` stays set in that case).
    """

    from_widget: str
    message_type: str
    payload: dict[str, Any] = field(default_factory=dict)
    to_widget: str | None = None
    priority: MessagePriority = MessagePriority.NORMAL
    ttl: int | None = None  # seconds
    routing: RoutingInfo = field(default_factory=RoutingInfo)
    collaboration: CollaborationInfo | None = None
    delivery: DeliveryStatus = field(default_factory=DeliveryStatus)
    compressed: bool = False
    encrypted: bool = False
    tenant_id: str = "default"
    user_id: str | None = None
    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def expires_at(self) -> datetime | None:
        if self.ttl is None:
            return None
        return self.timestamp + timedelta(seconds=self.ttl)

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check whether the message outlived its TTL."""
        expires_at = self.expires_at
        if expires_at is None:
            return False
        return (now or datetime.now(UTC)) >= expires_at

    def copy_for(self, widget_id: str) -> "WidgetMessage":
        """Create the per-recipient copy used by fan-out strategies.

        Copies keep the message id for correlation but track delivery separately.
        """
        return WidgetMessage(
            id=self.id,
            from_widget=self.from_widget,
            to_widget=widget_id,
            message_type=self.message_type,
            payload=dict(self.payload),
            priority=self.priority,
            ttl=self.ttl,
            routing=self.routing,
            collaboration=self.collaboration,
            delivery=DeliveryStatus(attempts=self.delivery.attempts),
            compressed=self.compressed,
            encrypted=self.encrypted,
            tenant_id=self.tenant_id,
            user_id=self.user_id,
            timestamp=self.timestamp,
        )

    def to_dict(self) -> dict:
        """Serialize to dictionary for API responses."""
        return {
            "id": self.id,
            "from_widget": self.from_widget,
            "to_widget": self.to_widget,
            "message_type": self.message_type,
            "payload": self.payload,
            "priority": self.priority.value,
            "timestamp": self.timestamp.isoformat(),
            "ttl": self.ttl,
            "routing": self.routing.to_dict(),
            "collaboration": self.collaboration.to_dict() if self.collaboration else None,
            "delivery": self.delivery.to_dict(),
            "compressed": self.compressed,
            "encrypted": self.encrypted,
            "tenant_id": self.tenant_id,
            "user_id": self.user_id,
        }
