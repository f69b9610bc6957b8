"""WidgetConnection model.

Directed edge from an emitting port of one widget to a receiving port of another.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from domain.enums import ConnectionType


@dataclass
class ThrottlingConfig:
    enabled: bool = False
    rate_ms: int = 100


@dataclass
class ConnectionConfig:
    """Per-connection delivery settings."""

    buffering: bool = False
    throttling: ThrottlingConfig = field(default_factory=ThrottlingConfig)
    transformation: dict[str, Any] | None = None
    validation: dict[str, Any] | None = None

    def to_dict(self) -> dict:
        return {
            "buffering": self.buffering,
            "throttling": {"enabled": self.throttling.enabled, "rate_ms": self.throttling.rate_ms},
            "transformation": self.transformation,
            "validation": self.validation,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "ConnectionConfig":
        if not data:
            return cls()
        throttling = data.get("throttling") or {}
        return cls(
            buffering=data.get("buffering", False),
            throttling=ThrottlingConfig(
                enabled=throttling.get("enabled", False),
                rate_ms=throttling.get("rate_ms", throttling.get("rateMs", 100)),
            ),
            transformation=data.get("transformation"),
            validation=data.get("validation"),
        )


@dataclass
class ConnectionState:
    """Runtime health of a connection."""

    is_active: bool = True
    message_count: int = 0
    error_count: int = 0
    latency: float = 0.0  # running average, ms
    last_message_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "is_active": self.is_active,
            "message_count": self.message_count,
            "error_count": self.error_count,
            "latency": self.latency,
            "last_message_at": self.last_message_at.isoformat() if self.last_message_at else None,
        }


@dataclass
class WidgetConnection:
    """A directed connection between two widget ports."""

    source_widget: str
    source_port: str
    target_widget: str
    target_port: str
    connection_type: ConnectionType = ConnectionType.DATA
    config: ConnectionConfig = field(default_factory=ConnectionConfig)
    state: ConnectionState = field(default_factory=ConnectionState)
    canvas_id: str = "default"
    tenant_id: str = "default"
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def involves(self, widget_id: str) -> bool:
        """Whether the widget is either endpoint of this connection."""
        return widget_id in (self.source_widget, self.target_widget)

    def carries(self, from_widget: str, to_widget: str | None) -> bool:
        """Whether a message from ``from_widget`` to ``to_widget`` travels over this connection."""
        return self.source_widget == from_widget and (to_widget is None or self.target_widget == to_widget)

    def record_delivery(self, latency_ms: float, at: datetime | None = None) -> None:
        """Fold a delivery latency into the running average."""
        count = self.state.message_count
        self.state.latency = (self.state.latency * count + latency_ms) / (count + 1)
        self.state.message_count = count + 1
        self.state.last_message_at = at or datetime.now(UTC)

    def record_error(self) -> None:
        self.state.error_count += 1

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "source_widget": self.source_widget,
            "source_port": self.source_port,
            "target_widget": self.target_widget,
            "target_port": self.target_port,
            "connection_type": self.connection_type.value,
            "config": self.config.to_dict(),
            "state": self.state.to_dict(),
            "canvas_id": self.canvas_id,
            "tenant_id": self.tenant_id,
            "created_at": self.created_at.isoformat(),
        }
