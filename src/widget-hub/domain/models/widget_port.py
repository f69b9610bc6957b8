"""WidgetPort value object.

Typed connection point declared by a widget definition.
"""

from dataclasses import dataclass
from typing import Any

from domain.enums import PortType


@dataclass(frozen=True)
class WidgetPort:
    """A typed connection point owned by a widget.

    Ports are immutable once the owning widget is registered with the
    communication system; re-registering a widget replaces its ports wholesale.
    """

    id: str
    name: str
    type: PortType
    data_type: str = "any"
    required: bool = False
    default_value: Any = None
    description: str | None = None

    @property
    def can_emit(self) -> bool:
        """Whether this port may act as the source of a connection."""
        return self.type in (PortType.OUTPUT, PortType.BIDIRECTIONAL)

    @property
    def can_receive(self) -> bool:
        """Whether this port may act as the target of a connection."""
        return self.type in (PortType.INPUT, PortType.BIDIRECTIONAL)

    def to_dict(self) -> dict:
        """Serialize to dictionary for storage."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "data_type": self.data_type,
            "required": self.required,
            "default_value": self.default_value,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WidgetPort":
        """Deserialize from dictionary."""
        return cls(
            id=data.get("id") or data["name"],
            name=data["name"],
            type=PortType(data["type"]),
            data_type=data.get("data_type", data.get("dataType", "any")),
            required=data.get("required", False),
            default_value=data.get("default_value", data.get("defaultValue")),
            description=data.get("description"),
        )
