"""CollaborativeOperation model.

An edit intent on a widget instance within a collaboration session.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from domain.enums import OperationType


@dataclass
class OperationPayload:
    path: str
    old_value: Any = None
    new_value: Any = None
    position: int | None = None

    def to_dict(self) -> dict:
        return {"path": self.path, "old_value": self.old_value, "new_value": self.new_value, "position": self.position}


@dataclass
class OperationTransform:
    """Version bookkeeping used for conflict resolution."""

    base_version: int = 0
    result_version: int = 0
    dependencies: list[str] = field(default_factory=list)
    conflicts: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "base_version": self.base_version,
            "result_version": self.result_version,
            "dependencies": list(self.dependencies),
            "conflicts": list(self.conflicts),
        }


@dataclass
class OperationRejection:
    reason: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class CollaborativeOperation:
    """A collaborative edit.

    Two operations conflict when they target the same widget and the same
    ``operation.path``. Once ``applied`` is set the operation is not modified.
    """

    type: OperationType
    widget_id: str
    user_id: str
    session_id: str
    operation: OperationPayload
    transform: OperationTransform = field(default_factory=OperationTransform)
    applied: bool = False
    acknowledged: bool = False
    rejected: OperationRejection | None = None
    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def conflicts_with(self, other: "CollaborativeOperation") -> bool:
        return other.id != self.id and other.widget_id == self.widget_id and other.operation.path == self.operation.path

    def reject(self, reason: str) -> None:
        self.rejected = OperationRejection(reason=reason)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "widget_id": self.widget_id,
            "user_id": self.user_id,
            "session_id": self.session_id,
            "operation": self.operation.to_dict(),
            "transform": self.transform.to_dict(),
            "applied": self.applied,
            "acknowledged": self.acknowledged,
            "rejected": {"reason": self.rejected.reason, "timestamp": self.rejected.timestamp.isoformat()} if self.rejected else None,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CollaborativeOperation":
        """Build an operation from an API payload."""
        operation = data.get("operation") or {}
        transform = data.get("transform") or {}
        return cls(
            id=data.get("id") or str(uuid4()),
            type=OperationType(data["type"]),
            widget_id=data["widget_id"],
            user_id=data["user_id"],
            session_id=data["session_id"],
            operation=OperationPayload(
                path=operation.get("path", ""),
                old_value=operation.get("old_value"),
                new_value=operation.get("new_value"),
                position=operation.get("position"),
            ),
            transform=OperationTransform(
                base_version=transform.get("base_version", 0),
                result_version=transform.get("result_version", 0),
                dependencies=list(transform.get("dependencies", [])),
                conflicts=list(transform.get("conflicts", [])),
            ),
        )
