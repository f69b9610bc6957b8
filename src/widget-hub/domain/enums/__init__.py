"""Domain enumerations package.

This package contains all enumerations used across the domain layer,
organized into logical modules for maintainability.
"""

from .behavior import AnomalySeverity, AnomalyStatus, AnomalyType
from .widget import (
    ConflictResolution,
    ConnectionType,
    FilterOperator,
    FilterType,
    MessagePriority,
    OperationType,
    PortType,
    RoutingStrategy,
    WidgetCategory,
    WidgetComponentKind,
    WidgetStatus,
)

__all__ = [
    # Widget enums
    "PortType",
    "ConnectionType",
    "MessagePriority",
    "RoutingStrategy",
    "ConflictResolution",
    "OperationType",
    "FilterType",
    "FilterOperator",
    "WidgetCategory",
    "WidgetStatus",
    "WidgetComponentKind",
    # Behavioral enums
    "AnomalyType",
    "AnomalySeverity",
    "AnomalyStatus",
]
