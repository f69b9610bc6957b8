"""Domain models (value objects) package."""

from .behavioral_anomaly import BehavioralAnomaly
from .behavioral_metrics import METRIC_CATEGORIES, BehavioralMetrics
from .collaborative_operation import CollaborativeOperation, OperationPayload, OperationRejection, OperationTransform
from .message_filter import MessageFilter
from .widget_connection import ConnectionConfig, ConnectionState, ThrottlingConfig, WidgetConnection
from .widget_message import CollaborationInfo, DeliveryStatus, RoutingInfo, WidgetMessage
from .widget_metrics import WidgetMetricsSample
from .widget_port import WidgetPort

__all__ = [
    # Communication
    "WidgetPort",
    "MessageFilter",
    "WidgetConnection",
    "ConnectionConfig",
    "ConnectionState",
    "ThrottlingConfig",
    "WidgetMessage",
    "RoutingInfo",
    "CollaborationInfo",
    "DeliveryStatus",
    "CollaborativeOperation",
    "OperationPayload",
    "OperationTransform",
    "OperationRejection",
    # Registry
    "WidgetMetricsSample",
    # Behavioral analytics
    "BehavioralMetrics",
    "BehavioralAnomaly",
    "METRIC_CATEGORIES",
]
