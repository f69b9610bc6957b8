"""Application services for Widget Hub."""

from application.services.behavioral_analytics_engine import BehavioralAnalysisResult, BehavioralAnalyticsEngine
from application.services.widget_communication_service import (
    CommunicationConfig,
    MessageSubscription,
    RetryPolicy,
    WidgetCommunicationService,
)
from application.services.widget_component_catalog import WidgetComponent, WidgetComponentCatalog
from application.services.widget_event_bus import (
    DeadLetter,
    EventFilter,
    EventMetadata,
    EventRetryPolicy,
    SubscriptionOptions,
    WidgetEvent,
    WidgetEventBus,
    WidgetEvents,
)
from application.services.widget_metrics_tracker import WidgetMetricsTracker
from application.services.widget_operation_projector import WidgetOperationProjector

__all__ = [
    # Event bus
    "WidgetEventBus",
    "WidgetEvent",
    "WidgetEvents",
    "EventMetadata",
    "EventFilter",
    "EventRetryPolicy",
    "SubscriptionOptions",
    "DeadLetter",
    # Communication
    "WidgetCommunicationService",
    "CommunicationConfig",
    "RetryPolicy",
    "MessageSubscription",
    # Registry
    "WidgetComponentCatalog",
    "WidgetComponent",
    "WidgetMetricsTracker",
    "WidgetOperationProjector",
    # Behavioral analytics
    "BehavioralAnalyticsEngine",
    "BehavioralAnalysisResult",
]
