"""Widget Hub queries."""

from .behavior import GetBehavioralProfileQuery, GetBehavioralProfileQueryHandler
from .communication import (
    GetCommunicationMetricsQuery,
    GetCommunicationMetricsQueryHandler,
    GetMessageHistoryQuery,
    GetMessageHistoryQueryHandler,
)
from .widgets import (
    GetCanvasInstancesQuery,
    GetCanvasInstancesQueryHandler,
    GetWidgetAnalyticsQuery,
    GetWidgetAnalyticsQueryHandler,
    GetWidgetDefinitionQuery,
    GetWidgetDefinitionQueryHandler,
    GetWidgetInstanceQuery,
    GetWidgetInstanceQueryHandler,
    SearchWidgetDefinitionsQuery,
    SearchWidgetDefinitionsQueryHandler,
)

__all__ = [
    # Widget registry
    "GetWidgetDefinitionQuery",
    "GetWidgetDefinitionQueryHandler",
    "SearchWidgetDefinitionsQuery",
    "SearchWidgetDefinitionsQueryHandler",
    "GetWidgetInstanceQuery",
    "GetWidgetInstanceQueryHandler",
    "GetCanvasInstancesQuery",
    "GetCanvasInstancesQueryHandler",
    "GetWidgetAnalyticsQuery",
    "GetWidgetAnalyticsQueryHandler",
    # Communication
    "GetMessageHistoryQuery",
    "GetMessageHistoryQueryHandler",
    "GetCommunicationMetricsQuery",
    "GetCommunicationMetricsQueryHandler",
    # Behavioral analytics
    "GetBehavioralProfileQuery",
    "GetBehavioralProfileQueryHandler",
]
