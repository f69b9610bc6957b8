"""Widget registry queries."""

from .get_widget_analytics_query import GetWidgetAnalyticsQuery, GetWidgetAnalyticsQueryHandler
from .get_widget_definitions_query import (
    GetWidgetDefinitionQuery,
    GetWidgetDefinitionQueryHandler,
    SearchWidgetDefinitionsQuery,
    SearchWidgetDefinitionsQueryHandler,
)
from .get_widget_instances_query import (
    GetCanvasInstancesQuery,
    GetCanvasInstancesQueryHandler,
    GetWidgetInstanceQuery,
    GetWidgetInstanceQueryHandler,
)

__all__ = [
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
]
