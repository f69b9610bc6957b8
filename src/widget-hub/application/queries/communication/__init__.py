"""Widget communication queries."""

from .get_communication_metrics_query import GetCommunicationMetricsQuery, GetCommunicationMetricsQueryHandler
from .get_message_history_query import GetMessageHistoryQuery, GetMessageHistoryQueryHandler

__all__ = [
    "GetMessageHistoryQuery",
    "GetMessageHistoryQueryHandler",
    "GetCommunicationMetricsQuery",
    "GetCommunicationMetricsQueryHandler",
]
