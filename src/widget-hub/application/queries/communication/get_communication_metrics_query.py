"""Get communication metrics query with handler."""

from dataclasses import dataclass
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.mediation import Query, QueryHandler

from application.services import WidgetCommunicationService, WidgetEventBus


@dataclass
class GetCommunicationMetricsQuery(Query[OperationResult[dict[str, Any]]]):
    """Query to retrieve delivery statistics, optionally for one widget.

    The event bus statistics are included when no widget is given.
    """

    widget_id: str | None = None


class GetCommunicationMetricsQueryHandler(QueryHandler[GetCommunicationMetricsQuery, OperationResult[dict[str, Any]]]):
    def __init__(self, communication_service: WidgetCommunicationService, event_bus: WidgetEventBus):
        super().__init__()
        self.communication_service = communication_service
        self.event_bus = event_bus

    async def handle_async(self, request: GetCommunicationMetricsQuery) -> OperationResult[dict[str, Any]]:
        metrics = self.communication_service.get_metrics(request.widget_id)
        if request.widget_id is None:
            metrics["event_bus"] = self.event_bus.get_metrics()
            metrics["registered_widgets"] = len(self.communication_service.get_registered_widgets())
        return self.ok(metrics)
