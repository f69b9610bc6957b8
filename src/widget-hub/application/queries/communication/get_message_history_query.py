"""Get message history query with handler."""

from dataclasses import asdict, dataclass
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.mediation import Query, QueryHandler

from application.services import WidgetCommunicationService

MAX_HISTORY = 500


@dataclass
class GetMessageHistoryQuery(Query[OperationResult[list[dict[str, Any]]]]):
    """Query to retrieve persisted messages sent from or to a widget, newest first."""

    widget_id: str | None = None
    message_type: str | None = None
    limit: int = 50


class GetMessageHistoryQueryHandler(QueryHandler[GetMessageHistoryQuery, OperationResult[list[dict[str, Any]]]]):
    def __init__(self, communication_service: WidgetCommunicationService):
        super().__init__()
        self.communication_service = communication_service

    async def handle_async(self, request: GetMessageHistoryQuery) -> OperationResult[list[dict[str, Any]]]:
        query = request
        if query.limit <= 0:
            return self.bad_request("limit must be positive")

        history = await self.communication_service.get_message_history(
            widget_id=query.widget_id,
            message_type=query.message_type,
            limit=min(query.limit, MAX_HISTORY),
        )
        return self.ok([asdict(dto) for dto in history])
