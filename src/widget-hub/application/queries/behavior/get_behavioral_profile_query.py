"""Get behavioral profile query with handler."""

from dataclasses import dataclass
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.mediation import Query, QueryHandler

from application.services import BehavioralAnalyticsEngine


@dataclass
class GetBehavioralProfileQuery(Query[OperationResult[dict[str, Any]]]):
    """Query to summarize a user's behavioral profile.

    Unknown users are reported with ``exists: False`` rather than as not found.
    """

    user_id: str


class GetBehavioralProfileQueryHandler(QueryHandler[GetBehavioralProfileQuery, OperationResult[dict[str, Any]]]):
    def __init__(self, analytics_engine: BehavioralAnalyticsEngine):
        super().__init__()
        self.analytics_engine = analytics_engine

    async def handle_async(self, request: GetBehavioralProfileQuery) -> OperationResult[dict[str, Any]]:
        if not request.user_id:
            return self.bad_request("user_id is required")
        return self.ok(await self.analytics_engine.get_user_behavioral_profile(request.user_id))
