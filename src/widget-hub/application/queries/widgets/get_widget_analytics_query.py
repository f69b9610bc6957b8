"""Get widget analytics query with handler.

Aggregates the in-memory performance samples of widget instances.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.mediation import Query, QueryHandler

from application.services import WidgetMetricsTracker
from domain.models import WidgetMetricsSample
from domain.repositories import WidgetDefinitionRepository, WidgetInstanceRepository

TOP_PERFORMERS = 5


@dataclass
class GetWidgetAnalyticsQuery(Query[OperationResult[dict[str, Any]]]):
    """Query to summarize widget performance.

    Scope is narrowed by ``widget_id`` (definition) or ``instance_id``, and by
    the ``start``/``end`` sample time window.
    """

    widget_id: str | None = None
    instance_id: str | None = None
    start: datetime | None = None
    end: datetime | None = None


class GetWidgetAnalyticsQueryHandler(QueryHandler[GetWidgetAnalyticsQuery, OperationResult[dict[str, Any]]]):
    def __init__(
        self,
        definition_repository: WidgetDefinitionRepository,
        instance_repository: WidgetInstanceRepository,
        metrics_tracker: WidgetMetricsTracker,
    ):
        super().__init__()
        self.definition_repository = definition_repository
        self.instance_repository = instance_repository
        self.metrics_tracker = metrics_tracker

    def _in_window(self, sample: WidgetMetricsSample, query: GetWidgetAnalyticsQuery) -> bool:
        if query.start is not None and sample.timestamp < query.start:
            return False
        if query.end is not None and sample.timestamp > query.end:
            return False
        return True

    async def handle_async(self, request: GetWidgetAnalyticsQuery) -> OperationResult[dict[str, Any]]:
        query = request

        if query.instance_id:
            instance_ids = [query.instance_id]
        else:
            instance_ids = [s.instance_id for s in self.metrics_tracker.all_latest(query.widget_id)]

        # Latest in-window sample per instance
        latest: list[WidgetMetricsSample] = []
        for instance_id in instance_ids:
            samples = [s for s in self.metrics_tracker.get_samples(instance_id) if self._in_window(s, query)]
            if samples:
                latest.append(samples[-1])

        if query.widget_id:
            total_widgets = 1 if await self.definition_repository.get_async(query.widget_id) else 0
            total_instances = len(await self.instance_repository.get_by_widget_async(query.widget_id))
        else:
            _, total_widgets = await self.definition_repository.search_async(limit=1)
            total_instances = await self.instance_repository.count_async()

        count = len(latest)
        top = sorted(latest, key=lambda s: s.performance_score, reverse=True)[:TOP_PERFORMERS]
        return self.ok(
            {
                "total_widgets": total_widgets,
                "total_instances": total_instances,
                "average_performance": sum(s.performance_score for s in latest) / count if count else 0.0,
                "top_performers": [{"instance_id": s.instance_id, "widget_id": s.widget_id, "performance_score": s.performance_score} for s in top],
                "error_rate": sum(s.error_count for s in latest) / max(1, sum(s.interaction_count for s in latest)) if count else 0.0,
                "memory_usage": sum(s.memory_usage for s in latest) / count if count else 0.0,
            }
        )
