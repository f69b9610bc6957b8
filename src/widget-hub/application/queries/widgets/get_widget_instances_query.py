"""Widget instance queries with handlers."""

from dataclasses import dataclass
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.mediation import Query, QueryHandler

from domain.entities import WidgetInstance
from domain.repositories import WidgetInstanceRepository
from integration.models import instance_to_dict


@dataclass
class GetWidgetInstanceQuery(Query[OperationResult[dict[str, Any]]]):
    instance_id: str


class GetWidgetInstanceQueryHandler(QueryHandler[GetWidgetInstanceQuery, OperationResult[dict[str, Any]]]):
    def __init__(self, instance_repository: WidgetInstanceRepository):
        super().__init__()
        self.instance_repository = instance_repository

    async def handle_async(self, request: GetWidgetInstanceQuery) -> OperationResult[dict[str, Any]]:
        instance = await self.instance_repository.get_async(request.instance_id)
        if instance is None:
            return self.not_found(WidgetInstance, request.instance_id)
        return self.ok(instance_to_dict(instance))


@dataclass
class GetCanvasInstancesQuery(Query[OperationResult[list[dict[str, Any]]]]):
    """Query to retrieve every widget placed on a canvas, bottom layer first."""

    canvas_id: str
    include_hidden: bool = True


class GetCanvasInstancesQueryHandler(QueryHandler[GetCanvasInstancesQuery, OperationResult[list[dict[str, Any]]]]):
    def __init__(self, instance_repository: WidgetInstanceRepository):
        super().__init__()
        self.instance_repository = instance_repository

    async def handle_async(self, request: GetCanvasInstancesQuery) -> OperationResult[list[dict[str, Any]]]:
        instances = await self.instance_repository.get_by_canvas_async(request.canvas_id)
        if not request.include_hidden:
            instances = [i for i in instances if i.state.is_visible]
        instances.sort(key=lambda i: (i.state.position.get("z", 0), i.state.created_at))
        return self.ok([instance_to_dict(i) for i in instances])
