"""Record widget metrics command with handler."""

import logging
from dataclasses import dataclass
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_bus import CloudEventBus
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_publisher import CloudEventPublishingOptions
from neuroglia.mapping import Mapper
from neuroglia.mediation import Command, CommandHandler, Mediator

from application.services import WidgetMetricsTracker
from domain.entities import WidgetInstance
from domain.models import WidgetMetricsSample
from domain.repositories import WidgetInstanceRepository

from ..command_handler_base import CommandHandlerBase

log = logging.getLogger(__name__)


@dataclass
class RecordWidgetMetricsCommand(Command[OperationResult[dict[str, Any]]]):
    """Command to report a performance sample for a widget instance."""

    instance_id: str
    render_time: float = 0.0
    memory_usage: float = 0.0
    cpu_usage: float = 0.0
    error_count: int = 0
    interaction_count: int = 0
    performance_score: float = 100.0


class RecordWidgetMetricsCommandHandler(
    CommandHandlerBase,
    CommandHandler[RecordWidgetMetricsCommand, OperationResult[dict[str, Any]]],
):
    """Track a sample in memory, persisting every Nth one on the instance."""

    def __init__(
        self,
        mediator: Mediator,
        mapper: Mapper,
        cloud_event_bus: CloudEventBus,
        cloud_event_publishing_options: CloudEventPublishingOptions,
        instance_repository: WidgetInstanceRepository,
        metrics_tracker: WidgetMetricsTracker,
    ):
        super().__init__(mediator, mapper, cloud_event_bus, cloud_event_publishing_options)
        self.instance_repository = instance_repository
        self.metrics_tracker = metrics_tracker

    async def handle_async(self, request: RecordWidgetMetricsCommand) -> OperationResult[dict[str, Any]]:
        command = request

        instance = await self.instance_repository.get_async(command.instance_id)
        if instance is None:
            return self.not_found(WidgetInstance, command.instance_id)

        sample = WidgetMetricsSample(
            widget_id=instance.state.widget_id,
            instance_id=instance.id(),
            render_time=command.render_time,
            memory_usage=command.memory_usage,
            cpu_usage=command.cpu_usage,
            error_count=command.error_count,
            interaction_count=command.interaction_count,
            performance_score=command.performance_score,
        )
        persisted = self.metrics_tracker.record(sample)
        if persisted:
            instance.record_performance(sample.to_dict())
            await self.instance_repository.update_async(instance)
            log.debug(f"Performance sample persisted for widget instance {instance.id()}")

        return self.ok({**sample.to_dict(), "persisted": persisted})
