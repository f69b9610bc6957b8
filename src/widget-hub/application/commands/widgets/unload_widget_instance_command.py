"""Unload widget instance command with handler."""

import logging
from dataclasses import dataclass
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_bus import CloudEventBus
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_publisher import CloudEventPublishingOptions
from neuroglia.mapping import Mapper
from neuroglia.mediation import Command, CommandHandler, Mediator

from application.services import WidgetCommunicationService, WidgetEventBus, WidgetEvents, WidgetMetricsTracker
from domain.entities import WidgetInstance
from domain.repositories import WidgetInstanceRepository

from ..command_handler_base import CommandHandlerBase
from .instance_connections import detach_connections_async

log = logging.getLogger(__name__)


@dataclass
class UnloadWidgetInstanceCommand(Command[OperationResult[dict[str, Any]]]):
    """Command to unload a widget instance.

    Unloading cascades through the communication system: the instance's
    queue, subscriptions, session memberships and connections are dropped,
    and the dropped connections are detached from the peer instances too.
    With ``remove`` the instance is also deleted from its canvas.
    """

    instance_id: str
    remove: bool = False
    user_info: dict[str, Any] | None = None


class UnloadWidgetInstanceCommandHandler(
    CommandHandlerBase,
    CommandHandler[UnloadWidgetInstanceCommand, OperationResult[dict[str, Any]]],
):
    def __init__(
        self,
        mediator: Mediator,
        mapper: Mapper,
        cloud_event_bus: CloudEventBus,
        cloud_event_publishing_options: CloudEventPublishingOptions,
        instance_repository: WidgetInstanceRepository,
        communication_service: WidgetCommunicationService,
        metrics_tracker: WidgetMetricsTracker,
        event_bus: WidgetEventBus,
    ):
        super().__init__(mediator, mapper, cloud_event_bus, cloud_event_publishing_options)
        self.instance_repository = instance_repository
        self.communication_service = communication_service
        self.metrics_tracker = metrics_tracker
        self.event_bus = event_bus

    async def handle_async(self, request: UnloadWidgetInstanceCommand) -> OperationResult[dict[str, Any]]:
        command = request

        instance = await self.instance_repository.get_async(command.instance_id)
        if instance is None:
            return self.not_found(WidgetInstance, command.instance_id)

        removed_connections = await self.communication_service.cleanup_widget(instance.id())
        await detach_connections_async(self.instance_repository, removed_connections, loaded=[instance])

        instance.unload()
        if command.remove:
            await self.instance_repository.remove_async(instance.id())
        else:
            await self.instance_repository.update_async(instance)
        self.metrics_tracker.forget(instance.id())

        await self.event_bus.publish(
            WidgetEvents.WIDGET_UNLOADED,
            source=instance.id(),
            data={"instance_id": instance.id(), "widget_id": instance.state.widget_id, "removed": command.remove},
            tenant_id=instance.state.tenant_id,
            user_id=self._get_user_id(command.user_info),
        )
        log.info(f"Widget instance {instance.id()} unloaded ({len(removed_connections)} connections removed)")
        return self.ok(
            {
                "instance_id": instance.id(),
                "unloaded": True,
                "removed": command.remove,
                "connections_removed": len(removed_connections),
            }
        )
