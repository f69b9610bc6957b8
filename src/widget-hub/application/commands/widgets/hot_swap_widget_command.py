"""Hot swap widget command with handler."""

import logging
from dataclasses import dataclass
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_bus import CloudEventBus
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_publisher import CloudEventPublishingOptions
from neuroglia.mapping import Mapper
from neuroglia.mediation import Command, CommandHandler, Mediator

from application.services import WidgetCommunicationService, WidgetComponentCatalog, WidgetEventBus, WidgetEvents
from domain.entities import WidgetDefinition, WidgetInstance
from domain.exceptions import WidgetComponentNotFoundError
from domain.repositories import WidgetDefinitionRepository, WidgetInstanceRepository
from integration.models import instance_to_dict
from observability import widget_instances_hot_swapped

from ..command_handler_base import CommandHandlerBase
from .instance_connections import detach_connections_async

log = logging.getLogger(__name__)


@dataclass
class HotSwapWidgetCommand(Command[OperationResult[dict[str, Any]]]):
    """Command to replace the definition behind a live widget instance.

    The instance keeps its id, layout, state and configuration overrides.
    Connections whose ports the new definition no longer offers, or offers
    in the wrong direction, are removed.
    """

    instance_id: str
    new_widget_id: str
    user_info: dict[str, Any] | None = None


class HotSwapWidgetCommandHandler(
    CommandHandlerBase,
    CommandHandler[HotSwapWidgetCommand, OperationResult[dict[str, Any]]],
):
    def __init__(
        self,
        mediator: Mediator,
        mapper: Mapper,
        cloud_event_bus: CloudEventBus,
        cloud_event_publishing_options: CloudEventPublishingOptions,
        definition_repository: WidgetDefinitionRepository,
        instance_repository: WidgetInstanceRepository,
        component_catalog: WidgetComponentCatalog,
        communication_service: WidgetCommunicationService,
        event_bus: WidgetEventBus,
    ):
        super().__init__(mediator, mapper, cloud_event_bus, cloud_event_publishing_options)
        self.definition_repository = definition_repository
        self.instance_repository = instance_repository
        self.component_catalog = component_catalog
        self.communication_service = communication_service
        self.event_bus = event_bus

    async def handle_async(self, request: HotSwapWidgetCommand) -> OperationResult[dict[str, Any]]:
        command = request

        instance = await self.instance_repository.get_async(command.instance_id)
        if instance is None:
            return self.not_found(WidgetInstance, command.instance_id)
        definition = await self.definition_repository.get_async(command.new_widget_id)
        if definition is None or not definition.is_available_to(instance.state.tenant_id):
            return self.not_found(WidgetDefinition, command.new_widget_id)

        try:
            component = self.component_catalog.load(definition)
        except WidgetComponentNotFoundError as e:
            await self.event_bus.publish(
                WidgetEvents.WIDGET_ERROR,
                source=instance.id(),
                data={"instance_id": instance.id(), "widget_id": command.new_widget_id, "error": e.message},
                tenant_id=instance.state.tenant_id,
            )
            return self.bad_request(e.message)

        old_widget_id = instance.state.widget_id
        instance.hot_swap(
            new_widget_id=definition.id(),
            version=definition.state.version,
            default_config={**component.default_config(), **definition.state.default_config},
        )
        instance.mark_loaded(definition.state.component)

        # Ports follow the new definition, connections they can no longer carry are dropped
        dropped = await self.communication_service.register_widget(instance.id(), definition.get_ports())
        await detach_connections_async(self.instance_repository, dropped, loaded=[instance])
        await self.instance_repository.update_async(instance)
        if dropped:
            log.info(f"Hot swap of {instance.id()} dropped {len(dropped)} connection(s)")

        widget_instances_hot_swapped.add(1, {"component": definition.state.component})
        await self.event_bus.publish(
            WidgetEvents.WIDGET_HOT_SWAPPED,
            source=instance.id(),
            data={"instance_id": instance.id(), "old_widget_id": old_widget_id, "new_widget_id": definition.id(), "version": definition.state.version},
            tenant_id=instance.state.tenant_id,
            user_id=self._get_user_id(command.user_info),
        )
        log.info(f"Widget instance {instance.id()} hot swapped from {old_widget_id} to {definition.id()}")
        return self.ok(instance_to_dict(instance))
