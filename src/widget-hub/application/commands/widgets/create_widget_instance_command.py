"""Create widget instance command with handler."""

import logging
from dataclasses import dataclass, field
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_bus import CloudEventBus
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_publisher import CloudEventPublishingOptions
from neuroglia.mapping import Mapper
from neuroglia.mediation import Command, CommandHandler, Mediator

from application.services import WidgetCommunicationService, WidgetComponentCatalog, WidgetEventBus, WidgetEvents
from domain.entities import WidgetDefinition, WidgetInstance
from domain.enums import WidgetStatus
from domain.exceptions import WidgetComponentNotFoundError
from domain.repositories import WidgetDefinitionRepository, WidgetInstanceRepository
from integration.models import instance_to_dict
from observability import widget_instances_created

from ..command_handler_base import CommandHandlerBase

log = logging.getLogger(__name__)


@dataclass
class CreateWidgetInstanceCommand(Command[OperationResult[dict[str, Any]]]):
    """Command to place a widget on a canvas."""

    widget_id: str
    canvas_id: str = "default"
    config: dict[str, Any] = field(default_factory=dict)
    position: dict[str, Any] | None = None
    size: dict[str, Any] | None = None
    parent_id: str | None = None
    tenant_id: str = "default"
    created_by: str = "system"
    user_info: dict[str, Any] | None = None


class CreateWidgetInstanceCommandHandler(
    CommandHandlerBase,
    CommandHandler[CreateWidgetInstanceCommand, OperationResult[dict[str, Any]]],
):
    """Handle widget instance creation.

    The effective configuration is the component defaults, overridden by the
    definition defaults, overridden by the requested configuration.
    """

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

    async def handle_async(self, request: CreateWidgetInstanceCommand) -> OperationResult[dict[str, Any]]:
        command = request

        definition = await self.definition_repository.get_async(command.widget_id)
        if definition is None or not definition.is_available_to(command.tenant_id):
            return self.not_found(WidgetDefinition, command.widget_id)
        if definition.state.status == WidgetStatus.DEPRECATED.value:
            return self.bad_request(f"Widget {command.widget_id} is deprecated")

        try:
            component = self.component_catalog.load(definition)
        except WidgetComponentNotFoundError as e:
            await self.event_bus.publish(
                WidgetEvents.WIDGET_ERROR,
                source=command.widget_id,
                data={"widget_id": command.widget_id, "error": e.message},
                tenant_id=command.tenant_id,
            )
            return self.bad_request(e.message)

        config = {**component.default_config(), **definition.state.default_config, **command.config}
        errors = component.validate_config(config)
        if errors:
            return self.bad_request(f"Invalid widget configuration: {'; '.join(errors)}")

        parent = None
        if command.parent_id:
            parent = await self.instance_repository.get_async(command.parent_id)
            if parent is None:
                return self.not_found(WidgetInstance, command.parent_id)

        created_by = self._get_user_id(command.user_info, default=command.created_by)
        instance = WidgetInstance.create(
            widget_id=definition.id(),
            version=definition.state.version,
            canvas_id=command.canvas_id,
            config=config,
            size=command.size or definition.default_size(),
            position=command.position,
            parent_id=command.parent_id,
            tenant_id=command.tenant_id,
            created_by=created_by,
        )
        instance.mark_loaded(definition.state.component)
        await self.instance_repository.add_async(instance)

        if parent is not None:
            parent.attach_child(instance.id())
            await self.instance_repository.update_async(parent)

        await self.communication_service.register_widget(instance.id(), definition.get_ports())
        widget_instances_created.add(1, {"component": definition.state.component})
        await self.event_bus.publish(
            WidgetEvents.WIDGET_CONFIGURED,
            source=instance.id(),
            data={"instance_id": instance.id(), "widget_id": definition.id(), "canvas_id": command.canvas_id, "config": config},
            tenant_id=command.tenant_id,
            user_id=created_by,
        )
        log.info(f"Widget instance {instance.id()} of {definition.id()} created on canvas {command.canvas_id}")
        return self.ok(instance_to_dict(instance))
