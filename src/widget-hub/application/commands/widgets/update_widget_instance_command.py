"""Update widget instance command with handler."""

import logging
from dataclasses import dataclass
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_bus import CloudEventBus
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_publisher import CloudEventPublishingOptions
from neuroglia.mapping import Mapper
from neuroglia.mediation import Command, CommandHandler, Mediator

from application.services import WidgetComponentCatalog, WidgetEventBus, WidgetEvents
from domain.entities import WidgetInstance
from domain.exceptions import WidgetComponentNotFoundError
from domain.repositories import WidgetDefinitionRepository, WidgetInstanceRepository
from integration.models import instance_to_dict

from ..command_handler_base import CommandHandlerBase

log = logging.getLogger(__name__)


@dataclass
class UpdateWidgetInstanceCommand(Command[OperationResult[dict[str, Any]]]):
    """Command to change the configuration or layout of a widget instance.

    ``config`` is merged over the current configuration; omitted fields are left unchanged.
    """

    instance_id: str
    config: dict[str, Any] | None = None
    position: dict[str, Any] | None = None
    size: dict[str, Any] | None = None
    is_visible: bool | None = None
    is_locked: bool | None = None
    parent_id: str | None = None
    """New container instance; an empty string detaches the instance."""

    user_info: dict[str, Any] | None = None


class UpdateWidgetInstanceCommandHandler(
    CommandHandlerBase,
    CommandHandler[UpdateWidgetInstanceCommand, OperationResult[dict[str, Any]]],
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
        event_bus: WidgetEventBus,
    ):
        super().__init__(mediator, mapper, cloud_event_bus, cloud_event_publishing_options)
        self.definition_repository = definition_repository
        self.instance_repository = instance_repository
        self.component_catalog = component_catalog
        self.event_bus = event_bus

    async def handle_async(self, request: UpdateWidgetInstanceCommand) -> OperationResult[dict[str, Any]]:
        command = request

        instance = await self.instance_repository.get_async(command.instance_id)
        if instance is None:
            return self.not_found(WidgetInstance, command.instance_id)
        if instance.state.is_locked and command.is_locked is not False:
            return self.bad_request(f"Widget instance {command.instance_id} is locked")

        parent = None
        if command.parent_id:
            if command.parent_id == instance.id():
                return self.bad_request("A widget instance cannot contain itself")
            parent = await self.instance_repository.get_async(command.parent_id)
            if parent is None:
                return self.not_found(WidgetInstance, command.parent_id)

        config = None
        if command.config is not None:
            config = {**instance.state.config, **command.config}
            definition = await self.definition_repository.get_async(instance.state.widget_id)
            if definition is not None:
                try:
                    errors = self.component_catalog.load(definition).validate_config(config)
                except WidgetComponentNotFoundError as e:
                    return self.bad_request(e.message)
                if errors:
                    return self.bad_request(f"Invalid widget configuration: {'; '.join(errors)}")

        changed = instance.configure(
            config=config,
            position=command.position,
            size=command.size,
            is_visible=command.is_visible,
            is_locked=command.is_locked,
            parent_id=command.parent_id,
        )
        if not changed:
            return self.ok(instance_to_dict(instance))

        await self.instance_repository.update_async(instance)
        if parent is not None:
            parent.attach_child(instance.id())
            await self.instance_repository.update_async(parent)

        await self.event_bus.publish(
            WidgetEvents.WIDGET_CONFIGURED,
            source=instance.id(),
            data={"instance_id": instance.id(), "widget_id": instance.state.widget_id, "config": instance.state.config},
            tenant_id=instance.state.tenant_id,
            user_id=self._get_user_id(command.user_info),
        )
        log.debug(f"Widget instance {instance.id()} updated")
        return self.ok(instance_to_dict(instance))
