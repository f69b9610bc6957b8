"""Register widget definition command with handler.

Registers (or revises) a widget definition in the catalog and makes its
ports known to the communication system.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_bus import CloudEventBus
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_publisher import CloudEventPublishingOptions
from neuroglia.mapping import Mapper
from neuroglia.mediation import Command, CommandHandler, Mediator

from application.services import WidgetCommunicationService, WidgetComponentCatalog, WidgetEventBus, WidgetEvents
from domain.entities import WidgetDefinition
from domain.enums import WidgetCategory
from domain.exceptions import WidgetDefinitionValidationError
from domain.models import WidgetPort
from domain.repositories import WidgetDefinitionRepository
from integration.models import definition_to_dict
from observability import widget_definitions_registered

from ..command_handler_base import CommandHandlerBase

log = logging.getLogger(__name__)


@dataclass
class RegisterWidgetDefinitionCommand(Command[OperationResult[dict[str, Any]]]):
    """Command to register a widget definition.

    Registering an existing id revises the definition in place.
    """

    id: str
    name: str
    version: str
    component: str
    category: str = WidgetCategory.CUSTOM.value
    description: str = ""
    author: str = ""
    tags: list[str] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    config_schema: Any = None
    default_config: dict[str, Any] = field(default_factory=dict)
    icon: str | None = None
    dimensions: dict[str, Any] | None = None
    capabilities: list[str] = field(default_factory=list)
    ports: list[dict[str, Any]] = field(default_factory=list)
    security: dict[str, Any] | None = None
    tenant_id: str = "default"
    is_public: bool = False
    user_info: dict[str, Any] | None = None


class RegisterWidgetDefinitionCommandHandler(
    CommandHandlerBase,
    CommandHandler[RegisterWidgetDefinitionCommand, OperationResult[dict[str, Any]]],
):
    """Handle widget definition registration."""

    def __init__(
        self,
        mediator: Mediator,
        mapper: Mapper,
        cloud_event_bus: CloudEventBus,
        cloud_event_publishing_options: CloudEventPublishingOptions,
        definition_repository: WidgetDefinitionRepository,
        component_catalog: WidgetComponentCatalog,
        communication_service: WidgetCommunicationService,
        event_bus: WidgetEventBus,
    ):
        super().__init__(mediator, mapper, cloud_event_bus, cloud_event_publishing_options)
        self.definition_repository = definition_repository
        self.component_catalog = component_catalog
        self.communication_service = communication_service
        self.event_bus = event_bus

    async def handle_async(self, request: RegisterWidgetDefinitionCommand) -> OperationResult[dict[str, Any]]:
        command = request

        if not self.component_catalog.is_known(command.component):
            return self.bad_request(f"Unknown widget component: {command.component}. Available: {', '.join(self.component_catalog.available())}")

        try:
            ports = [WidgetPort.from_dict(port) for port in command.ports]
        except (KeyError, ValueError) as e:
            return self.bad_request(f"Invalid port declaration: {e}")

        fields = {
            "name": command.name,
            "version": command.version,
            "component": command.component,
            "category": command.category,
            "description": command.description,
            "author": command.author or self._get_user_id(command.user_info, default=""),
            "tags": command.tags,
            "dependencies": command.dependencies,
            "config_schema": command.config_schema,
            "default_config": command.default_config,
            "icon": command.icon,
            "dimensions": command.dimensions,
            "capabilities": command.capabilities,
            "ports": ports,
            "security": command.security,
            "tenant_id": command.tenant_id,
            "is_public": command.is_public,
        }

        existing = await self.definition_repository.get_async(command.id) if command.id else None
        try:
            if existing is None:
                definition = WidgetDefinition.register(definition_id=command.id, **fields)
            else:
                definition = existing
                definition.revise(**fields)
        except WidgetDefinitionValidationError as e:
            log.warning(f"Widget definition {command.id} rejected: {e.message}")
            return self.bad_request(e.message)

        if existing is None:
            await self.definition_repository.add_async(definition)
        else:
            await self.definition_repository.update_async(definition)
        widget_definitions_registered.add(1, {"category": command.category, "revised": str(existing is not None).lower()})

        await self.communication_service.register_widget(command.id, ports)
        await self.event_bus.publish(
            WidgetEvents.WIDGET_LOADED,
            source=command.id,
            data={"widget_id": command.id, "version": command.version, "component": command.component},
            tenant_id=command.tenant_id,
        )
        log.info(f"Widget definition {command.id}@{command.version} {'revised' if existing else 'registered'}")
        return self.ok(definition_to_dict(definition))
