"""Create connection command with handler."""

import logging
from dataclasses import dataclass
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_bus import CloudEventBus
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_publisher import CloudEventPublishingOptions
from neuroglia.mapping import Mapper
from neuroglia.mediation import Command, CommandHandler, Mediator

from application.services import WidgetCommunicationService
from domain.enums import ConnectionType
from domain.exceptions import DomainError
from domain.models import ConnectionConfig
from domain.repositories import WidgetInstanceRepository

from ..command_handler_base import CommandHandlerBase

log = logging.getLogger(__name__)


@dataclass
class CreateConnectionCommand(Command[OperationResult[dict[str, Any]]]):
    """Command to connect an output port of one widget to an input port of another."""

    source_widget: str
    source_port: str
    target_widget: str
    target_port: str
    connection_type: str = ConnectionType.DATA.value
    config: dict[str, Any] | None = None
    canvas_id: str = "default"
    tenant_id: str = "default"


class CreateConnectionCommandHandler(
    CommandHandlerBase,
    CommandHandler[CreateConnectionCommand, OperationResult[dict[str, Any]]],
):
    """Create the connection, then attach it to the persisted instances it links, if any."""

    def __init__(
        self,
        mediator: Mediator,
        mapper: Mapper,
        cloud_event_bus: CloudEventBus,
        cloud_event_publishing_options: CloudEventPublishingOptions,
        communication_service: WidgetCommunicationService,
        instance_repository: WidgetInstanceRepository,
    ):
        super().__init__(mediator, mapper, cloud_event_bus, cloud_event_publishing_options)
        self.communication_service = communication_service
        self.instance_repository = instance_repository

    async def handle_async(self, request: CreateConnectionCommand) -> OperationResult[dict[str, Any]]:
        command = request

        try:
            connection_type = ConnectionType(command.connection_type)
        except ValueError:
            return self.bad_request(f"Unknown connection type: {command.connection_type}")

        try:
            connection_id = await self.communication_service.create_connection(
                source_widget=command.source_widget,
                source_port=command.source_port,
                target_widget=command.target_widget,
                target_port=command.target_port,
                connection_type=connection_type,
                config=ConnectionConfig.from_dict(command.config),
                canvas_id=command.canvas_id,
                tenant_id=command.tenant_id,
            )
        except DomainError as e:
            log.warning(f"Connection {command.source_widget}.{command.source_port} -> {command.target_widget}.{command.target_port} rejected: {e.message}")
            return self.bad_request(e.message)

        for widget_id in (command.source_widget, command.target_widget):
            instance = await self.instance_repository.get_async(widget_id)
            if instance is not None:
                instance.attach_connection(connection_id)
                await self.instance_repository.update_async(instance)

        connection = self.communication_service.get_connection(connection_id)
        return self.ok(connection.to_dict() if connection else {"id": connection_id})
