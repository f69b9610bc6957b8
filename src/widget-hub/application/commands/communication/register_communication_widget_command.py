"""Register communication widget command with handler."""

import logging
from dataclasses import dataclass, field
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_bus import CloudEventBus
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_publisher import CloudEventPublishingOptions
from neuroglia.mapping import Mapper
from neuroglia.mediation import Command, CommandHandler, Mediator

from application.services import WidgetCommunicationService
from domain.models import WidgetPort

from ..command_handler_base import CommandHandlerBase

log = logging.getLogger(__name__)


@dataclass
class RegisterCommunicationWidgetCommand(Command[OperationResult[dict[str, Any]]]):
    """Command to make a widget addressable by the communication system."""

    widget_id: str
    ports: list[dict[str, Any]] = field(default_factory=list)
    auto_connect: bool = False
    topics: list[str] = field(default_factory=list)


class RegisterCommunicationWidgetCommandHandler(
    CommandHandlerBase,
    CommandHandler[RegisterCommunicationWidgetCommand, OperationResult[dict[str, Any]]],
):
    def __init__(
        self,
        mediator: Mediator,
        mapper: Mapper,
        cloud_event_bus: CloudEventBus,
        cloud_event_publishing_options: CloudEventPublishingOptions,
        communication_service: WidgetCommunicationService,
    ):
        super().__init__(mediator, mapper, cloud_event_bus, cloud_event_publishing_options)
        self.communication_service = communication_service

    async def handle_async(self, request: RegisterCommunicationWidgetCommand) -> OperationResult[dict[str, Any]]:
        command = request
        if not command.widget_id:
            return self.bad_request("widget_id is required")

        try:
            ports = [WidgetPort.from_dict(port) for port in command.ports]
        except (KeyError, ValueError) as e:
            return self.bad_request(f"Invalid port declaration: {e}")

        await self.communication_service.register_widget(command.widget_id, ports, auto_connect=command.auto_connect)
        for topic in command.topics:
            self.communication_service.subscribe_topic(command.widget_id, topic)

        return self.ok(
            {
                "widget_id": command.widget_id,
                "ports": [port.to_dict() for port in ports],
                "topics": list(command.topics),
                "connections": [c.to_dict() for c in self.communication_service.get_connections(command.widget_id)],
            }
        )
