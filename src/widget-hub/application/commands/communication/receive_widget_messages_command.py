"""Receive widget messages command with handler."""

from dataclasses import dataclass
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_bus import CloudEventBus
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_publisher import CloudEventPublishingOptions
from neuroglia.mapping import Mapper
from neuroglia.mediation import Command, CommandHandler, Mediator

from application.services import WidgetCommunicationService
from domain.exceptions import WidgetNotRegisteredError

from ..command_handler_base import CommandHandlerBase


@dataclass
class ReceiveWidgetMessagesCommand(Command[OperationResult[dict[str, Any]]]):
    """Command to pull the delivered messages waiting in a widget's inbox.

    Returned messages are acknowledged and leave the queue.
    """

    widget_id: str
    limit: int | None = None


class ReceiveWidgetMessagesCommandHandler(
    CommandHandlerBase,
    CommandHandler[ReceiveWidgetMessagesCommand, OperationResult[dict[str, Any]]],
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

    async def handle_async(self, request: ReceiveWidgetMessagesCommand) -> OperationResult[dict[str, Any]]:
        command = request
        try:
            messages = await self.communication_service.receive_messages(command.widget_id, command.limit)
        except WidgetNotRegisteredError as e:
            return self.bad_request(e.message)
        return self.ok({"widget_id": command.widget_id, "messages": [m.to_dict() for m in messages], "count": len(messages)})
