"""Broadcast message command with handler."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_bus import CloudEventBus
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_publisher import CloudEventPublishingOptions
from neuroglia.mapping import Mapper
from neuroglia.mediation import Command, CommandHandler, Mediator

from application.services import WidgetCommunicationService
from domain.enums import MessagePriority
from domain.exceptions import DomainError

from ..command_handler_base import CommandHandlerBase
from .send_message_command import parse_filters

log = logging.getLogger(__name__)


@dataclass
class BroadcastMessageCommand(Command[OperationResult[dict[str, Any]]]):
    """Command to send a message to every registered widget but the sender."""

    from_widget: str
    message_type: str
    payload: dict[str, Any] = field(default_factory=dict)
    filters: list[dict[str, Any]] = field(default_factory=list)
    priority: str = MessagePriority.NORMAL.value
    ttl: int | None = None
    tenant_id: str = "default"
    user_info: dict[str, Any] | None = None


class BroadcastMessageCommandHandler(
    CommandHandlerBase,
    CommandHandler[BroadcastMessageCommand, OperationResult[dict[str, Any]]],
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

    async def handle_async(self, request: BroadcastMessageCommand) -> OperationResult[dict[str, Any]]:
        command = request

        try:
            priority = MessagePriority(command.priority)
            filters = parse_filters(command.filters)
        except (KeyError, ValueError) as e:
            return self.bad_request(f"Invalid message: {e}")
        except DomainError as e:
            return self.bad_request(e.message)

        try:
            message_id = await self.communication_service.broadcast_message(
                command.from_widget,
                command.message_type,
                command.payload,
                filters,
                priority=priority,
                ttl=command.ttl,
                tenant_id=command.tenant_id,
                user_id=self._get_user_id(command.user_info, default="") or None,
            )
        except DomainError as e:
            return self.bad_request(e.message)

        return self.ok({"message_id": message_id, "timestamp": datetime.now(UTC).isoformat()})
