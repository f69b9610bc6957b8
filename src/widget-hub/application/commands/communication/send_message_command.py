"""Send message command with handler."""

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
from domain.enums import MessagePriority, RoutingStrategy
from domain.exceptions import DomainError
from domain.models import CollaborationInfo, MessageFilter

from ..command_handler_base import CommandHandlerBase

log = logging.getLogger(__name__)


def parse_filters(filters: list[dict[str, Any]] | None) -> list[MessageFilter]:
    return [MessageFilter.from_dict(f) for f in filters or []]


@dataclass
class SendMessageCommand(Command[OperationResult[dict[str, Any]]]):
    """Command to send a message from one widget.

    to_widget is required for direct routing; topic, broadcast and pattern
    routing resolve their recipients at send time.
    """

    from_widget: str
    message_type: str
    to_widget: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    priority: str = MessagePriority.NORMAL.value
    ttl: int | None = None
    strategy: str | None = None
    topic: str | None = None
    pattern: str | None = None
    filters: list[dict[str, Any]] = field(default_factory=list)
    collaboration: dict[str, Any] | None = None
    tenant_id: str = "default"
    user_info: dict[str, Any] | None = None


class SendMessageCommandHandler(
    CommandHandlerBase,
    CommandHandler[SendMessageCommand, OperationResult[dict[str, Any]]],
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

    async def handle_async(self, request: SendMessageCommand) -> OperationResult[dict[str, Any]]:
        command = request

        try:
            priority = MessagePriority(command.priority)
            strategy = RoutingStrategy(command.strategy) if command.strategy else None
            filters = parse_filters(command.filters)
        except (KeyError, ValueError) as e:
            return self.bad_request(f"Invalid message: {e}")
        except DomainError as e:
            return self.bad_request(e.message)

        collaboration = None
        if command.collaboration:
            if not command.collaboration.get("session_id"):
                return self.bad_request("collaboration.session_id is required")
            user_id = self._get_user_id(command.user_info)
            collaboration = CollaborationInfo(
                session_id=command.collaboration["session_id"],
                user_id=command.collaboration.get("user_id") or user_id,
                operation_id=command.collaboration.get("operation_id"),
            )

        try:
            message_id = await self.communication_service.send_message(
                from_widget=command.from_widget,
                to_widget=command.to_widget,
                message_type=command.message_type,
                payload=command.payload,
                priority=priority,
                ttl=command.ttl,
                strategy=strategy,
                topic=command.topic,
                pattern=command.pattern,
                filters=filters,
                collaboration=collaboration,
                tenant_id=command.tenant_id,
                user_id=self._get_user_id(command.user_info, default="") or None,
            )
        except DomainError as e:
            return self.bad_request(e.message)

        return self.ok({"message_id": message_id, "timestamp": datetime.now(UTC).isoformat()})
