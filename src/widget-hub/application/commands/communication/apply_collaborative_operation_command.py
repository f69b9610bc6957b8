"""Apply collaborative operation command with handler."""

import logging
from dataclasses import dataclass, field
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_bus import CloudEventBus
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_publisher import CloudEventPublishingOptions
from neuroglia.mapping import Mapper
from neuroglia.mediation import Command, CommandHandler, Mediator

from application.services import WidgetCommunicationService
from domain.models import CollaborativeOperation

from ..command_handler_base import CommandHandlerBase

log = logging.getLogger(__name__)


@dataclass
class ApplyCollaborativeOperationCommand(Command[OperationResult[dict[str, Any]]]):
    """Command to apply an edit made within a collaboration session.

    The submitting widget joins the session. With queued the operation is
    left to the next collaboration cycle instead of being applied inline.
    """

    type: str
    widget_id: str
    session_id: str
    operation: dict[str, Any] = field(default_factory=dict)
    transform: dict[str, Any] = field(default_factory=dict)
    user_id: str | None = None
    queued: bool = False
    user_info: dict[str, Any] | None = None


class ApplyCollaborativeOperationCommandHandler(
    CommandHandlerBase,
    CommandHandler[ApplyCollaborativeOperationCommand, OperationResult[dict[str, Any]]],
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

    async def handle_async(self, request: ApplyCollaborativeOperationCommand) -> OperationResult[dict[str, Any]]:
        command = request

        try:
            operation = CollaborativeOperation.from_dict(
                {
                    "type": command.type,
                    "widget_id": command.widget_id,
                    "user_id": command.user_id or self._get_user_id(command.user_info),
                    "session_id": command.session_id,
                    "operation": command.operation,
                    "transform": command.transform,
                }
            )
        except (KeyError, ValueError) as e:
            return self.bad_request(f"Invalid operation: {e}")

        self.communication_service.join_session(operation.session_id, operation.widget_id)

        if command.queued:
            self.communication_service.submit_operation(operation)
            return self.ok({**operation.to_dict(), "queued": True})

        if not await self.communication_service.apply_operation(operation):
            reason = operation.rejected.reason if operation.rejected else "Operation was not applied"
            log.info(f"Operation {operation.id} rejected: {reason}")
            return self.bad_request(reason)
        return self.ok(operation.to_dict())
