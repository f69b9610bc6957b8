"""Generate recommendations command with handler.

Asks the chat completion endpoint for analyst recommendations about a set of
business data.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_bus import CloudEventBus
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_publisher import CloudEventPublishingOptions
from neuroglia.mapping import Mapper
from neuroglia.mediation import Command, CommandHandler, Mediator

from infrastructure.adapters import ChatCompletionClient, LlmClientError

from ..command_handler_base import CommandHandlerBase

log = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an enterprise analytics assistant. "
    "Provide detailed, actionable recommendations based on the data and context provided. "
    "Use bullet points and clear sections."
)


def build_recommendation_messages(analysis_type: str, context: str | None, data: dict[str, Any] | None) -> list[dict[str, str]]:
    """Build the conversation sent to the chat completion endpoint."""
    prompt = context or f"Analyze the following {analysis_type} data and provide recommendations:"
    body = json.dumps(data or {}, indent=2, default=str)
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": f"{prompt}\n\nAnalysis type: {analysis_type}\n\nData:\n{body}"},
    ]


@dataclass
class GenerateRecommendationsCommand(Command[OperationResult[dict[str, Any]]]):
    analysis_type: str = "general"
    context: str | None = None
    data: dict[str, Any] = field(default_factory=dict)


class GenerateRecommendationsCommandHandler(
    CommandHandlerBase,
    CommandHandler[GenerateRecommendationsCommand, OperationResult[dict[str, Any]]],
):
    def __init__(
        self,
        mediator: Mediator,
        mapper: Mapper,
        cloud_event_bus: CloudEventBus,
        cloud_event_publishing_options: CloudEventPublishingOptions,
        chat_client: ChatCompletionClient,
    ):
        super().__init__(mediator, mapper, cloud_event_bus, cloud_event_publishing_options)
        self.chat_client = chat_client

    async def handle_async(self, request: GenerateRecommendationsCommand) -> OperationResult[dict[str, Any]]:
        command = request
        messages = build_recommendation_messages(command.analysis_type, command.context, command.data)
        try:
            content = await self.chat_client.complete(messages)
        except LlmClientError as e:
            log.error(f"Failed to generate {command.analysis_type} recommendations: {e.message} ({e.error_code})")
            return self.internal_server_error("Failed to generate recommendations")

        return self.ok({"analysis_type": command.analysis_type, "model": self.chat_client.model, "content": content})
