"""Recommendations API controller.

Relays analyst recommendations from the chat completion endpoint, either as a
whole (``POST /``) or as server-sent events (``POST /stream``):

    data: {"content": "..."}
    data: [DONE]
"""

import json
import logging
from typing import Any

from classy_fastapi.decorators import post
from fastapi.responses import StreamingResponse
from neuroglia.dependency_injection import ServiceProviderBase
from neuroglia.mapping import Mapper
from neuroglia.mediation import Mediator
from neuroglia.mvc import ControllerBase
from pydantic import BaseModel, Field

from api.responses import envelope
from application.commands import GenerateRecommendationsCommand, build_recommendation_messages
from infrastructure.adapters import ChatCompletionClient, LlmClientError

logger = logging.getLogger(__name__)


class RecommendationsRequest(BaseModel):
    analysis_type: str = Field(default="general", description="Kind of analysis, e.g. revenue, operations, security")
    context: str | None = Field(default=None, description="Question or instructions for the analyst")
    data: dict[str, Any] = Field(default_factory=dict, description="Business data to analyze")


class RecommendationsController(ControllerBase):
    def __init__(self, service_provider: ServiceProviderBase, mapper: Mapper, mediator: Mediator):
        super().__init__(service_provider, mapper, mediator)

    @post("/")
    async def generate(self, request: RecommendationsRequest):
        command = GenerateRecommendationsCommand(analysis_type=request.analysis_type, context=request.context, data=request.data)
        return envelope(await self.mediator.execute_async(command))

    @post("/stream", response_class=StreamingResponse)
    async def stream(self, request: RecommendationsRequest):
        """Stream recommendations as server-sent events."""
        chat_client = self.service_provider.get_required_service(ChatCompletionClient)
        messages = build_recommendation_messages(request.analysis_type, request.context, request.data)

        async def event_generator():
            try:
                async for chunk in chat_client.stream_chat(messages):
                    yield f"data: {json.dumps({'content': chunk})}\n\n"
            except LlmClientError as e:
                logger.error(f"Recommendation stream failed: {e.message} ({e.error_code})")
                yield f"data: {json.dumps({'error': 'Failed to generate recommendations'})}\n\n"
            yield "data: [DONE]\n\n"

        return StreamingResponse(
            event_generator(),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",
            },
        )
