"""Communication API controller.

Provides endpoints for:
- Registering widgets and their ports with the communication system
- Connecting widgets
- Sending, broadcasting and receiving messages
- Applying collaborative operations
- Message history and delivery metrics
"""

from typing import Any

from classy_fastapi.decorators import get, post
from fastapi import Query
from neuroglia.dependency_injection import ServiceProviderBase
from neuroglia.mapping import Mapper
from neuroglia.mediation import Mediator
from neuroglia.mvc import ControllerBase
from pydantic import BaseModel, ConfigDict, Field

from api.responses import envelope
from application.commands import (
    ApplyCollaborativeOperationCommand,
    BroadcastMessageCommand,
    CreateConnectionCommand,
    ReceiveWidgetMessagesCommand,
    RegisterCommunicationWidgetCommand,
    SendMessageCommand,
)
from application.queries import GetCommunicationMetricsQuery, GetMessageHistoryQuery

# ============================================================================
# REQUEST MODELS
# ============================================================================


class RegisterWidgetRequest(BaseModel):
    widget_id: str = Field(..., description="Widget (or widget instance) id")
    ports: list[dict[str, Any]] = Field(default_factory=list, description="Ports: name, type (input/output/bidirectional), data_type")
    auto_connect: bool = Field(default=False, description="Connect output ports to compatible input ports of other widgets")
    topics: list[str] = Field(default_factory=list, description="Topics to subscribe to")


class CreateConnectionRequest(BaseModel):
    source_widget: str
    source_port: str
    target_widget: str
    target_port: str
    connection_type: str = Field(default="data", description="data, event, state or stream")
    config: dict[str, Any] | None = Field(default=None, description="buffering, throttling, transformation, validation")
    canvas_id: str = Field(default="default")
    tenant_id: str = Field(default="default")


class SendMessageRequest(BaseModel):
    """Message envelope as sent by widgets."""

    model_config = ConfigDict(populate_by_name=True)

    from_widget: str = Field(..., alias="from")
    to_widget: str | None = Field(default=None, alias="to")
    message_type: str = Field(..., alias="type")
    payload: dict[str, Any] = Field(default_factory=dict)
    priority: str = Field(default="normal", description="low, normal, high or critical")
    ttl: int | None = Field(default=None, description="Time to live in seconds")
    strategy: str | None = Field(default=None, description="direct, broadcast, topic or pattern")
    topic: str | None = None
    pattern: str | None = Field(default=None, description="Glob on widget ids, or 'regex:<expression>'")
    filters: list[dict[str, Any]] = Field(default_factory=list)
    collaboration: dict[str, Any] | None = None
    tenant_id: str = Field(default="default")


class BroadcastMessageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_widget: str = Field(..., alias="from")
    message_type: str = Field(..., alias="type")
    payload: dict[str, Any] = Field(default_factory=dict)
    filters: list[dict[str, Any]] = Field(default_factory=list)
    priority: str = Field(default="normal")
    ttl: int | None = None
    tenant_id: str = Field(default="default")


class CollaborativeOperationRequest(BaseModel):
    type: str = Field(..., description="insert, delete, update, move or resize")
    widget_id: str
    session_id: str
    user_id: str | None = None
    operation: dict[str, Any] = Field(default_factory=dict, description="path, old_value, new_value, position")
    transform: dict[str, Any] = Field(default_factory=dict, description="base_version, dependencies")
    queued: bool = Field(default=False, description="Apply on the next collaboration cycle instead of inline")


# ============================================================================
# CONTROLLER
# ============================================================================


class CommunicationController(ControllerBase):
    """Controller for real-time widget communication."""

    def __init__(self, service_provider: ServiceProviderBase, mapper: Mapper, mediator: Mediator):
        super().__init__(service_provider, mapper, mediator)

    @post("/widgets")
    async def register_widget(self, request: RegisterWidgetRequest):
        command = RegisterCommunicationWidgetCommand(**request.model_dump())
        return envelope(await self.mediator.execute_async(command))

    @post("/connections")
    async def create_connection(self, request: CreateConnectionRequest):
        command = CreateConnectionCommand(**request.model_dump())
        return envelope(await self.mediator.execute_async(command))

    @post("/messages")
    async def send_message(self, request: SendMessageRequest):
        """Send a message; delivery happens asynchronously on the next queue cycle."""
        command = SendMessageCommand(**request.model_dump())
        return envelope(await self.mediator.execute_async(command))

    @post("/broadcast")
    async def broadcast_message(self, request: BroadcastMessageRequest):
        command = BroadcastMessageCommand(**request.model_dump())
        return envelope(await self.mediator.execute_async(command))

    @get("/messages")
    async def get_message_history(
        self,
        widget_id: str | None = Query(None),
        message_type: str | None = Query(None, alias="type"),
        limit: int = Query(50, ge=1, le=500),
    ):
        query = GetMessageHistoryQuery(widget_id=widget_id, message_type=message_type, limit=limit)
        return envelope(await self.mediator.execute_async(query))

    @get("/widgets/{widget_id}/inbox")
    async def receive_messages(self, widget_id: str, limit: int | None = Query(None, ge=1)):
        """Pull delivered messages; returned messages are acknowledged."""
        return envelope(await self.mediator.execute_async(ReceiveWidgetMessagesCommand(widget_id=widget_id, limit=limit)))

    @post("/operations")
    async def apply_operation(self, request: CollaborativeOperationRequest):
        command = ApplyCollaborativeOperationCommand(**request.model_dump())
        return envelope(await self.mediator.execute_async(command))

    @get("/metrics")
    async def get_metrics(self, widget_id: str | None = Query(None)):
        return envelope(await self.mediator.execute_async(GetCommunicationMetricsQuery(widget_id=widget_id)))
