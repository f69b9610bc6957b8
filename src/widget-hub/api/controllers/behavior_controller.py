"""Behavioral analytics API controller."""

from typing import Any

from classy_fastapi.decorators import get, post
from neuroglia.dependency_injection import ServiceProviderBase
from neuroglia.mapping import Mapper
from neuroglia.mediation import Mediator
from neuroglia.mvc import ControllerBase
from pydantic import BaseModel, Field

from api.responses import envelope, error
from application.commands import AnalyzeBehaviorCommand
from application.queries import GetBehavioralProfileQuery


class AnalyzeBehaviorRequest(BaseModel):
    user_id: str | None = None
    metrics: dict[str, Any] | None = Field(
        default=None,
        description="keystroke_dynamics, mouse_movement, navigation_patterns, time_patterns, device_interaction, application_usage",
    )
    session_id: str = Field(default="unknown")
    tenant_id: str = Field(default="default")


class BehaviorController(ControllerBase):
    """Controller for continuous behavioral authentication."""

    def __init__(self, service_provider: ServiceProviderBase, mapper: Mapper, mediator: Mediator):
        super().__init__(service_provider, mapper, mediator)

    @post("/analyze")
    async def analyze(self, request: AnalyzeBehaviorRequest):
        """Score a behavioral sample against the user's baseline and learn from it."""
        if not request.user_id or not request.metrics:
            return error(400, "Missing required fields: user_id, metrics")
        command = AnalyzeBehaviorCommand(
            user_id=request.user_id,
            metrics=request.metrics,
            session_id=request.session_id,
            tenant_id=request.tenant_id,
        )
        return envelope(await self.mediator.execute_async(command))

    @get("/profiles/{user_id}")
    async def get_profile(self, user_id: str):
        return envelope(await self.mediator.execute_async(GetBehavioralProfileQuery(user_id=user_id)))
