"""Analyze behavior command with handler."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from neuroglia.core import OperationResult
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_bus import CloudEventBus
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_publisher import CloudEventPublishingOptions
from neuroglia.mapping import Mapper
from neuroglia.mediation import Command, CommandHandler, Mediator

from application.events.integration import BehavioralRiskDetectedIntegrationEventV1
from application.services import BehavioralAnalyticsEngine
from domain.models import BehavioralMetrics

from ..command_handler_base import CommandHandlerBase

log = logging.getLogger(__name__)


@dataclass
class AnalyzeBehaviorCommand(Command[OperationResult[dict[str, Any]]]):
    """Command to score a behavioral sample of a user session."""

    user_id: str
    metrics: dict[str, Any] = field(default_factory=dict)
    session_id: str = "unknown"
    tenant_id: str = "default"


class AnalyzeBehaviorCommandHandler(
    CommandHandlerBase,
    CommandHandler[AnalyzeBehaviorCommand, OperationResult[dict[str, Any]]],
):
    """Run the analysis and raise a risk CloudEvent when anomalies are found."""

    def __init__(
        self,
        mediator: Mediator,
        mapper: Mapper,
        cloud_event_bus: CloudEventBus,
        cloud_event_publishing_options: CloudEventPublishingOptions,
        analytics_engine: BehavioralAnalyticsEngine,
    ):
        super().__init__(mediator, mapper, cloud_event_bus, cloud_event_publishing_options)
        self.analytics_engine = analytics_engine

    async def handle_async(self, request: AnalyzeBehaviorCommand) -> OperationResult[dict[str, Any]]:
        command = request
        if not command.user_id or not command.metrics:
            return self.bad_request("Missing required fields: user_id, metrics")

        try:
            metrics = BehavioralMetrics.from_dict(command.metrics)
        except (TypeError, ValueError) as e:
            return self.bad_request(f"Invalid behavioral metrics: {e}")

        result = await self.analytics_engine.analyze_behavior(command.user_id, metrics, command.session_id, command.tenant_id)

        if result.anomalies:
            await self.publish_cloud_event_async(
                BehavioralRiskDetectedIntegrationEventV1(
                    aggregate_id=command.user_id,
                    session_id=command.session_id,
                    risk_score=result.risk_score,
                    continuous_auth_score=result.continuous_auth_score,
                    detected_at=datetime.now(UTC),
                    anomaly_types=sorted({a.type.value for a in result.anomalies}),
                    recommendations=list(result.recommendations),
                )
            )

        return self.ok(result.to_dict())
