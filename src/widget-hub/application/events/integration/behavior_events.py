from dataclasses import dataclass, field
from datetime import datetime

from neuroglia.eventing.cloud_events.decorators import cloudevent
from neuroglia.integration.models import IntegrationEvent


@cloudevent("behavior.risk.detected.v1")
@dataclass
class BehavioralRiskDetectedIntegrationEventV1(IntegrationEvent[str]):
    """Outgoing CloudEvent raised when an analysis flags anomalies for a user."""

    aggregate_id: str  # user id
    session_id: str
    risk_score: float
    continuous_auth_score: float
    detected_at: datetime
    anomaly_types: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
