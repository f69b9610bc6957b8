"""Domain events for the BehavioralProfile aggregate."""

from dataclasses import dataclass
from datetime import datetime

from neuroglia.data.abstractions import DomainEvent
from neuroglia.eventing.cloud_events.decorators import cloudevent


@cloudevent("behavior.profile.created.v1")
@dataclass
class BehavioralProfileCreatedDomainEvent(DomainEvent):
    """Event raised the first time a user's behavior is analyzed."""

    aggregate_id: str  # user id
    tenant_id: str
    created_at: datetime

    def __init__(self, aggregate_id: str, tenant_id: str, created_at: datetime) -> None:
        super().__init__(aggregate_id)
        self.aggregate_id = aggregate_id
        self.tenant_id = tenant_id
        self.created_at = created_at


@cloudevent("behavior.profile.analyzed.v1")
@dataclass
class BehavioralProfileAnalyzedDomainEvent(DomainEvent):
    """Event raised when a live sample has been scored and folded into the baseline."""

    aggregate_id: str
    session_id: str
    baseline_metrics: dict
    confidence: float
    learning_phase: bool
    risk_score: float
    anomalies: list[dict]
    analyzed_at: datetime

    def __init__(
        self,
        aggregate_id: str,
        session_id: str,
        baseline_metrics: dict,
        confidence: float,
        learning_phase: bool,
        risk_score: float,
        anomalies: list[dict],
        analyzed_at: datetime,
    ) -> None:
        super().__init__(aggregate_id)
        self.aggregate_id = aggregate_id
        self.session_id = session_id
        self.baseline_metrics = baseline_metrics
        self.confidence = confidence
        self.learning_phase = learning_phase
        self.risk_score = risk_score
        self.anomalies = anomalies
        self.analyzed_at = analyzed_at
