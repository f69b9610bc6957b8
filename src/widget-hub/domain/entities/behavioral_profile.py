"""BehavioralProfile aggregate definition using the AggregateState pattern.

One profile per user, keyed by the user id. The profile carries the rolling
behavioral baseline, the confidence accumulated over analyses and the most
recent anomalies detected against it.
"""

from datetime import UTC, datetime

from multipledispatch import dispatch
from neuroglia.data.abstractions import AggregateRoot, AggregateState

from domain.events.behavioral_profile import BehavioralProfileAnalyzedDomainEvent, BehavioralProfileCreatedDomainEvent
from domain.models import BehavioralAnomaly, BehavioralMetrics

MAX_STORED_ANOMALIES = 100


class BehavioralProfileState(AggregateState[str]):
    """Encapsulates the persisted state for the BehavioralProfile aggregate.

    Attributes:
        id: The user id
        tenant_id: Owning tenant
        baseline_metrics: BehavioralMetrics.to_dict() of the rolling baseline
        confidence: Confidence in the baseline, 0.0 to 1.0
        learning_phase: True while confidence is below the learning threshold
        risk_score: Risk score of the latest analysis
        analysis_count: Number of analyses folded into the baseline
        anomalies: Most recent BehavioralAnomaly.to_dict() entries, oldest first
    """

    id: str
    tenant_id: str
    baseline_metrics: dict
    confidence: float
    learning_phase: bool
    risk_score: float
    analysis_count: int
    anomalies: list[dict]
    created_at: datetime
    last_analyzed_at: datetime | None

    def __init__(self) -> None:
        super().__init__()
        self.id = ""
        self.tenant_id = "default"
        self.baseline_metrics = BehavioralMetrics().to_dict()
        self.confidence = 0.0
        self.learning_phase = True
        self.risk_score = 0.0
        self.analysis_count = 0
        self.anomalies = []
        self.created_at = datetime.now(UTC)
        self.last_analyzed_at = None

    @dispatch(BehavioralProfileCreatedDomainEvent)
    def on(self, event: BehavioralProfileCreatedDomainEvent) -> None:  # type: ignore[override]
        self.id = event.aggregate_id
        self.tenant_id = event.tenant_id
        self.created_at = event.created_at

    @dispatch(BehavioralProfileAnalyzedDomainEvent)
    def on(self, event: BehavioralProfileAnalyzedDomainEvent) -> None:  # type: ignore[override]
        self.baseline_metrics = event.baseline_metrics
        self.confidence = event.confidence
        self.learning_phase = event.learning_phase
        self.risk_score = event.risk_score
        self.analysis_count += 1
        self.anomalies = (self.anomalies + list(event.anomalies))[-MAX_STORED_ANOMALIES:]
        self.last_analyzed_at = event.analyzed_at


class BehavioralProfile(AggregateRoot[BehavioralProfileState, str]):
    """BehavioralProfile aggregate root."""

    def __init__(self) -> None:
        super().__init__()

    @classmethod
    def create(cls, user_id: str, tenant_id: str = "default") -> "BehavioralProfile":
        profile = cls()
        event = BehavioralProfileCreatedDomainEvent(aggregate_id=user_id, tenant_id=tenant_id, created_at=datetime.now(UTC))
        profile.state.on(profile.register_event(event))  # type: ignore
        return profile

    def record_analysis(
        self,
        session_id: str,
        baseline: BehavioralMetrics,
        confidence: float,
        learning_phase: bool,
        risk_score: float,
        anomalies: list[BehavioralAnomaly],
        analyzed_at: datetime | None = None,
    ) -> None:
        """Fold an analysis result into the profile."""
        event = BehavioralProfileAnalyzedDomainEvent(
            aggregate_id=self.id(),
            session_id=session_id,
            baseline_metrics=baseline.to_dict(),
            confidence=confidence,
            learning_phase=learning_phase,
            risk_score=risk_score,
            anomalies=[anomaly.to_dict() for anomaly in anomalies],
            analyzed_at=analyzed_at or datetime.now(UTC),
        )
        self.state.on(self.register_event(event))  # type: ignore

    def baseline(self) -> BehavioralMetrics:
        return BehavioralMetrics.from_dict(self.state.baseline_metrics)

    def get_anomalies(self) -> list[BehavioralAnomaly]:
        return [BehavioralAnomaly.from_dict(a) for a in self.state.anomalies]
