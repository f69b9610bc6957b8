"""BehavioralAnomaly value object."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from domain.enums import AnomalySeverity, AnomalyStatus, AnomalyType


@dataclass
class BehavioralAnomaly:
    """A deviation from a user's behavioral baseline."""

    type: AnomalyType
    severity: AnomalySeverity
    confidence: float
    description: str
    indicators: list[str] = field(default_factory=list)
    mitigation: list[str] = field(default_factory=list)
    user_id: str = ""
    session_id: str = ""
    id: str = field(default_factory=lambda: str(uuid4()))
    detected_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def status(self) -> AnomalyStatus:
        """Initial investigation status derived from severity."""
        if self.severity in (AnomalySeverity.HIGH, AnomalySeverity.CRITICAL):
            return AnomalyStatus.INVESTIGATING
        return AnomalyStatus.ACTIVE

    @property
    def risk_contribution(self) -> float:
        return self.severity.risk_weight * self.confidence

    def to_dict(self) -> dict:
        """Serialize to dictionary for storage."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "session_id": self.session_id,
            "type": self.type.value,
            "severity": self.severity.value,
            "confidence": self.confidence,
            "description": self.description,
            "indicators": list(self.indicators),
            "mitigation": list(self.mitigation),
            "status": self.status.value,
            "detected_at": self.detected_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BehavioralAnomaly":
        """Deserialize from dictionary."""
        detected_at = data.get("detected_at")
        if isinstance(detected_at, str):
            detected_at = datetime.fromisoformat(detected_at)
        return cls(
            id=data.get("id") or str(uuid4()),
            user_id=data.get("user_id", ""),
            session_id=data.get("session_id", ""),
            type=AnomalyType(data["type"]),
            severity=AnomalySeverity(data["severity"]),
            confidence=data.get("confidence", 0.0),
            description=data.get("description", ""),
            indicators=list(data.get("indicators", [])),
            mitigation=list(data.get("mitigation", [])),
            detected_at=detected_at or datetime.now(UTC),
        )
