"""Behavioral analytics enumerations."""

from enum import Enum


class AnomalyType(str, Enum):
    """Metric category in which a behavioral anomaly was observed."""

    KEYSTROKE = "keystroke"
    MOUSE = "mouse"
    TOUCH = "touch"
    NAVIGATION = "navigation"
    TIME = "time"
    DEVICE = "device"


class AnomalySeverity(str, Enum):
    """Severity of a behavioral anomaly."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def risk_weight(self) -> int:
        """Weight contributed to the risk score per unit of confidence."""
        return _RISK_WEIGHTS[self]


class AnomalyStatus(str, Enum):
    """Investigation status of a stored anomaly."""

    ACTIVE = "active"
    INVESTIGATING = "investigating"
    RESOLVED = "resolved"
    FALSE_POSITIVE = "false_positive"


_RISK_WEIGHTS = {
    AnomalySeverity.LOW: 10,
    AnomalySeverity.MEDIUM: 25,
    AnomalySeverity.HIGH: 50,
    AnomalySeverity.CRITICAL: 100,
}
