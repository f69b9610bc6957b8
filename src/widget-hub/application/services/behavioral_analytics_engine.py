"""Behavioral Analytics Engine.

Maintains a rolling behavioral baseline per user and scores live interaction
samples against it for continuous authentication:

1. Load (or create) the user's BehavioralProfile
2. Detect anomalies of the sample against the current baseline
3. Fold the sample into the baseline with an exponential weighted average
4. Score risk from the anomalies and persist the profile

Anomalies are scored against the baseline as it was before the current sample
is blended in.

Analysis never raises: any internal failure yields a high-risk fallback result.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from application.settings import app_settings
from domain.entities import BehavioralProfile
from domain.enums import AnomalySeverity, AnomalyType
from domain.models import METRIC_CATEGORIES, BehavioralAnomaly, BehavioralMetrics
from domain.repositories import BehavioralProfileRepository
from observability import behavior_analyses, behavior_analysis_failures, behavior_anomalies, behavior_risk_score

if TYPE_CHECKING:
    from neuroglia.hosting.web import WebApplicationBuilder

log = logging.getLogger(__name__)

FALLBACK_RECOMMENDATION = "System error - manual review required"


@dataclass
class BehavioralAnalysisResult:
    """Outcome of one behavioral analysis."""

    user_id: str
    risk_score: float
    confidence: float
    anomalies: list[BehavioralAnomaly] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    continuous_auth_score: float = 0.0
    learning_phase: bool = True
    profile_maturity: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "risk_score": self.risk_score,
            "confidence": self.confidence,
            "anomalies": [a.to_dict() for a in self.anomalies],
            "recommendations": list(self.recommendations),
            "continuous_auth_score": self.continuous_auth_score,
            "learning_phase": self.learning_phase,
            "profile_maturity": self.profile_maturity,
        }

    @classmethod
    def fallback(cls, user_id: str) -> "BehavioralAnalysisResult":
        return cls(
            user_id=user_id,
            risk_score=100.0,
            confidence=0.0,
            recommendations=[FALLBACK_RECOMMENDATION],
            continuous_auth_score=0.0,
            learning_phase=True,
            profile_maturity=0.0,
        )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def blend_category(baseline: dict[str, Any], sample: dict[str, Any], weight: float) -> dict[str, Any]:
    """Exponential weighted average of one metric category.

    Numeric lists blend element-wise over the baseline's length, numbers blend,
    other values replace the baseline. Values absent from the baseline are copied.
    """
    updated = dict(baseline)
    for key, value in sample.items():
        existing = baseline.get(key)
        if key == "active_hours" and isinstance(value, list):
            updated[key] = sorted(set(existing or []) | set(value))
        elif isinstance(value, list) and isinstance(existing, list) and existing:
            if all(_is_number(v) for v in existing) and all(_is_number(v) for v in value):
                updated[key] = [old * (1 - weight) + (value[i] if i < len(value) else 0) * weight for i, old in enumerate(existing)]
            else:
                updated[key] = list(value)
        elif _is_number(value) and _is_number(existing) and existing:
            updated[key] = existing * (1 - weight) + value * weight
        else:
            updated[key] = value
    return updated


def _mean(values: list) -> float:
    return sum(values) / len(values)


class BehavioralAnalyticsEngine:
    """Scores behavioral samples against per-user baselines.

    Registered as a scoped service: it depends on the scoped BehavioralProfileRepository.
    """

    def __init__(
        self,
        profile_repository: BehavioralProfileRepository,
        learning_rate: float = 0.1,
        confidence_step: float = 0.02,
        learning_threshold: float = 0.8,
        recent_anomaly_days: int = 7,
        clock: Callable[[], datetime] | None = None,
    ):
        self._profiles = profile_repository
        self._learning_rate = learning_rate
        self._confidence_step = confidence_step
        self._learning_threshold = learning_threshold
        self._recent_anomaly_window = timedelta(days=recent_anomaly_days)
        self._clock = clock or (lambda: datetime.now(UTC))

    @staticmethod
    def configure(builder: "WebApplicationBuilder") -> None:
        builder.services.add_scoped(
            BehavioralAnalyticsEngine,
            implementation_factory=lambda sp: BehavioralAnalyticsEngine(
                profile_repository=sp.get_required_service(BehavioralProfileRepository),
                learning_rate=app_settings.behavior_learning_rate,
                confidence_step=app_settings.behavior_confidence_step,
                learning_threshold=app_settings.behavior_learning_threshold,
                recent_anomaly_days=app_settings.behavior_recent_anomaly_days,
            ),
        )
        log.info("Configured BehavioralAnalyticsEngine as scoped service")

    async def analyze_behavior(self, user_id: str, metrics: BehavioralMetrics, session_id: str, tenant_id: str = "default") -> BehavioralAnalysisResult:
        """Score a live sample and fold it into the user's baseline."""
        try:
            profile = await self._profiles.get_async(user_id)
            is_new = profile is None
            if profile is None:
                profile = BehavioralProfile.create(user_id, tenant_id)

            baseline = profile.baseline()
            now = self._clock()
            anomalies = self.detect_anomalies(baseline, metrics, now)
            for anomaly in anomalies:
                anomaly.user_id = user_id
                anomaly.session_id = session_id
                anomaly.detected_at = now

            updated = self.update_baseline(baseline, metrics)
            confidence = min(1.0, profile.state.confidence + self._confidence_step)
            learning_phase = confidence < self._learning_threshold
            risk_score = self.calculate_risk_score(anomalies, learning_phase)

            profile.record_analysis(
                session_id=session_id,
                baseline=updated,
                confidence=confidence,
                learning_phase=learning_phase,
                risk_score=risk_score,
                anomalies=anomalies,
                analyzed_at=now,
            )
            if is_new:
                await self._profiles.add_async(profile)
            else:
                await self._profiles.update_async(profile)

            behavior_analyses.add(1, {"learning_phase": str(learning_phase).lower()})
            behavior_risk_score.record(risk_score)
            for anomaly in anomalies:
                behavior_anomalies.add(1, {"type": anomaly.type.value, "severity": anomaly.severity.value})
            if anomalies:
                log.info(f"User {user_id}: {len(anomalies)} behavioral anomalies, risk {risk_score:.1f}")

            return BehavioralAnalysisResult(
                user_id=user_id,
                risk_score=risk_score,
                confidence=confidence,
                anomalies=anomalies,
                recommendations=self.generate_recommendations(anomalies, risk_score),
                continuous_auth_score=self.calculate_continuous_auth_score(risk_score, confidence),
                learning_phase=learning_phase,
                profile_maturity=self.calculate_profile_maturity(confidence, learning_phase),
            )
        except Exception as e:
            behavior_analysis_failures.add(1)
            log.error(f"Error analyzing behavior for user {user_id}: {e}")
            return BehavioralAnalysisResult.fallback(user_id)

    def update_baseline(self, baseline: BehavioralMetrics, sample: BehavioralMetrics) -> BehavioralMetrics:
        return BehavioralMetrics(**{name: blend_category(baseline.category(name), sample.category(name), self._learning_rate) for name in METRIC_CATEGORIES})

    def detect_anomalies(self, baseline: BehavioralMetrics, current: BehavioralMetrics, now: datetime | None = None) -> list[BehavioralAnomaly]:
        """Compare a sample against the baseline with fixed deviation thresholds."""
        anomalies: list[BehavioralAnomaly] = []

        if self._is_keystroke_anomaly(baseline.keystroke_dynamics, current.keystroke_dynamics):
            anomalies.append(
                BehavioralAnomaly(
                    type=AnomalyType.KEYSTROKE,
                    severity=AnomalySeverity.MEDIUM,
                    confidence=0.75,
                    description="Unusual typing pattern detected",
                    indicators=["typing_speed_deviation", "rhythm_change"],
                    mitigation=["Additional authentication required"],
                )
            )
        if self._is_mouse_anomaly(baseline.mouse_dynamics, current.mouse_dynamics):
            anomalies.append(
                BehavioralAnomaly(
                    type=AnomalyType.MOUSE,
                    severity=AnomalySeverity.LOW,
                    confidence=0.65,
                    description="Unusual mouse movement pattern",
                    indicators=["movement_speed_change", "click_pattern_deviation"],
                    mitigation=["Monitor for additional anomalies"],
                )
            )
        if self._is_navigation_anomaly(baseline.navigation_pattern, current.navigation_pattern):
            anomalies.append(
                BehavioralAnomaly(
                    type=AnomalyType.NAVIGATION,
                    severity=AnomalySeverity.HIGH,
                    confidence=0.85,
                    description="Unusual navigation pattern detected",
                    indicators=["unusual_page_sequence", "abnormal_interaction_rate"],
                    mitigation=["Challenge user identity"],
                )
            )
        if self._is_time_anomaly(baseline.time_pattern, current.time_pattern, now or self._clock()):
            anomalies.append(
                BehavioralAnomaly(
                    type=AnomalyType.TIME,
                    severity=AnomalySeverity.MEDIUM,
                    confidence=0.7,
                    description="Unusual activity timing pattern",
                    indicators=["off_hours_access", "unusual_session_duration"],
                    mitigation=["Verify user identity"],
                )
            )
        return anomalies

    @staticmethod
    def _is_keystroke_anomaly(baseline: dict, current: dict) -> bool:
        expected = baseline.get("typing_speed")
        actual = current.get("typing_speed")
        if not expected or not actual:
            return False
        return abs(expected - actual) > expected * 0.3

    @staticmethod
    def _is_mouse_anomaly(baseline: dict, current: dict) -> bool:
        expected = baseline.get("movement_speed")
        actual = current.get("movement_speed")
        if not expected or not actual:
            return False
        average = _mean(expected)
        return abs(average - _mean(actual)) > average * 0.4

    @staticmethod
    def _is_navigation_anomaly(baseline: dict, current: dict) -> bool:
        expected = baseline.get("interaction_rate")
        actual = current.get("interaction_rate")
        if not expected or not actual:
            return False
        return abs(expected - actual) > 0.5

    @staticmethod
    def _is_time_anomaly(baseline: dict, current: dict, now: datetime) -> bool:
        active_hours = baseline.get("active_hours")
        if not active_hours or not current.get("active_hours"):
            return False
        # Sparse baselines are never flagged
        return now.hour not in active_hours and len(active_hours) > 10

    @staticmethod
    def calculate_risk_score(anomalies: list[BehavioralAnomaly], learning_phase: bool) -> float:
        risk = sum(anomaly.risk_contribution for anomaly in anomalies)
        if learning_phase:
            risk *= 0.5
        return min(100.0, risk)

    @staticmethod
    def generate_recommendations(anomalies: list[BehavioralAnomaly], risk_score: float) -> list[str]:
        recommendations: list[str] = []
        if risk_score > 80:
            recommendations.append("Immediate identity verification required")
            recommendations.append("Consider blocking session until verified")
        elif risk_score > 50:
            recommendations.append("Additional authentication recommended")
            recommendations.append("Monitor user activity closely")
        elif risk_score > 20:
            recommendations.append("Increased monitoring recommended")

        types = {anomaly.type for anomaly in anomalies}
        if AnomalyType.KEYSTROKE in types:
            recommendations.append("Consider keyboard-based challenges")
        if AnomalyType.NAVIGATION in types:
            recommendations.append("Monitor page access patterns")
        if AnomalyType.TIME in types:
            recommendations.append("Verify off-hours access authorization")
        return recommendations

    @staticmethod
    def calculate_continuous_auth_score(risk_score: float, confidence: float) -> float:
        return max(0.0, min(100.0, 100 - risk_score + confidence * 20))

    @staticmethod
    def calculate_profile_maturity(confidence: float, learning_phase: bool) -> float:
        return (confidence + (0.5 if learning_phase else 1.0)) / 2

    async def get_user_behavioral_profile(self, user_id: str) -> dict[str, Any]:
        """Summary of a user's profile; never raises."""
        try:
            profile = await self._profiles.get_async(user_id)
            if profile is None:
                return {
                    "exists": False,
                    "learning_phase": True,
                    "confidence": 0.0,
                    "risk_score": 50.0,
                    "profile_maturity": 0.0,
                    "last_analyzed": None,
                }

            state = profile.state
            cutoff = self._clock() - self._recent_anomaly_window
            recent = sorted((a for a in profile.get_anomalies() if a.detected_at >= cutoff), key=lambda a: a.detected_at, reverse=True)[:10]
            return {
                "exists": True,
                "learning_phase": state.learning_phase,
                "confidence": state.confidence,
                "risk_score": state.risk_score,
                "profile_maturity": self.calculate_profile_maturity(state.confidence, state.learning_phase),
                "last_analyzed": state.last_analyzed_at,
                "analysis_count": state.analysis_count,
                "recent_anomalies": len(recent),
                "critical_anomalies": sum(1 for a in recent if a.severity == AnomalySeverity.CRITICAL),
                "anomalies": [a.to_dict() for a in recent],
            }
        except Exception as e:
            log.error(f"Error getting behavioral profile for user {user_id}: {e}")
            return {
                "exists": False,
                "learning_phase": True,
                "confidence": 0.0,
                "risk_score": 100.0,
                "profile_maturity": 0.0,
                "last_analyzed": None,
            }
