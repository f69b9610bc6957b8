"""Tests for BehavioralAnalyticsEngine.

Tests cover:
- Baseline learning and confidence growth
- Anomaly thresholds per category (against the pre-update baseline)
- Risk scoring, learning phase dampening and recommendations
- High-risk fallback when the profile store fails
- Profile summaries
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from application.services import BehavioralAnalyticsEngine
from application.services.behavioral_analytics_engine import FALLBACK_RECOMMENDATION, blend_category
from domain.entities import BehavioralProfile
from domain.enums import AnomalySeverity, AnomalyType
from domain.models import BehavioralAnomaly
from tests.fixtures.factories import BehavioralMetricsFactory, BehavioralProfileFactory
from tests.fixtures.mixins import BaseTestCase

OFFICE_TIME = datetime(2026, 3, 2, 10, 30, tzinfo=UTC)
NIGHT_TIME = datetime(2026, 3, 2, 3, 0, tzinfo=UTC)


def profile_store(*profiles: BehavioralProfile) -> MagicMock:
    """Repository mock backed by a dict, keyed by user id."""
    store = {p.id(): p for p in profiles}
    repository = MagicMock()

    async def get_async(user_id: str) -> BehavioralProfile | None:
        return store.get(user_id)

    async def save_async(profile: BehavioralProfile) -> BehavioralProfile:
        store[profile.id()] = profile
        return profile

    repository.get_async = AsyncMock(side_effect=get_async)
    repository.add_async = AsyncMock(side_effect=save_async)
    repository.update_async = AsyncMock(side_effect=save_async)
    return repository


def engine_with(repository: MagicMock, now: datetime = OFFICE_TIME) -> BehavioralAnalyticsEngine:
    return BehavioralAnalyticsEngine(profile_repository=repository, clock=lambda: now)


class TestBaselineLearning(BaseTestCase):
    """Test how samples are folded into the baseline."""

    @pytest.mark.asyncio
    async def test_first_analysis_creates_profile(self) -> None:
        # Arrange
        repository = profile_store()
        engine = engine_with(repository)

        # Act
        result = await engine.analyze_behavior("user123", BehavioralMetricsFactory.create(), "session-1")

        # Assert
        repository.add_async.assert_awaited_once()
        repository.update_async.assert_not_awaited()
        assert result.anomalies == []
        assert result.risk_score == 0.0
        assert result.confidence == pytest.approx(0.02)
        assert result.learning_phase is True
        profile = repository.add_async.await_args.args[0]
        assert profile.baseline().keystroke_dynamics["typing_speed"] == 60.0

    @pytest.mark.asyncio
    async def test_confidence_converges_to_one(self) -> None:
        repository = profile_store()
        engine = engine_with(repository)
        confidences = []

        for i in range(60):
            result = await engine.analyze_behavior("user123", BehavioralMetricsFactory.create(), f"session-{i}")
            confidences.append(result.confidence)

        assert all(b >= a for a, b in zip(confidences, confidences[1:]))
        assert max(confidences) == 1.0
        assert repository.update_async.await_count == 59

    @pytest.mark.asyncio
    async def test_learning_phase_ends_at_threshold(self) -> None:
        repository = profile_store(BehavioralProfileFactory.create(confidence=0.79, learning_phase=True))

        result = await engine_with(repository).analyze_behavior("user123", BehavioralMetricsFactory.create(), "session-1")

        assert result.learning_phase is False
        assert result.profile_maturity == pytest.approx((0.81 + 1.0) / 2)

    @pytest.mark.asyncio
    async def test_anomalies_use_baseline_before_update(self) -> None:
        repository = profile_store(BehavioralProfileFactory.create())

        result = await engine_with(repository).analyze_behavior("user123", BehavioralMetricsFactory.create(typing_speed=100.0), "session-1")

        assert [a.type for a in result.anomalies] == [AnomalyType.KEYSTROKE]
        stored = repository.update_async.await_args.args[0]
        assert stored.baseline().keystroke_dynamics["typing_speed"] == pytest.approx(64.0)

    def test_blend_category(self) -> None:
        baseline = {"typing_speed": 60.0, "dwell_time": [100.0, 120.0], "active_hours": [9, 10], "layout": "qwerty"}
        sample = {"typing_speed": 80.0, "dwell_time": [200.0], "active_hours": [10, 22], "layout": "azerty", "rhythm": 1}

        updated = blend_category(baseline, sample, 0.5)

        assert updated["typing_speed"] == pytest.approx(70.0)
        assert updated["dwell_time"] == pytest.approx([150.0, 60.0])
        assert updated["active_hours"] == [9, 10, 22]
        assert updated["layout"] == "azerty"
        assert updated["rhythm"] == 1


class TestAnomalyDetection(BaseTestCase):
    """Test the per-category deviation thresholds."""

    @pytest.fixture
    def engine(self) -> BehavioralAnalyticsEngine:
        return engine_with(profile_store())

    @pytest.fixture
    def baseline(self):
        return BehavioralMetricsFactory.create(typing_speed=60.0, movement_speed=[100.0, 100.0], interaction_rate=1.0, active_hours=BehavioralMetricsFactory.office_hours())

    @pytest.mark.parametrize("typing_speed,expected", [(78.0, False), (79.0, True), (41.0, True), (42.0, False)])
    def test_keystroke_threshold(self, engine: BehavioralAnalyticsEngine, baseline, typing_speed: float, expected: bool) -> None:
        anomalies = engine.detect_anomalies(baseline, BehavioralMetricsFactory.create(typing_speed=typing_speed), OFFICE_TIME)

        assert (AnomalyType.KEYSTROKE in [a.type for a in anomalies]) is expected

    def test_mouse_threshold_uses_mean_speed(self, engine: BehavioralAnalyticsEngine, baseline) -> None:
        calm = engine.detect_anomalies(baseline, BehavioralMetricsFactory.create(movement_speed=[120.0, 130.0]), OFFICE_TIME)
        erratic = engine.detect_anomalies(baseline, BehavioralMetricsFactory.create(movement_speed=[150.0, 170.0]), OFFICE_TIME)

        assert calm == []
        assert [(a.type, a.severity) for a in erratic] == [(AnomalyType.MOUSE, AnomalySeverity.LOW)]

    def test_navigation_threshold(self, engine: BehavioralAnalyticsEngine, baseline) -> None:
        assert engine.detect_anomalies(baseline, BehavioralMetricsFactory.create(interaction_rate=1.5), OFFICE_TIME) == []

        anomalies = engine.detect_anomalies(baseline, BehavioralMetricsFactory.create(interaction_rate=1.6), OFFICE_TIME)

        assert [(a.type, a.severity) for a in anomalies] == [(AnomalyType.NAVIGATION, AnomalySeverity.HIGH)]

    def test_off_hours_activity(self, engine: BehavioralAnalyticsEngine, baseline) -> None:
        sample = BehavioralMetricsFactory.create(active_hours=[3])

        assert engine.detect_anomalies(baseline, sample, OFFICE_TIME) == []
        assert [a.type for a in engine.detect_anomalies(baseline, sample, NIGHT_TIME)] == [AnomalyType.TIME]

    def test_sparse_active_hours_are_never_flagged(self, engine: BehavioralAnalyticsEngine) -> None:
        sample = BehavioralMetricsFactory.create(active_hours=[3])

        for hours in (list(range(8, 16)), list(range(8, 18))):
            baseline = BehavioralMetricsFactory.create(active_hours=hours)
            assert engine.detect_anomalies(baseline, sample, NIGHT_TIME) == []

    def test_time_is_not_checked_without_current_hours(self, engine: BehavioralAnalyticsEngine, baseline) -> None:
        assert engine.detect_anomalies(baseline, BehavioralMetricsFactory.create(), NIGHT_TIME) == []

    def test_empty_baseline_never_flags(self, engine: BehavioralAnalyticsEngine) -> None:
        empty = BehavioralMetricsFactory.create(typing_speed=None, interaction_rate=None)

        anomalies = engine.detect_anomalies(empty, BehavioralMetricsFactory.create(typing_speed=500.0, interaction_rate=9.0), NIGHT_TIME)

        assert anomalies == []


class TestRiskScoring(BaseTestCase):
    """Test risk, continuous auth score and recommendations."""

    @staticmethod
    def anomaly(type: AnomalyType, severity: AnomalySeverity, confidence: float = 1.0) -> BehavioralAnomaly:
        return BehavioralAnomaly(type=type, severity=severity, confidence=confidence, description="test")

    def test_risk_is_weighted_by_severity_and_confidence(self) -> None:
        anomalies = [self.anomaly(AnomalyType.KEYSTROKE, AnomalySeverity.MEDIUM, 0.75), self.anomaly(AnomalyType.NAVIGATION, AnomalySeverity.HIGH, 0.85)]

        assert BehavioralAnalyticsEngine.calculate_risk_score(anomalies, learning_phase=False) == pytest.approx(61.25)
        assert BehavioralAnalyticsEngine.calculate_risk_score(anomalies, learning_phase=True) == pytest.approx(30.625)

    def test_risk_is_capped(self) -> None:
        anomalies = [self.anomaly(AnomalyType.TIME, AnomalySeverity.CRITICAL)] * 2

        assert BehavioralAnalyticsEngine.calculate_risk_score(anomalies, learning_phase=False) == 100.0

    @pytest.mark.parametrize(
        "risk,confidence,expected",
        [
            (0.0, 1.0, 100.0),
            (100.0, 0.0, 0.0),
            (40.0, 0.5, 70.0),
        ],
    )
    def test_continuous_auth_score(self, risk: float, confidence: float, expected: float) -> None:
        assert BehavioralAnalyticsEngine.calculate_continuous_auth_score(risk, confidence) == pytest.approx(expected)

    def test_recommendations(self) -> None:
        keystroke = self.anomaly(AnomalyType.KEYSTROKE, AnomalySeverity.MEDIUM)
        time = self.anomaly(AnomalyType.TIME, AnomalySeverity.MEDIUM)

        high = BehavioralAnalyticsEngine.generate_recommendations([keystroke, time], 90.0)
        low = BehavioralAnalyticsEngine.generate_recommendations([], 10.0)

        assert high[0] == "Immediate identity verification required"
        assert "Consider keyboard-based challenges" in high
        assert "Verify off-hours access authorization" in high
        assert low == []

    @pytest.mark.asyncio
    async def test_learning_phase_halves_risk(self) -> None:
        sample = BehavioralMetricsFactory.create(typing_speed=100.0)
        learning = profile_store(BehavioralProfileFactory.create(confidence=0.5, learning_phase=True))
        mature = profile_store(BehavioralProfileFactory.create(confidence=0.9))

        learning_result = await engine_with(learning).analyze_behavior("user123", sample, "s")
        mature_result = await engine_with(mature).analyze_behavior("user123", sample, "s")

        assert mature_result.risk_score == pytest.approx(18.75)
        assert learning_result.risk_score == pytest.approx(mature_result.risk_score / 2)

    @pytest.mark.asyncio
    async def test_every_category_deviating(self) -> None:
        # Arrange
        baseline = BehavioralMetricsFactory.create(movement_speed=[100.0, 100.0], active_hours=BehavioralMetricsFactory.office_hours())
        repository = profile_store(BehavioralProfileFactory.create(baseline=baseline))
        sample = BehavioralMetricsFactory.create(typing_speed=100.0, movement_speed=[200.0], interaction_rate=2.0, active_hours=[3])

        # Act
        result = await engine_with(repository, NIGHT_TIME).analyze_behavior("user123", sample, "session-9")

        # Assert
        assert {a.type for a in result.anomalies} == {AnomalyType.KEYSTROKE, AnomalyType.MOUSE, AnomalyType.NAVIGATION, AnomalyType.TIME}
        assert result.risk_score == pytest.approx(85.25)
        assert result.continuous_auth_score == pytest.approx(100 - 85.25 + 0.92 * 20)
        assert result.recommendations[0] == "Immediate identity verification required"
        assert all(a.session_id == "session-9" and a.detected_at == NIGHT_TIME for a in result.anomalies)


class TestFailures(BaseTestCase):
    """Test the fallback result and profile summaries."""

    @pytest.mark.asyncio
    async def test_store_failure_yields_high_risk_fallback(self) -> None:
        repository = profile_store()
        repository.get_async = AsyncMock(side_effect=ConnectionError("mongo down"))

        result = await engine_with(repository).analyze_behavior("user123", BehavioralMetricsFactory.create(), "session-1")

        assert result.risk_score == 100.0
        assert result.confidence == 0.0
        assert result.continuous_auth_score == 0.0
        assert result.learning_phase is True
        assert result.recommendations == [FALLBACK_RECOMMENDATION]

    @pytest.mark.asyncio
    async def test_save_failure_yields_fallback(self) -> None:
        repository = profile_store()
        repository.add_async = AsyncMock(side_effect=RuntimeError("write failed"))

        result = await engine_with(repository).analyze_behavior("user123", BehavioralMetricsFactory.create(), "session-1")

        assert result.to_dict()["risk_score"] == 100.0

    @pytest.mark.asyncio
    async def test_summary_of_unknown_user(self) -> None:
        summary = await engine_with(profile_store()).get_user_behavioral_profile("nobody")

        self.assert_dict_contains(summary, {"exists": False, "risk_score": 50.0, "learning_phase": True, "last_analyzed": None})

    @pytest.mark.asyncio
    async def test_summary_when_store_fails(self) -> None:
        repository = profile_store()
        repository.get_async = AsyncMock(side_effect=ConnectionError("mongo down"))

        summary = await engine_with(repository).get_user_behavioral_profile("user123")

        self.assert_dict_contains(summary, {"exists": False, "risk_score": 100.0})

    @pytest.mark.asyncio
    async def test_summary_counts_recent_anomalies_only(self) -> None:
        # Arrange
        profile = BehavioralProfileFactory.create()
        old = BehavioralAnomaly(type=AnomalyType.TIME, severity=AnomalySeverity.CRITICAL, confidence=1.0, description="old", detected_at=OFFICE_TIME - timedelta(days=30))
        recent = BehavioralAnomaly(type=AnomalyType.NAVIGATION, severity=AnomalySeverity.CRITICAL, confidence=1.0, description="recent", detected_at=OFFICE_TIME - timedelta(days=1))
        profile.record_analysis(session_id="s", baseline=profile.baseline(), confidence=0.92, learning_phase=False, risk_score=100.0, anomalies=[old, recent], analyzed_at=OFFICE_TIME)

        # Act
        summary = await engine_with(profile_store(profile)).get_user_behavioral_profile("user123")

        # Assert
        self.assert_dict_contains(summary, {"exists": True, "confidence": 0.92, "analysis_count": 2, "recent_anomalies": 1, "critical_anomalies": 1})
        assert summary["last_analyzed"] == OFFICE_TIME
        assert summary["anomalies"][0]["description"] == "recent"
