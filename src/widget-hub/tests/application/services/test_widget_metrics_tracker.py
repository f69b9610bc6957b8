"""Tests for WidgetMetricsTracker."""

from application.services import WidgetMetricsTracker
from domain.models import WidgetMetricsSample


def sample(instance_id: str = "instance-1", widget_id: str = "revenue-card", score: float = 90.0) -> WidgetMetricsSample:
    return WidgetMetricsSample(widget_id=widget_id, instance_id=instance_id, render_time=12.0, performance_score=score)


class TestWidgetMetricsTracker:
    def test_every_nth_sample_is_flagged_for_persistence(self) -> None:
        tracker = WidgetMetricsTracker(history_size=100, persist_every=3)

        flags = [tracker.record(sample()) for _ in range(6)]

        assert flags == [False, False, True, False, False, True]

    def test_history_is_bounded(self) -> None:
        tracker = WidgetMetricsTracker(history_size=2, persist_every=10)

        for score in (70.0, 80.0, 90.0):
            tracker.record(sample(score=score))

        assert [s.performance_score for s in tracker.get_samples("instance-1")] == [80.0, 90.0]
        latest = tracker.latest("instance-1")
        assert latest is not None and latest.performance_score == 90.0

    def test_all_latest_by_widget(self, metrics_tracker: WidgetMetricsTracker) -> None:
        metrics_tracker.record(sample("i1", "revenue-card", 50.0))
        metrics_tracker.record(sample("i1", "revenue-card", 60.0))
        metrics_tracker.record(sample("i2", "sales-chart", 70.0))

        assert len(metrics_tracker.all_latest()) == 2
        assert [s.performance_score for s in metrics_tracker.all_latest("revenue-card")] == [60.0]

    def test_forget(self, metrics_tracker: WidgetMetricsTracker) -> None:
        metrics_tracker.record(sample())

        metrics_tracker.forget("instance-1")

        assert metrics_tracker.get_samples("instance-1") == []
        assert metrics_tracker.latest("instance-1") is None
