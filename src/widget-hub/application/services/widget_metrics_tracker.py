"""In-memory performance history of widget instances."""

import logging
from collections import deque
from typing import TYPE_CHECKING

from domain.models import WidgetMetricsSample

if TYPE_CHECKING:
    from neuroglia.hosting.web import WebApplicationBuilder

log = logging.getLogger(__name__)


class WidgetMetricsTracker:
    """Keeps the most recent metrics samples per widget instance.

    Every ``persist_every``-th sample of an instance is flagged for persistence
    on the instance aggregate; the rest only live in memory.
    """

    def __init__(self, history_size: int = 100, persist_every: int = 10) -> None:
        self._history_size = history_size
        self._persist_every = persist_every
        self._samples: dict[str, deque[WidgetMetricsSample]] = {}
        self._counts: dict[str, int] = {}

    @staticmethod
    def configure(builder: "WebApplicationBuilder") -> None:
        from application.settings import app_settings

        tracker = WidgetMetricsTracker(history_size=app_settings.widget_metrics_history_size, persist_every=app_settings.widget_metrics_persist_every)
        builder.services.add_singleton(WidgetMetricsTracker, singleton=tracker)

    def record(self, sample: WidgetMetricsSample) -> bool:
        """Store a sample.

        Returns:
            True when the sample should be persisted
        """
        history = self._samples.setdefault(sample.instance_id, deque(maxlen=self._history_size))
        history.append(sample)
        count = self._counts.get(sample.instance_id, 0) + 1
        self._counts[sample.instance_id] = count
        return count % self._persist_every == 0

    def get_samples(self, instance_id: str) -> list[WidgetMetricsSample]:
        return list(self._samples.get(instance_id, ()))

    def latest(self, instance_id: str) -> WidgetMetricsSample | None:
        history = self._samples.get(instance_id)
        return history[-1] if history else None

    def all_latest(self, widget_id: str | None = None) -> list[WidgetMetricsSample]:
        """Latest sample of every tracked instance, optionally for one widget definition."""
        samples = [history[-1] for history in self._samples.values() if history]
        return [s for s in samples if widget_id is None or s.widget_id == widget_id]

    def forget(self, instance_id: str) -> None:
        self._samples.pop(instance_id, None)
        self._counts.pop(instance_id, None)
