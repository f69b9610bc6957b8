"""WidgetMetricsSample value object."""

from dataclasses import dataclass, field
from datetime import UTC, datetime


@dataclass
class WidgetMetricsSample:
    """One performance measurement reported by a widget instance."""

    widget_id: str
    instance_id: str
    render_time: float = 0.0
    memory_usage: float = 0.0
    cpu_usage: float = 0.0
    error_count: int = 0
    interaction_count: int = 0
    performance_score: float = 100.0
    last_interaction: datetime = field(default_factory=lambda: datetime.now(UTC))
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict:
        return {
            "widget_id": self.widget_id,
            "instance_id": self.instance_id,
            "render_time": self.render_time,
            "memory_usage": self.memory_usage,
            "cpu_usage": self.cpu_usage,
            "error_count": self.error_count,
            "interaction_count": self.interaction_count,
            "performance_score": self.performance_score,
            "last_interaction": self.last_interaction.isoformat(),
            "timestamp": self.timestamp.isoformat(),
        }
