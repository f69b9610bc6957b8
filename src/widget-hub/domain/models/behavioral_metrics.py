"""BehavioralMetrics value object.

Interaction sample (or baseline) grouped by metric category. Categories are
kept as plain dictionaries so baselines can be blended key by key.
"""

import re
from dataclasses import dataclass, field
from typing import Any

METRIC_CATEGORIES = (
    "keystroke_dynamics",
    "mouse_dynamics",
    "touch_dynamics",
    "navigation_pattern",
    "time_pattern",
    "device_pattern",
)


def _snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


@dataclass
class BehavioralMetrics:
    """Per-category interaction metrics.

    Known keys per category:
    - keystroke_dynamics: dwell_time[], flight_time[], typing_speed, rhythm_pattern[], pressure_pattern[]
    - mouse_dynamics: movement_speed[], acceleration[], click_pattern[], scroll_behavior[], pause_duration[]
    - touch_dynamics: touch_pressure[], swipe_velocity[], tap_duration[], gesture_patterns[]
    - navigation_pattern: page_sequence[], time_on_page[], click_sequence[], scroll_depth[], interaction_rate
    - time_pattern: active_hours[], session_duration[], break_pattern[], workflow_timing[]
    - device_pattern: screen_resolution, device_orientation, battery_level, network_type, location_pattern[]
    """

    keystroke_dynamics: dict[str, Any] = field(default_factory=dict)
    mouse_dynamics: dict[str, Any] = field(default_factory=dict)
    touch_dynamics: dict[str, Any] = field(default_factory=dict)
    navigation_pattern: dict[str, Any] = field(default_factory=dict)
    time_pattern: dict[str, Any] = field(default_factory=dict)
    device_pattern: dict[str, Any] = field(default_factory=dict)

    def category(self, name: str) -> dict[str, Any]:
        return getattr(self, name)

    def to_dict(self) -> dict:
        """Serialize to dictionary for storage."""
        return {name: dict(self.category(name)) for name in METRIC_CATEGORIES}

    @classmethod
    def from_dict(cls, data: dict | None) -> "BehavioralMetrics":
        """Deserialize from dictionary, accepting camelCase keys from browser clients."""
        values: dict[str, dict[str, Any]] = {}
        for key, category in (data or {}).items():
            name = _snake_case(key)
            if name in METRIC_CATEGORIES and isinstance(category, dict):
                values[name] = {_snake_case(k): v for k, v in category.items()}
        return cls(**values)
