"""Domain entities (aggregates) package."""

from .behavioral_profile import BehavioralProfile, BehavioralProfileState
from .widget_definition import WidgetDefinition, WidgetDefinitionState
from .widget_instance import WidgetInstance, WidgetInstanceState

__all__ = [
    "WidgetDefinition",
    "WidgetDefinitionState",
    "WidgetInstance",
    "WidgetInstanceState",
    "BehavioralProfile",
    "BehavioralProfileState",
]
