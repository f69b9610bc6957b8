"""Domain repository interfaces."""

from .behavioral_profile_repository import BehavioralProfileRepository
from .widget_communication_repositories import WidgetConnectionDtoRepository, WidgetMessageDtoRepository
from .widget_repositories import WidgetDefinitionRepository, WidgetInstanceRepository

__all__ = [
    "WidgetDefinitionRepository",
    "WidgetInstanceRepository",
    "BehavioralProfileRepository",
    "WidgetConnectionDtoRepository",
    "WidgetMessageDtoRepository",
]
