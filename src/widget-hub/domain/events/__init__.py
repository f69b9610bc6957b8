"""Domain events package."""

from .behavioral_profile import BehavioralProfileAnalyzedDomainEvent, BehavioralProfileCreatedDomainEvent
from .widget_definition import WidgetDefinitionDeprecatedDomainEvent, WidgetDefinitionRegisteredDomainEvent, WidgetDefinitionRevisedDomainEvent
from .widget_instance import (
    WidgetInstanceChildAttachedDomainEvent,
    WidgetInstanceConfiguredDomainEvent,
    WidgetInstanceConnectionAttachedDomainEvent,
    WidgetInstanceConnectionDetachedDomainEvent,
    WidgetInstanceCreatedDomainEvent,
    WidgetInstanceHotSwappedDomainEvent,
    WidgetInstanceLoadedDomainEvent,
    WidgetInstancePerformanceRecordedDomainEvent,
    WidgetInstanceStateChangedDomainEvent,
    WidgetInstanceUnloadedDomainEvent,
)

__all__ = [
    # WidgetDefinition events
    "WidgetDefinitionRegisteredDomainEvent",
    "WidgetDefinitionRevisedDomainEvent",
    "WidgetDefinitionDeprecatedDomainEvent",
    # WidgetInstance events
    "WidgetInstanceCreatedDomainEvent",
    "WidgetInstanceConfiguredDomainEvent",
    "WidgetInstanceLoadedDomainEvent",
    "WidgetInstanceUnloadedDomainEvent",
    "WidgetInstanceHotSwappedDomainEvent",
    "WidgetInstanceStateChangedDomainEvent",
    "WidgetInstanceConnectionAttachedDomainEvent",
    "WidgetInstanceConnectionDetachedDomainEvent",
    "WidgetInstanceChildAttachedDomainEvent",
    "WidgetInstancePerformanceRecordedDomainEvent",
    # BehavioralProfile events
    "BehavioralProfileCreatedDomainEvent",
    "BehavioralProfileAnalyzedDomainEvent",
]
