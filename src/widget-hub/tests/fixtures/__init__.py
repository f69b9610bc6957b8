"""Test fixtures package."""

from .factories import (
    BehavioralMetricsFactory,
    BehavioralProfileFactory,
    CollaborativeOperationFactory,
    WidgetDefinitionFactory,
    WidgetInstanceFactory,
    WidgetPortFactory,
    operation_result,
)

__all__ = [
    "BehavioralMetricsFactory",
    "BehavioralProfileFactory",
    "CollaborativeOperationFactory",
    "WidgetDefinitionFactory",
    "WidgetInstanceFactory",
    "WidgetPortFactory",
    "operation_result",
]
