"""Widget registry commands."""

from .create_widget_instance_command import CreateWidgetInstanceCommand, CreateWidgetInstanceCommandHandler
from .hot_swap_widget_command import HotSwapWidgetCommand, HotSwapWidgetCommandHandler
from .record_widget_metrics_command import RecordWidgetMetricsCommand, RecordWidgetMetricsCommandHandler
from .register_widget_definition_command import RegisterWidgetDefinitionCommand, RegisterWidgetDefinitionCommandHandler
from .unload_widget_instance_command import UnloadWidgetInstanceCommand, UnloadWidgetInstanceCommandHandler
from .update_widget_instance_command import UpdateWidgetInstanceCommand, UpdateWidgetInstanceCommandHandler

__all__ = [
    "RegisterWidgetDefinitionCommand",
    "RegisterWidgetDefinitionCommandHandler",
    "CreateWidgetInstanceCommand",
    "CreateWidgetInstanceCommandHandler",
    "UpdateWidgetInstanceCommand",
    "UpdateWidgetInstanceCommandHandler",
    "HotSwapWidgetCommand",
    "HotSwapWidgetCommandHandler",
    "UnloadWidgetInstanceCommand",
    "UnloadWidgetInstanceCommandHandler",
    "RecordWidgetMetricsCommand",
    "RecordWidgetMetricsCommandHandler",
]
