"""Read model DTOs and API views."""

from .widget_connection_dto import WidgetConnectionDto, connection_to_dto
from .widget_message_dto import WidgetMessageDto, message_to_dto
from .widget_registry_views import definition_to_dict, instance_to_dict

__all__ = [
    "WidgetConnectionDto",
    "WidgetMessageDto",
    "connection_to_dto",
    "message_to_dto",
    "definition_to_dict",
    "instance_to_dict",
]
