"""Widget communication commands."""

from .apply_collaborative_operation_command import ApplyCollaborativeOperationCommand, ApplyCollaborativeOperationCommandHandler
from .broadcast_message_command import BroadcastMessageCommand, BroadcastMessageCommandHandler
from .create_connection_command import CreateConnectionCommand, CreateConnectionCommandHandler
from .receive_widget_messages_command import ReceiveWidgetMessagesCommand, ReceiveWidgetMessagesCommandHandler
from .register_communication_widget_command import RegisterCommunicationWidgetCommand, RegisterCommunicationWidgetCommandHandler
from .send_message_command import SendMessageCommand, SendMessageCommandHandler

__all__ = [
    "RegisterCommunicationWidgetCommand",
    "RegisterCommunicationWidgetCommandHandler",
    "CreateConnectionCommand",
    "CreateConnectionCommandHandler",
    "SendMessageCommand",
    "SendMessageCommandHandler",
    "BroadcastMessageCommand",
    "BroadcastMessageCommandHandler",
    "ApplyCollaborativeOperationCommand",
    "ApplyCollaborativeOperationCommandHandler",
    "ReceiveWidgetMessagesCommand",
    "ReceiveWidgetMessagesCommandHandler",
]
