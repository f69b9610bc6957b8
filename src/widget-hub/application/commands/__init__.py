"""Widget Hub commands."""

from .behavior import AnalyzeBehaviorCommand, AnalyzeBehaviorCommandHandler
from .command_handler_base import CommandHandlerBase
from .communication import (
    ApplyCollaborativeOperationCommand,
    ApplyCollaborativeOperationCommandHandler,
    BroadcastMessageCommand,
    BroadcastMessageCommandHandler,
    CreateConnectionCommand,
    CreateConnectionCommandHandler,
    ReceiveWidgetMessagesCommand,
    ReceiveWidgetMessagesCommandHandler,
    RegisterCommunicationWidgetCommand,
    RegisterCommunicationWidgetCommandHandler,
    SendMessageCommand,
    SendMessageCommandHandler,
)
from .recommendations import GenerateRecommendationsCommand, GenerateRecommendationsCommandHandler, build_recommendation_messages
from .widgets import (
    CreateWidgetInstanceCommand,
    CreateWidgetInstanceCommandHandler,
    HotSwapWidgetCommand,
    HotSwapWidgetCommandHandler,
    RecordWidgetMetricsCommand,
    RecordWidgetMetricsCommandHandler,
    RegisterWidgetDefinitionCommand,
    RegisterWidgetDefinitionCommandHandler,
    UnloadWidgetInstanceCommand,
    UnloadWidgetInstanceCommandHandler,
    UpdateWidgetInstanceCommand,
    UpdateWidgetInstanceCommandHandler,
)

__all__ = [
    "CommandHandlerBase",
    # Widget registry
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
    # Communication
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
    # Behavioral analytics
    "AnalyzeBehaviorCommand",
    "AnalyzeBehaviorCommandHandler",
    # Recommendations
    "GenerateRecommendationsCommand",
    "GenerateRecommendationsCommandHandler",
    "build_recommendation_messages",
]
