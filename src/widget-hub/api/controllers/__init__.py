"""API controllers package."""

from .behavior_controller import BehaviorController
from .communication_controller import CommunicationController
from .recommendations_controller import RecommendationsController
from .widgets_controller import WidgetsController

__all__ = [
    "WidgetsController",
    "CommunicationController",
    "BehaviorController",
    "RecommendationsController",
]
