"""MongoDB repository implementations."""

from .motor_behavioral_profile_repository import MotorBehavioralProfileRepository
from .motor_widget_communication_repositories import MotorWidgetConnectionDtoRepository, MotorWidgetMessageDtoRepository
from .motor_widget_repositories import MotorWidgetDefinitionRepository, MotorWidgetInstanceRepository

__all__ = [
    "MotorWidgetDefinitionRepository",
    "MotorWidgetInstanceRepository",
    "MotorBehavioralProfileRepository",
    "MotorWidgetConnectionDtoRepository",
    "MotorWidgetMessageDtoRepository",
]
