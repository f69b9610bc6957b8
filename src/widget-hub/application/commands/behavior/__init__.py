"""Behavioral analytics commands."""

from .analyze_behavior_command import AnalyzeBehaviorCommand, AnalyzeBehaviorCommandHandler

__all__ = [
    "AnalyzeBehaviorCommand",
    "AnalyzeBehaviorCommandHandler",
]
