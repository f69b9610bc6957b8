"""LLM recommendation commands."""

from .generate_recommendations_command import (
    GenerateRecommendationsCommand,
    GenerateRecommendationsCommandHandler,
    build_recommendation_messages,
)

__all__ = [
    "GenerateRecommendationsCommand",
    "GenerateRecommendationsCommandHandler",
    "build_recommendation_messages",
]
