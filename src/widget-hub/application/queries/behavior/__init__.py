"""Behavioral analytics queries."""

from .get_behavioral_profile_query import GetBehavioralProfileQuery, GetBehavioralProfileQueryHandler

__all__ = [
    "GetBehavioralProfileQuery",
    "GetBehavioralProfileQueryHandler",
]
