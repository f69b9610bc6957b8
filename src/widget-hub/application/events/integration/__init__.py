"""Integration events published to (or consumed from) the CloudEvent bus."""

from .behavior_events import BehavioralRiskDetectedIntegrationEventV1

__all__ = [
    "BehavioralRiskDetectedIntegrationEventV1",
]
