"""Observability utilities and metrics."""

from .metrics import (
    behavior_analyses,
    behavior_analysis_failures,
    behavior_anomalies,
    behavior_risk_score,
    bus_events_dead_lettered,
    bus_events_failed,
    bus_events_published,
    bus_processing_time,
    connections_created,
    connections_degraded,
    llm_request_time,
    llm_requests,
    message_delivery_latency,
    messages_delivered,
    messages_expired,
    messages_failed,
    messages_sent,
    operation_conflicts,
    operations_applied,
    operations_rejected,
    widget_component_load_failures,
    widget_definitions_registered,
    widget_instances_created,
    widget_instances_hot_swapped,
)

__all__ = [
    # Communication metrics
    "messages_sent",
    "messages_delivered",
    "messages_failed",
    "messages_expired",
    "message_delivery_latency",
    "connections_created",
    "connections_degraded",
    "operations_applied",
    "operations_rejected",
    "operation_conflicts",
    # Event bus metrics
    "bus_events_published",
    "bus_events_failed",
    "bus_events_dead_lettered",
    "bus_processing_time",
    # Registry metrics
    "widget_definitions_registered",
    "widget_instances_created",
    "widget_instances_hot_swapped",
    "widget_component_load_failures",
    # Behavioral metrics
    "behavior_analyses",
    "behavior_anomalies",
    "behavior_analysis_failures",
    "behavior_risk_score",
    # LLM metrics
    "llm_requests",
    "llm_request_time",
]
