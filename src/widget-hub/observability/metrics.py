"""Business metrics for Widget Hub service.

Defines OpenTelemetry metrics for:
- Widget communication: messages, connections, collaborative operations
- Widget event bus: published, failed and dead-lettered events
- Widget registry: definitions and instances
- Behavioral analytics: analyses, anomalies, risk
- LLM recommendations
"""

from opentelemetry import metrics

meter = metrics.get_meter(__name__)

# =============================================================================
# COMMUNICATION METRICS
# =============================================================================

messages_sent = meter.create_counter(
    name="widget_hub.messages.sent",
    description="Total widget messages sent",
    unit="1",
)

messages_delivered = meter.create_counter(
    name="widget_hub.messages.delivered",
    description="Total widget messages delivered to an inbound queue consumer",
    unit="1",
)

messages_failed = meter.create_counter(
    name="widget_hub.messages.failed",
    description="Total widget message routing or handler failures",
    unit="1",
)

messages_expired = meter.create_counter(
    name="widget_hub.messages.expired",
    description="Total widget messages dropped after their TTL",
    unit="1",
)

message_delivery_latency = meter.create_histogram(
    name="widget_hub.message.delivery_latency",
    description="Time from message creation to delivery",
    unit="ms",
)

connections_created = meter.create_counter(
    name="widget_hub.connections.created",
    description="Total widget connections created",
    unit="1",
)

connections_degraded = meter.create_counter(
    name="widget_hub.connections.degraded",
    description="Total widget connections marked inactive by the health monitor",
    unit="1",
)

operations_applied = meter.create_counter(
    name="widget_hub.operations.applied",
    description="Total collaborative operations applied",
    unit="1",
)

operations_rejected = meter.create_counter(
    name="widget_hub.operations.rejected",
    description="Total collaborative operations rejected",
    unit="1",
)

operation_conflicts = meter.create_counter(
    name="widget_hub.operations.conflicts",
    description="Total collaborative operations that conflicted with session history",
    unit="1",
)

# =============================================================================
# EVENT BUS METRICS
# =============================================================================

bus_events_published = meter.create_counter(
    name="widget_hub.bus.events.published",
    description="Total events published on the widget event bus",
    unit="1",
)

bus_events_failed = meter.create_counter(
    name="widget_hub.bus.events.failed",
    description="Total event handler failures on the widget event bus",
    unit="1",
)

bus_events_dead_lettered = meter.create_counter(
    name="widget_hub.bus.events.dead_lettered",
    description="Total events moved to the dead-letter queue",
    unit="1",
)

bus_processing_time = meter.create_histogram(
    name="widget_hub.bus.processing_time",
    description="Time spent by a subscription handling an event",
    unit="ms",
)

# =============================================================================
# REGISTRY METRICS
# =============================================================================

widget_definitions_registered = meter.create_counter(
    name="widget_hub.definitions.registered",
    description="Total widget definitions registered or revised",
    unit="1",
)

widget_instances_created = meter.create_counter(
    name="widget_hub.instances.created",
    description="Total widget instances created",
    unit="1",
)

widget_instances_hot_swapped = meter.create_counter(
    name="widget_hub.instances.hot_swapped",
    description="Total widget instances switched to another definition",
    unit="1",
)

widget_component_load_failures = meter.create_counter(
    name="widget_hub.components.load_failures",
    description="Total widget component resolution failures",
    unit="1",
)

# =============================================================================
# BEHAVIORAL ANALYTICS METRICS
# =============================================================================

behavior_analyses = meter.create_counter(
    name="widget_hub.behavior.analyses",
    description="Total behavioral analyses performed",
    unit="1",
)

behavior_anomalies = meter.create_counter(
    name="widget_hub.behavior.anomalies",
    description="Total behavioral anomalies detected",
    unit="1",
)

behavior_analysis_failures = meter.create_counter(
    name="widget_hub.behavior.failures",
    description="Total behavioral analyses that fell back to the safe result",
    unit="1",
)

behavior_risk_score = meter.create_histogram(
    name="widget_hub.behavior.risk_score",
    description="Distribution of behavioral risk scores",
    unit="1",
)

# =============================================================================
# LLM METRICS
# =============================================================================

llm_requests = meter.create_counter(
    name="widget_hub.llm.requests",
    description="Total chat completion requests",
    unit="1",
)

llm_request_time = meter.create_histogram(
    name="widget_hub.llm.request_time",
    description="Duration of chat completion streams",
    unit="ms",
)
