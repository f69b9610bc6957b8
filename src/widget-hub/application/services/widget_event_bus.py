"""Widget Event Bus.

In-process publish/subscribe used to decouple the widget communication
system from the widget registry and monitoring code:
- Named event types (see WidgetEvents)
- Subscriptions with source/target/tenant/user/data filters
- Per-subscription retry policy with fixed or exponential backoff
- Dead-letter queue for handler failures that exhaust their retries
- Bounded event history with replay
- Optional mirroring of every event to the CloudEvent bus

Follows the Neuroglia framework configure() pattern for DI registration.
"""

import asyncio
import datetime
import inspect
import logging
import time
import uuid
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass, field
from datetime import UTC, timedelta
from typing import TYPE_CHECKING, Any

from neuroglia.eventing.cloud_events.cloud_event import CloudEvent, CloudEventSpecVersion
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_bus import CloudEventBus
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_publisher import CloudEventPublishingOptions
from neuroglia.hosting.abstractions import HostedService

from observability import bus_events_dead_lettered, bus_events_failed, bus_events_published, bus_processing_time

if TYPE_CHECKING:
    from neuroglia.hosting.web import WebApplicationBuilder

log = logging.getLogger(__name__)


class WidgetEvents:
    """Well-known widget event types."""

    # Registry lifecycle
    WIDGET_LOADED = "widget.loaded"
    WIDGET_UNLOADED = "widget.unloaded"
    WIDGET_CONFIGURED = "widget.configured"
    WIDGET_ERROR = "widget.error"
    WIDGET_HOT_SWAPPED = "widget.hot_swapped"

    # Communication
    WIDGET_MESSAGE = "widget.message"
    WIDGET_BROADCAST = "widget.broadcast"
    COMMUNICATION_REGISTERED = "widget.communication.registered"
    CONNECTION_CREATED = "widget.connection.created"
    CONNECTION_DEGRADED = "widget.connection.degraded"
    MESSAGE_ROUTED = "widget.message.routed"

    # Collaboration
    OPERATION_APPLIED = "widget.operation.applied"
    OPERATION_BROADCAST = "widget.operation.broadcast"

    # Data synchronization
    DATA_UPDATED = "data.updated"
    DATA_SYNC_REQUIRED = "data.sync_required"
    DATA_CONFLICT = "data.conflict"

    # UI and system
    UI_STATE_CHANGED = "ui.state_changed"
    SYSTEM_ALERT = "system.alert"
    TENANT_SWITCHED = "tenant.switched"


WILDCARD = "*"


@dataclass
class EventMetadata:
    timestamp: datetime.datetime = field(default_factory=lambda: datetime.datetime.now(UTC))
    version: int = 1
    priority: str = "normal"
    ttl: int = 3600  # seconds
    tenant_id: str | None = None
    user_id: str | None = None
    session_id: str | None = None
    correlation_id: str | None = None


@dataclass
class WidgetEvent:
    """An event published on the widget event bus."""

    type: str
    source: str
    data: dict[str, Any] = field(default_factory=dict)
    target: str | None = None
    metadata: EventMetadata = field(default_factory=EventMetadata)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass
class EventFilter:
    """Subscription filter; every criterion that is set must match."""

    source: str | None = None
    target: str | None = None
    tenant_id: str | None = None
    user_id: str | None = None
    data_conditions: dict[str, Any] = field(default_factory=dict)

    def matches(self, event: WidgetEvent) -> bool:
        if self.source and event.source != self.source:
            return False
        # Target filter only applies to targeted events
        if self.target and event.target and event.target != self.target:
            return False
        if self.tenant_id and event.metadata.tenant_id != self.tenant_id:
            return False
        if self.user_id and event.metadata.user_id != self.user_id:
            return False
        for key, expected in self.data_conditions.items():
            if event.data.get(key) != expected:
                return False
        return True


@dataclass
class EventRetryPolicy:
    max_retries: int = 3
    backoff_ms: int = 1000
    exponential_backoff: bool = True

    def delay_seconds(self, retry: int) -> float:
        """Delay before the ``retry``-th retry (1-based)."""
        if self.exponential_backoff:
            return self.backoff_ms * (2 ** (retry - 1)) / 1000
        return self.backoff_ms / 1000


@dataclass
class SubscriptionOptions:
    persistent: bool = False
    retry_policy: EventRetryPolicy = field(default_factory=EventRetryPolicy)
    dead_letter_queue: bool = True
    batch_size: int = 1
    parallel_processing: bool = False


EventHandler = Callable[[WidgetEvent], Awaitable[None] | None]


@dataclass
class EventSubscription:
    handler: EventHandler
    event_types: list[str]
    filter: EventFilter | None = None
    options: SubscriptionOptions = field(default_factory=SubscriptionOptions)
    is_active: bool = True
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime.datetime = field(default_factory=lambda: datetime.datetime.now(UTC))

    def accepts(self, event: WidgetEvent) -> bool:
        if not self.is_active:
            return False
        if WILDCARD not in self.event_types and event.type not in self.event_types:
            return False
        return self.filter is None or self.filter.matches(event)


@dataclass
class DeadLetter:
    event: WidgetEvent
    subscription_id: str
    error: str
    retries: int
    failed_at: datetime.datetime = field(default_factory=lambda: datetime.datetime.now(UTC))


@dataclass
class _PendingRetry:
    event: WidgetEvent
    subscription_id: str
    retry: int
    due_at: datetime.datetime


class WidgetEventBus(HostedService):
    """In-process event bus for widget events.

    Implements HostedService for automatic lifecycle management:
    - start_async(): Starts the retry and dead-letter cleanup background tasks
    - stop_async(): Stops them
    """

    def __init__(
        self,
        history_size: int = 10000,
        processing_window: int = 1000,
        retry_interval_seconds: float = 0.5,
        dead_letter_retention_hours: int = 24,
        cleanup_interval_seconds: float = 60.0,
        cloud_event_bus: CloudEventBus | None = None,
        cloud_event_publishing_options: CloudEventPublishingOptions | None = None,
    ):
        self._subscriptions: dict[str, EventSubscription] = {}
        self._history: deque[WidgetEvent] = deque(maxlen=history_size)
        self._dead_letters: list[DeadLetter] = []
        self._pending_retries: list[_PendingRetry] = []
        self._processing_times: deque[float] = deque(maxlen=processing_window)

        self._events_published = 0
        self._events_processed = 0
        self._events_failed = 0

        self._retry_interval = retry_interval_seconds
        self._dead_letter_retention = timedelta(hours=dead_letter_retention_hours)
        self._cleanup_interval = cleanup_interval_seconds

        self._cloud_event_bus = cloud_event_bus
        self._publishing_options = cloud_event_publishing_options

        self._retry_task: asyncio.Task | None = None
        self._cleanup_task: asyncio.Task | None = None
        self._running = False

    @staticmethod
    def configure(builder: "WebApplicationBuilder") -> None:
        """Configure WidgetEventBus in the service collection.

        Must be called after CloudEventPublisher.configure(builder) when
        events are mirrored to CloudEvents.
        """
        from application.settings import app_settings

        cloud_event_bus: CloudEventBus | None = None
        publishing_options: CloudEventPublishingOptions | None = None
        if app_settings.mirror_widget_events_to_cloudevents:
            for desc in builder.services:
                if desc.service_type == CloudEventBus and desc.singleton is not None:
                    cloud_event_bus = desc.singleton
                if desc.service_type == CloudEventPublishingOptions and desc.singleton is not None:
                    publishing_options = desc.singleton
            if not cloud_event_bus or not publishing_options:
                log.warning("CloudEventBus not found in DI container. Widget events will not be mirrored.")

        bus = WidgetEventBus(
            history_size=app_settings.event_history_size,
            processing_window=app_settings.event_processing_window,
            retry_interval_seconds=app_settings.event_retry_interval_seconds,
            dead_letter_retention_hours=app_settings.dead_letter_retention_hours,
            cleanup_interval_seconds=app_settings.dead_letter_cleanup_interval_seconds,
            cloud_event_bus=cloud_event_bus,
            cloud_event_publishing_options=publishing_options,
        )
        builder.services.add_singleton(WidgetEventBus, singleton=bus)
        builder.services.add_singleton(HostedService, singleton=bus)
        log.info("✅ WidgetEventBus configured as HostedService")

    # =========================================================================
    # Publish / Subscribe
    # =========================================================================

    async def publish_async(self, event: WidgetEvent) -> str:
        """Publish an event to every matching subscription.

        Handler failures are retried in the background and never raised here.

        Returns:
            The event id
        """
        self._history.append(event)
        self._events_published += 1
        bus_events_published.add(1, {"event_type": event.type})
        log.debug(f"Publishing {event.type} from {event.source} ({event.id[:8]})")

        self._mirror_to_cloud_event(event)

        matching = [s for s in self._subscriptions.values() if s.accepts(event)]
        sequential = [s for s in matching if not s.options.parallel_processing]
        parallel = [s for s in matching if s.options.parallel_processing]

        for subscription in sequential:
            await self._invoke_async(subscription, event, retry=0)
        if parallel:
            await asyncio.gather(*(self._invoke_async(s, event, retry=0) for s in parallel))
        return event.id

    async def publish(self, event_type: str, source: str, data: dict[str, Any] | None = None, target: str | None = None, **metadata: Any) -> str:
        """Build and publish an event in one call."""
        event = WidgetEvent(type=event_type, source=source, data=data or {}, target=target, metadata=EventMetadata(**metadata))
        return await self.publish_async(event)

    def subscribe(
        self,
        event_types: list[str],
        handler: EventHandler,
        filter: EventFilter | None = None,
        options: SubscriptionOptions | None = None,
    ) -> str:
        """Register a handler for the given event types ("*" for all).

        Returns:
            The subscription id
        """
        subscription = EventSubscription(handler=handler, event_types=list(event_types), filter=filter, options=options or SubscriptionOptions())
        self._subscriptions[subscription.id] = subscription
        log.debug(f"Subscription {subscription.id[:8]} registered for {event_types}")
        return subscription.id

    def unsubscribe(self, subscription_id: str) -> bool:
        subscription = self._subscriptions.pop(subscription_id, None)
        if subscription is None:
            return False
        self._pending_retries = [r for r in self._pending_retries if r.subscription_id != subscription_id]
        return True

    async def _invoke_async(self, subscription: EventSubscription, event: WidgetEvent, retry: int) -> bool:
        """Run one handler attempt; schedule a retry or dead-letter on failure."""
        start = time.perf_counter()
        try:
            result = subscription.handler(event)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self._events_failed += 1
            bus_events_failed.add(1, {"event_type": event.type})
            policy = subscription.options.retry_policy
            if retry < policy.max_retries:
                due_at = datetime.datetime.now(UTC) + timedelta(seconds=policy.delay_seconds(retry + 1))
                self._pending_retries.append(_PendingRetry(event=event, subscription_id=subscription.id, retry=retry + 1, due_at=due_at))
                log.warning(f"Handler {subscription.id[:8]} failed for {event.type} (retry {retry + 1}/{policy.max_retries} scheduled): {e}")
            elif subscription.options.dead_letter_queue:
                self._dead_letters.append(DeadLetter(event=event, subscription_id=subscription.id, error=str(e), retries=retry))
                bus_events_dead_lettered.add(1, {"event_type": event.type})
                log.error(f"Event {event.id[:8]} ({event.type}) moved to dead-letter queue: {e}")
            else:
                log.error(f"Handler {subscription.id[:8]} gave up on {event.type}: {e}")
            return False

        elapsed_ms = (time.perf_counter() - start) * 1000
        self._processing_times.append(elapsed_ms)
        self._events_processed += 1
        bus_processing_time.record(elapsed_ms, {"event_type": event.type})
        return True

    async def process_retries_async(self, now: datetime.datetime | None = None) -> int:
        """Run every retry that is due.

        Returns:
            Number of retries attempted
        """
        now = now or datetime.datetime.now(UTC)
        due = [r for r in self._pending_retries if r.due_at <= now]
        if not due:
            return 0
        self._pending_retries = [r for r in self._pending_retries if r.due_at > now]

        for pending in due:
            subscription = self._subscriptions.get(pending.subscription_id)
            if subscription is None or not subscription.is_active:
                continue
            await self._invoke_async(subscription, pending.event, retry=pending.retry)
        return len(due)

    def _mirror_to_cloud_event(self, event: WidgetEvent) -> None:
        if not self._cloud_event_bus or not self._publishing_options:
            return
        try:
            cloud_event = CloudEvent(
                id=str(uuid.uuid4()).replace("-", ""),
                source=self._publishing_options.source,
                type=f"{self._publishing_options.type_prefix}.{event.type}.v1",
                specversion=CloudEventSpecVersion.v1_0,
                time=event.metadata.timestamp,
                subject=event.target or event.source,
                data={"id": event.id, "source": event.source, "target": event.target, "data": event.data, "metadata": asdict(event.metadata)},
            )
            self._cloud_event_bus.output_stream.on_next(cloud_event)
        except Exception as e:
            log.error(f"Failed to mirror widget event {event.type} as cloudevent: {e}")

    # =========================================================================
    # History, Replay & Dead Letters
    # =========================================================================

    def get_event_history(
        self,
        event_types: list[str] | None = None,
        source: str | None = None,
        target: str | None = None,
        start_time: datetime.datetime | None = None,
        end_time: datetime.datetime | None = None,
        limit: int | None = None,
    ) -> list[WidgetEvent]:
        """Return recorded events, oldest first, optionally filtered."""
        events = [
            e
            for e in self._history
            if (not event_types or e.type in event_types)
            and (source is None or e.source == source)
            and (target is None or e.target == target)
            and (start_time is None or e.metadata.timestamp >= start_time)
            and (end_time is None or e.metadata.timestamp <= end_time)
        ]
        if limit is not None:
            events = events[-limit:]
        return events

    async def replay_events_async(self, subscription_id: str, from_time: datetime.datetime, event_types: list[str] | None = None) -> int:
        """Re-deliver recorded events to one subscription.

        Returns:
            Number of events replayed
        """
        subscription = self._subscriptions.get(subscription_id)
        if subscription is None:
            return 0
        replayed = 0
        for event in self.get_event_history(event_types=event_types, start_time=from_time):
            if subscription.accepts(event):
                await self._invoke_async(subscription, event, retry=0)
                replayed += 1
        log.info(f"Replayed {replayed} events to subscription {subscription_id[:8]}")
        return replayed

    def get_dead_letters(self) -> list[DeadLetter]:
        return list(self._dead_letters)

    def cleanup_dead_letters(self, now: datetime.datetime | None = None) -> int:
        """Drop dead letters older than the retention window.

        Returns:
            Number of entries removed
        """
        cutoff = (now or datetime.datetime.now(UTC)) - self._dead_letter_retention
        before = len(self._dead_letters)
        self._dead_letters = [d for d in self._dead_letters if d.failed_at > cutoff]
        return before - len(self._dead_letters)

    def get_metrics(self) -> dict[str, Any]:
        """Get event bus statistics."""
        average = sum(self._processing_times) / len(self._processing_times) if self._processing_times else 0.0
        return {
            "events_published": self._events_published,
            "events_processed": self._events_processed,
            "events_failed_processing": self._events_failed,
            "average_processing_time_ms": average,
            "subscriptions_active": sum(1 for s in self._subscriptions.values() if s.is_active),
            "dead_letter_queue_size": len(self._dead_letters),
            "pending_retries": len(self._pending_retries),
        }

    # =========================================================================
    # HostedService Lifecycle
    # =========================================================================

    async def start_async(self) -> None:
        if self._running:
            return
        self._running = True
        self._retry_task = asyncio.create_task(self._retry_loop())
        self._cleanup_task = asyncio.create_task(self._cleanup_loop())
        log.info("🚀 WidgetEventBus started (retry + dead-letter cleanup tasks)")

    async def stop_async(self) -> None:
        self._running = False
        for task in (self._retry_task, self._cleanup_task):
            if task:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        log.info("🛑 WidgetEventBus stopped")

    async def _retry_loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self._retry_interval)
                await self.process_retries_async()
            except asyncio.CancelledError:
                break
            except Exception as e:
                log.error(f"Error in event retry loop: {e}")

    async def _cleanup_loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self._cleanup_interval)
                removed = self.cleanup_dead_letters()
                if removed:
                    log.info(f"Removed {removed} expired dead letters")
            except asyncio.CancelledError:
                break
            except Exception as e:
                log.error(f"Error in dead-letter cleanup loop: {e}")
