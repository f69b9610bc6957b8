"""Widget Communication Service.

Owns the runtime communication context of every widget on the hub:
- Typed ports per registered widget and the directed connections between them
- Per-widget inbound message queues fed by direct, broadcast, topic and pattern routing
- Message subscriptions with filter predicates
- Collaborative operations with conflict detection and resolution
- Background loops: message drain, collaboration drain, connection health monitor

All state lives on the service instance; the host owns a single instance
registered as a singleton and HostedService.
"""

import asyncio
import fnmatch
import inspect
import logging
import re
import uuid
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from neuroglia.dependency_injection import ServiceProviderBase
from neuroglia.hosting.abstractions import HostedService

from application.services.widget_event_bus import WidgetEventBus, WidgetEvents
from domain.enums import ConflictResolution, ConnectionType, MessagePriority, PortType, RoutingStrategy
from domain.exceptions import DomainError, InvalidDirectionError, InvalidPatternError, InvalidPortError, MissingTargetError, WidgetNotRegisteredError
from domain.models import (
    CollaborationInfo,
    CollaborativeOperation,
    ConnectionConfig,
    MessageFilter,
    RoutingInfo,
    WidgetConnection,
    WidgetMessage,
    WidgetPort,
)
from domain.repositories import WidgetConnectionDtoRepository, WidgetMessageDtoRepository
from integration.models import WidgetMessageDto, connection_to_dto, message_to_dto
from observability import (
    connections_created,
    connections_degraded,
    message_delivery_latency,
    messages_delivered,
    messages_expired,
    messages_failed,
    messages_sent,
    operation_conflicts,
    operations_applied,
    operations_rejected,
)

if TYPE_CHECKING:
    from neuroglia.hosting.web import WebApplicationBuilder

    from application.settings import Settings

log = logging.getLogger(__name__)

WILDCARD = "*"
REGEX_PATTERN_PREFIX = "regex:"


@dataclass
class RetryPolicy:
    """Delivery retry policy for routing failures."""

    max_retries: int = 3
    backoff_ms: int = 1000
    exponential_backoff: bool = True

    def delay_ms(self, attempts: int) -> int:
        """Delay before the next attempt, given the attempts made so far."""
        if self.exponential_backoff:
            return self.backoff_ms * 2 ** max(attempts - 1, 0)
        return self.backoff_ms


@dataclass
class CommunicationConfig:
    """Runtime configuration of the communication system."""

    realtime_enabled: bool = True
    message_queue_size: int = 1000
    batch_processing: bool = True
    batch_size: int = 10
    compression_enabled: bool = True
    encryption_enabled: bool = False
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    routing_strategy: RoutingStrategy = RoutingStrategy.DIRECT
    collaboration_enabled: bool = True
    conflict_resolution: ConflictResolution = ConflictResolution.OPERATIONAL_TRANSFORM
    state_sync: bool = True
    message_drain_interval_seconds: float = 0.1
    collaboration_drain_interval_seconds: float = 0.05
    connection_monitor_interval_seconds: float = 5.0
    connection_error_threshold: int = 10

    @property
    def drain_batch_size(self) -> int:
        return self.batch_size if self.batch_processing else 1

    @classmethod
    def from_settings(cls, settings: "Settings") -> "CommunicationConfig":
        return cls(
            realtime_enabled=settings.realtime_enabled,
            message_queue_size=settings.message_queue_size,
            batch_processing=settings.batch_processing,
            batch_size=settings.batch_size,
            compression_enabled=settings.compression_enabled,
            encryption_enabled=settings.encryption_enabled,
            retry_policy=RetryPolicy(
                max_retries=settings.retry_max_retries,
                backoff_ms=settings.retry_backoff_ms,
                exponential_backoff=settings.retry_exponential_backoff,
            ),
            routing_strategy=RoutingStrategy(settings.routing_strategy),
            collaboration_enabled=settings.collaboration_enabled,
            conflict_resolution=ConflictResolution(settings.conflict_resolution),
            state_sync=settings.state_sync,
            message_drain_interval_seconds=settings.message_drain_interval_seconds,
            collaboration_drain_interval_seconds=settings.collaboration_drain_interval_seconds,
            connection_monitor_interval_seconds=settings.connection_monitor_interval_seconds,
            connection_error_threshold=settings.connection_error_threshold,
        )


MessageHandler = Callable[[WidgetMessage], Awaitable[None] | None]


@dataclass
class MessageSubscription:
    """A handler receiving the messages drained from one widget's queue."""

    widget_id: str
    message_types: list[str]
    handler: MessageHandler
    filters: list[MessageFilter] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def accepts(self, message: WidgetMessage) -> bool:
        if WILDCARD not in self.message_types and message.message_type not in self.message_types:
            return False
        return all(f.matches(message) for f in self.filters)


class WidgetCommunicationService(HostedService):
    """Routes messages between widget instances and resolves collaborative edits.

    Implements HostedService for automatic lifecycle management:
    - start_async(): Starts the message drain, collaboration drain and health monitor loops
    - stop_async(): Cancels them
    """

    def __init__(
        self,
        event_bus: WidgetEventBus,
        config: CommunicationConfig | None = None,
        service_provider: ServiceProviderBase | None = None,
    ):
        self._event_bus = event_bus
        self._config = config or CommunicationConfig()
        self._service_provider = service_provider

        self._ports: dict[str, list[WidgetPort]] = {}
        self._queues: dict[str, deque[WidgetMessage]] = {}
        self._connections: dict[str, WidgetConnection] = {}
        self._subscriptions: dict[str, MessageSubscription] = {}
        self._topics: dict[str, set[str]] = {}
        self._retry_queue: list[WidgetMessage] = []
        self._dirty_connections: set[str] = set()

        self._sessions: dict[str, set[str]] = {}
        self._session_operations: dict[str, list[CollaborativeOperation]] = {}
        self._pending_operations: deque[CollaborativeOperation] = deque()

        self._tasks: list[asyncio.Task] = []
        self._running = False

    @property
    def config(self) -> CommunicationConfig:
        return self._config

    @staticmethod
    def configure(builder: "WebApplicationBuilder") -> None:
        """Register the service as a singleton and HostedService.

        Must be called after WidgetEventBus.configure(builder).
        """
        from application.settings import app_settings

        config = CommunicationConfig.from_settings(app_settings)

        def create_service(sp: ServiceProviderBase) -> WidgetCommunicationService:
            return WidgetCommunicationService(
                event_bus=sp.get_required_service(WidgetEventBus),
                config=config,
                service_provider=sp,
            )

        builder.services.add_singleton(WidgetCommunicationService, implementation_factory=create_service)
        builder.services.add_singleton(HostedService, implementation_factory=lambda sp: sp.get_required_service(WidgetCommunicationService))
        log.info("✅ WidgetCommunicationService configured as HostedService")

    # =========================================================================
    # Widget registration
    # =========================================================================

    async def register_widget(self, widget_id: str, ports: list[WidgetPort], auto_connect: bool = False) -> list[WidgetConnection]:
        """Record a widget's ports and create its inbound queue.

        Registering an already known widget replaces its ports and removes the
        connections its new ports can no longer carry.

        Returns:
            The connections removed because of the new ports
        """
        known = widget_id in self._ports
        self._ports[widget_id] = list(ports)
        if widget_id not in self._queues:
            self._queues[widget_id] = deque(maxlen=self._config.message_queue_size)
        dropped = await self._revalidate_connections(widget_id) if known else []
        log.debug(f"Widget {widget_id} registered with {len(ports)} ports")

        await self._event_bus.publish(
            WidgetEvents.COMMUNICATION_REGISTERED,
            source=widget_id,
            data={"widget_id": widget_id, "ports": [p.to_dict() for p in ports]},
        )

        if auto_connect:
            await self._auto_connect_async(widget_id)
        return dropped

    async def _revalidate_connections(self, widget_id: str) -> list[WidgetConnection]:
        """Remove the widget's connections whose ports vanished or changed direction."""
        dropped = []
        for connection in [c for c in self._connections.values() if c.involves(widget_id)]:
            try:
                source = self._find_port(connection.source_widget, connection.source_port)
                target = self._find_port(connection.target_widget, connection.target_port)
                valid = source.can_emit and target.can_receive
            except DomainError:
                valid = False
            if not valid:
                dropped.append(connection)
                await self.remove_connection(connection.id)
                log.info(f"Connection {connection.id[:8]} removed: ports of {widget_id} no longer support it")
        return dropped

    async def _auto_connect_async(self, widget_id: str) -> None:
        """Wire output ports to the input ports of other widgets with the same data type."""
        for source in self._ports.get(widget_id, []):
            if source.type != PortType.OUTPUT:
                continue
            for other_id, other_ports in list(self._ports.items()):
                if other_id == widget_id:
                    continue
                for target in other_ports:
                    if target.type == PortType.INPUT and target.data_type == source.data_type:
                        await self.create_connection(widget_id, source.name, other_id, target.name)

    def is_registered(self, widget_id: str) -> bool:
        return widget_id in self._ports

    def get_registered_widgets(self) -> list[str]:
        return list(self._ports.keys())

    def get_ports(self, widget_id: str) -> list[WidgetPort]:
        if widget_id not in self._ports:
            raise WidgetNotRegisteredError(widget_id)
        return list(self._ports[widget_id])

    async def cleanup_widget(self, widget_id: str) -> list[WidgetConnection]:
        """Forget a widget and cascade to everything that references it.

        Returns:
            The connections removed
        """
        self._ports.pop(widget_id, None)
        self._queues.pop(widget_id, None)
        self._retry_queue = [m for m in self._retry_queue if m.to_widget != widget_id]
        self._subscriptions = {sid: s for sid, s in self._subscriptions.items() if s.widget_id != widget_id}
        for members in self._topics.values():
            members.discard(widget_id)
        for participants in self._sessions.values():
            participants.discard(widget_id)

        removed = [c for c in self._connections.values() if c.involves(widget_id)]
        for connection in removed:
            del self._connections[connection.id]
            self._dirty_connections.discard(connection.id)

        await self._persist_async(WidgetConnectionDtoRepository, lambda repo: repo.remove_by_widget_async(widget_id))
        log.info(f"Widget {widget_id} cleaned up ({len(removed)} connections removed)")
        return removed

    async def unregister_widget(self, widget_id: str) -> list[WidgetConnection]:
        return await self.cleanup_widget(widget_id)

    # =========================================================================
    # Connections
    # =========================================================================

    async def create_connection(
        self,
        source_widget: str,
        source_port: str,
        target_widget: str,
        target_port: str,
        connection_type: ConnectionType | str = ConnectionType.DATA,
        config: ConnectionConfig | None = None,
        canvas_id: str = "default",
        tenant_id: str = "default",
    ) -> str:
        """Connect an emitting port to a receiving port.

        Raises:
            WidgetNotRegisteredError: Either widget is unknown
            InvalidPortError: Either port is not declared by its widget
            InvalidDirectionError: The source cannot emit or the target cannot receive

        Returns:
            The connection id
        """
        source = self._find_port(source_widget, source_port)
        target = self._find_port(target_widget, target_port)
        if not source.can_emit or not target.can_receive:
            raise InvalidDirectionError(f"{source_widget}.{source_port}", f"{target_widget}.{target_port}")

        connection = WidgetConnection(
            source_widget=source_widget,
            source_port=source.name,
            target_widget=target_widget,
            target_port=target.name,
            connection_type=ConnectionType(connection_type),
            config=config or ConnectionConfig(),
            canvas_id=canvas_id,
            tenant_id=tenant_id,
        )
        self._connections[connection.id] = connection
        connections_created.add(1, {"connection_type": connection.connection_type.value})
        log.info(f"Connection {connection.id[:8]} created: {source_widget}.{source.name} -> {target_widget}.{target.name}")

        await self._persist_async(WidgetConnectionDtoRepository, lambda repo: repo.add_async(connection_to_dto(connection)))
        await self._event_bus.publish(
            WidgetEvents.CONNECTION_CREATED,
            source=source_widget,
            target=target_widget,
            data=connection.to_dict(),
            tenant_id=tenant_id,
        )
        return connection.id

    def _find_port(self, widget_id: str, port_name: str) -> WidgetPort:
        ports = self._ports.get(widget_id)
        if ports is None:
            raise WidgetNotRegisteredError(widget_id)
        for port in ports:
            if port.name == port_name or port.id == port_name:
                return port
        raise InvalidPortError(widget_id, port_name)

    async def remove_connection(self, connection_id: str) -> bool:
        if self._connections.pop(connection_id, None) is None:
            return False
        self._dirty_connections.discard(connection_id)
        await self._persist_async(WidgetConnectionDtoRepository, lambda repo: repo.remove_async(connection_id))
        return True

    def get_connection(self, connection_id: str) -> WidgetConnection | None:
        return self._connections.get(connection_id)

    def get_connections(self, widget_id: str | None = None) -> list[WidgetConnection]:
        return [c for c in self._connections.values() if widget_id is None or c.involves(widget_id)]

    def _connections_carrying(self, from_widget: str, to_widget: str | None) -> list[WidgetConnection]:
        return [c for c in self._connections.values() if c.carries(from_widget, to_widget)]

    # =========================================================================
    # Sending & routing
    # =========================================================================

    async def send_message(
        self,
        from_widget: str,
        to_widget: str | None,
        message_type: str,
        payload: dict[str, Any] | None = None,
        priority: MessagePriority | str = MessagePriority.NORMAL,
        ttl: int | None = None,
        strategy: RoutingStrategy | str | None = None,
        topic: str | None = None,
        pattern: str | None = None,
        filters: list[MessageFilter] | None = None,
        collaboration: CollaborationInfo | None = None,
        tenant_id: str = "default",
        user_id: str | None = None,
    ) -> str:
        """Build a message and route it. Delivery happens on the next drain cycle.

        Raises:
            MissingTargetError: A direct message has no target widget
            InvalidPatternError: A ``regex:`` pattern does not compile

        Returns:
            The message id
        """
        routing_strategy = RoutingStrategy(strategy) if strategy else self._config.routing_strategy
        if routing_strategy == RoutingStrategy.DIRECT and not to_widget:
            raise MissingTargetError(from_widget)
        if pattern and pattern.startswith(REGEX_PATTERN_PREFIX):
            self._compile_pattern(pattern[len(REGEX_PATTERN_PREFIX) :])

        message = WidgetMessage(
            from_widget=from_widget,
            to_widget=to_widget if routing_strategy == RoutingStrategy.DIRECT else None,
            message_type=message_type,
            payload=payload or {},
            priority=MessagePriority(priority),
            ttl=ttl,
            routing=RoutingInfo(strategy=routing_strategy, topic=topic, pattern=pattern, filters=list(filters or [])),
            collaboration=collaboration,
            # Pass-through flags, the payload is never transformed
            compressed=self._config.compression_enabled,
            encrypted=self._config.encryption_enabled,
            tenant_id=tenant_id,
            user_id=user_id,
        )
        messages_sent.add(1, {"strategy": routing_strategy.value, "message_type": message_type})

        await self._route_async(message)
        await self._persist_async(WidgetMessageDtoRepository, lambda repo: repo.add_async(message_to_dto(message)))
        return message.id

    async def broadcast_message(
        self,
        from_widget: str,
        message_type: str,
        payload: dict[str, Any] | None = None,
        filters: list[MessageFilter] | None = None,
        **options: Any,
    ) -> str:
        return await self.send_message(from_widget, None, message_type, payload, strategy=RoutingStrategy.BROADCAST, filters=filters, **options)

    async def _route_async(self, message: WidgetMessage) -> bool:
        """Enqueue a message (or its per-recipient copies) according to its strategy."""
        message.delivery.last_attempt_at = datetime.now(UTC)
        strategy = message.routing.strategy

        if strategy == RoutingStrategy.DIRECT:
            if message.to_widget not in self._queues:
                await self._handle_routing_failure(message, f"Target widget not registered: {message.to_widget}")
                return False
            message.delivery.attempts += 1
            message.delivery.error = None
            message.delivery.next_attempt_at = None
            await self._enqueue_async(message)
            return True

        recipients = self._resolve_recipients(message)
        message.delivery.attempts += 1
        for widget_id in recipients:
            copy = message.copy_for(widget_id)
            if all(f.matches(copy) for f in message.routing.filters):
                await self._enqueue_async(copy)
        return True

    def _resolve_recipients(self, message: WidgetMessage) -> list[str]:
        strategy = message.routing.strategy
        if strategy == RoutingStrategy.TOPIC:
            members = self._topics.get(message.routing.topic or "", set())
            candidates = [w for w in self._queues if w in members]
        elif strategy == RoutingStrategy.PATTERN:
            candidates = [w for w in self._queues if self._matches_pattern(w, message.routing.pattern)]
        else:
            candidates = list(self._queues)
        return [w for w in candidates if w != message.from_widget]

    @staticmethod
    def _matches_pattern(widget_id: str, pattern: str | None) -> bool:
        if not pattern:
            return False
        if pattern.startswith(REGEX_PATTERN_PREFIX):
            return re.search(pattern[len(REGEX_PATTERN_PREFIX) :], widget_id) is not None
        return fnmatch.fnmatchcase(widget_id, pattern)

    @staticmethod
    def _compile_pattern(expression: str) -> re.Pattern:
        try:
            return re.compile(expression)
        except re.error as e:
            raise InvalidPatternError(REGEX_PATTERN_PREFIX + expression, str(e)) from e

    async def _enqueue_async(self, message: WidgetMessage) -> None:
        queue = self._queues[message.to_widget]  # type: ignore[index]
        if queue.maxlen is not None and len(queue) == queue.maxlen:
            log.warning(f"Queue of {message.to_widget} is full, dropping its oldest message")
        queue.append(message)
        log.debug(f"Message {message.id[:8]} ({message.message_type}) queued for {message.to_widget}")

        await self._event_bus.publish(
            WidgetEvents.MESSAGE_ROUTED,
            source=message.from_widget,
            target=message.to_widget,
            data={
                "message_id": message.id,
                "message_type": message.message_type,
                "strategy": message.routing.strategy.value,
                "priority": message.priority.value,
            },
            tenant_id=message.tenant_id,
            user_id=message.user_id,
        )

    async def _handle_routing_failure(self, message: WidgetMessage, error: str) -> None:
        delivery = message.delivery
        delivery.attempts += 1
        delivery.error = error
        messages_failed.add(1, {"reason": "routing"})

        policy = self._config.retry_policy
        if delivery.attempts < policy.max_retries:
            delay = policy.delay_ms(delivery.attempts)
            delivery.next_attempt_at = (delivery.last_attempt_at or datetime.now(UTC)) + timedelta(milliseconds=delay)
            self._retry_queue.append(message)
            log.warning(f"Message {message.id[:8]} not routed ({error}), retry {delivery.attempts}/{policy.max_retries} in {delay}ms")
        else:
            delivery.next_attempt_at = None
            log.error(f"Message {message.id[:8]} undeliverable after {delivery.attempts} attempts: {error}")
        await self._persist_delivery_async(message)

    async def process_retries(self, now: datetime | None = None) -> int:
        """Re-route every message whose retry is due.

        Returns:
            Number of messages retried
        """
        now = now or datetime.now(UTC)
        due = [m for m in self._retry_queue if m.delivery.next_attempt_at and m.delivery.next_attempt_at <= now]
        if not due:
            return 0
        due_ids = {id(m) for m in due}
        self._retry_queue = [m for m in self._retry_queue if id(m) not in due_ids]
        for message in due:
            await self._route_async(message)
        return len(due)

    def get_pending_retries(self) -> list[WidgetMessage]:
        return list(self._retry_queue)

    # =========================================================================
    # Topics & subscriptions
    # =========================================================================

    def subscribe_topic(self, widget_id: str, topic: str) -> None:
        if widget_id not in self._ports:
            raise WidgetNotRegisteredError(widget_id)
        self._topics.setdefault(topic, set()).add(widget_id)

    def unsubscribe_topic(self, widget_id: str, topic: str) -> None:
        self._topics.get(topic, set()).discard(widget_id)

    def subscribe(
        self,
        widget_id: str,
        message_types: list[str],
        handler: MessageHandler,
        filters: list[MessageFilter] | None = None,
    ) -> str:
        """Invoke ``handler`` for drained messages of ``widget_id`` matching the types and filters.

        Returns:
            The subscription id
        """
        subscription = MessageSubscription(widget_id=widget_id, message_types=list(message_types), handler=handler, filters=list(filters or []))
        self._subscriptions[subscription.id] = subscription
        return subscription.id

    def unsubscribe(self, subscription_id: str) -> bool:
        return self._subscriptions.pop(subscription_id, None) is not None

    # =========================================================================
    # Delivery
    # =========================================================================

    async def process_message_queues(self, now: datetime | None = None) -> int:
        """Single drain cycle over every inbound queue.

        Returns:
            Number of messages delivered
        """
        now = now or datetime.now(UTC)
        delivered = 0
        batch_size = self._config.drain_batch_size

        for widget_id in list(self._queues):
            queue = self._queues.get(widget_id)
            if not queue:
                continue
            batch = [m for m in queue if not m.delivery.delivered][:batch_size]
            dropped: set[int] = set()

            for message in batch:
                if message.is_expired(now):
                    message.delivery.error = "expired"
                    dropped.add(id(message))
                    messages_expired.add(1, {"message_type": message.message_type})
                    log.debug(f"Message {message.id[:8]} expired before delivery to {widget_id}")
                else:
                    await self._deliver_async(widget_id, message, now)
                    delivered += 1
                await self._persist_delivery_async(message)

            # The widget may have been cleaned up by a handler
            current = self._queues.get(widget_id)
            if current is not None:
                remaining = [m for m in current if not m.delivery.acknowledged and id(m) not in dropped]
                self._queues[widget_id] = deque(remaining, maxlen=self._config.message_queue_size)

        await self._flush_connection_stats_async()
        return delivered

    async def _deliver_async(self, widget_id: str, message: WidgetMessage, now: datetime) -> None:
        message.delivery.delivered = True
        message.delivery.last_attempt_at = now

        latency_ms = max((now - message.timestamp).total_seconds() * 1000, 0.0)
        for connection in self._connections_carrying(message.from_widget, widget_id):
            connection.record_delivery(latency_ms, now)
            self._dirty_connections.add(connection.id)
        messages_delivered.add(1, {"message_type": message.message_type})
        message_delivery_latency.record(latency_ms, {"message_type": message.message_type})

        handled = False
        for subscription in list(self._subscriptions.values()):
            if subscription.widget_id != widget_id:
                continue
            try:
                if not subscription.accepts(message):
                    continue
                result = subscription.handler(message)
                if inspect.isawaitable(result):
                    await result
                handled = True
            except Exception as e:
                message.delivery.error = str(e)
                messages_failed.add(1, {"reason": "handler"})
                for connection in self._connections_carrying(message.from_widget, widget_id):
                    connection.record_error()
                    self._dirty_connections.add(connection.id)
                log.warning(f"Handler {subscription.id[:8]} failed on message {message.id[:8]}: {e}")

        if handled and message.delivery.error is None:
            message.delivery.acknowledged = True

    def get_queue(self, widget_id: str) -> list[WidgetMessage]:
        """Snapshot of a widget's inbound queue, oldest first."""
        if widget_id not in self._queues:
            raise WidgetNotRegisteredError(widget_id)
        return list(self._queues[widget_id])

    async def receive_messages(self, widget_id: str, limit: int | None = None) -> list[WidgetMessage]:
        """Pull and acknowledge delivered messages from a widget's queue."""
        if widget_id not in self._queues:
            raise WidgetNotRegisteredError(widget_id)
        queue = self._queues[widget_id]
        ready = [m for m in queue if m.delivery.delivered and not m.delivery.acknowledged]
        if limit is not None:
            ready = ready[:limit]
        for message in ready:
            message.delivery.acknowledged = True
        self._queues[widget_id] = deque((m for m in queue if not m.delivery.acknowledged), maxlen=self._config.message_queue_size)
        for message in ready:
            await self._persist_delivery_async(message)
        return ready

    # =========================================================================
    # Collaboration
    # =========================================================================

    def join_session(self, session_id: str, widget_id: str) -> None:
        self._sessions.setdefault(session_id, set()).add(widget_id)
        self._session_operations.setdefault(session_id, [])

    def leave_session(self, session_id: str, widget_id: str) -> None:
        participants = self._sessions.get(session_id)
        if participants is None:
            return
        participants.discard(widget_id)
        if not participants:
            del self._sessions[session_id]
            self._session_operations.pop(session_id, None)

    def get_session_participants(self, session_id: str) -> list[str]:
        return sorted(self._sessions.get(session_id, set()))

    def get_session_operations(self, session_id: str) -> list[CollaborativeOperation]:
        return list(self._session_operations.get(session_id, []))

    def submit_operation(self, operation: CollaborativeOperation) -> None:
        """Queue an operation for the next collaboration drain cycle."""
        self._pending_operations.append(operation)

    async def process_collaborative_operations(self) -> int:
        """Single collaboration drain cycle.

        Returns:
            Number of operations applied
        """
        applied = 0
        while self._pending_operations:
            operation = self._pending_operations.popleft()
            if await self.apply_operation(operation):
                applied += 1
        return applied

    def detect_conflicts(self, operation: CollaborativeOperation) -> list[CollaborativeOperation]:
        """Operations of the same session that touched the same widget path."""
        history = self._session_operations.get(operation.session_id, [])
        return [existing for existing in history if existing.conflicts_with(operation)]

    async def apply_operation(self, operation: CollaborativeOperation) -> bool:
        """Resolve conflicts, execute and broadcast a collaborative operation.

        Returns:
            True when applied. On failure ``operation.rejected`` is set, except
            for operations that were already applied and are left untouched.
        """
        if operation.applied:
            return False
        if not self._config.collaboration_enabled:
            return self._reject(operation, "Collaboration is disabled")
        if not operation.operation.path:
            return self._reject(operation, "Operation path is required")

        conflicts = self.detect_conflicts(operation)
        if conflicts:
            operation_conflicts.add(1, {"resolution": self._config.conflict_resolution.value})
            self._resolve_conflicts(operation, conflicts)

        transform = operation.transform
        transform.result_version = max(transform.result_version, transform.base_version + 1)

        try:
            await self._event_bus.publish(
                WidgetEvents.OPERATION_APPLIED,
                source=operation.widget_id,
                target=operation.widget_id,
                data=operation.to_dict(),
                user_id=operation.user_id,
                session_id=operation.session_id,
            )
        except Exception as e:
            log.error(f"Failed to execute operation {operation.id[:8]}: {e}")
            return self._reject(operation, str(e))

        operation.applied = True
        self._session_operations.setdefault(operation.session_id, []).append(operation)
        operations_applied.add(1, {"operation_type": operation.type.value})

        for participant in self.get_session_participants(operation.session_id):
            if participant == operation.widget_id:
                continue
            await self._event_bus.publish(
                WidgetEvents.OPERATION_BROADCAST,
                source=operation.widget_id,
                target=participant,
                data=operation.to_dict(),
                user_id=operation.user_id,
                session_id=operation.session_id,
            )
        log.debug(f"Operation {operation.id[:8]} applied on {operation.widget_id} at {operation.operation.path}")
        return True

    def _resolve_conflicts(self, operation: CollaborativeOperation, conflicts: list[CollaborativeOperation]) -> None:
        transform = operation.transform
        transform.conflicts = list(dict.fromkeys(transform.conflicts + [c.id for c in conflicts]))
        mode = self._config.conflict_resolution
        if mode == ConflictResolution.LAST_WRITE_WINS:
            return

        # Last-writer version bump: the payload itself is not transformed
        transform.base_version = max([transform.base_version] + [c.transform.result_version for c in conflicts])
        transform.result_version = max(transform.result_version, transform.base_version + 1)

        if mode == ConflictResolution.MERGE:
            latest = conflicts[-1].operation.new_value
            if isinstance(latest, dict) and isinstance(operation.operation.new_value, dict):
                operation.operation.new_value = {**latest, **operation.operation.new_value}

    def _reject(self, operation: CollaborativeOperation, reason: str) -> bool:
        operation.reject(reason)
        operations_rejected.add(1, {"operation_type": operation.type.value})
        log.warning(f"Operation {operation.id[:8]} rejected: {reason}")
        return False

    # =========================================================================
    # Health & metrics
    # =========================================================================

    async def monitor_connections(self) -> list[str]:
        """Single health check cycle.

        Returns:
            Ids of the connections degraded during this cycle
        """
        degraded = []
        for connection in list(self._connections.values()):
            if connection.state.is_active and connection.state.error_count > self._config.connection_error_threshold:
                connection.state.is_active = False
                degraded.append(connection.id)
                self._dirty_connections.add(connection.id)
                connections_degraded.add(1)
                log.warning(f"Connection {connection.id[:8]} degraded after {connection.state.error_count} errors")
                await self._event_bus.publish(
                    WidgetEvents.CONNECTION_DEGRADED,
                    source=connection.source_widget,
                    target=connection.target_widget,
                    data={"connection_id": connection.id, "error_count": connection.state.error_count},
                    tenant_id=connection.tenant_id,
                )
        await self._flush_connection_stats_async()
        return degraded

    def get_metrics(self, widget_id: str | None = None) -> dict[str, Any]:
        """Aggregate delivery statistics, optionally scoped to one widget's connections."""
        connections = self.get_connections(widget_id)
        total_messages = sum(c.state.message_count for c in connections)
        total_errors = sum(c.state.error_count for c in connections)
        average_latency = sum(c.state.latency for c in connections) / len(connections) if connections else 0.0

        if widget_id is None:
            queued = sum(len(q) for q in self._queues.values())
        else:
            queued = len(self._queues.get(widget_id, ()))

        return {
            "total_messages": total_messages,
            "average_latency": average_latency,
            "error_rate": total_errors / total_messages if total_messages else 0.0,
            "connection_count": len(connections),
            "active_connections": sum(1 for c in connections if c.state.is_active),
            "queued_messages": queued,
            "pending_retries": len(self._retry_queue),
        }

    async def get_message_history(self, widget_id: str | None = None, message_type: str | None = None, limit: int = 50) -> list[WidgetMessageDto]:
        """Persisted messages from or to a widget, newest first."""
        history: list[WidgetMessageDto] = []

        async def load(repo: WidgetMessageDtoRepository) -> None:
            history.extend(await repo.get_history_async(widget_id=widget_id, message_type=message_type, limit=limit))

        await self._persist_async(WidgetMessageDtoRepository, load)
        return history

    async def _persist_delivery_async(self, message: WidgetMessage) -> None:
        """Write the message's delivery status to its read model.

        Fan-out copies share the id of the sent message, the last copy written wins.
        """
        delivery = message.delivery
        await self._persist_async(
            WidgetMessageDtoRepository,
            lambda repo: repo.update_delivery_async(message.id, delivery.attempts, delivery.delivered, delivery.acknowledged, delivery.error),
        )

    async def _flush_connection_stats_async(self) -> None:
        """Write the state of every connection changed since the last flush."""
        dirty = [self._connections[cid] for cid in self._dirty_connections if cid in self._connections]
        self._dirty_connections.clear()
        if not dirty:
            return

        async def update(repo: WidgetConnectionDtoRepository) -> None:
            for connection in dirty:
                await repo.update_async(connection_to_dto(connection))

        await self._persist_async(WidgetConnectionDtoRepository, update)

    async def _persist_async(self, repository_type: type, action: Callable[[Any], Awaitable[Any]]) -> None:
        """Run ``action`` against a scoped repository; failures are logged, never raised."""
        if self._service_provider is None:
            return
        try:
            async with self._service_provider.create_async_scope() as scope:
                repository = scope.get_required_service(repository_type)
                await action(repository)
        except Exception as e:
            log.error(f"Persistence through {repository_type.__name__} failed: {e}")

    # =========================================================================
    # HostedService Lifecycle
    # =========================================================================

    async def start_async(self) -> None:
        if self._running:
            return
        self._running = True
        self._tasks = [
            asyncio.create_task(self._run_loop(self._drain_messages_once, self._config.message_drain_interval_seconds, "message drain")),
            asyncio.create_task(self._run_loop(self.process_collaborative_operations, self._config.collaboration_drain_interval_seconds, "collaboration drain")),
            asyncio.create_task(self._run_loop(self.monitor_connections, self._config.connection_monitor_interval_seconds, "connection monitor")),
        ]
        log.info("🚀 WidgetCommunicationService started (message drain, collaboration drain, connection monitor)")

    async def stop_async(self) -> None:
        self._running = False
        for task in self._tasks:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []
        log.info("🛑 WidgetCommunicationService stopped")

    async def _drain_messages_once(self) -> None:
        await self.process_retries()
        await self.process_message_queues()

    async def _run_loop(self, work: Callable[[], Awaitable[Any]], interval: float, name: str) -> None:
        while self._running:
            try:
                await asyncio.sleep(interval)
                await work()
            except asyncio.CancelledError:
                break
            except Exception as e:
                log.error(f"Error in {name} loop: {e}")
