"""Projects applied collaborative operations onto widget instance state.

The communication system publishes ``widget.operation.applied`` once an
operation has been resolved; this projector subscribes to it and mutates the
owning WidgetInstance aggregate.
"""

import logging
from typing import TYPE_CHECKING, Any

from neuroglia.dependency_injection import ServiceProviderBase
from neuroglia.hosting.abstractions import HostedService

from application.services.widget_event_bus import EventRetryPolicy, SubscriptionOptions, WidgetEvent, WidgetEventBus, WidgetEvents
from domain.repositories import WidgetInstanceRepository

if TYPE_CHECKING:
    from neuroglia.hosting.web import WebApplicationBuilder

log = logging.getLogger(__name__)


class WidgetOperationProjector(HostedService):
    """Event bus subscriber applying operations to instance aggregates."""

    def __init__(self, event_bus: WidgetEventBus, service_provider: ServiceProviderBase) -> None:
        self._event_bus = event_bus
        self._service_provider = service_provider
        self._subscription_id: str | None = None

    @staticmethod
    def configure(builder: "WebApplicationBuilder") -> None:
        def create_projector(sp: ServiceProviderBase) -> WidgetOperationProjector:
            return WidgetOperationProjector(event_bus=sp.get_required_service(WidgetEventBus), service_provider=sp)

        builder.services.add_singleton(WidgetOperationProjector, implementation_factory=create_projector)
        builder.services.add_singleton(HostedService, implementation_factory=lambda sp: sp.get_required_service(WidgetOperationProjector))

    async def start_async(self) -> None:
        if self._subscription_id is None:
            self._subscription_id = self._event_bus.subscribe(
                [WidgetEvents.OPERATION_APPLIED],
                self.handle_async,
                options=SubscriptionOptions(retry_policy=EventRetryPolicy(max_retries=3, backoff_ms=200)),
            )
            log.info("WidgetOperationProjector subscribed to applied operations")

    async def stop_async(self) -> None:
        if self._subscription_id is not None:
            self._event_bus.unsubscribe(self._subscription_id)
            self._subscription_id = None

    async def handle_async(self, event: WidgetEvent) -> None:
        async with self._service_provider.create_async_scope() as scope:
            repository = scope.get_required_service(WidgetInstanceRepository)
            await self.project_async(event.data, repository)

    async def project_async(self, operation: dict[str, Any], repository: WidgetInstanceRepository) -> bool:
        """Apply one serialized CollaborativeOperation to its instance.

        Returns:
            False when the operation targets a widget that is not a persisted instance
        """
        instance = await repository.get_async(operation["widget_id"])
        if instance is None:
            log.debug(f"No widget instance {operation['widget_id']} to project operation {operation['id']} on")
            return False

        payload = operation.get("operation") or {}
        version = instance.apply_operation(
            operation_id=operation["id"],
            operation_type=operation["type"],
            path=payload.get("path", ""),
            value=payload.get("new_value"),
            position=payload.get("position"),
            changed_by=operation.get("user_id"),
        )
        await repository.update_async(instance)
        log.debug(f"Instance {instance.id()} at state version {version} after operation {operation['id']}")
        return True
