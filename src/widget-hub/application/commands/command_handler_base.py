import datetime
import logging
import uuid
from dataclasses import asdict
from typing import Any, Optional

from neuroglia.eventing.cloud_events.cloud_event import CloudEvent, CloudEventSpecVersion
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_bus import CloudEventBus
from neuroglia.eventing.cloud_events.infrastructure.cloud_event_publisher import CloudEventPublishingOptions
from neuroglia.integration.models import IntegrationEvent
from neuroglia.mapping import Mapper
from neuroglia.mediation import Mediator

log = logging.getLogger(__name__)


class CommandHandlerBase:
    """Represents the base class for all services used to handle Widget Hub commands."""

    mediator: Mediator
    """ Gets the service used to mediate calls """

    mapper: Mapper
    """ Gets the service used to map objects """

    cloud_event_bus: CloudEventBus
    """ Gets the service used to observe the cloud events consumed and produced by the application """

    cloud_event_publishing_options: CloudEventPublishingOptions
    """ Gets the options used to configure how the application should publish cloud events """

    def __init__(
        self,
        mediator: Mediator,
        mapper: Mapper,
        cloud_event_bus: CloudEventBus,
        cloud_event_publishing_options: CloudEventPublishingOptions,
    ):
        self.mediator = mediator
        self.mapper = mapper
        self.cloud_event_bus = cloud_event_bus
        self.cloud_event_publishing_options = cloud_event_publishing_options

    def _get_user_id(self, user_info: Optional[dict[str, Any]], default: str = "system") -> str:
        """Extract the acting user id from user_info, falling back to ``default``."""
        if not user_info:
            return default
        return user_info.get("sub") or user_info.get("user_id") or user_info.get("preferred_username") or default

    async def publish_cloud_event_async(self, ev: IntegrationEvent) -> None:
        """Publishes the specified integration event as a cloud event"""
        try:
            cloud_event = CloudEvent(
                id=str(uuid.uuid4()).replace("-", ""),
                source=self.cloud_event_publishing_options.source,
                type=f"{self.cloud_event_publishing_options.type_prefix}.{ev.__cloudevent__type__}",
                specversion=CloudEventSpecVersion.v1_0,
                time=datetime.datetime.now(datetime.UTC),
                subject=ev.aggregate_id,
                data=asdict(ev),
            )
            self.cloud_event_bus.output_stream.on_next(cloud_event)
        except Exception as e:
            log.error(f"Failed to publish a cloudevent {ev}: Exception {e}")
