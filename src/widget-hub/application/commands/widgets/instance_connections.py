"""Keeps persisted widget instances in step with the connections the communication service drops."""

import logging
from collections.abc import Iterable

from domain.entities import WidgetInstance
from domain.models import WidgetConnection
from domain.repositories import WidgetInstanceRepository

log = logging.getLogger(__name__)


async def detach_connections_async(
    instance_repository: WidgetInstanceRepository,
    connections: Iterable[WidgetConnection],
    loaded: Iterable[WidgetInstance] = (),
) -> None:
    """Detach each connection from both of its endpoint instances.

    Instances passed in ``loaded`` are detached in place and left for the caller
    to save; every other endpoint is fetched, detached and saved here.
    """
    instances = {instance.id(): instance for instance in loaded}
    changed: dict[str, WidgetInstance] = {}

    for connection in connections:
        for widget_id in (connection.source_widget, connection.target_widget):
            instance = instances.get(widget_id) or changed.get(widget_id)
            if instance is None:
                instance = await instance_repository.get_async(widget_id)
                if instance is None:
                    continue
                changed[widget_id] = instance
            instance.detach_connection(connection.id)

    for instance in changed.values():
        await instance_repository.update_async(instance)
    if changed:
        log.debug(f"Detached connections from {len(changed)} peer instance(s)")
