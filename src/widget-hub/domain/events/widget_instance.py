"""Domain events for the WidgetInstance aggregate.

A widget instance lives on a canvas, owns its runtime state exclusively and
is mutated by configuration changes, collaborative operations and hot swaps.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from neuroglia.data.abstractions import DomainEvent
from neuroglia.eventing.cloud_events.decorators import cloudevent


@cloudevent("widget.instance.created.v1")
@dataclass
class WidgetInstanceCreatedDomainEvent(DomainEvent):
    """Event raised when a widget is placed on a canvas."""

    aggregate_id: str
    widget_id: str
    version: str
    canvas_id: str
    tenant_id: str
    config: dict
    position: dict
    size: dict
    parent_id: str | None
    created_by: str
    created_at: datetime

    def __init__(
        self,
        aggregate_id: str,
        widget_id: str,
        version: str,
        canvas_id: str,
        tenant_id: str,
        config: dict,
        position: dict,
        size: dict,
        parent_id: str | None,
        created_by: str,
        created_at: datetime,
    ) -> None:
        super().__init__(aggregate_id)
        self.aggregate_id = aggregate_id
        self.widget_id = widget_id
        self.version = version
        self.canvas_id = canvas_id
        self.tenant_id = tenant_id
        self.config = config
        self.position = position
        self.size = size
        self.parent_id = parent_id
        self.created_by = created_by
        self.created_at = created_at


@cloudevent("widget.instance.configured.v1")
@dataclass
class WidgetInstanceConfiguredDomainEvent(DomainEvent):
    """Event raised when an instance's configuration or layout changes.

    Fields left as None are unchanged.
    """

    aggregate_id: str
    config: dict | None
    position: dict | None
    size: dict | None
    is_visible: bool | None
    is_locked: bool | None
    parent_id: str | None
    updated_at: datetime

    def __init__(
        self,
        aggregate_id: str,
        updated_at: datetime,
        config: dict | None = None,
        position: dict | None = None,
        size: dict | None = None,
        is_visible: bool | None = None,
        is_locked: bool | None = None,
        parent_id: str | None = None,
    ) -> None:
        super().__init__(aggregate_id)
        self.aggregate_id = aggregate_id
        self.config = config
        self.position = position
        self.size = size
        self.is_visible = is_visible
        self.is_locked = is_locked
        self.parent_id = parent_id
        self.updated_at = updated_at


@cloudevent("widget.instance.loaded.v1")
@dataclass
class WidgetInstanceLoadedDomainEvent(DomainEvent):
    """Event raised when the instance's component has been resolved."""

    aggregate_id: str
    component: str
    loaded_at: datetime

    def __init__(self, aggregate_id: str, component: str, loaded_at: datetime) -> None:
        super().__init__(aggregate_id)
        self.aggregate_id = aggregate_id
        self.component = component
        self.loaded_at = loaded_at


@cloudevent("widget.instance.unloaded.v1")
@dataclass
class WidgetInstanceUnloadedDomainEvent(DomainEvent):
    """Event raised when the instance is removed from the running canvas."""

    aggregate_id: str
    unloaded_at: datetime

    def __init__(self, aggregate_id: str, unloaded_at: datetime) -> None:
        super().__init__(aggregate_id)
        self.aggregate_id = aggregate_id
        self.unloaded_at = unloaded_at


@cloudevent("widget.instance.hot_swapped.v1")
@dataclass
class WidgetInstanceHotSwappedDomainEvent(DomainEvent):
    """Event raised when the instance is switched to another widget definition."""

    aggregate_id: str
    old_widget_id: str
    new_widget_id: str
    version: str
    config: dict
    swapped_at: datetime

    def __init__(
        self,
        aggregate_id: str,
        old_widget_id: str,
        new_widget_id: str,
        version: str,
        config: dict,
        swapped_at: datetime,
    ) -> None:
        super().__init__(aggregate_id)
        self.aggregate_id = aggregate_id
        self.old_widget_id = old_widget_id
        self.new_widget_id = new_widget_id
        self.version = version
        self.config = config
        self.swapped_at = swapped_at


@cloudevent("widget.instance.state.changed.v1")
@dataclass
class WidgetInstanceStateChangedDomainEvent(DomainEvent):
    """Event raised when a collaborative operation is applied to the instance."""

    aggregate_id: str
    operation_id: str
    operation_type: str
    path: str
    value: Any
    position: int | None
    state_version: int
    changed_by: str | None
    changed_at: datetime

    def __init__(
        self,
        aggregate_id: str,
        operation_id: str,
        operation_type: str,
        path: str,
        value: Any,
        position: int | None,
        state_version: int,
        changed_at: datetime,
        changed_by: str | None = None,
    ) -> None:
        super().__init__(aggregate_id)
        self.aggregate_id = aggregate_id
        self.operation_id = operation_id
        self.operation_type = operation_type
        self.path = path
        self.value = value
        self.position = position
        self.state_version = state_version
        self.changed_by = changed_by
        self.changed_at = changed_at


@cloudevent("widget.instance.connection.attached.v1")
@dataclass
class WidgetInstanceConnectionAttachedDomainEvent(DomainEvent):
    aggregate_id: str
    connection_id: str

    def __init__(self, aggregate_id: str, connection_id: str) -> None:
        super().__init__(aggregate_id)
        self.aggregate_id = aggregate_id
        self.connection_id = connection_id


@cloudevent("widget.instance.connection.detached.v1")
@dataclass
class WidgetInstanceConnectionDetachedDomainEvent(DomainEvent):
    aggregate_id: str
    connection_id: str

    def __init__(self, aggregate_id: str, connection_id: str) -> None:
        super().__init__(aggregate_id)
        self.aggregate_id = aggregate_id
        self.connection_id = connection_id


@cloudevent("widget.instance.child.attached.v1")
@dataclass
class WidgetInstanceChildAttachedDomainEvent(DomainEvent):
    aggregate_id: str
    child_id: str

    def __init__(self, aggregate_id: str, child_id: str) -> None:
        super().__init__(aggregate_id)
        self.aggregate_id = aggregate_id
        self.child_id = child_id


@cloudevent("widget.instance.performance.recorded.v1")
@dataclass
class WidgetInstancePerformanceRecordedDomainEvent(DomainEvent):
    """Event raised when a performance sample is persisted for the instance."""

    aggregate_id: str
    metrics: dict
    recorded_at: datetime

    def __init__(self, aggregate_id: str, metrics: dict, recorded_at: datetime) -> None:
        super().__init__(aggregate_id)
        self.aggregate_id = aggregate_id
        self.metrics = metrics
        self.recorded_at = recorded_at
