"""WidgetInstance aggregate definition using the AggregateState pattern.

A widget instance is a placement of a widget definition on a canvas. The
canvas owns its instances; each instance owns its runtime ``state`` which is
only mutated through collaborative operations applied to it.
"""

import copy
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from multipledispatch import dispatch
from neuroglia.data.abstractions import AggregateRoot, AggregateState

from domain.enums import OperationType
from domain.events.widget_instance import (
    WidgetInstanceChildAttachedDomainEvent,
    WidgetInstanceConfiguredDomainEvent,
    WidgetInstanceConnectionAttachedDomainEvent,
    WidgetInstanceConnectionDetachedDomainEvent,
    WidgetInstanceCreatedDomainEvent,
    WidgetInstanceHotSwappedDomainEvent,
    WidgetInstanceLoadedDomainEvent,
    WidgetInstancePerformanceRecordedDomainEvent,
    WidgetInstanceStateChangedDomainEvent,
    WidgetInstanceUnloadedDomainEvent,
)


def split_state_path(path: str) -> list[str]:
    """Split a dotted state path, ignoring a leading ``$`` or ``state`` segment."""
    keys = [key for key in path.split(".") if key]
    if keys and keys[0] in ("$", "state"):
        keys = keys[1:]
    return keys


def apply_state_change(state: dict, operation_type: str, path: str, value: Any, position: int | None) -> dict:
    """Return a copy of ``state`` with an insert/delete/update applied at ``path``.

    - update: sets the value at the path
    - insert: inserts into a list at ``position`` (appends when None), else sets the value
    - delete: removes a list element at ``position``, else removes the key
    """
    new_state = copy.deepcopy(state)
    keys = split_state_path(path)
    if not keys:
        if operation_type == OperationType.UPDATE.value and isinstance(value, dict):
            return copy.deepcopy(value)
        return new_state

    parent = new_state
    for key in keys[:-1]:
        child = parent.get(key)
        if not isinstance(child, dict):
            child = {}
            parent[key] = child
        parent = child

    leaf = keys[-1]
    current = parent.get(leaf)
    if operation_type == OperationType.UPDATE.value:
        parent[leaf] = value
    elif operation_type == OperationType.INSERT.value:
        if isinstance(current, list):
            if position is None:
                current.append(value)
            else:
                current.insert(position, value)
        else:
            parent[leaf] = value
    elif operation_type == OperationType.DELETE.value:
        if isinstance(current, list) and position is not None:
            if 0 <= position < len(current):
                del current[position]
        else:
            parent.pop(leaf, None)
    return new_state


class WidgetInstanceState(AggregateState[str]):
    """Encapsulates the persisted state for the WidgetInstance aggregate."""

    id: str
    widget_id: str
    version: str
    canvas_id: str
    tenant_id: str
    config: dict
    position: dict
    size: dict
    state: dict
    is_loaded: bool
    is_visible: bool
    is_locked: bool
    parent_id: str | None
    children: list[str]
    connections: list[str]
    state_version: int
    last_metrics: dict | None
    created_by: str
    created_at: datetime
    updated_at: datetime

    def __init__(self) -> None:
        super().__init__()
        self.id = ""
        self.widget_id = ""
        self.version = ""
        self.canvas_id = "default"
        self.tenant_id = "default"
        self.config = {}
        self.position = {"x": 0, "y": 0, "z": 0}
        self.size = {"width": 0, "height": 0}
        self.state = {}
        self.is_loaded = False
        self.is_visible = True
        self.is_locked = False
        self.parent_id = None
        self.children = []
        self.connections = []
        self.state_version = 0
        self.last_metrics = None
        self.created_by = "system"

        now = datetime.now(UTC)
        self.created_at = now
        self.updated_at = now

    # =========================================================================
    # Event Handlers - Apply events to state
    # =========================================================================

    @dispatch(WidgetInstanceCreatedDomainEvent)
    def on(self, event: WidgetInstanceCreatedDomainEvent) -> None:  # type: ignore[override]
        """Apply the creation event to the state."""
        self.id = event.aggregate_id
        self.widget_id = event.widget_id
        self.version = event.version
        self.canvas_id = event.canvas_id
        self.tenant_id = event.tenant_id
        self.config = dict(event.config)
        self.position = dict(event.position)
        self.size = dict(event.size)
        self.parent_id = event.parent_id
        self.created_by = event.created_by
        self.created_at = event.created_at
        self.updated_at = event.created_at

    @dispatch(WidgetInstanceConfiguredDomainEvent)
    def on(self, event: WidgetInstanceConfiguredDomainEvent) -> None:  # type: ignore[override]
        """Apply the configuration event to the state."""
        if event.config is not None:
            self.config = dict(event.config)
        if event.position is not None:
            self.position = {**self.position, **event.position}
        if event.size is not None:
            self.size = {**self.size, **event.size}
        if event.is_visible is not None:
            self.is_visible = event.is_visible
        if event.is_locked is not None:
            self.is_locked = event.is_locked
        if event.parent_id is not None:
            self.parent_id = event.parent_id or None
        self.updated_at = event.updated_at

    @dispatch(WidgetInstanceLoadedDomainEvent)
    def on(self, event: WidgetInstanceLoadedDomainEvent) -> None:  # type: ignore[override]
        self.is_loaded = True
        self.updated_at = event.loaded_at

    @dispatch(WidgetInstanceUnloadedDomainEvent)
    def on(self, event: WidgetInstanceUnloadedDomainEvent) -> None:  # type: ignore[override]
        self.is_loaded = False
        self.connections = []
        self.updated_at = event.unloaded_at

    @dispatch(WidgetInstanceHotSwappedDomainEvent)
    def on(self, event: WidgetInstanceHotSwappedDomainEvent) -> None:  # type: ignore[override]
        """Apply the hot swap; the new component is loaded by a separate event."""
        self.widget_id = event.new_widget_id
        self.version = event.version
        self.config = dict(event.config)
        self.is_loaded = False
        self.updated_at = event.swapped_at

    @dispatch(WidgetInstanceStateChangedDomainEvent)
    def on(self, event: WidgetInstanceStateChangedDomainEvent) -> None:  # type: ignore[override]
        """Apply a collaborative operation to the runtime state or layout."""
        if event.operation_type == OperationType.MOVE.value:
            self.position = {**self.position, **(event.value or {})}
        elif event.operation_type == OperationType.RESIZE.value:
            self.size = {**self.size, **(event.value or {})}
        else:
            self.state = apply_state_change(self.state, event.operation_type, event.path, event.value, event.position)
        self.state_version = event.state_version
        self.updated_at = event.changed_at

    @dispatch(WidgetInstanceConnectionAttachedDomainEvent)
    def on(self, event: WidgetInstanceConnectionAttachedDomainEvent) -> None:  # type: ignore[override]
        if event.connection_id not in self.connections:
            self.connections.append(event.connection_id)

    @dispatch(WidgetInstanceConnectionDetachedDomainEvent)
    def on(self, event: WidgetInstanceConnectionDetachedDomainEvent) -> None:  # type: ignore[override]
        self.connections = [cid for cid in self.connections if cid != event.connection_id]

    @dispatch(WidgetInstanceChildAttachedDomainEvent)
    def on(self, event: WidgetInstanceChildAttachedDomainEvent) -> None:  # type: ignore[override]
        if event.child_id not in self.children:
            self.children.append(event.child_id)

    @dispatch(WidgetInstancePerformanceRecordedDomainEvent)
    def on(self, event: WidgetInstancePerformanceRecordedDomainEvent) -> None:  # type: ignore[override]
        self.last_metrics = dict(event.metrics)


class WidgetInstance(AggregateRoot[WidgetInstanceState, str]):
    """WidgetInstance aggregate root."""

    def __init__(self) -> None:
        super().__init__()

    @classmethod
    def create(
        cls,
        widget_id: str,
        version: str,
        canvas_id: str,
        config: dict,
        size: dict,
        position: dict | None = None,
        parent_id: str | None = None,
        tenant_id: str = "default",
        created_by: str = "system",
        instance_id: str | None = None,
    ) -> "WidgetInstance":
        """Factory method to place a widget on a canvas.

        Args:
            widget_id: Id of the widget definition
            version: Definition version the instance was created from
            canvas_id: Canvas owning the instance
            config: Effective configuration (defaults already merged)
            size: Initial size
            position: Initial position, defaults to the canvas origin
            parent_id: Optional container instance
            tenant_id: Owning tenant
            created_by: User that created the instance
            instance_id: Optional explicit ID (auto-generated if not provided)
        """
        instance = cls()
        event = WidgetInstanceCreatedDomainEvent(
            aggregate_id=instance_id or str(uuid4()),
            widget_id=widget_id,
            version=version,
            canvas_id=canvas_id,
            tenant_id=tenant_id,
            config=config,
            position={"x": 0, "y": 0, "z": 0, **(position or {})},
            size=size,
            parent_id=parent_id,
            created_by=created_by,
            created_at=datetime.now(UTC),
        )
        instance.state.on(instance.register_event(event))  # type: ignore
        return instance

    def configure(
        self,
        config: dict | None = None,
        position: dict | None = None,
        size: dict | None = None,
        is_visible: bool | None = None,
        is_locked: bool | None = None,
        parent_id: str | None = None,
    ) -> bool:
        """Update configuration and layout. Returns False when nothing changed.

        An empty ``parent_id`` detaches the instance from its container.
        """
        if config is None and position is None and size is None and is_visible is None and is_locked is None and parent_id is None:
            return False
        event = WidgetInstanceConfiguredDomainEvent(
            aggregate_id=self.id(),
            updated_at=datetime.now(UTC),
            config=config,
            position=position,
            size=size,
            is_visible=is_visible,
            is_locked=is_locked,
            parent_id=parent_id,
        )
        self.state.on(self.register_event(event))  # type: ignore
        return True

    def mark_loaded(self, component: str) -> None:
        event = WidgetInstanceLoadedDomainEvent(aggregate_id=self.id(), component=component, loaded_at=datetime.now(UTC))
        self.state.on(self.register_event(event))  # type: ignore

    def unload(self) -> None:
        if not self.state.is_loaded and not self.state.connections:
            return
        event = WidgetInstanceUnloadedDomainEvent(aggregate_id=self.id(), unloaded_at=datetime.now(UTC))
        self.state.on(self.register_event(event))  # type: ignore

    def hot_swap(self, new_widget_id: str, version: str, default_config: dict) -> None:
        """Switch to another definition, keeping instance overrides over the new defaults."""
        event = WidgetInstanceHotSwappedDomainEvent(
            aggregate_id=self.id(),
            old_widget_id=self.state.widget_id,
            new_widget_id=new_widget_id,
            version=version,
            config={**default_config, **self.state.config},
            swapped_at=datetime.now(UTC),
        )
        self.state.on(self.register_event(event))  # type: ignore

    def apply_operation(
        self,
        operation_id: str,
        operation_type: str,
        path: str,
        value: Any,
        position: int | None = None,
        changed_by: str | None = None,
    ) -> int:
        """Apply a collaborative operation and return the new state version."""
        event = WidgetInstanceStateChangedDomainEvent(
            aggregate_id=self.id(),
            operation_id=operation_id,
            operation_type=operation_type,
            path=path,
            value=value,
            position=position,
            state_version=self.state.state_version + 1,
            changed_at=datetime.now(UTC),
            changed_by=changed_by,
        )
        self.state.on(self.register_event(event))  # type: ignore
        return self.state.state_version

    def attach_connection(self, connection_id: str) -> None:
        if connection_id in self.state.connections:
            return
        self.state.on(self.register_event(WidgetInstanceConnectionAttachedDomainEvent(self.id(), connection_id)))  # type: ignore

    def detach_connection(self, connection_id: str) -> None:
        if connection_id not in self.state.connections:
            return
        self.state.on(self.register_event(WidgetInstanceConnectionDetachedDomainEvent(self.id(), connection_id)))  # type: ignore

    def attach_child(self, child_id: str) -> None:
        if child_id in self.state.children:
            return
        self.state.on(self.register_event(WidgetInstanceChildAttachedDomainEvent(self.id(), child_id)))  # type: ignore

    def record_performance(self, metrics: dict) -> None:
        event = WidgetInstancePerformanceRecordedDomainEvent(aggregate_id=self.id(), metrics=metrics, recorded_at=datetime.now(UTC))
        self.state.on(self.register_event(event))  # type: ignore
