"""Domain events for the WidgetDefinition aggregate.

A definition is registered once per id and revised in place when the same
id is registered again (for example with a new version).
"""

from dataclasses import dataclass
from datetime import datetime

from neuroglia.data.abstractions import DomainEvent
from neuroglia.eventing.cloud_events.decorators import cloudevent


@cloudevent("widget.definition.registered.v1")
@dataclass
class WidgetDefinitionRegisteredDomainEvent(DomainEvent):
    """Event raised when a widget definition is registered for the first time."""

    aggregate_id: str
    definition: dict  # Serialized definition fields (see WidgetDefinitionState)
    registered_at: datetime

    def __init__(self, aggregate_id: str, definition: dict, registered_at: datetime) -> None:
        super().__init__(aggregate_id)
        self.aggregate_id = aggregate_id
        self.definition = definition
        self.registered_at = registered_at


@cloudevent("widget.definition.revised.v1")
@dataclass
class WidgetDefinitionRevisedDomainEvent(DomainEvent):
    """Event raised when an existing definition is registered again."""

    aggregate_id: str
    definition: dict
    previous_version: str
    revised_at: datetime

    def __init__(self, aggregate_id: str, definition: dict, previous_version: str, revised_at: datetime) -> None:
        super().__init__(aggregate_id)
        self.aggregate_id = aggregate_id
        self.definition = definition
        self.previous_version = previous_version
        self.revised_at = revised_at


@cloudevent("widget.definition.deprecated.v1")
@dataclass
class WidgetDefinitionDeprecatedDomainEvent(DomainEvent):
    """Event raised when a definition is withdrawn from the catalog."""

    aggregate_id: str
    deprecated_at: datetime

    def __init__(self, aggregate_id: str, deprecated_at: datetime) -> None:
        super().__init__(aggregate_id)
        self.aggregate_id = aggregate_id
        self.deprecated_at = deprecated_at
