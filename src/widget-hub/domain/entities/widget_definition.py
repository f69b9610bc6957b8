"""WidgetDefinition aggregate definition using the AggregateState pattern.

A widget definition is a catalog entry describing a widget type:
- Which named component renders it (see WidgetComponentKind)
- The typed ports it exposes to the communication system
- Its configuration schema, defaults and layout constraints
- Security constraints (sandboxing and permissions)

Definitions are keyed by id; registering an existing id revises it in place.
"""

from datetime import UTC, datetime
from typing import Any

from multipledispatch import dispatch
from neuroglia.data.abstractions import AggregateRoot, AggregateState

from domain.enums import WidgetCategory, WidgetStatus
from domain.events.widget_definition import WidgetDefinitionDeprecatedDomainEvent, WidgetDefinitionRegisteredDomainEvent, WidgetDefinitionRevisedDomainEvent
from domain.exceptions import WidgetDefinitionValidationError
from domain.models import WidgetPort

DEFAULT_DIMENSIONS: dict[str, Any] = {
    "min_width": 200,
    "min_height": 150,
    "max_width": None,
    "max_height": None,
    "default_width": 400,
    "default_height": 300,
    "resizable": True,
}

DEFAULT_SECURITY: dict[str, Any] = {
    "sandboxed": False,
    "permissions": [],
    "trusted_origins": [],
}


class WidgetDefinitionState(AggregateState[str]):
    """Encapsulates the persisted state for the WidgetDefinition aggregate."""

    id: str
    name: str
    version: str
    category: str
    description: str
    author: str
    tags: list[str]
    component: str
    dependencies: list[str]
    config_schema: dict
    default_config: dict
    icon: str | None
    dimensions: dict
    capabilities: list[str]
    ports: list[dict]
    """WidgetPort.to_dict() entries"""

    security: dict
    tenant_id: str
    is_public: bool
    status: str
    versions: list[str]
    """Every version registered under this id, oldest first."""

    created_at: datetime
    updated_at: datetime

    def __init__(self) -> None:
        super().__init__()
        self.id = ""
        self.name = ""
        self.version = ""
        self.category = WidgetCategory.CUSTOM.value
        self.description = ""
        self.author = ""
        self.tags = []
        self.component = ""
        self.dependencies = []
        self.config_schema = {}
        self.default_config = {}
        self.icon = None
        self.dimensions = dict(DEFAULT_DIMENSIONS)
        self.capabilities = []
        self.ports = []
        self.security = dict(DEFAULT_SECURITY)
        self.tenant_id = "default"
        self.is_public = False
        self.status = WidgetStatus.ACTIVE.value
        self.versions = []

        now = datetime.now(UTC)
        self.created_at = now
        self.updated_at = now

    def _apply_definition(self, definition: dict) -> None:
        self.name = definition["name"]
        self.version = definition["version"]
        self.category = definition.get("category", WidgetCategory.CUSTOM.value)
        self.description = definition.get("description", "")
        self.author = definition.get("author", "")
        self.tags = list(definition.get("tags", []))
        self.component = definition["component"]
        self.dependencies = list(definition.get("dependencies", []))
        self.config_schema = dict(definition.get("config_schema", {}))
        self.default_config = dict(definition.get("default_config", {}))
        self.icon = definition.get("icon")
        self.dimensions = {**DEFAULT_DIMENSIONS, **definition.get("dimensions", {})}
        self.capabilities = list(definition.get("capabilities", []))
        self.ports = list(definition.get("ports", []))
        self.security = {**DEFAULT_SECURITY, **definition.get("security", {})}
        self.tenant_id = definition.get("tenant_id", "default")
        self.is_public = definition.get("is_public", False)
        if self.version not in self.versions:
            self.versions.append(self.version)

    # =========================================================================
    # Event Handlers - Apply events to state
    # =========================================================================

    @dispatch(WidgetDefinitionRegisteredDomainEvent)
    def on(self, event: WidgetDefinitionRegisteredDomainEvent) -> None:  # type: ignore[override]
        """Apply the registration event to the state."""
        self.id = event.aggregate_id
        self._apply_definition(event.definition)
        self.status = WidgetStatus.ACTIVE.value
        self.created_at = event.registered_at
        self.updated_at = event.registered_at

    @dispatch(WidgetDefinitionRevisedDomainEvent)
    def on(self, event: WidgetDefinitionRevisedDomainEvent) -> None:  # type: ignore[override]
        """Apply the revision event to the state."""
        self._apply_definition(event.definition)
        self.status = WidgetStatus.ACTIVE.value
        self.updated_at = event.revised_at

    @dispatch(WidgetDefinitionDeprecatedDomainEvent)
    def on(self, event: WidgetDefinitionDeprecatedDomainEvent) -> None:  # type: ignore[override]
        """Apply the deprecation event to the state."""
        self.status = WidgetStatus.DEPRECATED.value
        self.updated_at = event.deprecated_at


class WidgetDefinition(AggregateRoot[WidgetDefinitionState, str]):
    """WidgetDefinition aggregate root."""

    def __init__(self) -> None:
        super().__init__()

    # =========================================================================
    # Factory Methods
    # =========================================================================

    @classmethod
    def register(
        cls,
        definition_id: str,
        name: str,
        version: str,
        component: str,
        category: str = WidgetCategory.CUSTOM.value,
        description: str = "",
        author: str = "",
        tags: list[str] | None = None,
        dependencies: list[str] | None = None,
        config_schema: dict | None = None,
        default_config: dict | None = None,
        icon: str | None = None,
        dimensions: dict | None = None,
        capabilities: list[str] | None = None,
        ports: list[WidgetPort] | None = None,
        security: dict | None = None,
        tenant_id: str = "default",
        is_public: bool = False,
    ) -> "WidgetDefinition":
        """Factory method to register a new widget definition.

        Raises:
            WidgetDefinitionValidationError: If the definition is incomplete or inconsistent
        """
        definition = cls._build_definition(
            definition_id,
            name,
            version,
            component,
            category,
            description,
            author,
            tags,
            dependencies,
            config_schema,
            default_config,
            icon,
            dimensions,
            capabilities,
            ports,
            security,
            tenant_id,
            is_public,
        )

        aggregate = cls()
        event = WidgetDefinitionRegisteredDomainEvent(
            aggregate_id=definition_id,
            definition=definition,
            registered_at=datetime.now(UTC),
        )
        aggregate.state.on(aggregate.register_event(event))  # type: ignore
        return aggregate

    @staticmethod
    def _build_definition(
        definition_id: str,
        name: str,
        version: str,
        component: str,
        category: str,
        description: str,
        author: str,
        tags: list[str] | None,
        dependencies: list[str] | None,
        config_schema: dict | None,
        default_config: dict | None,
        icon: str | None,
        dimensions: dict | None,
        capabilities: list[str] | None,
        ports: list[WidgetPort] | None,
        security: dict | None,
        tenant_id: str,
        is_public: bool,
    ) -> dict:
        """Validate the definition fields and serialize them for the event payload."""
        if not definition_id or not name or not version:
            raise WidgetDefinitionValidationError("Widget definition missing required fields")
        if not component:
            raise WidgetDefinitionValidationError("Widget definition must reference a component")

        schema = {} if config_schema is None else config_schema
        if not isinstance(schema, dict):
            raise WidgetDefinitionValidationError("Invalid config schema")

        merged_security = {**DEFAULT_SECURITY, **(security or {})}
        if merged_security["sandboxed"] and not merged_security["permissions"]:
            raise WidgetDefinitionValidationError("Sandboxed widgets must specify permissions")

        port_names = [port.name for port in ports or []]
        if len(port_names) != len(set(port_names)):
            raise WidgetDefinitionValidationError("Widget port names must be unique")

        return {
            "name": name,
            "version": version,
            "category": category,
            "description": description,
            "author": author,
            "tags": list(tags or []),
            "component": component,
            "dependencies": list(dependencies or []),
            "config_schema": schema,
            "default_config": dict(default_config or {}),
            "icon": icon,
            "dimensions": {**DEFAULT_DIMENSIONS, **(dimensions or {})},
            "capabilities": list(capabilities or []),
            "ports": [port.to_dict() for port in ports or []],
            "security": merged_security,
            "tenant_id": tenant_id,
            "is_public": is_public,
        }

    # =========================================================================
    # Command Methods
    # =========================================================================

    def revise(
        self,
        name: str,
        version: str,
        component: str,
        category: str = WidgetCategory.CUSTOM.value,
        description: str = "",
        author: str = "",
        tags: list[str] | None = None,
        dependencies: list[str] | None = None,
        config_schema: dict | None = None,
        default_config: dict | None = None,
        icon: str | None = None,
        dimensions: dict | None = None,
        capabilities: list[str] | None = None,
        ports: list[WidgetPort] | None = None,
        security: dict | None = None,
        tenant_id: str = "default",
        is_public: bool = False,
    ) -> None:
        """Replace the definition with a newly registered one under the same id."""
        definition = self._build_definition(
            self.id(),
            name,
            version,
            component,
            category,
            description,
            author,
            tags,
            dependencies,
            config_schema,
            default_config,
            icon,
            dimensions,
            capabilities,
            ports,
            security,
            tenant_id,
            is_public,
        )
        event = WidgetDefinitionRevisedDomainEvent(
            aggregate_id=self.id(),
            definition=definition,
            previous_version=self.state.version,
            revised_at=datetime.now(UTC),
        )
        self.state.on(self.register_event(event))  # type: ignore

    def deprecate(self) -> None:
        """Withdraw this definition from the catalog."""
        if self.state.status == WidgetStatus.DEPRECATED.value:
            return
        event = WidgetDefinitionDeprecatedDomainEvent(aggregate_id=self.id(), deprecated_at=datetime.now(UTC))
        self.state.on(self.register_event(event))  # type: ignore

    # =========================================================================
    # Queries
    # =========================================================================

    def get_ports(self) -> list[WidgetPort]:
        return [WidgetPort.from_dict(port) for port in self.state.ports]

    def default_size(self) -> dict[str, int]:
        """Size given to new instances that do not specify one."""
        return {"width": self.state.dimensions["min_width"], "height": self.state.dimensions["min_height"]}

    def is_available_to(self, tenant_id: str) -> bool:
        return self.state.is_public or self.state.tenant_id == tenant_id
