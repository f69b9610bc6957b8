"""Tests for the WidgetDefinition aggregate.

Tests cover:
- Registration with defaults and validation failures
- Revision under the same id (version history)
- Deprecation and tenant availability
"""

import pytest

from domain.entities import WidgetDefinition
from domain.enums import WidgetStatus
from domain.events.widget_definition import WidgetDefinitionRegisteredDomainEvent
from domain.exceptions import WidgetDefinitionValidationError
from tests.fixtures.factories import WidgetDefinitionFactory, WidgetPortFactory


class TestWidgetDefinitionRegistration:
    """Test WidgetDefinition registration."""

    def test_register_with_defaults(self) -> None:
        definition = WidgetDefinition.register(definition_id="revenue-card", name="Revenue", version="1.0.0", component="metric-card")

        assert definition.id() == "revenue-card"
        assert definition.state.status == WidgetStatus.ACTIVE.value
        assert definition.state.versions == ["1.0.0"]
        assert definition.state.dimensions["min_width"] == 200
        assert definition.state.security["sandboxed"] is False
        assert definition.state.ports == []

    def test_register_emits_registered_event(self) -> None:
        definition = WidgetDefinitionFactory.create(definition_id="revenue-card")

        events = definition._pending_events
        assert len(events) == 1
        assert isinstance(events[0], WidgetDefinitionRegisteredDomainEvent)
        assert events[0].definition["component"] == "metric-card"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"definition_id": "", "name": "Revenue", "version": "1.0.0", "component": "metric-card"},
            {"definition_id": "w", "name": "", "version": "1.0.0", "component": "metric-card"},
            {"definition_id": "w", "name": "Revenue", "version": "", "component": "metric-card"},
            {"definition_id": "w", "name": "Revenue", "version": "1.0.0", "component": ""},
        ],
    )
    def test_register_requires_fields(self, kwargs: dict) -> None:
        with pytest.raises(WidgetDefinitionValidationError):
            WidgetDefinition.register(**kwargs)

    def test_register_rejects_non_object_schema(self) -> None:
        with pytest.raises(WidgetDefinitionValidationError, match="Invalid config schema"):
            WidgetDefinition.register(definition_id="w", name="W", version="1", component="text", config_schema=["not", "a", "dict"])  # type: ignore[arg-type]

    def test_sandboxed_widget_requires_permissions(self) -> None:
        with pytest.raises(WidgetDefinitionValidationError, match="permissions"):
            WidgetDefinition.register(definition_id="w", name="W", version="1", component="iframe-embed", security={"sandboxed": True})

        definition = WidgetDefinition.register(
            definition_id="w",
            name="W",
            version="1",
            component="iframe-embed",
            security={"sandboxed": True, "permissions": ["allow-scripts"]},
        )
        assert definition.state.security["permissions"] == ["allow-scripts"]

    def test_port_names_must_be_unique(self) -> None:
        with pytest.raises(WidgetDefinitionValidationError, match="unique"):
            WidgetDefinitionFactory.create(ports=[WidgetPortFactory.output("value"), WidgetPortFactory.input("value")])

    def test_ports_round_trip(self) -> None:
        definition = WidgetDefinitionFactory.create(ports=[WidgetPortFactory.output("value"), WidgetPortFactory.input("filter", "string")])

        ports = definition.get_ports()

        assert [p.name for p in ports] == ["value", "filter"]
        assert ports[1].data_type == "string"


class TestWidgetDefinitionLifecycle:
    """Test revision, deprecation and availability."""

    def test_revise_keeps_version_history(self) -> None:
        definition = WidgetDefinitionFactory.create(definition_id="revenue-card", version="1.0.0")

        definition.revise(name="Revenue v2", version="2.0.0", component="metric-card")

        assert definition.id() == "revenue-card"
        assert definition.state.name == "Revenue v2"
        assert definition.state.version == "2.0.0"
        assert definition.state.versions == ["1.0.0", "2.0.0"]

    def test_revise_with_same_version_does_not_duplicate_history(self) -> None:
        definition = WidgetDefinitionFactory.create(version="1.0.0")

        definition.revise(name="Renamed", version="1.0.0", component="metric-card")

        assert definition.state.versions == ["1.0.0"]

    def test_deprecate_is_idempotent(self) -> None:
        definition = WidgetDefinitionFactory.create()

        definition.deprecate()
        definition.deprecate()

        assert definition.state.status == WidgetStatus.DEPRECATED.value
        assert len(definition._pending_events) == 2

    def test_revise_reactivates_a_deprecated_definition(self) -> None:
        definition = WidgetDefinitionFactory.create()
        definition.deprecate()

        definition.revise(name="Back", version="1.1.0", component="metric-card")

        assert definition.state.status == WidgetStatus.ACTIVE.value

    def test_availability(self) -> None:
        private = WidgetDefinitionFactory.create(tenant_id="acme")
        public = WidgetDefinitionFactory.create(tenant_id="acme", is_public=True)

        assert private.is_available_to("acme")
        assert not private.is_available_to("globex")
        assert public.is_available_to("globex")

    def test_default_size_uses_minimum_dimensions(self) -> None:
        definition = WidgetDefinition.register(definition_id="w", name="W", version="1", component="text", dimensions={"min_width": 320})

        assert definition.default_size() == {"width": 320, "height": 150}
