"""Tests for the widget communication value objects.

Tests cover:
- Port directions
- Message filters (operators, resolved properties, serialization)
- Message TTL and per-recipient copies
- Connection statistics
- Collaborative operation conflicts
"""

from datetime import UTC, datetime, timedelta

import pytest

from domain.enums import FilterOperator, FilterType, MessagePriority, PortType
from domain.models import (
    CollaborativeOperation,
    ConnectionConfig,
    MessageFilter,
    WidgetConnection,
    WidgetMessage,
    WidgetPort,
)
from tests.fixtures.factories import CollaborativeOperationFactory, WidgetPortFactory


class TestWidgetPort:
    """Test port direction rules and deserialization."""

    @pytest.mark.parametrize(
        "port_type,can_emit,can_receive",
        [
            (PortType.OUTPUT, True, False),
            (PortType.INPUT, False, True),
            (PortType.BIDIRECTIONAL, True, True),
        ],
    )
    def test_direction(self, port_type: PortType, can_emit: bool, can_receive: bool) -> None:
        port = WidgetPortFactory.create(type=port_type)

        assert port.can_emit is can_emit
        assert port.can_receive is can_receive

    def test_from_dict_defaults_id_to_name(self) -> None:
        port = WidgetPort.from_dict({"name": "value", "type": "output", "dataType": "number"})

        assert port.id == "value"
        assert port.type == PortType.OUTPUT
        assert port.data_type == "number"

    def test_from_dict_rejects_unknown_type(self) -> None:
        with pytest.raises(ValueError):
            WidgetPort.from_dict({"name": "value", "type": "sideways"})


class TestMessageFilter:
    """Test filter predicates over widget messages."""

    @pytest.fixture
    def message(self) -> WidgetMessage:
        return WidgetMessage(
            from_widget="sales-card",
            to_widget="chart",
            message_type="data.update",
            payload={"region": "emea", "totals": {"revenue": 1200}},
            tenant_id="acme",
            user_id="user123",
        )

    def test_message_type_equals(self, message: WidgetMessage) -> None:
        assert MessageFilter(type=FilterType.MESSAGE_TYPE, operator=FilterOperator.EQUALS, value="data.update").matches(message)
        assert not MessageFilter(type=FilterType.MESSAGE_TYPE, operator=FilterOperator.EQUALS, value="other").matches(message)

    def test_widget_filter_resolves_source_or_target(self, message: WidgetMessage) -> None:
        source = MessageFilter(type=FilterType.WIDGET, operator=FilterOperator.EQUALS, value="sales-card", property="from")
        target = MessageFilter(type=FilterType.WIDGET, operator=FilterOperator.EQUALS, value="chart")

        assert source.matches(message)
        assert target.matches(message)

    def test_contains_and_matches(self, message: WidgetMessage) -> None:
        assert MessageFilter(type=FilterType.USER, operator=FilterOperator.CONTAINS, value="123").matches(message)
        assert MessageFilter(type=FilterType.TENANT, operator=FilterOperator.MATCHES, value="^ac").matches(message)

    def test_in_and_not_in(self, message: WidgetMessage) -> None:
        assert MessageFilter(type=FilterType.TENANT, operator=FilterOperator.IN, value=["acme", "globex"]).matches(message)
        assert not MessageFilter(type=FilterType.TENANT, operator=FilterOperator.NOT_IN, value=["acme"]).matches(message)

    def test_custom_filter_reads_payload_path(self, message: WidgetMessage) -> None:
        nested = MessageFilter(type=FilterType.CUSTOM, operator=FilterOperator.EQUALS, value=1200, property="payload.totals.revenue")
        missing = MessageFilter(type=FilterType.CUSTOM, operator=FilterOperator.EQUALS, value=1, property="payload.totals.cost")

        assert nested.matches(message)
        assert not missing.matches(message)

    def test_custom_filter_reads_message_attribute(self, message: WidgetMessage) -> None:
        f = MessageFilter(type=FilterType.CUSTOM, operator=FilterOperator.EQUALS, value="emea", property="region")
        priority = MessageFilter(type=FilterType.CUSTOM, operator=FilterOperator.EQUALS, value=MessagePriority.NORMAL, property="priority")

        assert f.matches(message)
        assert priority.matches(message)

    def test_unknown_operator_lets_message_through(self, message: WidgetMessage) -> None:
        f = MessageFilter.from_dict({"type": "messageType", "operator": "startswith", "value": "nothing"})

        assert f.operator == "startswith"
        assert f.matches(message)

    def test_from_dict_defaults(self) -> None:
        f = MessageFilter.from_dict({"value": "x"})

        assert f.type == FilterType.CUSTOM
        assert f.operator == FilterOperator.EQUALS
        assert f.id
        assert f.to_dict()["operator"] == "equals"


class TestWidgetMessage:
    """Test message expiry and fan-out copies."""

    def test_message_without_ttl_never_expires(self) -> None:
        message = WidgetMessage(from_widget="a", message_type="ping")

        assert message.expires_at is None
        assert not message.is_expired(datetime.now(UTC) + timedelta(days=365))

    def test_ttl_is_in_seconds(self) -> None:
        message = WidgetMessage(from_widget="a", message_type="ping", ttl=30)

        assert message.expires_at == message.timestamp + timedelta(seconds=30)
        assert not message.is_expired(message.timestamp + timedelta(seconds=29))
        assert message.is_expired(message.timestamp + timedelta(seconds=30))

    def test_copy_for_keeps_id_and_tracks_delivery_separately(self) -> None:
        message = WidgetMessage(from_widget="a", message_type="ping", payload={"n": 1})
        message.delivery.attempts = 1

        copy = message.copy_for("b")
        copy.delivery.delivered = True
        copy.payload["n"] = 2

        assert copy.id == message.id
        assert copy.to_widget == "b"
        assert copy.delivery.attempts == 1
        assert message.delivery.delivered is False
        assert message.payload["n"] == 1

    def test_to_dict(self) -> None:
        message = WidgetMessage(from_widget="a", to_widget="b", message_type="ping", priority=MessagePriority.HIGH)

        data = message.to_dict()

        assert data["priority"] == "high"
        assert data["routing"]["strategy"] == "direct"
        assert data["collaboration"] is None


class TestWidgetConnection:
    """Test connection statistics."""

    def test_record_delivery_keeps_running_average(self) -> None:
        connection = WidgetConnection(source_widget="a", source_port="out", target_widget="b", target_port="in")

        connection.record_delivery(10.0)
        connection.record_delivery(30.0)

        assert connection.state.message_count == 2
        assert connection.state.latency == pytest.approx(20.0)
        assert connection.state.last_message_at is not None

    def test_involves_and_carries(self) -> None:
        connection = WidgetConnection(source_widget="a", source_port="out", target_widget="b", target_port="in")

        assert connection.involves("a") and connection.involves("b")
        assert not connection.involves("c")
        assert connection.carries("a", "b")
        assert connection.carries("a", None)
        assert not connection.carries("b", "a")

    def test_config_from_dict_accepts_camel_case_rate(self) -> None:
        config = ConnectionConfig.from_dict({"buffering": True, "throttling": {"enabled": True, "rateMs": 250}})

        assert config.buffering is True
        assert config.throttling.enabled is True
        assert config.throttling.rate_ms == 250


class TestCollaborativeOperation:
    """Test conflict detection between operations."""

    def test_same_widget_and_path_conflict(self) -> None:
        first = CollaborativeOperationFactory.create(path="state.title")
        second = CollaborativeOperationFactory.create(path="state.title", user_id="other")

        assert second.conflicts_with(first)
        assert not first.conflicts_with(first)

    def test_different_path_or_widget_do_not_conflict(self) -> None:
        first = CollaborativeOperationFactory.create(path="state.title")

        assert not CollaborativeOperationFactory.create(path="state.subtitle").conflicts_with(first)
        assert not CollaborativeOperationFactory.create(widget_id="widget-b").conflicts_with(first)

    def test_from_dict(self) -> None:
        operation = CollaborativeOperation.from_dict(
            {
                "type": "insert",
                "widget_id": "widget-a",
                "user_id": "user123",
                "session_id": "session-1",
                "operation": {"path": "state.items", "new_value": "x", "position": 0},
                "transform": {"base_version": 3},
            }
        )

        assert operation.operation.position == 0
        assert operation.transform.base_version == 3
        assert operation.applied is False
        assert operation.to_dict()["rejected"] is None

    def test_reject(self) -> None:
        operation = CollaborativeOperationFactory.create()

        operation.reject("nope")

        assert operation.rejected is not None
        assert operation.to_dict()["rejected"]["reason"] == "nope"
