"""Tests for Communication API controller."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from api.controllers.communication_controller import (
    BroadcastMessageRequest,
    CollaborativeOperationRequest,
    CommunicationController,
    CreateConnectionRequest,
    RegisterWidgetRequest,
    SendMessageRequest,
)
from application.commands import (
    ApplyCollaborativeOperationCommand,
    BroadcastMessageCommand,
    CreateConnectionCommand,
    ReceiveWidgetMessagesCommand,
    RegisterCommunicationWidgetCommand,
    SendMessageCommand,
)
from application.queries import GetCommunicationMetricsQuery, GetMessageHistoryQuery
from domain.enums import ConnectionType
from tests.fixtures.factories import operation_result


class TestCommunicationController:
    """Test CommunicationController endpoints."""

    @pytest.fixture
    def mock_mediator(self) -> MagicMock:
        mock = MagicMock()
        mock.execute_async = AsyncMock(return_value=operation_result({}))
        return mock

    @pytest.fixture
    def controller(self, mock_mediator: MagicMock) -> CommunicationController:
        return CommunicationController(service_provider=MagicMock(), mapper=MagicMock(), mediator=mock_mediator)

    def sent(self, mock_mediator: MagicMock):
        return mock_mediator.execute_async.call_args[0][0]

    def test_connection_type_description_lists_every_type(self) -> None:
        description = CreateConnectionRequest.model_fields["connection_type"].description

        assert description is not None
        assert all(t.value in description for t in ConnectionType)
        assert "command" not in description

    @pytest.mark.asyncio
    async def test_send_message_accepts_wire_aliases(self, controller: CommunicationController, mock_mediator: MagicMock) -> None:
        # Arrange
        mock_mediator.execute_async.return_value = operation_result({"message_id": "m1"}, status=202)
        request = SendMessageRequest.model_validate({"from": "A", "to": "B", "type": "data.update", "payload": {"value": 42}, "ttl": 30})

        # Act
        response = await controller.send_message(request)

        # Assert
        assert response.status_code == 202
        assert json.loads(response.body)["data"] == {"message_id": "m1"}
        command = self.sent(mock_mediator)
        assert isinstance(command, SendMessageCommand)
        assert (command.from_widget, command.to_widget, command.message_type) == ("A", "B", "data.update")
        assert command.payload == {"value": 42}
        assert command.ttl == 30

    @pytest.mark.asyncio
    async def test_broadcast(self, controller: CommunicationController, mock_mediator: MagicMock) -> None:
        request = BroadcastMessageRequest.model_validate({"from": "A", "type": "refresh", "filters": [{"field": "region", "operator": "eq", "value": "eu"}]})

        await controller.broadcast_message(request)

        command = self.sent(mock_mediator)
        assert isinstance(command, BroadcastMessageCommand)
        assert command.filters[0]["value"] == "eu"

    @pytest.mark.asyncio
    async def test_register_and_connect(self, controller: CommunicationController, mock_mediator: MagicMock) -> None:
        await controller.register_widget(RegisterWidgetRequest(widget_id="A", ports=[{"name": "out", "type": "output"}], topics=["sales"]))
        register = self.sent(mock_mediator)
        await controller.create_connection(CreateConnectionRequest(source_widget="A", source_port="out", target_widget="B", target_port="in"))
        connect = self.sent(mock_mediator)

        assert isinstance(register, RegisterCommunicationWidgetCommand) and register.topics == ["sales"]
        assert isinstance(connect, CreateConnectionCommand) and connect.connection_type == "data"

    @pytest.mark.asyncio
    async def test_operations_and_inbox(self, controller: CommunicationController, mock_mediator: MagicMock) -> None:
        request = CollaborativeOperationRequest(type="update", widget_id="A", session_id="s1", operation={"path": "state.title", "new_value": "Q3"}, queued=True)

        await controller.apply_operation(request)
        operation = self.sent(mock_mediator)
        await controller.receive_messages("B", limit=5)
        inbox = self.sent(mock_mediator)

        assert isinstance(operation, ApplyCollaborativeOperationCommand) and operation.queued is True
        assert isinstance(inbox, ReceiveWidgetMessagesCommand) and inbox.limit == 5

    @pytest.mark.asyncio
    async def test_history_and_metrics_queries(self, controller: CommunicationController, mock_mediator: MagicMock) -> None:
        await controller.get_message_history(widget_id="A", message_type="tick", limit=20)
        history = self.sent(mock_mediator)
        await controller.get_metrics(widget_id=None)
        metrics = self.sent(mock_mediator)

        assert isinstance(history, GetMessageHistoryQuery) and (history.widget_id, history.message_type, history.limit) == ("A", "tick", 20)
        assert isinstance(metrics, GetCommunicationMetricsQuery) and metrics.widget_id is None
