"""Tests for Behavior API controller."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from api.controllers.behavior_controller import AnalyzeBehaviorRequest, BehaviorController
from application.commands import AnalyzeBehaviorCommand
from application.queries import GetBehavioralProfileQuery
from tests.fixtures.factories import operation_result


class TestBehaviorController:
    """Test BehaviorController endpoints."""

    @pytest.fixture
    def mock_mediator(self) -> MagicMock:
        mock = MagicMock()
        mock.execute_async = AsyncMock()
        return mock

    @pytest.fixture
    def controller(self, mock_mediator: MagicMock) -> BehaviorController:
        return BehaviorController(service_provider=MagicMock(), mapper=MagicMock(), mediator=mock_mediator)

    @pytest.mark.asyncio
    async def test_analyze(self, controller: BehaviorController, mock_mediator: MagicMock) -> None:
        # Arrange
        mock_mediator.execute_async.return_value = operation_result({"risk_score": 12.5, "anomalies": []})
        request = AnalyzeBehaviorRequest(user_id="user123", metrics={"keystroke_dynamics": {"typing_speed": 60}}, session_id="s1")

        # Act
        response = await controller.analyze(request)

        # Assert
        assert json.loads(response.body) == {"success": True, "data": {"risk_score": 12.5, "anomalies": []}}
        command = mock_mediator.execute_async.call_args[0][0]
        assert isinstance(command, AnalyzeBehaviorCommand)
        assert command.session_id == "s1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{"metrics": {"keystroke_dynamics": {}}}, {"user_id": "user123"}, {"user_id": "", "metrics": {"a": 1}}])
    async def test_analyze_requires_user_and_metrics(self, controller: BehaviorController, mock_mediator: MagicMock, payload: dict) -> None:
        response = await controller.analyze(AnalyzeBehaviorRequest(**payload))

        assert response.status_code == 400
        assert json.loads(response.body) == {"success": False, "error": "Missing required fields: user_id, metrics"}
        mock_mediator.execute_async.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_profile(self, controller: BehaviorController, mock_mediator: MagicMock) -> None:
        mock_mediator.execute_async.return_value = operation_result({"exists": False})

        response = await controller.get_profile("user123")

        assert response.status_code == 200
        query = mock_mediator.execute_async.call_args[0][0]
        assert isinstance(query, GetBehavioralProfileQuery) and query.user_id == "user123"
