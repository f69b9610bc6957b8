"""Tests for Recommendations API controller."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from api.controllers.recommendations_controller import RecommendationsController, RecommendationsRequest
from application.commands import GenerateRecommendationsCommand
from infrastructure.adapters import ChatCompletionClient, LlmClientError
from tests.fixtures.factories import operation_result


class FakeChatClient:
    def __init__(self, chunks: list[str], error: LlmClientError | None = None):
        self.chunks = chunks
        self.error = error
        self.messages: list[dict[str, str]] = []

    async def stream_chat(self, messages, model=None):
        self.messages = messages
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error


async def collect(response) -> list[str]:
    return [chunk async for chunk in response.body_iterator]


class TestRecommendationsController:
    """Test RecommendationsController endpoints."""

    @pytest.fixture
    def mock_mediator(self) -> MagicMock:
        mock = MagicMock()
        mock.execute_async = AsyncMock()
        return mock

    @pytest.fixture
    def mock_service_provider(self) -> MagicMock:
        return MagicMock()

    @pytest.fixture
    def controller(self, mock_service_provider: MagicMock, mock_mediator: MagicMock) -> RecommendationsController:
        return RecommendationsController(service_provider=mock_service_provider, mapper=MagicMock(), mediator=mock_mediator)

    @pytest.mark.asyncio
    async def test_generate(self, controller: RecommendationsController, mock_mediator: MagicMock) -> None:
        mock_mediator.execute_async.return_value = operation_result({"recommendations": "Cut churn", "analysis_type": "revenue"})

        response = await controller.generate(RecommendationsRequest(analysis_type="revenue", data={"mrr": 1200}))

        assert json.loads(response.body)["data"]["recommendations"] == "Cut churn"
        command = mock_mediator.execute_async.call_args[0][0]
        assert isinstance(command, GenerateRecommendationsCommand)
        assert command.data == {"mrr": 1200}

    @pytest.mark.asyncio
    async def test_stream_relays_chunks(self, controller: RecommendationsController, mock_service_provider: MagicMock) -> None:
        # Arrange
        chat_client = FakeChatClient(["Reduce ", "churn"])
        mock_service_provider.get_required_service.return_value = chat_client

        # Act
        response = await controller.stream(RecommendationsRequest(analysis_type="revenue", context="What next?"))
        events = await collect(response)

        # Assert
        mock_service_provider.get_required_service.assert_called_once_with(ChatCompletionClient)
        assert response.media_type == "text/event-stream"
        assert events == ['data: {"content": "Reduce "}\n\n', 'data: {"content": "churn"}\n\n', "data: [DONE]\n\n"]
        assert chat_client.messages[-1]["content"].startswith("What next?")

    @pytest.mark.asyncio
    async def test_stream_reports_failures(self, controller: RecommendationsController, mock_service_provider: MagicMock) -> None:
        mock_service_provider.get_required_service.return_value = FakeChatClient(["partial"], error=LlmClientError("LLM API error", "llm_http_error", status_code=503))

        events = await collect(await controller.stream(RecommendationsRequest()))

        assert events == [
            'data: {"content": "partial"}\n\n',
            'data: {"error": "Failed to generate recommendations"}\n\n',
            "data: [DONE]\n\n",
        ]
