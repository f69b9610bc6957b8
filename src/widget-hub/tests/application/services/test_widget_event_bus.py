"""Tests for WidgetEventBus.

Tests cover:
- Publish/subscribe with event type, wildcard and filter matching
- Handler failure retries with backoff and dead-lettering
- Event history, replay and dead-letter retention
- Bus statistics
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest

from application.services import EventFilter, EventRetryPolicy, SubscriptionOptions, WidgetEvent, WidgetEventBus, WidgetEvents
from tests.fixtures.mixins import BaseTestCase


def later(seconds: float = 60) -> datetime:
    return datetime.now(UTC) + timedelta(seconds=seconds)


class TestPublishSubscribe(BaseTestCase):
    """Test event delivery to subscriptions."""

    @pytest.mark.asyncio
    async def test_handler_receives_subscribed_types_only(self, event_bus: WidgetEventBus) -> None:
        # Arrange
        received: list[WidgetEvent] = []
        event_bus.subscribe([WidgetEvents.WIDGET_LOADED], received.append)

        # Act
        await event_bus.publish(WidgetEvents.WIDGET_LOADED, source="revenue-card", data={"widget_id": "revenue-card"})
        await event_bus.publish(WidgetEvents.WIDGET_UNLOADED, source="revenue-card")

        # Assert
        self.assert_list_length(received, 1)
        assert received[0].data == {"widget_id": "revenue-card"}

    @pytest.mark.asyncio
    async def test_wildcard_and_async_handlers(self, event_bus: WidgetEventBus) -> None:
        received: list[str] = []

        async def handler(event: WidgetEvent) -> None:
            received.append(event.type)

        event_bus.subscribe(["*"], handler)

        await event_bus.publish(WidgetEvents.WIDGET_LOADED, source="a")
        await event_bus.publish(WidgetEvents.DATA_UPDATED, source="b")

        assert received == [WidgetEvents.WIDGET_LOADED, WidgetEvents.DATA_UPDATED]

    @pytest.mark.asyncio
    async def test_parallel_subscriptions_are_invoked(self, event_bus: WidgetEventBus) -> None:
        received: list[str] = []
        options = SubscriptionOptions(parallel_processing=True)
        event_bus.subscribe(["*"], lambda e: received.append("first"), options=options)
        event_bus.subscribe(["*"], lambda e: received.append("second"), options=options)

        await event_bus.publish(WidgetEvents.SYSTEM_ALERT, source="system")

        assert sorted(received) == ["first", "second"]

    @pytest.mark.asyncio
    async def test_filter_on_tenant_and_data(self, event_bus: WidgetEventBus) -> None:
        received: list[WidgetEvent] = []
        event_bus.subscribe(["*"], received.append, filter=EventFilter(tenant_id="acme", data_conditions={"region": "emea"}))

        await event_bus.publish(WidgetEvents.DATA_UPDATED, source="a", data={"region": "emea"}, tenant_id="acme")
        await event_bus.publish(WidgetEvents.DATA_UPDATED, source="a", data={"region": "apac"}, tenant_id="acme")
        await event_bus.publish(WidgetEvents.DATA_UPDATED, source="a", data={"region": "emea"}, tenant_id="globex")

        self.assert_list_length(received, 1)

    def test_target_filter_ignores_untargeted_events(self) -> None:
        f = EventFilter(target="chart")

        assert f.matches(WidgetEvent(type="t", source="a"))
        assert f.matches(WidgetEvent(type="t", source="a", target="chart"))
        assert not f.matches(WidgetEvent(type="t", source="a", target="table"))

    @pytest.mark.asyncio
    async def test_unsubscribe(self, event_bus: WidgetEventBus) -> None:
        handler = MagicMock()
        subscription_id = event_bus.subscribe(["*"], handler)

        assert event_bus.unsubscribe(subscription_id) is True
        assert event_bus.unsubscribe(subscription_id) is False
        await event_bus.publish(WidgetEvents.SYSTEM_ALERT, source="system")

        handler.assert_not_called()

    @pytest.mark.asyncio
    async def test_publish_never_raises_on_handler_failure(self, event_bus: WidgetEventBus) -> None:
        def failing(event: WidgetEvent) -> None:
            raise RuntimeError("boom")

        received: list[WidgetEvent] = []
        event_bus.subscribe(["*"], failing)
        event_bus.subscribe(["*"], received.append)

        event_id = await event_bus.publish(WidgetEvents.SYSTEM_ALERT, source="system")

        assert event_id
        self.assert_list_length(received, 1)


class TestRetriesAndDeadLetters(BaseTestCase):
    """Test handler retries and the dead-letter queue."""

    def test_retry_delay(self) -> None:
        policy = EventRetryPolicy(max_retries=3, backoff_ms=1000)

        assert [policy.delay_seconds(n) for n in (1, 2, 3)] == [1.0, 2.0, 4.0]
        assert EventRetryPolicy(backoff_ms=500, exponential_backoff=False).delay_seconds(3) == 0.5

    @pytest.mark.asyncio
    async def test_failed_handler_is_retried_until_success(self, event_bus: WidgetEventBus) -> None:
        calls: list[int] = []

        def flaky(event: WidgetEvent) -> None:
            calls.append(1)
            if len(calls) < 2:
                raise RuntimeError("transient")

        event_bus.subscribe(["*"], flaky)
        await event_bus.publish(WidgetEvents.DATA_UPDATED, source="a")

        assert await event_bus.process_retries_async(datetime.now(UTC)) == 0
        assert await event_bus.process_retries_async(later()) == 1
        assert len(calls) == 2
        assert event_bus.get_dead_letters() == []
        assert event_bus.get_metrics()["pending_retries"] == 0

    @pytest.mark.asyncio
    async def test_exhausted_retries_go_to_dead_letter_queue(self, event_bus: WidgetEventBus) -> None:
        def failing(event: WidgetEvent) -> None:
            raise RuntimeError("permanent")

        subscription_id = event_bus.subscribe(["*"], failing, options=SubscriptionOptions(retry_policy=EventRetryPolicy(max_retries=2, backoff_ms=10)))
        await event_bus.publish(WidgetEvents.DATA_UPDATED, source="a")

        await event_bus.process_retries_async(later())
        await event_bus.process_retries_async(later())

        dead_letters = event_bus.get_dead_letters()
        self.assert_list_length(dead_letters, 1)
        assert dead_letters[0].subscription_id == subscription_id
        assert dead_letters[0].retries == 2
        assert dead_letters[0].error == "permanent"
        assert event_bus.get_metrics()["events_failed_processing"] == 3

    @pytest.mark.asyncio
    async def test_dead_letter_queue_can_be_disabled(self, event_bus: WidgetEventBus) -> None:
        def failing(event: WidgetEvent) -> None:
            raise RuntimeError("permanent")

        options = SubscriptionOptions(retry_policy=EventRetryPolicy(max_retries=0), dead_letter_queue=False)
        event_bus.subscribe(["*"], failing, options=options)

        await event_bus.publish(WidgetEvents.DATA_UPDATED, source="a")

        assert event_bus.get_dead_letters() == []

    @pytest.mark.asyncio
    async def test_unsubscribe_drops_pending_retries(self, event_bus: WidgetEventBus) -> None:
        def failing(event: WidgetEvent) -> None:
            raise RuntimeError("boom")

        subscription_id = event_bus.subscribe(["*"], failing)
        await event_bus.publish(WidgetEvents.DATA_UPDATED, source="a")
        assert event_bus.get_metrics()["pending_retries"] == 1

        event_bus.unsubscribe(subscription_id)

        assert event_bus.get_metrics()["pending_retries"] == 0

    @pytest.mark.asyncio
    async def test_cleanup_dead_letters_uses_retention(self) -> None:
        bus = WidgetEventBus(dead_letter_retention_hours=1)

        def failing(event: WidgetEvent) -> None:
            raise RuntimeError("boom")

        bus.subscribe(["*"], failing, options=SubscriptionOptions(retry_policy=EventRetryPolicy(max_retries=0)))
        await bus.publish(WidgetEvents.DATA_UPDATED, source="a")

        assert bus.cleanup_dead_letters(datetime.now(UTC)) == 0
        assert bus.cleanup_dead_letters(later(2 * 3600)) == 1
        assert bus.get_dead_letters() == []


class TestHistoryAndReplay(BaseTestCase):
    """Test the event history and replay."""

    @pytest.mark.asyncio
    async def test_history_filters_and_limit(self, event_bus: WidgetEventBus) -> None:
        await event_bus.publish(WidgetEvents.WIDGET_LOADED, source="a")
        await event_bus.publish(WidgetEvents.DATA_UPDATED, source="b", target="c")
        await event_bus.publish(WidgetEvents.DATA_UPDATED, source="a")

        assert len(event_bus.get_event_history()) == 3
        assert [e.source for e in event_bus.get_event_history(event_types=[WidgetEvents.DATA_UPDATED])] == ["b", "a"]
        assert len(event_bus.get_event_history(source="a")) == 2
        assert len(event_bus.get_event_history(target="c")) == 1
        assert event_bus.get_event_history(limit=1)[0].source == "a"
        assert event_bus.get_event_history(start_time=later()) == []

    @pytest.mark.asyncio
    async def test_history_is_bounded(self) -> None:
        bus = WidgetEventBus(history_size=2)

        for i in range(3):
            await bus.publish(WidgetEvents.DATA_UPDATED, source=f"w{i}")

        assert [e.source for e in bus.get_event_history()] == ["w1", "w2"]

    @pytest.mark.asyncio
    async def test_replay_redelivers_matching_events(self, event_bus: WidgetEventBus) -> None:
        start = datetime.now(UTC) - timedelta(seconds=1)
        await event_bus.publish(WidgetEvents.WIDGET_LOADED, source="a")
        await event_bus.publish(WidgetEvents.DATA_UPDATED, source="a")

        received: list[WidgetEvent] = []
        subscription_id = event_bus.subscribe([WidgetEvents.DATA_UPDATED], received.append)

        replayed = await event_bus.replay_events_async(subscription_id, start)

        assert replayed == 1
        assert received[0].type == WidgetEvents.DATA_UPDATED
        assert await event_bus.replay_events_async("unknown", start) == 0

    @pytest.mark.asyncio
    async def test_metrics(self, event_bus: WidgetEventBus) -> None:
        event_bus.subscribe(["*"], lambda e: None)

        await event_bus.publish(WidgetEvents.DATA_UPDATED, source="a")

        metrics = event_bus.get_metrics()
        self.assert_dict_contains(metrics, {"events_published": 1, "events_processed": 1, "subscriptions_active": 1, "dead_letter_queue_size": 0})
        assert metrics["average_processing_time_ms"] >= 0
