"""Tests for the event bus and subscriptions."""

import pytest

from markup_agent.core.events import (
    DoneEvent,
    ErrorEvent,
    EventBus,
    StatusEvent,
    TokenEvent,
    ToolArgEvent,
    ToolOutputEvent,
    ToolStartEvent,
)


class TestEvents:
    """이벤트 타입 테스트."""

    def test_equality_ignores_timestamp(self):
        assert TokenEvent("a") == TokenEvent("a")
        assert DoneEvent() == DoneEvent()
        assert TokenEvent("a") != TokenEvent("b")

    def test_topics(self):
        assert TokenEvent("a").topic == "token"
        assert ToolStartEvent("x").topic == "token"
        assert StatusEvent("running").topic == "status"
        assert ToolOutputEvent("x", "out").topic == "tool_output"

    def test_event_type(self):
        assert ErrorEvent("bad").event_type == "ErrorEvent"


class TestSubscription:
    """Subscription 테스트."""

    def test_receives_in_publish_order(self):
        bus = EventBus()
        sub = bus.subscribe("s1")
        events = [TokenEvent("a"), StatusEvent("running"), TokenEvent("b"), DoneEvent()]

        for event in events:
            bus.publish("s1", event)

        assert sub.drain() == events
        assert sub.drain() == []

    def test_no_replay(self):
        bus = EventBus()
        bus.publish("s1", TokenEvent("early"))
        sub = bus.subscribe("s1")
        bus.publish("s1", TokenEvent("late"))
        assert sub.drain() == [TokenEvent("late")]

    def test_sessions_are_isolated(self):
        bus = EventBus()
        sub1 = bus.subscribe("s1")
        sub2 = bus.subscribe("s2")

        bus.publish("s1", TokenEvent("one"))
        bus.publish("s2", TokenEvent("two"))

        assert sub1.drain() == [TokenEvent("one")]
        assert sub2.drain() == [TokenEvent("two")]

    def test_independent_subscribers(self):
        """한 구독자의 소비가 다른 구독자에게 영향 없음."""
        bus = EventBus()
        sub1 = bus.subscribe("s1")
        sub2 = bus.subscribe("s1")

        bus.publish("s1", TokenEvent("a"))
        assert sub1.drain() == [TokenEvent("a")]
        bus.publish("s1", TokenEvent("b"))

        assert sub1.drain() == [TokenEvent("b")]
        assert sub2.drain() == [TokenEvent("a"), TokenEvent("b")]

    def test_close_stops_delivery(self):
        bus = EventBus()
        with bus.subscribe("s1") as sub:
            bus.publish("s1", TokenEvent("a"))
        bus.publish("s1", TokenEvent("b"))

        assert sub.closed
        assert sub.drain() == [TokenEvent("a")]
        assert bus.subscriber_count("s1") == 0

    @pytest.mark.asyncio
    async def test_async_iteration_ends_on_close_session(self):
        bus = EventBus()
        sub = bus.subscribe("s1")
        bus.publish("s1", TokenEvent("a"))
        bus.publish("s1", DoneEvent())
        bus.close_session("s1")

        received = [event async for event in sub]
        assert received == [TokenEvent("a"), DoneEvent()]
        assert await sub.get() is None


class TestHandlers:
    """콜백 구독 테스트."""

    def test_handler_receives_session_id(self):
        bus = EventBus()
        received = []
        bus.subscribe_handler("s1", lambda sid, event: received.append((sid, event)))

        bus.publish("s1", TokenEvent("a"))
        bus.publish("s2", TokenEvent("b"))

        assert received == [("s1", TokenEvent("a"))]

    def test_subscribe_all(self):
        bus = EventBus()
        received = []
        unsubscribe = bus.subscribe_all(lambda sid, event: received.append(sid))

        bus.publish("s1", DoneEvent())
        bus.publish("s2", DoneEvent())
        unsubscribe()
        bus.publish("s3", DoneEvent())

        assert received == ["s1", "s2"]

    def test_handler_error_does_not_affect_others(self):
        bus = EventBus()
        sub = bus.subscribe("s1")
        received = []

        def failing(sid, event):
            raise RuntimeError("boom")

        bus.subscribe_handler("s1", failing)
        bus.subscribe_handler("s1", lambda sid, event: received.append(event))

        bus.publish("s1", TokenEvent("a"))

        assert received == [TokenEvent("a")]
        assert sub.drain() == [TokenEvent("a")]

    def test_unsubscribe_twice_is_safe(self):
        bus = EventBus()
        unsubscribe = bus.subscribe_handler("s1", lambda sid, event: None)
        unsubscribe()
        unsubscribe()
        assert bus.subscriber_count("s1") == 0


class TestEventLogger:
    """EventLogger 테스트."""

    def make_logger(self, verbose=False):
        from io import StringIO

        from rich.console import Console

        from markup_agent.core.event_logger import EventLogger

        buffer = StringIO()
        logger = EventLogger(console=Console(file=buffer, width=120), verbose=verbose)
        return logger, buffer

    def test_logs_status_tools_and_errors(self):
        bus = EventBus()
        logger, buffer = self.make_logger()
        logger.attach(bus, "abcdef123456")

        bus.publish("abcdef123456", StatusEvent("running"))
        bus.publish("abcdef123456", ToolStartEvent("read_file"))
        bus.publish("abcdef123456", ToolOutputEvent("read_file", "[DIR] src", success=True))
        bus.publish("abcdef123456", ErrorEvent("bad [markup]"))
        bus.publish("abcdef123456", TokenEvent("ignored"))

        output = buffer.getvalue()
        assert "(abcdef12) status → running" in output
        assert "read_file" in output
        assert "[DIR] src" in output
        assert "bad [markup]" in output
        assert "ignored" not in output

    def test_detach(self):
        bus = EventBus()
        logger, buffer = self.make_logger()
        logger.attach(bus)
        logger.detach()

        bus.publish("s1", StatusEvent("running"))
        assert buffer.getvalue() == ""

    def test_tool_names_printed_literally(self):
        """모델이 준 도구 이름의 마크업은 해석되지 않음."""
        bus = EventBus()
        logger, buffer = self.make_logger(verbose=True)
        logger.attach(bus, "s1")

        bus.publish("s1", ToolStartEvent("[bold]evil"))
        bus.publish("s1", ToolArgEvent("[red]arg", "v"))
        bus.publish("s1", ToolOutputEvent("[bold]evil", "out", success=False))

        output = buffer.getvalue()
        assert output.count("[bold]evil") == 2
        assert "[red]arg" in output
