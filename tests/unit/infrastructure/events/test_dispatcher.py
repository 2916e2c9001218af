"""Unit tests for the event dispatcher."""

import threading
from unittest.mock import MagicMock

import pytest

from chatbot.infrastructure.events import Event, EventDispatcher, names

pytestmark = pytest.mark.unit


@pytest.fixture
def dispatcher():
    events = EventDispatcher(max_workers=2)
    yield events
    events.shutdown_executor()


class TestEventRegistration:
    """Test event handler registration."""

    def test_register_handler_decorator(self, dispatcher):
        handler = MagicMock(__name__="handler")

        decorated = dispatcher.register_handler("test.event")(handler)

        assert decorated is handler
        assert dispatcher.get_registered_events() == ["test.event"]
        assert dispatcher.get_handlers_for_event("test.event") == [handler]

    def test_dispatchers_do_not_share_handlers(self, dispatcher):
        other = EventDispatcher()
        dispatcher.subscribe("test.event", MagicMock())

        assert other.get_handlers_for_event("test.event") == []

    def test_clear_handlers(self, dispatcher):
        dispatcher.subscribe("test.event", MagicMock())

        dispatcher.clear_handlers()

        assert dispatcher.get_registered_events() == []


class TestDispatch:
    """Test synchronous dispatch."""

    def test_handlers_called_in_order(self, dispatcher):
        calls = []
        dispatcher.subscribe("test.event", lambda e: calls.append("first") or 1)
        dispatcher.subscribe("test.event", lambda e: calls.append("second") or 2)

        results = dispatcher.dispatch(Event(event_type="test.event"))

        assert calls == ["first", "second"]
        assert results == [1, 2]

    def test_failing_handler_does_not_stop_others(self, dispatcher):
        def broken(event):
            raise RuntimeError("boom")

        healthy = MagicMock(return_value="ok")
        dispatcher.subscribe("test.event", broken)
        dispatcher.subscribe("test.event", healthy)

        results = dispatcher.dispatch(Event(event_type="test.event"))

        assert results == ["ok"]
        healthy.assert_called_once()

    def test_dispatch_without_handlers(self, dispatcher):
        assert dispatcher.dispatch(Event(event_type="nobody.listens")) == []

    def test_publish_builds_event(self, dispatcher):
        received = []
        dispatcher.subscribe(names.COMMAND_COMPLETED, received.append)

        event = dispatcher.publish(
            names.COMMAND_COMPLETED,
            correlation_id="cid-1",
            user_id="U1",
            command="ping",
        )

        assert received == [event]
        assert event.correlation_id == "cid-1"
        assert event.user_id == "U1"
        assert event.metadata == {"command": "ping"}

    def test_publish_generates_correlation_id(self, dispatcher):
        event = dispatcher.publish(names.CHATBOT_READY)

        assert event.correlation_id


class TestBackgroundDispatch:
    """Test fire-and-forget dispatch."""

    def test_dispatch_background_runs_handler(self, dispatcher):
        done = threading.Event()
        dispatcher.subscribe("test.event", lambda e: done.set())

        dispatcher.dispatch_background(Event(event_type="test.event"))

        assert done.wait(timeout=2)

    def test_dispatch_after_shutdown_is_dropped(self, dispatcher):
        handler = MagicMock()
        dispatcher.subscribe("test.event", handler)
        dispatcher.shutdown_executor()

        dispatcher.dispatch_background(Event(event_type="test.event"))

        handler.assert_not_called()

    def test_shutdown_is_idempotent(self, dispatcher):
        dispatcher.start_executor()

        dispatcher.shutdown_executor()
        dispatcher.shutdown_executor()
