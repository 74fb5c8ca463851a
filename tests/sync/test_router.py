"""Tests for event routing."""

from unittest.mock import MagicMock

import pytest

from sessionsync.sync.handlers import SessionHandlers
from sessionsync.sync.router import (
    MESSAGE_UPDATED,
    SESSION_COMPACTING,
    SESSION_CREATED,
    SESSION_IDLE,
    SESSION_UPDATED,
    Event,
    EventRouter,
)


@pytest.fixture
def handlers():
    return MagicMock(spec=SessionHandlers)


class TestEventRouter:
    @pytest.mark.parametrize(
        "event_type,properties,method,arg",
        [
            (SESSION_CREATED, {"info": {"id": "S1"}}, "on_session_created", {"id": "S1"}),
            (SESSION_UPDATED, {"info": {"id": "S1"}}, "on_session_updated", {"id": "S1"}),
            (SESSION_IDLE, {"sessionID": "S1"}, "on_session_idle", "S1"),
            (SESSION_COMPACTING, {"sessionID": "S1"}, "on_session_compacting", "S1"),
            (MESSAGE_UPDATED, {"info": {"sessionID": "S1"}}, "on_message_updated", {"sessionID": "S1"}),
        ],
    )
    def test_routes_by_type(self, handlers, event_type, properties, method, arg):
        outcome = EventRouter(handlers).dispatch(Event(event_type, properties))

        getattr(handlers, method).assert_called_once_with(arg)
        assert outcome.handled and outcome.ok

    def test_accepts_plain_mappings(self, handlers):
        EventRouter(handlers).dispatch({"type": SESSION_IDLE, "properties": {"sessionID": "S1"}})
        handlers.on_session_idle.assert_called_once_with("S1")

    def test_unknown_event_is_ignored(self, handlers):
        outcome = EventRouter(handlers).dispatch({"type": "file.edited"})
        assert not outcome.handled
        assert handlers.method_calls == []

    def test_handler_error_is_contained_and_counted(self, handlers, caplog):
        handlers.on_session_idle.side_effect = RuntimeError("boom")
        router = EventRouter(handlers)

        outcome = router.dispatch(Event(SESSION_IDLE, {"sessionID": "S1"}))
        router.dispatch(Event(SESSION_IDLE, {"sessionID": "S1"}))

        assert outcome.handled
        assert not outcome.ok
        assert outcome.error == "boom"
        assert router.failures[SESSION_IDLE] == 2
        assert "Handler for session.idle failed" in caplog.text

    def test_malformed_properties_are_contained(self, handlers):
        router = EventRouter(handlers)
        outcome = router.dispatch(Event(SESSION_CREATED, {}))
        assert not outcome.ok
        assert router.failures[SESSION_CREATED] == 1
