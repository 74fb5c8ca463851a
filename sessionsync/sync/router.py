"""Dispatch upstream lifecycle events to their handlers."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from sessionsync.sync.handlers import SessionHandlers

logger = logging.getLogger(__name__)

SESSION_CREATED = "session.created"
SESSION_UPDATED = "session.updated"
SESSION_IDLE = "session.idle"
SESSION_COMPACTING = "session.compacting"
MESSAGE_UPDATED = "message.updated"


@dataclass
class Event:
    type: str
    properties: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Event:
        return cls(type=str(data.get("type", "")), properties=dict(data.get("properties") or {}))


@dataclass
class HandlerOutcome:
    """Result of dispatching one event."""

    event_type: str
    handled: bool
    ok: bool = True
    error: str | None = None


class EventRouter:
    """Routes events by type. Handler errors never escape ``dispatch``.

    ``failures`` counts handler errors per event type.
    """

    def __init__(self, handlers: SessionHandlers):
        self.handlers = handlers
        self.failures: Counter[str] = Counter()
        self._routes: dict[str, Callable[[dict[str, Any]], None]] = {
            SESSION_CREATED: lambda p: handlers.on_session_created(p["info"]),
            SESSION_UPDATED: lambda p: handlers.on_session_updated(p["info"]),
            SESSION_IDLE: lambda p: handlers.on_session_idle(p["sessionID"]),
            SESSION_COMPACTING: lambda p: handlers.on_session_compacting(p["sessionID"]),
            MESSAGE_UPDATED: lambda p: handlers.on_message_updated(p["info"]),
        }

    def dispatch(self, event: Event | Mapping[str, Any]) -> HandlerOutcome:
        if not isinstance(event, Event):
            event = Event.from_mapping(event)

        route = self._routes.get(event.type)
        if route is None:
            return HandlerOutcome(event.type, handled=False)

        try:
            route(event.properties)
        except Exception as e:
            self.failures[event.type] += 1
            logger.exception(f"Handler for {event.type} failed")
            return HandlerOutcome(event.type, handled=True, ok=False, error=str(e))
        return HandlerOutcome(event.type, handled=True)
