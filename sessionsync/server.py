"""FastAPI ingress for upstream lifecycle events."""

import logging
from typing import Any, Dict, List, Optional

import httpx
from fastapi import FastAPI, HTTPException, status
from pydantic import BaseModel, Field

from sessionsync import __version__
from sessionsync.sync.router import Event
from sessionsync.sync.service import SyncService

logger = logging.getLogger(__name__)


class EventRequest(BaseModel):
    """One lifecycle event as emitted by the session host."""

    type: str
    properties: Dict[str, Any] = Field(default_factory=dict)


class EventAccepted(BaseModel):
    accepted: bool = True
    type: str


class HealthResponse(BaseModel):
    status: str
    sink: str
    pending: int
    tracked_sessions: int


class SearchHitResponse(BaseModel):
    path: str
    project: str
    date: str
    context: str
    score: float


def create_app(service: SyncService) -> FastAPI:
    """Build the ingress app around a running SyncService.

    Events are handed to the service's scheduler; they are never processed
    on the request thread.
    """
    app = FastAPI(
        title="Session Sync",
        description="Mirrors live agent sessions into a note vault",
        version=__version__,
    )

    @app.post(
        "/events",
        response_model=EventAccepted,
        status_code=status.HTTP_202_ACCEPTED,
        tags=["events"],
    )
    async def post_event(event: EventRequest):
        service.post_event(Event(type=event.type, properties=event.properties))
        return EventAccepted(type=event.type)

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health():
        """Report sink availability and queue depth."""
        state = service.status()
        return HealthResponse(
            status="ok",
            sink="connected" if state["sink_available"] else "disconnected",
            pending=state["pending"],
            tracked_sessions=state["tracked_sessions"],
        )

    @app.get("/search", response_model=List[SearchHitResponse], tags=["search"])
    def search(q: str, project: Optional[str] = None):
        try:
            hits = service.sink.search(q, project)
        except httpx.HTTPError as e:
            logger.error(f"Search for {q!r} failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Note sink search failed",
            )
        return [SearchHitResponse(**hit.__dict__) for hit in hits]

    return app
