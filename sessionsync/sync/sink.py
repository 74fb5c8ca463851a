"""HTTP client for the note sink (an Obsidian Local REST API vault)."""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import httpx

from sessionsync.exceptions import SinkError

logger = logging.getLogger(__name__)

SEARCH_RESULT_LIMIT = 10
SEARCH_CONTEXT_LIMIT = 500


@dataclass
class NoteRead:
    """Outcome of reading one note. ``content`` is None when the note is absent."""

    reachable: bool
    content: str | None = None

    @property
    def found(self) -> bool:
        return self.content is not None


@dataclass
class SearchHit:
    path: str
    project: str
    date: str
    context: str
    score: float


def _describe(filename: str) -> tuple[str, str]:
    """Project name and YYYY-MM-DD date encoded in a session note path."""
    # <project>/sessions/<YYYY-MM>/<DD>-<slug>/<note>.md, counted from the end
    parts = filename.split("/")
    if len(parts) < 5 or parts[-4] != "sessions":
        return "unknown", "unknown"
    return parts[-5], f"{parts[-3]}-{parts[-2][:2]}"


class NoteSinkClient:
    """Client for the note sink's vault API.

    Every call is bounded by a timeout and never raises for transport or
    HTTP errors: writes and deletes report success as a bool, reads return
    a NoteRead. Any failure clears ``available``; only a successful
    ``health_check()`` sets it again.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 10.0,
        health_timeout: float = 3.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize client.

        Args:
            base_url: Sink service URL
            api_key: Bearer token for the vault API
            timeout: Timeout in seconds for content operations
            health_timeout: Timeout in seconds for health checks
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        if not base_url:
            raise SinkError("Note sink URL must not be empty")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.health_timeout = health_timeout
        self.available = False

        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self.client = httpx.Client(
            timeout=timeout, headers=headers, transport=transport
        )

    def _vault_url(self, path: str) -> str:
        return f"{self.base_url}/vault/{quote(path, safe='/')}"

    def _failed(self, action: str, path: str, error: Exception | str) -> None:
        if self.available:
            logger.warning(f"Note sink unavailable ({action} {path}): {error}")
        else:
            logger.debug(f"Note sink {action} {path} failed: {error}")
        self.available = False

    def health_check(self) -> bool:
        """Check the sink and re-arm ``available`` on success."""
        try:
            response = self.client.get(f"{self.base_url}/", timeout=self.health_timeout)
            ok = response.is_success
        except httpx.HTTPError as e:
            logger.debug(f"Note sink health check failed: {e}")
            ok = False
        if ok and not self.available:
            logger.info(f"Note sink reachable at {self.base_url}")
        self.available = ok
        return ok

    def write(self, path: str, content: str) -> bool:
        """Create or replace the note at ``path``."""
        try:
            response = self.client.put(
                self._vault_url(path),
                content=content.encode("utf-8"),
                headers={"Content-Type": "text/markdown"},
            )
        except httpx.HTTPError as e:
            self._failed("write", path, e)
            return False
        if not response.is_success:
            self._failed("write", path, f"HTTP {response.status_code}")
            return False
        return True

    def delete(self, path: str) -> bool:
        """Delete the note at ``path``. A missing note counts as deleted."""
        try:
            response = self.client.delete(self._vault_url(path))
        except httpx.HTTPError as e:
            self._failed("delete", path, e)
            return False
        if response.is_success or response.status_code == 404:
            return True
        self._failed("delete", path, f"HTTP {response.status_code}")
        return False

    def fetch(self, path: str) -> NoteRead:
        """Read a note, telling a missing note apart from an unreachable sink."""
        try:
            response = self.client.get(
                self._vault_url(path), headers={"Accept": "text/markdown"}
            )
        except httpx.HTTPError as e:
            self._failed("read", path, e)
            return NoteRead(reachable=False)
        if response.status_code == 404:
            return NoteRead(reachable=True)
        if not response.is_success:
            self._failed("read", path, f"HTTP {response.status_code}")
            return NoteRead(reachable=False)
        return NoteRead(reachable=True, content=response.text)

    def search(self, query: str, project: str | None = None) -> list[SearchHit]:
        """Full-text search restricted to session notes.

        Returns:
            Up to SEARCH_RESULT_LIMIT hits, optionally for one project

        Raises:
            httpx.HTTPError: Request failed
        """
        response = self.client.post(
            f"{self.base_url}/search/simple/",
            content=query.encode("utf-8"),
            headers={"Content-Type": "text/plain"},
        )
        response.raise_for_status()

        hits = []
        for result in response.json():
            filename = result.get("filename", "")
            if "/sessions/" not in filename:
                continue
            if project and f"/{project}/" not in filename:
                continue
            project_name, date = _describe(filename)
            matches = result.get("matches") or [{}]
            hits.append(
                SearchHit(
                    path=filename,
                    project=project_name,
                    date=date,
                    context=(matches[0].get("context") or "")[:SEARCH_CONTEXT_LIMIT],
                    score=result.get("score", 0),
                )
            )
            if len(hits) >= SEARCH_RESULT_LIMIT:
                break
        return hits

    def close(self):
        """Close the client."""
        self.client.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
