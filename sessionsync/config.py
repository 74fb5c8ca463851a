"""Configuration for the session sync daemon.

This module provides the SyncConfig dataclass that encapsulates everything a
SyncService needs: where the upstream session store lives, where the durable
queue is kept, how to reach the note sink, and the timer intervals.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from sessionsync.exceptions import ConfigError

DEFAULT_SINK_URL = "http://127.0.0.1:27123"
DEFAULT_NOTES_ROOT = "10-Projects"


def _default_storage_path() -> Path:
    return Path.home() / ".local" / "share" / "opencode" / "storage"


def _default_queue_dir() -> Path:
    return Path.home() / ".cache" / "opencode-obsidian-sync" / "queue"


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass
class SyncConfig:
    """Configuration for a sync service instance.

    Timeouts and intervals are in seconds.
    """

    sink_url: str = DEFAULT_SINK_URL
    api_key: str = ""
    storage_path: Path | None = None
    queue_dir: Path | None = None
    notes_root: str = DEFAULT_NOTES_ROOT
    flush_interval: float = 7.0
    poll_interval: float = 60.0
    request_timeout: float = 10.0
    health_timeout: float = 3.0
    message_debounce: float = 30.0
    log_level: str = "INFO"

    def __post_init__(self):
        if self.storage_path is None:
            self.storage_path = _default_storage_path()
        if self.queue_dir is None:
            self.queue_dir = _default_queue_dir()
        self.storage_path = Path(self.storage_path).expanduser()
        self.queue_dir = Path(self.queue_dir).expanduser()

    @classmethod
    def from_env(cls) -> "SyncConfig":
        """Create config from environment variables.

        Raises:
            ConfigError: A numeric variable is not a positive number
        """
        storage = os.environ.get("SESSIONSYNC_STORAGE_PATH")
        queue_dir = os.environ.get("SESSIONSYNC_QUEUE_DIR")
        return cls(
            sink_url=os.environ.get("OBSIDIAN_URL", DEFAULT_SINK_URL),
            api_key=os.environ.get("OBSIDIAN_API_KEY", ""),
            storage_path=Path(storage) if storage else None,
            queue_dir=Path(queue_dir) if queue_dir else None,
            notes_root=os.environ.get("SESSIONSYNC_NOTES_ROOT", DEFAULT_NOTES_ROOT),
            flush_interval=_float_env("SESSIONSYNC_FLUSH_INTERVAL", 7.0),
            poll_interval=_float_env("SESSIONSYNC_POLL_INTERVAL", 60.0),
            log_level=os.environ.get("SESSIONSYNC_LOG_LEVEL", "INFO").upper(),
        )
