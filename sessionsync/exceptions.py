"""
Exceptions for session sync.
"""


class SessionSyncError(Exception):
    """Base exception for session sync operations."""


class QueueError(SessionSyncError):
    """Raised when a write queue operation is rejected or cannot persist."""


class SinkError(SessionSyncError):
    """Raised when the note sink is misconfigured."""


class ConfigError(SessionSyncError):
    """Raised when configuration values are invalid."""
