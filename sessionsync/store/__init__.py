"""Read-only access to the upstream session store."""

from sessionsync.store.models import (
    Conversation,
    ConversationEntry,
    Message,
    Session,
    SessionTime,
    ToolCall,
    format_date,
)
from sessionsync.store.reader import SessionReader

__all__ = [
    "Conversation",
    "ConversationEntry",
    "Message",
    "Session",
    "SessionTime",
    "SessionReader",
    "ToolCall",
    "format_date",
]
