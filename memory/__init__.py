"""Memory system for conversation persistence."""

from .models import ConversationSession, ConversationTurn, ContextDiff, ModifiedContextItem, SessionInfo
from .hashing import ContentHasher
from .diff_engine import DiffEngine
from .summarizer import ConversationSummarizer
from .session_store import JSONSessionStore
from .context_manager import ContextMemoryManager
from .errors import (
    ContextMemoryError,
    InvalidStateError,
    SessionNotFoundError,
    SessionSerializationError,
    StorageIOError,
)

__all__ = [
    "ConversationSession",
    "ConversationTurn",
    "ContextDiff",
    "ModifiedContextItem",
    "SessionInfo",
    "ContentHasher",
    "DiffEngine",
    "ConversationSummarizer",
    "JSONSessionStore",
    "ContextMemoryManager",
    "ContextMemoryError",
    "InvalidStateError",
    "SessionNotFoundError",
    "SessionSerializationError",
    "StorageIOError",
]
