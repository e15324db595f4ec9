"""Errors raised by the conversation memory engine."""

from typing import Optional


class ContextMemoryError(Exception):
    """Base class for memory engine failures."""


class InvalidStateError(ContextMemoryError):
    """Operation requires state that is absent, usually an active session."""


class SessionNotFoundError(ContextMemoryError):
    """Session id is neither cached nor present in storage."""

    def __init__(self, session_id: str, message: Optional[str] = None):
        self.session_id = session_id
        super().__init__(message or f"Session {session_id} not found")


class StorageIOError(ContextMemoryError):
    """Reading or writing session storage failed."""


class SessionSerializationError(ContextMemoryError):
    """Persisted session is corrupt or does not match the schema."""
