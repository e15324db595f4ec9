"""Pydantic schemas shared by the memory engine and its callers."""

from .context import ContextItem, ContextType
from .message import ContentKind, Message, MessageContent, MessageSender, MessageStatus

__all__ = [
    "ContextItem",
    "ContextType",
    "ContentKind",
    "Message",
    "MessageContent",
    "MessageSender",
    "MessageStatus",
]
