"""Conversation message schemas."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MessageSender(str, Enum):
    """Who produced a message."""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class MessageStatus(str, Enum):
    """Delivery state of a message."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETE = "complete"
    ERROR = "error"


class ContentKind(str, Enum):
    """Shape of a message body."""
    TEXT = "text"
    CODE = "code"
    FILE = "file"
    ERROR = "error"
    PROGRESS = "progress"


class MessageContent(BaseModel):
    """Body of a message.

    ``text`` holds the prose for text messages, the source for code
    messages, the optional preview for file messages and the description
    for error messages.
    """
    kind: ContentKind = ContentKind.TEXT
    text: str = ""
    language: Optional[str] = None
    path: Optional[str] = None
    error_type: Optional[str] = None
    stage: Optional[str] = None
    percentage: Optional[float] = None


class Message(BaseModel):
    """A single message exchanged in a conversation."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=utc_now)
    sender: MessageSender
    content: MessageContent
    status: MessageStatus = MessageStatus.COMPLETE
    provider: Optional[str] = None  # assistant messages only
    model: Optional[str] = None

    @classmethod
    def user(cls, text: str) -> "Message":
        return cls(sender=MessageSender.USER, content=MessageContent(text=text))

    @classmethod
    def assistant(cls, text: str, provider: str, model: str) -> "Message":
        return cls(
            sender=MessageSender.ASSISTANT,
            content=MessageContent(text=text),
            provider=provider,
            model=model,
        )

    @classmethod
    def system(cls, text: str) -> "Message":
        return cls(sender=MessageSender.SYSTEM, content=MessageContent(text=text))

    @classmethod
    def code(
        cls,
        language: str,
        source: str,
        sender: MessageSender = MessageSender.USER
    ) -> "Message":
        return cls(
            sender=sender,
            content=MessageContent(kind=ContentKind.CODE, text=source, language=language),
        )

    @property
    def is_code(self) -> bool:
        return self.content.kind == ContentKind.CODE

    def body(self) -> Optional[str]:
        """Return the textual body of text and code messages, else None."""
        if self.content.kind in (ContentKind.TEXT, ContentKind.CODE):
            return self.content.text
        return None

    def render(self) -> str:
        """Render the message as plain text for use as request context."""
        content = self.content
        if content.kind == ContentKind.TEXT:
            return content.text
        if content.kind == ContentKind.CODE:
            return f"```{content.language or ''}\n{content.text}\n```"
        if content.kind == ContentKind.FILE:
            if content.text:
                return f"[file {content.path}]\n{content.text}"
            return f"[file {content.path}]"
        if content.kind == ContentKind.ERROR:
            return f"[error {content.error_type}] {content.text}"
        return f"[progress {content.stage} {content.percentage or 0.0:.0f}%]"
