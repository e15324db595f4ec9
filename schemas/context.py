"""Context item schemas."""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field


class ContextType(str, Enum):
    """Kind of material attached to a request."""
    FILE = "file"
    CODE = "code"
    TEXT = "text"
    GIT_DIFF = "git_diff"
    COMMAND = "command"


class ContextItem(BaseModel):
    """One atomic piece of context shown to the model."""
    item_type: ContextType = ContextType.TEXT
    content: str
    path: Optional[str] = Field(None, description="Source path for file items")
    language: Optional[str] = Field(None, description="Language for code items")
    command: Optional[str] = Field(None, description="Shell command for command items")
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def text(cls, content: str, **metadata: Any) -> "ContextItem":
        return cls(item_type=ContextType.TEXT, content=content, metadata=metadata)

    @classmethod
    def file(cls, path: str, content: str, **metadata: Any) -> "ContextItem":
        return cls(item_type=ContextType.FILE, path=path, content=content, metadata=metadata)

    @classmethod
    def code(cls, language: str, content: str, **metadata: Any) -> "ContextItem":
        return cls(item_type=ContextType.CODE, language=language, content=content, metadata=metadata)

    @classmethod
    def git_diff(cls, content: str, **metadata: Any) -> "ContextItem":
        return cls(item_type=ContextType.GIT_DIFF, content=content, metadata=metadata)

    @classmethod
    def shell_command(cls, command: str, content: str, **metadata: Any) -> "ContextItem":
        return cls(item_type=ContextType.COMMAND, command=command, content=content, metadata=metadata)
