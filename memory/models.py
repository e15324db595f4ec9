"""Memory data models."""

import uuid
from collections import deque
from datetime import datetime
from typing import Any, Deque, List, NamedTuple, Optional
from pydantic import BaseModel, Field

from config.settings import MemoryConfig
from schemas.context import ContextItem
from schemas.message import Message, utc_now


def new_id() -> str:
    return str(uuid.uuid4())


class ConversationTurn(BaseModel):
    """One user instruction plus its optional assistant reply."""
    id: str = Field(default_factory=new_id)
    timestamp: datetime = Field(default_factory=utc_now)
    user_message: Message
    assistant_response: Optional[Message] = None
    context_snapshot: List[ContextItem] = Field(default_factory=list)
    tokens_used: int = 0

    @property
    def is_complete(self) -> bool:
        return self.assistant_response is not None


class ModifiedContextItem(BaseModel):
    """A position whose content changed between two snapshots."""
    item_id: str  # position index as a string key
    previous_content_hash: str
    content_diff: str


class ContextDiff(BaseModel):
    """Positional delta between two context lists. Never persisted."""
    base_context_id: str = Field(default_factory=new_id)
    added_items: List[ContextItem] = Field(default_factory=list)
    removed_item_ids: List[str] = Field(default_factory=list)
    modified_items: List[ModifiedContextItem] = Field(default_factory=list)
    compression_ratio: float = 1.0


class ConversationSession(BaseModel):
    """Durable conversation state, one JSON file per session."""
    id: str = Field(default_factory=new_id)
    name: str
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    conversation_turns: Deque[ConversationTurn] = Field(default_factory=deque)
    cumulative_context: List[ContextItem] = Field(default_factory=list)
    session_metadata: dict[str, Any] = Field(default_factory=dict)
    config: MemoryConfig = Field(default_factory=MemoryConfig)

    def find_turn(self, turn_id: str) -> Optional[ConversationTurn]:
        for turn in self.conversation_turns:
            if turn.id == turn_id:
                return turn
        return None

    def total_tokens(self) -> int:
        return sum(turn.tokens_used for turn in self.conversation_turns)


class SessionInfo(NamedTuple):
    """Lightweight listing entry for a stored session."""
    id: str
    name: str
    updated_at: datetime
