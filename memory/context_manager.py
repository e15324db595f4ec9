"""Conversation context memory manager."""

import asyncio
import logging
from collections import OrderedDict
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from config.settings import MemoryConfig
from schemas.context import ContextItem, ContextType
from schemas.message import Message
from .diff_engine import DiffEngine
from .errors import InvalidStateError, SessionNotFoundError
from .models import ConversationSession, ConversationTurn, SessionInfo
from .session_store import JSONSessionStore
from .summarizer import ConversationSummarizer

logger = logging.getLogger(__name__)

SUMMARY_MARKER = "[SUMMARY]"
# Flat estimate for message kinds without a text body
NON_TEXT_TOKEN_ESTIMATE = 50


def estimate_message_tokens(message: Optional[Message]) -> int:
    """Rough token count of a message (about four characters per token)."""
    if message is None:
        return 0
    body = message.body()
    if body is None:
        return NON_TEXT_TOKEN_ESTIMATE
    return len(body) // 4


def estimate_tokens(message: Message, context: Sequence[ContextItem]) -> int:
    """Rough token count of a user message plus its attached context."""
    context_tokens = sum(len(item.content) // 4 for item in context)
    return estimate_message_tokens(message) + context_tokens


class ContextMemoryManager:
    """
    Owns the current conversation session and keeps its history bounded.

    Mutating operations are coroutines serialized on a single lock; the
    read-only ones are plain methods working on in-memory state. Every
    mutation is written through to the session store before it returns.
    """

    def __init__(
        self,
        config: Optional[MemoryConfig] = None,
        store: Optional[JSONSessionStore] = None,
        diff_engine: Optional[DiffEngine] = None,
        summarizer: Optional[ConversationSummarizer] = None
    ):
        """
        Initialize memory manager.

        Args:
            config: Memory configuration applied to new sessions
            store: Session store (default: JSON files under the configured path)
            diff_engine: Diff engine for context compression
            summarizer: Summarizer used when the token budget overflows
        """
        self._config = config or MemoryConfig()
        self.store = store or JSONSessionStore(self._config.session_storage_path)
        self.diff_engine = diff_engine or DiffEngine()
        self.summarizer = summarizer or ConversationSummarizer()

        self._current: Optional[ConversationSession] = None
        self._cache: "OrderedDict[str, ConversationSession]" = OrderedDict()
        self._lock = asyncio.Lock()

    @property
    def config(self) -> MemoryConfig:
        return self._config

    @property
    def current_session(self) -> Optional[ConversationSession]:
        return self._current

    @property
    def current_session_id(self) -> Optional[str]:
        return self._current.id if self._current else None

    def cached_session_ids(self) -> List[str]:
        return list(self._cache)

    # Session lifecycle

    async def create_session(self, name: Optional[str] = None) -> str:
        """
        Create a session, make it current and persist it.

        Args:
            name: Human-readable name (default: "Session <UTC timestamp>")

        Returns:
            New session ID
        """
        async with self._lock:
            now = datetime.now(timezone.utc)
            session = ConversationSession(
                name=name if name is not None else f"Session {now.strftime('%Y-%m-%d %H:%M')}",
                created_at=now,
                updated_at=now,
                config=self._config.model_copy(deep=True),
            )
            self._activate(session)
            await self.store.save(session)

        logger.info(f"Created session {session.id} ({session.name})")
        return session.id

    async def load_session(self, session_id: str) -> None:
        """
        Make a stored session current.

        Args:
            session_id: Session ID

        Raises:
            SessionNotFoundError: If the session is not cached or stored
            SessionSerializationError: If the stored session is corrupt
        """
        async with self._lock:
            cached = self._cache.get(session_id)
            if cached is not None:
                self._activate(cached)
                return

            session = await self.store.load(session_id)
            self._activate(session)

        logger.info(f"Loaded session {session_id} with {len(session.conversation_turns)} turns")

    async def save_session(self, session_id: str) -> None:
        """
        Persist a cached session.

        Raises:
            SessionNotFoundError: If the session is not in the cache
        """
        async with self._lock:
            await self._save(session_id)

    async def list_sessions(self) -> List[SessionInfo]:
        """Stored sessions as (id, name, updated_at), most recent first."""
        return await self.store.list_sessions()

    # Turn lifecycle

    async def add_conversation_turn(
        self,
        user_message: Message,
        context_items: Optional[Sequence[ContextItem]] = None
    ) -> str:
        """
        Append a pending turn to the current session.

        Args:
            user_message: The user's instruction
            context_items: Context attached to the instruction

        Returns:
            New turn ID

        Raises:
            InvalidStateError: If no session is active
        """
        context = list(context_items or [])

        async with self._lock:
            session = self._require_session()

            turn = ConversationTurn(
                user_message=user_message,
                context_snapshot=context,
                tokens_used=estimate_tokens(user_message, context),
            )

            if self._config.enable_diff_compression:
                self._fold_context(session, context)

            session.conversation_turns.append(turn)
            session.updated_at = datetime.now(timezone.utc)

            self._maintain_context_window(session)
            await self._save(session.id)

        return turn.id

    async def complete_conversation_turn(self, turn_id: str, assistant_message: Message) -> None:
        """
        Attach the assistant's reply to a turn.

        An unknown turn id leaves the turns untouched (the turn may have
        been evicted or summarized meanwhile); the session is still saved.

        Raises:
            InvalidStateError: If no session is active
        """
        async with self._lock:
            session = self._require_session()

            turn = session.find_turn(turn_id)
            if turn is not None:
                turn.tokens_used += estimate_message_tokens(assistant_message)
                turn.assistant_response = assistant_message
            else:
                logger.warning(f"Turn {turn_id} not found in session {session.id}")

            session.updated_at = datetime.now(timezone.utc)
            await self._save(session.id)

    # Read-only views

    def get_context_for_request(self) -> List[ContextItem]:
        """
        Assemble conversation history as context for the next request.

        The most recent ``max_context_turns`` turns are emitted oldest
        first, one item per user message and one per completed reply,
        deduplicated by content when diff compression is enabled.

        Raises:
            InvalidStateError: If no session is active
        """
        session = self._require_session()

        recent = list(session.conversation_turns)[-self._config.max_context_turns:]

        context_items = []
        for turn in recent:
            context_items.append(self._message_to_context_item(turn.user_message, "user"))
            if turn.assistant_response is not None:
                context_items.append(self._message_to_context_item(turn.assistant_response, "assistant"))

        if self._config.enable_diff_compression:
            context_items = self.diff_engine.compress(context_items)

        return context_items

    def get_conversation_summary(self, limit: Optional[int] = None) -> List[ConversationTurn]:
        """
        Return turns of the current session.

        Args:
            limit: Return only this many most recent turns, newest first.
                Without a limit all turns are returned in chronological order.

        Raises:
            InvalidStateError: If no session is active
        """
        session = self._require_session()
        if limit is None:
            return list(session.conversation_turns)
        return list(reversed(session.conversation_turns))[:limit]

    def get_cumulative_context(self) -> List[ContextItem]:
        """Session-wide folded context of the current session."""
        return list(self._require_session().cumulative_context)

    # Internals

    def _require_session(self) -> ConversationSession:
        if self._current is None:
            raise InvalidStateError("No active session")
        return self._current

    def _activate(self, session: ConversationSession) -> None:
        self._current = session
        self._cache[session.id] = session
        self._cache.move_to_end(session.id)
        while len(self._cache) > self._config.session_cache_size:
            evicted_id, _ = self._cache.popitem(last=False)
            logger.debug(f"Evicted session {evicted_id} from cache")

    async def _save(self, session_id: str) -> None:
        session = self._cache.get(session_id)
        if session is None:
            if self._current is not None and self._current.id == session_id:
                session = self._current
            else:
                raise SessionNotFoundError(session_id, f"Session {session_id} not in cache")
        await self.store.save(session)

    def _fold_context(self, session: ConversationSession, context: List[ContextItem]) -> None:
        if not session.cumulative_context:
            session.cumulative_context = [item.model_copy(deep=True) for item in context]
            return

        diff = self.diff_engine.create_diff(session.cumulative_context, context)
        session.cumulative_context = self.diff_engine.apply_diff(session.cumulative_context, diff)
        logger.debug(
            f"Folded context into session {session.id}: "
            f"+{len(diff.added_items)} -{len(diff.removed_item_ids)} "
            f"~{len(diff.modified_items)} (ratio {diff.compression_ratio:.2f})"
        )

    def _maintain_context_window(self, session: ConversationSession) -> None:
        turns = session.conversation_turns
        max_turns = self._config.max_context_turns

        # Hard cap on turn count, no summarization
        while len(turns) > max_turns:
            turns.popleft()

        if session.total_tokens() <= self._config.max_context_tokens:
            return

        keep = max_turns // 2
        if not self._config.enable_summarization:
            while len(turns) > keep:
                turns.popleft()
            return

        if len(turns) <= keep:
            return

        to_summarize = len(turns) - keep
        summarized = [turns.popleft() for _ in range(to_summarize)]
        summary = self.summarizer.summarize(summarized)

        summary_turn = ConversationTurn(
            user_message=Message.system(
                f"{SUMMARY_MARKER} Previous conversation containing {len(summarized)} turns"
            ),
            assistant_response=Message.system(summary),
            context_snapshot=[],
            # Estimated from the marker alone, not the summary text
            tokens_used=estimate_tokens(Message.system(SUMMARY_MARKER), []),
        )
        turns.appendleft(summary_turn)

        session.session_metadata["last_summarization"] = datetime.now(timezone.utc).isoformat()
        session.session_metadata["turns_summarized"] = to_summarize
        logger.info(f"Summarized {to_summarize} turns in session {session.id}")

    def _message_to_context_item(self, message: Message, role: str) -> ContextItem:
        return ContextItem(
            item_type=ContextType.TEXT,
            content=message.render(),
            metadata={
                "role": role,
                "timestamp": message.timestamp.isoformat(),
            },
        )
