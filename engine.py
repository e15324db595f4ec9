"""Assistant engine: drives the memory manager around each generation round."""

import logging
from typing import List, Optional, Sequence

from config.settings import Settings
from schemas.context import ContextItem
from schemas.message import Message

# LLM components
from llm.base_client import BaseLLMClient, GenerationRequest, GenerationResponse

# Memory components
from memory.context_manager import ContextMemoryManager
from memory.errors import InvalidStateError
from memory.models import ConversationTurn, SessionInfo

logger = logging.getLogger(__name__)


class AssistantEngine:
    """Caller-side layer tying one memory manager to one LLM client."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        llm_client: Optional[BaseLLMClient] = None,
        memory_manager: Optional[ContextMemoryManager] = None
    ):
        """
        Initialize engine.

        Args:
            settings: Application settings
            llm_client: Generation backend; required only for ask()
            memory_manager: Memory manager (default: built from settings.memory)
        """
        self.settings = settings or Settings()
        self.llm_client = llm_client
        self.memory = memory_manager or ContextMemoryManager(config=self.settings.memory)
        self.current_turn_id: Optional[str] = None

        if self.llm_client is None:
            logger.warning("No LLM client configured, ask() is unavailable")

    async def create_session(self, name: Optional[str] = None) -> str:
        self.current_turn_id = None
        return await self.memory.create_session(name)

    async def load_session(self, session_id: str) -> None:
        self.current_turn_id = None
        await self.memory.load_session(session_id)

    async def list_sessions(self) -> List[SessionInfo]:
        return await self.memory.list_sessions()

    def get_context_for_request(self) -> List[ContextItem]:
        return self.memory.get_context_for_request()

    def get_conversation_summary(self, limit: Optional[int] = None) -> List[ConversationTurn]:
        return self.memory.get_conversation_summary(limit)

    async def start_conversation_turn(
        self,
        user_message: Message,
        context: Optional[Sequence[ContextItem]] = None
    ) -> str:
        """Record a user message as a new turn and remember it as current."""
        turn_id = await self.memory.add_conversation_turn(user_message, context)
        self.current_turn_id = turn_id
        return turn_id

    async def complete_conversation_turn(self, assistant_message: Message) -> None:
        """
        Attach the assistant's reply to the current turn.

        Raises:
            InvalidStateError: If no turn was started
        """
        if self.current_turn_id is None:
            raise InvalidStateError("No active conversation turn")
        await self.memory.complete_conversation_turn(self.current_turn_id, assistant_message)
        self.current_turn_id = None

    def build_request(
        self,
        prompt: str,
        context: Optional[Sequence[ContextItem]] = None,
        system_prompt: Optional[str] = None
    ) -> GenerationRequest:
        """
        Build a generation request carrying conversation memory.

        Args:
            prompt: Prompt text
            context: Extra context supplied by the caller, placed first
            system_prompt: Optional system prompt

        Returns:
            GenerationRequest with settings defaults and memory context

        Raises:
            InvalidStateError: If no session is active
        """
        request_context = list(context or [])
        request_context.extend(self.memory.get_context_for_request())

        return GenerationRequest(
            prompt=prompt,
            system_prompt=system_prompt,
            model=self.settings.default_model,
            max_tokens=self.settings.max_tokens,
            temperature=self.settings.temperature,
            context=request_context,
            metadata={"preferred_provider": self.settings.default_provider},
        )

    async def ask(
        self,
        prompt: str,
        context: Optional[Sequence[ContextItem]] = None,
        system_prompt: Optional[str] = None
    ) -> GenerationResponse:
        """
        Run one request/response round through memory and the LLM client.

        The request sees the history recorded before this prompt; the prompt
        and the reply are then recorded as one completed turn.

        Args:
            prompt: User prompt
            context: Context items attached to the prompt
            system_prompt: Optional system prompt

        Returns:
            The client's GenerationResponse

        Raises:
            InvalidStateError: If no LLM client or no session is available
        """
        if self.llm_client is None:
            raise InvalidStateError("No LLM client configured")

        request = self.build_request(prompt, context, system_prompt)
        await self.start_conversation_turn(Message.user(prompt), context)

        response = await self.llm_client.generate(request)
        logger.info(
            f"Generated {response.tokens_used.completion_tokens} tokens "
            f"with {response.provider}/{response.model_used}"
        )

        await self.complete_conversation_turn(
            Message.assistant(response.content, response.provider, response.model_used)
        )
        return response
