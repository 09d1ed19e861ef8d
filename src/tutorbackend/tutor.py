"""Tutor orchestrator (request-level operations).

Flow for one turn:
1. Validate the question and the caller's ownership of the conversation
2. Snapshot the message window
3. Assemble the system prompt from the template and the window
4. Call the completion backend, with no lock held
5. Under the conversation's lock, append the user and assistant messages
   as one write and record the turn; if recording fails the pair is removed

A failed or timed-out completion leaves the window and counters untouched
and the student gets a fixed apology instead of an error.
"""

import asyncio
import logging
from contextlib import AsyncExitStack
from typing import List

from .config import Settings
from .context import ContextAssembler
from .database.models import ChatResponse, Conversation, ConversationStats, Message
from .exceptions import AccessError, CompletionError, StorageError, ValidationError
from .locks import AsyncKeyedLock
from .memory.base import BaseWindowStore
from .registry import ConversationRegistry
from .services.llm.base import BaseLLM

logger = logging.getLogger(__name__)

FALLBACK_ANSWER = "I encountered a technical issue. Could you rephrase your question?"


def _require(value: str, field: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field} must not be empty")
    return value


class TutorService:
    """Service layer for tutoring conversations."""

    def __init__(
        self,
        registry: ConversationRegistry,
        windows: BaseWindowStore,
        assembler: ContextAssembler,
        llm: BaseLLM,
        settings: Settings,
    ):
        self.registry = registry
        self.windows = windows
        self.assembler = assembler
        self.llm = llm
        self.settings = settings
        self._locks = AsyncKeyedLock()

    def _owned(self, user_id: str, conversation_id: str) -> Conversation:
        result = self.registry.validate_ownership(user_id, conversation_id)
        if isinstance(result, AccessError):
            logger.warning(
                f"Access denied: user={user_id}, conversation={conversation_id}"
            )
            raise result
        return result

    async def start_conversation(self, user_id: str, title: str = "") -> Conversation:
        _require(user_id, "user_id")
        return self.registry.create(user_id, title)

    async def ask(
        self,
        user_id: str,
        conversation_id: str,
        question: str,
        user_name: str = "",
    ) -> ChatResponse:
        """
        Answer one student question inside a conversation.

        Returns:
            ChatResponse with the answer and the conversation's counters.
            On a backend failure the answer is FALLBACK_ANSWER and the
            counters are the ones from before the turn.

        Raises:
            ValidationError: blank user id or question
            AccessError: conversation unknown or owned by someone else
            StorageError: the turn could not be written
        """
        _require(user_id, "user_id")
        _require(question, "question")
        conversation = self._owned(user_id, conversation_id)

        logger.info(
            f"Tutor turn: user={user_id}, conversation={conversation_id}, "
            f"question_chars={len(question)}"
        )

        history = self._read_window(conversation_id)
        system_prompt = self.assembler.assemble(history, question, user_name)

        try:
            answer = await asyncio.wait_for(
                self.llm.complete(
                    system_prompt, question, temperature=self.settings.temperature
                ),
                timeout=self.settings.completion_timeout,
            )
        except (CompletionError, asyncio.TimeoutError):
            logger.exception(
                f"Completion failed: user={user_id}, conversation={conversation_id}"
            )
            return ChatResponse(
                answer=FALLBACK_ANSWER,
                conversation_id=conversation_id,
                turn_count=conversation.turn_count,
                message_count=len(history),
            )

        async with self._locks.hold(conversation_id):
            # The conversation may have been deleted while the model was busy
            self._owned(user_id, conversation_id)
            stored = self.windows.append_many(
                conversation_id,
                [
                    Message(role="user", content=question),
                    Message(role="assistant", content=answer),
                ],
            )
            try:
                conversation = self.registry.record_turn(conversation_id)
            except (StorageError, AccessError):
                self.windows.remove(conversation_id, [m.position for m in stored])
                raise
            message_count = self.windows.count(conversation_id)

        logger.info(
            f"Tutor turn done: conversation={conversation_id}, "
            f"turn={conversation.turn_count}, messages={message_count}"
        )
        return ChatResponse(
            answer=answer,
            conversation_id=conversation_id,
            turn_count=conversation.turn_count,
            message_count=message_count,
        )

    async def list_conversations(self, user_id: str) -> List[Conversation]:
        return self.registry.list_by_user(user_id)

    async def get_conversation(self, user_id: str, conversation_id: str) -> ConversationStats:
        conversation = self._owned(user_id, conversation_id)
        return ConversationStats(
            conversation=conversation,
            turn_count=conversation.turn_count,
            message_count=self.windows.count(conversation_id),
        )

    async def get_history(self, user_id: str, conversation_id: str) -> List[Message]:
        self._owned(user_id, conversation_id)
        return self._read_window(conversation_id)

    def _read_window(self, conversation_id: str) -> List[Message]:
        """Window snapshot; a storage failure reads as no history"""
        try:
            return self.windows.read(conversation_id)
        except StorageError as e:
            logger.error(
                f"History unavailable for conversation {conversation_id}: {e.message}"
            )
            return []

    async def delete_conversation(self, user_id: str, conversation_id: str) -> None:
        async with self._locks.hold(conversation_id):
            self.registry.delete(user_id, conversation_id)

    async def delete_all_conversations(self, user_id: str) -> int:
        # No turn writes back while its window is cleared; locks taken in id order
        ids = sorted(c.id for c in self.registry.list_by_user(user_id))
        async with AsyncExitStack() as stack:
            for conversation_id in ids:
                await stack.enter_async_context(self._locks.hold(conversation_id))
            return self.registry.delete_all(user_id)
