"""Conversation registry: who owns which conversation.

Ownership is checked with a single keyed lookup on (conversation, user).
A conversation that does not exist and one that belongs to somebody else
produce the same AccessError.
"""

import logging
import uuid
from typing import List, Union

from .database.conversations import ConversationStore
from .database.models import Conversation
from .exceptions import AccessError, StorageError
from .memory.base import BaseWindowStore
from .utils import utcnow

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "New Chat"


class ConversationRegistry:
    def __init__(self, store: ConversationStore, windows: BaseWindowStore):
        self.store = store
        self.windows = windows

    def create(self, user_id: str, title: str = "") -> Conversation:
        now = utcnow()
        conversation = Conversation(
            id=str(uuid.uuid4()),
            user_id=user_id,
            title=title.strip() if title and title.strip() else DEFAULT_TITLE,
            created_at=now,
            updated_at=now,
        )
        self.store.insert(conversation)
        logger.info(f"Conversation created: user={user_id}, conversation={conversation.id}")
        return conversation

    def validate_ownership(
        self, user_id: str, conversation_id: str
    ) -> Union[Conversation, AccessError]:
        """Return the conversation, or an AccessError (not raised) when the
        pair does not match a stored record."""
        conversation = self.store.get_for_user(conversation_id, user_id)
        if conversation is None:
            return AccessError()
        return conversation

    def get(self, user_id: str, conversation_id: str) -> Conversation:
        result = self.validate_ownership(user_id, conversation_id)
        if isinstance(result, AccessError):
            raise result
        return result

    def touch(self, conversation_id: str) -> Conversation:
        conversation = self.store.update_activity(conversation_id, utcnow())
        if conversation is None:
            raise AccessError()
        return conversation

    def record_turn(self, conversation_id: str) -> Conversation:
        """Touch the conversation and count one more assistant turn"""
        conversation = self.store.update_activity(
            conversation_id, utcnow(), increment_turns=True
        )
        if conversation is None:
            raise AccessError()
        return conversation

    def list_by_user(self, user_id: str) -> List[Conversation]:
        return self.store.find_by_user(user_id)

    def delete(self, user_id: str, conversation_id: str) -> None:
        """Remove a conversation's window and metadata record.

        The window goes first: if the process dies between the two steps the
        record is still there and the delete can simply be retried.
        """
        self.get(user_id, conversation_id)

        self.windows.clear(conversation_id)
        self.store.delete(conversation_id)
        logger.info(f"Conversation deleted: user={user_id}, conversation={conversation_id}")

    def delete_all(self, user_id: str) -> int:
        """Best-effort removal of every conversation the user owns.

        A window that fails to clear is logged and skipped; its metadata
        record is deleted regardless.
        """
        deleted = sum(
            1 for conversation in self.store.find_by_user(user_id)
            if self._discard(conversation.id)
        )
        logger.info(f"Deleted {deleted} conversations for user {user_id}")
        return deleted

    def _discard(self, conversation_id: str) -> bool:
        """Delete one conversation without an ownership check, tolerating a
        window that will not clear. Returns False if the record was gone."""
        try:
            self.windows.clear(conversation_id)
        except StorageError as e:
            logger.warning(
                f"Could not clear window for conversation {conversation_id}: {e.message}"
            )
        return self.store.delete(conversation_id)
