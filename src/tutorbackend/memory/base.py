from abc import ABC, abstractmethod
from typing import Iterable, List

from ..database.models import Message
from ..locks import KeyedLock

DEFAULT_CAPACITY = 50

class BaseWindowStore(ABC):
    """Bounded, ordered message buffer per conversation.

    Appending past `capacity` evicts from the head, oldest first. Reads hand
    back a fresh list of frozen messages. Unknown conversations read as
    empty and clear without complaint.

    Every public operation runs under the conversation's own lock, so
    subclasses implement the underscored hooks without locking themselves.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("Window capacity must be at least 1")
        self.capacity = capacity
        self._locks = KeyedLock()

    def append(self, conversation_id: str, message: Message) -> Message:
        """Store a message at the tail and return it with its position set."""
        return self.append_many(conversation_id, [message])[0]

    def append_many(self, conversation_id: str, messages: Iterable[Message]) -> List[Message]:
        """Store several messages at the tail, all or none of them."""
        with self._locks.hold(conversation_id):
            return self._append_many(conversation_id, list(messages))

    def remove(self, conversation_id: str, positions: Iterable[int]) -> None:
        """Take back messages just appended, identified by position.

        Only the newest positions may be removed; what was evicted to make
        room for them does not come back.
        """
        with self._locks.hold(conversation_id):
            self._remove(conversation_id, set(positions))

    def read(self, conversation_id: str) -> List[Message]:
        """Snapshot of the window, oldest first."""
        with self._locks.hold(conversation_id):
            return self._read(conversation_id)

    def count(self, conversation_id: str) -> int:
        """Number of messages currently in the window."""
        with self._locks.hold(conversation_id):
            return self._count(conversation_id)

    def clear(self, conversation_id: str) -> None:
        """Drop every message for the conversation."""
        with self._locks.hold(conversation_id):
            self._clear(conversation_id)

    @abstractmethod
    def _append_many(self, conversation_id: str, messages: List[Message]) -> List[Message]:
        pass

    @abstractmethod
    def _remove(self, conversation_id: str, positions: set) -> None:
        pass

    @abstractmethod
    def _read(self, conversation_id: str) -> List[Message]:
        pass

    @abstractmethod
    def _count(self, conversation_id: str) -> int:
        pass

    @abstractmethod
    def _clear(self, conversation_id: str) -> None:
        pass
