from collections import deque
from typing import Deque, Dict, List

from ..database.models import Message
from .base import BaseWindowStore, DEFAULT_CAPACITY


class _Window:
    def __init__(self, capacity: int):
        # maxlen gives FIFO eviction from the left on append
        self.messages: Deque[Message] = deque(maxlen=capacity)
        self.next_position = 1


class InMemoryWindowStore(BaseWindowStore):
    """Window store that lives as long as the process does"""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        super().__init__(capacity)
        self._windows: Dict[str, _Window] = {}

    def _append_many(self, conversation_id: str, messages: List[Message]) -> List[Message]:
        window = self._windows.get(conversation_id)
        if window is None:
            window = self._windows[conversation_id] = _Window(self.capacity)

        stored = [
            message.model_copy(update={"position": window.next_position + i})
            for i, message in enumerate(messages)
        ]
        window.messages.extend(stored)
        window.next_position += len(stored)
        return stored

    def _remove(self, conversation_id: str, positions: set) -> None:
        window = self._windows.get(conversation_id)
        if window is None:
            return
        kept = [m for m in window.messages if m.position not in positions]
        window.messages = deque(kept, maxlen=self.capacity)
        # Same rule as the sqlite store: next position follows the newest kept
        window.next_position = kept[-1].position + 1 if kept else 1

    def _read(self, conversation_id: str) -> List[Message]:
        window = self._windows.get(conversation_id)
        if window is None:
            return []
        return list(window.messages)

    def _count(self, conversation_id: str) -> int:
        window = self._windows.get(conversation_id)
        return len(window.messages) if window else 0

    def _clear(self, conversation_id: str) -> None:
        self._windows.pop(conversation_id, None)
