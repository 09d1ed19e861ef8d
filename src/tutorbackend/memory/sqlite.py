import logging
import sqlite3
from contextlib import contextmanager
from typing import List

from ..database.models import Message
from ..exceptions import StorageError
from .base import BaseWindowStore, DEFAULT_CAPACITY

logger = logging.getLogger(__name__)

class SqliteWindowStore(BaseWindowStore):
    """Window store that survives restarts, one row per retained message"""

    def __init__(self, db_path: str = "tutor_messages.db", capacity: int = DEFAULT_CAPACITY):
        super().__init__(capacity)
        self.db_path = db_path
        self._init_db()

    @contextmanager
    def get_connection(self):
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise StorageError(f"Could not open message store: {e}") from e
        try:
            yield conn
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Message store error on {self.db_path}: {e}")
            raise StorageError(f"Message store error: {e}") from e
        finally:
            conn.close()

    def _init_db(self):
        with self.get_connection() as conn:
            c = conn.cursor()
            c.execute('''
                CREATE TABLE IF NOT EXISTS messages (
                    conversation_id TEXT NOT NULL,
                    position INTEGER NOT NULL,
                    role TEXT NOT NULL,
                    content TEXT NOT NULL,
                    timestamp TEXT NOT NULL,
                    PRIMARY KEY (conversation_id, position)
                )
            ''')
            conn.commit()

    def _append_many(self, conversation_id: str, messages: List[Message]) -> List[Message]:
        if not messages:
            return []

        with self.get_connection() as conn:
            c = conn.cursor()

            # The newest row is never evicted, so MAX + 1 never reuses a position
            c.execute(
                'SELECT COALESCE(MAX(position), 0) + 1 FROM messages WHERE conversation_id = ?',
                (conversation_id,)
            )
            first = c.fetchone()[0]
            stored = [
                message.model_copy(update={"position": first + i})
                for i, message in enumerate(messages)
            ]

            c.executemany('''
                INSERT INTO messages (conversation_id, position, role, content, timestamp)
                VALUES (?, ?, ?, ?, ?)
            ''', [
                (
                    conversation_id,
                    m.position,
                    m.role,
                    m.content,
                    m.timestamp.isoformat()
                )
                for m in stored
            ])

            # Positions are contiguous, so the head is everything more than
            # `capacity` behind the new tail
            c.execute(
                'DELETE FROM messages WHERE conversation_id = ? AND position <= ?',
                (conversation_id, stored[-1].position - self.capacity)
            )

            conn.commit()
            return stored

    def _remove(self, conversation_id: str, positions: set) -> None:
        if not positions:
            return

        with self.get_connection() as conn:
            c = conn.cursor()
            c.executemany(
                'DELETE FROM messages WHERE conversation_id = ? AND position = ?',
                [(conversation_id, position) for position in sorted(positions)]
            )
            conn.commit()

    def _read(self, conversation_id: str) -> List[Message]:
        with self.get_connection() as conn:
            c = conn.cursor()

            c.execute('''
                SELECT role, content, timestamp, position
                FROM messages
                WHERE conversation_id = ?
                ORDER BY position
            ''', (conversation_id,))

            return [
                Message(
                    role=row[0],
                    content=row[1],
                    timestamp=row[2],
                    position=row[3]
                )
                for row in c.fetchall()
            ]

    def _count(self, conversation_id: str) -> int:
        with self.get_connection() as conn:
            c = conn.cursor()
            c.execute(
                'SELECT COUNT(*) FROM messages WHERE conversation_id = ?',
                (conversation_id,)
            )
            return c.fetchone()[0]

    def _clear(self, conversation_id: str) -> None:
        with self.get_connection() as conn:
            c = conn.cursor()
            c.execute('DELETE FROM messages WHERE conversation_id = ?', (conversation_id,))
            conn.commit()
