"""Per-key mutual exclusion.

Each conversation id gets its own lock, created on first use and dropped as
soon as nobody holds or waits on it, so the table only ever contains keys
that are in flight.
"""

import asyncio
import threading
from contextlib import asynccontextmanager, contextmanager
from typing import Dict, List


class KeyedLock:
    """threading.Lock per key, for the synchronous window stores"""

    def __init__(self):
        self._guard = threading.Lock()
        # key -> [lock, users]
        self._locks: Dict[str, List] = {}

    @contextmanager
    def hold(self, key: str):
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        entry[0].acquire()
        try:
            yield
        finally:
            entry[0].release()
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def __len__(self):
        return len(self._locks)


class AsyncKeyedLock:
    """asyncio.Lock per key, for the orchestrator's write-back phase"""

    def __init__(self):
        self._locks: Dict[str, List] = {}

    @asynccontextmanager
    async def hold(self, key: str):
        # No await between lookup and increment, so no guard is needed
        entry = self._locks.setdefault(key, [asyncio.Lock(), 0])
        entry[1] += 1
        try:
            async with entry[0]:
                yield
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    def __len__(self):
        return len(self._locks)
