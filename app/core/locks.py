"""
Per-document mutual exclusion for version history writers.
"""
import asyncio
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class DocumentLockManager:
    """
    Hands out one asyncio lock per document id.

    Writers for the same document queue behind each other while writers for
    different documents never touch the same lock. Entries are dropped once
    nobody holds or waits on them. Cross-process exclusion is provided by the
    row lock the controller takes inside its transaction.
    """

    def __init__(self):
        self._locks: Dict[uuid.UUID, asyncio.Lock] = {}
        self._users: Dict[uuid.UUID, int] = {}

    @asynccontextmanager
    async def acquire(self, document_id: uuid.UUID) -> AsyncIterator[None]:
        lock = self._locks.get(document_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[document_id] = lock
        self._users[document_id] = self._users.get(document_id, 0) + 1

        try:
            async with lock:
                yield
        finally:
            self._users[document_id] -= 1
            if self._users[document_id] == 0:
                del self._users[document_id]
                del self._locks[document_id]

    def is_tracked(self, document_id: uuid.UUID) -> bool:
        """Whether a lock currently exists for the document."""
        return document_id in self._locks


document_locks = DocumentLockManager()
