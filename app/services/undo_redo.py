"""
Undo/redo state machine over a document's version history.

Position within history is the triple (head, current, max_reachable) kept in
``DocumentPointerState``. New versions are always appended at head + 1; when
the pointer sits behind head at that moment, the versions it could have
redone to stay stored but are no longer reachable through redo.
"""
import copy
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from sqlalchemy.exc import SQLAlchemyError

from app.models.document import Document
from app.models.version import ChangeType, DocumentPointerState, DocumentVersion
from app.services.version_store import VersionStore, DEFAULT_LIST_LIMIT
from app.services.snapshot import SnapshotBuilder
from app.services.pointer import PointerTracker, VersionStatus
from app.services.restore import RestoreEngine
from app.core.locks import DocumentLockManager, document_locks
from app.core.logging import VersionLogHandler
from app.core.exceptions import (
    ServiceException, NotFoundError, NoVersionHistoryError,
    NothingToUndoError, NothingToRedoError, StorageError
)


@dataclass(frozen=True)
class RestoredContent:
    """Result of an undo or redo."""
    version_number: int
    snapshot: Dict[str, Any]


class UndoRedoController:
    """Public entry point for recording versions and moving through them."""

    def __init__(self, db: AsyncSession, locks: Optional[DocumentLockManager] = None):
        self.db = db
        self.locks = locks or document_locks
        self.store = VersionStore(db)
        self.tracker = PointerTracker(db, self.store)
        self.restore_engine = RestoreEngine(db)
        self.version_log = VersionLogHandler()

    async def create_version(
        self,
        document_id: uuid.UUID,
        change_type: ChangeType,
        author_id: uuid.UUID,
        change_summary: Optional[str] = None,
        section_id: Optional[uuid.UUID] = None
    ) -> DocumentVersion:
        """
        Record the live state of a document as its newest version.

        The version is written at head + 1 regardless of the pointer, and the
        pointer moves onto it, which cuts off any redo path.

        Raises:
            NotFoundError: If the document does not exist
            CorruptPointerStateError: If the stored pointer state is invalid
            StorageError: If the version could not be recorded
        """
        async with self._transaction(document_id, "create_version"):
            version, orphaned = await self._append_live_state(
                document_id, change_type, author_id, change_summary, section_id
            )

        await self.version_log.log_version_created(
            document_id, version.version_number, change_type.value, author_id, section_id
        )
        if orphaned:
            await self.version_log.log_branch_discarded(document_id, *orphaned)
        return version

    async def initialize(
        self,
        document_id: uuid.UUID,
        author_id: uuid.UUID,
        new_document: Optional[Document] = None
    ) -> DocumentVersion:
        """
        Record the baseline version 1 unless the document already has history.

        A ``new_document`` is inserted in the same transaction as its baseline,
        so a failure leaves neither behind.
        """
        async with self._transaction(document_id, "initialize"):
            if new_document is not None:
                self.db.add(new_document)
                await self.db.flush()
            elif await self.store.current_head(document_id) > 0:
                return await self.store.get(document_id, 1)
            version, _ = await self._append_live_state(
                document_id, ChangeType.CREATE, author_id, None, None
            )

        await self.version_log.log_version_created(
            document_id, version.version_number, ChangeType.CREATE.value, author_id
        )
        return version

    async def undo(self, document_id: uuid.UUID) -> RestoredContent:
        """
        Step back to the previous version.

        Only the pointer moves: no version is written and the redo horizon is
        kept.

        Raises:
            NothingToUndoError: If the pointer is at version 1
            NoVersionHistoryError: If the document has no versions
        """
        async with self._transaction(document_id, "undo"):
            await self._lock_document(document_id)
            state = await self.tracker.load(document_id, for_update=True)
            if not state.can_undo:
                raise NothingToUndoError()

            previous = state.current_version
            restored = await self._move_to(document_id, state, previous - 1)
            moved = self._movement(state, previous)

        await self.version_log.log_pointer_moved(document_id, "undo", **moved)
        return restored

    async def redo(self, document_id: uuid.UUID) -> RestoredContent:
        """
        Step forward to the next reachable version.

        Raises:
            NothingToRedoError: If the pointer is at the redo horizon
            NoVersionHistoryError: If the document has no versions
        """
        async with self._transaction(document_id, "redo"):
            await self._lock_document(document_id)
            state = await self.tracker.load(document_id, for_update=True)
            if not state.can_redo:
                raise NothingToRedoError()

            previous = state.current_version
            restored = await self._move_to(document_id, state, previous + 1)
            moved = self._movement(state, previous)

        await self.version_log.log_pointer_moved(document_id, "redo", **moved)
        return restored

    async def restore_to_version(
        self,
        document_id: uuid.UUID,
        version_number: int,
        author_id: uuid.UUID,
        change_summary: Optional[str] = None
    ) -> DocumentVersion:
        """
        Bring back an earlier version as a new version on top of history.

        Nothing is rewound: every existing version stays stored and the
        restored content becomes the new head.

        Raises:
            NotFoundError: If the document or version does not exist
            NoVersionHistoryError: If the document has no versions
        """
        async with self._transaction(document_id, "restore_to_version"):
            await self._lock_document(document_id)
            state = await self.tracker.load(document_id, for_update=True)
            source = await self.store.get(document_id, version_number)

            snapshot = copy.deepcopy(source.snapshot)
            await self.restore_engine.apply_snapshot(document_id, snapshot)

            version = await self.store.append(
                document_id,
                ChangeType.RESTORE,
                snapshot,
                author_id,
                change_summary=change_summary or f"Restored to version {version_number}"
            )
            previous = state.current_version
            orphaned = self._orphaned_range(state)
            self._point_at_head(state, version.version_number)
            await self.tracker.save(state)
            moved = self._movement(state, previous)

        await self.version_log.log_version_created(
            document_id, version.version_number, ChangeType.RESTORE.value, author_id
        )
        await self.version_log.log_pointer_moved(document_id, "restore", **moved)
        if orphaned:
            await self.version_log.log_branch_discarded(document_id, *orphaned)
        return version

    async def status(self, document_id: uuid.UUID) -> VersionStatus:
        """Undo/redo availability for a document."""
        return await self.tracker.status(document_id)

    async def list_versions(
        self,
        document_id: uuid.UUID,
        limit: int = DEFAULT_LIST_LIMIT
    ) -> Tuple[List[DocumentVersion], int]:
        """
        Version history of a document, newest first, with the live version number.

        The live version number is 0 for a document without history.
        """
        await self._require_document(document_id)
        try:
            state = await self.tracker.load(document_id)
            current_version = state.current_version
        except NoVersionHistoryError:
            current_version = 0
        # Listed after the pointer so a concurrent write can only add newer versions
        versions = await self.store.list(document_id, limit)
        return versions, current_version

    async def get_version(self, document_id: uuid.UUID, version_number: int) -> DocumentVersion:
        """A single stored version including its snapshot."""
        await self._require_document(document_id)
        return await self.store.get(document_id, version_number)

    # Private helper methods

    @asynccontextmanager
    async def _transaction(self, document_id: uuid.UUID, operation: str):
        """Hold the document lock for the whole unit of work and commit inside it."""
        async with self.locks.acquire(document_id):
            try:
                yield
                await self.db.commit()
            except ServiceException:
                await self.db.rollback()
                raise
            except SQLAlchemyError as e:
                await self.db.rollback()
                await self.version_log.log_storage_error(document_id, operation, e)
                raise StorageError(f"Failed to {operation.replace('_', ' ')}")

    async def _lock_document(self, document_id: uuid.UUID) -> Document:
        """Load the document with its sections under a row lock."""
        document = await self.db.scalar(
            select(Document)
            .options(selectinload(Document.sections))
            .where(Document.id == document_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        if document is None:
            raise NotFoundError(f"Document {document_id} not found")
        return document

    async def _require_document(self, document_id: uuid.UUID) -> None:
        exists = await self.db.scalar(select(Document.id).where(Document.id == document_id))
        if exists is None:
            raise NotFoundError(f"Document {document_id} not found")

    async def _append_live_state(
        self,
        document_id: uuid.UUID,
        change_type: ChangeType,
        author_id: uuid.UUID,
        change_summary: Optional[str],
        section_id: Optional[uuid.UUID]
    ) -> Tuple[DocumentVersion, Optional[Tuple[int, int]]]:
        """Capture, append and move the pointer to the new head. Caller holds the lock."""
        document = await self._lock_document(document_id)
        snapshot = SnapshotBuilder.capture(document)

        if await self.store.current_head(document_id) > 0:
            state = await self.tracker.load(document_id, for_update=True)
        else:
            state = None

        version = await self.store.append(
            document_id,
            change_type,
            snapshot,
            author_id,
            change_summary=change_summary,
            section_id=section_id
        )

        orphaned = None
        if state is None:
            state = DocumentPointerState(document_id=document_id)
        else:
            orphaned = self._orphaned_range(state)
        self._point_at_head(state, version.version_number)
        await self.tracker.save(state)
        return version, orphaned

    async def _move_to(self, document_id: uuid.UUID, state: DocumentPointerState, target: int) -> RestoredContent:
        version = await self.store.get(document_id, target)
        await self.restore_engine.apply_snapshot(document_id, version.snapshot)

        state.current_version = target
        await self.tracker.save(state)
        return RestoredContent(version_number=target, snapshot=copy.deepcopy(version.snapshot))

    @staticmethod
    def _point_at_head(state: DocumentPointerState, version_number: int) -> None:
        state.head_version = version_number
        state.current_version = version_number
        state.max_reachable_version = version_number

    @staticmethod
    def _orphaned_range(state: DocumentPointerState) -> Optional[Tuple[int, int]]:
        """Versions that lose their redo path when a new head is written."""
        if state.current_version < state.max_reachable_version:
            return state.current_version + 1, state.max_reachable_version
        return None

    @staticmethod
    def _movement(state: DocumentPointerState, previous: int) -> Dict[str, int]:
        return {
            "from_version": previous,
            "to_version": state.current_version,
            "head_version": state.head_version,
            "max_reachable_version": state.max_reachable_version,
        }
