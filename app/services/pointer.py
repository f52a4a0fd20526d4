"""
Per-document undo/redo pointer state.
"""
import uuid
from dataclasses import dataclass
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app.models.document import Document
from app.models.version import DocumentPointerState
from app.services.version_store import VersionStore
from app.core.exceptions import (
    NotFoundError, NoVersionHistoryError, StorageError, CorruptPointerStateError
)
from app.core.logging import VersionLogHandler


@dataclass(frozen=True)
class VersionStatus:
    """Undo/redo availability derived from a pointer state."""
    current_version: int
    can_undo: bool
    can_redo: bool
    head_version: int
    max_reachable_version: int
    previous_version: Optional[int] = None
    next_version: Optional[int] = None

    @classmethod
    def from_state(cls, state: DocumentPointerState) -> "VersionStatus":
        return cls(
            current_version=state.current_version,
            can_undo=state.can_undo,
            can_redo=state.can_redo,
            head_version=state.head_version,
            max_reachable_version=state.max_reachable_version,
            previous_version=state.current_version - 1 if state.can_undo else None,
            next_version=state.current_version + 1 if state.can_redo else None,
        )


class PointerTracker:
    """Loads, validates and saves ``DocumentPointerState`` rows."""

    def __init__(self, db: AsyncSession, store: Optional[VersionStore] = None):
        self.db = db
        self.store = store or VersionStore(db)
        self.version_log = VersionLogHandler()

    async def load(self, document_id: uuid.UUID, for_update: bool = False) -> DocumentPointerState:
        """
        Load the pointer state of a document.

        A document holding versions but no pointer row gets one positioned at
        its newest version. A stored row is checked against the version log
        and rejected, never repaired, when inconsistent.

        Args:
            document_id: Document ID
            for_update: Take a row lock on the pointer state

        Raises:
            NotFoundError: If the document does not exist
            NoVersionHistoryError: If the document has no versions
            CorruptPointerStateError: If the stored state violates its invariants
            StorageError: If the lookup fails
        """
        try:
            # Row and stored head come from one statement so a concurrent
            # commit cannot land between them
            query = (
                select(DocumentPointerState, self.store.head_subquery(document_id))
                .where(DocumentPointerState.document_id == document_id)
                .execution_options(populate_existing=True)
            )
            if for_update:
                query = query.with_for_update(of=DocumentPointerState)
            result = await self.db.execute(query)
            row = result.one_or_none()

            if row is None:
                state = None
                exists = await self.db.scalar(select(Document.id).where(Document.id == document_id))
                if exists is None:
                    raise NotFoundError(f"Document {document_id} not found")
            else:
                state, head = row
        except SQLAlchemyError as e:
            await self.version_log.log_storage_error(document_id, "load_pointer", e)
            raise StorageError("Failed to load version pointer state")

        if state is None:
            head = await self.store.current_head(document_id)
        if head == 0:
            if state is not None:
                await self._corrupt(document_id, state, head, "pointer state exists without any versions")
            raise NoVersionHistoryError(f"Document {document_id} has no version history")

        if state is None:
            state = DocumentPointerState(
                document_id=document_id,
                head_version=head,
                current_version=head,
                max_reachable_version=head
            )
            # Only writers, who hold the document lock, persist the new row
            if for_update:
                self.db.add(state)
            return state

        if not (1 <= state.current_version <= state.max_reachable_version <= state.head_version):
            await self._corrupt(document_id, state, head, "pointer ordering violated")
        if state.head_version != head:
            await self._corrupt(document_id, state, head, "head version disagrees with stored versions")

        return state

    async def save(self, state: DocumentPointerState) -> None:
        """Persist a pointer state as one write within the current transaction."""
        try:
            self.db.add(state)
            await self.db.flush()
        except SQLAlchemyError as e:
            await self.version_log.log_storage_error(state.document_id, "save_pointer", e)
            raise StorageError("Failed to save version pointer state")

    async def status(self, document_id: uuid.UUID) -> VersionStatus:
        """Derive undo/redo availability for a document."""
        state = await self.load(document_id)
        return VersionStatus.from_state(state)

    async def _corrupt(self, document_id: uuid.UUID, state: DocumentPointerState, stored_head: int, reason: str):
        await self.version_log.log_corrupt_state(document_id, {
            "reason": reason,
            "head_version": state.head_version,
            "current_version": state.current_version,
            "max_reachable_version": state.max_reachable_version,
            "stored_head": stored_head,
        })
        raise CorruptPointerStateError(
            f"Pointer state for document {document_id} is corrupt: {reason} "
            f"(head={state.head_version}, current={state.current_version}, "
            f"max_reachable={state.max_reachable_version}, stored_head={stored_head})"
        )
